"""Frame count probing using ffprobe."""

import asyncio
import json
import logging
import subprocess
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

from ..errors import ExecutableUnavailable, ProbeError

logger = logging.getLogger("lutgrade")


class VideoStreamInfo(BaseModel):
    """The parts of a video stream the export pipeline needs."""
    index: int = 0
    codec_name: str = "unknown"
    width: int = 0
    height: int = 0
    frame_rate: Optional[float] = None
    duration: Optional[float] = None
    nb_frames: Optional[int] = None

    @property
    def total_frames(self) -> Optional[int]:
        """Declared frame count, else frame rate times duration."""
        if self.nb_frames:
            return self.nb_frames
        if self.frame_rate and self.duration:
            return int(self.frame_rate * self.duration)
        return None


def _parse_rate(value: Optional[str]) -> Optional[float]:
    if not value:
        return None
    try:
        num, den = map(int, value.split("/"))
        return num / den if den != 0 else None
    except (ValueError, ZeroDivisionError):
        return None


class VideoAnalyzer:
    """Reads video stream metadata with ffprobe."""

    def __init__(self, ffprobe_path: Optional[str]):
        """Initialize the analyzer.

        Args:
            ffprobe_path: Path to the ffprobe executable.

        Raises:
            ExecutableUnavailable: If no ffprobe path was resolved.
        """
        if not ffprobe_path:
            raise ExecutableUnavailable("ffprobe not found. Install FFmpeg or set LUTGRADE_FFPROBE.")
        self.ffprobe_path = ffprobe_path

    def video_stream(self, video_path: str | Path) -> VideoStreamInfo:
        """Probe the first video stream.

        Raises:
            ProbeError: If the file is missing, ffprobe fails, or there is
                no video stream.
        """
        video_path = Path(video_path)
        if not video_path.exists():
            raise ProbeError(str(video_path), "file not found")

        cmd = [
            self.ffprobe_path,
            "-v", "error",
            "-select_streams", "v:0",
            "-print_format", "json",
            "-show_streams",
            "-show_format",
            str(video_path),
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, text=True)
        except OSError as e:
            raise ProbeError(str(video_path), str(e)) from e
        if result.returncode != 0:
            raise ProbeError(str(video_path), result.stderr.strip() or f"ffprobe exited with {result.returncode}")

        try:
            data = json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise ProbeError(str(video_path), f"unreadable ffprobe output: {e}") from e
        return self._parse_video_stream(str(video_path), data)

    def frame_count(self, video_path: str | Path) -> int:
        """Total frame count of the first video stream.

        Raises:
            ProbeError: If the count cannot be determined.
        """
        stream = self.video_stream(video_path)
        total = stream.total_frames
        if not total:
            raise ProbeError(str(video_path), "frame count unavailable")
        logger.debug("%s: %d frames", video_path, total)
        return total

    async def probe(self, video_path: str | Path) -> int:
        """Async frame count, run off the event loop."""
        return await asyncio.to_thread(self.frame_count, video_path)

    def _parse_video_stream(self, file_path: str, data: dict) -> VideoStreamInfo:
        streams = [s for s in data.get("streams", []) if s.get("codec_type", "video") == "video"]
        if not streams:
            raise ProbeError(file_path, "no video track")
        stream = streams[0]

        duration = stream.get("duration") or data.get("format", {}).get("duration")
        frame_rate = _parse_rate(stream.get("r_frame_rate")) or _parse_rate(stream.get("avg_frame_rate"))

        return VideoStreamInfo(
            index=stream.get("index", 0),
            codec_name=stream.get("codec_name", "unknown"),
            width=stream.get("width", 0),
            height=stream.get("height", 0),
            frame_rate=frame_rate,
            duration=float(duration) if duration else None,
            nb_frames=int(stream["nb_frames"]) if str(stream.get("nb_frames", "")).isdigit() else None,
        )
