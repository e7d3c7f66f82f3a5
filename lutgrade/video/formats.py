"""Encoding profile definitions."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict


class VideoCodec(str, Enum):
    """Video encoders used for export."""
    H264_VIDEOTOOLBOX = "h264_videotoolbox"
    H264 = "libx264"


class PixelFormat(str, Enum):
    """Pixel formats paired with each encoder."""
    NV12 = "nv12"
    YUV422P = "yuv422p"


AUDIO_CODEC = "aac"
AUDIO_BITRATE = "192k"


class EncodingProfile(BaseModel):
    """One of the two fixed export profiles.

    Use :meth:`from_flag` rather than constructing directly; the two
    presets are not independently tunable.
    """
    model_config = ConfigDict(frozen=True)

    use_hardware_acceleration: bool
    video_codec: VideoCodec
    pixel_format: PixelFormat
    bitrate: Optional[str] = None
    profile: Optional[str] = None
    level: Optional[str] = None
    preset: Optional[str] = None
    crf: Optional[int] = None

    @classmethod
    def from_flag(cls, use_hardware_acceleration: bool) -> "EncodingProfile":
        """Derive the hardware or software preset."""
        if use_hardware_acceleration:
            return HARDWARE_PROFILE
        return SOFTWARE_PROFILE

    @property
    def bitrate_or_quality(self) -> str:
        """Human-readable rate control summary."""
        if self.bitrate:
            return self.bitrate
        return f"crf {self.crf}"

    def to_ffmpeg_args(self) -> list[str]:
        """Convert to FFMPEG command arguments."""
        args = ["-c:v", self.video_codec.value]

        if self.preset:
            args.extend(["-preset", self.preset])
        if self.crf is not None:
            args.extend(["-crf", str(self.crf)])
        elif self.bitrate:
            args.extend(["-b:v", self.bitrate])

        if self.profile:
            args.extend(["-profile:v", self.profile])
        if self.level:
            args.extend(["-level:v", self.level])

        args.extend(["-pix_fmt", self.pixel_format.value])

        return args


HARDWARE_PROFILE = EncodingProfile(
    use_hardware_acceleration=True,
    video_codec=VideoCodec.H264_VIDEOTOOLBOX,
    pixel_format=PixelFormat.NV12,
    bitrate="140000k",
    profile="high",
    level="5.1",
)

SOFTWARE_PROFILE = EncodingProfile(
    use_hardware_acceleration=False,
    video_codec=VideoCodec.H264,
    pixel_format=PixelFormat.YUV422P,
    preset="veryslow",
    crf=0,
)
