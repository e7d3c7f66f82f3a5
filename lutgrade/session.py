"""Wires settings, project state and the engine together.

A :class:`GradingSession` is what a front end drives: change the project,
ask for a preview, start or abort an export.
"""

import logging
from pathlib import Path
from typing import Optional

from .binary import resolve_ffmpeg, resolve_ffprobe
from .config import Settings, load_settings
from .errors import ProbeError
from .events import EventSink
from .executor.batch import BatchExportPipeline, BatchResult, FrameProbe
from .executor.orchestrator import ProcessOrchestrator
from .executor.preview import PreviewGenerator
from .project import ProjectState
from .video.analyzer import VideoAnalyzer
from .video.formats import EncodingProfile

logger = logging.getLogger("lutgrade")


class GradingSession:
    def __init__(
        self,
        settings: Optional[Settings] = None,
        events: Optional[EventSink] = None,
        project: Optional[ProjectState] = None,
        probe: Optional[FrameProbe] = None,
    ):
        self.settings = settings or load_settings()
        self.events = events or EventSink()
        self.project = project or ProjectState(
            use_hardware_acceleration=self.settings.use_hardware_acceleration,
            output_extension=self.settings.output_extension,
        )
        self.orchestrator = ProcessOrchestrator(
            lambda: resolve_ffmpeg(self.settings.ffmpeg_path),
            events=self.events,
            grace_period=self.settings.grace_period,
        )
        self.previews = PreviewGenerator(self.orchestrator, self.settings.preview_dir)
        self.probe = probe or self._probe_frames
        self._pipeline: Optional[BatchExportPipeline] = None

    async def _probe_frames(self, path: Path) -> int:
        ffprobe = resolve_ffprobe(self.settings.ffprobe_path)
        if not ffprobe:
            raise ProbeError(str(path), "ffprobe not found")
        return await VideoAnalyzer(ffprobe).probe(path)

    def toggle_hardware_acceleration(self) -> bool:
        self.project.use_hardware_acceleration = not self.project.use_hardware_acceleration
        mode = "GPU" if self.project.use_hardware_acceleration else "CPU"
        self.events.log(f"Switched to {mode} encoding mode")
        return self.project.use_hardware_acceleration

    async def update_preview(self) -> Optional[Path]:
        """Render a preview of the first loaded video with the current grade."""
        if not self.project.video_paths:
            return None
        return await self.previews.generate(self.project.video_paths[0], self.project.grade)

    async def export(self) -> Optional[BatchResult]:
        """Export every loaded video with the current grade.

        Returns None (after logging why) if the project is not ready.
        """
        validation = self.project.validate_configuration()
        if not validation.is_valid:
            self.events.log(f"Cannot export: {validation.error_message}")
            return None

        pipeline = BatchExportPipeline(
            self.orchestrator,
            probe=self.probe,
            profile=EncodingProfile.from_flag(self.project.use_hardware_acceleration),
            events=self.events,
            halt_on_probe_failure=self.settings.halt_on_probe_failure,
            halt_on_engine_failure=self.settings.halt_on_engine_failure,
        )
        self._pipeline = pipeline
        try:
            return await pipeline.run(self.project.to_batch())
        finally:
            if self._pipeline is pipeline:
                self._pipeline = None

    async def abort(self) -> None:
        if self._pipeline is not None:
            await self._pipeline.abort()
        else:
            await self.orchestrator.abort()
