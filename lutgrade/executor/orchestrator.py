"""Mediates access to the engine for preview and export jobs.

The orchestrator owns one slot per job kind. Starting a job first empties
every slot the kind supersedes: a preview replaces a running preview, an
export replaces both a running preview and a running export, and a preview
is refused outright while an export is running. Slot changes
are serialized on a lock; waiting for a job to finish happens outside it
so that a newer request can supersede an older one.
"""

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Optional

from ..errors import (
    EngineFailure, ExecutableUnavailable, JobRejected, LutGradeError, SpawnError, parse_engine_error,
)
from ..events import EventSink
from ..models import ColorGradeConfig, ExportJob, ProgressReport
from ..video.formats import EncodingProfile
from .command_builder import FFMPEGCommand
from .filter_graph import build_export_command, build_preview_command
from .process_handle import DEFAULT_GRACE_PERIOD, HandleState, ProcessHandle

logger = logging.getLogger("lutgrade")


class JobKind(str, Enum):
    PREVIEW = "preview"
    EXPORT = "export"

    @property
    def supersedes(self) -> tuple["JobKind", ...]:
        """Kinds that must be stopped before a job of this kind starts."""
        if self is JobKind.PREVIEW:
            return (JobKind.PREVIEW,)
        return (JobKind.PREVIEW, JobKind.EXPORT)

    @property
    def blocked_by(self) -> tuple["JobKind", ...]:
        """Kinds whose running job refuses a new job of this kind."""
        if self is JobKind.PREVIEW:
            return (JobKind.EXPORT,)
        return ()


@dataclass
class JobResult:
    kind: JobKind
    state: HandleState
    error: Optional[LutGradeError] = None
    output_path: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.state is HandleState.SUCCEEDED

    @property
    def terminated(self) -> bool:
        return self.state is HandleState.TERMINATED

    @property
    def rejected(self) -> bool:
        return isinstance(self.error, JobRejected)


class ProcessOrchestrator:
    """Runs engine jobs under the preview/export exclusion policy."""

    def __init__(
        self,
        resolve_executable: Callable[[], Optional[str]],
        events: Optional[EventSink] = None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
    ):
        """Initialize the orchestrator.

        Args:
            resolve_executable: Returns the ffmpeg path, or None if unavailable.
            events: Receiver for log, progress and completion events.
            grace_period: Seconds between a graceful stop and a forced kill.
        """
        self.resolve_executable = resolve_executable
        self.events = events or EventSink()
        self.grace_period = grace_period
        self._slots: dict[JobKind, Optional[ProcessHandle]] = {kind: None for kind in JobKind}
        self._lock = asyncio.Lock()

    def active(self, kind: JobKind) -> Optional[ProcessHandle]:
        return self._slots[kind]

    def _is_running(self, kind: JobKind) -> bool:
        handle = self._slots[kind]
        return handle is not None and handle.is_running

    @property
    def has_running_process(self) -> bool:
        return any(self._is_running(kind) for kind in JobKind)

    async def run(
        self,
        kind: JobKind,
        command: FFMPEGCommand | list[str],
        total_frames: Optional[int] = None,
        progress_listener: Optional[Callable[[ProgressReport], None]] = None,
    ) -> JobResult:
        """Run one job to completion, superseding conflicting jobs first.

        A job whose kind is blocked by a running job is refused without
        spawning anything; its result has ``rejected`` set.

        Errors are reported through the event sink and the returned
        :class:`JobResult`; they are never raised.
        """
        if isinstance(command, FFMPEGCommand):
            args = command.to_args()
            output_path = command.output_path
        else:
            args = list(command)
            output_path = None

        async with self._lock:
            blocker = next((k for k in kind.blocked_by if self._is_running(k)), None)
            if blocker is not None:
                error = JobRejected(kind.value, blocker.value)
                self.events.log(str(error))
                return JobResult(kind, HandleState.FAILED, error=error, output_path=output_path)

            for other in kind.supersedes:
                await self._terminate_slot(other)

            executable = self.resolve_executable()
            if not executable:
                error = ExecutableUnavailable()
                self.events.log(f"FFmpeg error: {error}")
                self.events.job_complete(False)
                return JobResult(kind, HandleState.FAILED, error=error)

            if args and args[0] == "ffmpeg":
                args = args[1:]

            handle = ProcessHandle(
                label=f"ffmpeg {kind.value}",
                total_frames=total_frames,
                on_output=self.events.output,
                on_progress=self._progress_forwarder(progress_listener),
                grace_period=self.grace_period,
            )
            self.events.log(f"FFmpeg {kind.value} started with arguments: {' '.join(args)}")
            try:
                await handle.start(executable, args)
            except SpawnError as e:
                self.events.log(str(e))
                self.events.job_complete(False)
                return JobResult(kind, HandleState.FAILED, error=e, output_path=output_path)
            self._slots[kind] = handle

        state = await handle.wait()
        if self._slots[kind] is handle:
            self._slots[kind] = None

        if state is HandleState.TERMINATED:
            self.events.log("Process terminated.")
            return JobResult(kind, state, output_path=output_path)

        error = None
        if state is HandleState.FAILED:
            error = EngineFailure(handle.return_code, parse_engine_error(handle.output_tail))
            self.events.log(str(error))
        self.events.job_complete(state is HandleState.SUCCEEDED)
        return JobResult(kind, state, error=error, output_path=output_path)

    async def run_preview(
        self,
        source: str | Path,
        config: ColorGradeConfig,
        destination: str | Path,
    ) -> JobResult:
        """Render the first frame of ``source`` with ``config`` applied."""
        command = build_preview_command(source, config, destination)
        return await self.run(JobKind.PREVIEW, command)

    async def run_export(
        self,
        job: ExportJob,
        profile: EncodingProfile,
        progress_listener: Optional[Callable[[ProgressReport], None]] = None,
    ) -> JobResult:
        """Export one job with the given encoding profile."""
        command = build_export_command(job, profile)
        return await self.run(
            JobKind.EXPORT, command,
            total_frames=job.total_frames,
            progress_listener=progress_listener,
        )

    async def abort(self) -> bool:
        """Terminate the running export, then the running preview.

        Returns:
            True if any process was terminated.
        """
        async with self._lock:
            stopped = False
            for kind in (JobKind.EXPORT, JobKind.PREVIEW):
                stopped = await self._terminate_slot(kind) or stopped
        if stopped:
            self.events.log("Process aborted by user.")
        else:
            self.events.log("No running process to abort.")
        return stopped

    async def _terminate_slot(self, kind: JobKind) -> bool:
        handle = self._slots[kind]
        if handle is None:
            return False
        self._slots[kind] = None
        if not handle.is_running:
            return False
        self.events.log(f"Terminating current {kind.value} process...")
        await handle.terminate()
        return True

    def _progress_forwarder(
        self,
        listener: Optional[Callable[[ProgressReport], None]],
    ) -> Callable[[ProgressReport], None]:
        def forward(report: ProgressReport) -> None:
            self.events.progress(report)
            if listener is not None:
                listener(report)
        return forward
