"""Sequential batch export."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Awaitable, Callable, Optional

from ..errors import ExecutableUnavailable, ProbeError
from ..events import EventSink
from ..models import ExportBatch, ExportJob, ProgressReport
from ..video.formats import EncodingProfile
from .orchestrator import JobResult, ProcessOrchestrator

logger = logging.getLogger("lutgrade")

FrameProbe = Callable[[Path], Awaitable[int]]


@dataclass
class BatchResult:
    total: int
    completed_count: int
    aborted: bool
    results: list[JobResult] = field(default_factory=list)

    @property
    def overall_progress(self) -> float:
        if not self.total:
            return 1.0
        return self.completed_count / self.total


class BatchExportPipeline:
    """Exports an :class:`ExportBatch` one job at a time.

    Each job is probed for its frame count, exported, and fully resolved
    before the next one starts. The two failure policies are independent:
    by default a failed probe halts the batch (progress math needs the
    frame count) while a failed export moves on to the next job.
    """

    def __init__(
        self,
        orchestrator: ProcessOrchestrator,
        probe: FrameProbe,
        profile: EncodingProfile,
        events: Optional[EventSink] = None,
        halt_on_probe_failure: bool = True,
        halt_on_engine_failure: bool = False,
    ):
        self.orchestrator = orchestrator
        self.probe = probe
        self.profile = profile
        self.events = events or orchestrator.events
        self.halt_on_probe_failure = halt_on_probe_failure
        self.halt_on_engine_failure = halt_on_engine_failure
        self._abort_requested = False

    async def abort(self) -> None:
        """Stop after the current job's termination resolves."""
        self._abort_requested = True
        await self.orchestrator.abort()

    async def _probe(self, job: ExportJob) -> Optional[ProbeError]:
        """Fill in the job's frame count; return the failure, if any."""
        try:
            job.total_frames = await self.probe(job.source_path)
        except ProbeError as e:
            return e
        except Exception as e:
            logger.exception("Frame count probe for %s raised", job.source_path)
            return ProbeError(str(job.source_path), str(e) or type(e).__name__)
        return None

    async def run(self, batch: ExportBatch) -> BatchResult:
        self._abort_requested = False
        batch.reset()
        results: list[JobResult] = []
        aborted = False

        self.events.log(f"Starting export process with FFmpeg for {batch.total} video(s)...")
        self.events.batch_progress(batch.overall_progress)

        def track(report: ProgressReport) -> None:
            if report.fraction is not None:
                batch.current_fraction = report.fraction
                self.events.batch_progress(batch.overall_progress)

        while batch.current_job is not None:
            if self._abort_requested:
                aborted = True
                break

            job = batch.current_job
            name = job.source_path.name
            self.events.log(f"Starting export for {name}...")

            probe_error = await self._probe(job)
            if probe_error is not None:
                self.events.log(str(probe_error))
                self.events.job_complete(False)
                if self.halt_on_probe_failure:
                    aborted = True
                    break
                batch.advance()
                self.events.batch_progress(batch.overall_progress)
                continue

            if self._abort_requested:
                aborted = True
                break

            result = await self.orchestrator.run_export(job, self.profile, progress_listener=track)
            results.append(result)

            if result.terminated or isinstance(result.error, ExecutableUnavailable):
                aborted = True
                break

            if result.success:
                self.events.log(f"Export completed successfully for {name}!")
            else:
                self.events.log(f"Export failed for {name}.")
            batch.advance()
            self.events.batch_progress(batch.overall_progress)

            if not result.success and self.halt_on_engine_failure:
                aborted = True
                break

        if aborted:
            logger.info(
                "Batch halted after %d of %d job(s)", batch.completed_count, batch.total
            )
        else:
            self.events.log("All videos have been exported.")
        self.events.batch_complete(aborted)

        return BatchResult(
            total=batch.total,
            completed_count=batch.completed_count,
            aborted=aborted,
            results=results,
        )
