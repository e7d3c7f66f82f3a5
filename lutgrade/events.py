"""Caller-facing event surface.

The orchestrator and batch pipeline report everything through an
:class:`EventSink`. Callbacks are optional; a callback that raises is
logged and otherwise ignored so a broken listener cannot stall a job.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, Optional

from .models import ProgressReport

logger = logging.getLogger("lutgrade")


def format_log_message(message: str, when: Optional[datetime] = None) -> str:
    """Render ``[HH:MM:SS] message`` with a trailing newline for consoles."""
    stamp = (when or datetime.now()).strftime("%H:%M:%S")
    return f"[{stamp}] {message}\n"


@dataclass
class EventSink:
    on_log: Optional[Callable[[str], None]] = None
    on_progress: Optional[Callable[[ProgressReport], None]] = None
    on_job_complete: Optional[Callable[[bool], None]] = None
    on_batch_progress: Optional[Callable[[float], None]] = None
    on_batch_complete: Optional[Callable[[bool], None]] = None

    def _dispatch(self, name: str, callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Event listener %s raised", name)

    def log(self, message: str) -> None:
        logger.info("%s", message)
        self._dispatch("on_log", self.on_log, message)

    def output(self, line: str) -> None:
        """Forward a line of engine output."""
        logger.debug("%s", line)
        self._dispatch("on_log", self.on_log, line)

    def progress(self, report: ProgressReport) -> None:
        self._dispatch("on_progress", self.on_progress, report)

    def job_complete(self, success: bool) -> None:
        self._dispatch("on_job_complete", self.on_job_complete, success)

    def batch_progress(self, fraction: float) -> None:
        self._dispatch("on_batch_progress", self.on_batch_progress, fraction)

    def batch_complete(self, aborted: bool) -> None:
        self._dispatch("on_batch_complete", self.on_batch_complete, aborted)
