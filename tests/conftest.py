"""Pytest configuration for lutgrade tests.

Puts the project root on sys.path so ``lutgrade`` imports without an
editable install, and provides helpers for spawning stand-in engine
processes.
"""

import sys
import os

import pytest

project_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
if project_root not in sys.path:
    sys.path.insert(0, project_root)

from lutgrade.events import EventSink  # noqa: E402


class RecordingSink(EventSink):
    """EventSink that keeps every event for assertions."""

    def __init__(self):
        self.logs: list[str] = []
        self.reports = []
        self.completions: list[bool] = []
        self.batch_fractions: list[float] = []
        self.batch_completions: list[bool] = []
        super().__init__(
            on_log=self.logs.append,
            on_progress=self.reports.append,
            on_job_complete=self.completions.append,
            on_batch_progress=self.batch_fractions.append,
            on_batch_complete=self.batch_completions.append,
        )


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def python_engine():
    """Path used in place of ffmpeg: a Python interpreter run with ``-c``."""
    return sys.executable
