"""Error taxonomy for engine invocations."""

import re
from typing import Optional


class LutGradeError(Exception):
    """Base class for all lutgrade errors."""


class ExecutableUnavailable(LutGradeError):
    """The ffmpeg executable could not be resolved.

    Fatal for the attempted operation; callers should not retry.
    """

    def __init__(self, message: str = "FFmpeg binary not found. Install FFmpeg or set LUTGRADE_FFMPEG."):
        super().__init__(message)


class SpawnError(LutGradeError):
    """The OS refused to launch the engine process."""

    def __init__(self, executable: str, reason: str):
        self.executable = executable
        self.reason = reason
        super().__init__(f"Failed to start {executable}: {reason}")


class JobRejected(LutGradeError):
    """A job was refused because a conflicting job is running."""

    def __init__(self, kind: str, blocker: str):
        self.kind = kind
        self.blocker = blocker
        super().__init__(f"Cannot start {kind} while an {blocker} is running.")


class ProbeError(LutGradeError):
    """Frame count of a source could not be determined."""

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to load video metadata for {path}: {reason}")


class EngineFailure(LutGradeError):
    """The engine exited with a nonzero status."""

    def __init__(self, return_code: int, message: str):
        self.return_code = return_code
        self.message = message
        super().__init__(f"FFmpeg exited with code {return_code}: {message}")


class TerminationTimeout(LutGradeError):
    """A process outlived its grace period. Always resolved by a forced kill."""


_ERROR_PATTERNS = [
    re.compile(p, re.IGNORECASE)
    for p in (
        r"Error.*",
        r"Invalid.*",
        r"No such file.*",
        r".*not found.*",
        r"Permission denied.*",
        r"Discarding.*",
    )
]


def parse_engine_error(output: Optional[str]) -> str:
    """Extract a meaningful error line from ffmpeg's combined output."""
    if not output:
        return "Unknown error"
    lines = output.strip().split("\n")

    for line in reversed(lines):
        for pattern in _ERROR_PATTERNS:
            if pattern.search(line):
                return line.strip()

    # Fall back to the last non-empty line
    for line in reversed(lines):
        if line.strip():
            return line.strip()

    return "Unknown error"
