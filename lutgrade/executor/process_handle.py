"""Lifecycle management for a single ffmpeg invocation.

A :class:`ProcessHandle` spawns the engine with stdout and stderr merged,
drains that stream incrementally in a background task, extracts progress
tokens, and terminates the process on request with a fixed grace period
before escalating to a forced kill.
"""

import asyncio
import codecs
import logging
import re
from collections import deque
from enum import Enum
from typing import Callable, Optional

from ..errors import SpawnError, TerminationTimeout
from ..models import ProgressReport

logger = logging.getLogger("lutgrade")

ANSI_PATTERN = re.compile(r"\x1b\[[0-9;]*m")
FRAME_PATTERN = re.compile(r"frame=\s*(\d+)")
TIME_PATTERN = re.compile(r"time=(\d{2}):(\d{2}):(\d{2})\.(\d{2})")

DEFAULT_GRACE_PERIOD = 3.0
READ_CHUNK_SIZE = 4096

# Longest partial token worth carrying into the next chunk
_CARRY_LIMIT = 64
_TAIL_LINES = 20


class HandleState(str, Enum):
    IDLE = "idle"
    STARTING = "starting"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    TERMINATING = "terminating"
    TERMINATED = "terminated"

    @property
    def finished(self) -> bool:
        return self in (HandleState.SUCCEEDED, HandleState.FAILED, HandleState.TERMINATED)


def strip_ansi(text: str) -> str:
    """Remove ANSI color sequences."""
    return ANSI_PATTERN.sub("", text)


class ProgressScanner:
    """Extracts ``frame=`` and ``time=`` tokens from chunked engine output.

    Chunks can split a token anywhere, so the unmatched remainder of each
    chunk is carried into the next scan. A frame count that runs up to the
    end of the buffer may still be growing and is held back until more
    output (or :meth:`flush`) arrives.
    """

    def __init__(self, total_frames: Optional[int] = None):
        self.total_frames = total_frames if total_frames and total_frames > 0 else None
        self.frames_processed: Optional[int] = None
        self.elapsed: Optional[float] = None
        self._frame_carry = ""
        self._time_carry = ""

    def feed(self, chunk: str) -> Optional[ProgressReport]:
        """Scan one chunk; return a report if it carried any progress."""
        found_frames = self._scan_frames(self._frame_carry + chunk, final=False)
        found_time = self._scan_time(self._time_carry + chunk)
        if not (found_frames or found_time):
            return None
        return self.report()

    def flush(self) -> Optional[ProgressReport]:
        """Resolve any frame count held back at end of stream."""
        found = self._scan_frames(self._frame_carry, final=True)
        self._time_carry = ""
        return self.report() if found else None

    def report(self) -> ProgressReport:
        fraction = None
        if self.frames_processed is not None and self.total_frames:
            fraction = max(0.0, min(1.0, self.frames_processed / self.total_frames))
        return ProgressReport(
            frames_processed=self.frames_processed,
            fraction=fraction,
            elapsed=self.elapsed,
        )

    def _scan_frames(self, text: str, final: bool) -> bool:
        found = False
        consumed = 0
        for match in FRAME_PATTERN.finditer(text):
            if not final and match.end() == len(text):
                break
            self.frames_processed = int(match.group(1))
            consumed = match.end()
            found = True
        self._frame_carry = "" if final else text[consumed:][-_CARRY_LIMIT:]
        return found

    def _scan_time(self, text: str) -> bool:
        found = False
        consumed = 0
        for match in TIME_PATTERN.finditer(text):
            hours, minutes, seconds, hundredths = (int(g) for g in match.groups())
            self.elapsed = hours * 3600 + minutes * 60 + seconds + hundredths / 100
            consumed = match.end()
            found = True
        self._time_carry = text[consumed:][-_CARRY_LIMIT:]
        return found


class ProcessHandle:
    """Owns exactly one external process invocation.

    ``on_complete`` fires exactly once with the success flag, whether the
    process exits on its own or is terminated (in which case it is False
    and :attr:`state` is ``TERMINATED``).
    """

    def __init__(
        self,
        label: str = "ffmpeg",
        total_frames: Optional[int] = None,
        on_output: Optional[Callable[[str], None]] = None,
        on_progress: Optional[Callable[[ProgressReport], None]] = None,
        on_complete: Optional[Callable[[bool], None]] = None,
        grace_period: float = DEFAULT_GRACE_PERIOD,
    ):
        self.label = label
        self.grace_period = grace_period
        self.state = HandleState.IDLE
        self.return_code: Optional[int] = None
        self._on_output = on_output
        self._on_progress = on_progress
        self._on_complete = on_complete
        self._scanner = ProgressScanner(total_frames)
        self._tail: deque[str] = deque(maxlen=_TAIL_LINES)
        self._process: Optional[asyncio.subprocess.Process] = None
        self._drain_task: Optional[asyncio.Task] = None
        self._watch_task: Optional[asyncio.Task] = None
        self._done: Optional[asyncio.Future] = None
        self._completed = False
        self._terminate_requested = False

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process else None

    @property
    def is_running(self) -> bool:
        return self.state in (HandleState.RUNNING, HandleState.TERMINATING)

    @property
    def output_tail(self) -> str:
        """The last lines of output, for error reporting."""
        return "\n".join(self._tail)

    async def start(self, executable: str, arguments: list[str]) -> None:
        """Launch the process and begin draining its output.

        Raises:
            SpawnError: If the OS refuses to launch the executable.
        """
        if self.state is not HandleState.IDLE:
            raise RuntimeError(f"{self.label} handle was already started")

        self._done = asyncio.get_running_loop().create_future()
        self.state = HandleState.STARTING
        try:
            self._process = await asyncio.create_subprocess_exec(
                executable,
                *arguments,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
            )
        except OSError as e:
            self.state = HandleState.FAILED
            self._resolve(notify=False)
            raise SpawnError(executable, e.strerror or str(e)) from e

        self.state = HandleState.RUNNING
        logger.debug("Started %s (pid %s)", self.label, self._process.pid)
        self._drain_task = asyncio.create_task(self._drain())
        self._watch_task = asyncio.create_task(self._watch())

        if self._terminate_requested:
            await self.terminate()

    async def wait(self) -> HandleState:
        """Wait for the handle to reach a final state."""
        if self._done is None:
            return self.state
        return await asyncio.shield(self._done)

    async def terminate(self) -> None:
        """Stop the process: graceful first, forced after the grace period.

        Idempotent and safe to call in any state. Once started, returns
        only after the handle has reached a final state.
        """
        if self.state is HandleState.STARTING:
            # start() terminates as soon as the spawn hands off
            self._terminate_requested = True
            await self.wait()
            return
        if self.state is HandleState.TERMINATING:
            await self.wait()
            return
        if self.state is not HandleState.RUNNING:
            return

        self.state = HandleState.TERMINATING
        logger.info("Terminating %s (pid %s)", self.label, self.pid)
        self._send(self._process.terminate)
        try:
            await self._await_exit(self.grace_period)
        except TerminationTimeout:
            logger.warning(
                "Force killing unresponsive %s (pid %s) after %.1fs",
                self.label, self.pid, self.grace_period,
            )
            self._send(self._process.kill)
            await self.wait()

    async def _await_exit(self, timeout: float) -> None:
        try:
            await asyncio.wait_for(asyncio.shield(self._done), timeout=timeout)
        except asyncio.TimeoutError:
            raise TerminationTimeout(f"{self.label} still alive after {timeout}s")

    def _send(self, signal_fn: Callable[[], None]) -> None:
        try:
            signal_fn()
        except ProcessLookupError:
            # Already exited; the watcher will observe it
            pass

    async def _drain(self) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        reader = self._process.stdout
        while True:
            data = await reader.read(READ_CHUNK_SIZE)
            if not data:
                break
            self._consume(decoder.decode(data))
        self._consume(decoder.decode(b"", final=True))

        report = self._scanner.flush()
        if report is not None:
            self._emit(self._on_progress, report)

    def _consume(self, text: str) -> None:
        if not text:
            return
        clean = strip_ansi(text)
        line = clean.strip()
        if line:
            self._tail.extend(line.splitlines())
            self._emit(self._on_output, line)
        report = self._scanner.feed(clean)
        if report is not None:
            self._emit(self._on_progress, report)

    async def _watch(self) -> None:
        return_code = await self._process.wait()
        try:
            await self._drain_task
        except Exception:
            logger.exception("Output reader for %s failed", self.label)
        self.return_code = return_code

        if self.state is HandleState.TERMINATING:
            self.state = HandleState.TERMINATED
            logger.info("%s terminated (exit %s)", self.label, return_code)
        elif return_code == 0:
            self.state = HandleState.SUCCEEDED
        else:
            self.state = HandleState.FAILED
        self._resolve()

    def _resolve(self, notify: bool = True) -> None:
        if self._completed:
            return
        self._completed = True
        if self._done is not None and not self._done.done():
            self._done.set_result(self.state)
        if notify:
            self._emit(self._on_complete, self.state is HandleState.SUCCEEDED)

    def _emit(self, callback, *args) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Callback for %s raised", self.label)
