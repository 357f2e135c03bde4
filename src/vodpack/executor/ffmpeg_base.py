"""Supervised execution of ffmpeg and the packager.

Both tools write their diagnostics to stderr. A reader thread moves those
lines onto a queue so the supervising loop can enforce the timeout while
the child never stalls on a full pipe.
"""

import logging
import queue
import subprocess  # nosec B404 - runs ffmpeg and the packager
import threading
import time
from abc import ABC
from collections import deque
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import IO

from vodpack.executor.interface import require_tool
from vodpack.logging.runlog import NullRunLog, RunLog

logger = logging.getLogger(__name__)

_EOF = None


class _StderrPump:
    """Reads a text stream on a daemon thread and hands lines to a queue."""

    def __init__(self, stream: IO[str]) -> None:
        self._stream = stream
        self._lines: queue.Queue[str | None] = queue.Queue()
        self._stopped = threading.Event()
        self._thread = threading.Thread(target=self._pump, daemon=True)
        self._thread.start()

    def _pump(self) -> None:
        try:
            for line in self._stream:
                if self._stopped.is_set():
                    return
                self._lines.put(line)
        except (ValueError, OSError) as e:
            # stream closed under us after a kill
            logger.debug("stderr pump stopped: %s", e)
        finally:
            self._lines.put(_EOF)

    @property
    def alive(self) -> bool:
        return self._thread.is_alive()

    def get(self, wait: float) -> str | None:
        """Next line, ``None`` at end of stream. Raises queue.Empty on idle."""
        return self._lines.get(timeout=wait)

    def drain(self, wait: float) -> Iterator[str]:
        """Yield whatever is still buffered once the process has exited."""
        self._thread.join(timeout=wait)
        while True:
            try:
                line = self._lines.get_nowait()
            except queue.Empty:
                return
            if line is _EOF:
                return
            yield line

    def abandon(self) -> None:
        self._stopped.set()
        try:
            self._stream.close()
        except OSError as e:
            logger.debug("closing stderr after kill: %s", e)
        self._thread.join(timeout=2.0)
        if self._thread.is_alive():
            logger.error("stderr reader did not exit after kill; leaving it behind")


STDERR_DRAIN_TIMEOUT: float = 5.0
STDERR_TAIL_LINES: int = 200
POLL_INTERVAL: float = 1.0


def run_supervised(
    cmd: list[str],
    description: str,
    *,
    timeout: float | None = None,
    line_callback: Callable[[str], None] | None = None,
    cwd: Path | None = None,
) -> tuple[bool, int, str]:
    """Run ``cmd`` to completion or until ``timeout`` seconds pass.

    ``line_callback`` sees every stderr line as it arrives; exceptions it
    raises are logged and do not interrupt the process. stdout is
    discarded.

    Returns:
        ``(success, return_code, stderr_tail)``. ``return_code`` is -1
        when the process timed out or never started.
    """
    logger.debug("Starting %s: %s", description, " ".join(cmd))
    try:
        process = subprocess.Popen(  # nosec B603 - argv built internally
            cmd,
            cwd=cwd,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.PIPE,
            text=True,
            errors="replace",
        )
    except OSError as e:
        logger.error("Could not start %s: %s", description, e)
        return False, -1, str(e)

    tail: deque[str] = deque(maxlen=STDERR_TAIL_LINES)

    def consume(line: str) -> None:
        tail.append(line)
        if line_callback is None:
            return
        try:
            line_callback(line)
        except Exception as e:
            logger.warning("stderr callback for %s raised: %s", description, e)

    assert process.stderr is not None
    pump = _StderrPump(process.stderr)
    deadline = time.monotonic() + timeout if timeout is not None else None

    while deadline is None or time.monotonic() < deadline:
        try:
            line = pump.get(POLL_INTERVAL)
        except queue.Empty:
            if process.poll() is not None and not pump.alive:
                break
            continue
        if line is _EOF:
            break
        consume(line)
    else:
        logger.warning("%s timed out after %s seconds", description, timeout)
        process.kill()
        pump.abandon()
        process.wait()
        tail.append(f"Timed out after {timeout} seconds\n")
        return False, -1, "".join(tail)

    for line in pump.drain(STDERR_DRAIN_TIMEOUT):
        consume(line)
    process.wait()
    return process.returncode == 0, process.returncode, "".join(tail)


class FFmpegExecutorBase(ABC):
    """Common base of the transcode and extract executors.

    Holds the ffmpeg path (resolved on first use), the per-invocation
    timeout and the run log every command line is recorded to.
    """

    def __init__(
        self,
        ffmpeg_path: Path | None = None,
        timeout: float | None = None,
        run_log: RunLog | None = None,
    ) -> None:
        self._tool_path = ffmpeg_path
        self._timeout = timeout
        self.run_log: RunLog = run_log or NullRunLog()

    @property
    def tool_path(self) -> Path:
        """ffmpeg executable.

        Raises:
            ToolUnavailableError: ffmpeg is not installed or not configured.
        """
        if self._tool_path is None:
            self._tool_path = require_tool("ffmpeg")
        return self._tool_path

    def _run_ffmpeg_with_timeout(
        self,
        cmd: list[str],
        description: str,
        line_callback: Callable[[str], None] | None = None,
    ) -> tuple[bool, int, str]:
        """Record ``cmd`` in the run log and run it under this executor's timeout."""
        self.run_log.command(cmd[0], cmd[1:])
        return run_supervised(
            cmd, description, timeout=self._timeout, line_callback=line_callback
        )

    @staticmethod
    def _discard_partial(path: Path) -> None:
        """Remove what a failed ffmpeg run left at ``path``."""
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("Could not remove partial output %s: %s", path, e)
        else:
            logger.debug("Removed partial output %s", path)
