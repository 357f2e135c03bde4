"""Per-run diagnostic log handle.

A RunLog is passed explicitly through the pipeline stages so that a run can
write a human-readable diagnostic file next to its output without any
process-wide logger state. NullRunLog is the default and does nothing.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Sequence
from datetime import datetime, timezone
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class RunLog(Protocol):
    """Observability handle threaded through a pipeline run."""

    def info(self, message: str) -> None: ...

    def warn(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def debug(self, message: str) -> None: ...

    def command(self, program: str, args: Sequence[str]) -> None: ...

    def output(self, text: str) -> None: ...

    def section(self, title: str) -> None: ...

    def close(self) -> None: ...


class NullRunLog:
    """RunLog that discards everything."""

    def info(self, message: str) -> None:
        pass

    def warn(self, message: str) -> None:
        pass

    def error(self, message: str) -> None:
        pass

    def debug(self, message: str) -> None:
        pass

    def command(self, program: str, args: Sequence[str]) -> None:
        pass

    def output(self, text: str) -> None:
        pass

    def section(self, title: str) -> None:
        pass

    def close(self) -> None:
        pass


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class FileRunLog:
    """RunLog that appends timestamped lines to a file in the output directory.

    The file is named transcode_<timestamp>.log. Write failures are reported
    once through the module logger and then ignored for the rest of the run.
    """

    RULE = "=" * 50

    def __init__(self, output_dir: Path, mode: str = "dev") -> None:
        stamp = _utc_now().isoformat().replace(":", "-").replace(".", "-")
        self.path = output_dir / f"transcode_{stamp}.log"
        self._lock = threading.Lock()
        self._write_failed = False
        self._closed = False

        self._write("=== VOD Transcoder Log ===")
        self._write(f"Started: {_utc_now().isoformat()}")
        self._write(f"Output Directory: {output_dir}")
        self._write(f"Mode: {mode.upper()}")
        self._write(f"{self.RULE}\n")

    def _write(self, message: str) -> None:
        line = f"[{_utc_now().isoformat()}] {message}\n"
        with self._lock:
            if self._write_failed:
                return
            try:
                with self.path.open("a", encoding="utf-8") as f:
                    f.write(line)
            except OSError as e:
                self._write_failed = True
                logger.warning("Run log %s is not writable: %s", self.path, e)

    def info(self, message: str) -> None:
        self._write(f"[INFO] {message}")

    def warn(self, message: str) -> None:
        self._write(f"[WARN] {message}")

    def error(self, message: str) -> None:
        self._write(f"[ERROR] {message}")

    def debug(self, message: str) -> None:
        self._write(f"[DEBUG] {message}")

    def command(self, program: str, args: Sequence[str]) -> None:
        self._write(f"[CMD] {program} {' '.join(args)}")

    def output(self, text: str) -> None:
        if text.strip():
            self._write(f"[OUTPUT]\n{text}")

    def section(self, title: str) -> None:
        self._write(f"\n--- {title} ---")

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._write(f"\n{self.RULE}")
        self._write(f"Finished: {_utc_now().isoformat()}")
        self._write("=== End of Log ===")
