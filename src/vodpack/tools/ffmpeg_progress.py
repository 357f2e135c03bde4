"""FFmpeg progress parsing utilities.

FFmpeg writes periodic status lines to stderr, for example:

    frame= 1234 fps= 30 q=28.0 size= 1024kB time=00:00:41.13 bitrate=... speed=1.2x

ProgressTracker accumulates that stream in a bounded window and turns the
latest tokens into a TranscodeProgress snapshot for one encoder pass.
"""

from __future__ import annotations

import re
from dataclasses import dataclass


@dataclass(frozen=True)
class TranscodeProgress:
    """Snapshot of an encoder pass."""

    pass_number: int
    frame: int
    total_frames: int
    fps: float
    speed: float
    percent: float
    eta_seconds: float


# Regex patterns for FFmpeg stderr status tokens
PROGRESS_PATTERNS = {
    "frame": re.compile(r"frame=\s*(\d+)"),
    "fps": re.compile(r"fps=\s*([\d.]+)"),
    "speed": re.compile(r"speed=\s*([\d.]+)x"),
}


def _convert(key: str, value: str) -> int | float | None:
    try:
        return int(value) if key == "frame" else float(value)
    except ValueError:
        return None


def compute_progress(
    pass_number: int,
    frame: int,
    total_frames: int,
    fps: float,
    speed: float = 1.0,
) -> TranscodeProgress:
    """Build a snapshot: percent is clamped to 100, ETA is 0 without a rate."""
    if total_frames > 0:
        percent = min(frame / total_frames * 100, 100.0)
    else:
        percent = 0.0
    eta = (total_frames - frame) / fps if fps > 0 else 0.0
    return TranscodeProgress(
        pass_number=pass_number,
        frame=frame,
        total_frames=total_frames,
        fps=fps,
        speed=speed,
        percent=percent,
        eta_seconds=max(eta, 0.0),
    )


class ProgressTracker:
    """Tracks progress of one encoder pass from its stderr stream.

    The stderr text is kept in a window: once it grows past MAX_BUFFER
    characters only the last KEEP_BUFFER characters are retained. Frame
    count and percent never go backwards within a pass.
    """

    MAX_BUFFER = 10_000
    KEEP_BUFFER = 1_000

    def __init__(self, total_frames: int, pass_number: int = 1) -> None:
        self.total_frames = total_frames
        self.pass_number = pass_number
        self._buffer = ""
        self._last: TranscodeProgress | None = None

    @property
    def buffer(self) -> str:
        return self._buffer

    @property
    def last(self) -> TranscodeProgress | None:
        return self._last

    def feed(self, text: str) -> TranscodeProgress | None:
        """Consume a chunk of stderr.

        Returns:
            A new snapshot when the chunk advanced the frame counter,
            otherwise None.
        """
        self._buffer += text
        if len(self._buffer) > self.MAX_BUFFER:
            self._buffer = self._buffer[-self.KEEP_BUFFER :]

        frames = PROGRESS_PATTERNS["frame"].findall(self._buffer)
        if not frames:
            return None

        frame = int(frames[-1])
        fps_values = PROGRESS_PATTERNS["fps"].findall(self._buffer)
        speed_values = PROGRESS_PATTERNS["speed"].findall(self._buffer)
        fps = _convert("fps", fps_values[-1]) if fps_values else None
        speed = _convert("speed", speed_values[-1]) if speed_values else None

        if self._last is not None:
            if frame <= self._last.frame:
                return None

        snapshot = compute_progress(
            self.pass_number,
            frame,
            self.total_frames,
            float(fps or 0.0),
            float(speed) if speed is not None else 1.0,
        )
        self._last = snapshot
        return snapshot
