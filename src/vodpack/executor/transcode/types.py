"""Types for video transcode jobs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

from vodpack.executor.transcode.settings import EncodeSettings
from vodpack.introspector.models import MediaDescriptor
from vodpack.renditions import Codec, Rendition
from vodpack.tools.ffmpeg_progress import TranscodeProgress
from vodpack.tools.hardware import HardwareBackend

logger = logging.getLogger(__name__)

__all__ = [
    "EncodePlan",
    "JobState",
    "TranscodeCallbacks",
    "TranscodeJob",
    "TranscodeProgress",
    "TranscodeResult",
    "TwoPassContext",
]


class JobState(Enum):
    """Lifecycle of a transcode job."""

    PENDING = "pending"
    PASS1_RUNNING = "pass1_running"
    PASS2_RUNNING = "pass2_running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(frozen=True)
class EncodePlan:
    """Everything needed to invoke the encoder for one (rendition, codec).

    Attributes:
        filter_chain: Value of the -vf argument.
        tonemap: Whether HDR is tone-mapped to SDR.
        hwaccel_input: Whether decoding uses hardware acceleration.
        input_args: Arguments placed before -i (hwaccel or device setup).
        pass_args: Codec arguments for each pass, in order. Two entries
            means a two-pass encode whose first pass writes to a null sink.
    """

    filter_chain: str
    tonemap: bool
    hwaccel_input: bool
    input_args: tuple[str, ...]
    pass_args: tuple[tuple[str, ...], ...]

    @property
    def passes(self) -> int:
        return len(self.pass_args)

    @property
    def is_two_pass(self) -> bool:
        return self.passes == 2


@dataclass(frozen=True)
class TranscodeJob:
    """One (rendition, codec) encode of the source."""

    rendition: Rendition
    codec: Codec
    input_path: Path
    output_dir: Path
    backend: HardwareBackend
    settings: EncodeSettings
    media: MediaDescriptor
    skip_if_exists: bool = False

    @property
    def output_path(self) -> Path:
        quality, codec = self.rendition.quality, self.codec
        return self.output_dir / f"video_{quality}_{codec.value}.{codec.container}"

    @property
    def passlog_path(self) -> Path:
        """Rate-control statistics prefix, shared by both passes."""
        return self.output_dir / f"ffmpeg2pass_{self.rendition.quality}"

    @property
    def total_frames(self) -> int:
        return self.media.total_frames

    @property
    def name(self) -> str:
        return f"{self.rendition.quality}/{self.codec.value}"


@dataclass
class TwoPassContext:
    """Pass-log files shared by the two passes of one encode.

    Attributes:
        passlogfile: Path prefix for ffmpeg pass log files.
    """

    passlogfile: Path

    # Files libvpx and the ffmpeg CLI leave behind for a pass-log prefix
    LOG_SUFFIXES = ("-0.log", "-0.log.mbtree", ".log", ".log.cutree")

    def cleanup(self) -> None:
        """Remove pass log files created during encoding."""
        for suffix in self.LOG_SUFFIXES:
            log_path = Path(str(self.passlogfile) + suffix)
            if log_path.exists():
                try:
                    log_path.unlink()
                except OSError as e:
                    logger.warning("Could not remove pass log %s: %s", log_path, e)


@dataclass(frozen=True)
class TranscodeResult:
    """Outcome of a successful transcode job."""

    job: TranscodeJob
    output_path: Path
    skipped: bool = False
    elapsed_seconds: float = 0.0


@dataclass
class TranscodeCallbacks:
    """Optional observers of a running job.

    Exceptions raised by a callback are logged and never abort the encode.
    """

    on_state: Callable[[TranscodeJob, JobState], None] | None = None
    on_progress: Callable[[TranscodeJob, TranscodeProgress], None] | None = None
    on_pass_complete: Callable[[TranscodeJob, int], None] | None = None
