"""Domain model for probed source media.

All types are immutable. A MediaDescriptor is produced once per run by the
prober and consumed read-only by every later stage.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

from vodpack.exceptions import ResolutionTooLowError

MIN_SOURCE_HEIGHT = 720


class DynamicRange(Enum):
    """Dynamic-range classification of a video stream."""

    SDR = "SDR"
    HDR10 = "HDR10"
    HDR10_PLUS = "HDR10+"
    DOLBY_VISION = "DolbyVision"

    @property
    def is_hdr(self) -> bool:
        return self is not DynamicRange.SDR


class AudioLayout(Enum):
    """Channel layout classification of an audio stream."""

    STEREO = "stereo"
    SURROUND_5_1 = "5.1"
    ATMOS = "atmos"


class SubtitleKind(Enum):
    """Disposition classification of a subtitle stream."""

    STANDARD = "standard"
    FORCED = "forced"
    SDH = "sdh"


@dataclass(frozen=True)
class VideoTrack:
    """The primary video stream of a source."""

    width: int
    height: int
    codec: str
    pixel_format: str
    frame_rate: float
    bitrate: int
    profile: str = "unknown"
    dynamic_range: DynamicRange = DynamicRange.SDR
    color_primaries: str | None = None
    color_transfer: str | None = None
    color_space: str | None = None


@dataclass(frozen=True)
class AudioTrack:
    """An audio stream.

    index is the position among audio streams only (the N in 0:a:N), not the
    absolute container stream index.
    """

    index: int
    codec: str
    channels: int = 2
    channel_layout: str = "stereo"
    sample_rate: int = 48000
    bitrate: int = 0
    language: str = "und"
    title: str | None = None
    layout: AudioLayout = AudioLayout.STEREO
    is_default: bool = False


@dataclass(frozen=True)
class SubtitleTrack:
    """A subtitle stream; index is relative among subtitle streams."""

    index: int
    codec: str
    language: str = "und"
    title: str | None = None
    kind: SubtitleKind = SubtitleKind.STANDARD
    is_default: bool = False


@dataclass(frozen=True)
class MediaDescriptor:
    """Immutable result of probing a source file."""

    path: Path
    duration: float
    size: int
    video: VideoTrack
    audio: tuple[AudioTrack, ...] = field(default_factory=tuple)
    subtitles: tuple[SubtitleTrack, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.video.height < MIN_SOURCE_HEIGHT:
            raise ResolutionTooLowError(self.video.height, MIN_SOURCE_HEIGHT)

    @property
    def total_frames(self) -> int:
        """Estimated frame count: ceil(duration * frame rate)."""
        return math.ceil(self.duration * self.video.frame_rate)
