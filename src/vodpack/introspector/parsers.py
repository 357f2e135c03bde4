"""Pure parsing functions for ffprobe JSON output.

These functions transform ffprobe JSON data into vodpack domain objects.
All functions are pure (no I/O, no side effects) for easy testing.
"""

import logging
import math
from pathlib import Path
from typing import Any

from vodpack.exceptions import NoVideoStreamError, ResolutionTooLowError
from vodpack.introspector.models import (
    MIN_SOURCE_HEIGHT,
    AudioLayout,
    AudioTrack,
    DynamicRange,
    MediaDescriptor,
    SubtitleKind,
    SubtitleTrack,
    VideoTrack,
)

logger = logging.getLogger(__name__)

DEFAULT_FRAME_RATE = 24.0

_DOLBY_VISION_RECORD = "DOVI configuration record"
_HDR10_PLUS_RECORD = "HDR Dynamic Metadata SMPTE2094-40 (HDR10+)"


def _parse_int(value: Any, default: int = 0) -> int:
    if value is None:
        return default
    try:
        return int(value)
    except (ValueError, TypeError):
        return default


def parse_frame_rate(value: str | None) -> float:
    """Parse an ffprobe rational frame rate ("24000/1001") into a float.

    A missing denominator counts as 1. Missing, zero-denominator or
    otherwise non-finite rates fall back to 24.
    """
    num_str, _, den_str = (value or "24/1").partition("/")
    try:
        num = float(num_str)
        den = float(den_str) if den_str else 1.0
        rate = num / den
    except (ValueError, ZeroDivisionError):
        return DEFAULT_FRAME_RATE
    if not math.isfinite(rate) or rate <= 0:
        return DEFAULT_FRAME_RATE
    return rate


def classify_dynamic_range(stream: dict[str, Any]) -> DynamicRange:
    """Classify the dynamic range of a video stream.

    Dynamic-metadata formats are checked before the static HDR10 condition,
    since Dolby Vision and HDR10+ sources usually carry BT.2020/PQ as well.
    """
    side_data_types = [
        sd.get("side_data_type") or "" for sd in stream.get("side_data_list") or []
    ]

    if any(
        t == _DOLBY_VISION_RECORD or "Dolby Vision" in t for t in side_data_types
    ):
        return DynamicRange.DOLBY_VISION

    if any(t == _HDR10_PLUS_RECORD or "SMPTE2094-40" in t for t in side_data_types):
        return DynamicRange.HDR10_PLUS

    if (
        stream.get("color_primaries") == "bt2020"
        and stream.get("color_transfer") == "smpte2084"
    ):
        return DynamicRange.HDR10

    return DynamicRange.SDR


def classify_audio_layout(channel_layout: str | None, channels: int) -> AudioLayout:
    """Classify an audio stream as stereo, 5.1 or atmos."""
    layout = channel_layout or ""
    if "atmos" in layout or "7.1" in layout or channels > 6:
        return AudioLayout.ATMOS
    if "5.1" in layout or "6.0" in layout or channels == 6:
        return AudioLayout.SURROUND_5_1
    return AudioLayout.STEREO


def classify_subtitle(disposition: dict[str, Any] | None) -> SubtitleKind:
    """Classify a subtitle stream from its disposition flags.

    Forced wins over hearing-impaired.
    """
    disposition = disposition or {}
    if disposition.get("forced") == 1:
        return SubtitleKind.FORCED
    if disposition.get("hearing_impaired") == 1:
        return SubtitleKind.SDH
    return SubtitleKind.STANDARD


def parse_video_stream(stream: dict[str, Any]) -> VideoTrack:
    """Parse an ffprobe video stream."""
    return VideoTrack(
        width=_parse_int(stream.get("width")),
        height=_parse_int(stream.get("height")),
        codec=stream.get("codec_name") or "unknown",
        pixel_format=stream.get("pix_fmt") or "unknown",
        frame_rate=parse_frame_rate(stream.get("avg_frame_rate")),
        bitrate=_parse_int(stream.get("bit_rate")),
        profile=stream.get("profile") or "unknown",
        dynamic_range=classify_dynamic_range(stream),
        color_primaries=stream.get("color_primaries"),
        color_transfer=stream.get("color_transfer"),
        color_space=stream.get("color_space"),
    )


def parse_audio_stream(stream: dict[str, Any], index: int) -> AudioTrack:
    """Parse an ffprobe audio stream.

    Args:
        stream: Stream dictionary from ffprobe.
        index: Position of this stream among audio streams.
    """
    tags = stream.get("tags") or {}
    disposition = stream.get("disposition") or {}
    channels = _parse_int(stream.get("channels"), 2) or 2
    channel_layout = stream.get("channel_layout")
    return AudioTrack(
        index=index,
        codec=stream.get("codec_name") or "unknown",
        channels=channels,
        channel_layout=channel_layout or "stereo",
        sample_rate=_parse_int(stream.get("sample_rate"), 48000),
        bitrate=_parse_int(stream.get("bit_rate")),
        language=tags.get("language") or "und",
        title=tags.get("title"),
        layout=classify_audio_layout(channel_layout, channels),
        is_default=disposition.get("default") == 1,
    )


def parse_subtitle_stream(stream: dict[str, Any], index: int) -> SubtitleTrack:
    """Parse an ffprobe subtitle stream; index is relative among subtitles."""
    tags = stream.get("tags") or {}
    disposition = stream.get("disposition") or {}
    return SubtitleTrack(
        index=index,
        codec=stream.get("codec_name") or "unknown",
        language=tags.get("language") or "und",
        title=tags.get("title"),
        kind=classify_subtitle(disposition),
        is_default=disposition.get("default") == 1,
    )


def parse_ffprobe_output(path: Path, data: dict[str, Any]) -> MediaDescriptor:
    """Build a MediaDescriptor from parsed ffprobe JSON.

    Args:
        path: Source file path.
        data: ffprobe output with "streams" and "format" keys.

    Returns:
        MediaDescriptor for the source.

    Raises:
        NoVideoStreamError: If no video stream is present.
        ResolutionTooLowError: If the video height is missing or below 720.
    """
    streams = data.get("streams") or []
    fmt = data.get("format") or {}

    video_stream = next((s for s in streams if s.get("codec_type") == "video"), None)
    if video_stream is None:
        raise NoVideoStreamError(path)

    height = _parse_int(video_stream.get("height"))
    if height < MIN_SOURCE_HEIGHT:
        raise ResolutionTooLowError(height, MIN_SOURCE_HEIGHT)

    audio = tuple(
        parse_audio_stream(s, idx)
        for idx, s in enumerate(s for s in streams if s.get("codec_type") == "audio")
    )
    subtitles = tuple(
        parse_subtitle_stream(s, idx)
        for idx, s in enumerate(
            s for s in streams if s.get("codec_type") == "subtitle"
        )
    )

    try:
        duration = float(fmt.get("duration") or 0)
    except (ValueError, TypeError):
        logger.warning("Invalid duration %r in %s", fmt.get("duration"), path)
        duration = 0.0

    return MediaDescriptor(
        path=path,
        duration=duration,
        size=_parse_int(fmt.get("size")),
        video=parse_video_stream(video_stream),
        audio=audio,
        subtitles=subtitles,
    )
