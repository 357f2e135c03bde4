"""Introspector module for vodpack.

- FFprobeIntrospector / probe: ffprobe-backed media prober
- parse_ffprobe_output: pure classification of ffprobe JSON
- format_human / format_json: presentation of probe results
"""

from vodpack.introspector.ffprobe import FFprobeIntrospector, probe
from vodpack.introspector.formatters import (
    format_duration,
    format_file_size,
    format_human,
    format_json,
)
from vodpack.introspector.models import (
    AudioLayout,
    AudioTrack,
    DynamicRange,
    MediaDescriptor,
    SubtitleKind,
    SubtitleTrack,
    VideoTrack,
)
from vodpack.introspector.parsers import parse_ffprobe_output

__all__ = [
    "AudioLayout",
    "AudioTrack",
    "DynamicRange",
    "FFprobeIntrospector",
    "MediaDescriptor",
    "SubtitleKind",
    "SubtitleTrack",
    "VideoTrack",
    "format_duration",
    "format_file_size",
    "format_human",
    "format_json",
    "parse_ffprobe_output",
    "probe",
]
