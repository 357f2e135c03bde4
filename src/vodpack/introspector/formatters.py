"""Formatters for probe results.

Shared by the CLI probe command and the pipeline's run log.
"""

import json
from typing import Any

from vodpack.introspector.models import MediaDescriptor

_SIZE_UNITS = ("B", "KB", "MB", "GB", "TB")


def format_duration(seconds: float) -> str:
    """Format a duration as H:MM:SS, or M:SS when under an hour."""
    total = max(0, int(seconds))
    hours, remainder = divmod(total, 3600)
    minutes, secs = divmod(remainder, 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def format_file_size(size: float) -> str:
    """Format a byte count with two decimals in the largest fitting unit."""
    unit_index = 0
    while size >= 1024 and unit_index < len(_SIZE_UNITS) - 1:
        size /= 1024
        unit_index += 1
    return f"{size:.2f} {_SIZE_UNITS[unit_index]}"


def format_human(media: MediaDescriptor) -> str:
    """Format a MediaDescriptor for terminal output."""
    video = media.video
    lines = [
        f"File: {media.path.name}",
        f"Duration: {format_duration(media.duration)}",
        f"Size: {format_file_size(media.size)}",
        "",
        "Video:",
        f"  {video.width}x{video.height} {video.codec} ({video.profile}) "
        f"{video.frame_rate:.3f} fps",
        f"  Pixel format: {video.pixel_format}",
        f"  Dynamic range: {video.dynamic_range.value}",
    ]

    lines.append("")
    lines.append(f"Audio ({len(media.audio)}):")
    for track in media.audio:
        title = f' "{track.title}"' if track.title else ""
        default = " (default)" if track.is_default else ""
        lines.append(
            f"  #{track.index} {track.language} {track.codec} "
            f"{track.layout.value} {track.channels}ch{title}{default}"
        )
    if not media.audio:
        lines.append("  (none)")

    lines.append("")
    lines.append(f"Subtitles ({len(media.subtitles)}):")
    for sub in media.subtitles:
        title = f' "{sub.title}"' if sub.title else ""
        lines.append(
            f"  #{sub.index} {sub.language} {sub.codec} {sub.kind.value}{title}"
        )
    if not media.subtitles:
        lines.append("  (none)")

    return "\n".join(lines)


def media_to_dict(media: MediaDescriptor) -> dict[str, Any]:
    """Convert a MediaDescriptor into JSON-serializable data."""
    video = media.video
    return {
        "path": str(media.path),
        "duration": media.duration,
        "size": media.size,
        "video": {
            "width": video.width,
            "height": video.height,
            "codec": video.codec,
            "profile": video.profile,
            "pixel_format": video.pixel_format,
            "frame_rate": video.frame_rate,
            "bitrate": video.bitrate,
            "dynamic_range": video.dynamic_range.value,
            "color_primaries": video.color_primaries,
            "color_transfer": video.color_transfer,
            "color_space": video.color_space,
        },
        "audio": [
            {
                "index": t.index,
                "codec": t.codec,
                "channels": t.channels,
                "layout": t.layout.value,
                "sample_rate": t.sample_rate,
                "language": t.language,
                "title": t.title,
                "default": t.is_default,
            }
            for t in media.audio
        ],
        "subtitles": [
            {
                "index": s.index,
                "codec": s.codec,
                "language": s.language,
                "title": s.title,
                "kind": s.kind.value,
                "default": s.is_default,
            }
            for s in media.subtitles
        ],
    }


def format_json(media: MediaDescriptor) -> str:
    """Format a MediaDescriptor as indented JSON."""
    return json.dumps(media_to_dict(media), indent=2)
