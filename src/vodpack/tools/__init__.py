"""External tool detection and output parsing for vodpack."""

from vodpack.tools.detection import (
    detect_all_tools,
    detect_tool,
    list_encoders,
    list_hwaccels,
    parse_version_string,
)
from vodpack.tools.ffmpeg_progress import ProgressTracker, TranscodeProgress
from vodpack.tools.models import ToolInfo, ToolRegistry, ToolStatus

__all__ = [
    "ProgressTracker",
    "ToolInfo",
    "ToolRegistry",
    "ToolStatus",
    "TranscodeProgress",
    "detect_all_tools",
    "detect_tool",
    "list_encoders",
    "list_hwaccels",
    "parse_version_string",
]
