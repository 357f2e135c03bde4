"""Data models for external tool detection."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path

TOOL_NAMES = ("ffmpeg", "ffprobe", "packager")


class ToolStatus(Enum):
    """Status of an external tool."""

    AVAILABLE = "available"  # Tool found and version detected
    MISSING = "missing"  # Tool not found in PATH or configured location
    ERROR = "error"  # Tool found but version check failed


@dataclass
class ToolInfo:
    """Detection result for one external tool."""

    name: str
    path: Path | None = None
    version: str | None = None
    version_tuple: tuple[int, ...] | None = None
    status: ToolStatus = ToolStatus.MISSING
    status_message: str | None = None
    detected_at: datetime | None = None

    def is_available(self) -> bool:
        """Return True if the tool is available and usable."""
        return self.status == ToolStatus.AVAILABLE


@dataclass(frozen=True)
class ToolDetectionConfig:
    """How to detect a specific tool."""

    name: str  # Tool name (e.g., "ffmpeg")
    version_flag: str  # "-version" or "--version"
    version_pattern: str  # Regex with one group capturing the version
    install_hint: str = ""


@dataclass
class ToolRegistry:
    """Detected state of every external tool vodpack drives."""

    tools: dict[str, ToolInfo] = field(default_factory=dict)
    detected_at: datetime | None = None

    def get_tool(self, name: str) -> ToolInfo | None:
        return self.tools.get(name)

    def is_available(self, name: str) -> bool:
        tool = self.tools.get(name)
        return tool is not None and tool.is_available()

    def get_missing_tools(self) -> list[str]:
        return [name for name in TOOL_NAMES if not self.is_available(name)]
