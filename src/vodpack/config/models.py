"""Configuration data models for vodpack."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

VALID_MODES = frozenset({"dev", "prod"})
LOG_LEVELS = frozenset({"debug", "info", "warning", "error"})
LOG_FORMATS = frozenset({"text", "json"})


@dataclass
class ToolPathsConfig:
    """Configuration for external tool paths.

    All paths are optional. If not specified, tools are looked up in PATH.
    """

    ffmpeg: Path | None = None
    ffprobe: Path | None = None
    packager: Path | None = None


@dataclass
class TranscodeConfig:
    """Configuration for transcode runs."""

    # Encoding mode: dev (fast, idempotent) or prod (quality)
    mode: str = "prod"

    # Per-pass encoder timeout in seconds (None = no limit)
    timeout: float | None = None

    # Keep tmp/ after a successful run even in prod mode
    keep_intermediates: bool = False

    def __post_init__(self) -> None:
        """Validate configuration."""
        if self.mode.lower() not in VALID_MODES:
            raise ValueError(f"mode must be one of {set(VALID_MODES)}, got {self.mode}")
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")


@dataclass
class LoggingConfig:
    """Where log records go and how they are rendered.

    With no ``file`` everything goes to stderr. ``max_bytes`` and
    ``backup_count`` drive the RotatingFileHandler.
    """

    level: str = "info"
    file: Path | None = None
    format: str = "text"
    include_stderr: bool = False
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    def __post_init__(self) -> None:
        if self.level.lower() not in LOG_LEVELS:
            raise ValueError(
                f"logging level {self.level!r} is not one of {sorted(LOG_LEVELS)}"
            )
        if self.format.lower() not in LOG_FORMATS:
            raise ValueError(
                f"logging format {self.format!r} is not one of {sorted(LOG_FORMATS)}"
            )


@dataclass
class VodpackConfig:
    """Main configuration container."""

    tools: ToolPathsConfig = field(default_factory=ToolPathsConfig)
    transcode: TranscodeConfig = field(default_factory=TranscodeConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def get_tool_path(self, tool_name: str) -> Path | None:
        """Get the configured path for a tool.

        Args:
            tool_name: Name of the tool (ffmpeg, ffprobe, packager).

        Returns:
            Configured path or None if not set.
        """
        return getattr(self.tools, tool_name, None)
