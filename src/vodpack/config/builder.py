"""Layered configuration: file, then environment, then CLI flags."""

from __future__ import annotations

from dataclasses import dataclass, fields
from pathlib import Path
from typing import Any

from vodpack.config.env import EnvReader
from vodpack.config.models import (
    LoggingConfig,
    ToolPathsConfig,
    TranscodeConfig,
    VodpackConfig,
)


@dataclass
class ConfigSource:
    """Settings read from one layer. None means the layer is silent."""

    ffmpeg_path: Path | None = None
    ffprobe_path: Path | None = None
    packager_path: Path | None = None

    mode: str | None = None
    timeout: float | None = None
    keep_intermediates: bool | None = None

    logging_level: str | None = None
    logging_file: Path | None = None
    logging_format: str | None = None
    logging_include_stderr: bool | None = None
    logging_max_bytes: int | None = None
    logging_backup_count: int | None = None


# ConfigSource field -> (section, attribute on that section's dataclass)
_FIELD_TARGETS: dict[str, tuple[str, str]] = {
    "ffmpeg_path": ("tools", "ffmpeg"),
    "ffprobe_path": ("tools", "ffprobe"),
    "packager_path": ("tools", "packager"),
    "mode": ("transcode", "mode"),
    "timeout": ("transcode", "timeout"),
    "keep_intermediates": ("transcode", "keep_intermediates"),
    "logging_level": ("logging", "level"),
    "logging_file": ("logging", "file"),
    "logging_format": ("logging", "format"),
    "logging_include_stderr": ("logging", "include_stderr"),
    "logging_max_bytes": ("logging", "max_bytes"),
    "logging_backup_count": ("logging", "backup_count"),
}


class ConfigBuilder:
    """Merges ConfigSources into a VodpackConfig.

    Sources are applied lowest precedence first; a non-None value in a
    later source replaces whatever came before. Anything never set keeps
    the dataclass default.

        builder = ConfigBuilder()
        builder.apply(source_from_file(file_config))
        builder.apply(source_from_env(EnvReader()))
        builder.apply(cli_source)
        config = builder.build()
    """

    def __init__(self) -> None:
        self._values: dict[str, Any] = {}

    def apply(self, source: ConfigSource) -> None:
        self._values.update(
            (f.name, getattr(source, f.name))
            for f in fields(source)
            if getattr(source, f.name) is not None
        )

    def build(self) -> VodpackConfig:
        """Construct the config.

        Raises:
            ValueError: If a merged value fails model validation.
        """
        sections: dict[str, dict[str, Any]] = {
            "tools": {},
            "transcode": {},
            "logging": {},
        }
        for key, value in self._values.items():
            section, attr = _FIELD_TARGETS[key]
            sections[section][attr] = value

        return VodpackConfig(
            tools=ToolPathsConfig(**sections["tools"]),
            transcode=TranscodeConfig(**sections["transcode"]),
            logging=LoggingConfig(**sections["logging"]),
        )


def _optional_path(value: str | None) -> Path | None:
    return Path(value).expanduser() if value else None


def source_from_file(file_config: dict[str, Any]) -> ConfigSource:
    """Create ConfigSource from parsed TOML config file.

    Expected layout::

        [tools]
        ffmpeg = "/usr/local/bin/ffmpeg"

        [transcode]
        mode = "prod"

        [logging]
        level = "debug"
    """
    tools = file_config.get("tools", {})
    transcode = file_config.get("transcode", {})
    logging_conf = file_config.get("logging", {})

    timeout = transcode.get("timeout")

    return ConfigSource(
        ffmpeg_path=_optional_path(tools.get("ffmpeg")),
        ffprobe_path=_optional_path(tools.get("ffprobe")),
        packager_path=_optional_path(tools.get("packager")),
        mode=transcode.get("mode"),
        timeout=float(timeout) if timeout is not None else None,
        keep_intermediates=transcode.get("keep_intermediates"),
        logging_level=logging_conf.get("level"),
        logging_file=_optional_path(logging_conf.get("file")),
        logging_format=logging_conf.get("format"),
        logging_include_stderr=logging_conf.get("include_stderr"),
        logging_max_bytes=logging_conf.get("max_bytes"),
        logging_backup_count=logging_conf.get("backup_count"),
    )


def source_from_env(reader: EnvReader) -> ConfigSource:
    """Create ConfigSource from VODPACK_* environment variables."""
    return ConfigSource(
        ffmpeg_path=reader.get_path("VODPACK_FFMPEG_PATH"),
        ffprobe_path=reader.get_path("VODPACK_FFPROBE_PATH"),
        packager_path=reader.get_path("VODPACK_PACKAGER_PATH"),
        mode=reader.get_str("VODPACK_MODE"),
        timeout=reader.get_float("VODPACK_TIMEOUT"),
        keep_intermediates=reader.get_bool("VODPACK_KEEP_INTERMEDIATES"),
        logging_level=reader.get_str("VODPACK_LOG_LEVEL"),
        logging_file=reader.get_path("VODPACK_LOG_FILE"),
        logging_format=reader.get_str("VODPACK_LOG_FORMAT"),
    )
