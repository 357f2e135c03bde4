"""Resolve the effective VodpackConfig.

Three layers feed the result, each overriding the one before it:

* ``~/.vodpack/config.toml`` (or the file named by ``VODPACK_CONFIG_PATH``)
* ``VODPACK_*`` environment variables: ``VODPACK_FFMPEG_PATH``,
  ``VODPACK_FFPROBE_PATH``, ``VODPACK_PACKAGER_PATH``, ``VODPACK_MODE``,
  ``VODPACK_TIMEOUT``, ``VODPACK_KEEP_INTERMEDIATES``, ``VODPACK_LOG_LEVEL``,
  ``VODPACK_LOG_FILE`` and ``VODPACK_LOG_FORMAT``
* command-line flags

Settings named by none of them keep the dataclass defaults.
"""

from __future__ import annotations

import logging
import os
import threading
import tomllib
from pathlib import Path
from typing import Any

from vodpack.config.builder import (
    ConfigBuilder,
    ConfigSource,
    source_from_env,
    source_from_file,
)
from vodpack.config.env import EnvReader
from vodpack.config.models import VodpackConfig
from vodpack.exceptions import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_DIR = Path.home() / ".vodpack"
DEFAULT_CONFIG_FILE = DEFAULT_CONFIG_DIR / "config.toml"

# path -> (parsed TOML, st_mtime at parse time)
_file_cache: dict[Path, tuple[dict[str, Any], float]] = {}
_file_cache_lock = threading.Lock()


def get_default_config_path() -> Path:
    """``VODPACK_CONFIG_PATH`` if set, else ``~/.vodpack/config.toml``."""
    override = os.environ.get("VODPACK_CONFIG_PATH")
    return Path(override).expanduser() if override else DEFAULT_CONFIG_FILE


def _mtime(path: Path) -> float:
    try:
        return path.stat().st_mtime
    except FileNotFoundError:
        return 0.0


def _read_toml(path: Path, *, strict: bool) -> dict[str, Any] | None:
    """Parsed TOML, {} when absent, None when unreadable and not strict."""
    if not path.is_file():
        logger.debug("No config file at %s", path)
        return {}
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except (tomllib.TOMLDecodeError, OSError, UnicodeDecodeError) as e:
        if strict:
            raise ConfigError(f"Failed to parse config file {path}: {e}") from e
        logger.warning("Ignoring unreadable config file %s: %s", path, e)
        return None
    logger.debug("Read config file %s", path)
    return data


def load_config_file(
    path: Path | None = None, *, strict: bool = False
) -> dict[str, Any]:
    """Parse a TOML config file, reusing the last parse while its mtime holds.

    A missing file yields ``{}``. An unparsable one yields ``{}`` with a
    warning, or raises ConfigError when ``strict`` is set. Failed parses
    are never cached, so a strict call always sees the error.
    """
    path = path or get_default_config_path()
    mtime = _mtime(path)

    with _file_cache_lock:
        hit = _file_cache.get(path)
        if hit is not None and hit[1] == mtime:
            return hit[0]
        data = _read_toml(path, strict=strict)
        if data is None:
            return {}
        _file_cache[path] = (data, mtime)
        return data


def clear_config_cache() -> None:
    """Forget every cached config file parse."""
    with _file_cache_lock:
        _file_cache.clear()


def get_config(
    config_path: Path | None = None,
    ffmpeg_path: Path | None = None,
    ffprobe_path: Path | None = None,
    packager_path: Path | None = None,
    mode: str | None = None,
    keep_intermediates: bool | None = None,
    log_level: str | None = None,
    log_file: Path | None = None,
    log_format: str | None = None,
    env_reader: EnvReader | None = None,
    *,
    strict: bool = False,
) -> VodpackConfig:
    """Merge config file, environment and the given flag values.

    Every keyword except ``config_path``, ``env_reader`` and ``strict``
    is a command-line override; None leaves the lower layers in charge.
    ``env_reader`` defaults to one over ``os.environ``.

    Raises:
        ConfigError: The config file is unparsable and ``strict`` is set.
        ValueError: A merged value fails validation, e.g. an unknown mode.
    """
    reader = env_reader or EnvReader()
    if config_path is None:
        config_path = reader.get_path("VODPACK_CONFIG_PATH")

    layers = [
        source_from_file(load_config_file(config_path, strict=strict)),
        source_from_env(reader),
        ConfigSource(
            ffmpeg_path=ffmpeg_path,
            ffprobe_path=ffprobe_path,
            packager_path=packager_path,
            mode=mode,
            keep_intermediates=keep_intermediates,
            logging_level=log_level,
            logging_file=log_file,
            logging_format=log_format,
        ),
    ]

    builder = ConfigBuilder()
    for layer in layers:
        builder.apply(layer)
    return builder.build()
