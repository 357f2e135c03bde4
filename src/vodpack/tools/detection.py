"""Locating ffmpeg, ffprobe and the Shaka packager.

Each tool is resolved from its configured path or PATH, asked for its
version, and recorded in a ToolRegistry. ffmpeg is additionally queried
for the encoders and hardware accelerations it was built with.
"""

import logging
import re
import shutil
import subprocess  # nosec B404 - runs the media tools vodpack drives
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from pathlib import Path
from typing import NamedTuple

from vodpack.tools.models import (
    TOOL_NAMES,
    ToolDetectionConfig,
    ToolInfo,
    ToolRegistry,
    ToolStatus,
)

logger = logging.getLogger(__name__)

# Seconds allowed for -version, -encoders and -hwaccels queries
DETECTION_TIMEOUT = 10

_VERSION_NUMBER = re.compile(r"(\d+(?:\.\d+)*)")

# " V....D libx265   libx265 H.265 / HEVC (codec hevc)"
_CODEC_LINE = re.compile(r"\s+[VASFXBDI.]{6}\s+(\S+)")

FFMPEG_CONFIG = ToolDetectionConfig(
    name="ffmpeg",
    version_flag="-version",
    version_pattern=r"ffmpeg version (\S+)",
    install_hint="Install ffmpeg (e.g. 'apt install ffmpeg' or 'brew install ffmpeg')",
)

FFPROBE_CONFIG = ToolDetectionConfig(
    name="ffprobe",
    version_flag="-version",
    version_pattern=r"ffprobe version (\S+)",
    install_hint="ffprobe ships with ffmpeg; install ffmpeg",
)

PACKAGER_CONFIG = ToolDetectionConfig(
    name="packager",
    version_flag="--version",
    version_pattern=r"version (\S+)",
    install_hint=(
        "Install Shaka Packager from "
        "https://github.com/shaka-project/shaka-packager/releases"
    ),
)

TOOL_CONFIGS: dict[str, ToolDetectionConfig] = {
    c.name: c for c in (FFMPEG_CONFIG, FFPROBE_CONFIG, PACKAGER_CONFIG)
}


class _Output(NamedTuple):
    stdout: str
    stderr: str
    ok: bool


def parse_version_string(version_str: str) -> tuple[int, ...] | None:
    """Turn "6.1.1", "n6.1.1" or "v3.0.0-5a5c7a4-release" into an int tuple.

    Returns None when no leading dotted number is present.
    """
    match = _VERSION_NUMBER.match(version_str.lstrip("nv")) if version_str else None
    if match is None:
        return None
    return tuple(map(int, match.group(1).split(".")))


def _locate(name: str, configured_path: Path | None) -> Path | None:
    if configured_path is not None:
        if configured_path.is_file():
            return configured_path
        logger.warning(
            "Ignoring configured %s path %s: not a file", name, configured_path
        )
    found = shutil.which(name)
    return Path(found) if found else None


def _query(*args: str) -> _Output:
    """Run a short tool query. Failures to launch or finish count as not ok."""
    try:
        proc = subprocess.run(  # nosec B603 - tool path plus fixed flags
            list(args),
            capture_output=True,
            text=True,
            errors="replace",
            timeout=DETECTION_TIMEOUT,
        )
    except subprocess.TimeoutExpired:
        logger.warning("%s timed out after %ss", " ".join(args), DETECTION_TIMEOUT)
        return _Output("", "timeout", False)
    except OSError as e:
        logger.warning("Could not run %s: %s", args[0], e)
        return _Output("", str(e), False)
    return _Output(proc.stdout, proc.stderr, proc.returncode == 0)


def detect_tool(
    config: ToolDetectionConfig,
    configured_path: Path | None = None,
) -> ToolInfo:
    """Locate one tool and read its version."""
    info = ToolInfo(name=config.name, detected_at=datetime.now(timezone.utc))

    info.path = _locate(config.name, configured_path)
    if info.path is None:
        info.status_message = f"{config.name} was not found on PATH"
        return info

    out = _query(str(info.path), config.version_flag)
    if not out.ok:
        info.status = ToolStatus.ERROR
        info.status_message = (
            f"{config.name} {config.version_flag} failed: {out.stderr.strip()}"
        )
        return info

    # The packager prints its banner on stderr
    found = re.search(config.version_pattern, out.stdout or out.stderr)
    if found:
        info.version = found.group(1)
        info.version_tuple = parse_version_string(info.version)
    info.status = ToolStatus.AVAILABLE
    return info


def detect_all_tools(
    configured_paths: dict[str, Path | None] | None = None,
) -> ToolRegistry:
    """Probe every external tool in parallel.

    ``configured_paths`` maps a tool name to an explicit executable that
    takes priority over PATH lookup.
    """
    paths = configured_paths or {}
    with ThreadPoolExecutor(max_workers=len(TOOL_NAMES)) as pool:
        results = pool.map(
            lambda name: detect_tool(TOOL_CONFIGS[name], paths.get(name)),
            TOOL_NAMES,
        )
        tools = dict(zip(TOOL_NAMES, results))

    for info in tools.values():
        logger.debug(
            "%s: %s (version %s at %s)",
            info.name,
            info.status.value,
            info.version,
            info.path,
        )
    return ToolRegistry(tools=tools, detected_at=datetime.now(timezone.utc))


def get_install_hint(tool_name: str) -> str:
    config = TOOL_CONFIGS.get(tool_name)
    return config.install_hint if config else ""


def _parse_codec_list(output: str) -> set[str]:
    """Names from ``ffmpeg -encoders`` (or ``-decoders``) output."""
    return {
        m.group(1).casefold()
        for m in map(_CODEC_LINE.match, output.splitlines())
        if m
    }


def _parse_hwaccel_list(output: str) -> set[str]:
    """Method names from ``ffmpeg -hwaccels``, minus the header line."""
    _, _, body = output.strip().partition("\n")
    return {line.strip().casefold() for line in body.splitlines() if line.strip()}


def _ffmpeg_listing(ffmpeg_path: Path, flag: str) -> str | None:
    out = _query(str(ffmpeg_path), "-hide_banner", flag)
    if not out.ok:
        logger.warning("ffmpeg %s failed: %s", flag, out.stderr.strip())
        return None
    return out.stdout


def list_encoders(ffmpeg_path: Path) -> set[str]:
    """Encoders ffmpeg was built with; empty when the query fails."""
    listing = _ffmpeg_listing(ffmpeg_path, "-encoders")
    return _parse_codec_list(listing) if listing is not None else set()


def list_hwaccels(ffmpeg_path: Path) -> set[str]:
    """Hardware acceleration methods ffmpeg reports; empty on failure."""
    listing = _ffmpeg_listing(ffmpeg_path, "-hwaccels")
    return _parse_hwaccel_list(listing) if listing is not None else set()
