"""External tool resolution.

Tool paths are resolved once per process from configuration (config file,
VODPACK_* environment variables) with a PATH fallback, and cached in a
thread-safe registry.
"""

import threading
from pathlib import Path

from vodpack.exceptions import ToolUnavailableError
from vodpack.tools.detection import detect_all_tools, get_install_hint
from vodpack.tools.models import TOOL_NAMES, ToolRegistry

_tool_registry: ToolRegistry | None = None
_registry_lock = threading.Lock()


def _get_tool_registry() -> ToolRegistry:
    """Get or create the tool registry (thread-safe lazy initialization)."""
    global _tool_registry

    if _tool_registry is not None:
        return _tool_registry

    with _registry_lock:
        if _tool_registry is not None:
            return _tool_registry

        from vodpack.config import get_config

        config = get_config()
        _tool_registry = detect_all_tools(
            {name: config.get_tool_path(name) for name in TOOL_NAMES}
        )

    return _tool_registry


def configure_tool_registry(tool_paths: dict[str, Path | None]) -> ToolRegistry:
    """Detect tools from explicit paths and install the result as the registry.

    Used by the command line once it has merged its own configuration.
    """
    global _tool_registry
    registry = detect_all_tools(tool_paths)
    with _registry_lock:
        _tool_registry = registry
    return registry


def check_tool_availability() -> dict[str, bool]:
    """Check which external tools are available.

    Returns:
        Dict mapping ffmpeg, ffprobe and packager to availability.
    """
    registry = _get_tool_registry()
    return {name: registry.is_available(name) for name in TOOL_NAMES}


def require_tool(tool_name: str) -> Path:
    """Get path to a required tool, raising an error if not available.

    Raises:
        ToolUnavailableError: If the tool is not available.
    """
    tool = _get_tool_registry().get_tool(tool_name)

    if tool is None or not tool.is_available() or tool.path is None:
        raise ToolUnavailableError(tool_name, get_install_hint(tool_name))

    return tool.path
