"""Configuration module for vodpack.

Provides configuration loading with precedence:
CLI args > environment variables > config file > defaults.
"""

from vodpack.config.env import EnvReader
from vodpack.config.loader import (
    clear_config_cache,
    get_config,
    get_default_config_path,
    load_config_file,
)
from vodpack.config.models import (
    LoggingConfig,
    ToolPathsConfig,
    TranscodeConfig,
    VodpackConfig,
)

__all__ = [
    "EnvReader",
    "LoggingConfig",
    "ToolPathsConfig",
    "TranscodeConfig",
    "VodpackConfig",
    "clear_config_cache",
    "get_config",
    "get_default_config_path",
    "load_config_file",
]
