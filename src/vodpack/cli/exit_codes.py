"""Centralized exit codes for all CLI commands."""

from enum import IntEnum


class ExitCode(IntEnum):
    """Exit codes for vodpack CLI commands."""

    SUCCESS = 0
    GENERAL_ERROR = 1
    TOOL_NOT_AVAILABLE = 2
    SOURCE_INVALID = 3
    PACKAGING_FAILED = 4
