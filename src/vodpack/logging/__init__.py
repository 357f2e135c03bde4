"""Structured logging module for vodpack.

Provides configurable logging with JSON format support and file rotation,
plus the per-run diagnostic log handle used by the pipeline.
"""

from vodpack.logging.config import configure_logging
from vodpack.logging.handlers import JSONFormatter
from vodpack.logging.runlog import FileRunLog, NullRunLog, RunLog

__all__ = [
    "FileRunLog",
    "JSONFormatter",
    "NullRunLog",
    "RunLog",
    "configure_logging",
]
