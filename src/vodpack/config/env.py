"""Typed access to VODPACK_* environment variables.

EnvReader takes the mapping to read from, so tests pass a plain dict
instead of patching os.environ.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Callable, Mapping
from pathlib import Path
from typing import TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})


class EnvReader:
    """Reads VODPACK_* settings with type conversion.

    A variable that is unset yields the default. A variable that is set
    but cannot be converted is logged and also yields the default, so a
    typo in the environment never stops a run.

        reader = EnvReader(env={"VODPACK_TIMEOUT": "3600"})
        reader.get_float("VODPACK_TIMEOUT")  # 3600.0
    """

    def __init__(self, env: Mapping[str, str] | None = None) -> None:
        self._env: Mapping[str, str] = os.environ if env is None else env

    def _convert(
        self,
        var: str,
        default: T | None,
        convert: Callable[[str], T],
        kind: str,
    ) -> T | None:
        raw = self._env.get(var)
        if raw is None:
            return default
        try:
            return convert(raw.strip())
        except ValueError:
            logger.warning("Invalid %s value for %s: %s", kind, var, raw)
            return default

    def get_str(self, var: str, default: str | None = None) -> str | None:
        return self._env.get(var, default)

    def get_int(self, var: str, default: int | None = None) -> int | None:
        return self._convert(var, default, int, "integer")

    def get_float(self, var: str, default: float | None = None) -> float | None:
        """Seconds-style values such as VODPACK_TIMEOUT."""
        return self._convert(var, default, float, "number")

    def get_bool(self, var: str, default: bool | None = None) -> bool | None:
        """true/1/yes/on (any case) are true; any other set value is false."""
        return self._convert(
            var, default, lambda raw: raw.lower() in _TRUE_VALUES, "boolean"
        )

    def get_path(self, var: str, default: Path | None = None) -> Path | None:
        """A user-expanded path; an empty value counts as unset."""
        raw = self._env.get(var)
        if not raw:
            return default
        return Path(raw).expanduser()
