"""Encoding settings per run mode.

dev trades quality for speed (single pass, fastest presets) and makes
re-runs idempotent. prod uses two-pass VP9 and quality presets.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class EncodeSettings:
    """Mode-dependent encoder tuning."""

    mode: str
    passes: int
    vp9_deadline: str
    vp9_cpu_used: int
    nvenc_preset: str
    x265_preset: str
    qsv_preset: str
    amf_quality: str

    @property
    def is_dev(self) -> bool:
        return self.mode == "dev"

    @property
    def skip_if_exists(self) -> bool:
        """dev runs reuse intermediate files left by a previous run."""
        return self.is_dev


DEV_SETTINGS = EncodeSettings(
    mode="dev",
    passes=1,
    vp9_deadline="realtime",
    vp9_cpu_used=8,
    nvenc_preset="p1",
    x265_preset="ultrafast",
    qsv_preset="veryfast",
    amf_quality="speed",
)

PROD_SETTINGS = EncodeSettings(
    mode="prod",
    passes=2,
    vp9_deadline="good",
    vp9_cpu_used=2,
    nvenc_preset="p5",
    x265_preset="medium",
    qsv_preset="medium",
    amf_quality="balanced",
)


def get_settings(mode: str) -> EncodeSettings:
    """Return the settings for "dev" or "prod".

    Raises:
        ValueError: For any other mode.
    """
    mode = mode.lower()
    if mode == "dev":
        return DEV_SETTINGS
    if mode == "prod":
        return PROD_SETTINGS
    raise ValueError(f"Unknown transcode mode: {mode!r} (expected 'dev' or 'prod')")
