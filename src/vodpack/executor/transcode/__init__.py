"""Video transcoding: settings, plan synthesis and supervised execution."""

from vodpack.executor.transcode.executor import TranscodeExecutor
from vodpack.executor.transcode.plan import synthesize
from vodpack.executor.transcode.settings import (
    DEV_SETTINGS,
    PROD_SETTINGS,
    EncodeSettings,
    get_settings,
)
from vodpack.executor.transcode.types import (
    EncodePlan,
    JobState,
    TranscodeCallbacks,
    TranscodeJob,
    TranscodeResult,
    TwoPassContext,
)

__all__ = [
    "DEV_SETTINGS",
    "PROD_SETTINGS",
    "EncodePlan",
    "EncodeSettings",
    "JobState",
    "TranscodeCallbacks",
    "TranscodeExecutor",
    "TranscodeJob",
    "TranscodeResult",
    "TwoPassContext",
    "get_settings",
    "synthesize",
]
