"""Pipeline orchestration: step machine, events and the pipeline itself."""

from vodpack.workflow.events import PipelineEvents
from vodpack.workflow.pipeline import (
    FailedJob,
    Pipeline,
    PipelineResult,
    default_output_dir,
    default_selection,
)
from vodpack.workflow.state import PipelineStep

__all__ = [
    "FailedJob",
    "Pipeline",
    "PipelineEvents",
    "PipelineResult",
    "PipelineStep",
    "default_output_dir",
    "default_selection",
]
