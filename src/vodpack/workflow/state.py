"""Run-level step machine of the transcode pipeline."""

from enum import Enum


class PipelineStep(Enum):
    """Steps a pipeline run moves through, in order.

    A run ends in COMPLETE or ERROR.
    """

    TOOL_CHECK = "tool_check"
    PROBING = "probing"
    SELECTING = "selecting"
    TRANSCODING = "transcoding"
    PACKAGING = "packaging"
    COMPLETE = "complete"
    ERROR = "error"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineStep.COMPLETE, PipelineStep.ERROR)


# Allowed forward transitions; ERROR is reachable from any non-terminal step
TRANSITIONS: dict[PipelineStep, tuple[PipelineStep, ...]] = {
    PipelineStep.TOOL_CHECK: (PipelineStep.PROBING,),
    PipelineStep.PROBING: (PipelineStep.SELECTING,),
    PipelineStep.SELECTING: (PipelineStep.TRANSCODING,),
    PipelineStep.TRANSCODING: (PipelineStep.PACKAGING,),
    PipelineStep.PACKAGING: (PipelineStep.COMPLETE,),
    PipelineStep.COMPLETE: (),
    PipelineStep.ERROR: (),
}


def can_transition(current: PipelineStep | None, target: PipelineStep) -> bool:
    """Check whether a run at current may move to target.

    None stands for a run that has not started; it may only enter TOOL_CHECK.
    """
    if current is None:
        return target is PipelineStep.TOOL_CHECK
    if target is PipelineStep.ERROR:
        return not current.is_terminal
    return target in TRANSITIONS[current]
