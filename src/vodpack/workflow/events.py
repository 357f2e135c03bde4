"""Observer callbacks for a pipeline run.

The pipeline reports to its presentation layer only through these
callbacks; it holds no UI state. Every callback is optional, and an
exception raised by one is logged and ignored.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass

from vodpack.executor.transcode.types import TranscodeJob, TranscodeResult
from vodpack.tools.ffmpeg_progress import TranscodeProgress
from vodpack.workflow.state import PipelineStep

logger = logging.getLogger(__name__)


@dataclass
class PipelineEvents:
    """Callbacks fired while a pipeline runs.

    Attributes:
        on_step: Step transition; the message is set for ERROR.
        on_job_start: A job is about to run, with its 1-based position
            and the total number of jobs.
        on_progress: Live progress of the running job.
        on_pass_complete: A pass of the running job finished.
        on_job_complete: A job produced (or already had) its output.
        on_job_error: A job failed; the run continues.
        on_message: Free-form status text.
    """

    on_step: Callable[[PipelineStep, str | None], None] | None = None
    on_job_start: Callable[[TranscodeJob, int, int], None] | None = None
    on_progress: Callable[[TranscodeJob, TranscodeProgress], None] | None = None
    on_pass_complete: Callable[[TranscodeJob, int], None] | None = None
    on_job_complete: Callable[[TranscodeResult], None] | None = None
    on_job_error: Callable[[TranscodeJob, Exception], None] | None = None
    on_message: Callable[[str], None] | None = None

    def emit(self, name: str, *args: object) -> None:
        """Invoke the named callback if it is set."""
        callback = getattr(self, name)
        if callback is None:
            return
        try:
            callback(*args)
        except Exception as e:
            logger.warning("Pipeline event handler %s failed: %s", name, e)
