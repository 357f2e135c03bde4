"""Transcode executor for one (rendition, codec) job.

Runs the synthesized plan as one or two supervised ffmpeg passes and
reports progress parsed from the encoder's stderr. The executor never
retries; a failed job raises TranscodeFailedError for the caller to handle.
"""

import logging
import time
from collections.abc import Callable

from vodpack.exceptions import TranscodeFailedError
from vodpack.executor.ffmpeg_base import FFmpegExecutorBase
from vodpack.executor.transcode.command import build_ffmpeg_command
from vodpack.executor.transcode.plan import synthesize
from vodpack.executor.transcode.types import (
    EncodePlan,
    JobState,
    TranscodeCallbacks,
    TranscodeJob,
    TranscodeResult,
    TwoPassContext,
)
from vodpack.tools.ffmpeg_progress import ProgressTracker

logger = logging.getLogger(__name__)


def _safe_call(callback: Callable[..., None] | None, *args: object) -> None:
    if callback is None:
        return
    try:
        callback(*args)
    except Exception as e:
        logger.warning("Transcode callback error: %s", e)


class TranscodeExecutor(FFmpegExecutorBase):
    """Executes transcode jobs with ffmpeg."""

    def plan_for(self, job: TranscodeJob) -> EncodePlan:
        """Synthesize the encode plan for a job."""
        return synthesize(
            job.rendition,
            job.codec,
            job.backend,
            job.settings,
            dynamic_range=job.media.video.dynamic_range,
            passlog=job.passlog_path,
        )

    def execute(
        self,
        job: TranscodeJob,
        callbacks: TranscodeCallbacks | None = None,
    ) -> TranscodeResult:
        """Run a transcode job to completion.

        Args:
            job: The job to run.
            callbacks: Optional observers for state, progress and passes.

        Returns:
            TranscodeResult describing the produced file.

        Raises:
            TranscodeFailedError: If any pass exits non-zero or times out.
            ToolUnavailableError: If ffmpeg is not available.
        """
        callbacks = callbacks or TranscodeCallbacks()
        _safe_call(callbacks.on_state, job, JobState.PENDING)

        if job.skip_if_exists and job.output_path.exists():
            logger.info("Skipping %s: %s already exists", job.name, job.output_path)
            self.run_log.info(f"Skipping {job.name} (already exists)")
            _safe_call(callbacks.on_state, job, JobState.COMPLETED)
            return TranscodeResult(job=job, output_path=job.output_path, skipped=True)

        plan = self.plan_for(job)
        logger.info(
            "Starting transcode %s (%d pass%s, tonemap=%s, backend=%s)",
            job.name,
            plan.passes,
            "es" if plan.passes > 1 else "",
            plan.tonemap,
            job.backend.method.value,
            extra={
                "quality": job.rendition.quality,
                "codec": job.codec.value,
                "backend": job.backend.method.value,
            },
        )
        self.run_log.section(f"Transcoding {job.name}")
        self.run_log.info(f"Total frames: {job.total_frames}")
        self.run_log.info(f"Needs tonemap: {plan.tonemap}")
        self.run_log.info(f"Filter chain: {plan.filter_chain}")
        self.run_log.info(f"Backend: {job.backend.label}")

        two_pass = TwoPassContext(passlogfile=job.passlog_path)
        start_time = time.monotonic()

        for pass_index in range(plan.passes):
            pass_number = pass_index + 1
            state = (
                JobState.PASS1_RUNNING if pass_number == 1 else JobState.PASS2_RUNNING
            )
            _safe_call(callbacks.on_state, job, state)

            self._run_pass(job, plan, pass_index, callbacks, two_pass)

            logger.info(
                "Completed %s pass %d/%d",
                job.name,
                pass_number,
                plan.passes,
                extra={"quality": job.rendition.quality, "codec": job.codec.value},
            )
            _safe_call(callbacks.on_pass_complete, job, pass_number)

        if plan.is_two_pass:
            two_pass.cleanup()

        elapsed = time.monotonic() - start_time
        logger.info("Transcode %s finished in %.1fs", job.name, elapsed)
        self.run_log.info(f"Completed {job.name} in {elapsed:.1f}s")
        _safe_call(callbacks.on_state, job, JobState.COMPLETED)
        return TranscodeResult(
            job=job, output_path=job.output_path, elapsed_seconds=elapsed
        )

    def _run_pass(
        self,
        job: TranscodeJob,
        plan: EncodePlan,
        pass_index: int,
        callbacks: TranscodeCallbacks,
        two_pass: TwoPassContext,
    ) -> None:
        pass_number = pass_index + 1
        cmd = build_ffmpeg_command(self.tool_path, job, plan, pass_index)
        tracker = ProgressTracker(job.total_frames, pass_number)

        def on_line(line: str) -> None:
            progress = tracker.feed(line)
            if progress is not None:
                _safe_call(callbacks.on_progress, job, progress)

        success, rc, stderr = self._run_ffmpeg_with_timeout(
            cmd, f"{job.name} pass {pass_number}", on_line
        )
        if success:
            return

        logger.error(
            "Transcode %s failed on pass %d with exit code %d",
            job.name,
            pass_number,
            rc,
            extra={"quality": job.rendition.quality, "codec": job.codec.value},
        )
        self.run_log.error(f"FFmpeg exited with code {rc}")
        self.run_log.output(stderr)
        # skip-if-exists must never find a partial encode
        self._discard_partial(job.output_path)
        if plan.is_two_pass:
            two_pass.cleanup()
        _safe_call(callbacks.on_state, job, JobState.FAILED)
        raise TranscodeFailedError(rc, stderr)
