"""FFmpeg command building for transcode passes."""

import platform
from pathlib import Path

from vodpack.executor.transcode.types import EncodePlan, TranscodeJob


def null_sink() -> str:
    """Platform null device used as the output of non-final passes."""
    return "NUL" if platform.system() == "Windows" else "/dev/null"


def build_ffmpeg_command(
    ffmpeg_path: Path,
    job: TranscodeJob,
    plan: EncodePlan,
    pass_index: int = 0,
) -> list[str]:
    """Build the argv for one pass of a job.

    Audio is always dropped; audio tracks are produced by the extractor.

    Args:
        ffmpeg_path: Path to ffmpeg.
        job: The job being encoded.
        plan: The job's encode plan.
        pass_index: Zero-based index into plan.pass_args.

    Returns:
        Command argument list.
    """
    cmd = [str(ffmpeg_path), "-y", "-hide_banner"]
    cmd.extend(plan.input_args)
    cmd.extend(["-i", str(job.input_path)])
    cmd.extend(["-vf", plan.filter_chain])
    cmd.extend(plan.pass_args[pass_index])
    cmd.append("-an")

    if pass_index < plan.passes - 1:
        cmd.extend(["-f", "null", null_sink()])
    else:
        cmd.append(str(job.output_path))

    return cmd
