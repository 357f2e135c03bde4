"""vodpack transcode command running the full packaging pipeline."""

import logging
import sys
from pathlib import Path

import click

from vodpack.cli import get_cli_config, setup_tools
from vodpack.cli.exit_codes import ExitCode
from vodpack.exceptions import (
    PackagingFailedError,
    SourceNotFoundError,
    SourceValidationError,
    ToolUnavailableError,
    VodpackError,
)
from vodpack.executor.transcode.settings import get_settings
from vodpack.executor.transcode.types import TranscodeJob, TranscodeResult
from vodpack.introspector.formatters import format_duration
from vodpack.logging import FileRunLog, NullRunLog, RunLog
from vodpack.renditions import get_all_renditions
from vodpack.tools.ffmpeg_progress import TranscodeProgress
from vodpack.tools.hardware import (
    HardwareMethod,
    build_hybrid,
    detect_backends,
)
from vodpack.workflow import (
    Pipeline,
    PipelineEvents,
    PipelineResult,
    PipelineStep,
    default_output_dir,
)
from vodpack.workflow.pipeline import BackendSelection

logger = logging.getLogger(__name__)

_STEP_MESSAGES = {
    PipelineStep.TOOL_CHECK: "Checking required tools...",
    PipelineStep.PROBING: "Analyzing video file...",
    PipelineStep.SELECTING: "Selecting renditions and hardware...",
    PipelineStep.TRANSCODING: "Transcoding...",
    PipelineStep.PACKAGING: "Packaging with Shaka Packager...",
}

_HW_CHOICES = [m.value for m in HardwareMethod]


def _select_backend(method: str | None, hybrid: bool) -> BackendSelection | None:
    """Resolve --hw / --hybrid to a backend selection (None = pipeline default)."""
    if method is None and not hybrid:
        return None

    backends = detect_backends()
    if hybrid:
        pair = build_hybrid(backends)
        if pair is None:
            raise click.ClickException(
                "No hybrid backend pair is available on this machine."
            )
        return pair

    for backend in backends:
        if backend.method.value == method:
            return backend
    raise click.ClickException(
        f"Backend '{method}' is not available. "
        f"Detected: {', '.join(b.method.value for b in backends)}"
    )


def _build_events() -> PipelineEvents:
    def on_step(step: PipelineStep, message: str | None) -> None:
        if step in _STEP_MESSAGES:
            click.echo(_STEP_MESSAGES[step])

    def on_job_start(job: TranscodeJob, position: int, total: int) -> None:
        click.echo(f"[{position}/{total}] {job.name} ({job.backend.label})")

    def on_progress(job: TranscodeJob, progress: TranscodeProgress) -> None:
        click.echo(
            f"\r  pass {progress.pass_number}: {progress.percent:5.1f}% "
            f"{progress.fps:.1f} fps {progress.speed:.2f}x "
            f"ETA {format_duration(progress.eta_seconds)}   ",
            nl=False,
        )

    def on_pass_complete(job: TranscodeJob, pass_number: int) -> None:
        click.echo("")

    def on_job_complete(result: TranscodeResult) -> None:
        if result.skipped:
            click.echo(f"  skipped, {result.output_path.name} already exists")

    def on_job_error(job: TranscodeJob, error: Exception) -> None:
        click.echo("")
        click.echo(f"  {job.name} failed: {error}", err=True)

    def on_message(message: str) -> None:
        click.echo(message)

    return PipelineEvents(
        on_step=on_step,
        on_job_start=on_job_start,
        on_progress=on_progress,
        on_pass_complete=on_pass_complete,
        on_job_complete=on_job_complete,
        on_job_error=on_job_error,
        on_message=on_message,
    )


def _display_result(result: PipelineResult) -> None:
    click.echo("")
    click.echo("Transcoding complete!")
    if result.packager_output is not None:
        click.echo(f"  HLS:  {result.packager_output.hls_master_playlist}")
        click.echo(f"  DASH: {result.packager_output.dash_manifest}")
    click.echo(f"  Output: {result.output_dir}")
    click.echo(
        f"  Videos: {len(result.videos)}, audio: {len(result.audio_files)}, "
        f"subtitles: {len(result.subtitle_files)}"
    )
    click.echo(f"  Elapsed: {format_duration(result.elapsed_seconds)}")
    if result.failed_jobs:
        click.echo("  Failed renditions:", err=True)
        for failed in result.failed_jobs:
            click.echo(f"    {failed.quality}/{failed.codec.value}", err=True)


@click.command("transcode")
@click.argument("source", type=click.Path(path_type=Path))
@click.argument("output", type=click.Path(path_type=Path), required=False)
@click.option(
    "--dev",
    is_flag=True,
    help="Fast single-pass encodes, reuse existing files, write a run log.",
)
@click.option(
    "--quality",
    "-q",
    "qualities",
    multiple=True,
    type=click.Choice([r.quality for r in get_all_renditions()]),
    help="Only produce this tier (repeatable). Default: full ladder.",
)
@click.option(
    "--hw",
    "hw_method",
    type=click.Choice(_HW_CHOICES),
    default=None,
    help="Encode with this backend.",
)
@click.option(
    "--hybrid",
    is_flag=True,
    help="Use the hybrid backend pair (best HEVC + hardware VP9).",
)
@click.option(
    "--keep-intermediates",
    is_flag=True,
    help="Keep the tmp/ directory after packaging.",
)
@click.pass_context
def transcode_command(
    ctx: click.Context,
    source: Path,
    output: Path | None,
    dev: bool,
    qualities: tuple[str, ...],
    hw_method: str | None,
    hybrid: bool,
    keep_intermediates: bool,
) -> None:
    """Transcode SOURCE into an HLS/DASH package in OUTPUT.

    OUTPUT defaults to <source dir>/<source name>_output.
    """
    if hw_method is not None and hybrid:
        raise click.UsageError("--hw and --hybrid are mutually exclusive.")

    if not source.exists():
        click.echo(f"Error: File not found: {source}", err=True)
        sys.exit(ExitCode.SOURCE_INVALID)

    config = get_cli_config(ctx)
    mode = "dev" if dev else config.transcode.mode
    keep_intermediates = keep_intermediates or config.transcode.keep_intermediates
    settings = get_settings(mode)
    output_dir = output if output is not None else default_output_dir(source)

    setup_tools(ctx)
    try:
        selection = _select_backend(hw_method, hybrid)
    except ToolUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)

    run_log: RunLog = NullRunLog()
    if settings.is_dev:
        output_dir.mkdir(parents=True, exist_ok=True)
        file_log = FileRunLog(output_dir, mode=mode)
        click.echo(f"Run log: {file_log.path}")
        run_log = file_log

    pipeline = Pipeline.from_config(
        timeout=config.transcode.timeout, events=_build_events(), run_log=run_log
    )

    exit_code = ExitCode.SUCCESS
    try:
        result = pipeline.run(
            source,
            output_dir,
            settings,
            qualities=list(qualities) or None,
            selection=selection,
            keep_intermediates=keep_intermediates,
        )
        _display_result(result)
    except ToolUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        exit_code = ExitCode.TOOL_NOT_AVAILABLE
    except (SourceNotFoundError, SourceValidationError) as e:
        click.echo(f"Error: {e}", err=True)
        exit_code = ExitCode.SOURCE_INVALID
    except PackagingFailedError as e:
        click.echo(f"Error: {e}", err=True)
        exit_code = ExitCode.PACKAGING_FAILED
    except VodpackError as e:
        click.echo(f"Error: {e}", err=True)
        exit_code = ExitCode.GENERAL_ERROR
    finally:
        run_log.close()

    if exit_code != ExitCode.SUCCESS:
        sys.exit(exit_code)
