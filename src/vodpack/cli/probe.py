"""vodpack probe command."""

import sys
from pathlib import Path

import click

from vodpack.cli import setup_tools
from vodpack.cli.exit_codes import ExitCode
from vodpack.exceptions import (
    SourceNotFoundError,
    SourceValidationError,
    ToolUnavailableError,
)
from vodpack.introspector import FFprobeIntrospector, format_human, format_json


@click.command("probe")
@click.argument("source", type=click.Path(path_type=Path))
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["human", "json"]),
    default="human",
    help="Output format (default: human)",
)
@click.pass_context
def probe_command(ctx: click.Context, source: Path, output_format: str) -> None:
    """Probe a source video and show its tracks.

    SOURCE is the path to the video file.
    """
    if not source.exists():
        click.echo(f"Error: File not found: {source}", err=True)
        sys.exit(ExitCode.SOURCE_INVALID)

    setup_tools(ctx)
    try:
        media = FFprobeIntrospector().probe(source)
    except ToolUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)
    except (SourceNotFoundError, SourceValidationError) as e:
        click.echo(f"Error: Could not use file: {source}", err=True)
        click.echo(f"Reason: {e}", err=True)
        sys.exit(ExitCode.SOURCE_INVALID)

    if output_format == "json":
        click.echo(format_json(media))
    else:
        click.echo(format_human(media))
