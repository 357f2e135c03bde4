"""vodpack hw command listing encoding backends."""

import json
import sys

import click

from vodpack.cli import setup_tools
from vodpack.cli.exit_codes import ExitCode
from vodpack.exceptions import ToolUnavailableError
from vodpack.tools.hardware import (
    build_hybrid,
    build_selection_options,
    detect_backends,
)


@click.command("hw")
@click.option(
    "--format",
    "-f",
    "output_format",
    type=click.Choice(["human", "json"]),
    default="human",
    help="Output format (default: human)",
)
@click.pass_context
def hw_command(ctx: click.Context, output_format: str) -> None:
    """List the encoding backends available on this machine."""
    setup_tools(ctx)
    try:
        backends = detect_backends()
    except ToolUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)

    hybrid = build_hybrid(backends)

    if output_format == "json":
        data = {
            "backends": [
                {
                    "method": b.method.value,
                    "label": b.label,
                    "hevc_encoder": b.hevc_encoder,
                    "vp9_encoder": b.vp9_encoder,
                    "hardware_vp9": b.supports_vp9_hw,
                }
                for b in backends
            ],
            "hybrid": (
                {"hevc": hybrid.hevc.method.value, "vp9": hybrid.vp9.method.value}
                if hybrid
                else None
            ),
        }
        click.echo(json.dumps(data, indent=2))
        return

    click.echo("Encoding backends:")
    for position, option in enumerate(build_selection_options(backends, hybrid), 1):
        marker = " (recommended)" if option.is_hybrid else ""
        click.echo(f"  {position}. {option.label}{marker}")
