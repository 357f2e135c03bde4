"""vodpack check command for external tool availability."""

import sys

import click

from vodpack.cli import setup_tools
from vodpack.cli.exit_codes import ExitCode
from vodpack.tools.detection import get_install_hint
from vodpack.tools.models import TOOL_NAMES


def _format_status(available: bool) -> str:
    return "✓" if available else "✗"


@click.command("check")
@click.option(
    "--verbose",
    "-v",
    is_flag=True,
    help="Show tool paths.",
)
@click.pass_context
def check_command(ctx: click.Context, verbose: bool) -> None:
    """Check that ffmpeg, ffprobe and packager are installed.

    Exit codes:
      0 - All tools available
      2 - At least one tool missing
    """
    registry = setup_tools(ctx)

    click.echo("Required tools:")
    for name in TOOL_NAMES:
        tool = registry.get_tool(name)
        available = tool is not None and tool.is_available()
        version = tool.version if tool and tool.version else "unknown version"
        if available:
            path_info = f" ({tool.path})" if verbose and tool.path else ""
            click.echo(f"  {_format_status(True)} {name}: {version}{path_info}")
        else:
            click.echo(f"  {_format_status(False)} {name}: not found")
            hint = get_install_hint(name)
            if hint:
                click.echo(f"    └─ {hint}")

    missing = registry.get_missing_tools()
    if missing:
        click.echo(f"\nMissing: {', '.join(missing)}", err=True)
        sys.exit(ExitCode.TOOL_NOT_AVAILABLE)
    click.echo("\nAll required tools are available.")
