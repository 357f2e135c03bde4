"""CLI module for vodpack."""

import logging
import sys
from pathlib import Path

import click

from vodpack.cli.exit_codes import ExitCode
from vodpack.config import VodpackConfig, get_config
from vodpack.exceptions import ConfigError
from vodpack.logging import configure_logging
from vodpack.tools.models import TOOL_NAMES, ToolRegistry

logger = logging.getLogger(__name__)


def _load_config(
    config_path: Path | None,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
) -> VodpackConfig:
    try:
        return get_config(
            config_path=config_path,
            log_level=log_level,
            log_file=log_file,
            log_format="json" if log_json else None,
            strict=config_path is not None,
        )
    except (ConfigError, ValueError) as e:
        click.echo(f"Error: Invalid configuration: {e}", err=True)
        sys.exit(ExitCode.GENERAL_ERROR)


def get_cli_config(ctx: click.Context) -> VodpackConfig:
    """Return the configuration merged by the group callback."""
    return ctx.find_root().obj["config"]


def setup_tools(ctx: click.Context) -> ToolRegistry:
    """Detect external tools from the merged configuration, once per run."""
    obj = ctx.find_root().obj
    if obj.get("tool_registry") is not None:
        return obj["tool_registry"]

    from vodpack.executor.interface import configure_tool_registry

    config = get_cli_config(ctx)
    registry = configure_tool_registry(
        {name: config.get_tool_path(name) for name in TOOL_NAMES}
    )
    obj["tool_registry"] = registry
    return registry


@click.group()
@click.version_option(package_name="vodpack")
@click.option(
    "--log-level",
    type=click.Choice(["debug", "info", "warning", "error"], case_sensitive=False),
    default=None,
    help="Override log level (default: info).",
)
@click.option(
    "--log-file",
    type=click.Path(path_type=Path),
    default=None,
    help="Override log file path.",
)
@click.option(
    "--log-json",
    is_flag=True,
    default=False,
    help="Use JSON log format.",
)
@click.option(
    "--config",
    "config_path",
    type=click.Path(path_type=Path, dir_okay=False),
    default=None,
    help="Config file (default: ~/.vodpack/config.toml).",
)
@click.pass_context
def main(
    ctx: click.Context,
    log_level: str | None,
    log_file: Path | None,
    log_json: bool,
    config_path: Path | None,
) -> None:
    """vodpack - Transcode a video into an HLS/DASH adaptive streaming package."""
    ctx.ensure_object(dict)
    if "config" not in ctx.obj:
        ctx.obj["config"] = _load_config(config_path, log_level, log_file, log_json)
    configure_logging(ctx.obj["config"].logging)


def _register_commands() -> None:
    from vodpack.cli.check import check_command
    from vodpack.cli.hw import hw_command
    from vodpack.cli.probe import probe_command
    from vodpack.cli.transcode import transcode_command

    main.add_command(check_command)
    main.add_command(probe_command)
    main.add_command(hw_command)
    main.add_command(transcode_command)


_register_commands()
