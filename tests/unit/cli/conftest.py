"""Fixtures for CLI tests."""

from pathlib import Path
from unittest.mock import patch

import pytest
from click.testing import CliRunner

from vodpack.config import VodpackConfig
from vodpack.tools.models import ToolInfo, ToolRegistry, ToolStatus


@pytest.fixture(autouse=True)
def _no_logging_setup():
    """Keep the group callback from reconfiguring the root logger."""
    with patch("vodpack.cli.configure_logging"):
        yield


@pytest.fixture
def runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def cli_obj() -> dict:
    """Context object carrying a default configuration."""
    return {"config": VodpackConfig()}


def make_registry(missing: tuple[str, ...] = ()) -> ToolRegistry:
    tools = {}
    for name in ("ffmpeg", "ffprobe", "packager"):
        if name in missing:
            tools[name] = ToolInfo(name=name)
        else:
            tools[name] = ToolInfo(
                name=name,
                path=Path(f"/usr/bin/{name}"),
                version="6.1.1",
                status=ToolStatus.AVAILABLE,
            )
    return ToolRegistry(tools=tools)


@pytest.fixture
def registry_factory():
    """Return a builder for tool registries with the given tools missing."""
    return make_registry
