"""Shared test fixtures for vodpack."""

import json
import shutil
import tempfile
from pathlib import Path

import pytest

from vodpack.introspector.models import MediaDescriptor
from vodpack.introspector.parsers import parse_ffprobe_output


@pytest.fixture
def temp_dir():
    """Create a temporary directory for test isolation."""
    dir_path = tempfile.mkdtemp()
    yield Path(dir_path)
    shutil.rmtree(dir_path, ignore_errors=True)


@pytest.fixture
def ffprobe_fixtures_dir() -> Path:
    """Return the path to the ffprobe fixtures directory."""
    return Path(__file__).parent / "fixtures" / "ffprobe"


def load_ffprobe_fixture(name: str) -> dict:
    """Load an ffprobe JSON fixture by name.

    Args:
        name: Name of the fixture file (without .json extension).

    Returns:
        Parsed JSON data from the fixture.
    """
    fixture_path = Path(__file__).parent / "fixtures" / "ffprobe" / f"{name}.json"
    return json.loads(fixture_path.read_text())


@pytest.fixture
def hdr10_4k_ffprobe() -> dict:
    """4K HDR10 source with one 5.1 audio track and one forced subtitle."""
    return load_ffprobe_fixture("hdr10_4k_surround_forced")


@pytest.fixture
def sdr_1080p_ffprobe() -> dict:
    """1080p SDR source with stereo + atmos audio and two subtitles."""
    return load_ffprobe_fixture("sdr_1080p_multi")


@pytest.fixture
def hdr10_4k_media(hdr10_4k_ffprobe: dict) -> MediaDescriptor:
    """MediaDescriptor parsed from the 4K HDR10 fixture."""
    return parse_ffprobe_output(Path("/media/movie.mkv"), hdr10_4k_ffprobe)


@pytest.fixture
def sdr_1080p_media(sdr_1080p_ffprobe: dict) -> MediaDescriptor:
    """MediaDescriptor parsed from the 1080p SDR fixture."""
    return parse_ffprobe_output(Path("/media/show.mp4"), sdr_1080p_ffprobe)


@pytest.fixture
def ffprobe_fixture():
    """Return the loader for ffprobe JSON fixtures."""
    return load_ffprobe_fixture
