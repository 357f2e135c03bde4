"""Tests for external tool detection."""

import subprocess
from pathlib import Path
from unittest.mock import MagicMock, patch

from vodpack.tools.detection import (
    FFMPEG_CONFIG,
    PACKAGER_CONFIG,
    _parse_codec_list,
    _parse_hwaccel_list,
    detect_all_tools,
    detect_tool,
    get_install_hint,
    list_encoders,
    list_hwaccels,
    parse_version_string,
)
from vodpack.tools.models import ToolStatus

ENCODERS_OUTPUT = """Encoders:
 V..... = Video
 A..... = Audio
 ------
 V....D libx265              libx265 H.265 / HEVC (codec hevc)
 V....D libvpx-vp9           libvpx VP9 (codec vp9)
 V....D hevc_nvenc           NVIDIA NVENC hevc encoder (codec hevc)
 A....D aac                  AAC (Advanced Audio Coding)
"""

HWACCELS_OUTPUT = """Hardware acceleration methods:
vdpau
cuda
vaapi

"""


def _completed(stdout: str = "", stderr: str = "", returncode: int = 0) -> MagicMock:
    result = MagicMock()
    result.stdout = stdout
    result.stderr = stderr
    result.returncode = returncode
    return result


class TestParseVersionString:
    """Tests for parse_version_string."""

    def test_plain(self):
        """A dotted release version parses to an int tuple."""
        assert parse_version_string("6.1.1") == (6, 1, 1)

    def test_nightly_prefix(self):
        """The n prefix of ffmpeg builds is ignored."""
        assert parse_version_string("n6.0-28-g1234") == (6, 0)

    def test_packager_release(self):
        """Packager v-prefixed versions with a build suffix parse."""
        assert parse_version_string("v3.2.0-53b8668-release") == (3, 2, 0)

    def test_garbage(self):
        """Strings without a leading version give None."""
        assert parse_version_string("N-112345-gabc") is None
        assert parse_version_string("") is None


class TestCapabilityParsing:
    """Tests for ffmpeg -encoders / -hwaccels parsing."""

    def test_parse_encoders(self):
        """Encoder names are read from the -encoders table."""
        encoders = _parse_codec_list(ENCODERS_OUTPUT)

        assert {"libx265", "libvpx-vp9", "hevc_nvenc", "aac"} <= encoders

    def test_parse_hwaccels_skips_header(self):
        """The header line of -hwaccels output is not a method."""
        assert _parse_hwaccel_list(HWACCELS_OUTPUT) == {"vdpau", "cuda", "vaapi"}

    def test_list_encoders_failure_is_empty(self):
        """A failed -encoders query yields no encoders."""
        with patch("vodpack.tools.detection.subprocess.run") as mock_run:
            mock_run.return_value = _completed(stderr="boom", returncode=1)
            assert list_encoders(Path("/usr/bin/ffmpeg")) == set()

    def test_list_hwaccels_runs_ffmpeg(self):
        """-hwaccels is queried with the banner hidden."""
        with patch("vodpack.tools.detection.subprocess.run") as mock_run:
            mock_run.return_value = _completed(stdout=HWACCELS_OUTPUT)
            result = list_hwaccels(Path("/usr/bin/ffmpeg"))

        assert result == {"vdpau", "cuda", "vaapi"}
        assert mock_run.call_args[0][0] == [
            "/usr/bin/ffmpeg",
            "-hide_banner",
            "-hwaccels",
        ]


class TestDetectTool:
    """Tests for detect_tool and detect_all_tools."""

    def test_missing_tool(self):
        """A tool not on PATH is reported missing."""
        with patch("vodpack.tools.detection.shutil.which", return_value=None):
            info = detect_tool(FFMPEG_CONFIG)

        assert info.status is ToolStatus.MISSING
        assert not info.is_available()

    def test_available_tool_with_version(self):
        """A located tool reports its version string and tuple."""
        with (
            patch(
                "vodpack.tools.detection.shutil.which",
                return_value="/usr/bin/ffmpeg",
            ),
            patch("vodpack.tools.detection.subprocess.run") as mock_run,
        ):
            mock_run.return_value = _completed(
                stdout="ffmpeg version 6.1.1 Copyright (c) 2000-2023"
            )
            info = detect_tool(FFMPEG_CONFIG)

        assert info.is_available()
        assert info.path == Path("/usr/bin/ffmpeg")
        assert info.version == "6.1.1"
        assert info.version_tuple == (6, 1, 1)

    def test_packager_version_on_stderr(self):
        """Packager builds that print the version on stderr are handled."""
        with (
            patch(
                "vodpack.tools.detection.shutil.which",
                return_value="/usr/local/bin/packager",
            ),
            patch("vodpack.tools.detection.subprocess.run") as mock_run,
        ):
            mock_run.return_value = _completed(
                stderr="packager version v3.2.0-53b8668-release"
            )
            info = detect_tool(PACKAGER_CONFIG)

        assert info.version == "v3.2.0-53b8668-release"

    def test_version_command_timeout_is_error(self):
        """A hanging version command marks the tool as errored."""
        with (
            patch(
                "vodpack.tools.detection.shutil.which",
                return_value="/usr/bin/ffmpeg",
            ),
            patch("vodpack.tools.detection.subprocess.run") as mock_run,
        ):
            mock_run.side_effect = subprocess.TimeoutExpired("ffmpeg", 10)
            info = detect_tool(FFMPEG_CONFIG)

        assert info.status is ToolStatus.ERROR

    def test_configured_path_preferred(self, temp_dir: Path):
        """An existing configured path is used without a PATH lookup."""
        configured = temp_dir / "ffmpeg"
        configured.write_text("")
        with (
            patch("vodpack.tools.detection.shutil.which") as mock_which,
            patch("vodpack.tools.detection.subprocess.run") as mock_run,
        ):
            mock_run.return_value = _completed(stdout="ffmpeg version 7.0")
            info = detect_tool(FFMPEG_CONFIG, configured)

        mock_which.assert_not_called()
        assert info.path == configured

    def test_detect_all_tools(self):
        """All three tools are detected and missing ones listed."""
        def which(name):
            return None if name == "packager" else f"/usr/bin/{name}"

        with (
            patch("vodpack.tools.detection.shutil.which", side_effect=which),
            patch("vodpack.tools.detection.subprocess.run") as mock_run,
        ):
            mock_run.return_value = _completed(stdout="ffmpeg version 6.0")
            registry = detect_all_tools()

        assert registry.is_available("ffmpeg")
        assert registry.is_available("ffprobe")
        assert registry.get_missing_tools() == ["packager"]

    def test_install_hint(self):
        """Known tools have install hints; unknown ones get an empty string."""
        assert "shaka-packager" in get_install_hint("packager")
        assert get_install_hint("unknown") == ""
