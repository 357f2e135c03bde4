"""Tests for the vodpack probe command."""

import json
from unittest.mock import patch

from vodpack.cli import main
from vodpack.cli.exit_codes import ExitCode
from vodpack.exceptions import ResolutionTooLowError, ToolUnavailableError


class TestProbeCommand:
    """Tests for vodpack probe."""

    def test_file_not_found(self, runner, cli_obj, temp_dir):
        """A missing source exits with the invalid-source code."""
        result = runner.invoke(
            main, ["probe", str(temp_dir / "missing.mkv")], obj=cli_obj
        )

        assert result.exit_code == ExitCode.SOURCE_INVALID
        assert "File not found" in result.output

    def test_json_output(self, runner, cli_obj, temp_dir, hdr10_4k_media):
        """JSON output reports dynamic range and subtitle kinds."""
        source = temp_dir / "movie.mkv"
        source.touch()

        with (
            patch("vodpack.cli.probe.setup_tools"),
            patch("vodpack.cli.probe.FFprobeIntrospector") as mock_cls,
        ):
            mock_cls.return_value.probe.return_value = hdr10_4k_media
            result = runner.invoke(
                main, ["probe", str(source), "--format", "json"], obj=cli_obj
            )

        assert result.exit_code == 0
        data = json.loads(result.output)
        assert data["video"]["dynamic_range"] == "HDR10"
        assert data["subtitles"][0]["kind"] == "forced"

    def test_low_resolution_rejected(self, runner, cli_obj, temp_dir):
        """Sources below 720p are rejected with their height in the message."""
        source = temp_dir / "sd.mkv"
        source.touch()

        with (
            patch("vodpack.cli.probe.setup_tools"),
            patch("vodpack.cli.probe.FFprobeIntrospector") as mock_cls,
        ):
            mock_cls.return_value.probe.side_effect = ResolutionTooLowError(480)
            result = runner.invoke(main, ["probe", str(source)], obj=cli_obj)

        assert result.exit_code == ExitCode.SOURCE_INVALID
        assert "480p" in result.output

    def test_ffprobe_missing(self, runner, cli_obj, temp_dir):
        """A missing ffprobe exits with the tool-unavailable code."""
        source = temp_dir / "movie.mkv"
        source.touch()

        with (
            patch("vodpack.cli.probe.setup_tools"),
            patch("vodpack.cli.probe.FFprobeIntrospector") as mock_cls,
        ):
            mock_cls.return_value.probe.side_effect = ToolUnavailableError("ffprobe")
            result = runner.invoke(main, ["probe", str(source)], obj=cli_obj)

        assert result.exit_code == ExitCode.TOOL_NOT_AVAILABLE
