"""Tests for the vodpack transcode command."""

from pathlib import Path
from unittest.mock import patch

import pytest

from vodpack.cli import main
from vodpack.cli.exit_codes import ExitCode
from vodpack.exceptions import NothingToPackageError, PackagingFailedError
from vodpack.packager.invoker import PackagerOutput
from vodpack.tools.hardware import SOFTWARE_BACKEND
from vodpack.workflow import PipelineResult


@pytest.fixture
def source(temp_dir) -> Path:
    path = temp_dir / "movie.mkv"
    path.touch()
    return path


@pytest.fixture
def mock_pipeline():
    with (
        patch("vodpack.cli.transcode.setup_tools"),
        patch("vodpack.cli.transcode.Pipeline") as mock_cls,
    ):
        yield mock_cls.from_config.return_value


def _result(source: Path) -> PipelineResult:
    output_dir = source.parent / "movie_output"
    return PipelineResult(
        source=source,
        output_dir=output_dir,
        packager_output=PackagerOutput(
            hls_master_playlist=output_dir / "master.m3u8",
            dash_manifest=output_dir / "manifest.mpd",
            output_dir=output_dir,
        ),
    )


class TestTranscodeCommand:
    """Tests for vodpack transcode."""

    def test_defaults(self, runner, cli_obj, source, mock_pipeline):
        """A bare source runs prod mode on the full ladder next to the input."""
        mock_pipeline.run.return_value = _result(source)

        result = runner.invoke(main, ["transcode", str(source)], obj=cli_obj)

        assert result.exit_code == 0, result.output
        args, kwargs = mock_pipeline.run.call_args
        assert args[0] == source
        assert args[1] == source.parent / "movie_output"
        assert args[2].mode == "prod"
        assert kwargs["qualities"] is None
        assert kwargs["selection"] is None
        assert kwargs["keep_intermediates"] is False
        assert "master.m3u8" in result.output

    def test_dev_writes_run_log(self, runner, cli_obj, source, mock_pipeline, temp_dir):
        """Dev mode writes a run log and passes the quality filter through."""
        mock_pipeline.run.return_value = _result(source)
        output_dir = temp_dir / "pkg"

        result = runner.invoke(
            main,
            ["transcode", str(source), str(output_dir), "--dev", "-q", "720p"],
            obj=cli_obj,
        )

        assert result.exit_code == 0, result.output
        assert "Run log:" in result.output
        assert list(output_dir.glob("transcode_*.log"))
        args, kwargs = mock_pipeline.run.call_args
        assert args[2].mode == "dev"
        assert kwargs["qualities"] == ["720p"]

    def test_missing_source(self, runner, cli_obj, temp_dir):
        """A nonexistent source exits with the invalid-source code."""
        result = runner.invoke(
            main, ["transcode", str(temp_dir / "missing.mkv")], obj=cli_obj
        )

        assert result.exit_code == ExitCode.SOURCE_INVALID

    def test_hw_and_hybrid_conflict(self, runner, cli_obj, source):
        """--hw and --hybrid cannot be combined."""
        result = runner.invoke(
            main,
            ["transcode", str(source), "--hw", "software", "--hybrid"],
            obj=cli_obj,
        )

        assert result.exit_code != 0
        assert "mutually exclusive" in result.output

    def test_unavailable_backend(self, runner, cli_obj, source, mock_pipeline):
        """Requesting an undetected backend fails before the pipeline runs."""
        with patch(
            "vodpack.cli.transcode.detect_backends", return_value=[SOFTWARE_BACKEND]
        ):
            result = runner.invoke(
                main, ["transcode", str(source), "--hw", "nvidia"], obj=cli_obj
            )

        assert result.exit_code == 1
        assert "not available" in result.output
        mock_pipeline.run.assert_not_called()

    def test_software_backend_selected(self, runner, cli_obj, source, mock_pipeline):
        """--hw software hands the software backend to the pipeline."""
        mock_pipeline.run.return_value = _result(source)
        with patch(
            "vodpack.cli.transcode.detect_backends", return_value=[SOFTWARE_BACKEND]
        ):
            result = runner.invoke(
                main, ["transcode", str(source), "--hw", "software"], obj=cli_obj
            )

        assert result.exit_code == 0, result.output
        assert mock_pipeline.run.call_args[1]["selection"] is SOFTWARE_BACKEND

    def test_packaging_failure_exit_code(self, runner, cli_obj, source, mock_pipeline):
        """Packager failures map to their own exit code."""
        mock_pipeline.run.side_effect = PackagingFailedError(1, "", "bad descriptor")

        result = runner.invoke(main, ["transcode", str(source)], obj=cli_obj)

        assert result.exit_code == ExitCode.PACKAGING_FAILED
        assert "bad descriptor" in result.output

    def test_nothing_to_package(self, runner, cli_obj, source, mock_pipeline):
        """A run where every job failed exits with the general error code."""
        mock_pipeline.run.side_effect = NothingToPackageError()

        result = runner.invoke(main, ["transcode", str(source)], obj=cli_obj)

        assert result.exit_code == ExitCode.GENERAL_ERROR
        assert "nothing to package" in result.output
