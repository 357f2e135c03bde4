"""Tests for configuration model validation."""

import pytest

from vodpack.config.models import LoggingConfig, TranscodeConfig, VodpackConfig


class TestTranscodeConfig:
    """Tests for TranscodeConfig validation."""

    def test_accepts_modes_case_insensitively(self):
        """Mode names are validated without regard to case."""
        assert TranscodeConfig(mode="DEV").mode == "DEV"

    def test_rejects_unknown_mode(self):
        """Modes other than dev and prod are rejected."""
        with pytest.raises(ValueError):
            TranscodeConfig(mode="turbo")

    def test_rejects_non_positive_timeout(self):
        """A zero or negative timeout is rejected."""
        with pytest.raises(ValueError, match="timeout must be positive"):
            TranscodeConfig(timeout=0)


class TestLoggingConfig:
    """Tests for LoggingConfig validation."""

    def test_rejects_unknown_level(self):
        """Log levels outside debug..error are rejected."""
        with pytest.raises(ValueError):
            LoggingConfig(level="verbose")

    def test_rejects_unknown_format(self):
        """Log formats other than text and json are rejected."""
        with pytest.raises(ValueError):
            LoggingConfig(format="xml")


class TestVodpackConfig:
    """Tests for the top-level config model."""

    def test_unknown_tool_path_is_none(self):
        """Asking for a tool vodpack does not drive returns None."""
        assert VodpackConfig().get_tool_path("mkvmerge") is None
