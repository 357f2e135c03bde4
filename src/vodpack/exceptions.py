"""Custom exceptions for vodpack.

Source-validation errors abort a run before any work is scheduled.
Transcode and extraction errors describe a single job or track and are
handled by the pipeline without stopping the run. Packaging errors are
always terminal.
"""

from pathlib import Path


class VodpackError(Exception):
    """Base exception for all vodpack errors.

    Callers can catch every domain error with a single except clause.
    """


class ConfigError(VodpackError):
    """Raised when the configuration file cannot be parsed in strict mode."""


class SourceNotFoundError(VodpackError):
    """Raised when the source file does not exist.

    Attributes:
        path: The missing source path.
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"File not found: {path}")


class SourceValidationError(VodpackError):
    """Base class for sources that exist but cannot be packaged."""


class ProbeFailedError(SourceValidationError):
    """Raised when ffprobe fails or returns unusable output."""


class NoVideoStreamError(SourceValidationError):
    """Raised when the source has no video stream."""

    def __init__(self, path: Path) -> None:
        self.path = path
        super().__init__(f"No video stream found in {path}")


class ResolutionTooLowError(SourceValidationError):
    """Raised when the source video is shorter than 720 lines.

    Attributes:
        height: The height reported for the source video.
    """

    def __init__(self, height: int, minimum: int = 720) -> None:
        self.height = height
        self.minimum = minimum
        super().__init__(
            f"Source resolution too low: {height}p (minimum {minimum}p required)"
        )


class ToolUnavailableError(VodpackError):
    """Raised when a required external tool is not installed.

    Attributes:
        tool: Name of the missing tool (ffmpeg, ffprobe, packager).
    """

    def __init__(self, tool: str, hint: str | None = None) -> None:
        self.tool = tool
        message = f"Required tool not available: {tool}"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class TranscodeFailedError(VodpackError):
    """Raised when an encoder process exits with a non-zero status.

    Attributes:
        return_code: Exit status of the encoder (-1 on timeout).
        stderr_tail: The last part of the captured diagnostics.
    """

    TAIL_CHARS = 2000

    def __init__(self, return_code: int, stderr: str = "") -> None:
        self.return_code = return_code
        self.stderr_tail = stderr[-self.TAIL_CHARS :]
        super().__init__(f"FFmpeg exited with code {return_code}\n{self.stderr_tail}")


class ExtractionFailedError(VodpackError):
    """Raised when one audio or subtitle track cannot be extracted.

    Attributes:
        kind: "audio" or "subtitle".
        track_index: Relative index of the track among tracks of its kind.
    """

    def __init__(self, kind: str, track_index: int, reason: str) -> None:
        self.kind = kind
        self.track_index = track_index
        super().__init__(f"Failed to extract {kind} track {track_index}: {reason}")


class PackagingFailedError(VodpackError):
    """Raised when the packager exits with a non-zero status."""

    def __init__(self, return_code: int, stdout: str = "", stderr: str = "") -> None:
        self.return_code = return_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(
            f"Packager exited with code {return_code}\n"
            f"STDOUT: {stdout}\nSTDERR: {stderr}"
        )


class NothingToPackageError(VodpackError):
    """Raised when every transcode job failed, leaving no video to package."""

    def __init__(self) -> None:
        super().__init__("No video renditions were produced; nothing to package")
