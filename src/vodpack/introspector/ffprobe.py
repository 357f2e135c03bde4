"""ffprobe-based media prober."""

import json
import subprocess  # nosec B404 - runs ffprobe
from pathlib import Path

from vodpack.exceptions import ProbeFailedError, SourceNotFoundError
from vodpack.executor.interface import require_tool
from vodpack.introspector.models import MediaDescriptor
from vodpack.introspector.parsers import parse_ffprobe_output

PROBE_TIMEOUT = 60

_PROBE_FLAGS = (
    "-v", "error",
    "-print_format", "json",
    "-show_format",
    "-show_streams",
)  # fmt: skip


class FFprobeIntrospector:
    """Probes a source file with ffprobe and classifies its streams.

    The ffprobe path may be given explicitly; otherwise it comes from the
    tool registry the first time a probe runs.
    """

    def __init__(self, ffprobe_path: Path | None = None) -> None:
        self._ffprobe_path = ffprobe_path

    @property
    def ffprobe_path(self) -> Path:
        if self._ffprobe_path is None:
            self._ffprobe_path = require_tool("ffprobe")
        return self._ffprobe_path

    def probe(self, path: Path) -> MediaDescriptor:
        """Describe the source at ``path``.

        Raises:
            SourceNotFoundError: No file at ``path``.
            ProbeFailedError: ffprobe errored, hung, or produced unusable JSON.
            NoVideoStreamError: The file carries no video stream.
            ResolutionTooLowError: The video is shorter than 720 lines.
            ToolUnavailableError: ffprobe is not installed.
        """
        if not path.exists():
            raise SourceNotFoundError(path)
        return parse_ffprobe_output(path, self._probe_json(path))

    def _probe_json(self, path: Path) -> dict:
        try:
            result = subprocess.run(  # nosec B603 - resolved ffprobe, fixed flags
                [str(self.ffprobe_path), *_PROBE_FLAGS, str(path)],
                capture_output=True,
                text=True,
                errors="replace",
                check=True,
                timeout=PROBE_TIMEOUT,
            )
            data = json.loads(result.stdout)
        except subprocess.TimeoutExpired as e:
            raise ProbeFailedError(
                f"ffprobe timed out for {path} after {e.timeout}s"
            ) from e
        except subprocess.CalledProcessError as e:
            raise ProbeFailedError(f"ffprobe failed for {path}: {e.stderr or e}") from e
        except json.JSONDecodeError as e:
            raise ProbeFailedError(f"Invalid ffprobe output for {path}: {e}") from e
        except OSError as e:
            raise ProbeFailedError(f"Could not run ffprobe for {path}: {e}") from e

        if not isinstance(data, dict):
            raise ProbeFailedError(f"Missing 'streams' in ffprobe output for {path}")
        for key in ("streams", "format"):
            if key not in data:
                raise ProbeFailedError(
                    f"Missing '{key}' in ffprobe output for {path}; "
                    "the file is probably truncated or not a media file"
                )
        return data


def probe(path: Path, ffprobe_path: Path | None = None) -> MediaDescriptor:
    """Probe a source file with ffprobe. See FFprobeIntrospector.probe."""
    return FFprobeIntrospector(ffprobe_path).probe(path)
