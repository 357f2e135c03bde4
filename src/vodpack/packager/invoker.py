"""Shaka Packager invocation.

Runs the packager once over every stream descriptor, producing an HLS
master playlist and a static DASH manifest in the output directory. The
packager logs to stderr; those lines are streamed to the caller as they
arrive.
"""

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from pathlib import Path

from vodpack.exceptions import PackagingFailedError
from vodpack.executor.ffmpeg_base import run_supervised
from vodpack.executor.interface import require_tool
from vodpack.logging.runlog import NullRunLog, RunLog
from vodpack.packager.descriptors import (
    AUDIO_DIR,
    SUBTITLE_DIR,
    VIDEO_DIR,
    PackagerStreamDescriptor,
)

logger = logging.getLogger(__name__)

SEGMENT_DURATION = 5
FRAGMENT_DURATION = 5
HLS_MASTER_NAME = "master.m3u8"
DASH_MANIFEST_NAME = "manifest.mpd"


@dataclass(frozen=True)
class PackagerOutput:
    """Durable artifacts of a packaging run."""

    hls_master_playlist: Path
    dash_manifest: Path
    output_dir: Path


def build_packager_args(
    descriptors: Sequence[PackagerStreamDescriptor], output_dir: Path
) -> list[str]:
    """Build the packager argument list (without the program name)."""
    args = [d.to_arg() for d in descriptors]
    args.extend(
        [
            "--segment_duration",
            str(SEGMENT_DURATION),
            "--fragment_duration",
            str(FRAGMENT_DURATION),
            "--mpd_output",
            str(output_dir / DASH_MANIFEST_NAME),
            "--hls_master_playlist_output",
            str(output_dir / HLS_MASTER_NAME),
            "--generate_static_live_mpd",
        ]
    )
    return args


class PackagerInvoker:
    """Runs Shaka Packager over a set of stream descriptors."""

    def __init__(
        self,
        packager_path: Path | None = None,
        timeout: float | None = None,
        run_log: RunLog | None = None,
    ) -> None:
        self._tool_path = packager_path
        self._timeout = timeout
        self.run_log: RunLog = run_log or NullRunLog()

    @property
    def tool_path(self) -> Path:
        """Get path to packager, verifying availability.

        Raises:
            ToolUnavailableError: If packager is not available.
        """
        if self._tool_path is None:
            self._tool_path = require_tool("packager")
        return self._tool_path

    def package(
        self,
        descriptors: Sequence[PackagerStreamDescriptor],
        output_dir: Path,
        on_output: Callable[[str], None] | None = None,
    ) -> PackagerOutput:
        """Package the streams into HLS and DASH.

        Args:
            descriptors: One descriptor per elementary stream.
            output_dir: Run output directory; inputs are resolved against it.
            on_output: Receives each non-empty packager log line as it is
                written, without the trailing newline.

        Returns:
            PackagerOutput with the manifest paths.

        Raises:
            PackagingFailedError: If the packager cannot run, times out or
                exits non-zero.
        """
        output_dir = output_dir.resolve()
        self.run_log.section("Packaging with Shaka Packager")
        for subdir in (VIDEO_DIR, AUDIO_DIR, SUBTITLE_DIR):
            (output_dir / subdir).mkdir(parents=True, exist_ok=True)

        for descriptor in descriptors:
            self.run_log.info(f"Stream: {descriptor.stream_type} - {descriptor.input}")

        args = build_packager_args(descriptors, output_dir)
        cmd = [str(self.tool_path), *args]
        self.run_log.command(cmd[0], args)
        logger.info(
            "Running packager over %d streams in %s", len(descriptors), output_dir
        )

        def forward(line: str) -> None:
            text = line.rstrip()
            if text and on_output is not None:
                on_output(text)

        success, rc, stderr = run_supervised(
            cmd,
            "packager",
            timeout=self._timeout,
            line_callback=forward,
            cwd=output_dir,
        )
        if not success:
            logger.error("Packager exited with code %d", rc)
            self.run_log.error(f"Packager exited with code {rc}")
            self.run_log.output(f"STDERR:\n{stderr}")
            raise PackagingFailedError(rc, stderr=stderr)

        output = PackagerOutput(
            hls_master_playlist=output_dir / HLS_MASTER_NAME,
            dash_manifest=output_dir / DASH_MANIFEST_NAME,
            output_dir=output_dir,
        )
        logger.info("Packaging complete: %s", output.hls_master_playlist)
        self.run_log.info("Packaging complete")
        self.run_log.info(f"HLS Playlist: {output.hls_master_playlist}")
        self.run_log.info(f"DASH Manifest: {output.dash_manifest}")
        return output
