"""Audio and subtitle extraction to intermediate files.

Each track is extracted by its relative index among streams of its type
(-map 0:a:N / 0:s:N); absolute stream indexes shift between inputs with
different track mixes. A track that fails to extract is logged and left
out of the result; extraction never aborts a run.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

from vodpack.exceptions import ExtractionFailedError
from vodpack.executor.ffmpeg_base import FFmpegExecutorBase
from vodpack.introspector.models import (
    AudioLayout,
    AudioTrack,
    SubtitleKind,
    SubtitleTrack,
)

logger = logging.getLogger(__name__)

# (codec, bitrate) per channel layout
AUDIO_ENCODING: dict[AudioLayout, tuple[str, str]] = {
    AudioLayout.STEREO: ("aac", "128k"),
    AudioLayout.SURROUND_5_1: ("eac3", "640k"),
    AudioLayout.ATMOS: ("eac3", "768k"),
}

_SUBTITLE_SUFFIX: dict[SubtitleKind, str] = {
    SubtitleKind.FORCED: "_forced",
    SubtitleKind.SDH: "_sdh",
    SubtitleKind.STANDARD: "",
}


def audio_filename(track: AudioTrack) -> str:
    return f"audio_{track.language}_{track.index}.mp4"


def subtitle_filename(track: SubtitleTrack, taken: set[str] | None = None) -> str:
    """Name a subtitle file by language and kind.

    When the name is already in taken (two tracks with the same language
    and kind), the track index is appended.
    """
    name = f"sub_{track.language}{_SUBTITLE_SUFFIX[track.kind]}.vtt"
    if taken and name in taken:
        name = f"sub_{track.language}{_SUBTITLE_SUFFIX[track.kind]}_{track.index}.vtt"
    return name


class StreamExtractor(FFmpegExecutorBase):
    """Extracts audio and subtitle tracks with ffmpeg."""

    def _extract(self, cmd: list[str], kind: str, index: int) -> None:
        """Run an extraction whose last argument is the output file."""
        success, rc, stderr = self._run_ffmpeg_with_timeout(
            cmd, f"{kind} track {index} extraction"
        )
        if not success:
            self.run_log.output(stderr)
            self._discard_partial(Path(cmd[-1]))
            raise ExtractionFailedError(kind, index, f"ffmpeg exited with code {rc}")

    def extract_subtitle(
        self, source: Path, track: SubtitleTrack, output_path: Path
    ) -> None:
        """Convert one subtitle track to WebVTT.

        Raises:
            ExtractionFailedError: If ffmpeg fails.
        """
        cmd = [
            str(self.tool_path),
            "-y",
            "-hide_banner",
            "-i",
            str(source),
            "-map",
            f"0:s:{track.index}",
            "-c:s",
            "webvtt",
            str(output_path),
        ]
        self._extract(cmd, "subtitle", track.index)

    def extract_audio_track(
        self, source: Path, track: AudioTrack, output_path: Path
    ) -> None:
        """Encode one audio track to AAC (stereo) or E-AC3 (surround).

        Raises:
            ExtractionFailedError: If ffmpeg fails.
        """
        codec, bitrate = AUDIO_ENCODING[track.layout]
        cmd = [
            str(self.tool_path),
            "-y",
            "-hide_banner",
            "-i",
            str(source),
            "-map",
            f"0:a:{track.index}",
            "-c:a",
            codec,
            "-b:a",
            bitrate,
            "-vn",
            str(output_path),
        ]
        self._extract(cmd, "audio", track.index)

    def extract_subtitles(
        self,
        source: Path,
        output_dir: Path,
        tracks: Iterable[SubtitleTrack],
        skip_if_exists: bool = False,
    ) -> dict[int, Path]:
        """Extract every subtitle track to WebVTT.

        Returns:
            Map of relative subtitle index to extracted file, for the tracks
            that were extracted (or already present when skip_if_exists).
        """
        self.run_log.section("Extracting subtitles")
        extracted: dict[int, Path] = {}
        taken: set[str] = set()
        for track in tracks:
            output_path = output_dir / subtitle_filename(track, taken)
            taken.add(output_path.name)

            if skip_if_exists and output_path.exists():
                logger.info("Subtitle %s already exists, skipping", output_path.name)
                extracted[track.index] = output_path
                continue

            try:
                self.extract_subtitle(source, track, output_path)
            except ExtractionFailedError as e:
                logger.warning("%s; omitting it from the package", e)
                self.run_log.warn(str(e))
                continue

            logger.info("Extracted subtitle %d to %s", track.index, output_path.name)
            extracted[track.index] = output_path
        return extracted

    def extract_audio(
        self,
        source: Path,
        output_dir: Path,
        tracks: Iterable[AudioTrack],
        skip_if_exists: bool = False,
    ) -> dict[int, Path]:
        """Extract every audio track.

        Returns:
            Map of relative audio index to extracted file.
        """
        self.run_log.section("Extracting audio")
        extracted: dict[int, Path] = {}
        for track in tracks:
            output_path = output_dir / audio_filename(track)

            if skip_if_exists and output_path.exists():
                logger.info("Audio %s already exists, skipping", output_path.name)
                extracted[track.index] = output_path
                continue

            try:
                self.extract_audio_track(source, track, output_path)
            except ExtractionFailedError as e:
                logger.warning("%s; omitting it from the package", e)
                self.run_log.warn(str(e))
                continue

            logger.info("Extracted audio %d to %s", track.index, output_path.name)
            extracted[track.index] = output_path
        return extracted
