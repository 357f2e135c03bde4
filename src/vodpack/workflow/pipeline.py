"""Pipeline orchestrator for a single source.

Sequences probe, ladder and backend selection, subtitle and audio
extraction, the per-rendition transcode loop (VP9 then HEVC), and
packaging. Jobs run one at a time. A failed transcode job is recorded
and the loop moves on; only the files actually produced are packaged.
"""

from __future__ import annotations

import logging
import shutil
import time
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from vodpack.exceptions import (
    NothingToPackageError,
    ToolUnavailableError,
    TranscodeFailedError,
    VodpackError,
)
from vodpack.executor.transcode.settings import EncodeSettings
from vodpack.executor.transcode.types import (
    TranscodeCallbacks,
    TranscodeJob,
    TranscodeResult,
)
from vodpack.introspector.models import AudioTrack, MediaDescriptor, SubtitleTrack
from vodpack.logging.runlog import NullRunLog, RunLog
from vodpack.packager.descriptors import (
    INTERMEDIATE_DIR,
    PackagerStreamDescriptor,
    build_descriptors,
)
from vodpack.packager.invoker import PackagerOutput
from vodpack.renditions import Codec, Rendition, build_ladder, filter_renditions
from vodpack.tools.detection import get_install_hint
from vodpack.tools.hardware import (
    HardwareBackend,
    HybridBackendPair,
    build_hybrid,
)
from vodpack.workflow.events import PipelineEvents
from vodpack.workflow.state import PipelineStep, can_transition

logger = logging.getLogger(__name__)

# Codecs are encoded in this order for every rendition
CODEC_ORDER: tuple[Codec, ...] = (Codec.VP9, Codec.HEVC)

BackendSelection = HardwareBackend | HybridBackendPair


class Prober(Protocol):
    def probe(self, path: Path) -> MediaDescriptor: ...


class Transcoder(Protocol):
    def execute(
        self, job: TranscodeJob, callbacks: TranscodeCallbacks | None = None
    ) -> TranscodeResult: ...


class Extractor(Protocol):
    def extract_subtitles(
        self,
        source: Path,
        output_dir: Path,
        tracks: Sequence[SubtitleTrack],
        skip_if_exists: bool = False,
    ) -> dict[int, Path]: ...

    def extract_audio(
        self,
        source: Path,
        output_dir: Path,
        tracks: Sequence[AudioTrack],
        skip_if_exists: bool = False,
    ) -> dict[int, Path]: ...


class Packager(Protocol):
    def package(
        self,
        descriptors: Sequence[PackagerStreamDescriptor],
        output_dir: Path,
        on_output: Callable[[str], None] | None = None,
    ) -> PackagerOutput: ...


@dataclass(frozen=True)
class FailedJob:
    """A transcode job that did not produce its output."""

    quality: str
    codec: Codec
    error: str


@dataclass
class PipelineResult:
    """Outcome of a completed pipeline run."""

    source: Path
    output_dir: Path
    media: MediaDescriptor | None = None
    videos: list[TranscodeResult] = field(default_factory=list)
    failed_jobs: list[FailedJob] = field(default_factory=list)
    audio_files: dict[int, Path] = field(default_factory=dict)
    subtitle_files: dict[int, Path] = field(default_factory=dict)
    packager_output: PackagerOutput | None = None
    elapsed_seconds: float = 0.0

    @property
    def video_files(self) -> list[Path]:
        return [v.output_path for v in self.videos]


def default_output_dir(source: Path) -> Path:
    """<source dir>/<source stem>_output"""
    return source.parent / f"{source.stem}_output"


def default_selection(
    backends: Sequence[HardwareBackend], hybrid: HybridBackendPair | None
) -> BackendSelection:
    """The hybrid pair when there is one, else the first (best) backend."""
    if hybrid is not None:
        return hybrid
    if not backends:
        raise VodpackError("No encoding backend available")
    return backends[0]


class Pipeline:
    """Drives one source through to an HLS/DASH package.

    Collaborators are injected so each stage can be replaced; from_config()
    builds the ffmpeg/ffprobe/packager backed ones.
    """

    def __init__(
        self,
        prober: Prober,
        detector: Callable[[], list[HardwareBackend]],
        transcoder: Transcoder,
        extractor: Extractor,
        packager: Packager,
        tool_checker: Callable[[], dict[str, bool]] | None = None,
        events: PipelineEvents | None = None,
        run_log: RunLog | None = None,
    ) -> None:
        self.prober = prober
        self.detector = detector
        self.transcoder = transcoder
        self.extractor = extractor
        self.packager = packager
        self.tool_checker = tool_checker
        self.events = events or PipelineEvents()
        self.run_log: RunLog = run_log or NullRunLog()
        self.step: PipelineStep | None = None

    @classmethod
    def from_config(
        cls,
        timeout: float | None = None,
        events: PipelineEvents | None = None,
        run_log: RunLog | None = None,
    ) -> Pipeline:
        """Build a pipeline over the configured external tools."""
        from vodpack.executor.extract import StreamExtractor
        from vodpack.executor.interface import check_tool_availability
        from vodpack.executor.transcode.executor import TranscodeExecutor
        from vodpack.introspector.ffprobe import FFprobeIntrospector
        from vodpack.packager.invoker import PackagerInvoker
        from vodpack.tools.hardware import detect_backends

        return cls(
            prober=FFprobeIntrospector(),
            detector=detect_backends,
            transcoder=TranscodeExecutor(timeout=timeout, run_log=run_log),
            extractor=StreamExtractor(timeout=timeout, run_log=run_log),
            packager=PackagerInvoker(timeout=timeout, run_log=run_log),
            tool_checker=check_tool_availability,
            events=events,
            run_log=run_log,
        )

    def _enter(self, step: PipelineStep, message: str | None = None) -> None:
        if not can_transition(self.step, step):
            raise VodpackError(f"Invalid pipeline transition {self.step} -> {step}")
        self.step = step
        logger.debug("Pipeline step: %s", step.value)
        self.events.emit("on_step", step, message)

    def check_tools(self) -> None:
        """Fail fast when a required external tool is missing.

        Raises:
            ToolUnavailableError: For the first missing tool.
        """
        if self.tool_checker is None:
            return
        availability = self.tool_checker()
        for name, available in availability.items():
            self.run_log.info(f"{name}: {'found' if available else 'missing'}")
            if not available:
                raise ToolUnavailableError(name, get_install_hint(name))

    def run(
        self,
        source: Path,
        output_dir: Path,
        settings: EncodeSettings,
        qualities: Sequence[str] | None = None,
        selection: BackendSelection | None = None,
        keep_intermediates: bool = False,
    ) -> PipelineResult:
        """Run the whole pipeline.

        Args:
            source: Source video file.
            output_dir: Package output directory; intermediates go in tmp/.
            settings: Encoder settings for the run mode.
            qualities: Restrict the ladder to these tiers (None = full ladder).
            selection: Backend or hybrid pair (None = default selection).
            keep_intermediates: Keep tmp/ after successful packaging.

        Returns:
            PipelineResult for the completed run.

        Raises:
            VodpackError: Any terminal error; the ERROR step is emitted first.
        """
        start = time.monotonic()
        result = PipelineResult(source=source, output_dir=output_dir)
        self.step = None
        self.run_log.info(f"Source: {source}")
        try:
            self._enter(PipelineStep.TOOL_CHECK)
            self.check_tools()

            self._enter(PipelineStep.PROBING)
            media = self.prober.probe(source)
            result.media = media
            self.run_log.info(
                f"Source video: {media.video.width}x{media.video.height} "
                f"{media.video.codec} {media.video.dynamic_range.value}"
            )

            self._enter(PipelineStep.SELECTING)
            renditions = self._select_renditions(media, qualities)
            if selection is None:
                backends = self.detector()
                selection = default_selection(backends, build_hybrid(backends))
            logger.info(
                "Selected %s for %s",
                selection.label,
                ", ".join(r.quality for r in renditions),
            )
            self.run_log.info(f"Hardware: {selection.label}")

            self._enter(PipelineStep.TRANSCODING)
            tmp_dir = prepare_output_dir(output_dir)
            skip = settings.skip_if_exists
            self.events.emit("on_message", "Extracting subtitles...")
            result.subtitle_files = self.extractor.extract_subtitles(
                source, tmp_dir, media.subtitles, skip
            )
            self.events.emit("on_message", "Extracting audio...")
            result.audio_files = self.extractor.extract_audio(
                source, tmp_dir, media.audio, skip
            )
            self._transcode_all(
                source, tmp_dir, media, renditions, selection, settings, result
            )

            self._enter(PipelineStep.PACKAGING)
            if not result.videos:
                raise NothingToPackageError()
            result.packager_output = self.packager.package(
                self._descriptors(media, result),
                output_dir,
                on_output=lambda line: self.events.emit("on_message", line),
            )

            if settings.is_dev or keep_intermediates:
                logger.info("Keeping intermediate files in %s", tmp_dir)
            else:
                remove_intermediates(tmp_dir)

            result.elapsed_seconds = time.monotonic() - start
            self._enter(PipelineStep.COMPLETE)
        except VodpackError as e:
            logger.error("Pipeline failed: %s", e)
            self.run_log.error(str(e))
            if self.step is None or not self.step.is_terminal:
                self.step = PipelineStep.ERROR
                self.events.emit("on_step", PipelineStep.ERROR, str(e))
            raise

        return result

    def _select_renditions(
        self, media: MediaDescriptor, qualities: Sequence[str] | None
    ) -> list[Rendition]:
        ladder = build_ladder(media.video)
        if qualities is None:
            return ladder
        selected = filter_renditions(ladder, qualities)
        if not selected:
            raise VodpackError(
                f"None of the requested qualities ({', '.join(qualities)}) "
                f"fit a {media.video.width}x{media.video.height} source"
            )
        return selected

    def _transcode_all(
        self,
        source: Path,
        tmp_dir: Path,
        media: MediaDescriptor,
        renditions: Sequence[Rendition],
        selection: BackendSelection,
        settings: EncodeSettings,
        result: PipelineResult,
    ) -> None:
        jobs = [
            TranscodeJob(
                rendition=rendition,
                codec=codec,
                input_path=source,
                output_dir=tmp_dir,
                backend=selection.backend_for(codec),
                settings=settings,
                media=media,
                skip_if_exists=settings.skip_if_exists,
            )
            for rendition in renditions
            for codec in CODEC_ORDER
        ]
        callbacks = TranscodeCallbacks(
            on_progress=lambda job, progress: self.events.emit(
                "on_progress", job, progress
            ),
            on_pass_complete=lambda job, n: self.events.emit(
                "on_pass_complete", job, n
            ),
        )

        for position, job in enumerate(jobs, start=1):
            self.events.emit("on_job_start", job, position, len(jobs))
            try:
                produced = self.transcoder.execute(job, callbacks)
            except TranscodeFailedError as e:
                logger.warning(
                    "Transcode %s failed, continuing: exit code %d",
                    job.name,
                    e.return_code,
                    extra={"quality": job.rendition.quality, "codec": job.codec.value},
                )
                self.run_log.error(f"{job.name} failed: {e}")
                result.failed_jobs.append(
                    FailedJob(job.rendition.quality, job.codec, str(e))
                )
                self.events.emit("on_job_error", job, e)
                continue
            result.videos.append(produced)
            self.events.emit("on_job_complete", produced)

        logger.info(
            "Transcoding finished: %d produced, %d failed",
            len(result.videos),
            len(result.failed_jobs),
        )

    def _descriptors(
        self, media: MediaDescriptor, result: PipelineResult
    ) -> list[PackagerStreamDescriptor]:
        audio_by_index = {t.index: t for t in media.audio}
        subtitles_by_index = {t.index: t for t in media.subtitles}
        return build_descriptors(
            videos=[
                (v.output_path, v.job.rendition.quality, v.job.codec)
                for v in result.videos
            ],
            audio=[
                (path, audio_by_index[idx])
                for idx, path in sorted(result.audio_files.items())
            ],
            subtitles=[
                (path, subtitles_by_index[idx])
                for idx, path in sorted(result.subtitle_files.items())
            ],
        )


def prepare_output_dir(output_dir: Path) -> Path:
    """Create the output directory and its tmp/ area; return tmp/."""
    tmp_dir = output_dir / INTERMEDIATE_DIR
    tmp_dir.mkdir(parents=True, exist_ok=True)
    return tmp_dir


def remove_intermediates(tmp_dir: Path) -> None:
    """Delete the intermediate directory; a failure is only logged."""
    try:
        shutil.rmtree(tmp_dir)
    except OSError as e:
        logger.warning("Could not remove intermediate files in %s: %s", tmp_dir, e)
        return
    logger.info("Removed intermediate files in %s", tmp_dir)
