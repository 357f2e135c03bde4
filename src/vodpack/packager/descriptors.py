"""Stream descriptors for Shaka Packager.

Every elementary stream handed to the packager is described by one
comma-joined key=value argument. Inputs are referenced relative to the
output directory (tmp/<name>) because the packager runs with the output
directory as its working directory.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from vodpack.introspector.models import AudioTrack, SubtitleKind, SubtitleTrack
from vodpack.renditions import Codec

INTERMEDIATE_DIR = "tmp"
VIDEO_DIR = "videos"
AUDIO_DIR = "audio"
SUBTITLE_DIR = "subtitles"

# Options appended to a subtitle descriptor per subtitle kind
SUBTITLE_ROLE_OPTIONS: dict[SubtitleKind, tuple[tuple[str, str], ...]] = {
    SubtitleKind.FORCED: (
        ("forced_subtitle", "1"),
        ("dash_roles", "forced-subtitle"),
    ),
    SubtitleKind.SDH: (
        ("dash_roles", "caption"),
        ("hls_characteristics", "public.accessibility.describes-spoken-dialog"),
    ),
    SubtitleKind.STANDARD: (("dash_roles", "subtitle"),),
}


@dataclass(frozen=True)
class PackagerStreamDescriptor:
    """One packager input stream and where its segments go.

    Attributes:
        stream_type: "video", "audio" or "text".
        input: Input file, relative to the packager's working directory.
        output_base: Directory and file prefix for segments and playlist,
            e.g. "videos/1080p_vp9".
        options: Extra key=value options, in emission order.
    """

    stream_type: str
    input: str
    output_base: str
    options: tuple[tuple[str, str], ...] = field(default_factory=tuple)

    @property
    def init_segment(self) -> str:
        return f"{self.output_base}_init.mp4"

    @property
    def segment_template(self) -> str:
        return f"{self.output_base}_$Number$.m4s"

    @property
    def playlist_name(self) -> str:
        return f"{self.output_base}.m3u8"

    def fields(self) -> list[tuple[str, str]]:
        """All descriptor fields in the order the packager receives them."""
        head = [("in", self.input), ("stream", self.stream_type)]
        # format must precede the output paths for text streams
        head.extend((k, v) for k, v in self.options if k == "format")
        head.extend(
            [
                ("init_segment", self.init_segment),
                ("segment_template", self.segment_template),
                ("playlist_name", self.playlist_name),
            ]
        )
        head.extend((k, v) for k, v in self.options if k != "format")
        return head

    def to_arg(self) -> str:
        return ",".join(f"{key}={value}" for key, value in self.fields())

    def get(self, key: str) -> str | None:
        """Return the value of a descriptor field, or None."""
        for k, v in self.fields():
            if k == key:
                return v
        return None


def _relative_input(path: Path) -> str:
    return f"{INTERMEDIATE_DIR}/{path.name}"


def _safe_label(label: str | None, language: str) -> str:
    """Display name for a track; commas would split the descriptor."""
    if not label:
        return language.upper()
    return label.replace(",", " ").strip() or language.upper()


def video_descriptor(
    path: Path, quality: str, codec: Codec
) -> PackagerStreamDescriptor:
    return PackagerStreamDescriptor(
        stream_type="video",
        input=_relative_input(path),
        output_base=f"{VIDEO_DIR}/{quality}_{codec.value}",
    )


def audio_descriptor(path: Path, track: AudioTrack) -> PackagerStreamDescriptor:
    """Describe an extracted audio track.

    The output prefix carries the track index so that two tracks in the
    same language do not overwrite each other's segments.
    """
    language = track.language or "und"
    return PackagerStreamDescriptor(
        stream_type="audio",
        input=_relative_input(path),
        output_base=f"{AUDIO_DIR}/audio_{language}_{track.index}",
        options=(
            ("hls_group_id", "audio"),
            ("hls_name", _safe_label(track.title, language)),
            ("language", language),
        ),
    )


def subtitle_descriptor(path: Path, track: SubtitleTrack) -> PackagerStreamDescriptor:
    """Describe an extracted WebVTT subtitle track.

    No default flag is written; the packager picks the default within a
    language group by stream order.
    """
    language = track.language or "und"
    return PackagerStreamDescriptor(
        stream_type="text",
        input=_relative_input(path),
        output_base=f"{SUBTITLE_DIR}/{path.stem}",
        options=(
            ("format", "vtt+mp4"),
            ("hls_group_id", "subtitles"),
            ("hls_name", _safe_label(track.title, language)),
            ("language", language),
            *SUBTITLE_ROLE_OPTIONS[track.kind],
        ),
    )


def build_descriptors(
    videos: Iterable[tuple[Path, str, Codec]],
    audio: Iterable[tuple[Path, AudioTrack]] = (),
    subtitles: Iterable[tuple[Path, SubtitleTrack]] = (),
) -> list[PackagerStreamDescriptor]:
    """Build descriptors for every produced stream: video, then audio, then text.

    Args:
        videos: (file, quality, codec) for each video file actually produced.
        audio: (file, track) for each audio track actually extracted.
        subtitles: (file, track) for each subtitle track actually extracted.
    """
    descriptors = [video_descriptor(p, q, c) for p, q, c in videos]
    descriptors.extend(audio_descriptor(p, t) for p, t in audio)
    descriptors.extend(subtitle_descriptor(p, t) for p, t in subtitles)
    return descriptors
