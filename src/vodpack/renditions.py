"""Rendition catalog and per-source ladder.

The catalog is static. A run's ladder is the subset of tiers the source
can feed, keeping a tier when either its height or its width fits inside
the source, so unusual aspect ratios do not lose tiers.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from vodpack.introspector.models import VideoTrack


class Codec(Enum):
    """Output video codecs, each with its intermediate container."""

    VP9 = "vp9"
    HEVC = "hevc"

    @property
    def container(self) -> str:
        return "webm" if self is Codec.VP9 else "mp4"


@dataclass(frozen=True)
class Rendition:
    """One output quality tier.

    Bitrates are in kbit/s. maxrate/bufsize apply to the VP9 rate control;
    HEVC derives its own from hevc_bitrate.
    """

    quality: str
    width: int
    height: int
    vp9_bitrate: int
    hevc_bitrate: int
    maxrate: int
    bufsize: int
    preserve_hdr: bool
    label: str

    def bitrate_for(self, codec: Codec) -> int:
        return self.vp9_bitrate if codec is Codec.VP9 else self.hevc_bitrate


RENDITION_CATALOG: tuple[Rendition, ...] = (
    Rendition("2160p", 3840, 2160, 13500, 11000, 20000, 27000, True, "4K Ultra HD"),
    Rendition("1440p", 2560, 1440, 9000, 7000, 13500, 18000, True, "2K QHD"),
    Rendition("1080p", 1920, 1080, 6000, 5000, 9000, 12000, True, "Full HD"),
    Rendition("720p", 1280, 720, 3250, 2500, 5000, 6500, False, "HD"),
    Rendition("480p", 854, 480, 1500, 1150, 2250, 3000, False, "SD"),
)

_BY_QUALITY = {r.quality: r for r in RENDITION_CATALOG}


def get_all_renditions() -> list[Rendition]:
    """Return the full catalog, highest tier first."""
    return list(RENDITION_CATALOG)


def get_rendition(quality: str) -> Rendition:
    """Look up a catalog tier by quality label.

    Raises:
        KeyError: If the quality is not in the catalog.
    """
    try:
        return _BY_QUALITY[quality]
    except KeyError:
        raise KeyError(
            f"Unknown rendition {quality!r}; expected one of {sorted(_BY_QUALITY)}"
        ) from None


def build_ladder(source: VideoTrack) -> list[Rendition]:
    """Return the catalog tiers applicable to a source, in catalog order."""
    return [
        r
        for r in RENDITION_CATALOG
        if r.height <= source.height or r.width <= source.width
    ]


def filter_renditions(
    ladder: Iterable[Rendition], selected: Iterable[str]
) -> list[Rendition]:
    """Keep the ladder tiers whose quality is in selected, in ladder order."""
    wanted = set(selected)
    return [r for r in ladder if r.quality in wanted]
