"""Hardware acceleration backend detection and hybrid selection.

A backend is offered only when ffmpeg reports both its acceleration method
and its HEVC hardware encoder. Software encoding is always available and
always listed last.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path

from vodpack.renditions import Codec
from vodpack.tools.detection import list_encoders, list_hwaccels

logger = logging.getLogger(__name__)

SOFTWARE_VP9_ENCODER = "libvpx-vp9"


class HardwareMethod(Enum):
    """Hardware acceleration method identifiers."""

    NVIDIA = "nvidia"
    QSV = "qsv"
    AMF = "amf"
    VAAPI = "vaapi"
    VIDEOTOOLBOX = "videotoolbox"
    SOFTWARE = "software"


@dataclass(frozen=True)
class HardwareBackend:
    """Capabilities of one encoding backend."""

    method: HardwareMethod
    label: str
    hevc_encoder: str
    vp9_encoder: str
    scale_filter: str
    hwaccel: str | None = None
    hwaccel_output_format: str | None = None
    supports_vp9_hw: bool = False
    supports_hevc_10bit: bool = True
    supports_vp9_10bit: bool = False

    @property
    def is_software(self) -> bool:
        return self.method is HardwareMethod.SOFTWARE

    def backend_for(self, codec: Codec) -> HardwareBackend:
        """A single backend serves both codecs."""
        return self


@dataclass(frozen=True)
class HybridBackendPair:
    """Two distinct backends: one for HEVC, one for VP9."""

    hevc: HardwareBackend
    vp9: HardwareBackend

    @property
    def label(self) -> str:
        return f"Hybrid: {self.hevc.label} (HEVC) + {self.vp9.label} (VP9)"

    def backend_for(self, codec: Codec) -> HardwareBackend:
        return self.vp9 if codec is Codec.VP9 else self.hevc


@dataclass(frozen=True)
class _BackendProfile:
    """Static description used to match ffmpeg's reported capabilities."""

    backend: HardwareBackend
    required_hwaccels: frozenset[str]
    hw_vp9_encoder: str | None = None


SOFTWARE_BACKEND = HardwareBackend(
    method=HardwareMethod.SOFTWARE,
    label="Software (CPU)",
    hevc_encoder="libx265",
    vp9_encoder=SOFTWARE_VP9_ENCODER,
    scale_filter="scale",
    supports_vp9_10bit=True,
)

_HARDWARE_PROFILES: tuple[_BackendProfile, ...] = (
    _BackendProfile(
        HardwareBackend(
            method=HardwareMethod.NVIDIA,
            label="NVIDIA NVENC",
            hevc_encoder="hevc_nvenc",
            vp9_encoder=SOFTWARE_VP9_ENCODER,
            scale_filter="scale_cuda",
            hwaccel="cuda",
            hwaccel_output_format="cuda",
        ),
        frozenset({"cuda"}),
    ),
    _BackendProfile(
        HardwareBackend(
            method=HardwareMethod.QSV,
            label="Intel Quick Sync",
            hevc_encoder="hevc_qsv",
            vp9_encoder=SOFTWARE_VP9_ENCODER,
            scale_filter="scale_qsv",
            hwaccel="qsv",
            hwaccel_output_format="qsv",
        ),
        frozenset({"qsv"}),
        hw_vp9_encoder="vp9_qsv",
    ),
    _BackendProfile(
        HardwareBackend(
            method=HardwareMethod.AMF,
            label="AMD AMF",
            hevc_encoder="hevc_amf",
            vp9_encoder=SOFTWARE_VP9_ENCODER,
            scale_filter="scale",
            hwaccel="auto",
        ),
        frozenset({"d3d11va", "dxva2"}),
    ),
    _BackendProfile(
        HardwareBackend(
            method=HardwareMethod.VAAPI,
            label="VA-API (Linux)",
            hevc_encoder="hevc_vaapi",
            vp9_encoder=SOFTWARE_VP9_ENCODER,
            scale_filter="scale_vaapi",
            hwaccel="vaapi",
            hwaccel_output_format="vaapi",
        ),
        frozenset({"vaapi"}),
        hw_vp9_encoder="vp9_vaapi",
    ),
    _BackendProfile(
        HardwareBackend(
            method=HardwareMethod.VIDEOTOOLBOX,
            label="VideoToolbox (macOS)",
            hevc_encoder="hevc_videotoolbox",
            vp9_encoder=SOFTWARE_VP9_ENCODER,
            scale_filter="scale",
            hwaccel="videotoolbox",
        ),
        frozenset({"videotoolbox"}),
    ),
)

HEVC_PRIORITY: tuple[HardwareMethod, ...] = (
    HardwareMethod.NVIDIA,
    HardwareMethod.QSV,
    HardwareMethod.AMF,
    HardwareMethod.VAAPI,
    HardwareMethod.VIDEOTOOLBOX,
    HardwareMethod.SOFTWARE,
)

VP9_PRIORITY: tuple[HardwareMethod, ...] = (
    HardwareMethod.QSV,
    HardwareMethod.VAAPI,
    HardwareMethod.SOFTWARE,
)


def backends_from_capabilities(
    hwaccels: set[str], encoders: set[str]
) -> list[HardwareBackend]:
    """Match ffmpeg's reported capabilities against the known backends.

    Args:
        hwaccels: Methods listed by ffmpeg -hwaccels.
        encoders: Encoder names listed by ffmpeg -encoders.

    Returns:
        Available backends in priority order, software last.
    """
    backends: list[HardwareBackend] = []
    for profile in _HARDWARE_PROFILES:
        backend = profile.backend
        if not profile.required_hwaccels & hwaccels:
            continue
        if backend.hevc_encoder not in encoders:
            continue
        if profile.hw_vp9_encoder and profile.hw_vp9_encoder in encoders:
            backend = replace(
                backend, vp9_encoder=profile.hw_vp9_encoder, supports_vp9_hw=True
            )
        backends.append(backend)

    backends.append(SOFTWARE_BACKEND)
    return backends


def detect_backends(ffmpeg_path: Path | None = None) -> list[HardwareBackend]:
    """Detect the encoding backends usable on this machine.

    The accelerations list and encoder list are queried concurrently. If
    ffmpeg cannot be queried, only the software backend is returned.
    """
    if ffmpeg_path is None:
        from vodpack.executor.interface import require_tool

        ffmpeg_path = require_tool("ffmpeg")

    with ThreadPoolExecutor(max_workers=2) as pool:
        hwaccels_future = pool.submit(list_hwaccels, ffmpeg_path)
        encoders_future = pool.submit(list_encoders, ffmpeg_path)
        hwaccels = hwaccels_future.result()
        encoders = encoders_future.result()

    backends = backends_from_capabilities(hwaccels, encoders)
    logger.info(
        "Detected encoding backends: %s",
        ", ".join(b.method.value for b in backends),
    )
    return backends


def _first_by_priority(
    backends: list[HardwareBackend],
    priority: tuple[HardwareMethod, ...],
    *,
    require_vp9_hw: bool = False,
) -> HardwareBackend | None:
    by_method = {b.method: b for b in backends}
    for method in priority:
        backend = by_method.get(method)
        if backend is None:
            continue
        if require_vp9_hw and not backend.is_software and not backend.supports_vp9_hw:
            continue
        return backend
    return None


def build_hybrid(backends: list[HardwareBackend]) -> HybridBackendPair | None:
    """Pick the best backend per codec and pair them when that pays off.

    A pair is returned only when the VP9 choice is a hardware VP9 encoder
    and differs from the HEVC choice.
    """
    hevc = _first_by_priority(backends, HEVC_PRIORITY)
    vp9 = _first_by_priority(backends, VP9_PRIORITY, require_vp9_hw=True)
    if hevc is None or vp9 is None:
        return None
    if hevc.method is vp9.method or not vp9.supports_vp9_hw:
        return None
    return HybridBackendPair(hevc=hevc, vp9=vp9)


@dataclass(frozen=True)
class SelectionOption:
    """One entry of the backend choice offered to the user."""

    label: str
    selection: HardwareBackend | HybridBackendPair
    is_hybrid: bool = False


def build_selection_options(
    backends: list[HardwareBackend], hybrid: HybridBackendPair | None = None
) -> list[SelectionOption]:
    """List the backend choices, the hybrid pair (if any) first."""
    options: list[SelectionOption] = []
    if hybrid is not None:
        options.append(SelectionOption(hybrid.label, hybrid, is_hybrid=True))
    options.extend(SelectionOption(b.label, b) for b in backends)
    return options
