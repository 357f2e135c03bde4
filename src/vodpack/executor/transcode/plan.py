"""Encode plan synthesis.

Pure decision logic: for a rendition, a codec and a backend, decide whether
to tone-map, whether to decode on the GPU, which filter chain to run and
which encoder arguments to pass on each pass. Encoder arguments come from
a table keyed on (method, codec).
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from vodpack.executor.transcode.settings import EncodeSettings
from vodpack.executor.transcode.types import EncodePlan
from vodpack.introspector.models import DynamicRange
from vodpack.renditions import Codec, Rendition
from vodpack.tools.hardware import HardwareBackend, HardwareMethod

GOP_SIZE = "120"

# Software tone-map: linear light, Hable curve, re-quantize to BT.709 SDR
TONEMAP_FILTER = (
    "zscale=t=linear:npl=100,format=gbrpf32le,zscale=p=bt709,"
    "tonemap=tonemap=hable:desat=0,zscale=t=bt709:m=bt709:r=tv,format=yuv420p"
)

# Filters that move CPU-resident frames into the form a hardware encoder reads
_UPLOAD_FILTERS: dict[HardwareMethod, str] = {
    HardwareMethod.NVIDIA: "hwupload_cuda",
    HardwareMethod.QSV: "format=nv12",
    HardwareMethod.VAAPI: "format=nv12,hwupload",
}

VAAPI_DEVICE = "/dev/dri/renderD128"

_HW_VP9_METHODS = frozenset({HardwareMethod.QSV, HardwareMethod.VAAPI})


def uses_hw_vp9(codec: Codec, backend: HardwareBackend) -> bool:
    """True when VP9 is encoded by a QSV/VAAPI hardware encoder."""
    return (
        codec is Codec.VP9
        and backend.method in _HW_VP9_METHODS
        and backend.supports_vp9_hw
    )


def uses_hw_encoder(codec: Codec, backend: HardwareBackend) -> bool:
    if codec is Codec.VP9:
        return uses_hw_vp9(codec, backend)
    return not backend.is_software


def needs_tonemap(
    rendition: Rendition,
    codec: Codec,
    backend: HardwareBackend,
    dynamic_range: DynamicRange,
) -> bool:
    """Decide whether HDR must be tone-mapped to SDR.

    Hardware VP9 encoders are 8-bit only, so HDR sources are always
    tone-mapped for them regardless of the tier's preserve-HDR policy.
    """
    if not dynamic_range.is_hdr:
        return False
    if uses_hw_vp9(codec, backend):
        return True
    return not rendition.preserve_hdr


def use_hwaccel_input(codec: Codec, backend: HardwareBackend, tonemap: bool) -> bool:
    """Decide whether the decoder runs on the GPU.

    VP9 always decodes on the CPU. Tone-mapping runs in software and needs
    CPU frames, so HEVC decodes on the GPU only when not tone-mapping.
    """
    if backend.is_software or backend.hwaccel is None:
        return False
    if codec is Codec.VP9:
        return False
    return not tonemap


def build_filter_chain(
    rendition: Rendition,
    codec: Codec,
    backend: HardwareBackend,
    tonemap: bool,
    hwaccel_input: bool,
) -> str:
    """Build the -vf chain.

    Width is -2 so the encoder gets an even width that keeps the aspect
    ratio. Device scale filters are only usable on GPU-decoded frames;
    CPU frames bound for a hardware encoder get an upload/format tail.
    """
    height = rendition.height

    if tonemap:
        chain = f"{TONEMAP_FILTER},scale=-2:{height}"
    elif hwaccel_input and backend.scale_filter != "scale":
        chain = f"{backend.scale_filter}=w=-2:h={height}"
    else:
        chain = f"scale=-2:{height}"

    if not hwaccel_input and uses_hw_encoder(codec, backend):
        upload = _UPLOAD_FILTERS.get(backend.method)
        if upload:
            chain = f"{chain},{upload}"

    return chain


def build_input_args(
    codec: Codec, backend: HardwareBackend, hwaccel_input: bool
) -> tuple[str, ...]:
    """Arguments placed before -i."""
    if hwaccel_input and backend.hwaccel:
        args = ["-hwaccel", backend.hwaccel]
        if backend.hwaccel_output_format:
            args += ["-hwaccel_output_format", backend.hwaccel_output_format]
        return tuple(args)
    if backend.method is HardwareMethod.VAAPI and uses_hw_encoder(codec, backend):
        # hwupload needs a VAAPI device when frames come from the CPU
        return ("-vaapi_device", VAAPI_DEVICE)
    return ()


# =============================================================================
# Encoder argument builders
# =============================================================================

ArgsBuilder = Callable[[Rendition, EncodeSettings], list[str]]


def _rate_args(bitrate: int, maxrate: int, bufsize: int) -> list[str]:
    return [
        "-b:v",
        f"{bitrate}k",
        "-maxrate",
        f"{maxrate}k",
        "-bufsize",
        f"{bufsize}k",
    ]


def _hevc_rate_args(rendition: Rendition) -> list[str]:
    bitrate = rendition.hevc_bitrate
    return _rate_args(bitrate, int(bitrate * 1.5), bitrate * 2)


def _vp9_qsv_args(rendition: Rendition, settings: EncodeSettings) -> list[str]:
    # vp9_qsv has no multi-pass rate control
    return [
        "-c:v",
        "vp9_qsv",
        *_rate_args(rendition.vp9_bitrate, rendition.maxrate, rendition.bufsize),
        "-g",
        GOP_SIZE,
        "-low_power",
        "1",
    ]


def _vp9_vaapi_args(rendition: Rendition, settings: EncodeSettings) -> list[str]:
    return [
        "-c:v",
        "vp9_vaapi",
        *_rate_args(rendition.vp9_bitrate, rendition.maxrate, rendition.bufsize),
        "-g",
        GOP_SIZE,
        "-keyint_min",
        GOP_SIZE,
    ]


def _libvpx_base_args(rendition: Rendition, settings: EncodeSettings) -> list[str]:
    return [
        "-c:v",
        "libvpx-vp9",
        "-b:v",
        f"{rendition.vp9_bitrate}k",
        "-g",
        GOP_SIZE,
        "-keyint_min",
        GOP_SIZE,
        "-deadline",
        settings.vp9_deadline,
        "-cpu-used",
        str(settings.vp9_cpu_used),
        "-row-mt",
        "1",
        "-tile-columns",
        "2",
        "-tile-rows",
        "1",
    ]


def _hevc_nvenc_args(rendition: Rendition, settings: EncodeSettings) -> list[str]:
    args = [
        "-c:v",
        "hevc_nvenc",
        *_hevc_rate_args(rendition),
        "-g",
        GOP_SIZE,
        "-keyint_min",
        GOP_SIZE,
        "-preset",
        settings.nvenc_preset,
    ]
    if not settings.is_dev:
        args += ["-multipass", "fullres"]
    return args


def _hevc_qsv_args(rendition: Rendition, settings: EncodeSettings) -> list[str]:
    return [
        "-c:v",
        "hevc_qsv",
        *_hevc_rate_args(rendition),
        "-g",
        GOP_SIZE,
        "-preset",
        settings.qsv_preset,
    ]


def _hevc_amf_args(rendition: Rendition, settings: EncodeSettings) -> list[str]:
    return [
        "-c:v",
        "hevc_amf",
        *_hevc_rate_args(rendition),
        "-g",
        GOP_SIZE,
        "-quality",
        settings.amf_quality,
    ]


def _hevc_vaapi_args(rendition: Rendition, settings: EncodeSettings) -> list[str]:
    return ["-c:v", "hevc_vaapi", *_hevc_rate_args(rendition), "-g", GOP_SIZE]


def _hevc_videotoolbox_args(
    rendition: Rendition, settings: EncodeSettings
) -> list[str]:
    return ["-c:v", "hevc_videotoolbox", *_hevc_rate_args(rendition), "-g", GOP_SIZE]


def _hevc_x265_args(rendition: Rendition, settings: EncodeSettings) -> list[str]:
    return [
        "-c:v",
        "libx265",
        *_hevc_rate_args(rendition),
        "-g",
        GOP_SIZE,
        "-keyint_min",
        GOP_SIZE,
        "-preset",
        settings.x265_preset,
        "-x265-params",
        "log-level=error",
    ]


HEVC_ARGS: dict[HardwareMethod, ArgsBuilder] = {
    HardwareMethod.NVIDIA: _hevc_nvenc_args,
    HardwareMethod.QSV: _hevc_qsv_args,
    HardwareMethod.AMF: _hevc_amf_args,
    HardwareMethod.VAAPI: _hevc_vaapi_args,
    HardwareMethod.VIDEOTOOLBOX: _hevc_videotoolbox_args,
    HardwareMethod.SOFTWARE: _hevc_x265_args,
}

HW_VP9_ARGS: dict[HardwareMethod, ArgsBuilder] = {
    HardwareMethod.QSV: _vp9_qsv_args,
    HardwareMethod.VAAPI: _vp9_vaapi_args,
}


def build_pass_args(
    rendition: Rendition,
    codec: Codec,
    backend: HardwareBackend,
    settings: EncodeSettings,
    passlog: Path,
) -> tuple[tuple[str, ...], ...]:
    """Codec arguments for each pass.

    Only software VP9 runs two passes. maxrate/bufsize go on the final pass
    of a two-pass encode, or straight onto a single pass.
    """
    if codec is Codec.HEVC:
        return (tuple(HEVC_ARGS[backend.method](rendition, settings)),)

    if uses_hw_vp9(codec, backend):
        return (tuple(HW_VP9_ARGS[backend.method](rendition, settings)),)

    base = _libvpx_base_args(rendition, settings)
    limits = ["-maxrate", f"{rendition.maxrate}k", "-bufsize", f"{rendition.bufsize}k"]
    if settings.passes == 2:
        passlog_args = ["-passlogfile", str(passlog)]
        return (
            tuple(base + ["-pass", "1", *passlog_args]),
            tuple(base + ["-pass", "2", *passlog_args, *limits]),
        )
    return (tuple(base + limits),)


def synthesize(
    rendition: Rendition,
    codec: Codec,
    backend: HardwareBackend,
    settings: EncodeSettings,
    dynamic_range: DynamicRange = DynamicRange.SDR,
    passlog: Path | None = None,
) -> EncodePlan:
    """Synthesize the encode plan for one (rendition, codec, backend).

    Args:
        rendition: Target tier.
        codec: Target codec.
        backend: Backend serving this codec.
        settings: Mode-dependent tuning.
        dynamic_range: Source dynamic range.
        passlog: Pass-log prefix for two-pass VP9.

    Returns:
        The EncodePlan.
    """
    tonemap = needs_tonemap(rendition, codec, backend, dynamic_range)
    hwaccel_input = use_hwaccel_input(codec, backend, tonemap)
    passlog = passlog or Path(f"ffmpeg2pass_{rendition.quality}")

    return EncodePlan(
        filter_chain=build_filter_chain(
            rendition, codec, backend, tonemap, hwaccel_input
        ),
        tonemap=tonemap,
        hwaccel_input=hwaccel_input,
        input_args=build_input_args(codec, backend, hwaccel_input),
        pass_args=build_pass_args(rendition, codec, backend, settings, passlog),
    )
