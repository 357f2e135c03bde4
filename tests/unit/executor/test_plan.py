"""Tests for encode plan synthesis."""

from pathlib import Path

import pytest

from vodpack.executor.transcode.plan import (
    TONEMAP_FILTER,
    VAAPI_DEVICE,
    needs_tonemap,
    synthesize,
    use_hwaccel_input,
)
from vodpack.executor.transcode.settings import (
    DEV_SETTINGS,
    PROD_SETTINGS,
    get_settings,
)
from vodpack.introspector.models import DynamicRange
from vodpack.renditions import Codec, get_rendition
from vodpack.tools.hardware import SOFTWARE_BACKEND, backends_from_capabilities


@pytest.fixture
def nvidia():
    return backends_from_capabilities({"cuda"}, {"hevc_nvenc"})[0]


@pytest.fixture
def qsv_vp9():
    return backends_from_capabilities({"qsv"}, {"hevc_qsv", "vp9_qsv"})[0]


@pytest.fixture
def vaapi_vp9():
    return backends_from_capabilities({"vaapi"}, {"hevc_vaapi", "vp9_vaapi"})[0]


class TestSettings:
    """Tests for per-codec encoder settings."""

    def test_modes(self):
        """Mode lookup is case-insensitive and only dev skips existing outputs."""
        assert get_settings("dev") is DEV_SETTINGS
        assert get_settings("PROD") is PROD_SETTINGS
        assert DEV_SETTINGS.skip_if_exists
        assert not PROD_SETTINGS.skip_if_exists

    def test_unknown_mode(self):
        """An unknown mode name is rejected."""
        with pytest.raises(ValueError, match="staging"):
            get_settings("staging")


class TestToneMapDecision:
    """Tests for needs_tonemap."""

    def test_sdr_never_tonemapped(self):
        """SDR sources are never tone-mapped."""
        assert not needs_tonemap(
            get_rendition("720p"), Codec.HEVC, SOFTWARE_BACKEND, DynamicRange.SDR
        )

    def test_hdr_low_tier_tonemapped(self):
        """HDR sources are tone-mapped on tiers that drop HDR."""
        assert needs_tonemap(
            get_rendition("720p"), Codec.HEVC, SOFTWARE_BACKEND, DynamicRange.HDR10
        )

    def test_hdr_preserved_on_high_tier(self):
        """HDR is kept on tiers that preserve it."""
        assert not needs_tonemap(
            get_rendition("1080p"), Codec.VP9, SOFTWARE_BACKEND, DynamicRange.HDR10
        )

    def test_hardware_vp9_forces_tonemap(self, qsv_vp9):
        """Hardware VP9 is 8-bit, so HDR is tone-mapped even on HDR tiers."""
        rendition = get_rendition("2160p")
        assert rendition.preserve_hdr
        assert needs_tonemap(rendition, Codec.VP9, qsv_vp9, DynamicRange.HDR10)
        assert not needs_tonemap(rendition, Codec.HEVC, qsv_vp9, DynamicRange.HDR10)


class TestHwaccelInput:
    """Tests for hardware decode input arguments."""

    def test_software_never(self):
        """Software encodes always decode on the CPU."""
        assert not use_hwaccel_input(Codec.HEVC, SOFTWARE_BACKEND, tonemap=False)

    def test_vp9_never(self, qsv_vp9):
        """VP9 jobs never take hardware-decoded input."""
        assert not use_hwaccel_input(Codec.VP9, qsv_vp9, tonemap=False)

    def test_hevc_without_tonemap(self, nvidia):
        """Hardware HEVC decodes on the GPU only when no tone-map is needed."""
        assert use_hwaccel_input(Codec.HEVC, nvidia, tonemap=False)
        assert not use_hwaccel_input(Codec.HEVC, nvidia, tonemap=True)


class TestSynthesize:
    """Tests for full plan synthesis."""

    def test_software_vp9_prod_two_pass(self):
        """Prod VP9 runs two passes with rate limits on the second only."""
        passlog = Path("/out/tmp/ffmpeg2pass_1080p")
        plan = synthesize(
            get_rendition("1080p"),
            Codec.VP9,
            SOFTWARE_BACKEND,
            PROD_SETTINGS,
            passlog=passlog,
        )

        assert plan.is_two_pass
        assert plan.filter_chain == "scale=-2:1080"
        assert plan.input_args == ()
        first, second = plan.pass_args
        assert first[:2] == ("-c:v", "libvpx-vp9")
        assert "-pass" in first and first[first.index("-pass") + 1] == "1"
        assert "-maxrate" not in first
        assert second[second.index("-pass") + 1] == "2"
        assert second[second.index("-passlogfile") + 1] == str(passlog)
        assert second[second.index("-maxrate") + 1] == "9000k"
        assert second[second.index("-bufsize") + 1] == "12000k"
        assert second[second.index("-deadline") + 1] == "good"

    def test_software_vp9_dev_single_pass(self):
        """Dev VP9 is a single realtime pass."""
        plan = synthesize(
            get_rendition("720p"), Codec.VP9, SOFTWARE_BACKEND, DEV_SETTINGS
        )

        assert plan.passes == 1
        args = plan.pass_args[0]
        assert "-pass" not in args
        assert args[args.index("-deadline") + 1] == "realtime"
        assert args[args.index("-cpu-used") + 1] == "8"
        assert args[args.index("-maxrate") + 1] == "5000k"

    def test_software_hevc(self):
        """Software HEVC is one libx265 pass with rate control."""
        plan = synthesize(
            get_rendition("1080p"), Codec.HEVC, SOFTWARE_BACKEND, PROD_SETTINGS
        )
        args = plan.pass_args[0]

        assert plan.passes == 1
        assert args[:2] == ("-c:v", "libx265")
        assert args[args.index("-b:v") + 1] == "5000k"
        assert args[args.index("-maxrate") + 1] == "7500k"
        assert args[args.index("-bufsize") + 1] == "10000k"
        assert args[args.index("-preset") + 1] == "medium"

    def test_hdr_tonemap_chain(self):
        """Tone-mapping precedes scaling in the filter chain."""
        plan = synthesize(
            get_rendition("720p"),
            Codec.HEVC,
            SOFTWARE_BACKEND,
            PROD_SETTINGS,
            dynamic_range=DynamicRange.HDR10,
        )

        assert plan.tonemap
        assert plan.filter_chain == f"{TONEMAP_FILTER},scale=-2:720"

    def test_nvenc_hevc_decodes_on_gpu(self, nvidia):
        """NVENC HEVC without tone-map uses CUDA decode and scale_cuda."""
        plan = synthesize(get_rendition("1080p"), Codec.HEVC, nvidia, PROD_SETTINGS)

        assert plan.hwaccel_input
        assert plan.input_args == (
            "-hwaccel",
            "cuda",
            "-hwaccel_output_format",
            "cuda",
        )
        assert plan.filter_chain == "scale_cuda=w=-2:h=1080"
        args = plan.pass_args[0]
        assert args[:2] == ("-c:v", "hevc_nvenc")
        assert args[args.index("-preset") + 1] == "p5"
        assert "-multipass" in args

    def test_nvenc_tonemap_uploads_cpu_frames(self, nvidia):
        """Tone-mapped frames are uploaded to CUDA after CPU filtering."""
        plan = synthesize(
            get_rendition("720p"),
            Codec.HEVC,
            nvidia,
            DEV_SETTINGS,
            dynamic_range=DynamicRange.HDR10,
        )

        assert plan.tonemap
        assert not plan.hwaccel_input
        assert plan.input_args == ()
        assert plan.filter_chain.endswith(",scale=-2:720,hwupload_cuda")
        assert "-multipass" not in plan.pass_args[0]

    def test_nvidia_vp9_uses_software_encoder(self, nvidia):
        """NVIDIA has no VP9 encoder, so libvpx-vp9 is used."""
        plan = synthesize(get_rendition("1080p"), Codec.VP9, nvidia, PROD_SETTINGS)

        assert not plan.hwaccel_input
        assert plan.filter_chain == "scale=-2:1080"
        assert plan.pass_args[0][:2] == ("-c:v", "libvpx-vp9")

    def test_qsv_hardware_vp9_on_hdr(self, qsv_vp9):
        """QSV VP9 on an HDR source tone-maps and converts to nv12."""
        plan = synthesize(
            get_rendition("2160p"),
            Codec.VP9,
            qsv_vp9,
            PROD_SETTINGS,
            dynamic_range=DynamicRange.HDR10,
        )

        assert plan.tonemap
        assert plan.passes == 1
        assert plan.filter_chain.endswith(",scale=-2:2160,format=nv12")
        args = plan.pass_args[0]
        assert args[:2] == ("-c:v", "vp9_qsv")
        assert args[args.index("-maxrate") + 1] == "20000k"
        assert args[args.index("-low_power") + 1] == "1"

    def test_vaapi_vp9_from_cpu_frames(self, vaapi_vp9):
        """VAAPI VP9 opens the render device and uploads CPU frames."""
        plan = synthesize(get_rendition("720p"), Codec.VP9, vaapi_vp9, PROD_SETTINGS)

        assert plan.input_args == ("-vaapi_device", VAAPI_DEVICE)
        assert plan.filter_chain == "scale=-2:720,format=nv12,hwupload"
        assert plan.pass_args[0][:2] == ("-c:v", "vp9_vaapi")
