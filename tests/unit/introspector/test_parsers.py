"""Tests for ffprobe output parsing and classification."""

from pathlib import Path

import pytest

from vodpack.exceptions import NoVideoStreamError, ResolutionTooLowError
from vodpack.introspector.models import AudioLayout, DynamicRange, SubtitleKind
from vodpack.introspector.parsers import (
    classify_audio_layout,
    classify_dynamic_range,
    classify_subtitle,
    parse_ffprobe_output,
    parse_frame_rate,
)


class TestParseFrameRate:
    """Tests for parse_frame_rate."""

    def test_rational_rate(self):
        """Reduces a rational rate to a float."""
        assert parse_frame_rate("24000/1001") == pytest.approx(23.976, abs=0.001)

    def test_integer_rate(self):
        """Accepts a rate without denominator."""
        assert parse_frame_rate("30") == 30.0

    def test_zero_denominator_defaults_to_24(self):
        """A zero denominator falls back to 24 fps."""
        assert parse_frame_rate("24/0") == 24.0

    def test_zero_rate_defaults_to_24(self):
        """ffprobe reports 0/0 for unknown rates."""
        assert parse_frame_rate("0/0") == 24.0

    def test_missing_or_garbage_defaults_to_24(self):
        """None and unparsable strings fall back to 24 fps."""
        assert parse_frame_rate(None) == 24.0
        assert parse_frame_rate("abc/def") == 24.0


class TestClassifyDynamicRange:
    """Tests for classify_dynamic_range."""

    def test_bt2020_pq_is_hdr10(self):
        """BT.2020 primaries with PQ transfer are HDR10."""
        stream = {"color_primaries": "bt2020", "color_transfer": "smpte2084"}
        assert classify_dynamic_range(stream) is DynamicRange.HDR10

    def test_dolby_vision_wins_over_hdr10(self):
        """A Dolby Vision record takes precedence over BT.2020/PQ."""
        stream = {
            "color_primaries": "bt2020",
            "color_transfer": "smpte2084",
            "side_data_list": [{"side_data_type": "DOVI configuration record"}],
        }
        assert classify_dynamic_range(stream) is DynamicRange.DOLBY_VISION

    def test_hdr10_plus_wins_over_hdr10(self):
        """HDR10+ dynamic metadata takes precedence over static HDR10."""
        stream = {
            "color_primaries": "bt2020",
            "color_transfer": "smpte2084",
            "side_data_list": [
                {"side_data_type": "HDR Dynamic Metadata SMPTE2094-40 (HDR10+)"}
            ],
        }
        assert classify_dynamic_range(stream) is DynamicRange.HDR10_PLUS

    def test_hlg_is_sdr(self):
        """Only the PQ transfer is classified as HDR10."""
        stream = {"color_primaries": "bt2020", "color_transfer": "arib-std-b67"}
        assert classify_dynamic_range(stream) is DynamicRange.SDR

    def test_no_color_metadata_is_sdr(self):
        """Streams without color metadata are SDR."""
        assert classify_dynamic_range({}) is DynamicRange.SDR


class TestClassifyAudioLayout:
    """Tests for classify_audio_layout."""

    def test_stereo(self):
        """Two-channel stereo is stereo."""
        assert classify_audio_layout("stereo", 2) is AudioLayout.STEREO

    def test_mono_is_stereo(self):
        """Anything below 5.1 is treated as stereo."""
        assert classify_audio_layout("mono", 1) is AudioLayout.STEREO

    def test_surround_by_layout(self):
        """A 5.1 layout name is surround."""
        assert classify_audio_layout("5.1(side)", 6) is AudioLayout.SURROUND_5_1

    def test_surround_by_channel_count(self):
        """Six channels without a layout name are 5.1."""
        assert classify_audio_layout(None, 6) is AudioLayout.SURROUND_5_1

    def test_seven_one_is_atmos(self):
        """7.1 sources are treated as Atmos."""
        assert classify_audio_layout("7.1", 8) is AudioLayout.ATMOS


class TestClassifySubtitle:
    """Tests for classify_subtitle."""

    def test_forced(self):
        """The forced disposition makes a forced track."""
        assert classify_subtitle({"forced": 1}) is SubtitleKind.FORCED

    def test_hearing_impaired(self):
        """The hearing_impaired disposition makes an SDH track."""
        assert classify_subtitle({"hearing_impaired": 1}) is SubtitleKind.SDH

    def test_forced_wins_over_hearing_impaired(self):
        """A track flagged both ways is forced."""
        disposition = {"forced": 1, "hearing_impaired": 1}
        assert classify_subtitle(disposition) is SubtitleKind.FORCED

    def test_standard(self):
        """No relevant disposition, or none at all, is standard."""
        assert classify_subtitle({"default": 1}) is SubtitleKind.STANDARD
        assert classify_subtitle(None) is SubtitleKind.STANDARD


class TestParseFFprobeOutput:
    """Tests for parse_ffprobe_output."""

    def test_hdr10_4k_source(self, hdr10_4k_ffprobe):
        """Parses the 4K HDR10 fixture into a full descriptor."""
        media = parse_ffprobe_output(Path("movie.mkv"), hdr10_4k_ffprobe)

        assert media.duration == 120.0
        assert media.size == 675000000
        assert media.video.width == 3840
        assert media.video.height == 2160
        assert media.video.dynamic_range is DynamicRange.HDR10
        assert media.video.pixel_format == "yuv420p10le"
        assert len(media.audio) == 1
        assert media.audio[0].layout is AudioLayout.SURROUND_5_1
        assert media.audio[0].title == "English 5.1"
        assert len(media.subtitles) == 1
        assert media.subtitles[0].kind is SubtitleKind.FORCED

    def test_indexes_are_relative_per_type(self, sdr_1080p_ffprobe):
        """Audio and subtitle indexes count only streams of their own type."""
        media = parse_ffprobe_output(Path("show.mp4"), sdr_1080p_ffprobe)

        assert [a.index for a in media.audio] == [0, 1]
        assert [a.language for a in media.audio] == ["eng", "jpn"]
        assert media.audio[1].layout is AudioLayout.ATMOS
        assert [s.index for s in media.subtitles] == [0, 1]
        assert media.subtitles[0].language == "fra"
        assert media.subtitles[1].kind is SubtitleKind.SDH
        assert media.subtitles[1].is_default is True

    def test_total_frames_rounds_up(self, hdr10_4k_ffprobe):
        """total_frames is ceil(duration * frame rate)."""
        media = parse_ffprobe_output(Path("movie.mkv"), hdr10_4k_ffprobe)
        assert media.total_frames == 2878

    def test_dolby_vision_with_invalid_rate(self, ffprobe_fixture):
        """Dolby Vision is detected and a 24/0 rate falls back to 24 fps."""
        media = parse_ffprobe_output(Path("dv.mkv"), ffprobe_fixture("dolby_vision"))

        assert media.video.dynamic_range is DynamicRange.DOLBY_VISION
        assert media.video.frame_rate == 24.0
        assert media.total_frames == 240
        assert media.audio == ()
        assert media.subtitles == ()

    def test_below_720_is_rejected(self, ffprobe_fixture):
        """A 480p source cannot be described."""
        with pytest.raises(ResolutionTooLowError) as exc_info:
            parse_ffprobe_output(Path("old.vob"), ffprobe_fixture("sd_480p"))
        assert exc_info.value.height == 480

    def test_exactly_720_is_accepted(self):
        """720 lines is the minimum accepted height."""
        data = {
            "streams": [{"codec_type": "video", "width": 1280, "height": 720}],
            "format": {"duration": "1.0"},
        }
        media = parse_ffprobe_output(Path("hd.mp4"), data)
        assert media.video.height == 720

    def test_missing_height_is_rejected(self):
        """A video stream without a height is treated as too low."""
        data = {"streams": [{"codec_type": "video"}], "format": {}}
        with pytest.raises(ResolutionTooLowError):
            parse_ffprobe_output(Path("broken.mkv"), data)

    def test_no_video_stream(self, ffprobe_fixture):
        """Audio-only sources are rejected."""
        with pytest.raises(NoVideoStreamError):
            parse_ffprobe_output(Path("song.flac"), ffprobe_fixture("audio_only"))

    def test_missing_language_defaults_to_und(self):
        """Tracks without a language tag are 'und'."""
        data = {
            "streams": [
                {"codec_type": "video", "width": 1920, "height": 1080},
                {"codec_type": "audio", "codec_name": "aac", "channels": 2},
            ],
            "format": {"duration": "10"},
        }
        media = parse_ffprobe_output(Path("x.mp4"), data)
        assert media.audio[0].language == "und"

    def test_invalid_duration_logs_warning(self, caplog):
        """An unparsable duration becomes 0 with a warning."""
        data = {
            "streams": [{"codec_type": "video", "width": 1920, "height": 1080}],
            "format": {"duration": "N/A"},
        }
        media = parse_ffprobe_output(Path("x.mp4"), data)
        assert media.duration == 0.0
        assert "Invalid duration" in caplog.text
