"""vodpack: turn one source video into an HLS/DASH adaptive-bitrate package."""

__version__ = "0.1.0"
