"""Packaging of transcoded and extracted streams into HLS/DASH."""

from vodpack.packager.descriptors import (
    PackagerStreamDescriptor,
    audio_descriptor,
    build_descriptors,
    subtitle_descriptor,
    video_descriptor,
)
from vodpack.packager.invoker import (
    PackagerInvoker,
    PackagerOutput,
    build_packager_args,
)

__all__ = [
    "PackagerInvoker",
    "PackagerOutput",
    "PackagerStreamDescriptor",
    "audio_descriptor",
    "build_descriptors",
    "build_packager_args",
    "subtitle_descriptor",
    "video_descriptor",
]
