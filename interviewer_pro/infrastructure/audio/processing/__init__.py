"""Audio processing modules."""

from .processing import (
    stereo_to_mono,
    remove_dc,
    resample_to,
    normalize_audio,
    float_to_pcm16,
    prepare_live_chunk,
    read_wav,
    iter_frames,
)

__all__ = [
    "stereo_to_mono",
    "remove_dc",
    "resample_to",
    "normalize_audio",
    "float_to_pcm16",
    "prepare_live_chunk",
    "read_wav",
    "iter_frames",
]
