"""Audio infrastructure: conversions for the live voice connection."""

from .processing import prepare_live_chunk, read_wav

__all__ = ["prepare_live_chunk", "read_wav"]
