"""
Audio format conversions for the live voice connection.

The live API expects 16 kHz mono little-endian PCM16. Browsers and desktop
capture usually hand us float32 frames at 44.1 or 48 kHz.
"""
import wave
from math import gcd

import numpy as np
from scipy.signal import resample_poly

from ....config import LIVE_INPUT_SAMPLE_RATE, TARGET_RMS


def stereo_to_mono(x: np.ndarray) -> np.ndarray:
    """Convert stereo audio to mono by averaging channels."""
    if x.ndim == 1:
        return x
    return np.mean(x, axis=1)


def remove_dc(x: np.ndarray) -> np.ndarray:
    """Remove DC offset from audio signal."""
    return x - np.mean(x)


def resample_to(audio: np.ndarray, sr_in: int, sr_out: int = LIVE_INPUT_SAMPLE_RATE) -> np.ndarray:
    """Resample with a polyphase filter; no-op when rates already match."""
    if sr_in == sr_out:
        return audio.astype(np.float32)
    g = gcd(int(sr_in), int(sr_out))
    return resample_poly(audio, up=sr_out // g, down=sr_in // g).astype(np.float32)


def normalize_audio(audio: np.ndarray, target_rms: float = TARGET_RMS) -> np.ndarray:
    """Normalize audio to target RMS level."""
    rms = float(np.sqrt(np.mean(audio**2)) + 1e-9)
    gain = min(20.0, target_rms / rms) if rms > 0 else 1.0
    return audio * gain


def float_to_pcm16(audio: np.ndarray) -> bytes:
    """Clip float samples to [-1, 1] and encode as little-endian PCM16 bytes."""
    clipped = np.clip(np.asarray(audio, dtype=np.float32), -1.0, 1.0)
    return (clipped * 32767.0).astype("<i2").tobytes()


def prepare_live_chunk(samples, sample_rate: int) -> bytes:
    """Turn one captured frame (float, any rate, mono or stereo) into a live audio chunk."""
    audio = np.asarray(samples, dtype=np.float32)
    if audio.size == 0:
        return b""
    mono = stereo_to_mono(audio)
    return float_to_pcm16(resample_to(mono, sample_rate))


def read_wav(path: str):
    """Read a PCM16 WAV file as float32 samples in [-1, 1]. Returns (samples, sample_rate)."""
    with wave.open(path, "rb") as wf:
        if wf.getsampwidth() != 2:
            raise ValueError(f"Only 16-bit PCM WAV files are supported: {path}")
        channels = wf.getnchannels()
        sr = wf.getframerate()
        frames = wf.readframes(wf.getnframes())
    audio = np.frombuffer(frames, dtype="<i2").astype(np.float32) / 32768.0
    if channels > 1:
        audio = audio.reshape(-1, channels)
    return audio, sr


def iter_frames(audio: np.ndarray, sample_rate: int, frame_ms: int = 100):
    """Split audio into consecutive frames of `frame_ms` milliseconds."""
    step = max(1, int(sample_rate * frame_ms / 1000))
    for start in range(0, len(audio), step):
        yield audio[start:start + step]
