"""
cadence.analyze.decoder - Raw PCM sample decoding.

Turns headerless 16-bit little-endian mono PCM bytes into a normalized
float sample buffer. Container formats are converted upstream
(see cadence.extract.audio).
"""

from __future__ import annotations

import numpy as np
from pydantic import BaseModel, ConfigDict, field_validator

from cadence.exceptions import DecodeError

DEFAULT_SAMPLE_RATE = 44100
BYTES_PER_SAMPLE = 2
PCM_SCALE = 32768.0


class SampleBuffer(BaseModel):
    """Immutable mono sample buffer with its format metadata."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    samples: np.ndarray
    sample_rate: int
    channels: int = 1

    @field_validator("samples")
    @classmethod
    def validate_samples(cls, v: np.ndarray) -> np.ndarray:
        if v.ndim != 1 or v.size == 0:
            raise ValueError("samples must be a non-empty 1-D array")
        v = np.array(v, dtype=np.float64)
        v.setflags(write=False)
        return v

    @field_validator("sample_rate")
    @classmethod
    def validate_sample_rate(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("sample_rate must be positive")
        return v

    @field_validator("channels")
    @classmethod
    def validate_channels(cls, v: int) -> int:
        if v != 1:
            raise ValueError("only mono buffers are supported")
        return v

    @property
    def duration_seconds(self) -> float:
        return len(self.samples) / self.sample_rate


def decode(
    raw_bytes: bytes | bytearray | memoryview,
    sample_rate: int = DEFAULT_SAMPLE_RATE,
) -> SampleBuffer:
    """Decode 16-bit little-endian PCM bytes into a SampleBuffer.

    Args:
        raw_bytes: Headerless PCM data, two bytes per sample
        sample_rate: Sample rate the data was recorded at

    Returns:
        SampleBuffer with samples normalized by 32768

    Raises:
        DecodeError: If the buffer is empty or has an odd byte length
    """
    length = len(raw_bytes)
    if length == 0:
        raise DecodeError("Audio buffer is empty")
    if length % BYTES_PER_SAMPLE != 0:
        raise DecodeError(f"Audio buffer length {length} is not a whole number of 16-bit samples")
    if sample_rate <= 0:
        raise DecodeError(f"Invalid sample rate: {sample_rate}")

    pcm = np.frombuffer(bytes(raw_bytes), dtype="<i2")
    samples = pcm.astype(np.float64) / PCM_SCALE

    return SampleBuffer(samples=samples, sample_rate=sample_rate)
