"""Tests for cadence.analyze.decoder module."""

from __future__ import annotations

import numpy as np
import pytest
from pydantic import ValidationError

from cadence.analyze.decoder import SampleBuffer, decode
from cadence.exceptions import DecodeError


class TestDecode:
    def test_sample_count_is_half_byte_length(self) -> None:
        buffer = decode(bytes(10))
        assert len(buffer.samples) == 5

    def test_little_endian_normalization(self) -> None:
        raw = b"\x00\x80" + b"\xff\x7f" + b"\x01\x00" + b"\x00\x00"
        buffer = decode(raw)

        assert buffer.samples[0] == -1.0
        assert buffer.samples[1] == 32767 / 32768.0
        assert buffer.samples[2] == 1 / 32768.0
        assert buffer.samples[3] == 0.0

    def test_default_sample_rate(self) -> None:
        buffer = decode(bytes(4))
        assert buffer.sample_rate == 44100
        assert buffer.channels == 1

    def test_duration(self) -> None:
        buffer = decode(bytes(88200))
        assert buffer.duration_seconds == pytest.approx(1.0)

    def test_custom_sample_rate(self) -> None:
        buffer = decode(bytes(32000), sample_rate=16000)
        assert buffer.duration_seconds == pytest.approx(1.0)

    def test_accepts_bytearray(self) -> None:
        buffer = decode(bytearray(b"\x00\x40\x00\xc0"))
        assert list(buffer.samples) == [0.5, -0.5]

    def test_empty_buffer_raises(self) -> None:
        with pytest.raises(DecodeError):
            decode(b"")

    def test_odd_length_raises(self) -> None:
        with pytest.raises(DecodeError):
            decode(b"\x00\x00\x00")

    def test_invalid_sample_rate_raises(self) -> None:
        with pytest.raises(DecodeError):
            decode(bytes(4), sample_rate=0)

    def test_random_even_buffers_decode(self) -> None:
        rng = np.random.default_rng(7)
        for length in (2, 6, 1024, 4410):
            raw = rng.integers(0, 256, size=length, dtype=np.uint8).tobytes()
            buffer = decode(raw)
            assert len(buffer.samples) == length // 2
            assert np.all(buffer.samples >= -1.0)
            assert np.all(buffer.samples < 1.0)


class TestSampleBuffer:
    def test_samples_are_read_only(self) -> None:
        buffer = decode(bytes(8))
        with pytest.raises(ValueError):
            buffer.samples[0] = 1.0

    def test_model_is_frozen(self) -> None:
        buffer = decode(bytes(8))
        with pytest.raises(ValidationError):
            buffer.sample_rate = 8000

    def test_rejects_stereo(self) -> None:
        with pytest.raises(ValidationError):
            SampleBuffer(samples=np.zeros(4), sample_rate=44100, channels=2)

    def test_rejects_empty_samples(self) -> None:
        with pytest.raises(ValidationError):
            SampleBuffer(samples=np.zeros(0), sample_rate=44100)

    def test_does_not_lock_caller_array(self) -> None:
        source = np.zeros(4)
        SampleBuffer(samples=source, sample_rate=44100)
        source[0] = 0.5
        assert source[0] == 0.5
