"""
cadence.analyze.spectral - Magnitude spectrum, clarity and loudness.

Clarity compares spectral energy in the telephone speech band
(300-3400 Hz) against the energy below and above it. Only the first
frame of the clip is transformed. Volume is measured from the RMS of
the whole clip and does not use the spectrum.
"""

from __future__ import annotations

import math

import numpy as np
from pydantic import BaseModel, ConfigDict

from cadence.analyze.decoder import SampleBuffer
from cadence.config import AnalysisConfig
from cadence.exceptions import AnalysisError
from cadence.logging import logger

log = logger.getChild("spectral")

EPSILON = 1e-10

SPEECH_BAND = (300.0, 3400.0)
NOISE_BANDS = ((0.0, 300.0), (3400.0, 8000.0))


class SpectralFrame(BaseModel):
    """Magnitude spectrum of one analysis frame."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    magnitudes: np.ndarray
    bin_width_hz: float

    @property
    def bin_count(self) -> int:
        return len(self.magnitudes)


def analyze_spectrum(
    samples: np.ndarray,
    sample_rate: int,
    frame_size: int = 1024,
) -> SpectralFrame:
    """Compute the magnitude spectrum of the first frame_size samples.

    Longer buffers are truncated. The frame yields N // 2 bins, where
    N = min(frame_size, len(samples)).

    Raises:
        AnalysisError: If fewer than two samples are available
    """
    n = min(frame_size, len(samples))
    bins = n // 2
    if bins < 1:
        raise AnalysisError(f"Need at least 2 samples for spectral analysis, got {len(samples)}")

    frame = np.asarray(samples[:n], dtype=np.float64)
    spectrum = np.fft.rfft(frame)[:bins]
    magnitudes = np.abs(spectrum)
    magnitudes.setflags(write=False)

    return SpectralFrame(
        magnitudes=magnitudes,
        bin_width_hz=sample_rate / (2 * bins),
    )


def band_energy(frame: SpectralFrame, lo_hz: float, hi_hz: float) -> float:
    """Sum of magnitudes over the bins covering [lo_hz, hi_hz], inclusive."""
    bin_min = max(0, math.floor(lo_hz / frame.bin_width_hz))
    bin_max = min(frame.bin_count - 1, math.floor(hi_hz / frame.bin_width_hz))
    if bin_min > bin_max:
        return 0.0
    return float(np.sum(frame.magnitudes[bin_min : bin_max + 1]))


def clarity_ratio(frame: SpectralFrame) -> float:
    speech = band_energy(frame, *SPEECH_BAND)
    noise = sum(band_energy(frame, lo, hi) for lo, hi in NOISE_BANDS)
    return speech / (speech + noise + EPSILON)


def score_clarity_ratio(ratio: float) -> float:
    if ratio > 0.8:
        return 5.0
    if ratio > 0.6:
        return 4.0
    if ratio > 0.4:
        return 3.0
    if ratio > 0.2:
        return 2.0
    return 1.0


def rms(samples: np.ndarray) -> float:
    """Root-mean-square amplitude."""
    if len(samples) == 0:
        raise AnalysisError("Cannot compute RMS of an empty buffer")
    values = np.asarray(samples, dtype=np.float64)
    return float(np.sqrt(np.mean(values * values)))


def rms_db(samples: np.ndarray) -> float:
    """RMS level in dBFS, floored by a small epsilon for silent input."""
    return 20.0 * math.log10(rms(samples) + EPSILON)


def score_volume_db(db: float) -> float:
    """Map an RMS level to a volume score (speech sits around -25 to -10 dB)."""
    if db < -40:
        return 2.0
    if db < -25:
        return 3.0
    if db < -10:
        return 5.0
    if db < -5:
        return 4.0
    return 3.0


def score_clarity(buffer: SampleBuffer, config: AnalysisConfig) -> float:
    frame = analyze_spectrum(buffer.samples, buffer.sample_rate, config.spectral_frame_size)
    ratio = clarity_ratio(frame)
    log.debug(
        "spectral bins=%d bin width=%.2f Hz clarity=%.3f",
        frame.bin_count,
        frame.bin_width_hz,
        ratio,
    )
    return score_clarity_ratio(ratio)


def score_volume(buffer: SampleBuffer) -> float:
    level = rms_db(buffer.samples)
    log.debug("rms level=%.2f dB", level)
    return score_volume_db(level)
