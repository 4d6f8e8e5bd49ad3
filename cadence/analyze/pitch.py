"""
cadence.analyze.pitch - Autocorrelation pitch tracking.

Estimates the fundamental frequency of each 20 ms window within the
80-800 Hz voice range and scores how much the pitch moves over the clip.
"""

from __future__ import annotations

import math

import numpy as np

from cadence.analyze.decoder import SampleBuffer
from cadence.analyze.energy import window_size
from cadence.config import AnalysisConfig
from cadence.exceptions import AnalysisError
from cadence.logging import logger

log = logger.getChild("pitch")

NO_PITCH_SCORE = 2.0


def lag_correlations(window: np.ndarray, min_lag: int, max_lag: int) -> np.ndarray:
    """Mean lagged product for each lag in [min_lag, max_lag].

    Entry j holds sum(window[i] * window[i + lag]) / (len(window) - lag)
    for lag = min_lag + j. Lags that leave no overlapping pair are 0.
    """
    n = len(window)
    values = np.asarray(window, dtype=np.float64)
    full = np.correlate(values, values, mode="full")[n - 1 :]

    lags = np.arange(min_lag, max_lag + 1)
    correlations = np.zeros(len(lags))
    valid = lags < n
    counts = n - lags[valid]
    correlations[valid] = full[lags[valid]] / counts
    return correlations


def estimate_pitch(
    window: np.ndarray,
    sample_rate: int,
    min_hz: float = 80.0,
    max_hz: float = 800.0,
    peak_tolerance: float = 0.9,
) -> float:
    """Estimate the fundamental frequency of one window.

    The lag search spans floor(sr / max_hz) to floor(sr / min_hz). The
    chosen lag is the first local correlation peak reaching
    peak_tolerance times the best correlation. Octave errors on clean
    tones come from taking the best lag outright; a tolerance of 1.0
    restores that plain maximum-correlation rule.

    Returns:
        Frequency in Hz, or 0.0 when no lag correlates positively
    """
    min_lag = max(1, math.floor(sample_rate / max_hz))
    max_lag = math.floor(sample_rate / min_hz)
    if max_lag < min_lag:
        raise AnalysisError(f"Empty lag range for {min_hz}-{max_hz} Hz at {sample_rate} Hz")

    correlations = lag_correlations(window, min_lag, max_lag)
    best = float(correlations.max())
    if best <= 0:
        return 0.0

    index = int(np.argmax(correlations >= best * peak_tolerance))
    while index + 1 < len(correlations) and correlations[index + 1] > correlations[index]:
        index += 1

    return sample_rate / (min_lag + index)


def pitch_track(
    samples: np.ndarray,
    sample_rate: int,
    window_seconds: float = 0.02,
    min_hz: float = 80.0,
    max_hz: float = 800.0,
    peak_tolerance: float = 0.9,
) -> list[float]:
    """Collect voiced pitch estimates over non-overlapping full windows.

    Windows start at 0, w, 2w, ... while the start is below len - w, so
    a trailing partial window is never analyzed.
    """
    size = window_size(sample_rate, window_seconds)
    track = []
    for offset in range(0, len(samples) - size, size):
        pitch = estimate_pitch(
            samples[offset : offset + size],
            sample_rate,
            min_hz=min_hz,
            max_hz=max_hz,
            peak_tolerance=peak_tolerance,
        )
        if pitch > 0:
            track.append(pitch)
    return track


def variation_ratio(track: list[float]) -> float:
    """Population standard deviation of the track relative to its mean."""
    if not track:
        raise AnalysisError("Cannot compute variation of an empty pitch track")
    values = np.asarray(track, dtype=np.float64)
    return float(np.std(values) / np.mean(values))


def score_tonal_variation_ratio(ratio: float) -> float:
    """Map pitch variation to a score; both monotone and erratic pitch lose points."""
    if ratio < 0.05:
        return 2.0
    if ratio < 0.15:
        return 3.0
    if ratio < 0.25:
        return 5.0
    if ratio < 0.35:
        return 4.0
    return 3.0


def score_tonal_variation(buffer: SampleBuffer, config: AnalysisConfig) -> float:
    settings = config.pitch
    track = pitch_track(
        buffer.samples,
        buffer.sample_rate,
        window_seconds=settings.window_seconds,
        min_hz=settings.min_hz,
        max_hz=settings.max_hz,
        peak_tolerance=settings.peak_tolerance,
    )
    if not track:
        log.debug("no voiced windows, treating clip as monotone")
        return NO_PITCH_SCORE

    ratio = variation_ratio(track)
    log.debug(
        "voiced windows=%d mean pitch=%.1f Hz variation=%.3f",
        len(track),
        float(np.mean(track)),
        ratio,
    )
    return score_tonal_variation_ratio(ratio)
