"""
cadence.analyze.segmentation - Speech and silence segmentation.

Steps fixed-size windows across the buffer and tracks quiet/active runs
of window energy. The same state machine finds speech (high energy) and
pauses (low energy); the resulting segments drive the pace and pause
scores.
"""

from __future__ import annotations

from collections.abc import Callable

import numpy as np
from pydantic import BaseModel, ConfigDict, Field, model_validator

from cadence.analyze.decoder import SampleBuffer
from cadence.analyze.energy import iter_windows, window_energy, window_size
from cadence.config import AnalysisConfig
from cadence.exceptions import AnalysisError
from cadence.logging import logger

log = logger.getChild("segmentation")


class TimeSegment(BaseModel):
    """A closed time interval in seconds."""

    model_config = ConfigDict(frozen=True)

    start_seconds: float = Field(ge=0.0)
    end_seconds: float

    @model_validator(mode="after")
    def validate_order(self) -> TimeSegment:
        if self.end_seconds <= self.start_seconds:
            raise ValueError("end_seconds must be greater than start_seconds")
        return self

    @property
    def duration_seconds(self) -> float:
        return self.end_seconds - self.start_seconds


def _segment_runs(
    samples: np.ndarray,
    sample_rate: int,
    window_seconds: float,
    is_active: Callable[[float], bool],
    min_duration: float = 0.0,
) -> list[TimeSegment]:
    """Collect runs of active windows as time segments.

    A run opens at the first active window and closes at the first
    inactive window after it. Runs shorter than min_duration are dropped.
    A run still open when the buffer ends is not closed.
    """
    size = window_size(sample_rate, window_seconds)
    segments: list[TimeSegment] = []
    active = False
    segment_start = 0.0

    for offset, window in iter_windows(samples, size):
        current = offset / sample_rate
        energy_active = is_active(window_energy(window))

        if energy_active and not active:
            active = True
            segment_start = current
        elif not energy_active and active:
            active = False
            if current - segment_start >= min_duration:
                segments.append(TimeSegment(start_seconds=segment_start, end_seconds=current))

    return segments


def detect_speech_segments(
    samples: np.ndarray,
    sample_rate: int,
    window_seconds: float = 0.02,
    threshold: float = 0.001,
) -> list[TimeSegment]:
    """Find runs of windows whose energy is above threshold."""
    return _segment_runs(
        samples,
        sample_rate,
        window_seconds,
        lambda energy: energy > threshold,
    )


def detect_silent_segments(
    samples: np.ndarray,
    sample_rate: int,
    window_seconds: float = 0.01,
    threshold: float = 0.01,
    min_duration: float = 0.2,
) -> list[TimeSegment]:
    """Find pauses: runs of windows below threshold lasting at least min_duration."""
    return _segment_runs(
        samples,
        sample_rate,
        window_seconds,
        lambda energy: energy < threshold,
        min_duration=min_duration,
    )


def total_duration(segments: list[TimeSegment]) -> float:
    return sum(seg.duration_seconds for seg in segments)


def speech_rate(segments: list[TimeSegment]) -> float:
    """Speech segments per second of speech; 0 when there is no speech."""
    total = total_duration(segments)
    if total <= 0:
        return 0.0
    return len(segments) / total


def score_pace_rate(rate: float) -> float:
    """Map a speech rate to a pace score.

    Both slow and very fast delivery score below the 2.5-4.0 sweet spot.
    """
    if rate < 1.5:
        return 2.0
    if rate < 2.5:
        return 3.0
    if rate < 4.0:
        return 5.0
    if rate < 5.0:
        return 4.0
    return 3.0


def silence_ratio(segments: list[TimeSegment], duration_seconds: float) -> float:
    """Fraction of the clip spent in qualifying pauses."""
    if duration_seconds <= 0:
        raise AnalysisError(f"Clip duration must be positive, got {duration_seconds}")
    return total_duration(segments) / duration_seconds


def score_pause_ratio(ratio: float) -> float:
    """Map a silence ratio to a pause score (best around 5-15%)."""
    if ratio < 0.05:
        return 2.0
    if ratio < 0.15:
        return 5.0
    if ratio < 0.25:
        return 4.0
    if ratio < 0.35:
        return 3.0
    return 2.0


def score_pace(buffer: SampleBuffer, config: AnalysisConfig) -> float:
    settings = config.segmentation
    segments = detect_speech_segments(
        buffer.samples,
        buffer.sample_rate,
        window_seconds=settings.speech_window_seconds,
        threshold=settings.speech_energy_threshold,
    )
    rate = speech_rate(segments)
    log.debug("speech segments=%d rate=%.3f/s", len(segments), rate)
    return score_pace_rate(rate)


def score_pauses(buffer: SampleBuffer, config: AnalysisConfig) -> float:
    settings = config.segmentation
    segments = detect_silent_segments(
        buffer.samples,
        buffer.sample_rate,
        window_seconds=settings.silence_window_seconds,
        threshold=settings.silence_energy_threshold,
        min_duration=settings.min_pause_seconds,
    )
    ratio = silence_ratio(segments, buffer.duration_seconds)
    log.debug("pauses=%d silence ratio=%.3f", len(segments), ratio)
    return score_pause_ratio(ratio)
