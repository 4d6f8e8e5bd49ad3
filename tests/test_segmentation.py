"""Tests for cadence.analyze.segmentation module."""

from __future__ import annotations

import numpy as np
import pytest
from pydantic import ValidationError

from cadence.analyze.decoder import SampleBuffer
from cadence.analyze.segmentation import (
    TimeSegment,
    detect_silent_segments,
    detect_speech_segments,
    score_pace,
    score_pace_rate,
    score_pause_ratio,
    score_pauses,
    silence_ratio,
    speech_rate,
)
from cadence.config import AnalysisConfig
from cadence.exceptions import AnalysisError

SR = 1000


def loud(n: int) -> np.ndarray:
    return np.full(n, 0.5)


def quiet(n: int) -> np.ndarray:
    return np.zeros(n)


class TestTimeSegment:
    def test_duration(self) -> None:
        seg = TimeSegment(start_seconds=0.5, end_seconds=1.25)
        assert seg.duration_seconds == pytest.approx(0.75)

    def test_end_before_start_raises(self) -> None:
        with pytest.raises(ValidationError):
            TimeSegment(start_seconds=1.0, end_seconds=0.5)

    def test_zero_length_raises(self) -> None:
        with pytest.raises(ValidationError):
            TimeSegment(start_seconds=1.0, end_seconds=1.0)

    def test_negative_start_raises(self) -> None:
        with pytest.raises(ValidationError):
            TimeSegment(start_seconds=-0.1, end_seconds=0.5)


class TestDetectSpeechSegments:
    def test_single_burst(self) -> None:
        samples = np.concatenate([quiet(100), loud(200), quiet(100)])
        segments = detect_speech_segments(samples, SR)

        assert len(segments) == 1
        assert segments[0].start_seconds == pytest.approx(0.1)
        assert segments[0].end_seconds == pytest.approx(0.3)

    def test_two_bursts_in_order(self) -> None:
        samples = np.concatenate([quiet(100), loud(100), quiet(100), loud(200), quiet(100)])
        segments = detect_speech_segments(samples, SR)

        assert [(s.start_seconds, s.end_seconds) for s in segments] == [
            pytest.approx((0.1, 0.2)),
            pytest.approx((0.3, 0.5)),
        ]

    def test_trailing_open_segment_is_dropped(self) -> None:
        samples = np.concatenate([quiet(100), loud(100)])
        assert detect_speech_segments(samples, SR) == []

    def test_burst_at_start(self) -> None:
        samples = np.concatenate([loud(100), quiet(100)])
        segments = detect_speech_segments(samples, SR)

        assert segments[0].start_seconds == 0.0
        assert segments[0].end_seconds == pytest.approx(0.1)

    def test_energy_at_threshold_is_not_speech(self) -> None:
        samples = np.concatenate([quiet(100), loud(100), quiet(100)])
        assert detect_speech_segments(samples, SR, threshold=0.25) == []

    def test_all_silent(self) -> None:
        assert detect_speech_segments(quiet(1000), SR) == []

    def test_segments_do_not_overlap(self) -> None:
        rng = np.random.default_rng(3)
        samples = rng.choice([0.0, 0.5], size=50)
        samples = np.repeat(samples, 40)
        segments = detect_speech_segments(samples, SR)

        for prev, nxt in zip(segments, segments[1:]):
            assert prev.end_seconds <= nxt.start_seconds
        for seg in segments:
            assert seg.end_seconds > seg.start_seconds

    def test_idempotent(self) -> None:
        rng = np.random.default_rng(11)
        samples = rng.normal(0, 0.05, size=5000)
        first = detect_speech_segments(samples, SR)
        second = detect_speech_segments(samples, SR)
        assert first == second


class TestDetectSilentSegments:
    def test_long_pause_kept(self) -> None:
        samples = np.concatenate([loud(100), quiet(300), loud(100)])
        segments = detect_silent_segments(samples, SR)

        assert len(segments) == 1
        assert segments[0].start_seconds == pytest.approx(0.1)
        assert segments[0].end_seconds == pytest.approx(0.4)

    def test_short_pause_dropped(self) -> None:
        samples = np.concatenate([loud(100), quiet(100), loud(100)])
        assert detect_silent_segments(samples, SR) == []

    def test_min_duration_is_configurable(self) -> None:
        samples = np.concatenate([loud(100), quiet(100), loud(100)])
        segments = detect_silent_segments(samples, SR, min_duration=0.05)
        assert len(segments) == 1

    def test_trailing_silence_not_counted(self) -> None:
        samples = np.concatenate([loud(100), quiet(500)])
        assert detect_silent_segments(samples, SR) == []

    def test_idempotent(self) -> None:
        samples = np.concatenate([loud(100), quiet(300), loud(100), quiet(250), loud(50)])
        assert detect_silent_segments(samples, SR) == detect_silent_segments(samples, SR)


class TestSpeechRate:
    def test_rate(self) -> None:
        segments = [
            TimeSegment(start_seconds=0.0, end_seconds=0.5),
            TimeSegment(start_seconds=1.0, end_seconds=1.5),
        ]
        assert speech_rate(segments) == pytest.approx(2.0)

    def test_no_segments(self) -> None:
        assert speech_rate([]) == 0.0


class TestScorePaceRate:
    @pytest.mark.parametrize(
        ("rate", "expected"),
        [(1.0, 2.0), (2.0, 3.0), (3.0, 5.0), (4.5, 4.0), (6.0, 3.0)],
    )
    def test_bucket_table(self, rate: float, expected: float) -> None:
        assert score_pace_rate(rate) == expected

    @pytest.mark.parametrize(
        ("rate", "expected"),
        [(0.0, 2.0), (1.5, 3.0), (2.5, 5.0), (4.0, 4.0), (5.0, 3.0)],
    )
    def test_bucket_edges(self, rate: float, expected: float) -> None:
        assert score_pace_rate(rate) == expected


class TestSilenceRatio:
    def test_ratio(self) -> None:
        segments = [TimeSegment(start_seconds=1.0, end_seconds=1.5)]
        assert silence_ratio(segments, 5.0) == pytest.approx(0.1)

    def test_zero_duration_raises(self) -> None:
        with pytest.raises(AnalysisError):
            silence_ratio([], 0.0)


class TestScorePauseRatio:
    @pytest.mark.parametrize(
        ("ratio", "expected"),
        [(0.0, 2.0), (0.1, 5.0), (0.2, 4.0), (0.3, 3.0), (0.5, 2.0), (0.05, 5.0)],
    )
    def test_bucket_table(self, ratio: float, expected: float) -> None:
        assert score_pause_ratio(ratio) == expected


class TestBufferScores:
    def test_score_pace_from_bursts(self) -> None:
        samples = np.concatenate([quiet(200), loud(300)] * 3 + [quiet(200)])
        buffer = SampleBuffer(samples=samples, sample_rate=SR)

        assert score_pace(buffer, AnalysisConfig()) == 5.0

    def test_score_pace_without_speech(self) -> None:
        buffer = SampleBuffer(samples=quiet(2000), sample_rate=SR)
        assert score_pace(buffer, AnalysisConfig()) == 2.0

    def test_score_pauses(self) -> None:
        samples = np.concatenate([loud(1000), quiet(300), loud(1000)])
        buffer = SampleBuffer(samples=samples, sample_rate=SR)

        assert score_pauses(buffer, AnalysisConfig()) == 5.0

    def test_score_pauses_uses_config_threshold(self) -> None:
        samples = np.concatenate([loud(1000), np.full(300, 0.12), loud(1000)])
        buffer = SampleBuffer(samples=samples, sample_rate=SR)
        config = AnalysisConfig(segmentation={"silence_energy_threshold": 0.02})

        assert score_pauses(buffer, AnalysisConfig()) == 2.0
        assert score_pauses(buffer, config) == 5.0
