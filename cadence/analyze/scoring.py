"""
cadence.analyze.scoring - Delivery metric record and derived scores.

Holds the DeliveryMetrics record and computes the second-order
confidence and enthusiasm scores from the five measured ones. The
weights are heuristics; changing them changes every reported score.
"""

from __future__ import annotations

import math
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

MIN_SCORE = 1.0
MAX_SCORE = 5.0

WIRE_KEYS = {
    "pace": "pace",
    "volume": "volume",
    "clarity": "clarity",
    "pause_duration": "pauseDuration",
    "tonal_variation": "tonalVariation",
    "confidence": "confidence",
    "enthusiasm": "enthusiasm",
}


class DeliveryMetrics(BaseModel):
    """Seven 1-5 delivery scores for one clip."""

    model_config = ConfigDict(frozen=True)

    pace: float = Field(ge=MIN_SCORE, le=MAX_SCORE)
    volume: float = Field(ge=MIN_SCORE, le=MAX_SCORE)
    clarity: float = Field(ge=MIN_SCORE, le=MAX_SCORE)
    pause_duration: float = Field(ge=MIN_SCORE, le=MAX_SCORE)
    tonal_variation: float = Field(ge=MIN_SCORE, le=MAX_SCORE)
    confidence: float = Field(ge=MIN_SCORE, le=MAX_SCORE)
    enthusiasm: float = Field(ge=MIN_SCORE, le=MAX_SCORE)

    def to_dict(self) -> dict[str, float]:
        """Scores keyed the way the upload handler reports them."""
        return {wire: getattr(self, field) for field, wire in WIRE_KEYS.items()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> DeliveryMetrics:
        return cls(**{field: data[wire] for field, wire in WIRE_KEYS.items()})


FALLBACK_METRICS = DeliveryMetrics(
    pace=3.5,
    volume=4.0,
    clarity=3.8,
    pause_duration=2.1,
    tonal_variation=3.2,
    confidence=3.7,
    enthusiasm=3.4,
)


def clamp_score(value: float) -> float:
    return min(MAX_SCORE, max(MIN_SCORE, float(value)))


def round_score(value: float) -> float:
    """Round half up to one decimal place."""
    return math.floor(value * 10 + 0.5) / 10


def compute_confidence(volume: float, clarity: float, pace: float, tonal_variation: float) -> float:
    """Confidence from loudness, clarity, pace and moderate pitch movement.

    Tonal variation scores of 3-4 earn a flat bonus; anything else
    contributes proportionally.
    """
    score = volume * 0.3 + clarity * 0.3 + pace * 0.2
    if 3 <= tonal_variation <= 4:
        score += 1.0
    else:
        score += tonal_variation * 0.2
    return round_score(clamp_score(score))


def compute_enthusiasm(volume: float, tonal_variation: float, pace: float) -> float:
    """Enthusiasm from loudness, expressiveness and an energetic pace."""
    score = volume * 0.4 + tonal_variation * 0.4
    if pace >= 4:
        score += 1.0
    else:
        score += pace * 0.2
    return round_score(clamp_score(score))


def derive_metrics(
    pace: float,
    volume: float,
    clarity: float,
    pause_duration: float,
    tonal_variation: float,
) -> DeliveryMetrics:
    """Clamp the five measured scores and add confidence and enthusiasm."""
    pace = clamp_score(pace)
    volume = clamp_score(volume)
    clarity = clamp_score(clarity)
    pause_duration = clamp_score(pause_duration)
    tonal_variation = clamp_score(tonal_variation)

    return DeliveryMetrics(
        pace=pace,
        volume=volume,
        clarity=clarity,
        pause_duration=pause_duration,
        tonal_variation=tonal_variation,
        confidence=compute_confidence(volume, clarity, pace, tonal_variation),
        enthusiasm=compute_enthusiasm(volume, tonal_variation, pace),
    )
