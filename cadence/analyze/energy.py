"""
cadence.analyze.energy - Short-time window energy.

Shared primitive for speech and silence detection.
"""

from __future__ import annotations

import math
from collections.abc import Iterator

import numpy as np

from cadence.exceptions import AnalysisError


def window_energy(window: np.ndarray) -> float:
    """Mean of squared amplitudes over a window."""
    if len(window) == 0:
        raise AnalysisError("Cannot compute energy of an empty window")
    values = np.asarray(window, dtype=np.float64)
    return float(np.mean(values * values))


def window_size(sample_rate: int, seconds: float) -> int:
    """Number of samples in a window of the given duration.

    Raises:
        AnalysisError: If the window would hold no samples
    """
    size = math.floor(sample_rate * seconds)
    if size < 1:
        raise AnalysisError(
            f"Window of {seconds}s at {sample_rate} Hz holds no samples"
        )
    return size


def iter_windows(samples: np.ndarray, size: int) -> Iterator[tuple[int, np.ndarray]]:
    """Yield (offset, window) for consecutive non-overlapping windows.

    The final window is shorter when the buffer does not divide evenly.
    """
    for offset in range(0, len(samples), size):
        yield offset, samples[offset : offset + size]
