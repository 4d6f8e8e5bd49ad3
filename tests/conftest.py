"""
Test configuration and shared fixtures.
"""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import yaml

from cadence.extract.audio import pcm_from_array

SAMPLE_RATE = 44100


def sine_wave(
    freq: float,
    duration: float,
    sample_rate: int = SAMPLE_RATE,
    amplitude: float = 0.5,
) -> np.ndarray:
    t = np.arange(int(duration * sample_rate)) / sample_rate
    return amplitude * np.sin(2 * np.pi * freq * t)


def speech_like(
    burst_seconds: float = 0.3,
    gap_seconds: float = 0.1,
    bursts: int = 5,
    sample_rate: int = SAMPLE_RATE,
) -> np.ndarray:
    """Tone bursts separated by silence, starting and ending with a gap."""
    gap = np.zeros(int(gap_seconds * sample_rate))
    burst = sine_wave(220.0, burst_seconds, sample_rate, amplitude=0.3)
    parts = []
    for _ in range(bursts):
        parts.extend([gap, burst])
    parts.append(gap)
    return np.concatenate(parts)


@pytest.fixture
def sine_440_pcm() -> bytes:
    """Two seconds of a 440 Hz tone at half scale, as raw PCM."""
    return pcm_from_array(sine_wave(440.0, 2.0))


@pytest.fixture
def silent_pcm() -> bytes:
    """One second of digital silence, as raw PCM."""
    return bytes(SAMPLE_RATE * 2)


@pytest.fixture
def speech_like_pcm() -> bytes:
    return pcm_from_array(speech_like())


@pytest.fixture
def tmp_config_dir(tmp_path: Path) -> Path:
    """Create a directory holding a minimal cadence.yaml."""
    config_dir = tmp_path / "config"
    config_dir.mkdir()
    with open(config_dir / "cadence.yaml", "w") as f:
        yaml.dump({"profile": "standard"}, f)
    return config_dir


@pytest.fixture
def make_sine():
    """Factory fixture for float sine waves: make_sine(freq, duration, sample_rate=44100)."""
    return sine_wave
