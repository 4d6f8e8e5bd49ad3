"""
cadence.extract.audio - Container audio to raw PCM conversion.

Produces the headerless 16-bit little-endian mono PCM that the analysis
core decodes, using either FFmpeg or librosa.
"""

from __future__ import annotations

import subprocess
from pathlib import Path
from typing import Any

import numpy as np

from cadence.exceptions import ExtractionError

PCM_SUFFIXES = {".pcm", ".raw"}


def is_raw_pcm(path: Path) -> bool:
    return path.suffix.lower() in PCM_SUFFIXES


def pcm_from_array(samples: np.ndarray) -> bytes:
    """Quantize float samples in [-1, 1] to 16-bit little-endian PCM bytes."""
    clipped = np.clip(np.asarray(samples, dtype=np.float64), -1.0, 1.0)
    pcm = np.floor(clipped * 32767).astype("<i2")
    return pcm.tobytes()


def convert_to_pcm(source_path: Path, sample_rate: int = 44100, backend: str = "ffmpeg") -> bytes:
    """Decode any audio file into raw PCM bytes in memory.

    Raises:
        ExtractionError: If the source is missing or cannot be decoded
    """
    if not source_path.exists():
        raise ExtractionError(f"Source file not found: {source_path}")

    if backend == "librosa":
        return _convert_with_librosa(source_path, sample_rate)
    if backend == "ffmpeg":
        return _convert_with_ffmpeg(source_path, sample_rate)
    raise ExtractionError(f"Unknown extract backend: {backend}")


def _convert_with_ffmpeg(source_path: Path, sample_rate: int) -> bytes:
    cmd = [
        "ffmpeg",
        "-nostdin",
        "-i",
        str(source_path),
        "-vn",
        "-f",
        "s16le",
        "-acodec",
        "pcm_s16le",
        "-ac",
        "1",
        "-ar",
        str(sample_rate),
        "pipe:1",
    ]

    try:
        proc = subprocess.run(cmd, capture_output=True)
    except FileNotFoundError as e:
        raise ExtractionError("FFmpeg not found in PATH") from e

    if proc.returncode != 0:
        stderr = proc.stderr.decode("utf-8", errors="replace").strip()
        raise ExtractionError(f"FFmpeg conversion failed: {stderr}")

    return proc.stdout


def _convert_with_librosa(source_path: Path, sample_rate: int) -> bytes:
    import librosa

    try:
        audio, _ = librosa.load(str(source_path), sr=sample_rate, mono=True)
    except Exception as e:
        raise ExtractionError(f"Failed to load audio: {e}") from e

    return pcm_from_array(audio)


def extract_pcm(
    source_path: Path,
    output_path: Path,
    sample_rate: int = 44100,
    backend: str = "ffmpeg",
    console=None,
) -> dict[str, Any]:
    """Convert an audio file and write the raw PCM next to it or to output_path.

    Args:
        source_path: Path to source audio (any format the backend reads)
        output_path: Destination .pcm path
        sample_rate: Target sample rate
        backend: "ffmpeg" or "librosa"
        console: Optional rich console for output

    Returns:
        Dict with extraction results

    Raises:
        ExtractionError: If conversion fails
    """
    if console:
        console.print(f"[dim]  Converting {source_path.name} with {backend}...[/dim]")

    data = convert_to_pcm(source_path, sample_rate=sample_rate, backend=backend)
    if not data:
        raise ExtractionError(f"No audio decoded from {source_path}")

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(data)

    return {
        "source": str(source_path),
        "output": str(output_path),
        "sample_rate": sample_rate,
        "backend": backend,
        "size_bytes": len(data),
        "duration_seconds": round(len(data) / 2 / sample_rate, 3),
    }
