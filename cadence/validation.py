"""
cadence.validation - Dependency checks and validation utilities.

Validates the environment and input files before analysis.
"""

from __future__ import annotations

import shutil
import subprocess
from pathlib import Path
from typing import Any

from cadence.exceptions import DependencyError, ValidationError


def check_ffmpeg() -> dict[str, str]:
    """Check if FFmpeg is installed and get its version.

    Returns:
        Dict with 'ffmpeg_version'

    Raises:
        DependencyError: If FFmpeg not found
    """
    ffmpeg_path = shutil.which("ffmpeg")
    if not ffmpeg_path:
        raise DependencyError(
            "ffmpeg",
            "FFmpeg not found in PATH",
            "Install with: brew install ffmpeg (macOS) or apt install ffmpeg (Linux)",
        )

    result = {}
    try:
        proc = subprocess.run(
            [ffmpeg_path, "-version"],
            capture_output=True,
            text=True,
            timeout=5,
        )
        version_line = proc.stdout.split("\n")[0]
        result["ffmpeg_version"] = version_line.split()[2] if version_line else "unknown"
    except (subprocess.TimeoutExpired, IndexError):
        result["ffmpeg_version"] = "unknown"

    return result


def check_librosa() -> dict[str, str]:
    """Check that librosa can be imported.

    Raises:
        DependencyError: If librosa is not installed
    """
    try:
        import librosa
    except ImportError as e:
        raise DependencyError(
            "librosa",
            f"librosa not importable: {e}",
            "Install with: pip install librosa",
        ) from e
    return {"librosa_version": getattr(librosa, "__version__", "unknown")}


def validate_audio_file(path: Path) -> dict[str, Any]:
    """Validate an audio file exists and is non-empty.

    Raises:
        ValidationError: If file doesn't exist, is not a file, or is empty
    """
    if not path.exists():
        raise ValidationError(f"File not found: {path}")

    if not path.is_file():
        raise ValidationError(f"Not a file: {path}")

    size = path.stat().st_size
    if size == 0:
        raise ValidationError(f"File is empty: {path}")

    return {
        "path": str(path),
        "exists": True,
        "size_bytes": size,
    }


def validate_pcm_size(size_bytes: int, sample_rate: int = 44100) -> dict[str, Any]:
    """Check a raw PCM payload size and return warnings.

    Args:
        size_bytes: Length of the PCM data in bytes
        sample_rate: Sample rate the data is assumed to use

    Returns:
        Dict with 'valid', 'warnings', 'duration_seconds'
    """
    warnings = []
    valid = True

    if size_bytes == 0:
        valid = False
        warnings.append("PCM data is empty.")
    elif size_bytes % 2 != 0:
        valid = False
        warnings.append("PCM data has an odd byte count; expected 16-bit samples.")

    duration = size_bytes / 2 / sample_rate if sample_rate > 0 else 0.0

    if valid and duration < 1.0:
        warnings.append("Clip is very short (<1 second). Pace and pause scores may be unreliable.")
    elif valid and duration > 600:
        warnings.append("Clip is very long (>10 minutes). Analysis may take a while.")

    return {
        "valid": valid,
        "warnings": warnings,
        "duration_seconds": round(duration, 3),
    }
