"""
cadence.utils - Shared utility functions.

Contains small formatting helpers used by the CLI and reports.
"""

from __future__ import annotations


def format_duration(seconds: float) -> str:
    """Format seconds as HH:MM:SS or MM:SS.

    Args:
        seconds: Duration in seconds

    Returns:
        Formatted string (HH:MM:SS if >= 1 hour, otherwise MM:SS)
    """
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    if hours > 0:
        return f"{hours}:{minutes:02d}:{secs:02d}"
    return f"{minutes}:{secs:02d}"


def get_score_class(score: float) -> str:
    """Get display class for a 1-5 delivery score.

    Args:
        score: Delivery score (1.0 to 5.0)

    Returns:
        Class name: "strong" (>= 4), "fair" (>= 3), or "weak"
    """
    if score >= 4.0:
        return "strong"
    elif score >= 3.0:
        return "fair"
    return "weak"
