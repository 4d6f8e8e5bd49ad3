"""
cadence.analyze - Delivery analysis core.

Decodes raw PCM, detects speech and silence, measures the spectrum and
pitch track, and derives 1-5 delivery scores.
"""

from __future__ import annotations
