"""
cadence.extract - Audio conversion.

Converts recorded clips in container formats into the raw 16-bit PCM
the analysis core expects.
"""

from __future__ import annotations
