"""
Cadence - Speech delivery metrics from raw audio.

Turns a short recorded speech clip into delivery scores through a one-way
pipeline: sample decoding → speech/silence segmentation → spectral
analysis → pitch tracking → metric derivation.
"""

__version__ = "0.1.0"
