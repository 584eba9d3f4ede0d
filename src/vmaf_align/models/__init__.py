"""
Data Models
===========

Typed values exchanged between pipeline stages.

Models:
    - WatermarkTag: (id, timestamp_ms) pair
    - Recognized / Unrecognized: recognition verdict
    - RecognitionResult: union of the two
    - CanonicalFrame: frame on the output timeline
    - UnrecognizedReason: reason codes for failed recognition
"""

from vmaf_align.models.reason_codes import UnrecognizedReason
from vmaf_align.models.tag import (
    CanonicalFrame,
    RecognitionResult,
    Recognized,
    Unrecognized,
    WatermarkTag,
)

__all__ = [
    "WatermarkTag",
    "Recognized",
    "Unrecognized",
    "RecognitionResult",
    "CanonicalFrame",
    "UnrecognizedReason",
]
