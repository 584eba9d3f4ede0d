"""
Watermark Models
================

Data models passed between the watermark codec and the realigner.

    - WatermarkTag: the (id, timestamp) pair drawn into a frame
    - Recognized / Unrecognized: per-frame recognition verdict
    - CanonicalFrame: a frame placed on the output timeline
"""

from dataclasses import dataclass
from typing import Union

from vmaf_align.models.reason_codes import UnrecognizedReason
from vmaf_align.stream.frame import Frame


@dataclass(frozen=True, slots=True)
class WatermarkTag:
    """
    Identity and timestamp encoded visually into a frame.

    Attributes:
        id: Stream identifier (non-negative)
        timestamp_ms: Presentation time in milliseconds (non-negative)
    """

    id: int
    timestamp_ms: int

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.id < 0:
            raise ValueError("id must be non-negative")
        if self.timestamp_ms < 0:
            raise ValueError("timestamp_ms must be non-negative")


@dataclass(frozen=True, slots=True)
class Recognized:
    """A frame whose watermark was recovered."""

    tag: WatermarkTag
    confidence: float

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError("confidence must be in [0, 1]")


@dataclass(frozen=True, slots=True)
class Unrecognized:
    """A frame whose watermark could not be recovered."""

    reason: UnrecognizedReason
    detail: str = ""


RecognitionResult = Union[Recognized, Unrecognized]


@dataclass(frozen=True, slots=True)
class CanonicalFrame:
    """
    Frame placed on the canonical output timeline.

    Attributes:
        frame: Pixel content to encode
        output_timestamp_ms: Position on the output timeline
        repeated: True if this is a repeat of an earlier frame
            (gap fill or unrecognized-frame fallback)
    """

    frame: Frame
    output_timestamp_ms: int
    repeated: bool = False

    def __repr__(self) -> str:
        return (
            f"CanonicalFrame(index={self.frame.index}, "
            f"t={self.output_timestamp_ms}ms, repeated={self.repeated})"
        )
