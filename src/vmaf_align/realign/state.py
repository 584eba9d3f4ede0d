"""
Realigner State
===============

Mutable state threaded through FrameRealigner across one stream.

The state is owned by exactly one caller (the pipeline loop) and passed
into every FrameRealigner.feed() call. It is never shared between
threads or stored globally.
"""

from dataclasses import dataclass
from typing import Optional

from vmaf_align.stream.frame import Frame


@dataclass
class RealignerState:
    """
    Timeline position and counters for one stream.

    Attributes:
        last_accepted_timestamp_ms: Timestamp of the last emitted frame
        last_accepted_frame: Pixel source for repeats
        output_count: Canonical frames emitted so far
        recognized: Frames with a recognized tag
        unrecognized: Frames without a recognized tag
        skipped_leading: Unrecognized frames before the first tag
        dropped_duplicates: Late or duplicate tags dropped
        repeated: Repeats emitted for unrecognized frames
        gap_filled: Repeats emitted to fill gaps
        first_timestamp_ms: Timestamp of the first accepted tag
    """

    last_accepted_timestamp_ms: Optional[int] = None
    last_accepted_frame: Optional[Frame] = None
    output_count: int = 0
    recognized: int = 0
    unrecognized: int = 0
    skipped_leading: int = 0
    dropped_duplicates: int = 0
    repeated: int = 0
    gap_filled: int = 0
    first_timestamp_ms: Optional[int] = None

    @property
    def seeded(self) -> bool:
        """True once the first recognized frame has been accepted."""
        return self.last_accepted_timestamp_ms is not None

    def to_dict(self) -> dict:
        """Export counters for logging/serialization."""
        return {
            "last_accepted_timestamp_ms": self.last_accepted_timestamp_ms,
            "first_timestamp_ms": self.first_timestamp_ms,
            "output_count": self.output_count,
            "recognized": self.recognized,
            "unrecognized": self.unrecognized,
            "skipped_leading": self.skipped_leading,
            "dropped_duplicates": self.dropped_duplicates,
            "repeated": self.repeated,
            "gap_filled": self.gap_filled,
        }
