"""
Frame Data Model
=================

Internal frame representation for the watermark and realignment pipeline.

This module defines the typed Frame class that is used as the interface
between the frame source and every downstream stage.

Design Rules:
    - This is the ONLY frame format passed to downstream stages
    - Pixel data is read-only once the frame is constructed
    - Stages that change pixels return a new Frame
"""

from dataclasses import dataclass, replace
from typing import Optional

import numpy as np


@dataclass(frozen=True, slots=True, eq=False)
class Frame:
    """
    Decoded video frame.

    This is the canonical internal representation of a frame.
    It is immutable (frozen, read-only pixels) so it can be handed
    from stage to stage without defensive copies.
    Equality is identity.

    Attributes:
        index: Capture-order sequence index (0-based)
        pixels: Image as np.ndarray (H, W, 3), dtype=uint8, BGR order
        timestamp_ms: Source presentation time in milliseconds, if known
        pixel_format: Pixel layout of `pixels`
    """

    index: int
    pixels: np.ndarray
    timestamp_ms: Optional[int] = None
    pixel_format: str = "bgr24"

    def __post_init__(self) -> None:
        """Validate shape and freeze pixel data."""
        if self.pixels.ndim != 3 or self.pixels.shape[2] != 3:
            raise ValueError(f"Frame pixels must be (H, W, 3), got {self.pixels.shape}")
        if self.pixels.dtype != np.uint8:
            raise ValueError(f"Frame pixels must be uint8, got {self.pixels.dtype}")
        self.pixels.setflags(write=False)

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    def with_pixels(self, pixels: np.ndarray) -> "Frame":
        """Return a copy of this frame carrying new pixel data."""
        return replace(self, pixels=pixels)

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the full image."""
        return (
            f"Frame(index={self.index}, "
            f"size={self.width}x{self.height}, "
            f"timestamp_ms={self.timestamp_ms})"
        )
