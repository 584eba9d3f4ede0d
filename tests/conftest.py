"""
Test Configuration
==================

Pytest fixtures and test doubles for vmaf-align.

The frame source and the pixel encoder are replaced by in-memory fakes so
the pipeline can be exercised without real video files.
"""

from fractions import Fraction
from typing import List, Optional, Tuple

import numpy as np
import pytest

from vmaf_align.config import Settings
from vmaf_align.errors import EncodeError
from vmaf_align.output.encoder import EncodedPacket
from vmaf_align.stream.frame import Frame


def solid_pixels(width: int, height: int, value: int = 128) -> np.ndarray:
    return np.full((height, width, 3), value, dtype=np.uint8)


def noise_pixels(width: int, height: int, seed: int = 0) -> np.ndarray:
    rng = np.random.default_rng(seed)
    return rng.integers(0, 256, size=(height, width, 3), dtype=np.uint8)


class ListFrameSource:
    """FrameSource over a list of frames."""

    def __init__(self, frames: List[Frame]) -> None:
        self.frames = list(frames)
        self.frame_count = len(self.frames)
        self.closed = False
        self._pos = 0

    def next_frame(self) -> Optional[Frame]:
        if self._pos >= len(self.frames):
            return None
        frame = self.frames[self._pos]
        self._pos += 1
        return frame

    def close(self) -> None:
        self.closed = True


class FakeEncoder:
    """
    PacketEncoder that records frames instead of compressing them.

    With delay=1 it holds one packet back until the next frame or flush(),
    like a codec with lookahead.
    """

    def __init__(self, width: int, height: int, timebase: Fraction, delay: int = 0, fail_at: Optional[int] = None) -> None:
        self.width = width
        self.height = height
        self.timebase = timebase
        self.delay = delay
        self.fail_at = fail_at
        self.encoded: List[Tuple[Frame, int]] = []
        self._held: List[EncodedPacket] = []

    def encode(self, frame: Frame, pts: int) -> List[EncodedPacket]:
        if self.fail_at is not None and len(self.encoded) == self.fail_at:
            raise EncodeError("simulated encoder failure")
        self.encoded.append((frame, pts))
        self._held.append(EncodedPacket(data=f"frame-{frame.index}".encode(), pts=pts))
        if len(self._held) > self.delay:
            return [self._held.pop(0)]
        return []

    def flush(self) -> List[EncodedPacket]:
        held, self._held = self._held, []
        return held


class RecordingEncoderFactory:
    """EncoderFactory that keeps every FakeEncoder it creates."""

    def __init__(self, **kwargs) -> None:
        self.kwargs = kwargs
        self.encoders: List[FakeEncoder] = []

    def __call__(self, width: int, height: int, timebase: Fraction) -> FakeEncoder:
        encoder = FakeEncoder(width, height, timebase, **self.kwargs)
        self.encoders.append(encoder)
        return encoder

    @property
    def encoded(self) -> List[Tuple[Frame, int]]:
        return [item for encoder in self.encoders for item in encoder.encoded]


@pytest.fixture
def settings():
    """Default settings, independent of any config file on disk."""
    return Settings()


@pytest.fixture
def make_frame():
    """Factory for frames with solid or noise content."""
    def _make(index: int = 0, timestamp_ms: Optional[int] = None, width: int = 640, height: int = 480, value: Optional[int] = None) -> Frame:
        if value is None:
            pixels = noise_pixels(width, height, seed=index)
        else:
            pixels = solid_pixels(width, height, value)
        return Frame(index=index, pixels=pixels, timestamp_ms=timestamp_ms)
    return _make


@pytest.fixture
def encoder_factory():
    return RecordingEncoderFactory()
