"""
Packet Encoder
==============

Pixel encoding for the stream writer.

The writer only depends on the PacketEncoder protocol. Vp8PacketEncoder
implements it on top of PyAV's libvpx codec context; encoding happens
frame by frame so the caller controls the presentation timestamp of
every packet.
"""

import logging
from dataclasses import dataclass
from fractions import Fraction
from typing import Callable, List, Optional, Protocol

import av

from vmaf_align.config import EncoderConfig
from vmaf_align.errors import EncodeError
from vmaf_align.stream.frame import Frame


logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class EncodedPacket:
    """One compressed frame with its presentation timestamp (ticks)."""

    data: bytes
    pts: int


class PacketEncoder(Protocol):
    """
    Protocol for pixel encoders.

    encode() may return zero or more packets (codecs can buffer);
    flush() returns whatever is still buffered.
    """

    def encode(self, frame: Frame, pts: int) -> List[EncodedPacket]:
        ...

    def flush(self) -> List[EncodedPacket]:
        ...


# (width, height, timebase) -> encoder
EncoderFactory = Callable[[int, int, Fraction], PacketEncoder]


class Vp8PacketEncoder:
    """
    VP8 encoder backed by PyAV.

    Configured intra-only (every frame a keyframe) so any frame can be
    compared or cut independently by downstream quality tools.
    """

    def __init__(
        self,
        width: int,
        height: int,
        timebase: Fraction,
        config: Optional[EncoderConfig] = None,
    ) -> None:
        """
        Open the codec.

        Raises:
            EncodeError: If the codec is unavailable or rejects the settings
        """
        self.config = config or EncoderConfig()
        self.width = width
        self.height = height
        try:
            ctx = av.CodecContext.create(self.config.codec, "w")
            ctx.width = width
            ctx.height = height
            ctx.pix_fmt = self.config.pix_fmt
            ctx.time_base = timebase
            ctx.bit_rate = self.config.bit_rate
            ctx.gop_size = 1
            ctx.options = dict(self.config.options)
            ctx.open()
        except (av.error.FFmpegError, ValueError) as e:
            raise EncodeError(f"Failed to open {self.config.codec} encoder: {e}") from e
        self._ctx = ctx

        logger.info(
            f"Vp8PacketEncoder initialized: {self.config.codec} {width}x{height}, "
            f"timebase={timebase}, bit_rate={self.config.bit_rate}"
        )

    def encode(self, frame: Frame, pts: int) -> List[EncodedPacket]:
        if (frame.width, frame.height) != (self.width, self.height):
            raise EncodeError(
                f"frame {frame.index} is {frame.width}x{frame.height}, "
                f"encoder expects {self.width}x{self.height}"
            )
        av_frame = av.VideoFrame.from_ndarray(frame.pixels, format="bgr24")
        av_frame = av_frame.reformat(format=self.config.pix_fmt)
        av_frame.pts = pts
        return self._collect(av_frame)

    def flush(self) -> List[EncodedPacket]:
        return self._collect(None)

    def _collect(self, av_frame) -> List[EncodedPacket]:
        try:
            packets = self._ctx.encode(av_frame)
        except av.error.FFmpegError as e:
            raise EncodeError(f"{self.config.codec} encode failed: {e}") from e
        return [EncodedPacket(data=bytes(p), pts=p.pts) for p in packets]


def vp8_encoder_factory(config: Optional[EncoderConfig] = None) -> EncoderFactory:
    """Build an EncoderFactory producing Vp8PacketEncoder instances."""
    def factory(width: int, height: int, timebase: Fraction) -> PacketEncoder:
        return Vp8PacketEncoder(width, height, timebase, config)
    return factory
