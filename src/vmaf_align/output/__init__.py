"""
Output Module
=============

Encoding and container writing.

    - StreamWriter: canonical frames -> IVF file
    - PacketEncoder / Vp8PacketEncoder: pixel encoding (PyAV libvpx)
    - IvfWriter / read_ivf: IVF container format
"""

from vmaf_align.output.encoder import (
    EncodedPacket,
    EncoderFactory,
    PacketEncoder,
    Vp8PacketEncoder,
    vp8_encoder_factory,
)
from vmaf_align.output.ivf import IvfFormatError, IvfHeader, IvfWriter, read_ivf
from vmaf_align.output.writer import StreamWriter, ms_to_ticks


__all__ = [
    "EncodedPacket",
    "EncoderFactory",
    "PacketEncoder",
    "Vp8PacketEncoder",
    "vp8_encoder_factory",
    "IvfFormatError",
    "IvfHeader",
    "IvfWriter",
    "read_ivf",
    "StreamWriter",
    "ms_to_ticks",
]
