"""
IVF Container
=============

Minimal reader/writer for the IVF container used for VP8 streams.

Layout (all little endian):

    File header, 32 bytes:
        0   4s  signature "DKIF"
        4   u16 version (0)
        6   u16 header length (32)
        8   4s  codec fourcc
        12  u16 width
        14  u16 height
        16  u32 timebase denominator
        20  u32 timebase numerator
        24  u32 frame count
        28  4x  unused

    Frame header, 12 bytes, followed by `size` bytes of payload:
        0   u32 size
        4   u64 timestamp in timebase ticks
"""

import struct
from dataclasses import dataclass
from fractions import Fraction
from pathlib import Path
from typing import BinaryIO, Iterator, List, Tuple, Union


SIGNATURE = b"DKIF"
FILE_HEADER = struct.Struct("<4sHH4sHHIII4x")
FRAME_HEADER = struct.Struct("<IQ")
_FRAME_COUNT_OFFSET = 24


class IvfFormatError(ValueError):
    """Raised when reading a file that is not valid IVF."""
    pass


@dataclass(frozen=True, slots=True)
class IvfHeader:
    """Decoded IVF file header."""

    fourcc: bytes
    width: int
    height: int
    timebase: Fraction
    frame_count: int


class IvfWriter:
    """
    Sequential IVF writer over a seekable binary file.

    The header is written on construction with a zero frame count,
    which close() patches in place.
    """

    def __init__(
        self,
        fileobj: BinaryIO,
        fourcc: bytes,
        width: int,
        height: int,
        timebase: Fraction,
    ) -> None:
        if len(fourcc) != 4:
            raise ValueError("fourcc must be 4 bytes")
        self._file = fileobj
        self.frame_count = 0
        self._file.write(FILE_HEADER.pack(
            SIGNATURE, 0, FILE_HEADER.size, fourcc,
            width, height, timebase.denominator, timebase.numerator, 0,
        ))

    def write_frame(self, data: bytes, pts: int) -> None:
        """Append one frame chunk."""
        self._file.write(FRAME_HEADER.pack(len(data), pts))
        self._file.write(data)
        self.frame_count += 1

    def close(self) -> None:
        """Patch the frame count into the header."""
        end = self._file.tell()
        self._file.seek(_FRAME_COUNT_OFFSET)
        self._file.write(struct.pack("<I", self.frame_count))
        self._file.seek(end)
        self._file.flush()


def read_ivf(path: Union[str, Path]) -> Tuple[IvfHeader, List[Tuple[int, bytes]]]:
    """
    Read an IVF file.

    Returns:
        Tuple of (header, [(pts, payload), ...])

    Raises:
        IvfFormatError: If the file is truncated or not IVF
    """
    with open(path, "rb") as f:
        header = _read_header(f)
        frames = list(_iter_frames(f))
    return header, frames


def _read_header(f: BinaryIO) -> IvfHeader:
    raw = f.read(FILE_HEADER.size)
    if len(raw) != FILE_HEADER.size:
        raise IvfFormatError("truncated IVF header")
    signature, _version, length, fourcc, width, height, den, num, count = FILE_HEADER.unpack(raw)
    if signature != SIGNATURE:
        raise IvfFormatError(f"bad signature {signature!r}")
    f.seek(length)
    return IvfHeader(
        fourcc=fourcc,
        width=width,
        height=height,
        timebase=Fraction(num, den),
        frame_count=count,
    )


def _iter_frames(f: BinaryIO) -> Iterator[Tuple[int, bytes]]:
    while True:
        raw = f.read(FRAME_HEADER.size)
        if not raw:
            return
        if len(raw) != FRAME_HEADER.size:
            raise IvfFormatError("truncated frame header")
        size, pts = FRAME_HEADER.unpack(raw)
        data = f.read(size)
        if len(data) != size:
            raise IvfFormatError("truncated frame payload")
        yield pts, data
