"""
Stream Writer
=============

Encodes canonical frames and writes them to an IVF file.

Design Rules:
    - The container is created on the first frame; an empty sequence
      leaves no file behind
    - Output timestamps are converted to container ticks and must be
      strictly increasing
    - Any encoder or I/O failure raises WriteError; the caller decides
      what to do with the partial file (the pipeline deletes it)
"""

import logging
from fractions import Fraction
from pathlib import Path
from typing import BinaryIO, Iterable, Optional, Union

from vmaf_align.errors import EncodeError, WriteError
from vmaf_align.models import CanonicalFrame
from vmaf_align.output.encoder import EncodedPacket, EncoderFactory, PacketEncoder
from vmaf_align.output.ivf import IvfWriter


logger = logging.getLogger(__name__)


def ms_to_ticks(timestamp_ms: int, timebase: Fraction) -> int:
    """Convert milliseconds to ticks of `timebase` seconds."""
    return round(Fraction(timestamp_ms, 1000) / timebase)


class StreamWriter:
    """
    Writes a canonical frame sequence as an IVF stream.

    Attributes:
        path: Output file
        frames_written: Canonical frames submitted to the encoder
        packets_written: Packets written to the container

    Example:
        with StreamWriter(path, vp8_encoder_factory()) as writer:
            writer.write(canonical_frames)
    """

    def __init__(
        self,
        path: Union[str, Path],
        encoder_factory: EncoderFactory,
        fourcc: bytes = b"VP80",
        timebase: Fraction = Fraction(1, 1000),
    ) -> None:
        self.path = Path(path)
        self.encoder_factory = encoder_factory
        self.fourcc = fourcc
        self.timebase = timebase

        self.frames_written = 0
        self.packets_written = 0
        self._file: Optional[BinaryIO] = None
        self._ivf: Optional[IvfWriter] = None
        self._encoder: Optional[PacketEncoder] = None
        self._last_ticks: Optional[int] = None
        self._closed = False

    @property
    def opened(self) -> bool:
        """True once the output file has been created."""
        return self._file is not None

    def _open(self, width: int, height: int) -> None:
        try:
            self._encoder = self.encoder_factory(width, height, self.timebase)
        except EncodeError as e:
            raise WriteError(str(e)) from e
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self._file = open(self.path, "wb")
            self._ivf = IvfWriter(self._file, self.fourcc, width, height, self.timebase)
        except OSError as e:
            raise WriteError(f"Failed to create {self.path}: {e}") from e
        logger.info(f"Writing {self.path} ({width}x{height}, timebase={self.timebase})")

    def write_frame(self, canonical: CanonicalFrame) -> None:
        """
        Encode and write one canonical frame.

        Raises:
            WriteError: On timestamp collision, encoder or I/O failure
        """
        if self._closed:
            raise WriteError("write to closed StreamWriter")

        frame = canonical.frame
        if self._file is None:
            self._open(frame.width, frame.height)

        ticks = ms_to_ticks(canonical.output_timestamp_ms, self.timebase)
        if self._last_ticks is not None and ticks <= self._last_ticks:
            raise WriteError(
                f"timestamp {canonical.output_timestamp_ms}ms maps to tick {ticks}, "
                f"not after previous tick {self._last_ticks}"
            )
        self._last_ticks = ticks

        try:
            packets = self._encoder.encode(frame, ticks)
        except EncodeError as e:
            raise WriteError(f"Encoding frame {frame.index} failed: {e}") from e
        self._write_packets(packets)
        self.frames_written += 1

    def _write_packets(self, packets: Iterable[EncodedPacket]) -> None:
        try:
            for packet in packets:
                self._ivf.write_frame(packet.data, packet.pts)
                self.packets_written += 1
        except OSError as e:
            raise WriteError(f"Writing {self.path} failed: {e}") from e

    def write(self, frames: Iterable[CanonicalFrame]) -> Path:
        """
        Write a whole sequence and close the file.

        Returns:
            Output path (not created if the sequence was empty)
        """
        for canonical in frames:
            self.write_frame(canonical)
        self.close()
        return self.path

    def close(self) -> None:
        """Flush buffered packets and finalize the container."""
        if self._closed:
            return
        self._closed = True
        if self._file is None:
            return
        try:
            try:
                self._write_packets(self._encoder.flush())
            except EncodeError as e:
                raise WriteError(f"Flushing encoder failed: {e}") from e
            self._ivf.close()
        except OSError as e:
            raise WriteError(f"Finalizing {self.path} failed: {e}") from e
        finally:
            self._file.close()
        logger.info(
            f"Closed {self.path}: {self.frames_written} frames, "
            f"{self.packets_written} packets"
        )

    def abort(self) -> None:
        """Close without flushing; the file is left incomplete."""
        self._closed = True
        if self._file is not None and not self._file.closed:
            self._file.close()

    def __enter__(self) -> "StreamWriter":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is None:
            self.close()
        else:
            self.abort()
