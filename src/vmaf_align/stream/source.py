"""
Frame Source
============

Decodes a video file into Frame objects in presentation order.

This is the ONLY place in the codebase that decodes video. Decoding is
delegated to PyAV (FFmpeg bindings); this module only adapts its frames
to the internal Frame model and maps its errors to DecodeError.

Design Rules:
    - Frames are produced strictly in decode (capture) order
    - Timestamps are relative to the first decoded frame
    - Fails fast on unreadable input
"""

import logging
from fractions import Fraction
from pathlib import Path
from typing import Iterator, Optional, Protocol, Union

import av

from vmaf_align.errors import DecodeError
from vmaf_align.stream.frame import Frame


logger = logging.getLogger(__name__)


class FrameSource(Protocol):
    """
    Protocol for frame producers.

    next_frame() returns None once the stream is exhausted.
    """

    def next_frame(self) -> Optional[Frame]:
        ...

    def close(self) -> None:
        ...


def iter_frames(source: FrameSource) -> Iterator[Frame]:
    """Yield frames from a source until end of stream."""
    while True:
        frame = source.next_frame()
        if frame is None:
            return
        yield frame


class VideoFileSource:
    """
    Frame source backed by a video file.

    Decodes the first video stream of the container and converts every
    frame to BGR24.

    Attributes:
        path: Input file
        frame_count: Frame count declared by the container (0 if unknown)
        average_rate: Average frame rate declared by the container

    Example:
        with VideoFileSource("capture.webm") as source:
            for frame in iter_frames(source):
                process(frame)
    """

    def __init__(self, path: Union[str, Path]) -> None:
        """
        Open the input file.

        Args:
            path: Video file to decode

        Raises:
            DecodeError: If the file cannot be opened or has no video stream
        """
        self.path = Path(path)
        try:
            self._container = av.open(str(self.path))
        except (av.error.FFmpegError, OSError) as e:
            raise DecodeError(f"Failed to open {self.path}: {e}") from e

        if not self._container.streams.video:
            self._container.close()
            raise DecodeError(f"No video stream in {self.path}")

        self._stream = self._container.streams.video[0]
        self._stream.thread_type = "AUTO"
        self._decoded = self._container.decode(self._stream)
        self._first_pts: Optional[int] = None
        self._index = 0
        self._closed = False

        logger.info(
            f"Opened {self.path}: {self._stream.codec_context.name} "
            f"{self._stream.codec_context.width}x{self._stream.codec_context.height}, "
            f"frames={self.frame_count}, rate={self.average_rate}"
        )

    @property
    def frame_count(self) -> int:
        return int(self._stream.frames or 0)

    @property
    def average_rate(self) -> Optional[Fraction]:
        rate = self._stream.average_rate
        return Fraction(rate) if rate else None

    def next_frame(self) -> Optional[Frame]:
        """
        Decode the next frame.

        Returns:
            Next Frame, or None at end of stream

        Raises:
            DecodeError: If FFmpeg fails while decoding
        """
        if self._closed:
            return None
        try:
            av_frame = next(self._decoded)
        except StopIteration:
            return None
        except av.error.FFmpegError as e:
            raise DecodeError(
                f"Decode failed in {self.path} after {self._index} frames: {e}"
            ) from e

        frame = Frame(
            index=self._index,
            pixels=av_frame.to_ndarray(format="bgr24"),
            timestamp_ms=self._timestamp_ms(av_frame),
        )
        self._index += 1
        return frame

    def _timestamp_ms(self, av_frame) -> Optional[int]:
        """Presentation time relative to the first frame, in ms."""
        if av_frame.pts is None or av_frame.time_base is None:
            return None
        if self._first_pts is None:
            self._first_pts = av_frame.pts
        seconds = (av_frame.pts - self._first_pts) * Fraction(av_frame.time_base)
        return max(0, round(seconds * 1000))

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._container.close()

    def __enter__(self) -> "VideoFileSource":
        return self

    def __exit__(self, *exc) -> None:
        self.close()
