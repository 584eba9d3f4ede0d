"""
Recognition Pool
================

Bounded worker pool for per-frame watermark recognition.

Recognition is the only stage that is independent per frame. OpenCV and
NumPy release the GIL for the heavy lifting, so a thread pool gives real
parallelism without copying frames between processes.

Design Rules:
    - Results are yielded in the order frames were submitted
    - At most `max_pending` frames are in flight
    - workers <= 1 runs recognition inline on the calling thread
"""

import logging
from collections import deque
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Deque, Iterable, Iterator, Optional, Tuple

from vmaf_align.models import RecognitionResult
from vmaf_align.stream.frame import Frame
from vmaf_align.watermark.recognizer import WatermarkRecognizer


logger = logging.getLogger(__name__)


class RecognitionPool:
    """
    Order-preserving parallel recognizer.

    Example:
        with RecognitionPool(recognizer, workers=4) as pool:
            for frame, result in pool.recognize_ordered(frames):
                realigner.feed(state, frame, result)
    """

    def __init__(
        self,
        recognizer: WatermarkRecognizer,
        workers: int = 4,
        max_pending: int = 16,
    ) -> None:
        """
        Initialize recognition pool.

        Args:
            recognizer: Shared, thread-safe recognizer
            workers: Worker threads (0 or 1 = inline)
            max_pending: Maximum frames submitted but not yet yielded
        """
        if max_pending < 1:
            raise ValueError("max_pending must be >= 1")

        self.recognizer = recognizer
        self.workers = workers
        self.max_pending = max(max_pending, workers)
        self._executor: Optional[ThreadPoolExecutor] = None
        if workers > 1:
            self._executor = ThreadPoolExecutor(
                max_workers=workers,
                thread_name_prefix="recognize",
            )

        logger.debug(f"RecognitionPool initialized: workers={workers}, max_pending={self.max_pending}")

    def submit(self, frame: Frame) -> "Future[RecognitionResult]":
        """Schedule recognition of one frame."""
        if self._executor is None:
            future: Future = Future()
            try:
                future.set_result(self.recognizer.recognize(frame))
            except Exception as e:
                future.set_exception(e)
            return future
        return self._executor.submit(self.recognizer.recognize, frame)

    def recognize_ordered(
        self, frames: Iterable[Frame]
    ) -> Iterator[Tuple[Frame, RecognitionResult]]:
        """
        Recognize frames, yielding (frame, result) in input order.

        Frames are pulled from `frames` only as pool capacity frees up,
        so a lazy source is never read far ahead of the consumer.
        """
        pending: Deque[Tuple[Frame, Future]] = deque()
        try:
            for frame in frames:
                pending.append((frame, self.submit(frame)))
                if len(pending) >= self.max_pending:
                    done_frame, future = pending.popleft()
                    yield done_frame, future.result()
            while pending:
                done_frame, future = pending.popleft()
                yield done_frame, future.result()
        finally:
            for _, future in pending:
                future.cancel()

    def shutdown(self) -> None:
        if self._executor is not None:
            self._executor.shutdown(wait=True, cancel_futures=True)
            self._executor = None

    def __enter__(self) -> "RecognitionPool":
        return self

    def __exit__(self, *exc) -> None:
        self.shutdown()
