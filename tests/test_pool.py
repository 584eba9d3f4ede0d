"""
Recognition Pool Tests
======================

Parallel recognition must hand results back in capture order.
"""

import threading
import time

import pytest

from vmaf_align.config import WatermarkConfig
from vmaf_align.models import Recognized, Unrecognized, UnrecognizedReason
from vmaf_align.watermark import RecognitionPool, WatermarkEmbedder, WatermarkRecognizer


class SlowRecognizer:
    """Recognizer whose latency decreases with the frame index."""

    def __init__(self, frames: int) -> None:
        self.frames = frames
        self.threads = set()
        self._lock = threading.Lock()

    def recognize(self, frame):
        with self._lock:
            self.threads.add(threading.get_ident())
        time.sleep(0.002 * (self.frames - frame.index))
        return Unrecognized(UnrecognizedReason.GLYPH_NO_MATCH, detail=str(frame.index))


class TestRecognitionPool:
    """Tests for RecognitionPool."""

    def test_results_in_submission_order(self, make_frame):
        frames = [make_frame(index=i, width=32, height=24) for i in range(20)]
        recognizer = SlowRecognizer(len(frames))

        with RecognitionPool(recognizer, workers=4, max_pending=8) as pool:
            pairs = list(pool.recognize_ordered(frames))

        assert [f.index for f, _ in pairs] == list(range(20))
        assert [r.detail for _, r in pairs] == [str(i) for i in range(20)]
        assert len(recognizer.threads) > 1

    def test_inline_mode(self, make_frame):
        frames = [make_frame(index=i, width=32, height=24) for i in range(5)]
        recognizer = SlowRecognizer(len(frames))

        with RecognitionPool(recognizer, workers=0) as pool:
            pairs = list(pool.recognize_ordered(frames))

        assert [r.detail for _, r in pairs] == ["0", "1", "2", "3", "4"]
        assert recognizer.threads == {threading.get_ident()}

    def test_submit_returns_future(self, make_frame):
        config = WatermarkConfig()
        tagged = WatermarkEmbedder(config).embed(make_frame(), 3, 660)

        with RecognitionPool(WatermarkRecognizer(config), workers=2) as pool:
            result = pool.submit(tagged).result(timeout=5)

        assert isinstance(result, Recognized)
        assert result.tag.timestamp_ms == 660

    def test_source_is_read_lazily(self, make_frame):
        pulled = []

        def frames():
            for i in range(50):
                pulled.append(i)
                yield make_frame(index=i, width=32, height=24)

        with RecognitionPool(SlowRecognizer(50), workers=2, max_pending=3) as pool:
            iterator = pool.recognize_ordered(frames())
            first_frame, _ = next(iterator)
            assert first_frame.index == 0
            assert len(pulled) <= 3
            iterator.close()

    def test_max_pending_validated(self):
        with pytest.raises(ValueError):
            RecognitionPool(SlowRecognizer(1), workers=0, max_pending=0)
