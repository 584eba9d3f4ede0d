"""
Watermark Recognizer
====================

Recovers the (id, timestamp) tag drawn by WatermarkEmbedder.

The strip is read at the fixed positions given by WatermarkLayout; every
cell is matched independently with GlyphCodec. A tag is only reported
when every cell matches and the symbols parse into valid fields, so a
corrupted frame yields Unrecognized rather than a wrong timestamp.

Per-frame failures never raise: they are returned as Unrecognized with
a reason code.
"""

import logging
from typing import Dict, List, Optional, Tuple

import cv2
import numpy as np

from vmaf_align.config import RecognitionConfig, WatermarkConfig
from vmaf_align.errors import NoMatch, WatermarkLayoutError
from vmaf_align.glyphs import DIGITS, SEPARATOR, GlyphCodec
from vmaf_align.models import (
    RecognitionResult,
    Recognized,
    Unrecognized,
    UnrecognizedReason,
    WatermarkTag,
)
from vmaf_align.stream.frame import Frame
from vmaf_align.watermark.layout import WatermarkLayout


logger = logging.getLogger(__name__)


class WatermarkRecognizer:
    """
    Per-frame watermark recognition.

    Stateless apart from a layout cache, so one instance can be shared
    by the worker threads of a RecognitionPool.

    Example:
        recognizer = WatermarkRecognizer(settings.watermark, settings.recognition)
        result = recognizer.recognize(frame)
        if isinstance(result, Recognized):
            print(result.tag.timestamp_ms)
    """

    def __init__(
        self,
        watermark: WatermarkConfig,
        recognition: Optional[RecognitionConfig] = None,
    ) -> None:
        """
        Initialize recognizer.

        Args:
            watermark: Shared watermark configuration (same as the embedder's)
            recognition: Acceptance rules
        """
        self.watermark = watermark
        self.recognition = recognition or RecognitionConfig()
        self.codec = GlyphCodec(match_threshold=self.recognition.match_threshold)
        self._layouts: Dict[Tuple[int, int], WatermarkLayout] = {}

    def layout_for(self, width: int, height: int) -> WatermarkLayout:
        key = (width, height)
        layout = self._layouts.get(key)
        if layout is None:
            layout = WatermarkLayout.for_frame(width, height, self.watermark)
            self._layouts[key] = layout
        return layout

    def read_symbols(self, frame: Frame) -> Tuple[str, float]:
        """
        Match every strip cell.

        Returns:
            Tuple of (symbols, minimum score)

        Raises:
            NoMatch: On the first cell that matches no glyph
            WatermarkLayoutError: If the frame is too small
        """
        layout = self.layout_for(frame.width, frame.height)
        band = cv2.cvtColor(
            np.ascontiguousarray(frame.pixels[: layout.band_height]),
            cv2.COLOR_BGR2GRAY,
        )

        symbols: List[str] = []
        confidence = 1.0
        for i in range(layout.cell_count):
            x, y, w, h = layout.cell_box(i)
            symbol, score = self.codec.match(band[y:y + h, x:x + w])
            symbols.append(symbol)
            confidence = min(confidence, score)
        return "".join(symbols), confidence

    def parse(self, text: str) -> Optional[WatermarkTag]:
        """Parse strip text into a tag, or None if malformed."""
        id_digits = self.watermark.id_digits
        id_text = text[:id_digits]
        separator = text[id_digits:id_digits + 1]
        time_text = text[id_digits + 1:]

        if separator != SEPARATOR or len(time_text) != self.watermark.timestamp_digits:
            return None
        if not all(c in DIGITS for c in id_text + time_text):
            return None
        return WatermarkTag(id=int(id_text), timestamp_ms=int(time_text))

    def recognize(self, frame: Frame) -> RecognitionResult:
        """
        Recognize the watermark of one frame.

        Args:
            frame: Captured frame

        Returns:
            Recognized(tag, confidence) or Unrecognized(reason, detail)
        """
        try:
            text, confidence = self.read_symbols(frame)
        except WatermarkLayoutError as e:
            return Unrecognized(UnrecognizedReason.FRAME_TOO_SMALL, str(e))
        except NoMatch as e:
            return Unrecognized(UnrecognizedReason.GLYPH_NO_MATCH, str(e))

        tag = self.parse(text)
        if tag is None:
            return Unrecognized(UnrecognizedReason.MALFORMED_TAG, f"read {text!r}")

        expected_id = self.recognition.expected_id
        if expected_id is not None and tag.id != expected_id:
            return Unrecognized(
                UnrecognizedReason.ID_MISMATCH,
                f"id {tag.id} != expected {expected_id}",
            )

        max_ts = self.recognition.max_timestamp_ms
        if max_ts is not None and tag.timestamp_ms > max_ts:
            return Unrecognized(
                UnrecognizedReason.TIMESTAMP_OUT_OF_RANGE,
                f"timestamp {tag.timestamp_ms}ms > {max_ts}ms",
            )

        return Recognized(tag=tag, confidence=confidence)
