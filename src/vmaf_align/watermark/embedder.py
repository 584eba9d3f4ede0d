"""
Watermark Embedder
==================

Draws an "<id>-<timestamp_ms>" tag into the top band of a frame.

Design Rules:
    - Fields are zero padded to fixed widths; values that do not fit
      raise EncodingOverflow instead of being truncated
    - The band is overwritten, not blended
    - The input frame is never modified; a new Frame is returned
"""

import logging
from typing import Dict, Optional, Tuple

import numpy as np

from vmaf_align.config import WatermarkConfig
from vmaf_align.errors import EncodingOverflow
from vmaf_align.glyphs import SEPARATOR, GlyphCodec
from vmaf_align.stream.frame import Frame
from vmaf_align.watermark.layout import WatermarkLayout


logger = logging.getLogger(__name__)


def compose_tag_text(watermark_id: int, timestamp_ms: int, config: WatermarkConfig) -> str:
    """
    Format a tag as fixed-width text.

    Raises:
        EncodingOverflow: If either value exceeds its field width
        ValueError: If either value is negative
    """
    if watermark_id < 0 or timestamp_ms < 0:
        raise ValueError("id and timestamp_ms must be non-negative")
    if watermark_id > config.max_id:
        raise EncodingOverflow(
            f"id {watermark_id} does not fit in {config.id_digits} digits"
        )
    if timestamp_ms > config.max_timestamp_ms:
        raise EncodingOverflow(
            f"timestamp {timestamp_ms}ms does not fit in {config.timestamp_digits} digits"
        )
    return (
        f"{watermark_id:0{config.id_digits}d}"
        f"{SEPARATOR}"
        f"{timestamp_ms:0{config.timestamp_digits}d}"
    )


class WatermarkEmbedder:
    """
    Overlay watermark tags onto frames.

    Example:
        embedder = WatermarkEmbedder(settings.watermark)
        tagged = embedder.embed(frame, watermark_id=1, timestamp_ms=1234)
    """

    def __init__(self, config: WatermarkConfig, codec: Optional[GlyphCodec] = None) -> None:
        self.config = config
        self.codec = codec or GlyphCodec()
        self._layouts: Dict[Tuple[int, int], WatermarkLayout] = {}
        self._glyphs: Dict[Tuple[str, int], np.ndarray] = {}

    def layout_for(self, width: int, height: int) -> WatermarkLayout:
        key = (width, height)
        if key not in self._layouts:
            self._layouts[key] = WatermarkLayout.for_frame(width, height, self.config)
        return self._layouts[key]

    def _glyph_mask(self, symbol: str, scale: int) -> np.ndarray:
        key = (symbol, scale)
        if key not in self._glyphs:
            self._glyphs[key] = self.codec.render(symbol, scale) > 0
        return self._glyphs[key]

    def embed(self, frame: Frame, watermark_id: int, timestamp_ms: int) -> Frame:
        """
        Return a copy of frame with the tag drawn into it.

        Args:
            frame: Source frame (not modified)
            watermark_id: Stream id
            timestamp_ms: Presentation time to encode

        Returns:
            New Frame with the same index and timestamp

        Raises:
            EncodingOverflow: If a value exceeds its field width
            WatermarkLayoutError: If the frame is too small
        """
        text = compose_tag_text(watermark_id, timestamp_ms, self.config)
        layout = self.layout_for(frame.width, frame.height)

        pixels = frame.pixels.copy()
        pixels[: layout.band_height, :] = 0
        for i, symbol in enumerate(text):
            x, y, w, h = layout.cell_box(i)
            cell = pixels[y:y + h, x:x + w]
            cell[self._glyph_mask(symbol, layout.scale)] = 255

        return frame.with_pixels(pixels)
