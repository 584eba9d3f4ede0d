"""
Watermark Layout
================

Pixel geometry of the watermark strip.

The embedder draws and the recognizer reads the strip at exactly the
positions computed here, so both sides must obtain their layout from
this module with the same WatermarkConfig.

Geometry (all derived from frame size, no search involved):
    - A black band spans the full width of the top `band_height` rows
    - Glyphs are scaled by an integer factor `scale`
    - Each cell is (GLYPH_WIDTH + 1) * scale wide (one column of spacing)
    - The strip is centred horizontally and vertically within the band
"""

from dataclasses import dataclass
from typing import Tuple

from vmaf_align.config import WatermarkConfig
from vmaf_align.errors import WatermarkLayoutError
from vmaf_align.glyphs.alphabet import GLYPH_HEIGHT, GLYPH_WIDTH


# Glyph units: one column between glyphs, one row above and below
CELL_UNITS = GLYPH_WIDTH + 1
BAND_UNITS = GLYPH_HEIGHT + 2


@dataclass(frozen=True, slots=True)
class WatermarkLayout:
    """
    Resolved strip geometry for one frame size.

    Attributes:
        frame_width: Frame width in pixels
        frame_height: Frame height in pixels
        band_height: Rows covered by the black band
        scale: Pixel size of one glyph unit
        origin_x: Left edge of the first glyph
        origin_y: Top edge of the glyphs
        cell_count: Number of glyph cells
    """

    frame_width: int
    frame_height: int
    band_height: int
    scale: int
    origin_x: int
    origin_y: int
    cell_count: int

    @classmethod
    def for_frame(cls, width: int, height: int, config: WatermarkConfig) -> "WatermarkLayout":
        """
        Compute the layout for a frame size.

        Args:
            width: Frame width in pixels
            height: Frame height in pixels
            config: Shared watermark configuration

        Returns:
            WatermarkLayout

        Raises:
            WatermarkLayoutError: If the strip does not fit the frame
        """
        cells = config.cell_count
        band_height = min(height, max(round(height * config.band_fraction), BAND_UNITS))
        scale = min(band_height // BAND_UNITS, width // (cells * CELL_UNITS + 1))
        if scale < 1:
            raise WatermarkLayoutError(
                f"{width}x{height} frame cannot hold a {cells}-glyph watermark"
            )

        strip_width = (cells * CELL_UNITS - 1) * scale
        return cls(
            frame_width=width,
            frame_height=height,
            band_height=band_height,
            scale=scale,
            origin_x=(width - strip_width) // 2,
            origin_y=(band_height - GLYPH_HEIGHT * scale) // 2,
            cell_count=cells,
        )

    @property
    def glyph_size(self) -> Tuple[int, int]:
        """(width, height) of one glyph in pixels."""
        return GLYPH_WIDTH * self.scale, GLYPH_HEIGHT * self.scale

    def cell_box(self, i: int) -> Tuple[int, int, int, int]:
        """Return (x, y, w, h) of glyph cell i."""
        if not 0 <= i < self.cell_count:
            raise IndexError(f"cell {i} out of range")
        w, h = self.glyph_size
        return self.origin_x + i * CELL_UNITS * self.scale, self.origin_y, w, h
