"""
Glyph Alphabet
==============

Fixed 5x7 bitmap font for the watermark: digits 0-9 and the '-' separator.

Bitmaps are drawn with full-cell strokes so that every glyph stays
distinguishable after block-based lossy compression once scaled up.
The alphabet is a process-wide constant; arrays are read-only.
"""

from types import MappingProxyType
from typing import Dict, Mapping

import numpy as np


GLYPH_WIDTH = 5
GLYPH_HEIGHT = 7
SEPARATOR = "-"
DIGITS = "0123456789"
SYMBOLS = DIGITS + SEPARATOR

_FONT: Dict[str, tuple] = {
    "0": (
        " ### ",
        "#   #",
        "#  ##",
        "# # #",
        "##  #",
        "#   #",
        " ### ",
    ),
    "1": (
        "  #  ",
        " ##  ",
        "  #  ",
        "  #  ",
        "  #  ",
        "  #  ",
        " ### ",
    ),
    "2": (
        " ### ",
        "#   #",
        "    #",
        "   # ",
        "  #  ",
        " #   ",
        "#####",
    ),
    "3": (
        "#####",
        "   # ",
        "  #  ",
        "   # ",
        "    #",
        "#   #",
        " ### ",
    ),
    "4": (
        "   # ",
        "  ## ",
        " # # ",
        "#  # ",
        "#####",
        "   # ",
        "   # ",
    ),
    "5": (
        "#####",
        "#    ",
        "#### ",
        "    #",
        "    #",
        "#   #",
        " ### ",
    ),
    "6": (
        "  ## ",
        " #   ",
        "#    ",
        "#### ",
        "#   #",
        "#   #",
        " ### ",
    ),
    "7": (
        "#####",
        "    #",
        "   # ",
        "  #  ",
        " #   ",
        " #   ",
        " #   ",
    ),
    "8": (
        " ### ",
        "#   #",
        "#   #",
        " ### ",
        "#   #",
        "#   #",
        " ### ",
    ),
    "9": (
        " ### ",
        "#   #",
        "#   #",
        " ####",
        "    #",
        "   # ",
        " ##  ",
    ),
    "-": (
        "     ",
        "     ",
        "     ",
        "#####",
        "     ",
        "     ",
        "     ",
    ),
}


def _to_bitmap(rows: tuple) -> np.ndarray:
    bitmap = np.array([[c == "#" for c in row] for row in rows], dtype=np.uint8)
    if bitmap.shape != (GLYPH_HEIGHT, GLYPH_WIDTH):
        raise ValueError(f"glyph bitmap has shape {bitmap.shape}")
    bitmap.setflags(write=False)
    return bitmap


# Ordered symbol -> (7, 5) uint8 array of 0/1
ALPHABET: Mapping[str, np.ndarray] = MappingProxyType(
    {symbol: _to_bitmap(_FONT[symbol]) for symbol in SYMBOLS}
)
