"""
Glyphs Module
=============

Fixed visual alphabet for the watermark.

    - ALPHABET: symbol -> reference bitmap (digits and separator)
    - GlyphCodec: render symbols, match regions back to symbols
"""

from vmaf_align.glyphs.alphabet import (
    ALPHABET,
    DIGITS,
    GLYPH_HEIGHT,
    GLYPH_WIDTH,
    SEPARATOR,
    SYMBOLS,
)
from vmaf_align.glyphs.codec import GlyphCodec


__all__ = [
    "ALPHABET",
    "DIGITS",
    "GLYPH_HEIGHT",
    "GLYPH_WIDTH",
    "SEPARATOR",
    "SYMBOLS",
    "GlyphCodec",
]
