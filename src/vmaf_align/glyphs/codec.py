"""
Glyph Codec
===========

Renders alphabet symbols and matches image regions back to symbols.

Matching resamples a region onto the 5x7 glyph grid and scores it
against every reference bitmap with zero-mean normalized
cross-correlation (Pearson correlation), clipped to [0, 1]:

    score = sum((r - mean(r)) * (g - mean(g))) / (|r - mean(r)| * |g - mean(g)|)

The score is invariant to brightness and contrast shifts, which makes
it tolerant of the level changes that lossy re-encoding introduces.
Uniform regions carry no shape information and score 0.
"""

import logging
from typing import Dict, Tuple

import cv2
import numpy as np

from vmaf_align.errors import NoMatch
from vmaf_align.glyphs.alphabet import ALPHABET, GLYPH_HEIGHT, GLYPH_WIDTH


logger = logging.getLogger(__name__)


def _centered(values: np.ndarray) -> Tuple[np.ndarray, float]:
    centered = values.astype(np.float32) - float(values.mean())
    return centered, float(np.sqrt((centered * centered).sum()))


class GlyphCodec:
    """
    Render and match glyphs of the fixed alphabet.

    Attributes:
        match_threshold: Minimum score to accept a match

    Example:
        codec = GlyphCodec(match_threshold=0.7)
        cell = codec.render("7", scale=4)
        symbol, score = codec.match(cell)   # ("7", 1.0)
    """

    def __init__(self, match_threshold: float = 0.7) -> None:
        """
        Initialize glyph codec.

        Args:
            match_threshold: Acceptance threshold in (0, 1]
        """
        if not 0 < match_threshold <= 1:
            raise ValueError("match_threshold must be in (0, 1]")

        self.match_threshold = match_threshold
        self._references: Dict[str, Tuple[np.ndarray, float]] = {
            symbol: _centered(bitmap) for symbol, bitmap in ALPHABET.items()
        }

    def render(self, symbol: str, scale: int = 1) -> np.ndarray:
        """
        Render a symbol as a white-on-black bitmap.

        Args:
            symbol: One of the alphabet symbols
            scale: Integer upscale factor (>= 1)

        Returns:
            np.ndarray (7*scale, 5*scale), dtype=uint8, values 0 or 255

        Raises:
            KeyError: If symbol is not in the alphabet
        """
        if scale < 1:
            raise ValueError("scale must be >= 1")
        bitmap = ALPHABET[symbol] * np.uint8(255)
        return np.repeat(np.repeat(bitmap, scale, axis=0), scale, axis=1)

    def score(self, region: np.ndarray) -> Dict[str, float]:
        """
        Score a region against every symbol.

        Args:
            region: Grayscale (H, W) or BGR (H, W, 3) image of one glyph cell

        Returns:
            Dict symbol -> score in [0, 1]
        """
        if region.ndim == 3:
            region = cv2.cvtColor(region, cv2.COLOR_BGR2GRAY)
        if region.size == 0:
            raise ValueError("cannot match an empty region")

        grid = cv2.resize(
            region.astype(np.float32),
            (GLYPH_WIDTH, GLYPH_HEIGHT),
            interpolation=cv2.INTER_AREA,
        )
        centered, norm = _centered(grid)
        if norm < 1e-6:
            return {symbol: 0.0 for symbol in self._references}

        scores = {}
        for symbol, (ref, ref_norm) in self._references.items():
            corr = float((centered * ref).sum()) / (norm * ref_norm)
            scores[symbol] = min(1.0, max(0.0, corr))
        return scores

    def match(self, region: np.ndarray) -> Tuple[str, float]:
        """
        Find the best matching symbol for a region.

        Args:
            region: Image of one glyph cell

        Returns:
            Tuple of (symbol, score)

        Raises:
            NoMatch: If the best score is below match_threshold
        """
        scores = self.score(region)
        symbol = max(scores, key=scores.get)
        best = scores[symbol]
        if best < self.match_threshold:
            raise NoMatch(symbol, best)
        return symbol, best
