"""
Errors
======

Exception taxonomy for vmaf-align.

Per-frame recognition failures (NoMatch) are recovered locally and turned
into Unrecognized results. Everything else is fatal for the run and
propagates to the command line entry point.
"""


class VmafAlignError(Exception):
    """Base class for all vmaf-align errors."""
    pass


class EncodingOverflow(VmafAlignError):
    """Raised when an id or timestamp does not fit its fixed numeral width."""
    pass


class WatermarkLayoutError(VmafAlignError):
    """Raised when a frame is too small to hold the watermark strip."""
    pass


class NoMatch(VmafAlignError):
    """Raised when no glyph scores above the acceptance threshold."""

    def __init__(self, best_symbol: str, best_score: float) -> None:
        super().__init__(
            f"no glyph above threshold (best={best_symbol!r}, score={best_score:.3f})"
        )
        self.best_symbol = best_symbol
        self.best_score = best_score


class DecodeError(VmafAlignError):
    """Raised when the input video cannot be opened or decoded."""
    pass


class EncodeError(VmafAlignError):
    """Raised when the pixel encoder cannot be opened or rejects a frame."""
    pass


class WriteError(VmafAlignError):
    """Raised when encoding or writing the output container fails."""
    pass


class PipelineCancelled(VmafAlignError):
    """Raised when a run is stopped before the input is exhausted."""
    pass
