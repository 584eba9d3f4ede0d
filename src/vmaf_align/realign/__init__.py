"""
Realign Module
==============

Canonical timeline reconstruction.

    - RealignerState: explicit per-stream mutable state
    - FrameRealigner: drop / repeat / gap-fill policy
"""

from vmaf_align.realign.state import RealignerState
from vmaf_align.realign.realigner import FrameRealigner


__all__ = [
    "RealignerState",
    "FrameRealigner",
]
