"""
Reason Codes
============

Fixed set of machine-readable reasons for unrecognized frames.

Each Unrecognized result carries exactly ONE reason code. Free-text
detail is optional and only used for logging.
"""

from enum import Enum


class UnrecognizedReason(str, Enum):
    """
    Why a frame's watermark could not be recovered.

    Attributes:
        GLYPH_NO_MATCH: A glyph cell scored below the acceptance threshold
        MALFORMED_TAG: All cells matched but the symbols do not form a tag
        ID_MISMATCH: The tag's id differs from the expected id
        TIMESTAMP_OUT_OF_RANGE: The timestamp exceeds the plausible maximum
        FRAME_TOO_SMALL: The frame cannot hold the watermark layout
    """

    GLYPH_NO_MATCH = "GLYPH_NO_MATCH"
    MALFORMED_TAG = "MALFORMED_TAG"
    ID_MISMATCH = "ID_MISMATCH"
    TIMESTAMP_OUT_OF_RANGE = "TIMESTAMP_OUT_OF_RANGE"
    FRAME_TOO_SMALL = "FRAME_TOO_SMALL"
