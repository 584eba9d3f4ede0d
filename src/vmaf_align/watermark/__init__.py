"""
Watermark Module
================

Embedding and recognition of the id+timestamp watermark.

    - WatermarkLayout: strip geometry shared by both sides
    - WatermarkEmbedder: draw a tag into a frame
    - WatermarkRecognizer: read a tag back from a frame
    - RecognitionPool: order-preserving parallel recognition
"""

from vmaf_align.watermark.layout import WatermarkLayout
from vmaf_align.watermark.embedder import WatermarkEmbedder, compose_tag_text
from vmaf_align.watermark.recognizer import WatermarkRecognizer
from vmaf_align.watermark.pool import RecognitionPool


__all__ = [
    "WatermarkLayout",
    "WatermarkEmbedder",
    "WatermarkRecognizer",
    "RecognitionPool",
    "compose_tag_text",
]
