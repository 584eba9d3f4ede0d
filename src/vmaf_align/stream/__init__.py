"""
Stream Module
=============

Frame model and frame sources.

This module provides the ingestion layer for vmaf-align:
    - Frame: Typed frame data model (internal representation)
    - FrameSource: Protocol implemented by frame producers
    - VideoFileSource: PyAV-backed decoder for video files
    - iter_frames: Drain a FrameSource as an iterator

Example:
    from vmaf_align.stream import VideoFileSource, iter_frames

    with VideoFileSource("clip.mp4") as source:
        for frame in iter_frames(source):
            handle(frame)
"""

from vmaf_align.stream.frame import Frame
from vmaf_align.stream.source import FrameSource, VideoFileSource, iter_frames


__all__ = [
    "Frame",
    "FrameSource",
    "VideoFileSource",
    "iter_frames",
]
