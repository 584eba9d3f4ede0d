"""
vmaf-align
==========

Timestamp watermarking and frame realignment for VMAF evaluation of
real-time video.

A reference video is watermarked with an id and a per-frame timestamp.
After the video has gone through a real-time system and been captured,
the watermark is read back from every captured frame and the frames are
re-timed onto a strictly increasing timeline, so the capture can be
compared frame-for-frame with the reference.

Components:
    - glyphs: fixed bitmap alphabet and matcher
    - watermark: embedder, recognizer and recognition pool
    - realign: drop / repeat / gap-fill timeline policy
    - output: VP8 encoding and IVF writing
    - stream: frame model and PyAV frame source
    - pipeline: watermark and process runs

Example:
    from vmaf_align.config import load_config
    from vmaf_align.pipeline import process_video

    report = process_video("capture.webm", load_config())
    print(report.output_path)
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
