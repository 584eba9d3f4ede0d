"""
Pipelines
=========

End-to-end watermark and process runs.

    watermark:  source -> embed -> write  (<name>.w.ivf)
    process:    source -> recognize (pool) -> realign -> write  (<name>.r.ivf)

The watermark run keeps every source frame at its own timestamp and only
drops frames whose timestamp does not increase. The process run places
frames with FrameRealigner. Each run is a single ordered pass; only the
recognition step fans out to worker threads and its results come back in
capture order.

Failure Policy:
    - Per-frame recognition failures are handled by the realigner
    - DecodeError, WriteError, EncodingOverflow and cancellation abort
      the run and delete the partial output file
    - A run that produces no canonical frame logs a warning and leaves
      no output file
"""

import logging
import os
import threading
import time
from collections import Counter
from fractions import Fraction
from pathlib import Path
from typing import Iterable, Iterator, Optional, Union

from vmaf_align.config import OutputConfig, Settings
from vmaf_align.errors import PipelineCancelled
from vmaf_align.models import CanonicalFrame, Unrecognized
from vmaf_align.observability import PipelineReport, ProgressReporter
from vmaf_align.output import EncoderFactory, StreamWriter, vp8_encoder_factory
from vmaf_align.realign import FrameRealigner, RealignerState
from vmaf_align.stream import Frame, FrameSource, VideoFileSource, iter_frames
from vmaf_align.watermark import (
    RecognitionPool,
    WatermarkEmbedder,
    WatermarkRecognizer,
    compose_tag_text,
)


logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# =============================================================================
# Helpers
# =============================================================================

def output_path_for(input_path: PathLike, suffix: str, output: OutputConfig) -> Path:
    """
    Derive the output file name.

    clip.mp4 -> clip.<suffix>.<extension>, next to the input unless
    output.directory is set.
    """
    path = Path(input_path)
    directory = Path(output.directory) if output.directory else path.parent
    return directory / f"{path.stem}.{suffix}.{output.extension}"


def _guarded(
    frames: Iterable[Frame],
    report: PipelineReport,
    stop_event: Optional[threading.Event],
) -> Iterator[Frame]:
    """Count frames and stop intake once cancellation is requested."""
    for frame in frames:
        if stop_event is not None and stop_event.is_set():
            raise PipelineCancelled(f"cancelled after {report.frames_in} frames")
        report.frames_in += 1
        yield frame


def _remove_partial(path: Path) -> None:
    try:
        path.unlink()
        logger.info(f"Removed incomplete output {path}")
    except FileNotFoundError:
        pass


def _update_report(report: PipelineReport, state: RealignerState) -> None:
    report.recognized = state.recognized
    report.unrecognized = state.unrecognized
    report.dropped_duplicates = state.dropped_duplicates
    report.repeated = state.repeated
    report.gap_filled = state.gap_filled


def _write(
    canonical: Iterable[CanonicalFrame],
    output_path: Path,
    settings: Settings,
    encoder_factory: EncoderFactory,
    report: PipelineReport,
) -> None:
    """Drain `canonical` into a StreamWriter, deleting the file on failure."""
    writer = StreamWriter(
        output_path,
        encoder_factory,
        fourcc=settings.output.fourcc.encode("ascii"),
        timebase=Fraction(settings.output.timebase_num, settings.output.timebase_den),
    )
    try:
        writer.write(canonical)
    except BaseException:
        writer.abort()
        _remove_partial(output_path)
        raise

    report.frames_out = writer.frames_written
    if writer.opened:
        report.output_path = output_path
    else:
        message = f"No canonical frames produced from {report.input_path}; no output written"
        report.warnings.append(message)
        logger.warning(message)


# =============================================================================
# Frame-level stages
# =============================================================================

def watermark_frames(
    frames: Iterable[Frame],
    embedder: WatermarkEmbedder,
    watermark_id: int,
    interval_ms: int,
    report: PipelineReport,
    progress: Optional[ProgressReporter] = None,
) -> Iterator[CanonicalFrame]:
    """
    Embed tags, keeping every frame at its source timestamp.

    Frames without a presentation time are placed at index * interval_ms.
    A frame whose timestamp is not after the previous one is dropped.
    """
    last: Optional[int] = None
    for frame in frames:
        timestamp_ms = frame.timestamp_ms
        if timestamp_ms is None:
            timestamp_ms = frame.index * interval_ms
        if last is not None and timestamp_ms <= last:
            report.dropped_duplicates += 1
            logger.debug(f"Dropped frame {frame.index}: t={timestamp_ms}ms <= last={last}ms")
            continue
        tagged = embedder.embed(frame, watermark_id, timestamp_ms)
        last = timestamp_ms
        yield CanonicalFrame(frame=tagged, output_timestamp_ms=timestamp_ms)
        if progress is not None:
            progress.update(timestamp_ms)


def process_frames(
    frames: Iterable[Frame],
    pool: RecognitionPool,
    realigner: FrameRealigner,
    state: RealignerState,
    progress: Optional[ProgressReporter] = None,
    ids: Optional[Counter] = None,
) -> Iterator[CanonicalFrame]:
    """Recognize tags and place frames on the timeline."""
    for frame, result in pool.recognize_ordered(frames):
        if isinstance(result, Unrecognized):
            logger.debug(f"Frame {frame.index} unrecognized: {result.reason.value} {result.detail}")
        elif ids is not None:
            ids[result.tag.id] += 1
        yield from realigner.feed(state, frame, result)
        if progress is not None:
            progress.update(state.last_accepted_timestamp_ms, failed=state.unrecognized)


# =============================================================================
# Runs
# =============================================================================

def watermark_video(
    input_path: PathLike,
    watermark_id: int,
    settings: Settings,
    *,
    source: Optional[FrameSource] = None,
    encoder_factory: Optional[EncoderFactory] = None,
    stop_event: Optional[threading.Event] = None,
    output_path: Optional[PathLike] = None,
) -> PipelineReport:
    """
    Watermark every frame of a video.

    Args:
        input_path: Source video
        watermark_id: Id drawn into every frame
        settings: Configuration
        source: Frame source (opened from input_path if None); closed on return
        encoder_factory: Pixel encoder (VP8 if None)
        stop_event: Set to cancel the run
        output_path: Override for the output file

    Returns:
        PipelineReport

    Raises:
        EncodingOverflow: If the id or a timestamp does not fit
        DecodeError, WriteError, PipelineCancelled
    """
    compose_tag_text(watermark_id, 0, settings.watermark)

    started = time.monotonic()
    report = PipelineReport(mode="watermark", input_path=Path(input_path))
    output = Path(output_path) if output_path else output_path_for(
        input_path, settings.output.watermark_suffix, settings.output
    )
    encoder_factory = encoder_factory or vp8_encoder_factory(settings.output.encoder)
    source = source or VideoFileSource(input_path)

    logger.info(f"Watermarking {input_path} -> {output} (id={watermark_id})")
    embedder = WatermarkEmbedder(settings.watermark)
    progress = ProgressReporter(
        total_frames=getattr(source, "frame_count", 0),
        every_frames=settings.processing.progress_every_frames,
        every_seconds=settings.processing.progress_every_seconds,
    )

    try:
        frames = _guarded(iter_frames(source), report, stop_event)
        canonical = watermark_frames(
            frames, embedder, watermark_id, settings.realign.nominal_interval_ms, report, progress
        )
        _write(canonical, output, settings, encoder_factory, report)
    finally:
        source.close()

    report.recognized_id = watermark_id
    report.elapsed_seconds = time.monotonic() - started
    logger.info(f"Watermark done: {report.to_dict()}")
    return report


def process_video(
    input_path: PathLike,
    settings: Settings,
    *,
    source: Optional[FrameSource] = None,
    encoder_factory: Optional[EncoderFactory] = None,
    stop_event: Optional[threading.Event] = None,
    output_path: Optional[PathLike] = None,
    rename_with_id: bool = False,
) -> PipelineReport:
    """
    Recover watermarks from a captured video and re-time its frames.

    Args:
        input_path: Captured video
        settings: Configuration
        source: Frame source (opened from input_path if None); closed on return
        encoder_factory: Pixel encoder (VP8 if None)
        stop_event: Set to cancel the run
        output_path: Override for the output file
        rename_with_id: Insert the most frequent recognized id into the
            output name (<name>.<id>.<suffix>.<ext>)

    Returns:
        PipelineReport (empty if no frame was recognized)

    Raises:
        DecodeError, WriteError, PipelineCancelled
    """
    started = time.monotonic()
    report = PipelineReport(mode="process", input_path=Path(input_path))
    output = Path(output_path) if output_path else output_path_for(
        input_path, settings.output.processed_suffix, settings.output
    )
    encoder_factory = encoder_factory or vp8_encoder_factory(settings.output.encoder)
    source = source or VideoFileSource(input_path)

    logger.info(f"Processing {input_path} -> {output}")
    recognizer = WatermarkRecognizer(settings.watermark, settings.recognition)
    realigner = FrameRealigner(settings.realign)
    state = RealignerState()
    ids: Counter = Counter()
    progress = ProgressReporter(
        total_frames=getattr(source, "frame_count", 0),
        every_frames=settings.processing.progress_every_frames,
        every_seconds=settings.processing.progress_every_seconds,
    )

    try:
        with RecognitionPool(
            recognizer,
            workers=settings.processing.workers,
            max_pending=settings.processing.max_pending,
        ) as pool:
            frames = _guarded(iter_frames(source), report, stop_event)
            canonical = process_frames(frames, pool, realigner, state, progress, ids)
            _write(canonical, output, settings, encoder_factory, report)
    finally:
        source.close()

    _update_report(report, state)
    if ids:
        report.recognized_id = ids.most_common(1)[0][0]
        if len(ids) > 1:
            logger.warning(f"Multiple watermark ids recognized: {dict(ids)}")

    if rename_with_id and report.output_path is not None and report.recognized_id is not None:
        renamed = output.with_name(
            f"{Path(input_path).stem}.{report.recognized_id}."
            f"{settings.output.processed_suffix}.{settings.output.extension}"
        )
        os.replace(report.output_path, renamed)
        logger.info(f"Output file renamed to: {renamed}")
        report.output_path = renamed

    report.elapsed_seconds = time.monotonic() - started
    logger.info(f"Process done: {report.to_dict()}")
    return report
