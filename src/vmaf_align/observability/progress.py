"""
Progress Reporting
==================

Periodic progress lines and the end-of-run report.

Progress is logged every N frames or every T seconds, whichever comes
first, together with the running count of unrecognized frames.
Reporting is PURELY DESCRIPTIVE; nothing here influences the pipeline.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional


logger = logging.getLogger(__name__)


class ProgressReporter:
    """
    Rate-limited progress logger.

    Example:
        progress = ProgressReporter(total_frames=source.frame_count)
        for frame in frames:
            progress.update(frame.timestamp_ms, failed=state.unrecognized)
    """

    def __init__(
        self,
        total_frames: int = 0,
        every_frames: int = 100,
        every_seconds: float = 1.0,
        clock=time.monotonic,
    ) -> None:
        """
        Initialize progress reporter.

        Args:
            total_frames: Expected frame count (0 if unknown)
            every_frames: Log at least every N frames
            every_seconds: Log at least every T seconds
            clock: Monotonic clock, injectable for tests
        """
        self.total_frames = total_frames
        self.every_frames = every_frames
        self.every_seconds = every_seconds
        self._clock = clock

        self.frame_count = 0
        self._last_log_count = 0
        self._last_log_time = clock()

    def update(self, timestamp_ms: Optional[int], failed: int = 0) -> bool:
        """
        Count one frame and log if due.

        Returns:
            True if a progress line was logged
        """
        self.frame_count += 1
        now = self._clock()
        if (
            self.frame_count - self._last_log_count < self.every_frames
            and now - self._last_log_time < self.every_seconds
        ):
            return False

        total = self.total_frames if self.total_frames > 0 else "?"
        seconds = (timestamp_ms or 0) / 1000
        logger.info(f"[{self.frame_count}/{total}] {seconds:.2f}s (failed: {failed})")
        self._last_log_count = self.frame_count
        self._last_log_time = now
        return True


@dataclass
class PipelineReport:
    """
    Summary of one watermark or process run.

    Attributes:
        mode: "watermark" or "process"
        input_path: Source video
        output_path: Written file, None if nothing was written
        frames_in: Frames decoded from the source
        frames_out: Canonical frames written
        recognized: Frames with a recognized tag
        unrecognized: Frames without a recognized tag
        dropped_duplicates: Late or duplicate frames dropped
        repeated: Repeats emitted for unrecognized frames
        gap_filled: Repeats emitted to fill gaps
        recognized_id: Most frequent recognized id (process mode)
        elapsed_seconds: Wall time of the run
    """

    mode: str
    input_path: Path
    output_path: Optional[Path] = None
    frames_in: int = 0
    frames_out: int = 0
    recognized: int = 0
    unrecognized: int = 0
    dropped_duplicates: int = 0
    repeated: int = 0
    gap_filled: int = 0
    recognized_id: Optional[int] = None
    elapsed_seconds: float = 0.0
    warnings: list = field(default_factory=list)

    @property
    def empty(self) -> bool:
        """True if no canonical frame was produced."""
        return self.frames_out == 0

    def to_dict(self) -> dict:
        """Export as dictionary for logging/serialization."""
        return {
            "mode": self.mode,
            "input_path": str(self.input_path),
            "output_path": str(self.output_path) if self.output_path else None,
            "frames_in": self.frames_in,
            "frames_out": self.frames_out,
            "recognized": self.recognized,
            "unrecognized": self.unrecognized,
            "dropped_duplicates": self.dropped_duplicates,
            "repeated": self.repeated,
            "gap_filled": self.gap_filled,
            "recognized_id": self.recognized_id,
            "elapsed_seconds": round(self.elapsed_seconds, 3),
            "warnings": list(self.warnings),
        }
