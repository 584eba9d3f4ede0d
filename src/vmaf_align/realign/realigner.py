"""
Frame Realigner
===============

Places captured frames on a strictly increasing canonical timeline.

Frames arrive in capture order with a recognition verdict each. Real-time
capture drops, duplicates and reorders frames; the realigner turns that
into a timeline the encoder can consume:

    Verdict                             Action
    ----------------------------------  ---------------------------------------
    Unrecognized, nothing accepted yet  skip
    Unrecognized                        repeat last frame at last + interval
    Recognized, t < last + spacing      drop (duplicate, out of order or too close)
    Recognized, t > last + gap          repeat last frame at last + k * interval
                                        while a repeat stays one spacing below t,
                                        then emit at t
    Recognized otherwise                emit at t

After every emission the state's last timestamp and frame move to the
emitted value. The already accepted timeline always wins over a late
arrival, so the output is deterministic for a given input order.

No two emitted timestamps are closer than the minimum spacing (the
nominal interval by default). The default gap threshold is 1.5 intervals;
rounded 30 fps timestamps (0, 33, 67, 100) are not gaps.
"""

import logging
from typing import Iterable, Iterator, List, Optional, Tuple

from vmaf_align.config import RealignConfig
from vmaf_align.models import CanonicalFrame, RecognitionResult, Recognized
from vmaf_align.realign.state import RealignerState
from vmaf_align.stream.frame import Frame


logger = logging.getLogger(__name__)


class FrameRealigner:
    """
    Timeline reconciliation policy.

    The realigner itself holds only configuration; all mutable state
    lives in the RealignerState passed to feed().

    Example:
        realigner = FrameRealigner(RealignConfig(nominal_interval_ms=33))
        state = RealignerState()

        for frame, result in recognized_frames:
            for canonical in realigner.feed(state, frame, result):
                writer.write_frame(canonical)
    """

    def __init__(self, config: Optional[RealignConfig] = None) -> None:
        self.config = config or RealignConfig()
        self.nominal_interval_ms = self.config.nominal_interval_ms
        self.gap_threshold_ms = self.config.effective_gap_threshold_ms
        self.min_spacing_ms = self.config.effective_min_spacing_ms

        logger.debug(
            f"FrameRealigner initialized: interval={self.nominal_interval_ms}ms, "
            f"gap={self.gap_threshold_ms}ms, spacing={self.min_spacing_ms}ms"
        )

    def feed(
        self,
        state: RealignerState,
        frame: Frame,
        result: RecognitionResult,
    ) -> List[CanonicalFrame]:
        """
        Process one captured frame.

        Args:
            state: Stream state, updated in place
            frame: Captured frame
            result: Recognition verdict for the frame

        Returns:
            Canonical frames to emit, in timeline order (possibly empty)
        """
        if not isinstance(result, Recognized):
            state.unrecognized += 1
            if not state.seeded:
                state.skipped_leading += 1
                return []
            state.repeated += 1
            return [self._emit(
                state,
                state.last_accepted_frame,
                state.last_accepted_timestamp_ms + self.nominal_interval_ms,
                repeated=True,
            )]

        state.recognized += 1
        timestamp = result.tag.timestamp_ms

        if not state.seeded:
            state.first_timestamp_ms = timestamp
            return [self._emit(state, frame, timestamp)]

        last = state.last_accepted_timestamp_ms
        if timestamp < last + self.min_spacing_ms:
            state.dropped_duplicates += 1
            logger.debug(
                f"Dropped frame {frame.index}: t={timestamp}ms too close to last={last}ms"
            )
            return []

        emitted: List[CanonicalFrame] = []
        if timestamp > last + self.gap_threshold_ms:
            fill_ts = last + self.nominal_interval_ms
            while fill_ts + self.min_spacing_ms <= timestamp:
                emitted.append(self._emit(state, state.last_accepted_frame, fill_ts, repeated=True))
                state.gap_filled += 1
                fill_ts += self.nominal_interval_ms
            if emitted:
                logger.debug(
                    f"Filled gap {last}ms -> {timestamp}ms with {len(emitted)} repeats"
                )

        emitted.append(self._emit(state, frame, timestamp))
        return emitted

    def _emit(
        self,
        state: RealignerState,
        frame: Frame,
        timestamp_ms: int,
        repeated: bool = False,
    ) -> CanonicalFrame:
        state.last_accepted_timestamp_ms = timestamp_ms
        state.last_accepted_frame = frame
        state.output_count += 1
        return CanonicalFrame(frame=frame, output_timestamp_ms=timestamp_ms, repeated=repeated)

    def realign(
        self,
        pairs: Iterable[Tuple[Frame, RecognitionResult]],
        state: Optional[RealignerState] = None,
    ) -> Iterator[CanonicalFrame]:
        """
        Realign a whole (frame, result) sequence.

        Args:
            pairs: (frame, result) in capture order
            state: State to update (a fresh one if None)

        Yields:
            Canonical frames in timeline order
        """
        if state is None:
            state = RealignerState()
        for frame, result in pairs:
            yield from self.feed(state, frame, result)
