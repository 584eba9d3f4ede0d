"""
Pipeline Tests
==============

End-to-end watermark and process runs with in-memory sources and a
recording encoder.
"""

import threading

import pytest

from vmaf_align.config import Settings, WatermarkConfig
from vmaf_align.errors import EncodingOverflow, PipelineCancelled
from vmaf_align.models import Recognized
from vmaf_align.output import read_ivf
from vmaf_align.pipeline import output_path_for, process_video, watermark_video
from vmaf_align.watermark import WatermarkEmbedder, WatermarkRecognizer

from conftest import ListFrameSource, RecordingEncoderFactory


class StoppingSource(ListFrameSource):
    """Sets the stop event once `stop_after` frames have been read."""

    def __init__(self, frames, stop_event, stop_after):
        super().__init__(frames)
        self.stop_event = stop_event
        self.stop_after = stop_after

    def next_frame(self):
        if self._pos >= self.stop_after:
            self.stop_event.set()
        return super().next_frame()


def captured_stream(settings, make_frame, source_indices, watermark_id=7):
    """Watermarked frames as a lossy capture would deliver them."""
    embedder = WatermarkEmbedder(settings.watermark)
    return [
        embedder.embed(make_frame(index=i), watermark_id, i * 33)
        for i in source_indices
    ]


class TestOutputPath:
    """Tests for output file naming."""

    def test_next_to_input(self, settings):
        path = output_path_for("/videos/clip.mp4", "w", settings.output)
        assert str(path) == "/videos/clip.w.ivf"

    def test_directory_override(self, settings, tmp_path):
        settings.output.directory = str(tmp_path)
        path = output_path_for("/videos/clip.mp4", "r", settings.output)
        assert path == tmp_path / "clip.r.ivf"


class TestWatermarkVideo:
    """Tests for watermark_video."""

    def test_writes_watermarked_frames(self, settings, make_frame, tmp_path):
        factory = RecordingEncoderFactory()
        source = ListFrameSource([make_frame(index=i) for i in range(5)])
        input_path = tmp_path / "clip.mp4"

        report = watermark_video(input_path, 7, settings, source=source, encoder_factory=factory)

        assert report.output_path == tmp_path / "clip.w.ivf"
        assert report.output_path.exists()
        assert report.frames_in == 5
        assert report.frames_out == 5
        assert report.recognized_id == 7
        assert source.closed

        header, chunks = read_ivf(report.output_path)
        assert header.frame_count == 5
        assert [pts for pts, _ in chunks] == [0, 33, 66, 99, 132]

        recognizer = WatermarkRecognizer(settings.watermark)
        for frame, pts in factory.encoded:
            result = recognizer.recognize(frame)
            assert isinstance(result, Recognized)
            assert result.tag.id == 7
            assert result.tag.timestamp_ms == pts

    def test_uses_source_timestamps(self, settings, make_frame, tmp_path):
        factory = RecordingEncoderFactory()
        frames = [make_frame(index=i, timestamp_ms=i * 40) for i in range(4)]

        watermark_video(
            tmp_path / "clip.mp4", 1, settings,
            source=ListFrameSource(frames), encoder_factory=factory,
        )

        assert [pts for _, pts in factory.encoded] == [0, 40, 80, 120]

    def test_30fps_source_keeps_every_frame(self, settings, make_frame, tmp_path):
        factory = RecordingEncoderFactory()
        stamps = [round(i * 1000 / 30) for i in range(30)]
        frames = [make_frame(index=i, timestamp_ms=t) for i, t in enumerate(stamps)]

        report = watermark_video(
            tmp_path / "clip.mp4", 1, settings,
            source=ListFrameSource(frames), encoder_factory=factory,
        )

        assert [pts for _, pts in factory.encoded] == stamps
        assert report.frames_in == 30
        assert report.frames_out == 30
        assert report.gap_filled == 0
        assert report.repeated == 0

    def test_non_increasing_source_timestamp_dropped(self, settings, make_frame, tmp_path):
        factory = RecordingEncoderFactory()
        frames = [make_frame(index=i, timestamp_ms=t) for i, t in enumerate([0, 40, 40, 30, 80])]

        report = watermark_video(
            tmp_path / "clip.mp4", 1, settings,
            source=ListFrameSource(frames), encoder_factory=factory,
        )

        assert [pts for _, pts in factory.encoded] == [0, 40, 80]
        assert report.dropped_duplicates == 2

    def test_id_overflow_fails_before_reading(self, settings, make_frame, tmp_path):
        source = ListFrameSource([make_frame()])

        with pytest.raises(EncodingOverflow):
            watermark_video(
                tmp_path / "clip.mp4", 1000, settings,
                source=source, encoder_factory=RecordingEncoderFactory(),
            )

        assert not (tmp_path / "clip.w.ivf").exists()

    def test_timestamp_overflow_removes_output(self, make_frame, tmp_path):
        settings = Settings(watermark=WatermarkConfig(timestamp_digits=2))
        source = ListFrameSource([make_frame(index=i) for i in range(5)])

        with pytest.raises(EncodingOverflow):
            watermark_video(
                tmp_path / "clip.mp4", 1, settings,
                source=source, encoder_factory=RecordingEncoderFactory(),
            )

        assert not (tmp_path / "clip.w.ivf").exists()
        assert source.closed

    def test_empty_source_writes_nothing(self, settings, tmp_path):
        report = watermark_video(
            tmp_path / "clip.mp4", 1, settings,
            source=ListFrameSource([]), encoder_factory=RecordingEncoderFactory(),
        )

        assert report.empty
        assert report.output_path is None
        assert report.warnings
        assert not (tmp_path / "clip.w.ivf").exists()

    def test_cancellation_removes_output(self, settings, make_frame, tmp_path):
        stop = threading.Event()
        source = StoppingSource([make_frame(index=i) for i in range(6)], stop, stop_after=3)

        with pytest.raises(PipelineCancelled):
            watermark_video(
                tmp_path / "clip.mp4", 1, settings,
                source=source, encoder_factory=RecordingEncoderFactory(), stop_event=stop,
            )

        assert not (tmp_path / "clip.w.ivf").exists()
        assert source.closed


class TestProcessVideo:
    """Tests for process_video."""

    def test_realigns_lossy_capture(self, settings, make_frame, tmp_path):
        factory = RecordingEncoderFactory()
        frames = captured_stream(settings, make_frame, [0, 1, 1, 2, 4, 5])

        report = process_video(
            tmp_path / "capture.mp4", settings,
            source=ListFrameSource(frames), encoder_factory=factory,
        )

        assert report.output_path == tmp_path / "capture.r.ivf"
        assert [pts for _, pts in factory.encoded] == [0, 33, 66, 99, 132, 165]
        assert report.frames_in == 6
        assert report.frames_out == 6
        assert report.recognized == 6
        assert report.dropped_duplicates == 1
        assert report.gap_filled == 1
        assert report.recognized_id == 7
        # gap fill repeats the frame tagged 66
        assert factory.encoded[3][0] is factory.encoded[2][0]

    def test_unrecognized_frames_repeat_previous(self, settings, make_frame, tmp_path):
        factory = RecordingEncoderFactory()
        frames = captured_stream(settings, make_frame, [0, 1])
        frames.insert(1, make_frame(index=99, value=40))

        report = process_video(
            tmp_path / "capture.mp4", settings,
            source=ListFrameSource(frames), encoder_factory=factory,
        )

        assert report.unrecognized == 1
        assert report.repeated == 1
        # the repeat takes 33, so the real frame tagged 33 is a duplicate
        assert [pts for _, pts in factory.encoded] == [0, 33]
        assert factory.encoded[1][0] is frames[0]

    def test_inline_recognition(self, settings, make_frame, tmp_path):
        settings.processing.workers = 0
        factory = RecordingEncoderFactory()
        frames = captured_stream(settings, make_frame, [0, 1, 2])

        process_video(
            tmp_path / "capture.mp4", settings,
            source=ListFrameSource(frames), encoder_factory=factory,
        )

        assert [pts for _, pts in factory.encoded] == [0, 33, 66]

    def test_nothing_recognized(self, settings, make_frame, tmp_path):
        source = ListFrameSource([make_frame(index=i) for i in range(4)])

        report = process_video(
            tmp_path / "capture.mp4", settings,
            source=source, encoder_factory=RecordingEncoderFactory(),
        )

        assert report.empty
        assert report.unrecognized == 4
        assert report.recognized_id is None
        assert not (tmp_path / "capture.r.ivf").exists()
        assert source.closed

    def test_rename_with_id(self, settings, make_frame, tmp_path):
        frames = captured_stream(settings, make_frame, [0, 1, 2], watermark_id=42)

        report = process_video(
            tmp_path / "capture.mp4", settings,
            source=ListFrameSource(frames), encoder_factory=RecordingEncoderFactory(),
            rename_with_id=True,
        )

        assert report.output_path == tmp_path / "capture.42.r.ivf"
        assert report.output_path.exists()
        assert not (tmp_path / "capture.r.ivf").exists()

    def test_expected_id_filters_foreign_tags(self, settings, make_frame, tmp_path):
        settings.recognition.expected_id = 7
        factory = RecordingEncoderFactory()
        frames = captured_stream(settings, make_frame, [0, 1], watermark_id=7)
        frames += captured_stream(settings, make_frame, [2], watermark_id=8)

        report = process_video(
            tmp_path / "capture.mp4", settings,
            source=ListFrameSource(frames), encoder_factory=factory,
        )

        assert report.recognized == 2
        assert report.unrecognized == 1
        assert [pts for _, pts in factory.encoded] == [0, 33, 66]

    def test_cancellation(self, settings, make_frame, tmp_path):
        stop = threading.Event()
        frames = captured_stream(settings, make_frame, range(8))
        source = StoppingSource(frames, stop, stop_after=4)

        with pytest.raises(PipelineCancelled):
            process_video(
                tmp_path / "capture.mp4", settings,
                source=source, encoder_factory=RecordingEncoderFactory(), stop_event=stop,
            )

        assert not (tmp_path / "capture.r.ivf").exists()
        assert source.closed
