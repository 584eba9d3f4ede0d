"""
Codec Tests
===========

Real encode/decode through PyAV. Skipped when the FFmpeg build has no
libvpx encoder.
"""

from fractions import Fraction

import pytest

from vmaf_align.config import EncoderConfig
from vmaf_align.errors import DecodeError, EncodeError
from vmaf_align.output import Vp8PacketEncoder, read_ivf
from vmaf_align.pipeline import process_video, watermark_video
from vmaf_align.stream import VideoFileSource, iter_frames

from conftest import ListFrameSource


@pytest.fixture(scope="module")
def vp8_available():
    try:
        Vp8PacketEncoder(64, 48, Fraction(1, 1000))
    except EncodeError as e:
        pytest.skip(f"libvpx unavailable: {e}")


class TestVp8PacketEncoder:
    """Tests for the PyAV-backed encoder."""

    def test_every_frame_produces_a_packet(self, vp8_available, make_frame):
        encoder = Vp8PacketEncoder(64, 48, Fraction(1, 1000))
        packets = []
        for i in range(3):
            packets += encoder.encode(make_frame(index=i, width=64, height=48), i * 33)
        packets += encoder.flush()

        assert [p.pts for p in packets] == [0, 33, 66]
        assert all(p.data for p in packets)

    def test_rejects_other_dimensions(self, vp8_available, make_frame):
        encoder = Vp8PacketEncoder(64, 48, Fraction(1, 1000))
        with pytest.raises(EncodeError):
            encoder.encode(make_frame(width=32, height=24), 0)

    def test_unknown_codec(self):
        with pytest.raises(EncodeError):
            Vp8PacketEncoder(64, 48, Fraction(1, 1000), EncoderConfig(codec="no-such-codec"))


class TestVideoFileSource:
    """Tests for decoding files."""

    def test_missing_file(self, tmp_path):
        with pytest.raises(DecodeError):
            VideoFileSource(tmp_path / "missing.webm")

    def test_not_a_video(self, tmp_path):
        path = tmp_path / "notes.webm"
        path.write_bytes(b"definitely not a video")
        with pytest.raises(DecodeError):
            VideoFileSource(path)


class TestRoundTrip:
    """Watermark, encode, decode and realign with the real codec."""

    def test_watermark_then_process(self, vp8_available, settings, make_frame, tmp_path):
        frames = [make_frame(index=i, value=128) for i in range(4)]
        source_path = tmp_path / "clip.mp4"

        marked = watermark_video(source_path, 21, settings, source=ListFrameSource(frames))

        assert marked.output_path == tmp_path / "clip.w.ivf"
        header, chunks = read_ivf(marked.output_path)
        assert header.fourcc == b"VP80"
        assert (header.width, header.height) == (640, 480)
        assert [pts for pts, _ in chunks] == [0, 33, 66, 99]

        with VideoFileSource(marked.output_path) as source:
            decoded = list(iter_frames(source))
        assert len(decoded) == 4
        assert [f.timestamp_ms for f in decoded] == [0, 33, 66, 99]

        processed = process_video(marked.output_path, settings)

        assert processed.recognized == 4
        assert processed.unrecognized == 0
        assert processed.recognized_id == 21
        assert processed.output_path == tmp_path / "clip.w.r.ivf"
        _, chunks = read_ivf(processed.output_path)
        assert [pts for pts, _ in chunks] == [0, 33, 66, 99]
