"""Tests for result types and aggregation."""

import pytest

from media_transcriber.backends.base import RecognitionEvent, SpanTiming
from media_transcriber.types import Segment, TranscriptionResult, aggregate


class TestSegment:
    def test_duration(self):
        assert Segment("hi", 1.5, 4.0).duration == pytest.approx(2.5)

    def test_zero_length_allowed(self):
        assert Segment("", 2.0, 2.0).duration == 0.0

    def test_end_before_start_rejected(self):
        with pytest.raises(ValueError):
            Segment("hi", 3.0, 2.0)


class TestAverageConfidence:
    """Tests for TranscriptionResult.average_confidence."""

    def test_mean_of_segments(self):
        result = TranscriptionResult(
            text="a b c",
            segments=[Segment("a", 0, 1, 0.9), Segment("b", 1, 2, 0.6), Segment("c", 2, 3, 0.3)],
        )
        assert result.average_confidence == pytest.approx(0.6)

    def test_zero_without_segments(self):
        assert TranscriptionResult(text="").average_confidence == 0.0

    def test_recomputed_after_segments_change(self):
        """The mean follows the current segment list, it is never cached."""
        result = TranscriptionResult(text="a", segments=[Segment("a", 0, 1, 0.9)])
        assert result.average_confidence == pytest.approx(0.9)

        result.segments.append(Segment("b", 1, 2, 0.5))
        assert result.average_confidence == pytest.approx(0.7)


class TestAggregate:
    """Tests for building results from a final recognition event."""

    def test_one_segment_per_span(self):
        raw = RecognitionEvent(
            text="Hello world",
            is_final=True,
            spans=(
                SpanTiming("Hello", 0.0, 0.5, 0.95),
                SpanTiming("world", 0.5, 0.75, 0.85),
            ),
        )
        result = aggregate(raw, measured_duration=3.0, language="en-GB", was_on_device=True)

        assert result.text == "Hello world"
        assert result.segments == [
            Segment("Hello", 0.0, 0.5, 0.95),
            Segment("world", 0.5, 1.25, 0.85),
        ]
        assert result.duration == 3.0
        assert result.language == "en-GB"
        assert result.is_on_device is True

    def test_no_spans_gives_whole_file_segment(self):
        raw = RecognitionEvent(text="Just text", is_final=True)
        result = aggregate(raw, measured_duration=12.5, language="en-US", was_on_device=False)

        assert result.segments == [Segment("Just text", 0.0, 12.5, 1.0)]
        assert result.average_confidence == 1.0

    def test_duration_is_the_measured_one(self):
        """Duration comes from the audio file, not from the last span."""
        raw = RecognitionEvent(text="x", is_final=True, spans=(SpanTiming("x", 0.0, 1.0),))
        result = aggregate(raw, measured_duration=60.0, language="en-US", was_on_device=False)
        assert result.duration == 60.0

    def test_audio_path_kept(self):
        raw = RecognitionEvent(text="", is_final=True)
        result = aggregate(raw, 0.0, "en-US", False, audio_path="/tmp/a.wav")
        assert result.audio_path == "/tmp/a.wav"
