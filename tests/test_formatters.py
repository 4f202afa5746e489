"""Tests for output formatters."""

import json
from datetime import datetime, timezone

import pytest

from media_transcriber.errors import ConfigInvalid, ErrorKind
from media_transcriber.formatters import (
    FORMATTERS,
    OutputFormat,
    _format_timestamp_srt,
    _format_timestamp_vtt,
    encode,
    format_json,
    format_srt,
    format_txt,
    format_vtt,
)
from media_transcriber.types import Segment, TranscriptionResult

FIXED_TIME = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)


def make_result() -> TranscriptionResult:
    """Two chronological segments, as produced by a typical recognizer."""
    return TranscriptionResult(
        text="Hello World",
        segments=[
            Segment("Hello", 0.0, 1.0, 0.9),
            Segment("World", 1.0, 2.0, 0.8),
        ],
        duration=2.0,
        language="en-US",
        is_on_device=True,
    )


def make_empty_result() -> TranscriptionResult:
    return TranscriptionResult(text="", segments=[], duration=0.0)


class TestTimestamps:
    """Tests for SRT and VTT timestamp formatting."""

    def test_srt_zero(self):
        assert _format_timestamp_srt(0.0) == "00:00:00,000"

    def test_srt_minutes(self):
        assert _format_timestamp_srt(65.0) == "00:01:05,000"

    def test_srt_hours(self):
        assert _format_timestamp_srt(3665.0) == "01:01:05,000"

    def test_srt_milliseconds_are_not_truncated(self):
        """1.234 s must render as 234 ms even though 1.234 * 1000 < 1234."""
        assert _format_timestamp_srt(1.234) == "00:00:01,234"

    def test_srt_rounding_carries_into_seconds(self):
        assert _format_timestamp_srt(59.9996) == "00:01:00,000"

    def test_negative_clamps_to_zero(self):
        assert _format_timestamp_srt(-1.0) == "00:00:00,000"

    def test_vtt_omits_hours_under_one_hour(self):
        assert _format_timestamp_vtt(65.5) == "01:05.500"

    def test_vtt_includes_hours_past_one_hour(self):
        assert _format_timestamp_vtt(3661.25) == "01:01:01.250"

    def test_vtt_minutes_can_reach_59(self):
        assert _format_timestamp_vtt(3599.0) == "59:59.000"


class TestFormatTxt:
    def test_returns_full_text(self):
        assert format_txt(make_result()) == "Hello World"

    def test_empty_result(self):
        assert format_txt(make_empty_result()) == ""


class TestFormatSrt:
    """Tests for SRT output."""

    def test_two_segments(self):
        expected = (
            "1\n00:00:00,000 --> 00:00:01,000\nHello\n\n"
            "2\n00:00:01,000 --> 00:00:02,000\nWorld\n\n"
        )
        assert format_srt(make_result()) == expected

    def test_empty_result(self):
        assert format_srt(make_empty_result()) == ""

    def test_timecodes_non_decreasing(self):
        result = TranscriptionResult(
            text="a b c",
            segments=[
                Segment("a", 0.0, 0.4),
                Segment("b", 0.4, 3599.9),
                Segment("c", 3599.9, 3700.0),
            ],
        )
        lines = [line for line in format_srt(result).splitlines() if "-->" in line]
        stamps = [part for line in lines for part in line.split(" --> ")]
        assert stamps == sorted(stamps)


class TestFormatVtt:
    """Tests for WebVTT output."""

    def test_two_segments(self):
        expected = (
            "WEBVTT\n\n"
            "00:00.000 --> 00:01.000\nHello\n\n"
            "00:01.000 --> 00:02.000\nWorld\n\n"
        )
        assert format_vtt(make_result()) == expected

    def test_empty_result_is_header_only(self):
        assert format_vtt(make_empty_result()) == "WEBVTT\n\n"


class TestFormatJson:
    """Tests for JSON output."""

    def test_fields(self):
        data = json.loads(format_json(make_result(), generated_at=FIXED_TIME))

        assert data["text"] == "Hello World"
        assert data["language"] == "en-US"
        assert data["duration"] == 2.0
        assert data["isOnDevice"] is True
        assert data["averageConfidence"] == pytest.approx(0.85)
        assert data["metadata"] == {
            "segmentCount": 2,
            "transcribedAt": "2024-05-01T12:30:45Z",
        }

    def test_segments_round_trip(self):
        result = make_result()
        data = json.loads(format_json(result, generated_at=FIXED_TIME))

        recovered = [
            Segment(s["text"], s["startTime"], s["endTime"], s["confidence"])
            for s in data["segments"]
        ]
        assert recovered == result.segments

    def test_empty_result(self):
        data = json.loads(format_json(make_empty_result(), generated_at=FIXED_TIME))
        assert data["segments"] == []
        assert data["text"] == ""
        assert data["averageConfidence"] == 0.0

    def test_keys_are_sorted(self):
        output = format_json(make_result(), generated_at=FIXED_TIME)
        data = json.loads(output)
        assert list(data.keys()) == sorted(data.keys())

    def test_non_ascii_text_is_kept(self):
        result = TranscriptionResult(text="Grüße", segments=[Segment("Grüße", 0.0, 1.0)])
        assert "Grüße" in format_json(result, generated_at=FIXED_TIME)

    def test_offset_time_is_converted_to_utc(self):
        from datetime import timedelta

        local = datetime(2024, 5, 1, 14, 30, 45, tzinfo=timezone(timedelta(hours=2)))
        data = json.loads(format_json(make_result(), generated_at=local))
        assert data["metadata"]["transcribedAt"] == "2024-05-01T12:30:45Z"


class TestEncode:
    """Tests for the encode dispatcher and OutputFormat."""

    def test_formatters_cover_every_format(self):
        assert set(FORMATTERS) == set(OutputFormat)

    @pytest.mark.parametrize("fmt", ["txt", "srt", "vtt"])
    def test_deterministic(self, fmt):
        result = make_result()
        assert encode(result, fmt) == encode(result, fmt)

    def test_json_differs_only_in_timestamp(self):
        result = make_result()
        first = json.loads(encode(result, OutputFormat.JSON))
        second = json.loads(encode(result, OutputFormat.JSON))
        first["metadata"].pop("transcribedAt")
        second["metadata"].pop("transcribedAt")
        assert first == second

    def test_unknown_format_is_config_error(self):
        with pytest.raises(ConfigInvalid) as exc_info:
            encode(make_result(), "docx")

        assert exc_info.value.kind == ErrorKind.CONFIG_INVALID
        assert "Invalid format 'docx'" in str(exc_info.value)
        assert "txt, json, srt, vtt" in str(exc_info.value)

    def test_extension(self):
        assert OutputFormat.SRT.extension == ".srt"
        assert OutputFormat.parse("vtt") is OutputFormat.VTT
