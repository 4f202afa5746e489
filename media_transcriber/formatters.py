"""Output formatters for transcription results."""

import json
from datetime import datetime, timezone
from enum import Enum

from .errors import ConfigInvalid
from .types import TranscriptionResult


class OutputFormat(str, Enum):
    """Supported output encodings."""

    TXT = "txt"
    JSON = "json"
    SRT = "srt"
    VTT = "vtt"

    def __str__(self) -> str:
        return self.value

    @property
    def extension(self) -> str:
        return f".{self.value}"

    @classmethod
    def parse(cls, value: "str | OutputFormat") -> "OutputFormat":
        """Parse a format name, rejecting anything outside the four encodings."""
        try:
            return cls(value)
        except ValueError:
            valid = ", ".join(fmt.value for fmt in cls)
            raise ConfigInvalid(
                f"Invalid format '{value}'. Valid formats: {valid}"
            ) from None


def _split_seconds(seconds: float) -> tuple[int, int, int, int]:
    """Split seconds into (hours, minutes, seconds, milliseconds)."""
    # Work in whole milliseconds so 1.234 does not render as 1.233.
    total_ms = max(0, round(seconds * 1000))
    whole, millis = divmod(total_ms, 1000)
    hours = whole // 3600
    minutes = (whole % 3600) // 60
    secs = whole % 60
    return hours, minutes, secs, millis


def _format_timestamp_srt(seconds: float) -> str:
    """Format seconds as SRT timestamp: HH:MM:SS,mmm (comma for milliseconds)."""
    hours, minutes, secs, millis = _split_seconds(seconds)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def _format_timestamp_vtt(seconds: float) -> str:
    """Format seconds as VTT timestamp: MM:SS.mmm, or HH:MM:SS.mmm past the first hour."""
    hours, minutes, secs, millis = _split_seconds(seconds)
    if hours > 0:
        return f"{hours:02d}:{minutes:02d}:{secs:02d}.{millis:03d}"
    return f"{minutes:02d}:{secs:02d}.{millis:03d}"


def _format_generated_at(moment: datetime | None) -> str:
    moment = moment or datetime.now(timezone.utc)
    moment = moment.astimezone(timezone.utc).replace(microsecond=0)
    return moment.isoformat().replace("+00:00", "Z")


def format_txt(result: TranscriptionResult) -> str:
    """Format transcription as plain text: the engine's full text, untouched."""
    return result.text


def format_srt(result: TranscriptionResult) -> str:
    """
    Format transcription as SRT (SubRip) subtitle format.

    Returns:
        SRT formatted string, empty when there are no segments
    """
    cues = []
    for i, segment in enumerate(result.segments, start=1):
        start_ts = _format_timestamp_srt(segment.start)
        end_ts = _format_timestamp_srt(segment.end)
        cues.append(f"{i}\n{start_ts} --> {end_ts}\n{segment.text}\n\n")
    return "".join(cues)


def format_vtt(result: TranscriptionResult) -> str:
    """
    Format transcription as WebVTT subtitle format.

    Returns:
        VTT formatted string; just the header when there are no segments
    """
    cues = ["WEBVTT\n\n"]
    for segment in result.segments:
        start_ts = _format_timestamp_vtt(segment.start)
        end_ts = _format_timestamp_vtt(segment.end)
        cues.append(f"{start_ts} --> {end_ts}\n{segment.text}\n\n")
    return "".join(cues)


def format_json(
    result: TranscriptionResult, generated_at: datetime | None = None
) -> str:
    """
    Format transcription as structured JSON.

    Keys are sorted so identical results encode identically. The
    ``metadata.transcribedAt`` timestamp is taken at encode time unless
    ``generated_at`` is given, and is the only field that varies between
    calls.

    Returns:
        JSON formatted string with full metadata
    """
    data = {
        "text": result.text,
        "language": result.language,
        "duration": result.duration,
        "isOnDevice": result.is_on_device,
        "averageConfidence": result.average_confidence,
        "segments": [
            {
                "text": seg.text,
                "startTime": seg.start,
                "endTime": seg.end,
                "confidence": seg.confidence,
            }
            for seg in result.segments
        ],
        "metadata": {
            "segmentCount": len(result.segments),
            "transcribedAt": _format_generated_at(generated_at),
        },
    }
    return json.dumps(data, indent=2, sort_keys=True, ensure_ascii=False)


# Mapping of formats to formatter functions
FORMATTERS = {
    OutputFormat.TXT: format_txt,
    OutputFormat.SRT: format_srt,
    OutputFormat.VTT: format_vtt,
    OutputFormat.JSON: format_json,
}


def encode(result: TranscriptionResult, fmt: "OutputFormat | str") -> str:
    """Serialize ``result`` in the requested output format."""
    return FORMATTERS[OutputFormat.parse(fmt)](result)
