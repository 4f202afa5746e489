"""Transcription result types.

Contains the dataclasses produced by a transcription run and the
aggregation step that builds them from a recognizer's final result.
"""

from dataclasses import dataclass, field

from .backends.base import RecognitionEvent


@dataclass(frozen=True)
class Segment:
    """A recognized span of speech with timing information."""

    text: str
    start: float  # seconds
    end: float  # seconds
    confidence: float = 1.0

    def __post_init__(self) -> None:
        if self.end < self.start:
            raise ValueError(
                f"Segment end ({self.end}) must not precede start ({self.start})"
            )

    @property
    def duration(self) -> float:
        return self.end - self.start


@dataclass
class TranscriptionResult:
    """Complete transcription result."""

    text: str
    segments: list[Segment] = field(default_factory=list)
    duration: float = 0.0  # seconds, measured from the audio file
    language: str = "en-US"
    is_on_device: bool = False
    audio_path: str = ""

    @property
    def average_confidence(self) -> float:
        """Mean segment confidence, recomputed from the current segments."""
        if not self.segments:
            return 0.0
        return sum(seg.confidence for seg in self.segments) / len(self.segments)


def aggregate(
    raw: RecognitionEvent,
    measured_duration: float,
    language: str,
    was_on_device: bool,
    audio_path: str = "",
) -> TranscriptionResult:
    """
    Build a TranscriptionResult from a recognizer's final event.

    Segments map one-to-one onto the engine's spans when it reports them.
    Engines that cannot report span timing get a single segment covering
    the whole file with full confidence.

    Args:
        raw: Final recognition event
        measured_duration: Audio duration in seconds
        language: Language tag the request was made with
        was_on_device: Whether recognition actually ran on-device
        audio_path: Source file, kept for reporting

    Returns:
        TranscriptionResult with the engine's text and timed segments
    """
    if raw.spans:
        segments = [
            Segment(
                text=span.text,
                start=span.timestamp,
                end=span.timestamp + span.duration,
                confidence=span.confidence,
            )
            for span in raw.spans
        ]
    else:
        segments = [
            Segment(
                text=raw.text,
                start=0.0,
                end=measured_duration,
                confidence=1.0,
            )
        ]

    return TranscriptionResult(
        text=raw.text,
        segments=segments,
        duration=measured_duration,
        language=language,
        is_on_device=was_on_device,
        audio_path=audio_path,
    )
