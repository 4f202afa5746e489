"""Host capability contracts for speech recognition and media transcoding.

The core never talks to a recognizer or a transcoder directly; it is handed
objects satisfying these protocols so the pipeline can run against fakes.
"""

from collections.abc import Iterator
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    import threading


class AuthorizationStatus(str, Enum):
    """Speech recognition authorization states reported by the host."""

    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"

    def __str__(self) -> str:
        return self.value


class EngineFailure(Exception):
    """Raised by a speech backend when recognition itself fails."""


@dataclass(frozen=True)
class RecognitionRequest:
    """A single recognition request for one audio file."""

    audio_path: Path
    language: str
    on_device: bool = False


@dataclass(frozen=True)
class SpanTiming:
    """Timing and confidence for one recognized span."""

    text: str
    timestamp: float  # seconds
    duration: float  # seconds
    confidence: float = 1.0


@dataclass(frozen=True)
class RecognitionEvent:
    """One result emitted by a recognizer.

    Partial events carry the best text so far; exactly one final event
    ends a successful recognition. ``spans`` may be empty when the engine
    cannot report per-span timing.
    """

    text: str
    is_final: bool = False
    spans: tuple[SpanTiming, ...] = field(default_factory=tuple)


@runtime_checkable
class SpeechBackend(Protocol):
    """Protocol every speech recognition backend must satisfy."""

    def authorization_status(self) -> AuthorizationStatus:
        """Current authorization state, without prompting."""
        ...

    def request_authorization(self) -> AuthorizationStatus:
        """Interactively request authorization and return the outcome."""
        ...

    def is_available(self, language: str) -> bool:
        """Whether a recognizer for ``language`` can be used right now."""
        ...

    def supports_language(self, language: str) -> bool:
        ...

    def supports_on_device(self, language: str) -> bool:
        ...

    def supported_languages(self) -> list[str]:
        ...

    def recognize(
        self,
        request: RecognitionRequest,
        cancel_event: "threading.Event",
    ) -> Iterator[RecognitionEvent]:
        """Run recognition, yielding partial events then one final event.

        Implementations stop early once ``cancel_event`` is set and raise
        ``EngineFailure`` when the engine reports an error.
        """
        ...


class AudioFormat(str, Enum):
    """Target formats for extracted audio."""

    WAV = "wav"
    M4A = "m4a"
    AIFF = "aiff"

    def __str__(self) -> str:
        return self.value

    @property
    def extension(self) -> str:
        return f".{self.value}"


class TranscodeStatus(str, Enum):
    PROGRESS = "progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class TranscodeRequest:
    """Extract the audio of ``source`` into ``target``."""

    source: Path
    target: Path
    format: AudioFormat
    track_count: int = 1


@dataclass(frozen=True)
class TranscodeEvent:
    """Progress or terminal status reported by a transcoding session."""

    status: TranscodeStatus
    fraction: float = 0.0
    message: str = ""


@runtime_checkable
class TranscodeSession(Protocol):
    def run(self) -> Iterator[TranscodeEvent]:
        """Yield progress events, ending with exactly one terminal event."""
        ...

    def cancel(self) -> None:
        ...


@runtime_checkable
class MediaTranscoder(Protocol):
    """Protocol for the host media transcoding capability."""

    def audio_track_count(self, path: Path) -> int:
        ...

    def supports_format(self, fmt: AudioFormat) -> bool:
        ...

    def create_session(self, request: TranscodeRequest) -> TranscodeSession | None:
        """Create a session for ``request``, or ``None`` if that is impossible."""
        ...
