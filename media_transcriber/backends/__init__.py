"""Host capability contracts and adapters.

This module provides:
- SpeechBackend / MediaTranscoder protocols and their request/event types
- ParakeetBackend, on-device recognition through parakeet-mlx (optional)
- FfmpegTranscoder, audio extraction through ffmpeg-python
"""

from .base import (
    AudioFormat,
    AuthorizationStatus,
    EngineFailure,
    MediaTranscoder,
    RecognitionEvent,
    RecognitionRequest,
    SpanTiming,
    SpeechBackend,
    TranscodeEvent,
    TranscodeRequest,
    TranscodeSession,
    TranscodeStatus,
)

__all__ = [
    "AudioFormat",
    "AuthorizationStatus",
    "EngineFailure",
    "FfmpegTranscoder",
    "MediaTranscoder",
    "ParakeetBackend",
    "RecognitionEvent",
    "RecognitionRequest",
    "SpanTiming",
    "SpeechBackend",
    "TranscodeEvent",
    "TranscodeRequest",
    "TranscodeSession",
    "TranscodeStatus",
]


def __getattr__(name: str):
    """Lazy import adapters so importing the contracts stays cheap."""
    if name == "ParakeetBackend":
        from .parakeet import ParakeetBackend

        return ParakeetBackend
    if name == "FfmpegTranscoder":
        from .ffmpeg import FfmpegTranscoder

        return FfmpegTranscoder
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
