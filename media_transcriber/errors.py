"""Error taxonomy for extraction, recognition and configuration.

Every error carries a stable ``kind`` so callers can branch on it without
parsing messages, and a human-readable ``str()`` suitable for display.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Stable identifiers for every failure the core can surface."""

    FILE_NOT_FOUND = "fileNotFound"
    UNSUPPORTED_FORMAT = "unsupportedFormat"
    NO_AUDIO_TRACK = "noAudioTrack"
    SESSION_CREATION_FAILED = "sessionCreationFailed"
    RECOGNITION_UNAVAILABLE = "recognitionUnavailable"
    PERMISSION_DENIED = "permissionDenied"
    PERMISSION_RESTRICTED = "permissionRestricted"
    PERMISSION_UNDETERMINED = "permissionUndetermined"
    MEDIA_ENGINE_ERROR = "mediaEngineError"
    TRANSCRIPTION_FAILED = "transcriptionFailed"
    LANGUAGE_NOT_SUPPORTED = "languageNotSupported"
    EXTRACTION_CANCELLED = "extractionCancelled"
    TRANSCRIPTION_CANCELLED = "transcriptionCancelled"
    CONFIG_INVALID = "configInvalid"

    def __str__(self) -> str:
        return self.value


class TranscriberError(Exception):
    """Base class for all errors raised by the transcription core.

    Args:
        detail: Kind-specific detail (a path, a format, an engine message).
        context: Extra context shown only in verbose mode.
    """

    kind: ErrorKind = ErrorKind.TRANSCRIPTION_FAILED
    template: str = "{detail}"

    def __init__(self, detail: str | None = None, context: str | None = None):
        self.detail = detail
        self.context = context
        super().__init__(self.description)

    @property
    def description(self) -> str:
        return self.template.format(detail=self.detail or "")

    def describe(self, verbose: bool = False) -> str:
        """Return the user-facing message, with context when verbose."""
        if verbose and self.context:
            return f"{self.description} ({self.context})"
        return self.description


class MediaFileNotFound(TranscriberError):
    kind = ErrorKind.FILE_NOT_FOUND
    template = "File not found: {detail}"


class UnsupportedFormat(TranscriberError):
    kind = ErrorKind.UNSUPPORTED_FORMAT
    template = "Unsupported audio format: {detail}"


class NoAudioTrack(TranscriberError):
    kind = ErrorKind.NO_AUDIO_TRACK
    template = "No audio track found in video file"


class SessionCreationFailed(TranscriberError):
    kind = ErrorKind.SESSION_CREATION_FAILED
    template = "Failed to create export session"


class RecognitionUnavailable(TranscriberError):
    kind = ErrorKind.RECOGNITION_UNAVAILABLE
    template = "Speech recognition is not available on this device"


class PermissionDenied(TranscriberError):
    kind = ErrorKind.PERMISSION_DENIED
    template = (
        "Speech recognition permission denied. "
        "Grant access to speech recognition and try again"
    )


class PermissionRestricted(TranscriberError):
    kind = ErrorKind.PERMISSION_RESTRICTED
    template = "Speech recognition is restricted on this device"


class PermissionUndetermined(TranscriberError):
    kind = ErrorKind.PERMISSION_UNDETERMINED
    template = "Speech recognition permission not determined"


class MediaEngineError(TranscriberError):
    kind = ErrorKind.MEDIA_ENGINE_ERROR
    template = "Audio extraction failed: {detail}"


class TranscriptionFailed(TranscriberError):
    kind = ErrorKind.TRANSCRIPTION_FAILED
    template = "Transcription failed: {detail}"


class LanguageNotSupported(TranscriberError):
    kind = ErrorKind.LANGUAGE_NOT_SUPPORTED
    template = "Language not supported: {detail}"


class ExtractionCancelled(TranscriberError):
    kind = ErrorKind.EXTRACTION_CANCELLED
    template = "Audio extraction was cancelled"


class TranscriptionCancelled(TranscriberError):
    kind = ErrorKind.TRANSCRIPTION_CANCELLED
    template = "Transcription was cancelled"


class ConfigInvalid(TranscriberError):
    kind = ErrorKind.CONFIG_INVALID
    template = "Invalid configuration: {detail}"


# Errors that stop a file before any recognition work starts and are never retried.
PERMISSION_ERRORS = (PermissionDenied, PermissionRestricted, PermissionUndetermined)
CANCELLATION_ERRORS = (ExtractionCancelled, TranscriptionCancelled)
