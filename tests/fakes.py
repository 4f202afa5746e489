"""In-memory stand-ins for the speech and transcoding capabilities."""

import threading
from pathlib import Path

from media_transcriber.backends.base import (
    AudioFormat,
    AuthorizationStatus,
    RecognitionEvent,
    SpanTiming,
    TranscodeEvent,
    TranscodeStatus,
)


def final_event(*spans: tuple[str, float, float, float], text: str | None = None) -> RecognitionEvent:
    """Build a final event from ``(text, start, end, confidence)`` tuples."""
    timings = tuple(
        SpanTiming(text=t, timestamp=start, duration=end - start, confidence=conf)
        for t, start, end, conf in spans
    )
    if text is None:
        text = " ".join(t for t, *_ in spans)
    return RecognitionEvent(text=text, is_final=True, spans=timings)


class FakeBackend:
    """
    Scripted SpeechBackend.

    ``events`` are yielded in order; an Exception instance in the list is
    raised instead. When ``hold`` is given, the backend waits for it to be
    set (or for cancellation) before yielding anything.
    """

    def __init__(
        self,
        events=None,
        status=AuthorizationStatus.AUTHORIZED,
        request_outcome=AuthorizationStatus.AUTHORIZED,
        languages=("en-US", "fr-FR"),
        on_device_languages=("en-US",),
        available=True,
        hold: threading.Event | None = None,
    ):
        if events is None:
            events = [final_event(("Hello", 0.0, 1.0, 0.9), ("World", 1.0, 2.0, 0.8))]
        self.events = list(events)
        self.status = status
        self.request_outcome = request_outcome
        self.languages = list(languages)
        self.on_device_languages = set(on_device_languages)
        self.available = available
        self.hold = hold
        self.started = threading.Event()
        self.requests = []
        self.status_checks = 0
        self.authorization_requests = 0

    def authorization_status(self):
        self.status_checks += 1
        return self.status

    def request_authorization(self):
        self.authorization_requests += 1
        return self.request_outcome

    def is_available(self, language):
        return self.available

    def supports_language(self, language):
        return language in self.languages

    def supports_on_device(self, language):
        return language in self.on_device_languages

    def supported_languages(self):
        return list(self.languages)

    def recognize(self, request, cancel_event):
        self.requests.append(request)
        self.started.set()
        if self.hold is not None:
            while not self.hold.wait(0.01):
                if cancel_event.is_set():
                    return
        for event in self.events:
            if cancel_event.is_set():
                return
            if isinstance(event, Exception):
                raise event
            yield event


class FakeSession:
    """TranscodeSession that replays events and writes the target on completion."""

    def __init__(self, request, events, hold: threading.Event | None = None):
        self.request = request
        self.events = list(events)
        self.hold = hold
        self.started = threading.Event()
        self.cancelled = threading.Event()

    def run(self):
        self.started.set()
        for event in self.events:
            if self.hold is not None and event.status != TranscodeStatus.PROGRESS:
                while not self.hold.wait(0.01):
                    if self.cancelled.is_set():
                        yield TranscodeEvent(TranscodeStatus.CANCELLED)
                        return
            if self.cancelled.is_set():
                yield TranscodeEvent(TranscodeStatus.CANCELLED)
                return
            if event.status == TranscodeStatus.COMPLETED:
                Path(self.request.target).write_bytes(b"RIFF")
            yield event

    def cancel(self):
        self.cancelled.set()


DEFAULT_TRANSCODE_EVENTS = (
    TranscodeEvent(TranscodeStatus.PROGRESS, fraction=0.1),
    TranscodeEvent(TranscodeStatus.PROGRESS, fraction=0.5),
    TranscodeEvent(TranscodeStatus.PROGRESS, fraction=1.0),
    TranscodeEvent(TranscodeStatus.COMPLETED, fraction=1.0),
)


class FakeTranscoder:
    """Scripted MediaTranscoder recording every session request."""

    def __init__(
        self,
        track_count=1,
        formats=(AudioFormat.WAV, AudioFormat.M4A, AudioFormat.AIFF),
        events=DEFAULT_TRANSCODE_EVENTS,
        no_session=False,
        hold: threading.Event | None = None,
    ):
        self.track_count = track_count
        self.formats = set(formats)
        self.events = events
        self.no_session = no_session
        self.hold = hold
        self.requests = []
        self.sessions = []

    def audio_track_count(self, path):
        return self.track_count

    def supports_format(self, fmt):
        return fmt in self.formats

    def create_session(self, request):
        self.requests.append(request)
        if self.no_session:
            return None
        session = FakeSession(request, self.events, hold=self.hold)
        self.sessions.append(session)
        return session


class Recorder:
    """Progress subscriber that keeps every ``(value, message)`` it receives."""

    def __init__(self):
        self.calls: list[tuple[float, str]] = []
        self._lock = threading.Lock()

    def __call__(self, value: float, message: str) -> None:
        with self._lock:
            self.calls.append((value, message))

    @property
    def values(self) -> list[float]:
        return [value for value, _ in self.calls]

    @property
    def messages(self) -> list[str]:
        return [message for _, message in self.calls]
