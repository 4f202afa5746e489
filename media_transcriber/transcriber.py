"""Recognition orchestrator: drives one recognition request per file."""

import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from pathlib import Path

from .audio import get_audio_duration
from .backends.base import (
    EngineFailure,
    RecognitionEvent,
    RecognitionRequest,
    SpeechBackend,
)
from .errors import (
    LanguageNotSupported,
    MediaFileNotFound,
    RecognitionUnavailable,
    TranscriberError,
    TranscriptionCancelled,
    TranscriptionFailed,
)
from .permissions import PermissionGate
from .progress import (
    ProgressCallback,
    ProgressCurve,
    ProgressReporter,
    ProgressSimulator,
    ProgressTicker,
    estimate_processing_time,
)
from .types import TranscriptionResult, aggregate

logger = logging.getLogger(__name__)

DEFAULT_LANGUAGE = "en-US"


class TranscriptionState(str, Enum):
    """Lifecycle of a single recognition request."""

    IDLE = "idle"
    AWAITING_PERMISSION = "awaiting_permission"
    REQUESTING = "requesting"
    PARTIAL_RESULT = "partial_result"
    FINAL_RESULT = "final_result"
    COMPLETE = "complete"
    CANCELLED = "cancelled"
    FAILED = "failed"

    def __str__(self) -> str:
        return self.value


# States in which cancel() has something to stop
_CANCELLABLE = frozenset({
    TranscriptionState.AWAITING_PERMISSION,
    TranscriptionState.REQUESTING,
    TranscriptionState.PARTIAL_RESULT,
})


class Transcriber:
    """
    Speech transcriber with simulated progress.

    Recognition runs on the calling thread while a ticker thread reports
    smooth progress; the two share the progress simulator under a lock.
    One instance handles one file at a time.
    """

    def __init__(
        self,
        backend: SpeechBackend,
        gate: PermissionGate | None = None,
        *,
        duration_probe: Callable[[Path], float] = get_audio_duration,
        curve: ProgressCurve = ProgressCurve(),
        tick_interval: float = 0.1,
        final_hold: float = 0.3,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize the transcriber.

        Args:
            backend: Speech recognition capability
            gate: Permission gate; shared across files so the check runs once.
                A new gate is created when omitted.
            duration_probe: Returns an audio file's duration in seconds
            curve: Simulated progress tuning
            tick_interval: Seconds between simulated progress updates
            final_hold: Seconds to show "Processing final results..." before completing
            clock: Monotonic clock, injectable for tests
        """
        self.backend = backend
        self.gate = gate or PermissionGate(backend)
        self.duration_probe = duration_probe
        self.curve = curve
        self.tick_interval = tick_interval
        self.final_hold = final_hold
        self.clock = clock

        self._reporter = ProgressReporter()
        # Guards the simulator shared with the ticker thread
        self._lock = threading.Lock()
        # Serializes state changes and progress reports against cancel()
        self._state_lock = threading.RLock()
        self._state = TranscriptionState.IDLE
        self._cancel_event = threading.Event()
        self._simulator: ProgressSimulator | None = None
        self._ticker: ProgressTicker | None = None

    @property
    def state(self) -> TranscriptionState:
        return self._state

    @property
    def progress(self) -> float:
        return self._reporter.value

    @property
    def progress_message(self) -> str:
        return self._reporter.message

    @property
    def is_transcribing(self) -> bool:
        return self._state in _CANCELLABLE or self._state == TranscriptionState.FINAL_RESULT

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register ``callback(progress, message)``; returns an unsubscribe function."""
        return self._reporter.subscribe(callback)

    def supported_languages(self) -> list[tuple[str, bool]]:
        """Return ``(language, on_device_supported)`` pairs sorted by language."""
        return [
            (language, self.backend.supports_on_device(language))
            for language in sorted(self.backend.supported_languages())
        ]

    def _set_state(self, state: TranscriptionState) -> None:
        logger.debug("Transcription state: %s -> %s", self._state, state)
        self._state = state

    def _advance_state(self, state: TranscriptionState) -> None:
        """Move forward unless a cancel has already been requested."""
        with self._state_lock:
            self._check_cancelled()
            if self._state != state:
                self._set_state(state)

    def _update_progress(self, value: float, message: str) -> None:
        with self._state_lock:
            if self._cancel_event.is_set():
                return
            self._reporter.report(value, message)

    def _start_ticker(self, audio_duration: float) -> None:
        estimate = estimate_processing_time(audio_duration, self.curve)
        # Under the state lock so a cancel either prevents the start or sees the ticker
        with self._state_lock:
            self._check_cancelled()
            with self._lock:
                self._simulator = ProgressSimulator(estimate, self.curve, self.clock)
                self._ticker = ProgressTicker(
                    self._simulator, self._reporter, self._lock, self.tick_interval
                )
            self._ticker.start()

    def _stop_ticker(self) -> None:
        ticker = self._ticker
        if ticker is not None:
            ticker.stop()
        self._ticker = None

    def _on_partial_result(self) -> None:
        with self._lock:
            if self._simulator is not None:
                self._simulator.nudge()

    def _check_cancelled(self) -> None:
        if self._cancel_event.is_set():
            raise TranscriptionCancelled()

    def transcribe(
        self,
        audio_path: Path | str,
        language: str = DEFAULT_LANGUAGE,
        on_device: bool = False,
    ) -> TranscriptionResult:
        """
        Transcribe an audio file.

        Args:
            audio_path: Path to audio file
            language: Recognition language tag, e.g. "en-US"
            on_device: Prefer on-device recognition; falls back to
                server-based recognition when the language lacks it

        Returns:
            TranscriptionResult with text and timed segments

        Raises:
            MediaFileNotFound: The audio file does not exist.
            PermissionDenied, PermissionRestricted, PermissionUndetermined:
                Recognition is not authorized.
            LanguageNotSupported: No recognizer exists for ``language``.
            RecognitionUnavailable: The recognizer cannot be used right now.
            TranscriptionFailed: The engine reported an error.
            TranscriptionCancelled: ``cancel()`` was called.
        """
        audio_path = Path(audio_path)
        self._cancel_event = threading.Event()
        self._reporter.reset(notify=False)
        self._set_state(TranscriptionState.IDLE)

        try:
            if not audio_path.is_file():
                raise MediaFileNotFound(str(audio_path), context=f"working dir: {Path.cwd()}")

            self._advance_state(TranscriptionState.AWAITING_PERMISSION)
            self.gate.ensure(notify=self._update_progress)

            if not self.backend.supports_language(language):
                raise LanguageNotSupported(language)
            if not self.backend.is_available(language):
                raise RecognitionUnavailable(context=f"language: {language}")

            use_on_device = on_device and self.backend.supports_on_device(language)
            if on_device and not use_on_device:
                logger.info(
                    "On-device recognition unavailable for %s; using server-based recognition",
                    language,
                )
                self._update_progress(0.1, "On-device recognition not available, using server-based...")

            request = RecognitionRequest(
                audio_path=audio_path,
                language=language,
                on_device=use_on_device,
            )

            self._advance_state(TranscriptionState.REQUESTING)
            self._update_progress(0.1, "Initializing speech recognition...")

            audio_duration = self.duration_probe(audio_path)

            self._update_progress(0.2, "Loading audio file...")
            self._update_progress(0.3, "Starting audio analysis...")
            self._check_cancelled()

            self._start_ticker(audio_duration)
            final = self._await_final_result(request)

            # From here on cancel() is a no-op
            self._advance_state(TranscriptionState.FINAL_RESULT)
            self._stop_ticker()
            self._update_progress(0.95, "Processing final results...")

            # Brief hold so the final phase is visible
            if self.final_hold > 0:
                time.sleep(self.final_hold)

            result = aggregate(
                final,
                measured_duration=audio_duration,
                language=language,
                was_on_device=use_on_device,
                audio_path=str(audio_path),
            )
            self._set_state(TranscriptionState.COMPLETE)
            self._update_progress(1.0, "Complete!")
            return result

        except TranscriptionCancelled:
            self._stop_ticker()
            self._set_state(TranscriptionState.CANCELLED)
            raise
        except TranscriberError:
            self._stop_ticker()
            self._set_state(TranscriptionState.FAILED)
            raise
        except EngineFailure as e:
            self._stop_ticker()
            if self._cancel_event.is_set():
                self._set_state(TranscriptionState.CANCELLED)
                raise TranscriptionCancelled(context=str(audio_path)) from e
            self._set_state(TranscriptionState.FAILED)
            raise TranscriptionFailed(str(e), context=str(audio_path)) from e
        except Exception:
            self._stop_ticker()
            self._set_state(TranscriptionState.FAILED)
            raise
        finally:
            self._simulator = None

    def _await_final_result(self, request: RecognitionRequest) -> RecognitionEvent:
        """Consume the recognizer's events until the final one arrives."""
        events = self.backend.recognize(request, self._cancel_event)
        try:
            for event in events:
                self._check_cancelled()
                if event.is_final:
                    return event
                self._advance_state(TranscriptionState.PARTIAL_RESULT)
                self._on_partial_result()
        finally:
            close = getattr(events, "close", None)
            if close is not None:
                close()

        self._check_cancelled()
        raise TranscriptionFailed(
            "Recognition ended without a final result", context=str(request.audio_path)
        )

    def cancel(self) -> None:
        """
        Cancel the in-flight request.

        Stops the simulated progress and resets it to zero. Does nothing
        once the final result has arrived.
        """
        with self._state_lock:
            if self._state not in _CANCELLABLE:
                logger.debug("Cancel ignored in state %s", self._state)
                return
            self._cancel_event.set()
            self._set_state(TranscriptionState.CANCELLED)

        self._stop_ticker()
        self._reporter.reset("Cancelled")
