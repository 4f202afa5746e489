"""Parakeet TDT speech backend.

Runs recognition locally through parakeet-mlx, so every supported language
is recognized on-device and no authorization prompt is involved.
"""

import logging
import queue
import threading
from collections.abc import Iterator
from typing import Any

from .base import (
    AuthorizationStatus,
    EngineFailure,
    RecognitionEvent,
    RecognitionRequest,
    SpanTiming,
)
from .registry import DEFAULT_MODEL, ModelInfo, resolve_model

logger = logging.getLogger(__name__)

# Flag to track if parakeet-mlx is available
_parakeet_available: bool | None = None


def is_parakeet_available() -> bool:
    """Check if parakeet-mlx is installed and importable."""
    global _parakeet_available
    if _parakeet_available is None:
        try:
            import parakeet_mlx  # noqa: F401

            _parakeet_available = True
        except ImportError:
            _parakeet_available = False
    return _parakeet_available


class _ChunkCancelled(Exception):
    """Raised from the chunk callback to abort a model run."""


class ParakeetBackend:
    """
    SpeechBackend implementation for Parakeet TDT models.

    The model is loaded lazily on first use and reused across files. Each
    processed chunk of audio is reported as a partial result, so long files
    produce several partial events before the final one.
    """

    def __init__(
        self,
        model_id: str = DEFAULT_MODEL,
        chunk_duration: float = 120.0,
        overlap_duration: float = 15.0,
    ):
        """Initialize the Parakeet backend.

        Args:
            model_id: HuggingFace model ID or registry alias.
            chunk_duration: Split long audio into chunks of this length (seconds).
                            Use 0 to disable chunking (may cause memory issues).
            overlap_duration: Overlap between chunks to prevent word-cutting.
        """
        self.info: ModelInfo = resolve_model(model_id)
        self.chunk_duration = chunk_duration if chunk_duration > 0 else None
        self.overlap_duration = overlap_duration
        self._model: Any = None
        self._load_lock = threading.Lock()

    @property
    def model_id(self) -> str:
        return self.info.model_id

    def authorization_status(self) -> AuthorizationStatus:
        return AuthorizationStatus.AUTHORIZED

    def request_authorization(self) -> AuthorizationStatus:
        return AuthorizationStatus.AUTHORIZED

    def is_available(self, language: str) -> bool:
        return is_parakeet_available()

    def supports_language(self, language: str) -> bool:
        return self.info.supports(language)

    def supports_on_device(self, language: str) -> bool:
        return self.info.supports(language)

    def supported_languages(self) -> list[str]:
        return sorted(self.info.languages)

    def _load_model(self) -> Any:
        """Lazy load the model on first use."""
        with self._load_lock:
            if self._model is None:
                from parakeet_mlx import from_pretrained

                logger.debug("Loading model %s", self.model_id)
                self._model = from_pretrained(self.model_id)
        return self._model

    @staticmethod
    def _to_event(result: Any) -> RecognitionEvent:
        """Convert a parakeet-mlx AlignedResult into a final event."""
        spans = tuple(
            SpanTiming(
                text=sentence.text.strip(),
                timestamp=sentence.start,
                duration=max(0.0, sentence.end - sentence.start),
                confidence=float(sentence.confidence),
            )
            for sentence in result.sentences
        )
        return RecognitionEvent(text=result.text.strip(), is_final=True, spans=spans)

    def recognize(
        self,
        request: RecognitionRequest,
        cancel_event: threading.Event,
    ) -> Iterator[RecognitionEvent]:
        """Run the model in a worker thread, yielding one partial event per chunk."""
        events: queue.Queue = queue.Queue()

        def on_chunk(current: float, total: float) -> None:
            if cancel_event.is_set():
                raise _ChunkCancelled()
            events.put(("partial", None))

        def work() -> None:
            try:
                model = self._load_model()
                result = model.transcribe(
                    str(request.audio_path),
                    chunk_duration=self.chunk_duration,
                    overlap_duration=self.overlap_duration,
                    chunk_callback=on_chunk,
                )
                events.put(("final", result))
            except _ChunkCancelled:
                events.put(("cancelled", None))
            except Exception as e:  # handed to the consuming thread
                events.put(("error", e))

        worker = threading.Thread(target=work, name="parakeet-recognition", daemon=True)
        worker.start()

        while True:
            kind, payload = events.get()
            if kind == "partial":
                yield RecognitionEvent(text="", is_final=False)
            elif kind == "final":
                yield self._to_event(payload)
                return
            elif kind == "cancelled":
                logger.debug("Recognition of %s cancelled", request.audio_path)
                return
            else:
                raise EngineFailure(str(payload)) from payload
