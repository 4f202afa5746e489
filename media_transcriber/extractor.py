"""Extract a standalone audio file from a video container."""

import logging
import threading
from collections.abc import Callable
from pathlib import Path

from .backends.base import (
    AudioFormat,
    MediaTranscoder,
    TranscodeRequest,
    TranscodeSession,
    TranscodeStatus,
)
from .errors import (
    ExtractionCancelled,
    MediaEngineError,
    MediaFileNotFound,
    NoAudioTrack,
    SessionCreationFailed,
    UnsupportedFormat,
)
from .progress import ProgressCallback, ProgressReporter

logger = logging.getLogger(__name__)

# The first 10% covers setup the transcoder does not report on.
SETUP_FRACTION = 0.1


def extraction_message(fraction: float, fmt: AudioFormat) -> str:
    """Phase message for a raw transcoder progress fraction."""
    if fraction < 0.2:
        return "Analyzing video file..."
    if fraction < 0.5:
        return "Extracting audio tracks..."
    if fraction < 0.8:
        return f"Converting to {fmt}..."
    if fraction < 1.0:
        return "Finalizing audio file..."
    return "Processing..."


class AudioExtractor:
    """
    Extract the audio of a video file through a media transcoder.

    All audio tracks are mixed at equal gain so secondary tracks are not
    lost. Progress runs from 0.1 to 1.0 and never moves backwards, except
    for the reset on cancel.
    """

    def __init__(self, transcoder: MediaTranscoder):
        self.transcoder = transcoder
        self._reporter = ProgressReporter()
        self._lock = threading.Lock()
        self._session: TranscodeSession | None = None
        self._cancelled = threading.Event()
        self._progress_lock = threading.RLock()

    @property
    def progress(self) -> float:
        return self._reporter.value

    @property
    def progress_message(self) -> str:
        return self._reporter.message

    @property
    def is_extracting(self) -> bool:
        return self._session is not None

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register ``callback(progress, message)``; returns an unsubscribe function."""
        return self._reporter.subscribe(callback)

    def _update_progress(self, value: float, message: str) -> None:
        with self._progress_lock:
            if not self._cancelled.is_set():
                self._reporter.report(value, message)

    def extract(
        self,
        video_path: Path | str,
        output_path: Path | str,
        fmt: AudioFormat = AudioFormat.WAV,
    ) -> Path:
        """
        Extract audio from ``video_path`` into ``output_path``.

        An existing file at ``output_path`` is replaced and missing parent
        directories are created.

        Returns:
            The path of the extracted audio file

        Raises:
            MediaFileNotFound: The video file does not exist.
            NoAudioTrack: The video has no audio track.
            UnsupportedFormat: The transcoder cannot produce ``fmt``.
            SessionCreationFailed: The transcoder could not start a session.
            MediaEngineError: The transcoder failed.
            ExtractionCancelled: ``cancel()`` was called or the transcoder
                reported cancellation.
        """
        video_path = Path(video_path)
        output_path = Path(output_path)
        fmt = AudioFormat(fmt)
        self._cancelled = threading.Event()
        self._reporter.reset(notify=False)

        if not video_path.is_file():
            raise MediaFileNotFound(str(video_path))

        track_count = self.transcoder.audio_track_count(video_path)
        if track_count < 1:
            raise NoAudioTrack(context=str(video_path))

        if not self.transcoder.supports_format(fmt):
            raise UnsupportedFormat(str(fmt))

        request = TranscodeRequest(
            source=video_path,
            target=output_path,
            format=fmt,
            track_count=track_count,
        )
        try:
            session = self.transcoder.create_session(request)
        except Exception as e:
            raise SessionCreationFailed(context=str(e)) from e
        if session is None:
            raise SessionCreationFailed(context=str(video_path))

        if track_count > 1:
            logger.info("Mixing %d audio tracks from %s", track_count, video_path)

        if output_path.exists():
            output_path.unlink()
        output_path.parent.mkdir(parents=True, exist_ok=True)

        with self._lock:
            self._session = session
        self._update_progress(SETUP_FRACTION, "Starting audio extraction...")

        try:
            return self._run_session(session, output_path, fmt)
        finally:
            with self._lock:
                self._session = None

    def _run_session(self, session: TranscodeSession, output_path: Path, fmt: AudioFormat) -> Path:
        for event in session.run():
            if self._cancelled.is_set():
                break
            if event.status == TranscodeStatus.PROGRESS:
                fraction = min(max(event.fraction, 0.0), 1.0)
                self._update_progress(
                    SETUP_FRACTION + fraction * (1.0 - SETUP_FRACTION),
                    extraction_message(fraction, fmt),
                )
            elif event.status == TranscodeStatus.COMPLETED:
                self._update_progress(1.0, "Audio extraction completed!")
                logger.debug("Extracted audio to %s", output_path)
                return output_path
            elif event.status == TranscodeStatus.FAILED:
                raise MediaEngineError(event.message or "Unknown error", context=str(output_path))
            elif event.status == TranscodeStatus.CANCELLED:
                self._mark_cancelled()
                raise ExtractionCancelled(context=str(output_path))

        if self._cancelled.is_set():
            raise ExtractionCancelled(context=str(output_path))
        raise MediaEngineError("Transcoder stopped without reporting a result")

    def _mark_cancelled(self) -> None:
        with self._progress_lock:
            if self._cancelled.is_set():
                return
            self._cancelled.set()
        self._reporter.reset("Cancelled")

    def cancel(self) -> None:
        """Cancel the running extraction and reset progress to zero."""
        with self._lock:
            session = self._session
        if session is None:
            return
        self._mark_cancelled()
        session.cancel()
