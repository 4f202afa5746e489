"""Sequential batch processing with per-file lifecycle tracking."""

import logging
import tempfile
import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from .audio import audio_output_path, is_video_file
from .backends.base import AudioFormat
from .config import DEFAULT_CONFIG, TranscriberConfig
from .errors import (
    CANCELLATION_ERRORS,
    MediaEngineError,
    TranscriberError,
    TranscriptionCancelled,
)
from .extractor import AudioExtractor
from .formatters import OutputFormat, encode
from .permissions import PermissionGate
from .progress import ProgressCallback, ProgressReporter
from .transcriber import DEFAULT_LANGUAGE, Transcriber
from .types import TranscriptionResult

logger = logging.getLogger(__name__)

# Share of a video file's progress given to audio extraction
EXTRACTION_SHARE = 0.3


class FileStatus(str, Enum):
    PENDING = "pending"
    QUEUED = "queued"
    PROCESSING = "processing"
    DONE = "done"
    ERROR = "error"
    CANCELLED = "cancelled"

    def __str__(self) -> str:
        return self.value


STARTABLE = frozenset({FileStatus.PENDING, FileStatus.ERROR, FileStatus.CANCELLED})
CANCELLABLE = frozenset({FileStatus.QUEUED, FileStatus.PROCESSING})
TERMINAL = frozenset({FileStatus.DONE, FileStatus.ERROR, FileStatus.CANCELLED})


class InvalidTransition(ValueError):
    """Raised when a FileItem is moved to a state it cannot reach."""


@dataclass
class FileItem:
    """Bookkeeping for one input file in a batch."""

    path: Path
    status: FileStatus = FileStatus.PENDING
    progress: float = 0.0
    message: str = ""
    error: Optional[str] = None
    output_path: Optional[Path] = None
    result: Optional[TranscriptionResult] = None

    @property
    def can_start(self) -> bool:
        return self.status in STARTABLE

    @property
    def can_cancel(self) -> bool:
        return self.status in CANCELLABLE

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL

    def _require(self, allowed: frozenset, action: str) -> None:
        if self.status not in allowed:
            raise InvalidTransition(f"Cannot {action} {self.path.name} while {self.status}")

    def queue(self) -> None:
        self._require(STARTABLE, "queue")
        self.status = FileStatus.QUEUED
        self.progress = 0.0
        self.message = ""
        self.error = None

    def start_processing(self) -> None:
        self._require(frozenset({FileStatus.QUEUED}), "start")
        self.status = FileStatus.PROCESSING

    def update_progress(self, value: float, message: str) -> None:
        if self.status == FileStatus.PROCESSING:
            self.progress = value
            self.message = message

    def complete(self, output_path: Optional[Path] = None) -> None:
        self._require(frozenset({FileStatus.PROCESSING}), "complete")
        self.status = FileStatus.DONE
        self.progress = 1.0
        self.output_path = output_path

    def fail(self, message: str) -> None:
        self._require(CANCELLABLE, "fail")
        self.status = FileStatus.ERROR
        self.error = message

    def cancel(self) -> None:
        self._require(CANCELLABLE, "cancel")
        self.status = FileStatus.CANCELLED
        self.progress = 0.0
        self.message = "Cancelled"

    def retry(self) -> None:
        """Put a failed or cancelled item back to pending."""
        self._require(frozenset({FileStatus.ERROR, FileStatus.CANCELLED}), "retry")
        self.status = FileStatus.PENDING
        self.progress = 0.0
        self.message = ""
        self.error = None


@dataclass
class BatchSummary:
    """Per-file outcomes of a batch, for reporting and exit codes."""

    items: list[FileItem] = field(default_factory=list)

    @property
    def total(self) -> int:
        return len(self.items)

    @property
    def succeeded(self) -> int:
        return sum(1 for item in self.items if item.status == FileStatus.DONE)

    @property
    def failed(self) -> int:
        return sum(1 for item in self.items if item.status == FileStatus.ERROR)

    @property
    def cancelled(self) -> int:
        return sum(1 for item in self.items if item.status == FileStatus.CANCELLED)

    @property
    def ok(self) -> bool:
        return self.failed == 0 and self.cancelled == 0


class BatchRunner:
    """
    Process files strictly one after another.

    The permission gate is checked once before the first file; a failure
    there aborts the whole batch. Any other per-file error marks that file
    as failed and processing continues with the next one.
    """

    def __init__(
        self,
        transcriber: Transcriber,
        config: TranscriberConfig = DEFAULT_CONFIG,
        *,
        extractor: Optional[AudioExtractor] = None,
        gate: Optional[PermissionGate] = None,
        explicit_output: Optional[Path] = None,
        write: bool = True,
    ):
        self.transcriber = transcriber
        self.config = config
        self.extractor = extractor
        self.gate = gate or transcriber.gate
        self.explicit_output = explicit_output
        self.write = write
        self.format = OutputFormat.parse(config.format or "txt")
        self._current: Optional[FileItem] = None
        self._stop = threading.Event()
        self._reporter = ProgressReporter()

    def output_path_for(self, path: Path, fmt: OutputFormat, total: int) -> Optional[Path]:
        """
        Where to write the output for ``path``.

        Returns ``None`` for a single input without an explicit output or
        output directory, meaning the caller prints the transcript instead.
        """
        if self.explicit_output is not None:
            return self.explicit_output

        if self.config.output_dir:
            out_dir = Path(self.config.output_dir).expanduser()
            out_dir.mkdir(parents=True, exist_ok=True)
            return out_dir / (path.stem + fmt.extension)

        if total == 1:
            return None

        return path.with_name(path.stem + fmt.extension)

    def run(
        self,
        paths: list[Path],
        on_start: Optional[Callable[[int, FileItem], None]] = None,
        on_item: Optional[Callable[[FileItem], None]] = None,
    ) -> BatchSummary:
        """
        Transcribe ``paths`` in order.

        Args:
            paths: Input audio or video files
            on_start: Called with the 1-based index before each file starts
            on_item: Called after each file reaches a terminal state

        Raises:
            PermissionDenied, PermissionRestricted, PermissionUndetermined:
                Before any file is processed, if recognition is not authorized.
        """
        self._stop.clear()
        self.gate.ensure()

        summary = BatchSummary([FileItem(Path(p)) for p in paths])
        for item in summary.items:
            item.queue()

        for index, item in enumerate(summary.items, start=1):
            logger.debug("Processing [%d/%d] %s", index, summary.total, item.path)
            if self._stop.is_set():
                item.cancel()
                continue
            if on_start is not None:
                on_start(index, item)
            self._process(item, summary.total)
            if on_item is not None:
                on_item(item)

        return summary

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register ``callback(progress, message)`` for the in-flight file.

        Extraction and recognition are folded into one channel that rises
        from 0.0 to 1.0 per file and only drops back on cancellation.
        """
        return self._reporter.subscribe(callback)

    def _forward(self, start: float, end: float) -> ProgressCallback:
        """Map a stage's own 0..1 progress onto ``[start, end]`` of the file's progress."""

        def forward(value: float, message: str) -> None:
            # Stage resets are replaced by the runner's own reset
            if value <= 0.0:
                return
            scaled = end if value >= 1.0 else start + value * (end - start)
            self._reporter.report(scaled, message)

        return forward

    def _process(self, item: FileItem, total: int) -> None:
        self._current = item
        item.start_processing()
        self._reporter.reset(notify=False)
        unsubscribe_item = self._reporter.subscribe(item.update_progress)
        is_video = is_video_file(item.path)
        scratch = tempfile.TemporaryDirectory(prefix="transcriber-") if is_video else None
        try:
            if scratch is not None:
                audio_path = self._extract_audio(item, Path(scratch.name))
                stage_start = EXTRACTION_SHARE
            else:
                audio_path = item.path
                stage_start = 0.0
            if self._stop.is_set():
                raise TranscriptionCancelled(context=str(item.path))

            unsubscribe = self.transcriber.subscribe(self._forward(stage_start, 1.0))
            try:
                result = self.transcriber.transcribe(
                    audio_path,
                    language=self.config.language or DEFAULT_LANGUAGE,
                    on_device=bool(self.config.on_device),
                )
            finally:
                unsubscribe()
            if is_video:
                # The extracted file is removed with the scratch directory
                result.audio_path = str(item.path)
            item.result = result

            try:
                output_path = self.output_path_for(item.path, self.format, total)
                if self.write and output_path is not None:
                    output_path.parent.mkdir(parents=True, exist_ok=True)
                    output_path.write_text(encode(result, self.format), encoding="utf-8")
                    logger.debug("Wrote %s", output_path)
            except OSError as e:
                item.fail(f"Cannot write output: {e}")
                return
            item.complete(output_path)
        except CANCELLATION_ERRORS:
            self._reporter.reset("Cancelled")
            if item.can_cancel:
                item.cancel()
        except TranscriberError as e:
            logger.debug("Failed to transcribe %s: %s", item.path, e)
            item.fail(e.describe(verbose=bool(self.config.verbose)))
        except Exception as e:
            logger.exception("Unexpected error while processing %s", item.path)
            item.fail(f"Unexpected error: {e}")
        finally:
            unsubscribe_item()
            if scratch is not None:
                scratch.cleanup()
            self._current = None

    def _extract_audio(self, item: FileItem, scratch_dir: Path) -> Path:
        """Extract the audio of a video input into ``scratch_dir``."""
        if self.extractor is None:
            raise MediaEngineError("no media transcoder configured for video input")

        target = audio_output_path(item.path, scratch_dir, AudioFormat.WAV)
        unsubscribe = self.extractor.subscribe(self._forward(0.0, EXTRACTION_SHARE))
        try:
            return self.extractor.extract(item.path, target, AudioFormat.WAV)
        finally:
            unsubscribe()

    def cancel_current(self) -> None:
        """Cancel whatever the in-flight file is doing."""
        if self._current is None:
            return
        if self.extractor is not None:
            self.extractor.cancel()
        self.transcriber.cancel()

    def cancel_all(self) -> None:
        """Cancel the in-flight file and every file still queued."""
        self._stop.set()
        self.cancel_current()
