"""Synthetic progress for recognizers that only report partial and final results.

The recognizer gives no fractional progress, so a ticker samples an
ease-in curve over an estimated processing time. Partial results raise the
curve's target a little, and the last stretch up to 1.0 is left for the
real completion signal.
"""

import math
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

ProgressCallback = Callable[[float, str], None]


@dataclass(frozen=True)
class ProgressCurve:
    """Tuning constants for the simulated progress curve.

    These are empirical values chosen for perceived smoothness.
    """

    start: float = 0.3
    """Progress already consumed by setup when simulation begins."""

    target: float = 0.85
    """Initial asymptote; the rest is reserved for the final result."""

    ceiling: float = 0.9
    """Upper bound for the target after partial-result nudges."""

    nudge: float = 0.05
    """Target increase per partial result."""

    steepness: float = 3.0
    """Exponent constant of the ease-in curve."""

    duration_factor: float = 0.5
    """Estimated processing time as a fraction of audio duration."""

    minimum_estimate: float = 5.0
    """Lower bound for the estimated processing time, in seconds."""


def estimate_processing_time(audio_duration: float, curve: ProgressCurve = ProgressCurve()) -> float:
    """Estimated recognition time in seconds for audio of the given duration."""
    return max(audio_duration * curve.duration_factor, curve.minimum_estimate)


def progress_message(value: float) -> str:
    """Human-readable phase for a simulated progress value."""
    percent = int(value * 100)
    if 30 <= percent < 45:
        return "Analyzing audio format..."
    if 45 <= percent < 60:
        return "Processing speech patterns..."
    if 60 <= percent < 75:
        return "Transcribing audio content..."
    if 75 <= percent < 85:
        return "Refining transcription..."
    return "Finalizing results..."


class ProgressSimulator:
    """
    Ease-in progress model: ``start + (target - start) * (1 - e^(-k * t/estimate))``.

    Not thread-safe on its own; the owner serializes ``advance`` and
    ``nudge`` with a lock.
    """

    def __init__(
        self,
        estimate: float,
        curve: ProgressCurve = ProgressCurve(),
        clock: Callable[[], float] = time.monotonic,
    ):
        self.curve = curve
        self.estimate = estimate
        self.clock = clock
        self.started_at = clock()
        self.target = curve.target
        self.current = curve.start

    def value_at(self, now: float) -> float:
        elapsed = max(0.0, now - self.started_at)
        rate = min(elapsed / self.estimate, 1.0) if self.estimate > 0 else 1.0
        smooth = 1.0 - math.exp(-self.curve.steepness * rate)
        return self.curve.start + smooth * (self.target - self.curve.start)

    def nudge(self) -> None:
        """Record a partial result by raising the target, capped at the ceiling."""
        self.target = min(self.curve.ceiling, self.target + self.curve.nudge)

    def advance(self) -> tuple[float, str] | None:
        """Sample the curve now; return ``(value, message)`` only if it moved forward."""
        value = self.value_at(self.clock())
        if value <= self.current:
            return None
        self.current = value
        return value, progress_message(value)


class ProgressReporter:
    """
    Fan progress out to subscribers, keeping it monotonic.

    Values lower than the last reported one are dropped; ``reset`` is the
    only way back down. Subscribers are called synchronously on the
    reporting thread.
    """

    def __init__(self) -> None:
        self._lock = threading.RLock()
        self._subscribers: list[ProgressCallback] = []
        self.value = 0.0
        self.message = ""

    def subscribe(self, callback: ProgressCallback) -> Callable[[], None]:
        """Register ``callback(value, message)``; returns an unsubscribe function."""
        with self._lock:
            self._subscribers.append(callback)

        def unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers:
                    self._subscribers.remove(callback)

        return unsubscribe

    def report(self, value: float, message: str) -> bool:
        """Publish a value; returns False if it was dropped as a regression."""
        with self._lock:
            if value < self.value:
                return False
            self.value = value
            self.message = message
            subscribers = list(self._subscribers)
        for callback in subscribers:
            callback(value, message)
        return True

    def reset(self, message: str = "", notify: bool = True) -> None:
        """Drop back to zero, optionally telling subscribers."""
        with self._lock:
            self.value = 0.0
            self.message = message
            subscribers = list(self._subscribers) if notify else []
        for callback in subscribers:
            callback(0.0, message)


class ProgressTicker:
    """
    Drive a ProgressSimulator on a fixed interval from a background thread.

    The thread waits on an Event between ticks and is joined by ``stop``,
    so no tick runs after ``stop`` returns.
    """

    def __init__(
        self,
        simulator: ProgressSimulator,
        reporter: ProgressReporter,
        lock: threading.Lock,
        interval: float = 0.1,
    ):
        self.simulator = simulator
        self.reporter = reporter
        self.lock = lock
        self.interval = interval
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    def start(self) -> None:
        self._thread = threading.Thread(
            target=self._run, name="progress-ticker", daemon=True
        )
        self._thread.start()

    def _run(self) -> None:
        while not self._stop.wait(self.interval):
            with self.lock:
                if self._stop.is_set():
                    return
                step = self.simulator.advance()
            if step is not None:
                self.reporter.report(*step)

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join()
        self._thread = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()
