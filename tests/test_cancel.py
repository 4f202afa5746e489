"""Tests for signal-driven cancellation and logging setup."""

import logging
import signal
import threading
from unittest.mock import patch

from rich.logging import RichHandler

from media_transcriber.cancel import install_signal_handlers
from media_transcriber.logging_config import configure_logging


class TestSignalHandlers:
    """Tests for install_signal_handlers."""

    def test_first_signal_cancels(self):
        cancelled = threading.Event()
        restore = install_signal_handlers(cancelled.set)
        try:
            handler = signal.getsignal(signal.SIGINT)
            handler(signal.SIGINT, None)
        finally:
            restore()
        assert cancelled.wait(2.0)

    def test_cancel_runs_off_the_signalled_thread(self):
        """on_cancel may need locks the interrupted main thread is holding."""
        seen = []
        done = threading.Event()

        def on_cancel():
            acquired = lock.acquire(timeout=2.0)
            seen.append((threading.current_thread(), acquired))
            if acquired:
                lock.release()
            done.set()

        lock = threading.Lock()
        restore = install_signal_handlers(on_cancel)
        try:
            with lock:
                signal.getsignal(signal.SIGINT)(signal.SIGINT, None)
        finally:
            restore()

        assert done.wait(5.0)
        thread, acquired = seen[0]
        assert thread is not threading.main_thread()
        assert acquired

    def test_second_signal_falls_through(self):
        calls = []
        done = threading.Event()

        def on_cancel():
            calls.append(1)
            done.set()

        restore = install_signal_handlers(on_cancel)
        try:
            handler = signal.getsignal(signal.SIGTERM)
            handler(signal.SIGTERM, None)
            with patch("media_transcriber.cancel.signal.raise_signal") as raise_signal:
                handler(signal.SIGTERM, None)
            raise_signal.assert_called_once_with(signal.SIGTERM)
            assert signal.getsignal(signal.SIGTERM) == signal.SIG_DFL
        finally:
            restore()
        assert done.wait(2.0)
        assert calls == [1]

    def test_restore(self):
        before = signal.getsignal(signal.SIGINT)
        restore = install_signal_handlers(lambda: None)
        assert signal.getsignal(signal.SIGINT) is not before
        restore()
        assert signal.getsignal(signal.SIGINT) == before

    def test_noop_off_main_thread(self):
        before = signal.getsignal(signal.SIGINT)
        holder = {}
        thread = threading.Thread(
            target=lambda: holder.setdefault("restore", install_signal_handlers(lambda: None))
        )
        thread.start()
        thread.join()

        assert signal.getsignal(signal.SIGINT) == before
        holder["restore"]()


class TestConfigureLogging:
    """Tests for configure_logging."""

    def teardown_method(self):
        configure_logging()

    def test_default_level(self):
        configure_logging()
        root = logging.getLogger()
        assert root.level == logging.WARNING
        assert isinstance(root.handlers[0], RichHandler)

    def test_verbose(self):
        configure_logging(verbose=True)
        assert logging.getLogger().level == logging.DEBUG
        assert logging.getLogger("urllib3").level == logging.WARNING

    def test_quiet(self):
        configure_logging(quiet=True)
        assert logging.getLogger().level == logging.CRITICAL

    def test_logs_go_to_stderr(self):
        configure_logging()
        handler = logging.getLogger().handlers[0]
        assert handler.console.stderr
