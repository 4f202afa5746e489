"""Signal handling for cooperative cancellation.

The first SIGINT/SIGTERM asks the running work to cancel; a second one
falls through to the default handler and stops the process.
"""

import logging
import signal
import threading
from collections.abc import Callable

logger = logging.getLogger(__name__)

_SIGNALS = (signal.SIGINT, signal.SIGTERM)


def install_signal_handlers(on_cancel: Callable[[], None]) -> Callable[[], None]:
    """Install SIGINT/SIGTERM handlers that call ``on_cancel``.

    Handlers can only be installed from the main thread; elsewhere this is
    a no-op.

    The handler runs on the main thread between bytecodes, possibly while
    that thread holds a lock ``on_cancel`` needs. So the handler only
    records the request and ``on_cancel`` runs on a short-lived thread of
    its own.

    Args:
        on_cancel: Called once, on the first signal received.

    Returns:
        A function restoring the previous handlers.
    """
    if threading.current_thread() is not threading.main_thread():
        logger.debug("Not on the main thread, signal handlers not installed")
        return lambda: None

    previous = {signum: signal.getsignal(signum) for signum in _SIGNALS}
    fired = threading.Event()

    def signal_handler(signum: int, frame: object) -> None:
        sig_name = signal.Signals(signum).name
        if fired.is_set():
            signal.signal(signum, signal.SIG_DFL)
            signal.raise_signal(signum)
            return
        fired.set()
        threading.Thread(
            target=_request_cancel, args=(sig_name,), name="cancel-request", daemon=True
        ).start()

    def _request_cancel(sig_name: str) -> None:
        logger.info("Received %s, requesting cancellation", sig_name)
        on_cancel()

    for signum in _SIGNALS:
        signal.signal(signum, signal_handler)
    logger.debug("Signal handlers installed for SIGINT and SIGTERM")

    def restore() -> None:
        for signum, handler in previous.items():
            signal.signal(signum, handler)

    return restore
