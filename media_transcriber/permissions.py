"""One-shot speech recognition permission gate."""

import logging
import threading
from collections.abc import Callable

from .backends.base import AuthorizationStatus, SpeechBackend
from .errors import (
    PermissionDenied,
    PermissionRestricted,
    PermissionUndetermined,
    TranscriberError,
)

logger = logging.getLogger(__name__)


class PermissionGate:
    """
    Check speech recognition authorization once and remember the outcome.

    The first ``ensure`` call inspects the backend's authorization state and,
    if it is undetermined, asks for it exactly once. Later calls replay the
    cached outcome without touching the backend again.
    """

    def __init__(self, backend: SpeechBackend):
        self.backend = backend
        self._lock = threading.Lock()
        self._checked = False
        self._error: TranscriberError | None = None

    @property
    def checked(self) -> bool:
        return self._checked

    @property
    def granted(self) -> bool:
        return self._checked and self._error is None

    def ensure(self, notify: Callable[[float, str], None] | None = None) -> None:
        """
        Make sure recognition is authorized.

        Args:
            notify: Optional progress callback, told when an interactive
                request is about to be made.

        Raises:
            PermissionDenied: Access was denied, now or at the interactive prompt.
            PermissionRestricted: Access is restricted on this device.
            PermissionUndetermined: The backend reported an unknown state.
        """
        with self._lock:
            if not self._checked:
                self._error = self._check(notify)
                self._checked = True
            if self._error is not None:
                raise self._error

    def _check(self, notify: Callable[[float, str], None] | None) -> TranscriberError | None:
        status = self.backend.authorization_status()
        logger.debug("Speech recognition authorization status: %s", status)

        if status == AuthorizationStatus.AUTHORIZED:
            return None
        if status == AuthorizationStatus.DENIED:
            return PermissionDenied()
        if status == AuthorizationStatus.RESTRICTED:
            return PermissionRestricted()
        if status == AuthorizationStatus.NOT_DETERMINED:
            if notify is not None:
                notify(0.0, "Requesting speech recognition permission...")
            outcome = self.backend.request_authorization()
            logger.debug("Speech recognition authorization request returned: %s", outcome)
            if outcome == AuthorizationStatus.AUTHORIZED:
                return None
            return PermissionDenied()
        return PermissionUndetermined(context=f"status={status!r}")
