"""Tests for the permission gate."""

import pytest

from media_transcriber.backends.base import AuthorizationStatus
from media_transcriber.errors import (
    ErrorKind,
    PermissionDenied,
    PermissionRestricted,
    PermissionUndetermined,
)
from media_transcriber.permissions import PermissionGate

from fakes import FakeBackend, Recorder


class TestPermissionGate:
    """Tests for PermissionGate.ensure."""

    def test_authorized(self):
        gate = PermissionGate(FakeBackend())
        gate.ensure()
        assert gate.checked
        assert gate.granted

    def test_denied(self):
        gate = PermissionGate(FakeBackend(status=AuthorizationStatus.DENIED))
        with pytest.raises(PermissionDenied) as exc_info:
            gate.ensure()
        assert exc_info.value.kind == ErrorKind.PERMISSION_DENIED
        assert not gate.granted

    def test_restricted(self):
        gate = PermissionGate(FakeBackend(status=AuthorizationStatus.RESTRICTED))
        with pytest.raises(PermissionRestricted):
            gate.ensure()

    def test_unknown_status_is_undetermined(self):
        gate = PermissionGate(FakeBackend(status="something-new"))
        with pytest.raises(PermissionUndetermined):
            gate.ensure()

    def test_not_determined_requests_once(self):
        backend = FakeBackend(status=AuthorizationStatus.NOT_DETERMINED)
        recorder = Recorder()
        gate = PermissionGate(backend)

        gate.ensure(notify=recorder)
        gate.ensure(notify=recorder)

        assert backend.authorization_requests == 1
        assert recorder.calls == [(0.0, "Requesting speech recognition permission...")]

    def test_not_determined_then_refused(self):
        backend = FakeBackend(
            status=AuthorizationStatus.NOT_DETERMINED,
            request_outcome=AuthorizationStatus.DENIED,
        )
        gate = PermissionGate(backend)
        with pytest.raises(PermissionDenied):
            gate.ensure()

    def test_outcome_is_cached(self):
        """The backend is consulted once; later calls replay the outcome."""
        backend = FakeBackend(status=AuthorizationStatus.DENIED)
        gate = PermissionGate(backend)

        for _ in range(3):
            with pytest.raises(PermissionDenied):
                gate.ensure()

        assert backend.status_checks == 1

    def test_status_change_after_check_is_ignored(self):
        backend = FakeBackend()
        gate = PermissionGate(backend)
        gate.ensure()

        backend.status = AuthorizationStatus.DENIED
        gate.ensure()
        assert gate.granted
