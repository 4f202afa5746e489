"""Shared fixtures."""

import pytest

from media_transcriber.transcriber import Transcriber


@pytest.fixture
def audio_file(tmp_path):
    """An existing (empty) audio file."""
    path = tmp_path / "speech.wav"
    path.write_bytes(b"")
    return path


@pytest.fixture
def make_transcriber():
    """Build a Transcriber with fast timings and a fixed 10 s audio duration."""

    def factory(backend, **kwargs):
        kwargs.setdefault("duration_probe", lambda path: 10.0)
        kwargs.setdefault("tick_interval", 0.005)
        kwargs.setdefault("final_hold", 0.0)
        return Transcriber(backend, **kwargs)

    return factory
