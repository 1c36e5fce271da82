"""
Shared fixtures.

Every test starts with an empty recordings list and default settings, since
both live in module-level state for the process lifetime.
"""

import io

import numpy as np
import pytest
import soundfile as sf

from voxrec.store import crud
from voxrec.store import settings as settings_store


@pytest.fixture(autouse=True)
def clean_state():
    crud.clear()
    settings_store.reset()
    yield
    crud.clear()
    settings_store.reset()


@pytest.fixture
def make_audio():
    """
    Factory for in-memory audio files written by libsndfile.

    Usage:
        data = make_audio(np.zeros((100, 2)), sample_rate=8000)
        data = make_audio(samples, format="FLAC", subtype="PCM_16")
    """

    def _create(samples, sample_rate: int = 8000, format: str = "WAV", subtype: str = "FLOAT") -> bytes:
        buf = io.BytesIO()
        sf.write(buf, np.asarray(samples, dtype=np.float32), sample_rate, format=format, subtype=subtype)
        return buf.getvalue()

    return _create


@pytest.fixture
def tone():
    """(frames, channels) sine at 440 Hz, amplitude 0.5."""

    def _create(frames: int = 800, channels: int = 1, sample_rate: int = 8000) -> np.ndarray:
        t = np.arange(frames) / sample_rate
        mono = 0.5 * np.sin(2 * np.pi * 440 * t)
        return np.repeat(mono[:, None], channels, axis=1).astype(np.float32)

    return _create


@pytest.fixture
def client():
    from fastapi.testclient import TestClient
    from voxrec.api.main import app

    return TestClient(app)
