# voxrec/store/settings.py
from __future__ import annotations
import threading
from typing import Optional

from voxrec.config import DEFAULT_LOCALE, DEFAULT_SAMPLE_RATE
from voxrec.schemas.settings import RecorderSettings

_lock = threading.Lock()
_current = RecorderSettings(sample_rate=DEFAULT_SAMPLE_RATE, locale=DEFAULT_LOCALE)


def get_settings() -> RecorderSettings:
    with _lock:
        return _current


def update_settings(*, sample_rate: Optional[int] = None, locale: Optional[str] = None) -> RecorderSettings:
    global _current
    with _lock:
        data = _current.model_dump()
        if sample_rate is not None:
            data["sample_rate"] = sample_rate
        if locale is not None:
            data["locale"] = locale
        _current = RecorderSettings(**data)
        return _current


def reset() -> None:
    global _current
    with _lock:
        _current = RecorderSettings(sample_rate=DEFAULT_SAMPLE_RATE, locale=DEFAULT_LOCALE)
