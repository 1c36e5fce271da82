# voxrec/store/crud.py
"""In-memory recordings list. Lives for the process lifetime; nothing is persisted."""
from __future__ import annotations
from datetime import datetime, timezone
import hashlib
import threading
import uuid
from typing import Optional, List

from .models import RawAudioBlob, Recording

_lock = threading.Lock()
_recordings: List[Recording] = []


def _now() -> datetime:
    return datetime.now(timezone.utc)


def new_id(prefix: Optional[str] = None) -> str:
    rid = uuid.uuid4().hex  # 32 hex chars, lowercase
    return f"{prefix}_{rid}" if prefix else rid


def create_recording(
    *,
    data: bytes,
    mime_type: str,
    duration_s: int,
    sample_rate: int,
    created_at: Optional[datetime] = None,
) -> Recording:
    rec = Recording(
        id=new_id("rec"),
        blob=RawAudioBlob(data=bytes(data), mime_type=mime_type),
        duration_s=int(duration_s),
        sample_rate=int(sample_rate),
        sha256=hashlib.sha256(data).hexdigest(),
        created_at=created_at or _now(),
    )
    with _lock:
        _recordings.append(rec)
    return rec


def get_recording(rec_id: str) -> Optional[Recording]:
    with _lock:
        for rec in _recordings:
            if rec.id == rec_id:
                return rec
    return None


def list_recordings(limit: int = 50) -> List[Recording]:
    """Newest first."""
    with _lock:
        rows = list(reversed(_recordings))
    return rows[:limit]


def delete_recording(rec_id: str) -> bool:
    """Returns True if deleted, False if not found."""
    with _lock:
        for i, rec in enumerate(_recordings):
            if rec.id == rec_id:
                del _recordings[i]
                return True
    return False


def clear() -> None:
    with _lock:
        _recordings.clear()
