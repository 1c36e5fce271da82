# voxrec/store/models.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone

# MIME subtype -> file extension, where they differ or need pinning
_EXTENSIONS = {
    "audio/webm": "webm",
    "video/webm": "webm",
    "audio/ogg": "ogg",
    "audio/opus": "opus",
    "audio/wav": "wav",
    "audio/wave": "wav",
    "audio/x-wav": "wav",
    "audio/vnd.wave": "wav",
    "audio/mpeg": "mp3",
    "audio/mp3": "mp3",
    "audio/mp4": "m4a",
    "audio/x-m4a": "m4a",
    "audio/aac": "aac",
    "audio/flac": "flac",
    "audio/x-flac": "flac",
    "video/mp4": "mp4",
}


@dataclass(frozen=True)
class RawAudioBlob:
    """Compressed recording bytes as captured, plus their declared MIME type."""
    data: bytes
    mime_type: str

    @property
    def size(self) -> int:
        return len(self.data)

    @property
    def extension(self) -> str:
        base = self.mime_type.split(";", 1)[0].strip().lower()
        if base in _EXTENSIONS:
            return _EXTENSIONS[base]
        sub = base.split("/", 1)[-1]
        return sub.removeprefix("x-") or "bin"

    async def read(self) -> bytes:
        return self.data


@dataclass(frozen=True)
class Recording:
    id: str
    blob: RawAudioBlob
    duration_s: int
    sample_rate: int
    sha256: str
    created_at: datetime

    @property
    def timestamp_ms(self) -> int:
        ts = self.created_at
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return int(ts.timestamp() * 1000)
