from __future__ import annotations
from pydantic import BaseModel


class RecordingCreateResponse(BaseModel):
    recording_id: str
    mime_type: str
    size_bytes: int
    duration_s: int
    sample_rate: int


class RecordingItem(BaseModel):
    id: str
    created_at: str
    duration_s: int
    sample_rate: int
    mime_type: str
    extension: str
    size_bytes: int
    sha256: str


class RecordingListResponse(BaseModel):
    items: list[RecordingItem]
