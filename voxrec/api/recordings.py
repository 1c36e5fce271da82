from __future__ import annotations
from fastapi import APIRouter, UploadFile, File, Form, HTTPException, Query, Response, status
from datetime import timezone
from typing import Optional
from urllib.parse import quote
import asyncio
import logging
import subprocess

from voxrec.config import DEFAULT_MIME_TYPE, MAX_UPLOAD_BYTES
from voxrec.services import audio
from voxrec.services.errors import AllocationError, DecodeError
from voxrec.services.export import ExportFormat, export_recording
from voxrec.store import crud
from voxrec.store.models import Recording
from voxrec.store.settings import get_settings
from voxrec.schemas.recordings import (
    RecordingCreateResponse,
    RecordingListResponse,
    RecordingItem,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/recordings", tags=["recordings"])


def _item(r: Recording) -> RecordingItem:
    return RecordingItem(
        id=r.id,
        created_at=r.created_at.astimezone(timezone.utc).isoformat(),
        duration_s=r.duration_s,
        sample_rate=r.sample_rate,
        mime_type=r.blob.mime_type,
        extension=r.blob.extension,
        size_bytes=r.blob.size,
        sha256=r.sha256,
    )


async def _probe_duration_s(data: bytes) -> int:
    try:
        return int(round(await asyncio.to_thread(audio.probe_duration, data)))
    except (subprocess.CalledProcessError, FileNotFoundError, KeyError, ValueError) as e:
        logger.debug("duration probe failed: %s", e)
        return 0


@router.post("", response_model=RecordingCreateResponse)
async def create_recording(
    file: UploadFile = File(...),
    duration_s: Optional[int] = Form(None, ge=0),
    sample_rate: Optional[int] = Form(None, ge=1),
):
    mime_type = file.content_type or DEFAULT_MIME_TYPE
    if mime_type == "application/octet-stream":
        mime_type = DEFAULT_MIME_TYPE

    buf = bytearray()
    while True:
        chunk = await file.read(1024 * 1024)
        if not chunk:
            break
        buf += chunk
        if len(buf) > MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=413, detail=f"upload exceeds {MAX_UPLOAD_BYTES} bytes")

    if not buf:
        raise HTTPException(status_code=400, detail="empty recording")

    data = bytes(buf)
    if duration_s is None:
        duration_s = await _probe_duration_s(data)

    rec = crud.create_recording(
        data=data,
        mime_type=mime_type,
        duration_s=duration_s,
        sample_rate=sample_rate or get_settings().sample_rate,
    )
    logger.info("stored recording %s (%s, %d bytes)", rec.id, mime_type, rec.blob.size)

    return RecordingCreateResponse(
        recording_id=rec.id,
        mime_type=rec.blob.mime_type,
        size_bytes=rec.blob.size,
        duration_s=rec.duration_s,
        sample_rate=rec.sample_rate,
    )


@router.get("", response_model=RecordingListResponse)
def list_recordings(limit: int = Query(50, ge=1, le=200)):
    return RecordingListResponse(items=[_item(r) for r in crud.list_recordings(limit=limit)])


@router.get("/{recording_id}", response_model=RecordingItem)
def get_recording(recording_id: str):
    rec = crud.get_recording(recording_id)
    if not rec:
        raise HTTPException(status_code=404, detail="recording not found")
    return _item(rec)


@router.get("/{recording_id}/download")
async def download_recording(
    recording_id: str,
    format: ExportFormat = Query(ExportFormat.pcm_container),
    sample_rate: Optional[int] = Query(None, ge=1),
    locale: Optional[str] = Query(None, pattern="^(zh|en)$"),
):
    rec = crud.get_recording(recording_id)
    if not rec:
        raise HTTPException(status_code=404, detail="recording not found")

    try:
        result = await export_recording(
            rec,
            format,
            sample_rate=sample_rate,
            locale=locale or get_settings().locale,
        )
    except DecodeError as e:
        logger.warning("decode failed for %s: %s", recording_id, e)
        raise HTTPException(status_code=422, detail=f"could not decode recording: {e}")
    except AllocationError as e:
        logger.warning("allocation failed for %s: %s", recording_id, e)
        raise HTTPException(status_code=507, detail=str(e))

    headers = {"Content-Disposition": f"attachment; filename*=UTF-8''{quote(result.filename)}"}
    return Response(content=result.data, media_type=result.media_type, headers=headers)


@router.delete("/{recording_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_recording(recording_id: str):
    ok = crud.delete_recording(recording_id)
    if not ok:
        raise HTTPException(status_code=404, detail="recording not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
