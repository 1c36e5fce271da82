# voxrec/services/export.py
from __future__ import annotations
from dataclasses import dataclass
from datetime import datetime, timezone, tzinfo
from enum import Enum
import logging
from typing import Optional

from voxrec.config import DEFAULT_LOCALE
from voxrec.services.audio import decode_and_render
from voxrec.services.wav import encode_wav
from voxrec.store.models import Recording

logger = logging.getLogger(__name__)


class ExportFormat(str, Enum):
    pcm_container = "wav"
    raw_container = "raw"


@dataclass(frozen=True)
class ExportResult:
    data: bytes
    filename: str
    media_type: str


def format_timestamp(ts: datetime, locale: str = DEFAULT_LOCALE, tz: Optional[tzinfo] = None) -> str:
    """
    Render a timestamp like the browser's toLocaleString with 2-digit fields.

    en -> "10/17/2026, 02:05:09 PM"
    zh -> "2026/10/17 14:05:09"

    Naive datetimes are taken as UTC. tz=None renders in the local timezone.
    """
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    t = ts.astimezone(tz)
    if locale == "en":
        hour = t.hour % 12 or 12
        ampm = "AM" if t.hour < 12 else "PM"
        return f"{t.month:02d}/{t.day:02d}/{t.year}, {hour:02d}:{t.minute:02d}:{t.second:02d} {ampm}"
    if locale == "zh":
        return f"{t.year}/{t.month:02d}/{t.day:02d} {t.hour:02d}:{t.minute:02d}:{t.second:02d}"
    raise ValueError(f"unsupported locale: {locale!r}")


def safe_timestamp(text: str) -> str:
    return text.replace("/", "-").replace(":", "-").replace(",", "").replace(" ", "_")


def export_filename(
    created_at: datetime,
    sample_rate: int,
    ext: str,
    locale: str = DEFAULT_LOCALE,
    tz: Optional[tzinfo] = None,
) -> str:
    stamp = safe_timestamp(format_timestamp(created_at, locale, tz))
    return f"recording_{stamp}_{int(sample_rate)}Hz.{ext.lstrip('.')}"


async def export_recording(
    recording: Recording,
    fmt: ExportFormat | str,
    *,
    sample_rate: Optional[int] = None,
    locale: str = DEFAULT_LOCALE,
    tz: Optional[tzinfo] = None,
) -> ExportResult:
    """
    Produce the bytes and suggested filename for one download.

    raw returns the stored blob as-is. wav decodes, renders at sample_rate
    (default: the recording's own rate) and encodes 16-bit PCM. Raises
    DecodeError / AllocationError; the recording itself is never modified.
    """
    fmt = ExportFormat(fmt)
    rate = recording.sample_rate if sample_rate is None else int(sample_rate)
    if rate < 1:
        raise ValueError(f"sample_rate must be >= 1, got {rate}")

    data = await recording.blob.read()
    if fmt is ExportFormat.raw_container:
        out, ext, media_type = data, recording.blob.extension, recording.blob.mime_type
        # the blob is not resampled, so name it after its own rate
        rate = recording.sample_rate
    else:
        rendered = await decode_and_render(data, rate, recording.blob.mime_type)
        out, ext, media_type = encode_wav(rendered), "wav", "audio/wav"

    filename = export_filename(recording.created_at, rate, ext, locale, tz)
    logger.info("exported %s as %s (%d bytes): %s", recording.id, fmt.value, len(out), filename)
    return ExportResult(data=out, filename=filename, media_type=media_type)
