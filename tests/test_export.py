from __future__ import annotations

import asyncio
import struct
from datetime import datetime, timezone

import numpy as np
import pytest

from voxrec.services.errors import DecodeError
from voxrec.services.export import (
    ExportFormat,
    export_filename,
    export_recording,
    format_timestamp,
    safe_timestamp,
)
from voxrec.store import crud

AFTERNOON = datetime(2026, 10, 17, 14, 5, 9, tzinfo=timezone.utc)


class TestFilenames:
    def test_en_layout(self) -> None:
        assert format_timestamp(AFTERNOON, "en", timezone.utc) == "10/17/2026, 02:05:09 PM"

    def test_en_midnight_is_twelve_am(self) -> None:
        ts = datetime(2026, 1, 2, 0, 30, 0, tzinfo=timezone.utc)
        assert format_timestamp(ts, "en", timezone.utc) == "01/02/2026, 12:30:00 AM"

    def test_zh_layout(self) -> None:
        assert format_timestamp(AFTERNOON, "zh", timezone.utc) == "2026/10/17 14:05:09"

    def test_naive_datetime_taken_as_utc(self) -> None:
        naive = datetime(2026, 10, 17, 14, 5, 9)
        assert format_timestamp(naive, "zh", timezone.utc) == "2026/10/17 14:05:09"

    def test_unknown_locale(self) -> None:
        with pytest.raises(ValueError):
            format_timestamp(AFTERNOON, "fr", timezone.utc)

    def test_safe_timestamp(self) -> None:
        assert safe_timestamp("10/17/2026, 02:05:09 PM") == "10-17-2026_02-05-09_PM"

    @pytest.mark.parametrize(
        "locale,ext,expected",
        [
            ("en", "wav", "recording_10-17-2026_02-05-09_PM_44100Hz.wav"),
            ("zh", "wav", "recording_2026-10-17_14-05-09_44100Hz.wav"),
            ("zh", ".webm", "recording_2026-10-17_14-05-09_44100Hz.webm"),
        ],
    )
    def test_export_filename(self, locale: str, ext: str, expected: str) -> None:
        assert export_filename(AFTERNOON, 44100, ext, locale, timezone.utc) == expected


class TestExportRecording:
    def test_raw_export_returns_blob_unchanged(self) -> None:
        blob = b"\x1aE\xdf\xa3 webm bytes"
        rec = crud.create_recording(
            data=blob, mime_type="audio/webm;codecs=opus", duration_s=3, sample_rate=16000,
            created_at=AFTERNOON,
        )
        result = asyncio.run(export_recording(rec, "raw", locale="zh", tz=timezone.utc))
        assert result.data == blob
        assert result.media_type == "audio/webm;codecs=opus"
        assert result.filename == "recording_2026-10-17_14-05-09_16000Hz.webm"

    def test_wav_export_at_recording_rate(self, make_audio, tone) -> None:
        rec = crud.create_recording(
            data=make_audio(tone(frames=80), 8000), mime_type="audio/wav",
            duration_s=0, sample_rate=8000, created_at=AFTERNOON,
        )
        result = asyncio.run(export_recording(rec, ExportFormat.pcm_container, tz=timezone.utc))
        assert result.media_type == "audio/wav"
        assert result.filename.endswith("_8000Hz.wav")
        assert len(result.data) == 44 + 80 * 2
        assert struct.unpack_from("<I", result.data, 24)[0] == 8000

    def test_wav_export_rate_override_keeps_frame_count(self, make_audio, tone) -> None:
        # Known deviation: rendering at another rate does not rescale the
        # frame count, so the data size matches the source.
        rec = crud.create_recording(
            data=make_audio(tone(frames=80), 8000), mime_type="audio/wav",
            duration_s=0, sample_rate=8000, created_at=AFTERNOON,
        )
        result = asyncio.run(export_recording(rec, "wav", sample_rate=4000, tz=timezone.utc))
        assert struct.unpack_from("<I", result.data, 24)[0] == 4000
        assert len(result.data) == 44 + 80 * 2
        assert result.filename.endswith("_4000Hz.wav")

    def test_decode_failure_leaves_other_recordings(self, make_audio) -> None:
        good = crud.create_recording(
            data=make_audio(np.zeros(16), 8000), mime_type="audio/wav", duration_s=0, sample_rate=8000,
        )
        bad = crud.create_recording(
            data=b"definitely not audio", mime_type="audio/wav", duration_s=0, sample_rate=8000,
        )
        with pytest.raises(DecodeError):
            asyncio.run(export_recording(bad, "wav"))

        assert [r.id for r in crud.list_recordings()] == [bad.id, good.id]
        assert crud.get_recording(good.id).blob.data == make_audio(np.zeros(16), 8000)
        result = asyncio.run(export_recording(good, "wav"))
        assert result.data[44:] == b"\x00" * 32

    def test_concurrent_exports(self, make_audio, tone) -> None:
        mono = crud.create_recording(
            data=make_audio(tone(frames=100), 8000), mime_type="audio/wav", duration_s=0, sample_rate=8000,
        )
        stereo = crud.create_recording(
            data=make_audio(tone(frames=50, channels=2), 8000), mime_type="audio/wav",
            duration_s=0, sample_rate=16000,
        )

        async def both():
            return await asyncio.gather(
                export_recording(mono, "wav"),
                export_recording(stereo, "wav"),
                export_recording(stereo, "raw"),
            )

        a, b, c = asyncio.run(both())
        assert len(a.data) == 44 + 100 * 2
        assert len(b.data) == 44 + 50 * 2 * 2
        assert c.data == stereo.blob.data

    def test_raw_export_named_after_recording_rate(self) -> None:
        # the blob is returned untouched, so an override rate must not leak into its name
        rec = crud.create_recording(
            data=b"\x1aE\xdf\xa3", mime_type="audio/webm", duration_s=1, sample_rate=44100,
            created_at=AFTERNOON,
        )
        result = asyncio.run(export_recording(rec, "raw", sample_rate=8000, locale="zh", tz=timezone.utc))
        assert result.filename == "recording_2026-10-17_14-05-09_44100Hz.webm"

    @pytest.mark.parametrize("fmt", ["raw", "wav"])
    @pytest.mark.parametrize("rate", [0, -8000])
    def test_non_positive_rate_rejected(self, fmt: str, rate: int) -> None:
        rec = crud.create_recording(data=b"x", mime_type="audio/webm", duration_s=0, sample_rate=8000)
        with pytest.raises(ValueError):
            asyncio.run(export_recording(rec, fmt, sample_rate=rate))

    def test_unknown_format(self) -> None:
        rec = crud.create_recording(data=b"x", mime_type="audio/webm", duration_s=0, sample_rate=8000)
        with pytest.raises(ValueError):
            asyncio.run(export_recording(rec, "mp3"))
