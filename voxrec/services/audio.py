# voxrec/services/audio.py
"""
Decode/render pipeline: compressed bytes -> float PCM at a target sample rate.

Decoding is delegated to ffmpeg/ffprobe (subprocess, stdin/stdout pipes) or,
for containers libsndfile reads natively, to soundfile. Resampling is done
with scipy's polyphase resampler inside a per-request OfflineRenderSession.
"""
from __future__ import annotations
from math import gcd
import asyncio
import io
import json
import logging
import subprocess

import numpy as np
import soundfile as sf
from scipy.signal import resample_poly

from voxrec.config import FFMPEG_BIN, FFPROBE_BIN
from voxrec.services.errors import DecodeError
from voxrec.services.pcm import DecodedAudio, PCMBuffer, RenderedPCMBuffer

logger = logging.getLogger(__name__)

# read straight from memory with libsndfile, no ffmpeg process needed
SNDFILE_MIME_TYPES = {
    "audio/wav", "audio/wave", "audio/x-wav", "audio/vnd.wave",
    "audio/flac", "audio/x-flac",
}


def mime_base(mime_type: str | None) -> str:
    """'audio/webm;codecs=opus' -> 'audio/webm'"""
    return (mime_type or "").split(";", 1)[0].strip().lower()


def _run(cmd: list[str], data: bytes) -> subprocess.CompletedProcess:
    return subprocess.run(cmd, input=data, check=True, capture_output=True)


async def _run_async(cmd: list[str], data: bytes) -> bytes:
    proc = await asyncio.create_subprocess_exec(
        *cmd,
        stdin=asyncio.subprocess.PIPE,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    out, err = await proc.communicate(data)
    if proc.returncode != 0:
        raise subprocess.CalledProcessError(proc.returncode, cmd, output=out, stderr=err)
    return out


def _stderr_tail(e: subprocess.CalledProcessError) -> str:
    err = e.stderr or b""
    return err.decode("utf-8", errors="replace").strip()[-500:]


def probe_duration(data: bytes) -> float:
    """
    Return duration in seconds of an in-memory file using ffprobe.
    Requires ffmpeg/ffprobe to be on PATH. Streamed WebM from MediaRecorder
    usually carries no duration; that raises (KeyError/ValueError).
    """
    cmd = [
        FFPROBE_BIN, "-v", "error", "-print_format", "json",
        "-show_entries", "format=duration",
        "-i", "pipe:0",
    ]
    out = _run(cmd, data).stdout.decode("utf-8", errors="replace")
    info = json.loads(out)
    return float(info["format"]["duration"])


class AudioDecoder:
    """Decodes one compressed buffer. Create one per export request."""

    def __init__(self, ffmpeg: str = FFMPEG_BIN, ffprobe: str = FFPROBE_BIN):
        self.ffmpeg = ffmpeg
        self.ffprobe = ffprobe

    async def decode(self, data: bytes, mime_type: str | None = None) -> DecodedAudio:
        """Decode at the source's native channel count and sample rate. Raises DecodeError."""
        if not data:
            raise DecodeError("empty audio buffer")
        if mime_base(mime_type) in SNDFILE_MIME_TYPES:
            return await asyncio.to_thread(self._decode_sndfile, data)
        return await self._decode_ffmpeg(data)

    def _decode_sndfile(self, data: bytes) -> DecodedAudio:
        try:
            frames, rate = sf.read(io.BytesIO(data), dtype="float32", always_2d=True)
        except (RuntimeError, TypeError, ValueError) as e:
            raise DecodeError(f"libsndfile could not decode input: {e}") from e
        return DecodedAudio(samples=frames.T, sample_rate=rate)

    async def _probe_stream(self, data: bytes) -> tuple[int, int]:
        cmd = [
            self.ffprobe, "-v", "error", "-print_format", "json",
            "-select_streams", "a:0",
            "-show_entries", "stream=channels,sample_rate",
            "-i", "pipe:0",
        ]
        out = await _run_async(cmd, data)
        info = json.loads(out.decode("utf-8", errors="replace"))
        streams = info.get("streams") or []
        if not streams:
            raise DecodeError("no audio stream found")
        s = streams[0]
        try:
            channels, rate = int(s["channels"]), int(s["sample_rate"])
        except (KeyError, TypeError, ValueError) as e:
            raise DecodeError(f"audio stream has no usable channels/sample_rate: {s}") from e
        if channels < 1 or rate < 1:
            raise DecodeError(f"audio stream reports channels={channels} sample_rate={rate}")
        return channels, rate

    async def _decode_ffmpeg(self, data: bytes) -> DecodedAudio:
        try:
            channels, rate = await self._probe_stream(data)
            cmd = [
                self.ffmpeg, "-v", "error", "-nostdin",
                "-i", "pipe:0",
                "-vn", "-map", "0:a:0",
                "-f", "f32le", "-acodec", "pcm_f32le",
                "pipe:1",
            ]
            raw = await _run_async(cmd, data)
        except FileNotFoundError as e:
            raise DecodeError(f"decoder binary not found: {e.filename}") from e
        except subprocess.CalledProcessError as e:
            raise DecodeError(f"ffmpeg decode failed: {_stderr_tail(e)}") from e
        except json.JSONDecodeError as e:
            raise DecodeError(f"unreadable ffprobe output: {e}") from e

        interleaved = np.frombuffer(raw, dtype="<f4")
        decoded = DecodedAudio.from_interleaved(interleaved, channels, rate)
        logger.debug(
            "decoded %d bytes -> channels=%d rate=%d frames=%d",
            len(data), decoded.channel_count, decoded.sample_rate, decoded.frame_count,
        )
        return decoded


def resample(samples: np.ndarray, src_rate: int, dst_rate: int) -> np.ndarray:
    """Resample (channels, frames) along the frame axis."""
    if src_rate == dst_rate:
        return samples.copy()
    if samples.shape[1] == 0:
        return np.zeros((samples.shape[0], 0), dtype=np.float32)
    g = gcd(src_rate, dst_rate)
    up, down = dst_rate // g, src_rate // g
    return resample_poly(samples, up, down, axis=1).astype(np.float32)


def _mix_channels(samples: np.ndarray, channel_count: int) -> np.ndarray:
    have = samples.shape[0]
    if have == channel_count:
        return samples
    if have == 1:
        return np.repeat(samples, channel_count, axis=0)
    if channel_count == 1:
        return samples.mean(axis=0, keepdims=True)
    out = np.zeros((channel_count, samples.shape[1]), dtype=np.float32)
    n = min(have, channel_count)
    out[:n] = samples[:n]
    return out


class OfflineRenderSession:
    """
    Renders a complete source buffer into a fixed-size output buffer.

    The output always has exactly frame_count frames at sample_rate. The
    source is resampled to sample_rate first and then truncated or padded
    with silence to fit, so when the rates differ the rendered file does not
    have the source's wall-clock duration.

    A session renders once.
    """

    def __init__(self, channel_count: int, frame_count: int, sample_rate: int):
        if channel_count < 1:
            raise ValueError("channel_count must be >= 1")
        if frame_count < 0:
            raise ValueError("frame_count must be >= 0")
        if sample_rate < 1:
            raise ValueError("sample_rate must be >= 1")
        self.channel_count = int(channel_count)
        self.frame_count = int(frame_count)
        self.sample_rate = int(sample_rate)
        self._used = False

    async def start_rendering(self, source: PCMBuffer) -> RenderedPCMBuffer:
        if self._used:
            raise RuntimeError("render session already used")
        self._used = True
        samples = await asyncio.to_thread(self._render, source)
        return RenderedPCMBuffer(samples=samples, sample_rate=self.sample_rate)

    def _render(self, source: PCMBuffer) -> np.ndarray:
        resampled = resample(source.samples, source.sample_rate, self.sample_rate)
        mixed = _mix_channels(resampled, self.channel_count)
        out = np.zeros((self.channel_count, self.frame_count), dtype=np.float32)
        n = min(self.frame_count, mixed.shape[1])
        out[:, :n] = mixed[:, :n]
        return out


async def decode_and_render(
    data: bytes,
    sample_rate: int,
    mime_type: str | None = None,
) -> RenderedPCMBuffer:
    """Decode a compressed buffer and render it at sample_rate, keeping its channel and frame counts."""
    if sample_rate < 1:
        raise ValueError(f"sample_rate must be >= 1, got {sample_rate}")
    decoded = await AudioDecoder().decode(data, mime_type)
    session = OfflineRenderSession(
        channel_count=decoded.channel_count,
        frame_count=decoded.frame_count,
        sample_rate=sample_rate,
    )
    return await session.start_rendering(decoded)
