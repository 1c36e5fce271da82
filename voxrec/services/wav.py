# voxrec/services/wav.py
"""
Serialize rendered PCM into a minimal 16-bit PCM WAV file.

Layout (all little-endian):

    0  "RIFF"          4  36 + data_len   8  "WAVE"
    12 "fmt "          16 16              20 format 1 (PCM)
    22 channels        24 sample rate     28 byte rate = rate * 4
    32 block align     34 bits = 16       36 "data"
    40 data_len        44 samples...

The byte rate uses a fixed multiplier of 4 for every channel count, which
only matches rate * channels * 2 for stereo. Readers that trust the field
will report a wrong bitrate for mono or multi-channel files.
"""
from __future__ import annotations
import logging
import struct

import numpy as np

from voxrec.services.errors import AllocationError
from voxrec.services.pcm import PCMBuffer

logger = logging.getLogger(__name__)

HEADER_SIZE = 44
BITS_PER_SAMPLE = 16
BYTES_PER_SAMPLE = BITS_PER_SAMPLE // 8
INT16_MAX = 0x7FFF
BYTE_RATE_MULTIPLIER = 4

# the RIFF size field (36 + data_len) has to fit in an unsigned 32-bit int
MAX_DATA_BYTES = 0xFFFFFFFF - 36

_HEADER = struct.Struct("<4sI4s4sIHHIIHH4sI")


def interleave(buffer: PCMBuffer) -> np.ndarray:
    """Flatten (channels, frames) into frame-major order: [f0c0, f0c1, ..., f1c0, ...]."""
    return np.ascontiguousarray(buffer.samples.T).reshape(-1)


def float_to_int16(samples: np.ndarray) -> np.ndarray:
    """
    Convert float samples to int16 as round(s * 32767).

    No clamping: out-of-range values wrap modulo 2**16. NaN and infinities
    become 0.
    """
    scaled = np.asarray(samples, dtype=np.float64) * INT16_MAX
    np.rint(scaled, out=scaled)
    scaled[~np.isfinite(scaled)] = 0.0
    # wrap in place; every value is then an exact integer in int16 range
    np.mod(scaled, 65536.0, out=scaled)
    scaled[scaled >= 32768.0] -= 65536.0
    return scaled.astype("<i2")


def build_header(*, channel_count: int, sample_rate: int, data_len: int) -> bytes:
    if data_len > MAX_DATA_BYTES:
        raise AllocationError(
            f"sample data of {data_len} bytes exceeds the WAV size limit ({MAX_DATA_BYTES} bytes)"
        )
    return _HEADER.pack(
        b"RIFF",
        36 + data_len,
        b"WAVE",
        b"fmt ",
        16,
        1,
        channel_count & 0xFFFF,
        sample_rate & 0xFFFFFFFF,
        (sample_rate * BYTE_RATE_MULTIPLIER) & 0xFFFFFFFF,
        (channel_count * BYTES_PER_SAMPLE) & 0xFFFF,
        BITS_PER_SAMPLE,
        b"data",
        data_len,
    )


def encode_wav(buffer: PCMBuffer) -> bytes:
    """Encode a PCM buffer as a 44-byte-header WAV file. Raises AllocationError."""
    data_len = buffer.frame_count * buffer.channel_count * BYTES_PER_SAMPLE
    header = build_header(
        channel_count=buffer.channel_count,
        sample_rate=buffer.sample_rate,
        data_len=data_len,
    )
    try:
        pcm = float_to_int16(interleave(buffer))
        out = header + pcm.tobytes()
    except MemoryError as e:
        raise AllocationError(f"out of memory building {HEADER_SIZE + data_len} byte WAV") from e

    logger.debug(
        "encoded wav: channels=%d rate=%d frames=%d bytes=%d",
        buffer.channel_count, buffer.sample_rate, buffer.frame_count, len(out),
    )
    return out
