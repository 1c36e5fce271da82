# voxrec/services/pcm.py
from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True, eq=False)
class PCMBuffer:
    """
    Multi-channel float PCM.

    samples has shape (channel_count, frame_count); each row is one channel.
    Values are nominally in [-1.0, 1.0] but are not clamped.
    """
    samples: np.ndarray
    sample_rate: int

    def __post_init__(self) -> None:
        arr = np.asarray(self.samples, dtype=np.float32)
        if arr.ndim != 2:
            raise ValueError(f"samples must be 2-D (channels, frames), got shape {arr.shape}")
        if arr.shape[0] < 1:
            raise ValueError("channel_count must be >= 1")
        if int(self.sample_rate) < 1:
            raise ValueError(f"sample_rate must be >= 1, got {self.sample_rate}")
        object.__setattr__(self, "samples", arr)
        object.__setattr__(self, "sample_rate", int(self.sample_rate))

    @property
    def channel_count(self) -> int:
        return int(self.samples.shape[0])

    @property
    def frame_count(self) -> int:
        return int(self.samples.shape[1])

    @property
    def duration_s(self) -> float:
        return self.frame_count / self.sample_rate

    def get_channel_data(self, channel: int) -> np.ndarray:
        if not 0 <= channel < self.channel_count:
            raise IndexError(f"channel {channel} out of range (0..{self.channel_count - 1})")
        return self.samples[channel]

    @classmethod
    def from_channels(cls, channels: Sequence[Sequence[float]], sample_rate: int):
        """Build from per-channel sample sequences; every channel must have the same length."""
        if len(channels) == 0:
            raise ValueError("channel_count must be >= 1")
        lengths = {len(ch) for ch in channels}
        if len(lengths) != 1:
            raise ValueError(f"all channels must have the same frame count, got {sorted(lengths)}")
        frames = lengths.pop()
        arr = np.empty((len(channels), frames), dtype=np.float32)
        for i, ch in enumerate(channels):
            arr[i, :] = np.asarray(ch, dtype=np.float32)
        return cls(samples=arr, sample_rate=sample_rate)

    @classmethod
    def from_interleaved(cls, interleaved: np.ndarray, channel_count: int, sample_rate: int):
        """Split a flat frame-major sample array into channels."""
        if channel_count < 1:
            raise ValueError("channel_count must be >= 1")
        flat = np.asarray(interleaved, dtype=np.float32).reshape(-1)
        # drop a trailing partial frame
        usable = (flat.size // channel_count) * channel_count
        frames = flat[:usable].reshape(-1, channel_count)
        return cls(samples=np.ascontiguousarray(frames.T), sample_rate=sample_rate)


class DecodedAudio(PCMBuffer):
    """Audio as it came out of the decoder, at the source's native rate."""


class RenderedPCMBuffer(PCMBuffer):
    """Audio rendered by an offline session at the requested output rate."""
