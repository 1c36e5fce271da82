#!/usr/bin/env python3
"""
Convert a compressed recording (webm/ogg/mp3/…) to 16-bit PCM WAV at a chosen sample rate,
using the same decode/render pipeline as the API.

Examples:
  python -m voxrec.cli.export data/clip.webm
  python -m voxrec.cli.export data/clip.webm --sample-rate 16000 --out out/clip.wav
  python -m voxrec.cli.export data/clip.flac --mime audio/flac -v
"""

from __future__ import annotations
import argparse
import asyncio
from datetime import datetime, timezone
import logging
import mimetypes
from pathlib import Path
import sys
import time

from voxrec.config import DEFAULT_LOCALE, DEFAULT_MIME_TYPE, DEFAULT_SAMPLE_RATE, LOCALES
from voxrec.services.audio import decode_and_render
from voxrec.services.errors import AllocationError, DecodeError
from voxrec.services.export import export_filename
from voxrec.services.wav import encode_wav


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="voxrec-export",
        description="Decode a compressed audio file and write it as 16-bit PCM WAV.",
    )
    p.add_argument("audio_path", type=Path, help="Path to the compressed recording.")
    p.add_argument("--out", type=Path, default=None,
                   help="Output WAV path. Default: recording_<timestamp>_<rate>Hz.wav next to the input.")
    p.add_argument("--sample-rate", type=int, default=DEFAULT_SAMPLE_RATE,
                   help=f"Output sample rate in Hz (default {DEFAULT_SAMPLE_RATE}).")
    p.add_argument("--mime", default=None, help="Declared MIME type. Default: guessed from the extension.")
    p.add_argument("--locale", choices=list(LOCALES), default=DEFAULT_LOCALE,
                   help="Timestamp layout for the default output name.")
    p.add_argument("-v", "--verbose", action="store_true", help="Verbose console logs.")
    return p.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="[%(levelname)s] %(name)s: %(message)s",
    )

    in_path: Path = args.audio_path
    if not in_path.exists() or not in_path.is_file():
        print(f"[error] Input file not found: {in_path.resolve()}", file=sys.stderr)
        return 2
    if args.sample_rate < 1:
        print(f"[error] --sample-rate must be a positive integer, got {args.sample_rate}", file=sys.stderr)
        return 2

    mime = args.mime or mimetypes.guess_type(in_path.name)[0] or DEFAULT_MIME_TYPE

    t0 = time.time()
    try:
        rendered = asyncio.run(decode_and_render(in_path.read_bytes(), args.sample_rate, mime))
        wav = encode_wav(rendered)
    except DecodeError as e:
        print(f"[error] Decode failed: {e} (hint: ensure ffmpeg/ffprobe are installed and on PATH)",
              file=sys.stderr)
        return 3
    except AllocationError as e:
        print(f"[error] {e}", file=sys.stderr)
        return 4

    out_path: Path = args.out
    if out_path is None:
        mtime = datetime.fromtimestamp(in_path.stat().st_mtime, tz=timezone.utc)
        out_path = in_path.with_name(export_filename(mtime, args.sample_rate, "wav", args.locale))
    out_path.parent.mkdir(parents=True, exist_ok=True)
    out_path.write_bytes(wav)

    print(f"Wrote: {out_path}")
    print(f"Channels: {rendered.channel_count}  Rate: {rendered.sample_rate} Hz  Frames: {rendered.frame_count}")
    print(f"Processing time: {time.time() - t0:.2f}s")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
