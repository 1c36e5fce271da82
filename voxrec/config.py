# voxrec/config.py
from __future__ import annotations
import os

# external codec binaries (must be on PATH unless overridden)
FFMPEG_BIN = os.getenv("VOXREC_FFMPEG", "ffmpeg")
FFPROBE_BIN = os.getenv("VOXREC_FFPROBE", "ffprobe")

# sample rates offered by the recorder settings dialog
SAMPLE_RATES = (8000, 16000, 22050, 24000, 44100, 48000)
DEFAULT_SAMPLE_RATE = int(os.getenv("VOXREC_DEFAULT_SAMPLE_RATE", "44100"))

LOCALES = ("zh", "en")
DEFAULT_LOCALE = os.getenv("VOXREC_DEFAULT_LOCALE", "zh")

DEFAULT_MIME_TYPE = "audio/webm"

# uploads are held in memory, so cap them
MAX_UPLOAD_BYTES = int(os.getenv("VOXREC_MAX_UPLOAD_BYTES", str(200 * 1024 * 1024)))

CORS_ORIGINS = [
    o.strip()
    for o in os.getenv(
        "VOXREC_CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://127.0.0.1:5173",
    ).split(",")
    if o.strip()
]

LOG_LEVEL = os.getenv("VOXREC_LOG_LEVEL", "INFO").upper()
