# voxrec/api/main.py
# uvicorn voxrec.api.main:app --reload
from __future__ import annotations
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from voxrec.config import CORS_ORIGINS, LOG_LEVEL
from voxrec.api.recordings import router as recordings_router
from voxrec.api.settings import router as settings_router

logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Voxrec API", version="0.1.0")

# --- CORS setup ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition"],
)
# ------------------

@app.get("/healthz")
def healthz():
    return {"status": "ok"}

# mount routes
app.include_router(recordings_router)
app.include_router(settings_router)

