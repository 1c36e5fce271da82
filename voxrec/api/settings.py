from __future__ import annotations
from fastapi import APIRouter

from voxrec.config import SAMPLE_RATES
from voxrec.schemas.settings import RecorderSettings, SettingsResponse, SettingsUpdateRequest
from voxrec.store import settings as settings_store

router = APIRouter(prefix="/api/settings", tags=["settings"])


def _response(s: RecorderSettings) -> SettingsResponse:
    return SettingsResponse(
        sample_rate=s.sample_rate,
        locale=s.locale,
        available_sample_rates=list(SAMPLE_RATES),
    )


@router.get("", response_model=SettingsResponse)
def get_settings():
    return _response(settings_store.get_settings())


@router.put("", response_model=SettingsResponse)
def update_settings(payload: SettingsUpdateRequest):
    s = settings_store.update_settings(sample_rate=payload.sample_rate, locale=payload.locale)
    return _response(s)
