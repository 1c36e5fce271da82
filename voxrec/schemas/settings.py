# voxrec/schemas/settings.py
from __future__ import annotations
from typing import Literal, Optional
from pydantic import BaseModel, ConfigDict, field_validator

from voxrec.config import SAMPLE_RATES

Locale = Literal["zh", "en"]


class RecorderSettings(BaseModel):
    sample_rate: int
    locale: Locale

    @field_validator("sample_rate")
    @classmethod
    def _known_rate(cls, v: int) -> int:
        if v not in SAMPLE_RATES:
            raise ValueError(f"sample_rate must be one of {list(SAMPLE_RATES)}")
        return v


class SettingsUpdateRequest(BaseModel):
    sample_rate: Optional[int] = None
    locale: Optional[Locale] = None

    # ignore future/unknown keys so UI changes don't break API
    model_config = ConfigDict(extra="ignore")

    @field_validator("sample_rate")
    @classmethod
    def _known_rate(cls, v: Optional[int]) -> Optional[int]:
        if v is not None and v not in SAMPLE_RATES:
            raise ValueError(f"sample_rate must be one of {list(SAMPLE_RATES)}")
        return v


class SettingsResponse(BaseModel):
    sample_rate: int
    locale: Locale
    available_sample_rates: list[int]
