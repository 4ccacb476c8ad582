from __future__ import annotations

import json
from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from kisan_sahay.models.checkin import (
    CropCondition,
    FamilySupport,
    LoanPressure,
    RiskLevel,
    SleepQuality,
)
from kisan_sahay.schemas.common import CamelModel


class CheckInCreate(CamelModel):
    crop_condition: CropCondition
    loan_pressure: LoanPressure
    sleep_quality: SleepQuality
    family_support: FamilySupport
    hope_level: int = Field(ge=1, le=10)
    notes: Optional[str] = Field(default=None, max_length=1000)

    @field_validator("notes")
    @classmethod
    def _blank_notes(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not value.strip():
            return None
        return value


class CheckInSummary(CamelModel):
    id: int
    timestamp: datetime
    risk_score: int
    risk_level: RiskLevel
    critical_factors: List[str]

    @field_validator("critical_factors", mode="before")
    @classmethod
    def _decode_factors(cls, value):
        if isinstance(value, str):
            return json.loads(value or "[]")
        return value


class CheckInOut(CheckInSummary):
    farmer_id: int
    crop_condition: CropCondition
    loan_pressure: LoanPressure
    sleep_quality: SleepQuality
    family_support: FamilySupport
    hope_level: int
    notes: Optional[str] = None
    alert_triggered: bool
    counselor_notified: bool
