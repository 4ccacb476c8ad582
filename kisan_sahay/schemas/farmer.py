from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field

from kisan_sahay.models.farmer import FarmerStatus, PreferredLanguage
from kisan_sahay.schemas.common import CamelModel


class FarmerOut(CamelModel):
    id: int
    name: str
    mobile: str
    village: str
    taluka: str
    district: str
    farm_size: float
    preferred_lang: PreferredLanguage
    is_otp_user: bool
    status: FarmerStatus
    counselor_id: Optional[int] = None
    last_active_at: Optional[datetime] = None
    created_at: Optional[datetime] = None


class FarmerUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=100)
    village: Optional[str] = Field(default=None, min_length=2, max_length=100)
    taluka: Optional[str] = Field(default=None, min_length=2, max_length=100)
    district: Optional[str] = Field(default=None, min_length=2, max_length=100)
    farm_size: Optional[float] = Field(default=None, ge=0, le=10000)
    preferred_lang: Optional[PreferredLanguage] = None
