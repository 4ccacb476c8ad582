from __future__ import annotations

from typing import Optional

from pydantic import Field, field_validator, model_validator

from kisan_sahay.models.admin_user import AdminRole
from kisan_sahay.models.farmer import PreferredLanguage
from kisan_sahay.models.otp_log import NotificationChannel
from kisan_sahay.schemas.common import CamelModel

MOBILE_PATTERN = r"^[6-9]\d{9}$"
EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class FarmerRegister(CamelModel):
    name: str = Field(min_length=2, max_length=100)
    mobile: str = Field(pattern=MOBILE_PATTERN)
    village: str = Field(min_length=2, max_length=100)
    taluka: str = Field(min_length=2, max_length=100)
    district: str = Field(min_length=2, max_length=100)
    farm_size: float = Field(ge=0, le=10000)
    password: str = Field(min_length=6, max_length=100)
    confirm_password: str
    preferred_lang: PreferredLanguage = PreferredLanguage.MR

    @model_validator(mode="after")
    def _passwords_match(self) -> "FarmerRegister":
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        return self


class FarmerLogin(CamelModel):
    mobile: str = Field(pattern=MOBILE_PATTERN)
    password: str = Field(min_length=1)


class OtpSend(CamelModel):
    mobile: str = Field(pattern=MOBILE_PATTERN)
    channel: NotificationChannel = NotificationChannel.SMS


class OtpVerify(CamelModel):
    mobile: str = Field(pattern=MOBILE_PATTERN)
    otp: str = Field(pattern=r"^\d{6}$")


class RefreshRequest(CamelModel):
    refresh_token: str = Field(min_length=1)


class AdminLogin(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=1)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AdminRegister(CamelModel):
    email: str = Field(pattern=EMAIL_PATTERN, max_length=255)
    password: str = Field(min_length=8, max_length=100)
    name: str = Field(min_length=2, max_length=100)
    role: AdminRole = AdminRole.COUNSELOR
    district: Optional[str] = Field(default=None, max_length=100)
    phone: Optional[str] = Field(default=None, max_length=15)

    @field_validator("email")
    @classmethod
    def _normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class AdminOut(CamelModel):
    id: int
    email: str
    name: str
    role: AdminRole
    district: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool
