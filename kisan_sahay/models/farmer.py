from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum, Float, ForeignKey, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from kisan_sahay.db.session import Base

if TYPE_CHECKING:  # pragma: no cover
    from .admin_user import AdminUser
    from .alert import Alert
    from .checkin import CheckIn


class FarmerStatus(str, PyEnum):
    ACTIVE = "active"
    INACTIVE = "inactive"
    CRITICAL_WATCH = "critical_watch"


class PreferredLanguage(str, PyEnum):
    MR = "mr"
    HI = "hi"
    EN = "en"
    TE = "te"
    KN = "kn"
    PA = "pa"
    GU = "gu"
    BN = "bn"

    @staticmethod
    def _missing_(value):
        if isinstance(value, str):
            value = value.lower()
            for member in PreferredLanguage:
                if member.value == value:
                    return member
        return None


class Farmer(Base):
    __tablename__ = "farmer"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    mobile: Mapped[str] = mapped_column(String(10), unique=True, nullable=False, index=True)
    village: Mapped[str] = mapped_column(String(100), nullable=False, server_default="")
    taluka: Mapped[str] = mapped_column(String(100), nullable=False, server_default="")
    district: Mapped[str] = mapped_column(String(100), nullable=False, server_default="", index=True)
    farm_size: Mapped[float] = mapped_column(Float, nullable=False, server_default="0")
    password_hash: Mapped[Optional[str]] = mapped_column(String(255))
    preferred_lang: Mapped[PreferredLanguage] = mapped_column(
        Enum(
            PreferredLanguage,
            name="preferred_language",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
        server_default="mr",
    )
    is_otp_user: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="0")
    status: Mapped[FarmerStatus] = mapped_column(
        Enum(
            FarmerStatus,
            name="farmer_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
        server_default="active",
    )
    counselor_id: Mapped[Optional[int]] = mapped_column(ForeignKey("admin_user.id", ondelete="SET NULL"))
    last_active_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    counselor: Mapped[Optional["AdminUser"]] = relationship(
        "AdminUser", back_populates="farmers", foreign_keys=[counselor_id]
    )
    checkins: Mapped[List["CheckIn"]] = relationship(
        "CheckIn", back_populates="farmer", cascade="all, delete-orphan"
    )
    alerts: Mapped[List["Alert"]] = relationship(
        "Alert", back_populates="farmer", cascade="all, delete-orphan"
    )
