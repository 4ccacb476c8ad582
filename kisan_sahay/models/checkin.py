from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kisan_sahay.db.session import Base
from kisan_sahay.utils.date_utils import utcnow

if TYPE_CHECKING:  # pragma: no cover
    from .alert import Alert
    from .farmer import Farmer


class CropCondition(str, PyEnum):
    EXCELLENT = "excellent"
    GOOD = "good"
    MODERATE = "moderate"
    POOR = "poor"
    DESTROYED = "destroyed"


class LoanPressure(str, PyEnum):
    NONE = "none"
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    SEVERE = "severe"


class SleepQuality(str, PyEnum):
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"
    VERY_POOR = "very_poor"


class FamilySupport(str, PyEnum):
    STRONG = "strong"
    MODERATE = "moderate"
    WEAK = "weak"
    NONE = "none"


class RiskLevel(str, PyEnum):
    LOW = "LOW"
    MODERATE = "MODERATE"
    HIGH = "HIGH"
    CRITICAL = "CRITICAL"


def _enum_column(enum_cls, name: str):
    return Enum(
        enum_cls,
        name=name,
        native_enum=False,
        values_callable=lambda e: [m.value for m in e],
        validate_strings=True,
    )


class CheckIn(Base):
    __tablename__ = "checkin"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    farmer_id: Mapped[int] = mapped_column(
        ForeignKey("farmer.id", ondelete="CASCADE"), nullable=False, index=True
    )
    crop_condition: Mapped[CropCondition] = mapped_column(
        _enum_column(CropCondition, "crop_condition"), nullable=False
    )
    loan_pressure: Mapped[LoanPressure] = mapped_column(
        _enum_column(LoanPressure, "loan_pressure"), nullable=False
    )
    sleep_quality: Mapped[SleepQuality] = mapped_column(
        _enum_column(SleepQuality, "sleep_quality"), nullable=False
    )
    family_support: Mapped[FamilySupport] = mapped_column(
        _enum_column(FamilySupport, "family_support"), nullable=False
    )
    hope_level: Mapped[int] = mapped_column(Integer, nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(String(1000))
    risk_score: Mapped[int] = mapped_column(Integer, nullable=False)
    risk_level: Mapped[RiskLevel] = mapped_column(
        _enum_column(RiskLevel, "risk_level"), nullable=False, index=True
    )
    # JSON-encoded ordered list; duplicates are kept
    critical_factors: Mapped[str] = mapped_column(Text, nullable=False, default="[]")
    alert_triggered: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    counselor_notified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, index=True)

    farmer: Mapped["Farmer"] = relationship("Farmer", back_populates="checkins")
    alert: Mapped[Optional["Alert"]] = relationship("Alert", back_populates="checkin", uselist=False)
