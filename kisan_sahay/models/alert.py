from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, Optional

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from kisan_sahay.db.session import Base
from kisan_sahay.utils.date_utils import utcnow

if TYPE_CHECKING:  # pragma: no cover
    from .admin_user import AdminUser
    from .checkin import CheckIn
    from .farmer import Farmer


class AlertSeverity(str, PyEnum):
    HIGH = "high"
    CRITICAL = "critical"


class AlertStatus(str, PyEnum):
    PENDING = "pending"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"
    ESCALATED = "escalated"


class Alert(Base):
    __tablename__ = "alert"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    farmer_id: Mapped[int] = mapped_column(
        ForeignKey("farmer.id", ondelete="CASCADE"), nullable=False, index=True
    )
    checkin_id: Mapped[int] = mapped_column(
        ForeignKey("checkin.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    severity: Mapped[AlertSeverity] = mapped_column(
        Enum(
            AlertSeverity,
            name="alert_severity",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
    )
    status: Mapped[AlertStatus] = mapped_column(
        Enum(
            AlertStatus,
            name="alert_status",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
        default=AlertStatus.PENDING,
        index=True,
    )
    assigned_to_id: Mapped[Optional[int]] = mapped_column(ForeignKey("admin_user.id", ondelete="SET NULL"))
    acknowledged_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    resolved_at: Mapped[Optional[datetime]] = mapped_column(DateTime)
    resolution: Mapped[Optional[str]] = mapped_column(Text)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    farmer: Mapped["Farmer"] = relationship("Farmer", back_populates="alerts")
    checkin: Mapped["CheckIn"] = relationship("CheckIn", back_populates="alert")
    assignee: Mapped[Optional["AdminUser"]] = relationship(
        "AdminUser", back_populates="assigned_alerts", foreign_keys=[assigned_to_id]
    )
