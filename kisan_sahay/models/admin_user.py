from __future__ import annotations

from datetime import datetime
from enum import Enum as PyEnum
from typing import TYPE_CHECKING, List, Optional

from sqlalchemy import Boolean, DateTime, Enum, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func

from kisan_sahay.db.session import Base

if TYPE_CHECKING:  # pragma: no cover
    from .alert import Alert
    from .farmer import Farmer


class AdminRole(str, PyEnum):
    SUPER_ADMIN = "SUPER_ADMIN"
    DISTRICT_ADMIN = "DISTRICT_ADMIN"
    COUNSELOR = "COUNSELOR"

    @staticmethod
    def _missing_(value):
        if isinstance(value, str):
            value = value.upper()
            for member in AdminRole:
                if member.value == value:
                    return member
        return None


class AdminUser(Base):
    __tablename__ = "admin_user"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    role: Mapped[AdminRole] = mapped_column(
        Enum(
            AdminRole,
            name="admin_role",
            native_enum=False,
            values_callable=lambda e: [m.value for m in e],
            validate_strings=True,
        ),
        nullable=False,
        server_default="COUNSELOR",
    )
    district: Mapped[Optional[str]] = mapped_column(String(100))
    phone: Mapped[Optional[str]] = mapped_column(String(15))
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, server_default="1")
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.now())

    farmers: Mapped[List["Farmer"]] = relationship(
        "Farmer", back_populates="counselor", foreign_keys="Farmer.counselor_id"
    )
    assigned_alerts: Mapped[List["Alert"]] = relationship(
        "Alert", back_populates="assignee", foreign_keys="Alert.assigned_to_id"
    )
