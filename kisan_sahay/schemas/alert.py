from __future__ import annotations

from datetime import datetime
from typing import Optional

from pydantic import Field, model_validator

from kisan_sahay.models.alert import AlertSeverity, AlertStatus
from kisan_sahay.models.checkin import RiskLevel
from kisan_sahay.schemas.common import CamelModel


class AlertFarmer(CamelModel):
    id: int
    name: str
    mobile: str
    village: str
    district: str


class AlertCheckIn(CamelModel):
    id: int
    risk_score: int
    risk_level: RiskLevel
    timestamp: datetime


class AlertAssignee(CamelModel):
    id: int
    name: str
    email: str


class AlertOut(CamelModel):
    id: int
    farmer_id: int
    checkin_id: int = Field(serialization_alias="checkInId")
    severity: AlertSeverity
    status: AlertStatus
    assigned_to_id: Optional[int] = None
    acknowledged_at: Optional[datetime] = None
    resolved_at: Optional[datetime] = None
    resolution: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    farmer: Optional[AlertFarmer] = None
    checkin: Optional[AlertCheckIn] = Field(default=None, serialization_alias="checkIn")
    assignee: Optional[AlertAssignee] = None


class AlertUpdate(CamelModel):
    status: Optional[AlertStatus] = None
    resolution: Optional[str] = Field(default=None, max_length=2000)
    assigned_to_id: Optional[int] = None

    @model_validator(mode="after")
    def _not_empty(self) -> "AlertUpdate":
        if self.status is None and self.resolution is None and self.assigned_to_id is None:
            raise ValueError("At least one of status, resolution or assignedToId is required")
        return self
