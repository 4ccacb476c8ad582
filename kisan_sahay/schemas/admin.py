from __future__ import annotations

from typing import List

from pydantic import Field

from kisan_sahay.models.otp_log import NotificationChannel
from kisan_sahay.schemas.common import CamelModel


class AssignCounselor(CamelModel):
    farmer_id: int = Field(gt=0)
    counselor_id: int = Field(gt=0)


class SendNotification(CamelModel):
    farmer_ids: List[int] = Field(min_length=1, max_length=500)
    message: str = Field(min_length=1, max_length=500)
    channel: NotificationChannel = NotificationChannel.SMS
