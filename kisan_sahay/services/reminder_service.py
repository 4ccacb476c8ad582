from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import exists, select
from sqlalchemy.orm import Session, selectinload

from kisan_sahay.models.admin_user import AdminUser
from kisan_sahay.models.alert import Alert, AlertSeverity, AlertStatus
from kisan_sahay.models.checkin import CheckIn, RiskLevel
from kisan_sahay.models.farmer import Farmer, FarmerStatus
from kisan_sahay.models.otp_log import NotificationChannel
from kisan_sahay.services.notification_service import NotificationDispatcher, NotificationResult
from kisan_sahay.utils.date_utils import days_ago
from kisan_sahay.utils.i18n import t_with_vars

logger = logging.getLogger(__name__)

WEEKLY_WINDOW_DAYS = 7
FOLLOW_UP_LOOKBACK_DAYS = 7
FOLLOW_UP_QUIET_DAYS = 2


@dataclass
class ReminderStats:
    sent: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, result: NotificationResult) -> None:
        if result.success:
            self.sent += 1
        else:
            self.failed += 1

    def to_dict(self) -> Dict[str, int]:
        return {"sent": self.sent, "failed": self.failed, "skipped": self.skipped}


def _language(farmer: Farmer) -> str:
    return farmer.preferred_lang.value if farmer.preferred_lang else "mr"


def _checked_in_since(since: datetime):
    return exists().where(CheckIn.farmer_id == Farmer.id, CheckIn.timestamp >= since)


class ReminderService:
    @staticmethod
    def farmers_due_weekly(db: Session, now: Optional[datetime] = None) -> List[Farmer]:
        since = days_ago(WEEKLY_WINDOW_DAYS, now)
        stmt = (
            select(Farmer)
            .where(Farmer.status == FarmerStatus.ACTIVE, ~_checked_in_since(since))
            .order_by(Farmer.id)
        )
        return list(db.scalars(stmt))

    @staticmethod
    def farmers_due_follow_up(db: Session, now: Optional[datetime] = None) -> List[Farmer]:
        high_risk_recent = exists().where(
            CheckIn.farmer_id == Farmer.id,
            CheckIn.risk_level.in_([RiskLevel.HIGH, RiskLevel.CRITICAL]),
            CheckIn.timestamp >= days_ago(FOLLOW_UP_LOOKBACK_DAYS, now),
        )
        stmt = (
            select(Farmer)
            .where(
                Farmer.status.in_([FarmerStatus.ACTIVE, FarmerStatus.CRITICAL_WATCH]),
                high_risk_recent,
                ~_checked_in_since(days_ago(FOLLOW_UP_QUIET_DAYS, now)),
            )
            .order_by(Farmer.id)
        )
        return list(db.scalars(stmt))

    @staticmethod
    def send_weekly_checkin_reminders(
        db: Session, notifier: NotificationDispatcher, now: Optional[datetime] = None
    ) -> ReminderStats:
        stats = ReminderStats()
        for farmer in ReminderService.farmers_due_weekly(db, now):
            message = t_with_vars("reminder.weekly_checkin", {"name": farmer.name}, _language(farmer))
            stats.record(notifier.send_reminder(farmer.id, farmer.mobile, message, NotificationChannel.SMS))
        logger.info("[reminders] weekly check-in: %s", stats.to_dict())
        return stats

    @staticmethod
    def send_follow_up_reminders(
        db: Session, notifier: NotificationDispatcher, now: Optional[datetime] = None
    ) -> ReminderStats:
        stats = ReminderStats()
        for farmer in ReminderService.farmers_due_follow_up(db, now):
            message = t_with_vars("reminder.follow_up", {"name": farmer.name}, _language(farmer))
            stats.record(notifier.send_reminder(farmer.id, farmer.mobile, message, NotificationChannel.WHATSAPP))
        logger.info("[reminders] follow-up: %s", stats.to_dict())
        return stats

    @staticmethod
    def send_counselor_alerts(db: Session, notifier: NotificationDispatcher) -> ReminderStats:
        """One digest SMS per counselor that has pending assigned alerts."""
        stmt = (
            select(Alert)
            .where(Alert.status == AlertStatus.PENDING, Alert.assigned_to_id.is_not(None))
            .options(selectinload(Alert.assignee))
            .order_by(Alert.assigned_to_id, Alert.created_at)
        )
        grouped: Dict[int, List[Alert]] = defaultdict(list)
        counselors: Dict[int, AdminUser] = {}
        for alert in db.scalars(stmt):
            grouped[alert.assigned_to_id].append(alert)
            counselors[alert.assigned_to_id] = alert.assignee

        stats = ReminderStats()
        for counselor_id, alerts in grouped.items():
            counselor = counselors[counselor_id]
            if not counselor.phone:
                logger.info("[reminders] counselor %s has no phone; %d alert(s) not sent", counselor_id, len(alerts))
                stats.skipped += 1
                continue
            critical = sum(1 for alert in alerts if alert.severity == AlertSeverity.CRITICAL)
            message = t_with_vars(
                "alert.digest",
                {"name": counselor.name, "count": len(alerts), "critical": critical},
                "en",
            )
            stats.record(notifier.send_reminder(counselor_id, counselor.phone, message, NotificationChannel.SMS))
        logger.info("[reminders] counselor digest: %s", stats.to_dict())
        return stats

    @staticmethod
    def send_custom_reminder(
        farmer: Farmer,
        message: str,
        notifier: NotificationDispatcher,
        channel: NotificationChannel = NotificationChannel.SMS,
    ) -> NotificationResult:
        text = t_with_vars("reminder.custom", {"message": message}, _language(farmer))
        return notifier.send_reminder(farmer.id, farmer.mobile, text, channel)
