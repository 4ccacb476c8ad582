from __future__ import annotations

import logging
from collections import defaultdict
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.orm import Session, selectinload

from kisan_sahay.core.errors import ApiError
from kisan_sahay.models.admin_user import AdminRole, AdminUser
from kisan_sahay.models.alert import Alert, AlertStatus
from kisan_sahay.models.checkin import CheckIn, RiskLevel
from kisan_sahay.models.farmer import Farmer, FarmerStatus
from kisan_sahay.models.otp_log import NotificationChannel
from kisan_sahay.services.notification_service import NotificationDispatcher
from kisan_sahay.services.reminder_service import ReminderService, ReminderStats
from kisan_sahay.utils.date_utils import days_ago, start_of_day, utcnow
from kisan_sahay.utils.sentiment_analyzer import round_half_up

logger = logging.getLogger(__name__)

RECENT_DAYS = 7
DETAIL_CHECKINS = 10
DETAIL_ALERTS = 5


def district_scope(admin: AdminUser) -> Optional[str]:
    """District filter applied to everything a district admin sees."""
    if admin.role == AdminRole.DISTRICT_ADMIN:
        return admin.district or ""
    return None


def _level_counts(rows) -> Dict[str, int]:
    counts = {level.value: 0 for level in RiskLevel}
    for level, count in rows:
        counts[RiskLevel(level).value] = count
    return counts


class AdminService:
    @staticmethod
    def dashboard(db: Session, admin: AdminUser, now: Optional[datetime] = None) -> Dict[str, Any]:
        now = now or utcnow()
        district = district_scope(admin)

        def farmers():
            stmt = select(func.count(Farmer.id))
            return stmt.where(Farmer.district == district) if district is not None else stmt

        def scoped(stmt):
            if district is None:
                return stmt
            return stmt.join(Farmer, Farmer.id == CheckIn.farmer_id).where(Farmer.district == district)

        week_ago = days_ago(RECENT_DAYS, now)
        pending_alerts = select(func.count(Alert.id)).where(Alert.status == AlertStatus.PENDING)
        if district is not None:
            pending_alerts = pending_alerts.join(Farmer, Farmer.id == Alert.farmer_id).where(Farmer.district == district)

        distribution = db.execute(
            scoped(select(CheckIn.risk_level, func.count(CheckIn.id)).where(CheckIn.timestamp >= week_ago))
            .group_by(CheckIn.risk_level)
        ).all()

        return {
            "totalFarmers": db.scalar(farmers()) or 0,
            "activeFarmers": db.scalar(farmers().where(Farmer.last_active_at >= week_ago)) or 0,
            "criticalWatch": db.scalar(farmers().where(Farmer.status == FarmerStatus.CRITICAL_WATCH)) or 0,
            "pendingAlerts": db.scalar(pending_alerts) or 0,
            "checkInsToday": db.scalar(
                scoped(select(func.count(CheckIn.id)).where(CheckIn.timestamp >= start_of_day(now)))
            ) or 0,
            "riskDistribution": _level_counts(distribution),
        }

    @staticmethod
    def list_farmers(
        db: Session,
        admin: AdminUser,
        *,
        status: Optional[FarmerStatus] = None,
        district: Optional[str] = None,
        risk_level: Optional[RiskLevel] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Tuple[Farmer, Optional[CheckIn]]], int]:
        stmt = select(Farmer)
        scope = district_scope(admin)
        if scope is not None:
            stmt = stmt.where(Farmer.district == scope)
        elif district:
            stmt = stmt.where(Farmer.district == district)
        if status is not None:
            stmt = stmt.where(Farmer.status == status)
        if search:
            pattern = f"%{search.strip()}%"
            stmt = stmt.where(or_(Farmer.name.ilike(pattern), Farmer.mobile.ilike(pattern), Farmer.village.ilike(pattern)))

        latest = (
            select(CheckIn.farmer_id, func.max(CheckIn.timestamp).label("latest"))
            .group_by(CheckIn.farmer_id)
            .subquery()
        )
        if risk_level is not None:
            stmt = (
                stmt.join(latest, latest.c.farmer_id == Farmer.id)
                .join(CheckIn, (CheckIn.farmer_id == Farmer.id) & (CheckIn.timestamp == latest.c.latest))
                .where(CheckIn.risk_level == risk_level)
            )

        total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        farmers = list(db.scalars(
            stmt.order_by(Farmer.created_at.desc(), Farmer.id.desc()).offset((page - 1) * limit).limit(limit)
        ))

        last_checkins: Dict[int, CheckIn] = {}
        if farmers:
            rows = db.scalars(
                select(CheckIn)
                .join(latest, (latest.c.farmer_id == CheckIn.farmer_id) & (latest.c.latest == CheckIn.timestamp))
                .where(CheckIn.farmer_id.in_([f.id for f in farmers]))
            )
            for checkin in rows:
                last_checkins[checkin.farmer_id] = checkin

        return [(farmer, last_checkins.get(farmer.id)) for farmer in farmers], total

    @staticmethod
    def get_farmer(db: Session, admin: AdminUser, farmer_id: int) -> Farmer:
        farmer = db.get(Farmer, farmer_id)
        scope = district_scope(admin)
        if farmer is None or (scope is not None and farmer.district != scope):
            raise ApiError.not_found("Farmer not found")
        return farmer

    @staticmethod
    def farmer_details(db: Session, admin: AdminUser, farmer_id: int) -> Tuple[Farmer, List[CheckIn], List[Alert]]:
        farmer = AdminService.get_farmer(db, admin, farmer_id)
        checkins = list(db.scalars(
            select(CheckIn)
            .where(CheckIn.farmer_id == farmer.id)
            .order_by(CheckIn.timestamp.desc(), CheckIn.id.desc())
            .limit(DETAIL_CHECKINS)
        ))
        alerts = list(db.scalars(
            select(Alert)
            .where(Alert.farmer_id == farmer.id)
            .options(selectinload(Alert.assignee), selectinload(Alert.checkin))
            .order_by(Alert.created_at.desc(), Alert.id.desc())
            .limit(DETAIL_ALERTS)
        ))
        return farmer, checkins, alerts

    @staticmethod
    def list_counselors(db: Session, admin: AdminUser) -> List[Tuple[AdminUser, int]]:
        open_alerts = (
            select(Alert.assigned_to_id, func.count(Alert.id).label("open_alerts"))
            .where(Alert.status != AlertStatus.RESOLVED)
            .group_by(Alert.assigned_to_id)
            .subquery()
        )
        stmt = (
            select(AdminUser, func.coalesce(open_alerts.c.open_alerts, 0))
            .outerjoin(open_alerts, open_alerts.c.assigned_to_id == AdminUser.id)
            .where(AdminUser.role == AdminRole.COUNSELOR, AdminUser.is_active.is_(True))
            .order_by(AdminUser.name)
        )
        scope = district_scope(admin)
        if scope is not None:
            stmt = stmt.where(AdminUser.district == scope)
        return [(counselor, int(count)) for counselor, count in db.execute(stmt).all()]

    @staticmethod
    def assign_counselor(
        db: Session, admin: AdminUser, farmer_id: int, counselor_id: int, *, commit: bool = True
    ) -> Tuple[Farmer, int]:
        """Point the farmer at a counselor and hand over their unassigned pending alerts."""
        farmer = AdminService.get_farmer(db, admin, farmer_id)
        counselor = db.get(AdminUser, counselor_id)
        if counselor is None or counselor.role != AdminRole.COUNSELOR or not counselor.is_active:
            raise ApiError.not_found("Counselor not found")

        farmer.counselor_id = counselor.id
        alerts = list(db.scalars(
            select(Alert).where(
                Alert.farmer_id == farmer.id,
                Alert.status == AlertStatus.PENDING,
                Alert.assigned_to_id.is_(None),
            )
        ))
        for alert in alerts:
            alert.assigned_to_id = counselor.id
            if alert.checkin is not None:
                alert.checkin.counselor_notified = True

        if commit:
            db.commit()
            db.refresh(farmer)
        else:
            db.flush()
        logger.info("[admin] farmer %s assigned to counselor %s (%d alert(s))", farmer.id, counselor.id, len(alerts))
        return farmer, len(alerts)

    @staticmethod
    def risk_trends(db: Session, admin: AdminUser, days: int = 30, now: Optional[datetime] = None) -> List[Dict[str, Any]]:
        now = now or utcnow()
        first_day = start_of_day(now) - timedelta(days=days - 1)
        stmt = select(CheckIn.timestamp, CheckIn.risk_level, CheckIn.risk_score).where(CheckIn.timestamp >= first_day)
        scope = district_scope(admin)
        if scope is not None:
            stmt = stmt.join(Farmer, Farmer.id == CheckIn.farmer_id).where(Farmer.district == scope)

        buckets: Dict[str, List[Tuple[RiskLevel, int]]] = defaultdict(list)
        for timestamp, level, score in db.execute(stmt).all():
            buckets[timestamp.date().isoformat()].append((RiskLevel(level), score))

        trends = []
        for offset in range(days):
            day = (first_day + timedelta(days=offset)).date().isoformat()
            entries = buckets.get(day, [])
            counts = {level.value: 0 for level in RiskLevel}
            for level, _ in entries:
                counts[level.value] += 1
            average = sum(score for _, score in entries) / len(entries) if entries else 0
            trends.append({
                "date": day,
                "total": len(entries),
                "counts": counts,
                "averageScore": round_half_up(average, 1),
            })
        return trends

    @staticmethod
    def send_notifications(
        db: Session,
        admin: AdminUser,
        farmer_ids: List[int],
        message: str,
        channel: NotificationChannel,
        notifier: NotificationDispatcher,
    ) -> ReminderStats:
        stats = ReminderStats()
        stmt = select(Farmer).where(Farmer.id.in_(set(farmer_ids)))
        scope = district_scope(admin)
        if scope is not None:
            stmt = stmt.where(Farmer.district == scope)
        farmers = list(db.scalars(stmt))
        stats.skipped = len(set(farmer_ids)) - len(farmers)
        for farmer in farmers:
            stats.record(ReminderService.send_custom_reminder(farmer, message, notifier, channel))
        logger.info("[admin] manual %s notification by admin %s: %s", channel.value, admin.id, stats.to_dict())
        return stats
