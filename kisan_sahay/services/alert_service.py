from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, FrozenSet, List, Optional, Tuple, Union

from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from kisan_sahay.core.errors import ApiError, ErrorCode
from kisan_sahay.models.admin_user import AdminUser
from kisan_sahay.models.alert import Alert, AlertSeverity, AlertStatus
from kisan_sahay.models.checkin import CheckIn, RiskLevel
from kisan_sahay.models.farmer import Farmer, FarmerStatus
from kisan_sahay.services.risk_fusion import FinalAssessment
from kisan_sahay.utils.date_utils import utcnow

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AlertDecision:
    triggers_alert: bool
    severity: Optional[AlertSeverity]


_SEVERITY_BY_LEVEL: Dict[RiskLevel, AlertSeverity] = {
    RiskLevel.HIGH: AlertSeverity.HIGH,
    RiskLevel.CRITICAL: AlertSeverity.CRITICAL,
}

# Allowed moves out of each status; resolved is terminal
ALLOWED_TRANSITIONS: Dict[AlertStatus, FrozenSet[AlertStatus]] = {
    AlertStatus.PENDING: frozenset({AlertStatus.ACKNOWLEDGED, AlertStatus.ESCALATED}),
    AlertStatus.ACKNOWLEDGED: frozenset({AlertStatus.RESOLVED, AlertStatus.ESCALATED}),
    AlertStatus.ESCALATED: frozenset({AlertStatus.ACKNOWLEDGED, AlertStatus.RESOLVED}),
    AlertStatus.RESOLVED: frozenset(),
}


def decide_alert(verdict: Union[FinalAssessment, RiskLevel, str]) -> AlertDecision:
    """Alert only for HIGH and CRITICAL verdicts."""
    if isinstance(verdict, FinalAssessment):
        level = verdict.final_risk_level
    else:
        level = RiskLevel(verdict)
    severity = _SEVERITY_BY_LEVEL.get(level)
    return AlertDecision(triggers_alert=severity is not None, severity=severity)


def can_transition(current: AlertStatus, target: AlertStatus) -> bool:
    return current == target or target in ALLOWED_TRANSITIONS[current]


class AlertService:
    @staticmethod
    def get_alert(db: Session, alert_id: int) -> Optional[Alert]:
        stmt = select(Alert).where(Alert.id == alert_id)
        return db.scalars(stmt).first()

    @staticmethod
    def list_alerts(
        db: Session,
        *,
        status: Optional[AlertStatus] = None,
        severity: Optional[AlertSeverity] = None,
        district: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Alert], int]:
        stmt = select(Alert).join(Farmer, Alert.farmer_id == Farmer.id)
        if status is not None:
            stmt = stmt.where(Alert.status == status)
        if severity is not None:
            stmt = stmt.where(Alert.severity == severity)
        if district:
            stmt = stmt.where(Farmer.district == district)

        total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        stmt = (
            stmt.options(selectinload(Alert.farmer), selectinload(Alert.checkin), selectinload(Alert.assignee))
            .order_by(Alert.created_at.desc(), Alert.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(db.scalars(stmt)), total

    @staticmethod
    def route_alert(
        db: Session,
        checkin: CheckIn,
        farmer: Farmer,
        severity: AlertSeverity,
        *,
        commit: bool = True,
    ) -> Alert:
        """Create the pending alert for a check-in and hand it to the farmer's counselor."""
        existing = db.scalars(select(Alert).where(Alert.checkin_id == checkin.id)).first()
        if existing is not None:
            return existing

        alert = Alert(
            farmer_id=farmer.id,
            checkin_id=checkin.id,
            severity=severity,
            status=AlertStatus.PENDING,
            assigned_to_id=farmer.counselor_id,
        )
        db.add(alert)

        checkin.alert_triggered = True
        checkin.counselor_notified = farmer.counselor_id is not None
        if severity == AlertSeverity.CRITICAL:
            farmer.status = FarmerStatus.CRITICAL_WATCH

        try:
            if commit:
                db.commit()
            else:
                db.flush()
        except IntegrityError:
            # reconciliation wrote the alert for this check-in first
            db.rollback()
            existing = db.scalars(select(Alert).where(Alert.checkin_id == checkin.id)).first()
            if existing is None:
                raise
            logger.info("[alert] checkin %s already routed as alert %s", checkin.id, existing.id)
            return existing
        if commit:
            db.refresh(alert)
        logger.info(
            "[alert] %s alert %s for farmer %s (checkin %s, counselor %s)",
            severity.value, alert.id, farmer.id, checkin.id, farmer.counselor_id,
        )
        return alert

    @staticmethod
    def update_alert(
        db: Session,
        alert: Alert,
        admin: AdminUser,
        *,
        status: Optional[AlertStatus] = None,
        resolution: Optional[str] = None,
        assigned_to_id: Optional[int] = None,
        commit: bool = True,
    ) -> Alert:
        if status is not None and status != alert.status:
            if not can_transition(alert.status, status):
                raise ApiError(
                    409,
                    ErrorCode.INVALID_STATUS_TRANSITION,
                    f"Cannot move alert from {alert.status.value} to {status.value}",
                    {"from": alert.status.value, "to": status.value},
                )
            now = utcnow()
            if status == AlertStatus.ACKNOWLEDGED:
                alert.acknowledged_at = now
            elif status == AlertStatus.RESOLVED:
                alert.resolved_at = now
            logger.info("[alert] %s: %s -> %s by admin %s", alert.id, alert.status.value, status.value, admin.id)
            alert.status = status

        if resolution is not None:
            alert.resolution = resolution
        if assigned_to_id is not None:
            assignee = db.get(AdminUser, assigned_to_id)
            if assignee is None:
                raise ApiError.not_found("Assignee not found")
            alert.assigned_to_id = assignee.id
        elif alert.assigned_to_id is None:
            alert.assigned_to_id = admin.id

        db.add(alert)
        if commit:
            db.commit()
            db.refresh(alert)
        else:
            db.flush()
        return alert

    @staticmethod
    def find_unreconciled_checkins(db: Session) -> List[CheckIn]:
        """Check-ins flagged as alerting whose alert row was never written."""
        stmt = (
            select(CheckIn)
            .outerjoin(Alert, Alert.checkin_id == CheckIn.id)
            .where(CheckIn.alert_triggered.is_(True), Alert.id.is_(None))
            .order_by(CheckIn.timestamp.asc())
        )
        return list(db.scalars(stmt))

    @staticmethod
    def reconcile_missing_alerts(db: Session) -> int:
        created = 0
        for checkin in AlertService.find_unreconciled_checkins(db):
            decision = decide_alert(checkin.risk_level)
            if not decision.triggers_alert:
                logger.warning("[alert] checkin %s flagged but level %s does not alert", checkin.id, checkin.risk_level.value)
                continue
            try:
                AlertService.route_alert(db, checkin, checkin.farmer, decision.severity)
                created += 1
            except Exception:
                db.rollback()
                logger.exception("[alert] reconciliation failed for checkin %s", checkin.id)
        if created:
            logger.info("[alert] reconciliation created %d alert(s)", created)
        return created
