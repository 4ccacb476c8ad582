from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from kisan_sahay.core.errors import ApiError, ErrorCode
from kisan_sahay.models.alert import Alert
from kisan_sahay.models.checkin import CheckIn, RiskLevel
from kisan_sahay.models.farmer import Farmer
from kisan_sahay.schemas.checkin import CheckInCreate
from kisan_sahay.services.alert_service import AlertDecision, AlertService, decide_alert
from kisan_sahay.services.feedback_service import Feedback, generate_feedback
from kisan_sahay.services.notification_service import NotificationDispatcher
from kisan_sahay.services.risk_fusion import FinalAssessment, fuse
from kisan_sahay.utils.date_utils import to_naive_utc, utcnow
from kisan_sahay.utils.risk_assessment import CheckInAnswers, assess_risk

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CheckInResult:
    checkin: CheckIn
    assessment: FinalAssessment
    decision: AlertDecision
    feedback: Feedback
    alert: Optional[Alert] = None


def encode_factors(factors: Sequence[str]) -> str:
    return json.dumps(list(factors), ensure_ascii=False)


def decode_factors(raw: Optional[str]) -> List[str]:
    if not raw:
        return []
    return list(json.loads(raw))


def _language(farmer: Farmer) -> str:
    return farmer.preferred_lang.value if farmer.preferred_lang else "mr"


class CheckinService:
    @staticmethod
    def score(checkin_in: CheckInCreate, language: str) -> FinalAssessment:
        answers = CheckInAnswers(
            crop_condition=checkin_in.crop_condition,
            loan_pressure=checkin_in.loan_pressure,
            sleep_quality=checkin_in.sleep_quality,
            family_support=checkin_in.family_support,
            hope_level=checkin_in.hope_level,
            notes=checkin_in.notes,
        )
        structured = assess_risk(answers)
        return fuse(structured, checkin_in.notes, language, checkin_in.hope_level)

    @staticmethod
    def create_checkin(db: Session, farmer: Farmer, checkin_in: CheckInCreate) -> CheckInResult:
        """Score, persist and route a weekly check-in.

        The check-in row is committed before the alert is written. If routing
        fails the check-in stays saved with ``alert_triggered`` set, the
        reconciliation job picks it up later, and the caller gets an
        INTERNAL_ERROR carrying the check-in id.
        """
        language = _language(farmer)
        assessment = CheckinService.score(checkin_in, language)
        decision = decide_alert(assessment)

        checkin = CheckIn(
            farmer_id=farmer.id,
            crop_condition=checkin_in.crop_condition,
            loan_pressure=checkin_in.loan_pressure,
            sleep_quality=checkin_in.sleep_quality,
            family_support=checkin_in.family_support,
            hope_level=checkin_in.hope_level,
            notes=checkin_in.notes,
            risk_score=assessment.final_risk_score,
            risk_level=assessment.final_risk_level,
            critical_factors=encode_factors(assessment.combined_critical_factors),
            alert_triggered=decision.triggers_alert,
            counselor_notified=False,
        )
        db.add(checkin)
        farmer.last_active_at = utcnow()
        db.commit()
        db.refresh(checkin)
        logger.info(
            "[checkin] %s saved for farmer %s: score=%d level=%s",
            checkin.id, farmer.id, checkin.risk_score, checkin.risk_level.value,
        )

        alert = None
        checkin_id = checkin.id
        if decision.triggers_alert:
            try:
                alert = AlertService.route_alert(db, checkin, farmer, decision.severity)
            except Exception as exc:
                db.rollback()
                logger.exception("[checkin] alert routing failed for checkin %s", checkin_id)
                raise ApiError(
                    500,
                    ErrorCode.INTERNAL_ERROR,
                    "Check-in saved but the alert could not be recorded",
                    {"checkInId": checkin_id},
                ) from exc

        feedback = generate_feedback(assessment.final_risk_level, assessment.combined_critical_factors, language)
        return CheckInResult(
            checkin=checkin,
            assessment=assessment,
            decision=decision,
            feedback=feedback,
            alert=alert,
        )

    @staticmethod
    def notify_counselor(
        notifier: NotificationDispatcher,
        counselor_contact: Optional[str],
        farmer_name: str,
        risk_level: RiskLevel,
        district: str,
    ) -> None:
        """Fire-and-forget counselor SMS; never raises."""
        if not counselor_contact:
            logger.info("[checkin] no counselor contact for %s; alert SMS skipped", farmer_name)
            return
        try:
            result = notifier.send_alert(counselor_contact, farmer_name, RiskLevel(risk_level).value, district)
            if not result.success:
                logger.warning("[checkin] counselor alert not delivered: %s", result.error)
        except Exception:
            logger.exception("[checkin] counselor alert dispatch failed")

    @staticmethod
    def get_checkin(db: Session, checkin_id: int, farmer_id: int) -> CheckIn:
        stmt = select(CheckIn).where(CheckIn.id == checkin_id, CheckIn.farmer_id == farmer_id)
        checkin = db.scalars(stmt).first()
        if checkin is None:
            raise ApiError.not_found("Check-in not found")
        return checkin

    @staticmethod
    def list_checkins(
        db: Session,
        *,
        farmer_id: Optional[int] = None,
        risk_level: Optional[RiskLevel] = None,
        district: Optional[str] = None,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        page: int = 1,
        limit: int = 10,
    ) -> Tuple[List[CheckIn], int]:
        stmt = select(CheckIn)
        if farmer_id is not None:
            stmt = stmt.where(CheckIn.farmer_id == farmer_id)
        if risk_level is not None:
            stmt = stmt.where(CheckIn.risk_level == risk_level)
        if district:
            stmt = stmt.join(Farmer, CheckIn.farmer_id == Farmer.id).where(Farmer.district == district)
        if start is not None:
            stmt = stmt.where(CheckIn.timestamp >= to_naive_utc(start))
        if end is not None:
            stmt = stmt.where(CheckIn.timestamp <= to_naive_utc(end))

        total = db.scalar(select(func.count()).select_from(stmt.subquery())) or 0
        stmt = (
            stmt.options(selectinload(CheckIn.farmer))
            .order_by(CheckIn.timestamp.desc(), CheckIn.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(db.scalars(stmt)), total
