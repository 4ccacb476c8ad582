from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import select
from sqlalchemy.orm import Session

from kisan_sahay.models.checkin import CheckIn
from kisan_sahay.models.farmer import Farmer
from kisan_sahay.schemas.farmer import FarmerUpdate
from kisan_sahay.services.checkin_service import decode_factors
from kisan_sahay.utils.date_utils import period_start
from kisan_sahay.utils.sentiment_analyzer import round_half_up

logger = logging.getLogger(__name__)

PERIODS = ("week", "month", "3months", "year")
TREND_DELTA = 2
TOP_FACTORS = 3


@dataclass(frozen=True)
class FarmerStats:
    period: str
    total_checkins: int
    average_risk_score: Optional[int]
    trend: str  # improving | stable | declining
    top_factors: List[Tuple[str, int]]

    def to_dict(self) -> dict:
        return {
            "period": self.period,
            "totalCheckIns": self.total_checkins,
            "averageRiskScore": self.average_risk_score,
            "trend": self.trend,
            "topFactors": [{"factor": factor, "count": count} for factor, count in self.top_factors],
        }


def _average(values: List[int]) -> float:
    return sum(values) / len(values) if values else 0.0


def risk_trend(scores: List[int]) -> str:
    """Compare the later half of chronological scores with the earlier half."""
    if len(scores) < 2:
        return "stable"
    middle = len(scores) // 2
    delta = _average(scores[middle:]) - _average(scores[:middle])
    if delta > TREND_DELTA:
        return "declining"
    if delta < -TREND_DELTA:
        return "improving"
    return "stable"


class FarmerService:
    @staticmethod
    def update_profile(db: Session, farmer: Farmer, farmer_in: FarmerUpdate, *, commit: bool = True) -> Farmer:
        for field, value in farmer_in.model_dump(exclude_unset=True).items():
            if value is None:
                continue
            if isinstance(value, str):
                value = value.strip()
            setattr(farmer, field, value)
        db.add(farmer)
        if commit:
            db.commit()
            db.refresh(farmer)
        else:
            db.flush()
        return farmer

    @staticmethod
    def stats(db: Session, farmer_id: int, period: str = "month", now: Optional[datetime] = None) -> FarmerStats:
        if period not in PERIODS:
            period = "month"
        since = period_start(period, now)
        checkins = list(db.scalars(
            select(CheckIn)
            .where(CheckIn.farmer_id == farmer_id, CheckIn.timestamp >= since)
            .order_by(CheckIn.timestamp.asc(), CheckIn.id.asc())
        ))
        scores = [checkin.risk_score for checkin in checkins]
        counter: Counter = Counter()
        for checkin in checkins:
            counter.update(decode_factors(checkin.critical_factors))

        return FarmerStats(
            period=period,
            total_checkins=len(checkins),
            average_risk_score=int(round_half_up(_average(scores))) if scores else None,
            trend=risk_trend(scores),
            top_factors=counter.most_common(TOP_FACTORS),
        )
