"""
Structured risk assessment for the weekly questionnaire.

Five answers are mapped through fixed weight tables to a 0-30 score, banded
into a risk level, and tagged with the critical factors read directly from the
raw answers.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping, Optional, Tuple

from kisan_sahay.models.checkin import (
    CropCondition,
    FamilySupport,
    LoanPressure,
    RiskLevel,
    SleepQuality,
)

logger = logging.getLogger(__name__)


# =============================================================================
# WEIGHT TABLES
# =============================================================================

CROP_WEIGHTS: Mapping[CropCondition, int] = MappingProxyType({
    CropCondition.EXCELLENT: 0,
    CropCondition.GOOD: 1,
    CropCondition.MODERATE: 2,
    CropCondition.POOR: 3,
    CropCondition.DESTROYED: 5,
})

LOAN_WEIGHTS: Mapping[LoanPressure, int] = MappingProxyType({
    LoanPressure.NONE: 0,
    LoanPressure.LOW: 1,
    LoanPressure.MEDIUM: 2,
    LoanPressure.HIGH: 4,
    LoanPressure.SEVERE: 5,
})

SLEEP_WEIGHTS: Mapping[SleepQuality, int] = MappingProxyType({
    SleepQuality.GOOD: 0,
    SleepQuality.FAIR: 1,
    SleepQuality.POOR: 3,
    SleepQuality.VERY_POOR: 5,
})

FAMILY_WEIGHTS: Mapping[FamilySupport, int] = MappingProxyType({
    FamilySupport.STRONG: 0,
    FamilySupport.MODERATE: 1,
    FamilySupport.WEAK: 3,
    FamilySupport.NONE: 5,
})

MISSING_WEIGHT = 0

# Inclusive (low, high) bounds, checked in order
RISK_BANDS: Tuple[Tuple[RiskLevel, int, int], ...] = (
    (RiskLevel.LOW, 0, 6),
    (RiskLevel.MODERATE, 7, 12),
    (RiskLevel.HIGH, 13, 18),
    (RiskLevel.CRITICAL, 19, 30),
)

HOPE_LOW_THRESHOLD = 4


@dataclass(frozen=True)
class CheckInAnswers:
    crop_condition: CropCondition
    loan_pressure: LoanPressure
    sleep_quality: SleepQuality
    family_support: FamilySupport
    hope_level: int
    notes: Optional[str] = None


@dataclass(frozen=True)
class FactorScores:
    crop: int
    loan: int
    sleep: int
    family: int
    hope: int

    @property
    def total(self) -> int:
        return self.crop + self.loan + self.sleep + self.family + self.hope


@dataclass(frozen=True)
class StructuredAssessment:
    risk_score: int
    risk_level: RiskLevel
    critical_factors: Tuple[str, ...]
    factor_scores: FactorScores


def _weight(table: Mapping, enum_cls, value, category: str) -> int:
    try:
        return table[enum_cls(value)]
    except (KeyError, ValueError):
        logger.warning("[risk] unknown %s value %r, weighting as %d", category, value, MISSING_WEIGHT)
        return MISSING_WEIGHT


def hope_factor(hope_level: int) -> int:
    return max(0, 5 - hope_level // 2)


def risk_level_for_score(score: int) -> RiskLevel:
    for level, low, high in RISK_BANDS:
        if low <= score <= high:
            return level
    return RiskLevel.LOW


def factor_scores(answers: CheckInAnswers) -> FactorScores:
    return FactorScores(
        crop=_weight(CROP_WEIGHTS, CropCondition, answers.crop_condition, "crop_condition"),
        loan=_weight(LOAN_WEIGHTS, LoanPressure, answers.loan_pressure, "loan_pressure"),
        sleep=_weight(SLEEP_WEIGHTS, SleepQuality, answers.sleep_quality, "sleep_quality"),
        family=_weight(FAMILY_WEIGHTS, FamilySupport, answers.family_support, "family_support"),
        hope=hope_factor(answers.hope_level),
    )


def identify_critical_factors(answers: CheckInAnswers) -> Tuple[str, ...]:
    factors = []
    if answers.crop_condition in (CropCondition.POOR, CropCondition.DESTROYED):
        factors.append("crop_poor")
    if answers.loan_pressure in (LoanPressure.HIGH, LoanPressure.SEVERE):
        factors.append("loan_high")
    if answers.sleep_quality in (SleepQuality.POOR, SleepQuality.VERY_POOR):
        factors.append("sleep_poor")
    if answers.family_support in (FamilySupport.WEAK, FamilySupport.NONE):
        factors.append("family_weak")
    if answers.hope_level <= HOPE_LOW_THRESHOLD:
        factors.append("hope_low")
    return tuple(factors)


def assess_risk(answers: CheckInAnswers) -> StructuredAssessment:
    scores = factor_scores(answers)
    risk_score = scores.total
    return StructuredAssessment(
        risk_score=risk_score,
        risk_level=risk_level_for_score(risk_score),
        critical_factors=identify_critical_factors(answers),
        factor_scores=scores,
    )
