"""
Fuses the structured questionnaire score with the keyword analysis of the
farmer's notes into the final verdict stored on the check-in.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Optional, Tuple

from kisan_sahay.models.checkin import RiskLevel
from kisan_sahay.utils.risk_assessment import StructuredAssessment
from kisan_sahay.utils.sentiment_analyzer import (
    NEUTRAL_RESULT,
    SentimentResult,
    analyze_sentiment,
    round_half_up,
)

logger = logging.getLogger(__name__)

CRISIS_TAG = "crisis_keywords_detected"
VERY_LOW_HOPE_TAG = "very_low_hope"

CRISIS_SCORE = 30
CRISIS_ESCALATION = 20
NEGATIVE_SENTIMENT_WEIGHT = 10
VERY_LOW_HOPE_SCORE = 15
VERY_LOW_HOPE_THRESHOLD = 2
MAX_ESCALATED_SCORE = 100

# Final bands run on the fused scale, checked top down
FINAL_BANDS: Tuple[Tuple[int, RiskLevel], ...] = (
    (80, RiskLevel.CRITICAL),
    (60, RiskLevel.HIGH),
    (40, RiskLevel.MODERATE),
)

_LEVEL_ORDER = (RiskLevel.LOW, RiskLevel.MODERATE, RiskLevel.HIGH, RiskLevel.CRITICAL)


@dataclass(frozen=True)
class AiRiskSignal:
    additional_score: float
    indicators: Tuple[str, ...]
    sentiment: SentimentResult

    @property
    def crisis_detected(self) -> bool:
        return CRISIS_TAG in self.indicators


@dataclass(frozen=True)
class FinalAssessment:
    final_risk_score: int
    final_risk_level: RiskLevel
    combined_critical_factors: Tuple[str, ...]
    structured: StructuredAssessment
    sentiment: SentimentResult = field(default=NEUTRAL_RESULT)
    escalated_level: Optional[RiskLevel] = None


def final_level_for_score(score: int) -> RiskLevel:
    for threshold, level in FINAL_BANDS:
        if score >= threshold:
            return level
    return RiskLevel.LOW


def step_up(level: RiskLevel) -> RiskLevel:
    index = _LEVEL_ORDER.index(level)
    return _LEVEL_ORDER[min(index + 1, len(_LEVEL_ORDER) - 1)]


def analyze_notes_risk(hope_level: int, notes: Optional[str], language: str) -> AiRiskSignal:
    additional = 0.0
    indicators: list[str] = []
    sentiment = NEUTRAL_RESULT

    if notes and notes.strip():
        sentiment = analyze_sentiment(notes, language)
        if sentiment.risk_indicators:
            additional += CRISIS_SCORE
            indicators.append(CRISIS_TAG)
        if sentiment.label == "negative":
            additional += NEGATIVE_SENTIMENT_WEIGHT * abs(sentiment.score)
        indicators.extend(sentiment.risk_indicators)

    if hope_level <= VERY_LOW_HOPE_THRESHOLD:
        additional += VERY_LOW_HOPE_SCORE
        indicators.append(VERY_LOW_HOPE_TAG)

    return AiRiskSignal(additional_score=additional, indicators=tuple(indicators), sentiment=sentiment)


def fuse(
    structured: StructuredAssessment,
    notes: Optional[str],
    language: str,
    hope_level: int,
) -> FinalAssessment:
    signal = analyze_notes_risk(hope_level, notes, language)

    final_score = int(round_half_up(structured.risk_score + signal.additional_score))
    escalated_level = None
    if signal.crisis_detected:
        final_score = min(MAX_ESCALATED_SCORE, final_score + CRISIS_ESCALATION)
        escalated_level = step_up(structured.risk_level)

    final_level = final_level_for_score(final_score)
    if escalated_level is not None:
        logger.info(
            "[risk] crisis escalation: structured=%s stepped=%s final=%s (score %d)",
            structured.risk_level.value, escalated_level.value, final_level.value, final_score,
        )

    return FinalAssessment(
        final_risk_score=final_score,
        final_risk_level=final_level,
        combined_critical_factors=structured.critical_factors + signal.indicators,
        structured=structured,
        sentiment=signal.sentiment,
        escalated_level=escalated_level,
    )
