"""
Keyword Sentiment Analyzer
==========================

Multilingual (Marathi / Hindi / English) keyword scan over free-text check-in
notes. Produces a polarity score in [-1, 1], a label, a confidence and the
crisis phrases that were found.

Matching is case-insensitive substring containment: a keyword anywhere inside
the text counts as a hit, so ``"end"`` also fires inside ``"weekend"``.
Languages without a keyword table fall back to Marathi.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Tuple

logger = logging.getLogger(__name__)

FALLBACK_LANGUAGE = "mr"

NEGATIVE_THRESHOLD = -0.3
POSITIVE_THRESHOLD = 0.3


# =============================================================================
# KEYWORD TABLES
# =============================================================================

CRITICAL_INDICATORS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "mr": ("आत्महत्या", "मरायचे", "संपवायचे", "जगायचे नाही", "फास", "विष"),
    "hi": ("आत्महत्या", "मरना", "खत्म करना", "जीना नहीं", "फांसी", "जहर"),
    "en": ("suicide", "kill myself", "end it", "dont want to live", "hanging", "poison"),
})

NEGATIVE_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "mr": (
        "त्रास", "दुःख", "निराशा", "थकवा", "चिंता", "भीती", "अपयश",
        "कर्ज", "नुकसान", "मृत्यू", "आत्महत्या", "संपवणे", "थांबवणे",
        "उपाय नाही", "झोप नाही", "भूक नाही", "एकटे", "कोणी नाही", "हरले",
    ),
    "hi": (
        "तनाव", "दुख", "निराशा", "थकान", "चिंता", "डर", "असफलता",
        "कर्ज", "नुकसान", "मौत", "आत्महत्या", "खत्म", "रोकना",
        "कोई उपाय नहीं", "नींद नहीं", "भूख नहीं", "अकेला", "कोई नहीं", "हार गया",
    ),
    "en": (
        "stress", "sadness", "hopeless", "tired", "anxiety", "fear", "failure",
        "debt", "loss", "death", "suicide", "end", "stop", "no way",
        "no solution", "cannot sleep", "no appetite", "alone", "nobody", "lost",
    ),
})

POSITIVE_KEYWORDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    "mr": ("आशा", "आनंद", "शांती", "मदत", "कुटुंब", "मित्र", "यश", "प्रगती"),
    "hi": ("आशा", "खुशी", "शांति", "मदद", "परिवार", "दोस्त", "सफलता", "प्रगति"),
    "en": ("hope", "happy", "peace", "help", "family", "friend", "success", "progress"),
})


@dataclass(frozen=True)
class SentimentResult:
    """Result of a keyword scan."""
    score: float  # -1.0 to 1.0
    label: str  # negative | neutral | positive
    confidence: float  # 0.2 to 1.0 once any text is present
    keywords: Tuple[str, ...] = field(default_factory=tuple)
    risk_indicators: Tuple[str, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if not -1.0 <= self.score <= 1.0:
            raise ValueError(f"score must be within [-1, 1], got {self.score}")
        if not 0.0 <= self.confidence <= 1.0:
            raise ValueError(f"confidence must be within [0, 1], got {self.confidence}")

    @property
    def has_crisis_indicators(self) -> bool:
        return bool(self.risk_indicators)


NEUTRAL_RESULT = SentimentResult(score=0.0, label="neutral", confidence=1.0)


def round_half_up(value: float, digits: int = 0) -> float:
    """Round with .5 always going up (towards +inf), not to even."""
    factor = 10 ** digits
    return math.floor(value * factor + 0.5) / factor


def _table(tables: Mapping[str, Tuple[str, ...]], language: str) -> Tuple[str, ...]:
    return tables.get(language) or tables[FALLBACK_LANGUAGE]


def _matches(text: str, words: Tuple[str, ...]) -> Tuple[str, ...]:
    return tuple(word for word in words if word.lower() in text)


def label_for_score(score: float) -> str:
    if score < NEGATIVE_THRESHOLD:
        return "negative"
    if score > POSITIVE_THRESHOLD:
        return "positive"
    return "neutral"


def analyze_sentiment(text: str | None, language: str = FALLBACK_LANGUAGE) -> SentimentResult:
    """Scan ``text`` against the keyword tables of ``language``."""
    if not text or not text.strip():
        return NEUTRAL_RESULT

    lowered = text.lower()
    critical = _matches(lowered, _table(CRITICAL_INDICATORS, language))
    negative = _matches(lowered, _table(NEGATIVE_KEYWORDS, language))
    positive = _matches(lowered, _table(POSITIVE_KEYWORDS, language))

    total = len(critical) + len(negative) + len(positive)
    if critical:
        score = -1.0
    elif total > 0:
        score = (len(positive) - len(negative)) / total
    else:
        score = 0.0

    confidence = min(1.0, (total / 5) * 0.8 + 0.2)

    if critical:
        logger.info("[sentiment] %d crisis indicator(s) matched (lang=%s)", len(critical), language)

    return SentimentResult(
        score=round_half_up(score, 2),
        label=label_for_score(score),
        confidence=round_half_up(confidence, 2),
        keywords=positive + negative,
        risk_indicators=critical,
    )
