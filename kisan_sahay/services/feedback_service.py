"""
Farmer-facing feedback for a scored check-in: a three-part message picked by
risk level plus up to four suggestion cards picked by critical factor.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple

from kisan_sahay.models.checkin import RiskLevel
from kisan_sahay.utils.i18n import t

MAX_SUGGESTIONS = 4

# agriculture and government are filler cards, never driven by a factor
SUGGESTION_ICONS: Dict[str, str] = {
    "crop_poor": "🌾",
    "loan_high": "💰",
    "sleep_poor": "😴",
    "family_weak": "👨‍👩‍👧‍👦",
    "hope_low": "💪",
    "agriculture": "🌱",
    "government": "🏛️",
}

_FACTOR_CARDS = ("crop_poor", "loan_high", "sleep_poor", "family_weak", "hope_low")
_EMERGENCY_LEVELS = (RiskLevel.HIGH, RiskLevel.CRITICAL)


@dataclass(frozen=True)
class Suggestion:
    key: str
    icon: str
    title: str
    desc: str

    def to_dict(self) -> Dict[str, str]:
        return {"key": self.key, "icon": self.icon, "title": self.title, "desc": self.desc}


@dataclass(frozen=True)
class Feedback:
    greeting: str
    body: str
    closing: str
    suggestions: Tuple[Suggestion, ...] = field(default_factory=tuple)
    show_emergency: bool = False
    helpline: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "message": {"greeting": self.greeting, "body": self.body, "closing": self.closing},
            "suggestions": [s.to_dict() for s in self.suggestions],
            "showEmergency": self.show_emergency,
        }
        if self.helpline is not None:
            data["helpline"] = self.helpline
        return data


def _card(key: str, language: str) -> Suggestion:
    return Suggestion(
        key=key,
        icon=SUGGESTION_ICONS[key],
        title=t(f"suggestion.{key}.title", language),
        desc=t(f"suggestion.{key}.desc", language),
    )


def select_suggestion_keys(level: RiskLevel, factors: Iterable[str]) -> List[str]:
    keys = [factor for factor in factors if factor in _FACTOR_CARDS]
    if len(keys) < 2:
        keys.append("agriculture")
    if level != RiskLevel.LOW and len(keys) < 3:
        keys.append("government")
    return keys[:MAX_SUGGESTIONS]


def generate_feedback(level: RiskLevel, factors: Iterable[str], language: str = "mr") -> Feedback:
    level = RiskLevel(level)
    prefix = f"feedback.{level.value.lower()}"
    show_emergency = level in _EMERGENCY_LEVELS
    return Feedback(
        greeting=t(f"{prefix}.greeting", language),
        body=t(f"{prefix}.body", language),
        closing=t(f"{prefix}.closing", language),
        suggestions=tuple(_card(key, language) for key in select_suggestion_keys(level, factors)),
        show_emergency=show_emergency,
        helpline=t("helpline.message", language) if show_emergency else None,
    )
