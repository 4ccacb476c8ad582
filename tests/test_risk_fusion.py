"""
Tests for fusing the questionnaire score with the notes analysis.
"""

from kisan_sahay.models.checkin import RiskLevel
from kisan_sahay.services.risk_fusion import (
    CRISIS_TAG,
    VERY_LOW_HOPE_TAG,
    analyze_notes_risk,
    final_level_for_score,
    fuse,
    step_up,
)
from kisan_sahay.utils.risk_assessment import CheckInAnswers, assess_risk

BEST = dict(crop_condition="excellent", loan_pressure="none", sleep_quality="good", family_support="strong")
WORST = dict(crop_condition="destroyed", loan_pressure="severe", sleep_quality="very_poor", family_support="none")


def run(answers, hope, notes=None, language="en"):
    structured = assess_risk(CheckInAnswers(hope_level=hope, notes=notes, **answers))
    return fuse(structured, notes, language, hope)


class TestNotesSignal:
    def test_no_notes_and_fair_hope_adds_nothing(self):
        signal = analyze_notes_risk(7, None, "en")

        assert signal.additional_score == 0
        assert signal.indicators == ()
        assert not signal.crisis_detected

    def test_crisis_adds_thirty_plus_negative_weight(self):
        signal = analyze_notes_risk(10, "poison", "en")

        assert signal.additional_score == 40
        assert signal.indicators == (CRISIS_TAG, "poison")
        assert signal.crisis_detected

    def test_very_low_hope_tagged_last(self):
        signal = analyze_notes_risk(2, "stress", "en")

        # 10 for the negative note, 15 for hope <= 2
        assert signal.additional_score == 25
        assert signal.indicators == (VERY_LOW_HOPE_TAG,)

    def test_neutral_note_adds_nothing(self):
        signal = analyze_notes_risk(8, "The rain came on time", "en")

        assert signal.additional_score == 0
        assert signal.sentiment.label == "neutral"


class TestFuse:
    def test_calm_answers_stay_low(self):
        result = run(BEST, 10)

        assert result.final_risk_score == 0
        assert result.final_risk_level == RiskLevel.LOW
        assert result.escalated_level is None
        assert result.combined_critical_factors == ()

    def test_crisis_note_on_calm_answers_escalates(self):
        result = run(BEST, 10, "poison")

        # 0 + 30 + 10 = 40, then +20 for the crisis
        assert result.final_risk_score == 60
        assert result.final_risk_level == RiskLevel.HIGH
        assert result.escalated_level == RiskLevel.MODERATE
        assert result.combined_critical_factors == (CRISIS_TAG, "poison")

    def test_crisis_always_reaches_at_least_moderate(self):
        for notes, language in (("poison", "en"), ("मला आत्महत्या करावीशी वाटते", "mr"), ("जहर", "hi")):
            result = run(BEST, 10, notes, language)
            assert result.final_risk_level in (RiskLevel.MODERATE, RiskLevel.HIGH, RiskLevel.CRITICAL)
            assert CRISIS_TAG in result.combined_critical_factors

    def test_worst_case_is_capped_at_one_hundred(self):
        result = run(WORST, 1, "I want to end it, suicide")

        # 25 + 30 + 10 + 15 = 80, +20 capped at 100
        assert result.final_risk_score == 100
        assert result.final_risk_level == RiskLevel.CRITICAL
        assert result.escalated_level == RiskLevel.CRITICAL
        assert result.combined_critical_factors == (
            "crop_poor", "loan_high", "sleep_poor", "family_weak", "hope_low",
            CRISIS_TAG, "suicide", "end it", VERY_LOW_HOPE_TAG,
        )

    def test_very_low_hope_alone(self):
        result = run(BEST, 2)

        # structured 4 (hope factor) + 15
        assert result.final_risk_score == 19
        assert result.final_risk_level == RiskLevel.LOW
        assert result.combined_critical_factors == ("hope_low", VERY_LOW_HOPE_TAG)

    def test_structured_critical_without_notes_fuses_to_moderate(self):
        result = run(WORST, 1)

        assert result.structured.risk_level == RiskLevel.CRITICAL
        assert result.final_risk_score == 40
        assert result.final_risk_level == RiskLevel.MODERATE

    def test_fractional_sentiment_is_rounded(self):
        result = run(BEST, 10, "I feel hopeless and tired")

        # sentiment -0.33 contributes 3.3
        assert result.final_risk_score == 3
        assert result.sentiment.label == "negative"

    def test_structured_result_is_kept(self):
        result = run(dict(crop_condition="moderate", loan_pressure="medium", sleep_quality="fair", family_support="moderate"), 5)

        assert result.structured.risk_score == 9
        assert result.final_risk_score == 9


class TestBands:
    def test_final_band_edges(self):
        assert final_level_for_score(39) == RiskLevel.LOW
        assert final_level_for_score(40) == RiskLevel.MODERATE
        assert final_level_for_score(59) == RiskLevel.MODERATE
        assert final_level_for_score(60) == RiskLevel.HIGH
        assert final_level_for_score(79) == RiskLevel.HIGH
        assert final_level_for_score(80) == RiskLevel.CRITICAL
        assert final_level_for_score(100) == RiskLevel.CRITICAL

    def test_step_up_saturates(self):
        assert step_up(RiskLevel.LOW) == RiskLevel.MODERATE
        assert step_up(RiskLevel.HIGH) == RiskLevel.CRITICAL
        assert step_up(RiskLevel.CRITICAL) == RiskLevel.CRITICAL
