import pytest

from kisan_sahay.models.checkin import RiskLevel
from kisan_sahay.services.feedback_service import (
    MAX_SUGGESTIONS,
    SUGGESTION_ICONS,
    generate_feedback,
    select_suggestion_keys,
)
from kisan_sahay.services.risk_fusion import CRISIS_TAG, VERY_LOW_HOPE_TAG
from kisan_sahay.utils.i18n import t

ALL_FACTORS = ["crop_poor", "loan_high", "sleep_poor", "family_weak", "hope_low"]


class TestSuggestionSelection:
    def test_low_without_factors_gets_farming_advice(self):
        assert select_suggestion_keys(RiskLevel.LOW, []) == ["agriculture"]

    def test_low_with_two_factors_has_no_filler(self):
        assert select_suggestion_keys(RiskLevel.LOW, ["loan_high", "sleep_poor"]) == ["loan_high", "sleep_poor"]

    def test_moderate_single_factor_is_padded(self):
        keys = select_suggestion_keys(RiskLevel.MODERATE, ["crop_poor"])

        assert keys == ["crop_poor", "agriculture", "government"]

    def test_capped_at_four_in_factor_order(self):
        keys = select_suggestion_keys(RiskLevel.HIGH, ALL_FACTORS)

        assert len(keys) == MAX_SUGGESTIONS
        assert keys == ALL_FACTORS[:4]

    def test_ai_tags_do_not_produce_cards(self):
        keys = select_suggestion_keys(RiskLevel.CRITICAL, [CRISIS_TAG, "poison", VERY_LOW_HOPE_TAG])

        assert keys == ["agriculture", "government"]


class TestGenerateFeedback:
    def test_low_has_no_emergency_block(self):
        feedback = generate_feedback(RiskLevel.LOW, [], "en")

        assert feedback.greeting == "Hello! Your situation looks good."
        assert not feedback.show_emergency
        assert feedback.helpline is None
        assert "helpline" not in feedback.to_dict()

    def test_high_shows_helpline(self):
        feedback = generate_feedback(RiskLevel.HIGH, ["crop_poor", "loan_high"], "en")

        assert feedback.greeting == "Dear farmer,"
        assert feedback.show_emergency
        assert feedback.helpline == "Helpline for assistance: 1800-233-4000"
        assert [s.key for s in feedback.suggestions] == ["crop_poor", "loan_high", "government"]

    def test_cards_are_localized_with_icons(self):
        feedback = generate_feedback(RiskLevel.MODERATE, ["crop_poor"], "en")
        card = feedback.suggestions[0]

        assert card.icon == SUGGESTION_ICONS["crop_poor"]
        assert card.title == "Contact the agriculture department"

    def test_language_without_templates_falls_back_to_marathi(self):
        feedback = generate_feedback(RiskLevel.HIGH, [], "te")

        assert feedback.greeting == "प्रिय शेतकरी बंधू/भगिनी,"
        # helpline carries all eight languages
        assert feedback.helpline == t("helpline.message", "te")
        assert feedback.helpline != t("helpline.message", "mr")

    def test_to_dict_shape(self):
        data = generate_feedback(RiskLevel.CRITICAL, [CRISIS_TAG], "en").to_dict()

        assert set(data) == {"message", "suggestions", "showEmergency", "helpline"}
        assert set(data["message"]) == {"greeting", "body", "closing"}
        assert data["message"]["greeting"].startswith("🆘")
        assert data["showEmergency"] is True
        assert data["suggestions"][0] == {
            "key": "agriculture",
            "icon": SUGGESTION_ICONS["agriculture"],
            "title": "Farming advice",
            "desc": "Learn about new cropping methods and farming technology",
        }

    @pytest.mark.parametrize("level", list(RiskLevel))
    def test_every_level_has_a_full_message(self, level):
        feedback = generate_feedback(level, [], "mr")

        for part in (feedback.greeting, feedback.body, feedback.closing):
            assert part
            assert not part.startswith("feedback.")


class TestSuggestionBounds:
    @pytest.mark.parametrize("level", list(RiskLevel))
    @pytest.mark.parametrize(
        "factors",
        [[], ["hope_low"], ["crop_poor", "loan_high"], ALL_FACTORS, ALL_FACTORS + ["hope_low", CRISIS_TAG]],
    )
    def test_between_one_and_four_cards(self, level, factors):
        assert 1 <= len(generate_feedback(level, factors, "en").suggestions) <= MAX_SUGGESTIONS

    def test_duplicate_factors_are_not_collapsed(self):
        assert select_suggestion_keys(RiskLevel.HIGH, ["hope_low", "hope_low"]) == ["hope_low", "hope_low", "government"]
