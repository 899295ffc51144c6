"""
Questionnaire Model Tests
=========================

Tests for answer normalisation and typed questionnaire responses.

Version: 0.1.0
"""

import pytest

from services.risk_engine.models import (
    QUESTION_KEYS,
    Answer,
    QuestionnaireType,
    normalize_answer,
    parse_responses,
)


class TestNormalizeAnswer:
    """Tests for mapping raw answers to yes/no."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            (True, Answer.YES),
            (False, Answer.NO),
            ("yes", Answer.YES),
            ("No", Answer.NO),
            (" YES ", Answer.YES),
        ],
    )
    def test_recognised(self, raw, expected):
        assert normalize_answer(raw) == expected

    @pytest.mark.parametrize("raw", ["maybe", "", None, 1, 0, ["yes"]])
    def test_unrecognised(self, raw):
        assert normalize_answer(raw) is None


class TestParseResponses:
    """Tests for response validation against known question keys."""

    def test_known_keys_kept(self):
        responses = parse_responses(
            QuestionnaireType.HUMAN_RIGHTS,
            {"no_child_labor": True, "living_wage": "no"},
        )

        assert responses.category == QuestionnaireType.HUMAN_RIGHTS
        assert responses.answers == {"no_child_labor": Answer.YES, "living_wage": Answer.NO}
        assert responses.unknown_keys == ()

    def test_unknown_keys_reported(self):
        responses = parse_responses("human_rights", {"shoe_size": "yes", "living_wage": "no"})

        assert responses.unknown_keys == ("shoe_size",)
        assert list(responses.answers) == ["living_wage"]

    def test_unrecognised_answers_reported(self):
        responses = parse_responses(QuestionnaireType.CHEMICAL_CONTENT, {"uses_pfas": "sometimes"})

        assert responses.answers == {}
        assert responses.unrecognised_answers == ("uses_pfas",)

    def test_empty_responses(self):
        responses = parse_responses(QuestionnaireType.GENERAL, None)
        assert responses.items() == []

    def test_unknown_category_rejected(self):
        with pytest.raises(ValueError):
            parse_responses("astrology", {"sign": "yes"})

    def test_every_category_has_keys(self):
        for category in QuestionnaireType:
            assert QUESTION_KEYS[category]

    def test_order_preserved(self):
        responses = parse_responses(
            QuestionnaireType.ENVIRONMENTAL,
            {"waste_management": "no", "environmental_management": "yes"},
        )
        assert [key for key, _ in responses.items()] == ["waste_management", "environmental_management"]
