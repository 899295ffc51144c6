"""
Questionnaire Models
====================

Typed questionnaire categories and their known question keys.

Responses arrive as loose ``key -> answer`` maps. They are normalised
here once so the scoring tables and rule tables only ever see known keys
and canonical ``yes`` / ``no`` answers.

Version: 0.1.0
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from shared.logging import get_logger


logger = get_logger(__name__)


class QuestionnaireType(str, Enum):
    """Questionnaire categories."""

    GENERAL = "general"
    CHEMICAL_CONTENT = "pfas"
    DEFORESTATION = "eudr"
    EMISSIONS = "cbam"
    PACKAGING = "ppwr"
    HUMAN_RIGHTS = "human_rights"
    ENVIRONMENTAL = "environmental"


class Answer(str, Enum):
    """Canonical boolean-equivalent answers."""

    YES = "yes"
    NO = "no"


QUESTION_KEYS: dict[QuestionnaireType, frozenset[str]] = {
    QuestionnaireType.GENERAL: frozenset({
        "has_sustainability_policy",
        "has_code_of_conduct",
        "annual_audit",
        "certified_management_system",
    }),
    QuestionnaireType.CHEMICAL_CONTENT: frozenset({
        "uses_pfas",
        "pfas_in_products",
        "pfas_phase_out_plan",
        "no_pfas_phase_out_plan",
        "pfas_alternatives_available",
    }),
    QuestionnaireType.DEFORESTATION: frozenset({
        "traceable_to_origin",
        "deforestation_free",
        "geolocation_available",
        "high_risk_country",
    }),
    QuestionnaireType.EMISSIONS: frozenset({
        "emissions_data_available",
        "third_party_verified",
        "reduction_targets",
    }),
    QuestionnaireType.PACKAGING: frozenset({
        "recyclable_packaging",
        "recycled_content",
        "packaging_reduction_plan",
    }),
    QuestionnaireType.HUMAN_RIGHTS: frozenset({
        "no_child_labor",
        "no_forced_labor",
        "freedom_of_association",
        "living_wage",
        "safe_working_conditions",
    }),
    QuestionnaireType.ENVIRONMENTAL: frozenset({
        "environmental_management",
        "emissions_monitoring",
        "waste_management",
        "water_management",
        "renewable_energy",
    }),
}


def normalize_answer(value: Any) -> Answer | None:
    """
    Map a raw answer onto ``yes`` / ``no``.

    Booleans and case-insensitive ``"yes"`` / ``"no"`` strings are
    recognised. Anything else returns None and never matches a rule.
    """
    if isinstance(value, bool):
        return Answer.YES if value else Answer.NO
    if isinstance(value, str):
        try:
            return Answer(value.strip().lower())
        except ValueError:
            return None
    return None


@dataclass(frozen=True)
class QuestionnaireResponses:
    """Normalised answers for one questionnaire."""

    category: QuestionnaireType
    answers: dict[str, Answer] = field(default_factory=dict)
    unknown_keys: tuple[str, ...] = ()
    unrecognised_answers: tuple[str, ...] = ()

    def items(self) -> list[tuple[str, Answer]]:
        return list(self.answers.items())


def parse_responses(
    category: QuestionnaireType | str,
    raw: dict[str, Any] | None,
) -> QuestionnaireResponses:
    """
    Validate raw responses against the category's known question keys.

    Unknown keys and unrecognised answers are dropped and reported on the
    result rather than silently matching nothing.

    Args:
        category: Questionnaire category (enum or its value)
        raw: Raw ``question -> answer`` mapping

    Returns:
        QuestionnaireResponses with canonical answers

    Raises:
        ValueError: If the category is not a known questionnaire type
    """
    category = QuestionnaireType(category)
    known = QUESTION_KEYS[category]

    answers: dict[str, Answer] = {}
    unknown: list[str] = []
    unrecognised: list[str] = []

    for key, value in (raw or {}).items():
        if key not in known:
            unknown.append(key)
            continue
        answer = normalize_answer(value)
        if answer is None:
            unrecognised.append(key)
            continue
        answers[key] = answer

    if unknown:
        logger.warning(
            "unknown_question_keys",
            category=category.value,
            keys=sorted(unknown),
        )
    if unrecognised:
        logger.debug(
            "unrecognised_answers",
            category=category.value,
            keys=sorted(unrecognised),
        )

    return QuestionnaireResponses(
        category=category,
        answers=answers,
        unknown_keys=tuple(unknown),
        unrecognised_answers=tuple(unrecognised),
    )
