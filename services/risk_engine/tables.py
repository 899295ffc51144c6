"""
Risk Tables & Engine Configuration
==================================

Static reference data for supplier risk scoring and the verification
rule table, assembled into one immutable ``RiskEngineConfig`` that is
built at startup and injected into every engine service.

Raw definitions are validated entry by entry: a malformed entry is
logged and skipped (``InvalidRule``) without blocking the rest.

Version: 0.1.0
"""

import math
from collections.abc import Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any

from services.risk_engine.exceptions import InvalidRule
from services.risk_engine.models.questionnaire import (
    QUESTION_KEYS,
    Answer,
    QuestionnaireType,
)
from services.risk_engine.models.supplier import Dimension, RiskLevel
from services.risk_engine.models.task import TaskSeverity, TaskType
from shared.logging import get_logger


logger = get_logger(__name__)


# =============================================================================
# Raw Reference Data
# =============================================================================

# Location risk by country (World Bank WGI & Transparency International CPI)
_COUNTRY_RISK: dict[str, int] = {
    "Germany": 10, "Sweden": 8, "Netherlands": 10, "France": 12, "Italy": 18,
    "Spain": 15, "USA": 15, "UK": 12, "Japan": 10, "South Korea": 15,
    "Poland": 22, "Czech Republic": 20, "Austria": 10, "Belgium": 12,
    "China": 55, "Vietnam": 50, "Thailand": 45, "Indonesia": 60,
    "India": 55, "Taiwan": 25, "Democratic Republic of Congo": 95,
    "Brazil": 45, "Malaysia": 40, "Philippines": 50, "Bangladesh": 70,
    "Myanmar": 85, "Pakistan": 65, "Nigeria": 70, "Ethiopia": 65,
}

# Sector risk by NACE code prefix
_SECTOR_RISK: dict[str, int] = {
    "A01": 50,  # Agriculture (deforestation)
    "B05": 70, "B06": 65, "B07": 80, "B08": 60,  # Mining
    "C10": 35, "C11": 30, "C12": 25,  # Food, beverages, tobacco
    "C13": 55, "C14": 60, "C15": 50,  # Textiles, apparel, leather
    "C17": 40,  # Paper
    "C19": 70, "C20": 65,  # Petroleum, chemicals
    "C21": 45,  # Pharmaceuticals
    "C22": 50,  # Rubber, plastics
    "C23": 55,  # Non-metallic minerals
    "C24": 60,  # Basic metals
    "C25": 45,  # Fabricated metals
    "C26": 55,  # Electronics
    "C27": 50,  # Electrical equipment
    "C28": 40,  # Machinery
    "C29": 45, "C30": 50,  # Motor vehicles, other transport
}

# Certification impact on site risk (negative reduces risk)
_CERTIFICATION_IMPACT: dict[str, int] = {
    "ISO 9001": -5,
    "ISO 14001": -10,
    "ISO 45001": -8,
    "ISO 50001": -7,
    "SA8000": -12,
    "FSC": -10,
    "PEFC": -8,
    "REACH": -8,
    "RoHS": -5,
    "IATF 16949": -6,
    "B Corp": -10,
    "EcoVadis Gold": -15,
    "EcoVadis Silver": -10,
    "EcoVadis Bronze": -5,
    "SMETA": -8,
    "Sedex": -6,
}

_FACILITY_IMPACT: dict[str, int] = {
    "factory": 0,
    "warehouse": -15,
    "port": -10,
    "office": -25,
    "distribution_center": -12,
    "other": 0,
}

# question -> {answer: delta} per questionnaire category
_QUESTIONNAIRE_IMPACT: dict[str, dict[str, dict[str, int]]] = {
    "general": {
        "has_sustainability_policy": {"yes": -5, "no": 10},
        "has_code_of_conduct": {"yes": -5, "no": 8},
        "annual_audit": {"yes": -8, "no": 5},
        "certified_management_system": {"yes": -10, "no": 5},
    },
    "pfas": {
        "uses_pfas": {"yes": 25, "no": -10},
        "pfas_phase_out_plan": {"yes": -15, "no": 10},
        "pfas_alternatives_available": {"yes": -10, "no": 5},
    },
    "eudr": {
        "traceable_to_origin": {"yes": -15, "no": 20},
        "deforestation_free": {"yes": -20, "no": 30},
        "geolocation_available": {"yes": -10, "no": 15},
    },
    "cbam": {
        "emissions_data_available": {"yes": -10, "no": 15},
        "third_party_verified": {"yes": -15, "no": 5},
        "reduction_targets": {"yes": -10, "no": 5},
    },
    "ppwr": {
        "recyclable_packaging": {"yes": -10, "no": 15},
        "recycled_content": {"yes": -8, "no": 5},
        "packaging_reduction_plan": {"yes": -10, "no": 5},
    },
    "human_rights": {
        "no_child_labor": {"yes": -10, "no": 50},
        "no_forced_labor": {"yes": -10, "no": 50},
        "freedom_of_association": {"yes": -8, "no": 20},
        "living_wage": {"yes": -10, "no": 15},
        "safe_working_conditions": {"yes": -8, "no": 20},
    },
    "environmental": {
        "environmental_management": {"yes": -10, "no": 10},
        "emissions_monitoring": {"yes": -8, "no": 8},
        "waste_management": {"yes": -5, "no": 5},
        "water_management": {"yes": -5, "no": 5},
        "renewable_energy": {"yes": -10, "no": 3},
    },
}

# Which dimension a questionnaire category adjusts; unlisted -> performance
_QUESTIONNAIRE_DIMENSION: dict[str, str] = {
    "human_rights": "human_rights",
    "environmental": "environmental",
    "eudr": "environmental",
    "pfas": "chemical",
}

_WEIGHTS: dict[str, float] = {
    "location": 0.20,
    "sector": 0.15,
    "human_rights": 0.15,
    "environmental": 0.15,
    "chemical": 0.10,
    "mineral": 0.10,
    "performance": 0.15,
}

_VERIFICATION_RULES: dict[str, dict[str, dict[str, Any]]] = {
    "pfas": {
        "uses_pfas": {
            "trigger_value": "yes",
            "verifications": [
                {
                    "type": "database_check",
                    "verification_type": "pfas_database",
                    "title": "PFAS Chemical Database Cross-Reference",
                    "description": (
                        "Automated cross-reference of declared PFAS substances against "
                        "ECHA SVHC list and EPA PFAS database."
                    ),
                    "due_days": 3,
                },
                {
                    "type": "test_report_request",
                    "title": "Request PFAS Lab Test Reports",
                    "description": (
                        "Request third-party laboratory test reports confirming PFAS "
                        "content levels in products."
                    ),
                    "required_documents": [
                        "PFAS Lab Test Certificate",
                        "Material Safety Data Sheet (MSDS)",
                        "Chemical Composition Declaration",
                    ],
                    "due_days": 14,
                },
            ],
        },
        "pfas_in_products": {
            "trigger_value": "yes",
            "verifications": [
                {
                    "type": "test_report_request",
                    "title": "Product PFAS Content Testing",
                    "description": (
                        "Request product-specific PFAS testing to verify concentration "
                        "levels comply with regulatory limits."
                    ),
                    "required_documents": ["Product Test Report", "Certificate of Analysis"],
                    "due_days": 21,
                },
            ],
        },
        "no_pfas_phase_out_plan": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "documentation",
                    "title": "PFAS Elimination Roadmap Required",
                    "description": (
                        "Supplier must provide a detailed PFAS phase-out plan with "
                        "timelines and alternative materials."
                    ),
                    "required_documents": ["PFAS Phase-Out Plan", "Alternative Materials Assessment"],
                    "due_days": 30,
                },
            ],
        },
    },
    "eudr": {
        "traceable_to_origin": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "documentation",
                    "title": "Supply Chain Traceability Documentation",
                    "description": (
                        "Request detailed supply chain mapping and traceability "
                        "documentation to plot of land."
                    ),
                    "required_documents": [
                        "Supply Chain Map",
                        "Origin Certificates",
                        "GPS Coordinates Documentation",
                    ],
                    "due_days": 21,
                },
            ],
        },
        "deforestation_free": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "database_check",
                    "verification_type": "deforestation_satellite",
                    "title": "Satellite Deforestation Analysis",
                    "description": (
                        "Automated satellite imagery analysis of supplier source regions "
                        "for deforestation activity post Dec 2020."
                    ),
                    "due_days": 7,
                },
                {
                    "type": "audit_request",
                    "title": "On-Site Deforestation Audit",
                    "description": "Schedule third-party on-site audit to verify deforestation-free claims.",
                    "required_documents": ["Audit Scope Agreement", "Site Access Authorization"],
                    "due_days": 45,
                },
            ],
        },
        "high_risk_country": {
            "trigger_value": "yes",
            "verifications": [
                {
                    "type": "documentation",
                    "title": "Enhanced Due Diligence Package",
                    "description": (
                        "Request enhanced due diligence documentation for high-risk "
                        "country sourcing."
                    ),
                    "required_documents": [
                        "Risk Mitigation Plan",
                        "Independent Verification Report",
                        "Legality Certificates",
                    ],
                    "due_days": 30,
                },
            ],
        },
    },
    "cbam": {
        "emissions_data_available": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "documentation",
                    "title": "Request Emissions Data Collection",
                    "description": "Supplier must provide embedded emissions data for CBAM reporting.",
                    "required_documents": [
                        "Emissions Calculation Methodology",
                        "Production Process Data",
                        "Energy Consumption Records",
                    ],
                    "due_days": 30,
                },
            ],
        },
        "third_party_verified": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "database_check",
                    "verification_type": "emissions_registry",
                    "title": "Emissions Registry Verification",
                    "description": (
                        "Cross-reference declared emissions with EU ETS registry and "
                        "national registries."
                    ),
                    "due_days": 5,
                },
                {
                    "type": "audit_request",
                    "title": "Third-Party Emissions Verification",
                    "description": "Request third-party verification of declared carbon emissions.",
                    "required_documents": ["Verification Statement", "Emissions Report ISO 14064"],
                    "due_days": 60,
                },
            ],
        },
    },
    "human_rights": {
        "no_child_labor": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "audit_request",
                    "title": "Urgent Child Labor Audit",
                    "description": (
                        "CRITICAL: Immediate third-party audit required due to potential "
                        "child labor concerns."
                    ),
                    "required_documents": [
                        "Age Verification Records",
                        "Worker Registry",
                        "Independent Audit Report",
                    ],
                    "due_days": 14,
                    "severity": "critical",
                },
            ],
        },
        "no_forced_labor": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "audit_request",
                    "title": "Urgent Forced Labor Investigation",
                    "description": (
                        "CRITICAL: Immediate investigation required due to potential "
                        "forced labor indicators."
                    ),
                    "required_documents": [
                        "Worker Contracts",
                        "Wage Payment Records",
                        "Freedom of Movement Evidence",
                    ],
                    "due_days": 14,
                    "severity": "critical",
                },
                {
                    "type": "database_check",
                    "verification_type": "sanctions_screening",
                    "title": "Sanctions & Forced Labor Database Screening",
                    "description": (
                        "Screen supplier against UFLPA Entity List, UK Modern Slavery "
                        "registry, and sanctions databases."
                    ),
                    "due_days": 1,
                },
            ],
        },
        "living_wage": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "documentation",
                    "title": "Wage Documentation Review",
                    "description": "Request wage records and comparison to local living wage benchmarks.",
                    "required_documents": ["Payroll Records", "Living Wage Gap Analysis", "Remediation Plan"],
                    "due_days": 21,
                },
            ],
        },
    },
    "environmental": {
        "environmental_management": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "documentation",
                    "title": "Environmental Management System Setup",
                    "description": (
                        "Request supplier to implement and document environmental "
                        "management practices."
                    ),
                    "required_documents": ["Environmental Policy", "EMS Implementation Plan", "Target KPIs"],
                    "due_days": 60,
                },
            ],
        },
        "emissions_monitoring": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "documentation",
                    "title": "Emissions Monitoring Setup",
                    "description": "Request implementation of emissions monitoring and reporting capabilities.",
                    "required_documents": ["Monitoring Plan", "Baseline Emissions Report"],
                    "due_days": 45,
                },
            ],
        },
    },
    "general": {
        "certified_management_system": {
            "trigger_value": "no",
            "verifications": [
                {
                    "type": "database_check",
                    "verification_type": "certification_check",
                    "title": "Certification Database Verification",
                    "description": (
                        "Verify any claimed certifications against official certification "
                        "body databases."
                    ),
                    "due_days": 3,
                },
            ],
        },
    },
}

VERIFICATION_TASK_TYPES = frozenset({
    TaskType.DATABASE_CHECK,
    TaskType.TEST_REPORT_REQUEST,
    TaskType.DOCUMENTATION,
    TaskType.AUDIT_REQUEST,
})


# =============================================================================
# Configuration Objects
# =============================================================================


def _freeze(mapping: Mapping[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ScoringWeights:
    """Per-dimension weights for the overall score. Must sum to 1.0."""

    weights: Mapping[Dimension, float]

    def __post_init__(self) -> None:
        missing = set(Dimension) - set(self.weights)
        if missing:
            raise InvalidRule(
                "Scoring weights missing dimensions",
                missing=sorted(d.value for d in missing),
            )
        total = sum(self.weights.values())
        if not math.isclose(total, 1.0, abs_tol=1e-9):
            raise InvalidRule("Scoring weights must sum to 1.0", total=total)
        object.__setattr__(self, "weights", _freeze(self.weights))

    def __getitem__(self, dimension: Dimension) -> float:
        return self.weights[dimension]


@dataclass(frozen=True)
class RiskThresholds:
    """Inclusive upper bounds for each risk level."""

    low_max: int = 30
    medium_max: int = 55
    high_max: int = 75

    def __post_init__(self) -> None:
        if not 0 <= self.low_max < self.medium_max < self.high_max < 100:
            raise InvalidRule(
                "Risk thresholds must be increasing within [0, 100)",
                low_max=self.low_max,
                medium_max=self.medium_max,
                high_max=self.high_max,
            )

    def level(self, score: int) -> RiskLevel:
        """Classify a score; contiguous bounds, no hysteresis."""
        if score <= self.low_max:
            return RiskLevel.LOW
        if score <= self.medium_max:
            return RiskLevel.MEDIUM
        if score <= self.high_max:
            return RiskLevel.HIGH
        return RiskLevel.CRITICAL


@dataclass(frozen=True)
class AlertThresholds:
    """Thresholds used by the alert generator."""

    score_increase: int = 15
    dimension_warning: int = 80
    dimension_critical: int = 90


@dataclass(frozen=True)
class RiskTables:
    """Location, sector, site and questionnaire reference tables."""

    country_risk: Mapping[str, int]
    sector_risk: Mapping[str, int]
    certification_impact: Mapping[str, int]
    facility_impact: Mapping[str, int]
    questionnaire_impact: Mapping[QuestionnaireType, Mapping[str, Mapping[Answer, int]]]
    questionnaire_dimension: Mapping[QuestionnaireType, Dimension]

    default_location_risk: int = 50
    default_sector_risk_no_code: int = 40
    default_sector_risk_unmapped: int = 50
    default_dimension_risk: int = 50
    sector_prefix_length: int = 3

    def dimension_for(self, category: QuestionnaireType) -> Dimension:
        """Dimension a questionnaire category adjusts."""
        return self.questionnaire_dimension.get(category, Dimension.PERFORMANCE)


@dataclass(frozen=True)
class VerificationSpec:
    """One task to materialise when a rule fires."""

    task_type: TaskType
    title: str
    description: str
    due_days: int
    verification_type: str | None = None
    required_documents: tuple[str, ...] = ()
    severity: TaskSeverity = TaskSeverity.NORMAL

    @property
    def is_automated(self) -> bool:
        return self.task_type == TaskType.DATABASE_CHECK and bool(self.verification_type)


@dataclass(frozen=True)
class VerificationRule:
    """A trigger on one questionnaire answer and the work it cascades."""

    category: QuestionnaireType
    response_key: str
    trigger_value: Answer
    verifications: tuple[VerificationSpec, ...]

    def matches(self, answer: Answer) -> bool:
        return answer == self.trigger_value


@dataclass(frozen=True)
class RuleTable:
    """Verification rules keyed by ``(category, response_key)``."""

    rules: Mapping[tuple[QuestionnaireType, str], VerificationRule] = field(
        default_factory=lambda: MappingProxyType({})
    )

    def get(self, category: QuestionnaireType, response_key: str) -> VerificationRule | None:
        return self.rules.get((category, response_key))

    def for_category(self, category: QuestionnaireType) -> list[VerificationRule]:
        return [rule for (cat, _), rule in self.rules.items() if cat == category]

    def __len__(self) -> int:
        return len(self.rules)

    def __iter__(self) -> Iterator[VerificationRule]:
        return iter(self.rules.values())


@dataclass(frozen=True)
class RiskEngineConfig:
    """Everything the engine needs to score and cascade, built once."""

    tables: RiskTables
    weights: ScoringWeights
    rules: RuleTable
    thresholds: RiskThresholds = field(default_factory=RiskThresholds)
    alert_thresholds: AlertThresholds = field(default_factory=AlertThresholds)


# =============================================================================
# Builders
# =============================================================================


def _score_table(name: str, raw: Mapping[str, int]) -> Mapping[str, int]:
    """Keep entries whose value is a valid 0-100 score."""
    table: dict[str, int] = {}
    for key, value in raw.items():
        if not isinstance(value, int) or not 0 <= value <= 100:
            logger.error("invalid_table_entry", table=name, key=key, value=value)
            continue
        table[key] = value
    return _freeze(table)


def build_questionnaire_impact(
    raw: Mapping[str, Mapping[str, Mapping[str, int]]],
) -> Mapping[QuestionnaireType, Mapping[str, Mapping[Answer, int]]]:
    """
    Validate the questionnaire impact table.

    Entries with an unknown category, question key or answer are skipped.
    """
    result: dict[QuestionnaireType, Mapping[str, Mapping[Answer, int]]] = {}

    for category_name, questions in raw.items():
        try:
            category = QuestionnaireType(category_name)
        except ValueError:
            logger.error("invalid_rule_skipped", table="questionnaire_impact", category=category_name)
            continue

        entries: dict[str, Mapping[Answer, int]] = {}
        for key, deltas in questions.items():
            try:
                entries[key] = _impact_entry(category, key, deltas)
            except InvalidRule as e:
                logger.error(
                    "invalid_rule_skipped",
                    table="questionnaire_impact",
                    category=category.value,
                    key=key,
                    error=e.message,
                )
        result[category] = _freeze(entries)

    return _freeze(result)


def _impact_entry(
    category: QuestionnaireType,
    key: str,
    deltas: Mapping[str, int],
) -> Mapping[Answer, int]:
    if key not in QUESTION_KEYS[category]:
        raise InvalidRule(f"Unknown question key {key!r} for {category.value}")
    parsed: dict[Answer, int] = {}
    for answer, delta in deltas.items():
        try:
            parsed[Answer(answer)] = int(delta)
        except (ValueError, TypeError) as e:
            raise InvalidRule(f"Malformed impact {answer!r}: {delta!r}") from e
    return _freeze(parsed)


def build_questionnaire_dimensions(
    raw: Mapping[str, str],
) -> Mapping[QuestionnaireType, Dimension]:
    """Validate the category -> dimension mapping; bad entries are skipped."""
    result: dict[QuestionnaireType, Dimension] = {}
    for category_name, dimension_name in raw.items():
        try:
            result[QuestionnaireType(category_name)] = Dimension(dimension_name)
        except ValueError:
            logger.error(
                "invalid_rule_skipped",
                table="questionnaire_dimension",
                category=category_name,
                dimension=dimension_name,
            )
    return _freeze(result)


def build_weights(raw: Mapping[str, float]) -> ScoringWeights:
    """Build scoring weights; an unknown dimension name is a hard error."""
    weights: dict[Dimension, float] = {}
    for name, weight in raw.items():
        try:
            weights[Dimension(name)] = float(weight)
        except ValueError as e:
            raise InvalidRule(f"Unknown scoring dimension {name!r}") from e
    return ScoringWeights(weights)


def parse_rule(
    category: QuestionnaireType,
    response_key: str,
    definition: Mapping[str, Any],
) -> VerificationRule:
    """
    Parse one rule definition.

    Raises:
        InvalidRule: If the key, trigger or any verification spec is malformed
    """
    if response_key not in QUESTION_KEYS[category]:
        raise InvalidRule(f"Unknown question key {response_key!r} for {category.value}")

    trigger = definition.get("trigger_value")
    if isinstance(trigger, bool):
        trigger = Answer.YES if trigger else Answer.NO
    try:
        trigger_value = Answer(trigger)
    except ValueError as e:
        raise InvalidRule(f"Malformed trigger value {trigger!r}") from e

    raw_specs = definition.get("verifications") or []
    if not raw_specs:
        raise InvalidRule("Rule has no verifications")

    specs = tuple(_parse_spec(spec) for spec in raw_specs)
    return VerificationRule(
        category=category,
        response_key=response_key,
        trigger_value=trigger_value,
        verifications=specs,
    )


def _parse_spec(raw: Mapping[str, Any]) -> VerificationSpec:
    try:
        task_type = TaskType(raw["type"])
    except (KeyError, ValueError) as e:
        raise InvalidRule(f"Unknown verification task type {raw.get('type')!r}") from e
    if task_type not in VERIFICATION_TASK_TYPES:
        raise InvalidRule(f"Task type {task_type.value} cannot be cascaded")

    due_days = raw.get("due_days")
    if not isinstance(due_days, int) or due_days < 0:
        raise InvalidRule(f"Malformed due_days {due_days!r}")

    try:
        severity = TaskSeverity(raw.get("severity", TaskSeverity.NORMAL.value))
    except ValueError as e:
        raise InvalidRule(f"Unknown severity {raw.get('severity')!r}") from e

    return VerificationSpec(
        task_type=task_type,
        title=raw.get("title", ""),
        description=raw.get("description", ""),
        due_days=due_days,
        verification_type=raw.get("verification_type"),
        required_documents=tuple(raw.get("required_documents") or ()),
        severity=severity,
    )


def build_rule_table(raw: Mapping[str, Mapping[str, Mapping[str, Any]]]) -> RuleTable:
    """
    Build the verification rule table.

    Invalid rules are logged and skipped; other rules still load.
    """
    rules: dict[tuple[QuestionnaireType, str], VerificationRule] = {}
    skipped = 0

    for category_name, entries in raw.items():
        try:
            category = QuestionnaireType(category_name)
        except ValueError:
            logger.error("invalid_rule_skipped", category=category_name, reason="unknown category")
            skipped += len(entries)
            continue

        for response_key, definition in entries.items():
            try:
                rules[(category, response_key)] = parse_rule(category, response_key, definition)
            except InvalidRule as e:
                skipped += 1
                logger.error(
                    "invalid_rule_skipped",
                    category=category.value,
                    response_key=response_key,
                    reason=e.message,
                )

    logger.debug("rule_table_built", rules=len(rules), skipped=skipped)
    return RuleTable(rules=_freeze(rules))


def build_risk_tables(
    country_risk: Mapping[str, int] | None = None,
    sector_risk: Mapping[str, int] | None = None,
    certification_impact: Mapping[str, int] | None = None,
    facility_impact: Mapping[str, int] | None = None,
    questionnaire_impact: Mapping[str, Mapping[str, Mapping[str, int]]] | None = None,
    questionnaire_dimension: Mapping[str, str] | None = None,
) -> RiskTables:
    """Build reference tables, defaulting any table not supplied."""
    return RiskTables(
        country_risk=_score_table("country_risk", _COUNTRY_RISK if country_risk is None else country_risk),
        sector_risk=_score_table("sector_risk", _SECTOR_RISK if sector_risk is None else sector_risk),
        certification_impact=_freeze(_CERTIFICATION_IMPACT if certification_impact is None else certification_impact),
        facility_impact=_freeze(_FACILITY_IMPACT if facility_impact is None else facility_impact),
        questionnaire_impact=build_questionnaire_impact(
            _QUESTIONNAIRE_IMPACT if questionnaire_impact is None else questionnaire_impact
        ),
        questionnaire_dimension=build_questionnaire_dimensions(
            _QUESTIONNAIRE_DIMENSION if questionnaire_dimension is None else questionnaire_dimension
        ),
    )


def default_risk_config() -> RiskEngineConfig:
    """
    Build the production engine configuration.

    Returns:
        RiskEngineConfig with the standard tables, weights and rules
    """
    return RiskEngineConfig(
        tables=build_risk_tables(),
        weights=build_weights(_WEIGHTS),
        rules=build_rule_table(_VERIFICATION_RULES),
    )
