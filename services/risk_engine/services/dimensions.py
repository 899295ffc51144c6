"""
Risk Dimension Calculation
==========================

Derives the seven risk dimensions for one supplier.

Dimension Sources:
- location: country table, blended with the mean of its sites' risk
- sector: NACE prefix table
- human rights / environmental / chemical / performance: stored value
  adjusted by completed questionnaire answers
- mineral: stored value only

Version: 0.1.0
"""

import math
from collections.abc import Iterable, Mapping
from dataclasses import dataclass

from services.risk_engine.models.questionnaire import parse_responses
from services.risk_engine.models.supplier import Dimension, Site, Supplier
from services.risk_engine.models.task import Task, TaskStatus, TaskType
from services.risk_engine.tables import RiskTables
from shared.logging import get_logger


logger = get_logger(__name__)

SCORE_MIN = 0
SCORE_MAX = 100

# Master data fields counted towards data completeness
COMPLETENESS_FIELDS = (
    "legal_name",
    "country",
    "city",
    "address",
    "vat_number",
    "website",
    "nace_code",
)

# Dimensions moved by questionnaire answers
ADJUSTABLE_DIMENSIONS = (
    Dimension.HUMAN_RIGHTS,
    Dimension.ENVIRONMENTAL,
    Dimension.CHEMICAL,
    Dimension.PERFORMANCE,
)


def clamp_score(value: float) -> float:
    """Clamp a value into the [0, 100] score range."""
    return max(SCORE_MIN, min(SCORE_MAX, value))


def round_half_up(value: float) -> int:
    """Round halves away from zero for positive scores (2.5 -> 3)."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class DimensionScores:
    """The seven dimension scores for one supplier, each in [0, 100]."""

    location_risk: int
    sector_risk: int
    human_rights_risk: int
    environmental_risk: int
    chemical_risk: int
    mineral_risk: int
    performance_risk: int

    def __getitem__(self, dimension: Dimension) -> int:
        return getattr(self, dimension.field)

    def by_dimension(self) -> dict[Dimension, int]:
        return {d: self[d] for d in Dimension}

    def as_fields(self) -> dict[str, int]:
        """Supplier attribute name -> score."""
        return {d.field: self[d] for d in Dimension}


class DimensionCalculator:
    """
    Calculates risk dimensions from supplier data, sites and questionnaires.

    Only questionnaires in status ``completed`` contribute; each
    questionnaire category adjusts exactly one dimension.
    """

    def __init__(self, tables: RiskTables) -> None:
        """
        Initialize the calculator.

        Args:
            tables: Reference tables to score against
        """
        self.tables = tables

    def location_risk(self, country: str | None) -> int:
        """Country table lookup, falling back to the default for unknowns."""
        if not country:
            return self.tables.default_location_risk
        return self.tables.country_risk.get(country, self.tables.default_location_risk)

    def sector_risk(self, nace_code: str | None) -> int:
        """
        NACE prefix lookup.

        No code scores ``default_sector_risk_no_code`` (40); a code with no
        table entry scores ``default_sector_risk_unmapped`` (50).
        """
        if not nace_code:
            return self.tables.default_sector_risk_no_code
        prefix = nace_code.strip().upper()[: self.tables.sector_prefix_length]
        return self.tables.sector_risk.get(prefix, self.tables.default_sector_risk_unmapped)

    def site_risk(self, site: Site) -> int:
        """Location risk of the site country plus facility and certification deltas."""
        risk = self.location_risk(site.country)

        facility = getattr(site.facility_type, "value", site.facility_type)
        risk += self.tables.facility_impact.get(facility, 0)

        for certification in site.certifications:
            risk += self.tables.certification_impact.get(certification, 0)

        return int(clamp_score(risk))

    def blended_location_risk(self, country: str | None, sites: list[Site]) -> int:
        """Supplier location risk averaged with its sites' mean risk."""
        location = self.location_risk(country)
        if not sites:
            return location
        mean_site_risk = sum(self.site_risk(site) for site in sites) / len(sites)
        return round_half_up((location + mean_site_risk) / 2)

    def questionnaire_impacts(self, tasks: Iterable[Task]) -> dict[Dimension, int]:
        """
        Sum questionnaire answer deltas per dimension.

        Args:
            tasks: The supplier's tasks (non-questionnaires are ignored)

        Returns:
            Raw (unclamped) delta per adjusted dimension
        """
        impacts: dict[Dimension, int] = {
            Dimension.HUMAN_RIGHTS: 0,
            Dimension.ENVIRONMENTAL: 0,
            Dimension.CHEMICAL: 0,
            Dimension.PERFORMANCE: 0,
        }

        for task in tasks:
            if (
                task.task_type != TaskType.QUESTIONNAIRE
                or task.status != TaskStatus.COMPLETED
                or task.questionnaire_type is None
                or not task.responses
            ):
                continue

            impact_rules = self.tables.questionnaire_impact.get(task.questionnaire_type)
            if not impact_rules:
                continue

            dimension = self.tables.dimension_for(task.questionnaire_type)
            responses = parse_responses(task.questionnaire_type, task.responses)
            for key, answer in responses.items():
                deltas = impact_rules.get(key)
                if deltas:
                    impacts[dimension] = impacts.get(dimension, 0) + deltas.get(answer, 0)

        return impacts

    def baselines(self, supplier: Supplier) -> dict[str, int]:
        """
        Base values the questionnaire deltas are applied to.

        A recorded baseline wins; otherwise the stored dimension value (or
        the default) becomes the baseline, so repeated recomputes never
        stack the same answers twice.
        """
        result: dict[str, int] = {}
        for dimension in ADJUSTABLE_DIMENSIONS:
            if dimension.value in supplier.risk_baselines:
                result[dimension.value] = supplier.risk_baselines[dimension.value]
                continue
            value = supplier.dimension(dimension)
            result[dimension.value] = self.tables.default_dimension_risk if value is None else value
        return result

    def _stored(self, supplier: Supplier, dimension: Dimension) -> int:
        value = supplier.dimension(dimension)
        return self.tables.default_dimension_risk if value is None else value

    def calculate(
        self,
        supplier: Supplier,
        sites: list[Site],
        tasks: list[Task],
    ) -> DimensionScores:
        """
        Calculate all seven dimensions for a supplier.

        Args:
            supplier: The supplier being scored
            sites: Sites belonging to the supplier
            tasks: Tasks belonging to the supplier

        Returns:
            DimensionScores, every value clamped to [0, 100]
        """
        impacts = self.questionnaire_impacts(tasks)
        baselines = self.baselines(supplier)

        def adjusted(dimension: Dimension) -> int:
            base = baselines.get(dimension.value, self._stored(supplier, dimension))
            return int(clamp_score(base + impacts.get(dimension, 0)))

        scores = DimensionScores(
            location_risk=int(clamp_score(self.blended_location_risk(supplier.country, sites))),
            sector_risk=int(clamp_score(self.sector_risk(supplier.nace_code))),
            human_rights_risk=adjusted(Dimension.HUMAN_RIGHTS),
            environmental_risk=adjusted(Dimension.ENVIRONMENTAL),
            chemical_risk=adjusted(Dimension.CHEMICAL),
            mineral_risk=adjusted(Dimension.MINERAL),
            performance_risk=adjusted(Dimension.PERFORMANCE),
        )

        logger.debug(
            "dimensions_calculated",
            supplier_id=supplier.id,
            sites=len(sites),
            **scores.as_fields(),
        )
        return scores


def data_completeness(values: Mapping[str, object] | Supplier) -> int:
    """Percentage of master data fields that are filled in."""
    if isinstance(values, Supplier):
        values = values.model_dump(include=set(COMPLETENESS_FIELDS))
    filled = sum(1 for name in COMPLETENESS_FIELDS if values.get(name))
    return round_half_up(filled / len(COMPLETENESS_FIELDS) * 100)
