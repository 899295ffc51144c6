"""
Dimension Calculator Tests
==========================

Tests for location, sector, site and questionnaire-driven dimensions.

Version: 0.1.0
"""

import pytest

from services.risk_engine.models import (
    Dimension,
    FacilityType,
    QuestionnaireType,
    Site,
    Supplier,
    TaskStatus,
)
from services.risk_engine.services.dimensions import (
    DimensionCalculator,
    data_completeness,
    round_half_up,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def calculator(risk_config) -> DimensionCalculator:
    return DimensionCalculator(risk_config.tables)


@pytest.fixture
def china_sites() -> list[Site]:
    return [
        Site(id="site-1", supplier_id="sup-1", country="China", facility_type=FacilityType.OFFICE),
        Site(
            id="site-2",
            supplier_id="sup-1",
            country="China",
            facility_type=FacilityType.WAREHOUSE,
            certifications=["ISO 9001"],
        ),
    ]


# =============================================================================
# Location & Sector Tests
# =============================================================================


class TestLocationRisk:
    """Tests for country lookups."""

    def test_known_country(self, calculator):
        assert calculator.location_risk("Germany") == 10
        assert calculator.location_risk("Democratic Republic of Congo") == 95

    def test_unknown_country_uses_default(self, calculator):
        assert calculator.location_risk("Atlantis") == 50

    def test_missing_country_uses_default(self, calculator):
        assert calculator.location_risk(None) == 50
        assert calculator.location_risk("") == 50


class TestSectorRisk:
    """Tests for NACE prefix lookups."""

    def test_prefix_match(self, calculator):
        assert calculator.sector_risk("C13.2") == 55
        assert calculator.sector_risk("C20") == 65

    def test_lowercase_code(self, calculator):
        assert calculator.sector_risk("c20.1") == 65

    def test_no_code_scores_forty(self, calculator):
        assert calculator.sector_risk(None) == 40
        assert calculator.sector_risk("") == 40

    def test_unmapped_code_scores_fifty(self, calculator):
        assert calculator.sector_risk("Z99.9") == 50


# =============================================================================
# Site Risk Tests
# =============================================================================


class TestSiteRisk:
    """Tests for site risk and blended location risk."""

    def test_facility_and_certifications_reduce_risk(self, calculator):
        site = Site(
            id="s",
            supplier_id="sup-1",
            country="China",
            facility_type=FacilityType.WAREHOUSE,
            certifications=["ISO 9001"],
        )
        assert calculator.site_risk(site) == 35

    def test_site_risk_clamped_at_zero(self, calculator):
        site = Site(
            id="s",
            supplier_id="sup-1",
            country="Germany",
            facility_type=FacilityType.FACTORY,
            certifications=["ISO 14001", "SA8000"],
        )
        assert calculator.site_risk(site) == 0

    def test_unknown_certification_ignored(self, calculator):
        site = Site(id="s", supplier_id="sup-1", country="China", certifications=["Made Up Cert"])
        assert calculator.site_risk(site) == 55

    def test_plain_string_facility_type(self, calculator):
        site = Site(id="s", supplier_id="sup-1", country="China", facility_type="office")
        assert calculator.site_risk(site) == 30

    def test_blended_location_without_sites(self, calculator):
        assert calculator.blended_location_risk("China", []) == 55

    def test_blended_location_averages_sites(self, calculator, china_sites):
        # sites score 30 and 35, mean 32.5; (55 + 32.5) / 2 = 43.75
        assert calculator.blended_location_risk("China", china_sites) == 44


# =============================================================================
# Questionnaire Adjustment Tests
# =============================================================================


class TestQuestionnaireAdjustments:
    """Tests for questionnaire answer deltas."""

    def test_defaults_without_questionnaires(self, calculator, supplier):
        scores = calculator.calculate(supplier, [], [])

        assert scores.location_risk == 55
        assert scores.sector_risk == 55
        for dimension in (
            Dimension.HUMAN_RIGHTS,
            Dimension.ENVIRONMENTAL,
            Dimension.CHEMICAL,
            Dimension.MINERAL,
            Dimension.PERFORMANCE,
        ):
            assert scores[dimension] == 50

    def test_human_rights_answers(self, calculator, supplier, make_questionnaire):
        questionnaire = make_questionnaire(
            QuestionnaireType.HUMAN_RIGHTS,
            {"no_child_labor": "no", "living_wage": True},
        )
        scores = calculator.calculate(supplier, [], [questionnaire])

        # 50 + 50 (child labour) - 10 (living wage)
        assert scores.human_rights_risk == 90

    def test_pending_questionnaire_ignored(self, calculator, supplier, make_questionnaire):
        questionnaire = make_questionnaire(
            QuestionnaireType.HUMAN_RIGHTS,
            {"no_child_labor": "no"},
            status=TaskStatus.IN_PROGRESS,
        )
        scores = calculator.calculate(supplier, [], [questionnaire])
        assert scores.human_rights_risk == 50

    def test_eudr_adjusts_environmental(self, calculator, supplier, make_questionnaire):
        questionnaire = make_questionnaire(
            QuestionnaireType.DEFORESTATION,
            {"deforestation_free": "yes", "traceable_to_origin": "yes"},
        )
        scores = calculator.calculate(supplier, [], [questionnaire])
        assert scores.environmental_risk == 15

    def test_pfas_adjusts_chemical(self, calculator, supplier, make_questionnaire):
        questionnaire = make_questionnaire(QuestionnaireType.CHEMICAL_CONTENT, {"uses_pfas": "yes"})
        scores = calculator.calculate(supplier, [], [questionnaire])
        assert scores.chemical_risk == 75

    def test_unmapped_category_adjusts_performance(self, calculator, supplier, make_questionnaire):
        questionnaire = make_questionnaire(QuestionnaireType.PACKAGING, {"recyclable_packaging": "no"})
        scores = calculator.calculate(supplier, [], [questionnaire])
        assert scores.performance_risk == 65

    def test_adjusted_value_clamped(self, calculator, make_questionnaire):
        supplier = Supplier(id="sup-1", legal_name="X", human_rights_risk=95)
        questionnaire = make_questionnaire(
            QuestionnaireType.HUMAN_RIGHTS,
            {"no_child_labor": "no", "no_forced_labor": "no"},
        )
        scores = calculator.calculate(supplier, [], [questionnaire])
        assert scores.human_rights_risk == 100

    def test_unknown_keys_ignored(self, calculator, supplier, make_questionnaire):
        questionnaire = make_questionnaire(
            QuestionnaireType.HUMAN_RIGHTS,
            {"favourite_colour": "no", "living_wage": "maybe"},
        )
        scores = calculator.calculate(supplier, [], [questionnaire])
        assert scores.human_rights_risk == 50

    def test_mineral_keeps_stored_value(self, calculator):
        supplier = Supplier(id="sup-1", legal_name="X", mineral_risk=72)
        scores = calculator.calculate(supplier, [], [])
        assert scores.mineral_risk == 72

    def test_repeated_calculation_does_not_stack(self, calculator, supplier, make_questionnaire):
        questionnaire = make_questionnaire(QuestionnaireType.HUMAN_RIGHTS, {"living_wage": "no"})

        first = calculator.calculate(supplier, [], [questionnaire])
        persisted = supplier.model_copy(
            update={**first.as_fields(), "risk_baselines": calculator.baselines(supplier)}
        )
        second = calculator.calculate(persisted, [], [questionnaire])

        assert first.human_rights_risk == 65
        assert second == first

    def test_baselines_prefer_recorded_values(self, calculator):
        supplier = Supplier(
            id="sup-1",
            legal_name="X",
            human_rights_risk=90,
            risk_baselines={"human_rights": 40},
        )
        baselines = calculator.baselines(supplier)

        assert baselines["human_rights"] == 40
        assert baselines["environmental"] == 50
        assert "mineral" not in baselines


# =============================================================================
# Data Completeness Tests
# =============================================================================


class TestDataCompleteness:
    """Tests for master data completeness."""

    def test_partial_master_data(self):
        supplier = Supplier(id="sup-1", legal_name="X", country="Germany")
        assert data_completeness(supplier) == 29

    def test_full_master_data(self):
        supplier = Supplier(
            id="sup-1",
            legal_name="X",
            country="Germany",
            city="Berlin",
            address="Main St 1",
            vat_number="DE123",
            website="https://x.example",
            nace_code="C28",
        )
        assert data_completeness(supplier) == 100

    def test_mapping_input(self):
        assert data_completeness({"legal_name": "X"}) == 14

    def test_round_half_up(self):
        assert round_half_up(2.5) == 3
        assert round_half_up(52.49) == 52
        assert round_half_up(0) == 0
