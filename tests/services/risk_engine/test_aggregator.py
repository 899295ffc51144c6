"""
Score Aggregator Tests
======================

Tests for the weighted overall score and risk level classification.

Version: 0.1.0
"""

import pytest

from services.risk_engine.exceptions import ComputeInvariantViolation
from services.risk_engine.models import RiskLevel
from services.risk_engine.services.aggregator import ScoreAggregator
from services.risk_engine.services.dimensions import DimensionScores


# =============================================================================
# Fixtures
# =============================================================================


def uniform(value: int) -> DimensionScores:
    return DimensionScores(
        location_risk=value,
        sector_risk=value,
        human_rights_risk=value,
        environmental_risk=value,
        chemical_risk=value,
        mineral_risk=value,
        performance_risk=value,
    )


@pytest.fixture
def aggregator(risk_config) -> ScoreAggregator:
    return ScoreAggregator(risk_config.weights, risk_config.thresholds)


@pytest.fixture
def strict_aggregator(risk_config) -> ScoreAggregator:
    return ScoreAggregator(risk_config.weights, risk_config.thresholds, strict=True)


# =============================================================================
# Overall Score Tests
# =============================================================================


class TestOverallScore:
    """Tests for the weighted score."""

    def test_uniform_dimensions(self, aggregator):
        assert aggregator.overall_score(uniform(50)) == 50
        assert aggregator.overall_score(uniform(0)) == 0
        assert aggregator.overall_score(uniform(100)) == 100

    def test_weighted_mix(self, aggregator):
        scores = DimensionScores(
            location_risk=55,
            sector_risk=55,
            human_rights_risk=50,
            environmental_risk=50,
            chemical_risk=50,
            mineral_risk=50,
            performance_risk=50,
        )
        # 11 + 8.25 + 7.5 + 7.5 + 5 + 5 + 7.5 = 51.75
        assert aggregator.weighted_sum(scores) == pytest.approx(51.75)
        assert aggregator.overall_score(scores) == 52

    def test_location_weighs_most(self, aggregator):
        base = uniform(0)
        location_only = DimensionScores(**{**base.as_fields(), "location_risk": 100})
        mineral_only = DimensionScores(**{**base.as_fields(), "mineral_risk": 100})

        assert aggregator.overall_score(location_only) == 20
        assert aggregator.overall_score(mineral_only) == 10

    def test_out_of_range_sum_is_clamped(self, aggregator):
        assert aggregator.overall_score(uniform(150)) == 100

    def test_out_of_range_sum_raises_in_strict_mode(self, strict_aggregator):
        with pytest.raises(ComputeInvariantViolation):
            strict_aggregator.overall_score(uniform(150))

    def test_strict_mode_accepts_valid_scores(self, strict_aggregator):
        assert strict_aggregator.overall_score(uniform(42)) == 42


# =============================================================================
# Risk Level Tests
# =============================================================================


class TestRiskLevel:
    """Tests for level boundaries."""

    @pytest.mark.parametrize(
        "score,expected",
        [
            (0, RiskLevel.LOW),
            (30, RiskLevel.LOW),
            (31, RiskLevel.MEDIUM),
            (55, RiskLevel.MEDIUM),
            (56, RiskLevel.HIGH),
            (75, RiskLevel.HIGH),
            (76, RiskLevel.CRITICAL),
            (100, RiskLevel.CRITICAL),
        ],
    )
    def test_boundaries(self, aggregator, score, expected):
        assert aggregator.risk_level(score) == expected
