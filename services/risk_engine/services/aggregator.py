"""
Overall Risk Score Aggregation
==============================

Combines the seven dimensions into one weighted score and maps it to a
risk level.

Version: 0.1.0
"""

from services.risk_engine.exceptions import ComputeInvariantViolation
from services.risk_engine.models.supplier import Dimension, RiskLevel
from services.risk_engine.services.dimensions import (
    SCORE_MAX,
    SCORE_MIN,
    DimensionScores,
    clamp_score,
    round_half_up,
)
from services.risk_engine.tables import RiskThresholds, ScoringWeights
from shared.logging import get_logger


logger = get_logger(__name__)


class ScoreAggregator:
    """
    Weighted overall score and risk level classification.

    Weights sum to 1.0 and every dimension is already in [0, 100], so a raw
    weighted sum outside that range can only come from a table or weight
    bug. It is reported loudly, then clamped (or raised in strict mode).
    """

    def __init__(
        self,
        weights: ScoringWeights,
        thresholds: RiskThresholds | None = None,
        strict: bool = False,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            weights: Per-dimension weights
            thresholds: Risk level bounds
            strict: Raise ComputeInvariantViolation instead of clamping
        """
        self.weights = weights
        self.thresholds = thresholds or RiskThresholds()
        self.strict = strict

    def weighted_sum(self, dimensions: DimensionScores) -> float:
        """Raw weighted sum before clamping and rounding."""
        return sum(self.weights[d] * dimensions[d] for d in Dimension)

    def overall_score(self, dimensions: DimensionScores) -> int:
        """
        Calculate the overall score.

        Raises:
            ComputeInvariantViolation: In strict mode, if the raw sum leaves [0, 100]
        """
        raw = self.weighted_sum(dimensions)

        if not SCORE_MIN <= raw <= SCORE_MAX:
            logger.error(
                "compute_invariant_violation",
                raw_score=raw,
                dimensions=dimensions.as_fields(),
            )
            if self.strict:
                raise ComputeInvariantViolation(
                    f"Weighted score {raw} outside [{SCORE_MIN}, {SCORE_MAX}]",
                    raw_score=raw,
                )

        return round_half_up(clamp_score(raw))

    def risk_level(self, score: int) -> RiskLevel:
        """Map a score to its risk level."""
        return self.thresholds.level(score)
