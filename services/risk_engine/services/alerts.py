"""
Risk Alert Generation
=====================

Compares a supplier's previous risk state with a freshly computed one
and produces alerts when thresholds are crossed.

Alert Rules (independent, none exclusive):
1. Score increase of at least ``score_increase`` points -> warning
2. Entering CRITICAL from any other level -> critical (edge-triggered)
3. MEDIUM -> HIGH transition -> warning
4. Any dimension at or above ``dimension_warning`` -> warning, or critical
   at ``dimension_critical``; re-fires on every recompute

Version: 0.1.0
"""

from dataclasses import dataclass

from services.risk_engine.models.alert import Alert, AlertSeverity, AlertSource
from services.risk_engine.models.supplier import RiskLevel, Supplier
from services.risk_engine.services.dimensions import DimensionScores
from services.risk_engine.tables import AlertThresholds
from shared.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class RiskState:
    """A supplier's score and level at one point in time."""

    score: int | None
    level: RiskLevel | None


class AlertGenerator:
    """Emits alerts from a previous/new risk state comparison."""

    def __init__(self, thresholds: AlertThresholds | None = None) -> None:
        self.thresholds = thresholds or AlertThresholds()

    def generate(
        self,
        supplier: Supplier,
        previous: RiskState,
        dimensions: DimensionScores,
        new_score: int,
        new_level: RiskLevel,
    ) -> list[Alert]:
        """
        Build the alerts for one recompute.

        Args:
            supplier: Supplier being recomputed (for ids and names in text)
            previous: Score and level before the recompute
            dimensions: Newly computed dimension scores
            new_score: Newly computed overall score
            new_level: Newly computed risk level

        Returns:
            Alerts to persist, possibly empty
        """
        alerts: list[Alert] = []

        increase = self._score_increase_alert(supplier, previous, new_score, new_level)
        if increase is not None:
            alerts.append(increase)

        if new_level == RiskLevel.CRITICAL and previous.level != RiskLevel.CRITICAL:
            alerts.append(
                Alert(
                    supplier_id=supplier.id,
                    alert_type="compliance",
                    severity=AlertSeverity.CRITICAL,
                    title="Supplier Entered Critical Risk Level",
                    description=(
                        f"{supplier.legal_name} has crossed into CRITICAL risk level "
                        f"(score {_fmt(previous.score)} -> {new_score}, level "
                        f"{_fmt_level(previous.level)} -> {new_level.value}). "
                        "Immediate review required."
                    ),
                    source=AlertSource.RISK_ENGINE,
                )
            )

        if new_level == RiskLevel.HIGH and previous.level == RiskLevel.MEDIUM:
            alerts.append(
                Alert(
                    supplier_id=supplier.id,
                    alert_type="compliance",
                    severity=AlertSeverity.WARNING,
                    title="Supplier Entered High Risk Level",
                    description=(
                        f"{supplier.legal_name} has crossed into HIGH risk level "
                        f"(score {_fmt(previous.score)} -> {new_score}, level "
                        f"medium -> high). Enhanced due diligence recommended."
                    ),
                    source=AlertSource.RISK_ENGINE,
                )
            )

        alerts.extend(self.dimension_alerts(supplier, dimensions))

        if alerts:
            logger.info(
                "risk_alerts_generated",
                supplier_id=supplier.id,
                count=len(alerts),
                severities=[a.severity.value for a in alerts],
            )
        return alerts

    def _score_increase_alert(
        self,
        supplier: Supplier,
        previous: RiskState,
        new_score: int,
        new_level: RiskLevel,
    ) -> Alert | None:
        if previous.score is None:
            return None
        delta = new_score - previous.score
        if delta < self.thresholds.score_increase:
            return None
        return Alert(
            supplier_id=supplier.id,
            alert_type="risk_score",
            severity=AlertSeverity.WARNING,
            title="Significant Risk Score Increase",
            description=(
                f"Risk score increased from {previous.score} to {new_score} "
                f"({delta} points, threshold {self.thresholds.score_increase}); "
                f"level is now {new_level.value}."
            ),
            source=AlertSource.RISK_ENGINE,
        )

    def dimension_alerts(
        self,
        supplier: Supplier,
        dimensions: DimensionScores,
    ) -> list[Alert]:
        """One alert per dimension at or above the warning threshold."""
        alerts: list[Alert] = []
        for dimension, value in dimensions.by_dimension().items():
            if value < self.thresholds.dimension_warning:
                continue
            severity = (
                AlertSeverity.CRITICAL
                if value >= self.thresholds.dimension_critical
                else AlertSeverity.WARNING
            )
            alerts.append(
                Alert(
                    supplier_id=supplier.id,
                    alert_type=dimension.value,
                    severity=severity,
                    title=f"High {dimension.label} Risk Detected",
                    description=(
                        f"{dimension.label} risk score is {value}/100 "
                        f"(alert threshold {self.thresholds.dimension_warning}, "
                        f"critical at {self.thresholds.dimension_critical}). "
                        "Review and mitigation recommended."
                    ),
                    source=AlertSource.RISK_ENGINE,
                )
            )
        return alerts


def _fmt(score: int | None) -> str:
    return "n/a" if score is None else str(score)


def _fmt_level(level: RiskLevel | None) -> str:
    return "unscored" if level is None else level.value
