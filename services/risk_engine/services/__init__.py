"""
Risk Engine Services
====================

Business logic for supplier risk scoring and verification cascades.
"""

from services.risk_engine.services.aggregator import ScoreAggregator
from services.risk_engine.services.alerts import AlertGenerator, RiskState
from services.risk_engine.services.dimensions import (
    DimensionCalculator,
    DimensionScores,
    data_completeness,
)
from services.risk_engine.services.follow_up import (
    ComplianceFlag,
    DocumentAnalysis,
    FollowUpGenerator,
    FollowUps,
)
from services.risk_engine.services.orchestrator import (
    BatchContext,
    BatchResult,
    CascadeResult,
    EntityLockRegistry,
    RiskDelta,
    RiskOrchestrator,
)
from services.risk_engine.services.rules import TriggeredVerification, VerificationRuleEngine
from services.risk_engine.services.verification import (
    HttpRegistryClient,
    RegistryClient,
    SimulatedRegistryClient,
    VerificationHandle,
    VerificationOutcome,
    VerificationSimulator,
)


__all__ = [
    "DimensionCalculator",
    "DimensionScores",
    "data_completeness",
    "ScoreAggregator",
    "AlertGenerator",
    "RiskState",
    "VerificationRuleEngine",
    "TriggeredVerification",
    "RegistryClient",
    "SimulatedRegistryClient",
    "HttpRegistryClient",
    "VerificationHandle",
    "VerificationOutcome",
    "VerificationSimulator",
    "DocumentAnalysis",
    "ComplianceFlag",
    "FollowUpGenerator",
    "FollowUps",
    "RiskOrchestrator",
    "RiskDelta",
    "BatchContext",
    "BatchResult",
    "CascadeResult",
    "EntityLockRegistry",
]
