"""
Risk Routes
===========

API endpoints for supplier risk recomputation.
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from services.risk_engine.dependencies import get_orchestrator
from services.risk_engine.models import Alert, RiskLevel
from services.risk_engine.services.orchestrator import (
    BatchContext,
    BatchResult,
    RiskDelta,
    RiskOrchestrator,
)
from shared.logging import get_logger


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class RiskDeltaResponse(BaseModel):
    """Result of recomputing one supplier."""

    supplier_id: str
    previous_score: int | None
    risk_score: int
    previous_level: RiskLevel | None
    risk_level: RiskLevel
    dimensions: dict[str, int]
    data_completeness: int
    changed: bool
    alerts: list[Alert] = Field(default_factory=list)

    @classmethod
    def from_delta(cls, delta: RiskDelta) -> "RiskDeltaResponse":
        return cls(
            supplier_id=delta.supplier_id,
            previous_score=delta.previous_score,
            risk_score=delta.new_score,
            previous_level=delta.previous_level,
            risk_level=delta.new_level,
            dimensions=delta.dimensions.as_fields(),
            data_completeness=delta.data_completeness,
            changed=delta.changed,
            alerts=delta.alerts,
        )


class BatchRecomputeRequest(BaseModel):
    """Options for a full recompute."""

    deadline_seconds: float | None = Field(
        default=None,
        gt=0,
        description="Stop picking up new suppliers after this many seconds",
    )


class BatchFailureResponse(BaseModel):
    supplier_id: str
    error: str
    error_type: str


class BatchRecomputeResponse(BaseModel):
    """Summary of a full recompute."""

    suppliers_updated: int
    sites_updated: int
    alerts_created: int
    failures: list[BatchFailureResponse]
    cancelled: bool
    skipped: int

    @classmethod
    def from_result(cls, result: BatchResult) -> "BatchRecomputeResponse":
        return cls(
            suppliers_updated=result.suppliers_updated,
            sites_updated=result.sites_updated,
            alerts_created=result.alerts_created,
            failures=[
                BatchFailureResponse(
                    supplier_id=f.supplier_id,
                    error=f.error,
                    error_type=f.error_type,
                )
                for f in result.failures
            ],
            cancelled=result.cancelled,
            skipped=result.skipped,
        )


class RiskLevelResponse(BaseModel):
    score: int
    level: RiskLevel


# ============================================================================
# Risk Endpoints
# ============================================================================


@router.post("/suppliers/{supplier_id}/recompute", response_model=RiskDeltaResponse)
async def recompute_supplier(
    supplier_id: str,
    orchestrator: RiskOrchestrator = Depends(get_orchestrator),
) -> RiskDeltaResponse:
    """Recompute one supplier's dimensions, score, level and alerts."""
    delta = await orchestrator.recompute_one(supplier_id)
    return RiskDeltaResponse.from_delta(delta)


@router.post("/recompute", response_model=BatchRecomputeResponse)
async def recompute_all(
    request: BatchRecomputeRequest | None = None,
    orchestrator: RiskOrchestrator = Depends(get_orchestrator),
) -> BatchRecomputeResponse:
    """
    Recompute every site and supplier.

    Failures for individual suppliers are reported in the response and
    do not fail the request.
    """
    deadline = request.deadline_seconds if request else None
    ctx = BatchContext.with_timeout(deadline or orchestrator.batch_deadline_seconds)

    logger.info("batch_recompute_requested", deadline_seconds=deadline)
    result = await orchestrator.recompute_all(ctx)
    return BatchRecomputeResponse.from_result(result)


@router.get("/level", response_model=RiskLevelResponse)
async def get_risk_level(
    score: int = Query(..., ge=0, le=100, description="Overall risk score"),
    orchestrator: RiskOrchestrator = Depends(get_orchestrator),
) -> RiskLevelResponse:
    """Classify a score into a risk level."""
    return RiskLevelResponse(score=score, level=orchestrator.risk_level(score))
