"""
Verification Routes
===================

API endpoints for the verification cascade and task housekeeping.
"""

from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel, Field

from services.risk_engine.dependencies import get_orchestrator
from services.risk_engine.models import Alert, Task
from services.risk_engine.routes.risk import RiskDeltaResponse
from services.risk_engine.services.follow_up import DocumentAnalysis
from services.risk_engine.services.orchestrator import RiskOrchestrator
from shared.logging import get_logger


logger = get_logger(__name__)
router = APIRouter()


# ============================================================================
# Request/Response Models
# ============================================================================


class AutomatedCheck(BaseModel):
    """An automated check started by the cascade."""

    task_id: str
    verification_type: str
    done: bool
    passed: bool | None = None
    result: dict[str, Any] | None = None
    skipped: bool = False


class CascadeResponse(BaseModel):
    """Work created from a completed assessment."""

    assessment_id: str
    tasks: list[Task] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)
    automated_checks: list[AutomatedCheck] = Field(default_factory=list)
    risk: RiskDeltaResponse | None = None


class FollowUpResponse(BaseModel):
    """Follow-ups created from a document analysis."""

    task_id: str
    tasks: list[Task] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)


class OverdueSweepResponse(BaseModel):
    updated: int
    tasks: list[Task] = Field(default_factory=list)


# ============================================================================
# Verification Endpoints
# ============================================================================


@router.post("/tasks/overdue-sweep", response_model=OverdueSweepResponse)
async def overdue_sweep(
    orchestrator: RiskOrchestrator = Depends(get_orchestrator),
) -> OverdueSweepResponse:
    """Mark open tasks past their due date as overdue."""
    tasks = await orchestrator.mark_overdue(datetime.now(UTC))
    return OverdueSweepResponse(updated=len(tasks), tasks=tasks)


@router.post("/tasks/{task_id}/completed", response_model=CascadeResponse)
async def assessment_completed(
    task_id: str,
    wait: bool = Query(False, description="Wait for automated checks to finish"),
    orchestrator: RiskOrchestrator = Depends(get_orchestrator),
) -> CascadeResponse:
    """
    Cascade verification tasks from a completed questionnaire.

    Automated checks run in the background unless ``wait`` is set.
    """
    cascade = await orchestrator.on_assessment_completed(task_id)

    checks: list[AutomatedCheck] = []
    for handle in cascade.handles:
        if wait:
            outcome = await handle.wait()
            checks.append(
                AutomatedCheck(
                    task_id=handle.task_id,
                    verification_type=handle.verification_type,
                    done=True,
                    passed=outcome.passed,
                    result=outcome.result,
                    skipped=outcome.skipped,
                )
            )
        else:
            checks.append(
                AutomatedCheck(
                    task_id=handle.task_id,
                    verification_type=handle.verification_type,
                    done=handle.done(),
                )
            )

    return CascadeResponse(
        assessment_id=cascade.assessment_id,
        tasks=cascade.tasks,
        alerts=cascade.alerts,
        automated_checks=checks,
        risk=RiskDeltaResponse.from_delta(cascade.delta) if cascade.delta else None,
    )


@router.post("/tasks/{task_id}/request-documents", response_model=Task)
async def request_documents(
    task_id: str,
    orchestrator: RiskOrchestrator = Depends(get_orchestrator),
) -> Task:
    """Mark the task sent and notify the supplier of required documents."""
    return await orchestrator.request_documents(task_id)


@router.post("/tasks/{task_id}/remind", response_model=Task)
async def send_reminder(
    task_id: str,
    orchestrator: RiskOrchestrator = Depends(get_orchestrator),
) -> Task:
    """Send a task reminder, marking the task overdue when past due."""
    return await orchestrator.send_reminder(task_id)


@router.post("/tasks/{task_id}/document-analysis", response_model=FollowUpResponse)
async def document_analysis(
    task_id: str,
    analysis: DocumentAnalysis,
    orchestrator: RiskOrchestrator = Depends(get_orchestrator),
) -> FollowUpResponse:
    """Create follow-up tasks and alerts from a document analysis."""
    follow_ups = await orchestrator.on_document_analyzed(task_id, analysis)
    return FollowUpResponse(task_id=task_id, tasks=follow_ups.tasks, alerts=follow_ups.alerts)
