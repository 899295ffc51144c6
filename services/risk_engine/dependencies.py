"""
Route Dependencies
==================

FastAPI dependencies shared by the risk engine routers.
"""

from fastapi import HTTPException, Request, status

from services.risk_engine.services.orchestrator import RiskOrchestrator


def get_orchestrator(request: Request) -> RiskOrchestrator:
    """Orchestrator created during application startup."""
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Risk engine is not initialised",
        )
    return orchestrator
