"""
Risk & Verification Engine - Main Application
==============================================

FastAPI application exposing supplier risk recomputation and the
verification cascade.

Version: 0.1.0
"""

from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shared.config import EventBackend, settings
from shared.database import KafkaClient, PostgresClient
from shared.logging import get_logger, setup_logging
from shared.models.common import ErrorResponse, HealthResponse

from services.risk_engine import __version__
from services.risk_engine.events import build_publisher
from services.risk_engine.exceptions import (
    ComputeInvariantViolation,
    ExternalCheckUnavailable,
    InvalidRule,
    InvalidTaskTransition,
    NotFound,
    RiskEngineError,
    StaleEntity,
)
from services.risk_engine.repository import PostgresRiskRepository
from services.risk_engine.routes import risk, verification
from services.risk_engine.services.orchestrator import RiskOrchestrator
from services.risk_engine.services.verification import HttpRegistryClient

# Setup logging
setup_logging(
    log_level=settings.log_level.value,
    json_logs=settings.is_production,
    service_name="risk-engine",
    service_version=__version__,
)

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> Any:
    """Application lifespan manager."""
    logger.info(
        "risk_engine_starting",
        environment=settings.environment.value,
        port=settings.ports.risk_engine,
        event_backend=settings.risk.event_backend.value,
    )

    # Startup
    try:
        PostgresClient.get_engine()
        logger.info("postgres_connected")

        registry_client = HttpRegistryClient() if settings.risk.registry_base_url else None
        app.state.orchestrator = RiskOrchestrator.from_settings(
            PostgresRiskRepository(),
            build_publisher(settings),
            settings.risk,
            registry_client=registry_client,
        )
        logger.info(
            "orchestrator_ready",
            rules=len(app.state.orchestrator.config.rules),
            registry="http" if registry_client else "simulated",
        )

    except Exception as e:
        logger.error("startup_failed", error=str(e))
        raise

    yield

    # Shutdown
    logger.info("risk_engine_shutting_down")
    await app.state.orchestrator.close()
    await PostgresClient.close()


# Create FastAPI application
app = FastAPI(
    title="SupplyLens Risk & Verification Engine",
    description="Supplier risk scoring, alerts and verification cascades",
    version=__version__,
    lifespan=lifespan,
    docs_url="/docs" if settings.debug else None,
    redoc_url="/redoc" if settings.debug else None,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors.origins_list,
    allow_credentials=settings.cors.allow_credentials,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ============================================================================
# Health Check Endpoints
# ============================================================================


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """
    Service health check.

    Returns health status of the service and its dependencies.
    """
    components: dict[str, dict[str, Any]] = {}

    components["postgres"] = await PostgresClient.health_check()

    if settings.risk.event_backend == EventBackend.KAFKA:
        components["kafka"] = await KafkaClient.health_check()

    all_healthy = all(
        c.get("status") == "healthy" for c in components.values()
    )

    return HealthResponse(
        status="healthy" if all_healthy else "degraded",
        service="risk-engine",
        version=__version__,
        components=components,
    )


@app.get("/", tags=["Health"])
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": "SupplyLens Risk & Verification Engine",
        "version": __version__,
        "docs": "/docs",
    }


# ============================================================================
# Include Routers
# ============================================================================

app.include_router(
    risk.router,
    prefix="/api/v1/risk",
    tags=["Risk"],
)

app.include_router(
    verification.router,
    prefix="/api/v1/verification",
    tags=["Verification"],
)


# ============================================================================
# Error Handlers
# ============================================================================

_ERROR_STATUS: dict[type[RiskEngineError], int] = {
    NotFound: status.HTTP_404_NOT_FOUND,
    InvalidTaskTransition: status.HTTP_409_CONFLICT,
    StaleEntity: status.HTTP_409_CONFLICT,
    InvalidRule: status.HTTP_422_UNPROCESSABLE_ENTITY,
    ExternalCheckUnavailable: status.HTTP_503_SERVICE_UNAVAILABLE,
    ComputeInvariantViolation: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_status(exc: RiskEngineError) -> int:
    for error_type, status_code in _ERROR_STATUS.items():
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_400_BAD_REQUEST


@app.exception_handler(RiskEngineError)
async def risk_engine_exception_handler(request: Request, exc: RiskEngineError) -> JSONResponse:
    """Map engine errors to JSON error responses."""
    status_code = _error_status(exc)
    logger.warning(
        "risk_engine_error",
        status_code=status_code,
        error=exc.message,
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(
            error=exc.message,
            error_code=type(exc).__name__,
            status_code=status_code,
        ).model_dump(mode="json"),
    )


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handle HTTP exceptions."""
    logger.warning(
        "http_exception",
        status_code=exc.status_code,
        detail=exc.detail,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=str(exc.detail),
            status_code=exc.status_code,
        ).model_dump(mode="json"),
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handle unexpected exceptions."""
    logger.error(
        "unhandled_exception",
        error=str(exc),
        error_type=type(exc).__name__,
        path=request.url.path,
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorResponse(
            error="Internal server error",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        ).model_dump(mode="json"),
    )


# ============================================================================
# Run with Uvicorn
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "services.risk_engine.main:app",
        host="0.0.0.0",
        port=settings.ports.risk_engine,
        reload=settings.debug,
        log_level=settings.log_level.value.lower(),
    )
