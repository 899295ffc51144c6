"""
Test Configuration
==================

Pytest fixtures for SupplyLens tests.
"""

import asyncio
import os
from collections.abc import AsyncGenerator, Callable
from typing import Any

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

# Set test environment
os.environ["ENVIRONMENT"] = "testing"
os.environ["RISK_EVENT_BACKEND"] = "memory"

from services.risk_engine.events import InMemoryEventOutbox  # noqa: E402
from services.risk_engine.models import (  # noqa: E402
    QuestionnaireType,
    Supplier,
    Task,
    TaskStatus,
    TaskType,
)
from services.risk_engine.repository import InMemoryRiskRepository  # noqa: E402
from services.risk_engine.services.orchestrator import RiskOrchestrator  # noqa: E402
from services.risk_engine.services.verification import RegistryClient  # noqa: E402
from services.risk_engine.tables import RiskEngineConfig, default_risk_config  # noqa: E402


class StubRegistryClient(RegistryClient):
    """Registry client returning canned results."""

    def __init__(self) -> None:
        self.results: dict[str, dict[str, Any]] = {}
        self.error: Exception | None = None
        self.delay: float = 0.0
        self.calls: list[tuple[str, str]] = []

    async def check(self, verification_type: str, supplier: Supplier) -> dict[str, Any]:
        self.calls.append((verification_type, supplier.id))
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return dict(
            self.results.get(
                verification_type,
                {"matches_found": 0, "recommendation": "No issues found."},
            )
        )


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Use asyncio backend for async tests."""
    return "asyncio"


@pytest.fixture(scope="session")
def risk_config() -> RiskEngineConfig:
    """Production tables, weights and rules."""
    return default_risk_config()


@pytest.fixture
def supplier() -> Supplier:
    """Textile supplier in China with no stored risk yet."""
    return Supplier(
        id="sup-1",
        legal_name="Acme Textiles Ltd",
        country="China",
        nace_code="C13.2",
        city="Shenzhen",
    )


@pytest.fixture
def repository(supplier: Supplier) -> InMemoryRiskRepository:
    return InMemoryRiskRepository(suppliers=[supplier])


@pytest.fixture
def outbox() -> InMemoryEventOutbox:
    return InMemoryEventOutbox()


@pytest.fixture
def stub_registry() -> StubRegistryClient:
    return StubRegistryClient()


@pytest.fixture
def orchestrator(
    repository: InMemoryRiskRepository,
    outbox: InMemoryEventOutbox,
    risk_config: RiskEngineConfig,
    stub_registry: StubRegistryClient,
) -> RiskOrchestrator:
    """Orchestrator over the in-memory repository and outbox."""
    return RiskOrchestrator(
        repository,
        outbox,
        config=risk_config,
        registry_client=stub_registry,
        max_concurrency=4,
        verification_timeout_seconds=1.0,
    )


@pytest.fixture
def make_questionnaire() -> Callable[..., Task]:
    """Factory for questionnaire tasks."""

    def _make(
        category: QuestionnaireType,
        responses: dict[str, Any],
        status: TaskStatus = TaskStatus.COMPLETED,
        supplier_id: str = "sup-1",
        task_id: str | None = None,
    ) -> Task:
        data: dict[str, Any] = {
            "supplier_id": supplier_id,
            "task_type": TaskType.QUESTIONNAIRE,
            "title": f"{category.value} questionnaire",
            "status": status,
            "questionnaire_type": category,
            "responses": responses,
        }
        if task_id is not None:
            data["id"] = task_id
        return Task(**data)

    return _make


@pytest_asyncio.fixture
async def risk_engine_client(orchestrator: RiskOrchestrator) -> AsyncGenerator[AsyncClient, None]:
    """Create test client for the Risk Engine with an in-memory orchestrator."""
    from services.risk_engine.main import app

    app.state.orchestrator = orchestrator
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client
    await orchestrator.drain_verifications()
    del app.state.orchestrator
