"""
Risk Engine Routes Tests
========================

Tests for the risk and verification API endpoints.

Version: 0.1.0
"""

from datetime import date
from unittest.mock import AsyncMock, patch

import pytest
from fastapi import status

from services.risk_engine.models import QuestionnaireType, Task, TaskStatus, TaskType


# =============================================================================
# Health Tests
# =============================================================================


class TestHealth:
    """Tests for service health endpoints."""

    @pytest.mark.asyncio
    async def test_health_healthy(self, risk_engine_client):
        with patch(
            "services.risk_engine.main.PostgresClient.health_check",
            new_callable=AsyncMock,
            return_value={"status": "healthy"},
        ):
            response = await risk_engine_client.get("/health")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["status"] == "healthy"
        assert data["service"] == "risk-engine"
        assert "postgres" in data["components"]

    @pytest.mark.asyncio
    async def test_health_degraded(self, risk_engine_client):
        with patch(
            "services.risk_engine.main.PostgresClient.health_check",
            new_callable=AsyncMock,
            return_value={"status": "unhealthy", "error": "connection refused"},
        ):
            response = await risk_engine_client.get("/health")

        assert response.json()["status"] == "degraded"

    @pytest.mark.asyncio
    async def test_root(self, risk_engine_client):
        response = await risk_engine_client.get("/")
        assert response.json()["service"] == "SupplyLens Risk & Verification Engine"


# =============================================================================
# Risk Endpoint Tests
# =============================================================================


class TestRiskRoutes:
    """Tests for recompute and level endpoints."""

    @pytest.mark.asyncio
    async def test_recompute_supplier(self, risk_engine_client):
        response = await risk_engine_client.post("/api/v1/risk/suppliers/sup-1/recompute")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["risk_score"] == 52
        assert data["risk_level"] == "medium"
        assert data["previous_score"] is None
        assert data["dimensions"]["location_risk"] == 55
        assert data["changed"] is True

    @pytest.mark.asyncio
    async def test_recompute_unknown_supplier(self, risk_engine_client):
        response = await risk_engine_client.post("/api/v1/risk/suppliers/ghost/recompute")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert data["success"] is False
        assert data["error_code"] == "NotFound"

    @pytest.mark.asyncio
    async def test_recompute_all(self, risk_engine_client):
        response = await risk_engine_client.post("/api/v1/risk/recompute")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["suppliers_updated"] == 1
        assert data["failures"] == []
        assert data["cancelled"] is False

    @pytest.mark.asyncio
    async def test_recompute_all_with_deadline(self, risk_engine_client):
        response = await risk_engine_client.post(
            "/api/v1/risk/recompute",
            json={"deadline_seconds": 30},
        )
        assert response.json()["suppliers_updated"] == 1

    @pytest.mark.asyncio
    async def test_risk_level(self, risk_engine_client):
        response = await risk_engine_client.get("/api/v1/risk/level", params={"score": 60})

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"score": 60, "level": "high"}

    @pytest.mark.asyncio
    async def test_risk_level_out_of_range(self, risk_engine_client):
        response = await risk_engine_client.get("/api/v1/risk/level", params={"score": 101})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY


# =============================================================================
# Verification Endpoint Tests
# =============================================================================


class TestVerificationRoutes:
    """Tests for cascade and task lifecycle endpoints."""

    @pytest.fixture
    def documentation_task(self, repository) -> Task:
        task = Task(
            supplier_id="sup-1",
            task_type=TaskType.DOCUMENTATION,
            title="Living Wage Assessment",
            required_documents=["Payroll Records"],
            due_date=date(2020, 1, 1),
        )
        repository.tasks[task.id] = task
        return task

    @pytest.mark.asyncio
    async def test_completed_cascade_waits_for_checks(
        self, risk_engine_client, repository, make_questionnaire
    ):
        assessment = make_questionnaire(QuestionnaireType.HUMAN_RIGHTS, {"no_forced_labor": "no"})
        repository.tasks[assessment.id] = assessment

        response = await risk_engine_client.post(
            f"/api/v1/verification/tasks/{assessment.id}/completed",
            params={"wait": "true"},
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["assessment_id"] == assessment.id
        assert len(data["tasks"]) == 2
        assert len(data["alerts"]) == 1
        assert data["automated_checks"][0]["verification_type"] == "sanctions_screening"
        assert data["automated_checks"][0]["done"] is True
        assert data["automated_checks"][0]["passed"] is True
        assert data["risk"]["risk_level"] == "high"

    @pytest.mark.asyncio
    async def test_completed_unknown_task(self, risk_engine_client):
        response = await risk_engine_client.post("/api/v1/verification/tasks/missing/completed")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    @pytest.mark.asyncio
    async def test_request_documents(self, risk_engine_client, documentation_task):
        response = await risk_engine_client.post(
            f"/api/v1/verification/tasks/{documentation_task.id}/request-documents"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["status"] == "sent"

    @pytest.mark.asyncio
    async def test_request_documents_conflict(self, risk_engine_client, repository, documentation_task):
        repository.tasks[documentation_task.id] = documentation_task.model_copy(
            update={"status": TaskStatus.COMPLETED}
        )

        response = await risk_engine_client.post(
            f"/api/v1/verification/tasks/{documentation_task.id}/request-documents"
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["error_code"] == "InvalidTaskTransition"

    @pytest.mark.asyncio
    async def test_remind(self, risk_engine_client, documentation_task):
        response = await risk_engine_client.post(
            f"/api/v1/verification/tasks/{documentation_task.id}/remind"
        )

        data = response.json()
        assert data["status"] == "overdue"
        assert data["reminder_count"] == 1

    @pytest.mark.asyncio
    async def test_overdue_sweep(self, risk_engine_client, repository, documentation_task):
        response = await risk_engine_client.post("/api/v1/verification/tasks/overdue-sweep")

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["updated"] == 1
        assert repository.tasks[documentation_task.id].status == TaskStatus.OVERDUE

    @pytest.mark.asyncio
    async def test_document_analysis(self, risk_engine_client, documentation_task):
        response = await risk_engine_client.post(
            f"/api/v1/verification/tasks/{documentation_task.id}/document-analysis",
            json={
                "is_valid": False,
                "is_expired": True,
                "expiration_date": "2025-06-30",
                "compliance_flags": [
                    {"flag_type": "Unsigned", "severity": "critical", "description": "No signature."}
                ],
            },
        )

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [t["title"] for t in data["tasks"]] == [
            "CRITICAL: Unsigned",
            "Submit Updated Document (Expired)",
        ]
        assert data["alerts"][0]["severity"] == "critical"
