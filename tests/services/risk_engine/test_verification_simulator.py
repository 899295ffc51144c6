"""
Verification Simulator Tests
============================

Tests for automated checks, registry clients and verification handles.

Version: 0.1.0
"""

import asyncio
from datetime import UTC, datetime

import pytest

from services.risk_engine.events import EventName
from services.risk_engine.exceptions import ExternalCheckUnavailable
from services.risk_engine.models import AlertSeverity, Task, TaskStatus, TaskType
from services.risk_engine.services.verification import (
    VERIFICATION_TYPES,
    SimulatedRegistryClient,
    VerificationSimulator,
    is_adverse,
)


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def simulator(repository, outbox, stub_registry) -> VerificationSimulator:
    return VerificationSimulator(repository, outbox, stub_registry, timeout_seconds=0.5)


@pytest.fixture
def screening_task(repository) -> Task:
    task = Task(
        supplier_id="sup-1",
        task_type=TaskType.DATABASE_CHECK,
        title="Sanctions & Watchlist Screening",
        verification_type="sanctions_screening",
    )
    repository.tasks[task.id] = task
    return task


# =============================================================================
# Adverse Result Tests
# =============================================================================


class TestIsAdverse:
    """Tests for adverse result detection."""

    @pytest.mark.parametrize(
        "result",
        [
            {"matches_found": 2},
            {"deforestation_detected": True},
            {"risk_level": "HIGH"},
            {"unverified": ["ISO 14001"]},
        ],
    )
    def test_adverse(self, result):
        assert is_adverse(result)

    @pytest.mark.parametrize(
        "result",
        [
            {"matches_found": 0, "risk_level": "LOW"},
            {"deforestation_detected": False, "forest_loss_hectares": 0},
            {"unverified": []},
            {"installation_found": True},
        ],
    )
    def test_not_adverse(self, result):
        assert not is_adverse(result)


# =============================================================================
# Simulated Registry Tests
# =============================================================================


class TestSimulatedRegistryClient:
    """Tests for the probabilistic registry stand-in."""

    @pytest.mark.asyncio
    async def test_seeded_results_are_reproducible(self, supplier):
        first = SimulatedRegistryClient(seed=7)
        second = SimulatedRegistryClient(seed=7)

        for verification_type in sorted(VERIFICATION_TYPES):
            a = await first.check(verification_type, supplier)
            b = await second.check(verification_type, supplier)
            a.pop("verified_at")
            b.pop("verified_at")
            assert a == b

    @pytest.mark.asyncio
    async def test_sanctions_payload_is_consistent(self, supplier):
        client = SimulatedRegistryClient(seed=1)

        for _ in range(20):
            result = await client.check("sanctions_screening", supplier)
            if result["matches_found"]:
                assert result["risk_level"] == "HIGH"
                assert result["match_details"]
            else:
                assert result["risk_level"] == "LOW"
                assert result["match_details"] == []

    @pytest.mark.asyncio
    async def test_deforestation_uses_supplier_country(self, supplier):
        result = await SimulatedRegistryClient(seed=3).check("deforestation_satellite", supplier)
        assert result["region_analyzed"] == "China"
        assert "verified_at" in result

    @pytest.mark.asyncio
    async def test_unknown_type_raises(self, supplier):
        with pytest.raises(ExternalCheckUnavailable):
            await SimulatedRegistryClient().check("tea_leaf_reading", supplier)


# =============================================================================
# Simulator Tests
# =============================================================================


class TestVerificationSimulator:
    """Tests for running checks and persisting outcomes."""

    @pytest.mark.asyncio
    async def test_clean_check_verifies_task(self, simulator, repository, outbox, screening_task, supplier):
        outcome = await simulator.run(screening_task, supplier)

        assert outcome.passed
        assert outcome.alert is None
        stored = repository.tasks[screening_task.id]
        assert stored.status == TaskStatus.VERIFIED
        assert stored.verification_result == {"matches_found": 0, "recommendation": "No issues found."}
        assert stored.completed_at is not None

        completed = outbox.named(EventName.VERIFICATION_COMPLETED)
        assert len(completed) == 1
        assert completed[0].payload["passed"] is True
        assert completed[0].payload["unavailable"] is False

    @pytest.mark.asyncio
    async def test_high_risk_match_raises_critical_alert(
        self, simulator, repository, stub_registry, screening_task, supplier
    ):
        stub_registry.results["sanctions_screening"] = {
            "matches_found": 1,
            "risk_level": "HIGH",
            "recommendation": "CRITICAL: Potential sanctions match detected.",
        }
        outcome = await simulator.run(screening_task, supplier)

        assert not outcome.passed
        assert repository.tasks[screening_task.id].status == TaskStatus.FAILED
        assert outcome.alert is not None
        assert outcome.alert.severity == AlertSeverity.CRITICAL
        assert outcome.alert.title == "Verification Alert: sanctions screening"
        assert outcome.alert.description == "CRITICAL: Potential sanctions match detected."
        assert outcome.alert.id in repository.alerts

    @pytest.mark.asyncio
    async def test_unverified_certification_is_warning(self, simulator, repository, stub_registry, supplier):
        task = Task(
            supplier_id="sup-1",
            task_type=TaskType.DATABASE_CHECK,
            title="Certification Verification",
            verification_type="certification_check",
        )
        repository.tasks[task.id] = task
        stub_registry.results["certification_check"] = {"unverified": ["ISO 14001"]}

        outcome = await simulator.run(task, supplier)

        assert outcome.alert is not None
        assert outcome.alert.severity == AlertSeverity.WARNING

    @pytest.mark.asyncio
    async def test_timeout_marks_check_unavailable(
        self, repository, outbox, stub_registry, screening_task, supplier
    ):
        stub_registry.delay = 1.0
        simulator = VerificationSimulator(repository, outbox, stub_registry, timeout_seconds=0.01)

        outcome = await simulator.run(screening_task, supplier)

        assert outcome.unavailable
        assert not outcome.passed
        assert outcome.result["check_unavailable"] is True
        assert "timed out" in outcome.result["error"]
        assert repository.tasks[screening_task.id].status == TaskStatus.FAILED
        assert outcome.alert is not None
        assert outcome.alert.title.startswith("Verification Unavailable")

    @pytest.mark.asyncio
    async def test_client_error_marks_check_unavailable(
        self, simulator, outbox, stub_registry, screening_task, supplier
    ):
        stub_registry.error = ExternalCheckUnavailable("Registry offline")

        outcome = await simulator.run(screening_task, supplier)

        assert outcome.unavailable
        assert outcome.result == {"error": "Registry offline", "check_unavailable": True}
        assert outbox.named(EventName.VERIFICATION_COMPLETED)[0].payload["unavailable"] is True

    @pytest.mark.asyncio
    async def test_unexpected_error_marks_check_unavailable(
        self, simulator, stub_registry, screening_task, supplier
    ):
        stub_registry.error = RuntimeError("boom")

        outcome = await simulator.run(screening_task, supplier)

        assert outcome.unavailable
        assert outcome.result["error"] == "RuntimeError: boom"


class TestConcurrentTaskChanges:
    """Tests for task changes made while a check is in flight."""

    @staticmethod
    async def _set_status_mid_check(repository, task_id, status):
        await asyncio.sleep(0.01)
        assert repository.tasks[task_id].status == TaskStatus.IN_PROGRESS
        repository.tasks[task_id] = repository.tasks[task_id].model_copy(update={"status": status})

    @pytest.mark.asyncio
    async def test_reviewer_failure_is_kept(
        self, simulator, repository, outbox, stub_registry, screening_task, supplier
    ):
        stub_registry.delay = 0.05
        handle = simulator.dispatch(screening_task, supplier)
        await self._set_status_mid_check(repository, screening_task.id, TaskStatus.FAILED)

        outcome = await handle.wait()

        assert outcome.skipped
        assert not outcome.passed
        stored = repository.tasks[screening_task.id]
        assert stored.status == TaskStatus.FAILED
        assert stored.verification_result is None
        assert repository.alerts == {}
        assert outbox.named(EventName.VERIFICATION_COMPLETED) == []

    @pytest.mark.asyncio
    async def test_overdue_mark_is_kept(self, simulator, repository, stub_registry, screening_task, supplier):
        stub_registry.delay = 0.05
        handle = simulator.dispatch(screening_task, supplier)
        await self._set_status_mid_check(repository, screening_task.id, TaskStatus.OVERDUE)

        await simulator.drain()

        assert handle.result().skipped
        assert repository.tasks[screening_task.id].status == TaskStatus.OVERDUE

    @pytest.mark.asyncio
    async def test_terminal_task_is_not_checked(self, simulator, repository, stub_registry, screening_task, supplier):
        repository.tasks[screening_task.id] = screening_task.model_copy(update={"status": TaskStatus.ARCHIVED})

        outcome = await simulator.run(screening_task, supplier)

        assert outcome.skipped
        assert stub_registry.calls == []
        assert repository.tasks[screening_task.id].status == TaskStatus.ARCHIVED

    @pytest.mark.asyncio
    async def test_stored_fields_survive_the_check(self, simulator, repository, screening_task, supplier):
        sent_at = datetime(2026, 3, 1, 8, 0, tzinfo=UTC)
        repository.tasks[screening_task.id] = screening_task.model_copy(update={"sent_at": sent_at})

        outcome = await simulator.run(screening_task, supplier)

        assert outcome.passed
        stored = repository.tasks[screening_task.id]
        assert stored.status == TaskStatus.VERIFIED
        assert stored.sent_at == sent_at


class TestVerificationHandle:
    """Tests for background dispatch."""

    @pytest.mark.asyncio
    async def test_dispatch_and_wait(self, simulator, screening_task, supplier):
        handle = simulator.dispatch(screening_task, supplier)

        assert handle.task_id == screening_task.id
        assert handle.verification_type == "sanctions_screening"

        outcome = await handle.wait()
        assert handle.done()
        assert handle.result() is outcome
        assert outcome.passed

    @pytest.mark.asyncio
    async def test_done_callback(self, simulator, screening_task, supplier):
        finished = asyncio.Event()
        seen = []

        def on_done(handle):
            seen.append(handle.task_id)
            finished.set()

        handle = simulator.dispatch(screening_task, supplier)
        handle.add_done_callback(on_done)

        await asyncio.wait_for(finished.wait(), timeout=1.0)
        assert seen == [screening_task.id]

    @pytest.mark.asyncio
    async def test_cancelled_waiter_does_not_cancel_check(
        self, simulator, stub_registry, screening_task, supplier
    ):
        stub_registry.delay = 0.05
        handle = simulator.dispatch(screening_task, supplier)

        with pytest.raises(asyncio.TimeoutError):
            await asyncio.wait_for(handle.wait(), timeout=0.001)

        await simulator.drain()
        assert handle.done()
        assert handle.result().passed

    @pytest.mark.asyncio
    async def test_drain_waits_for_all(self, simulator, repository, stub_registry, supplier):
        stub_registry.delay = 0.01
        handles = []
        for _ in range(3):
            task = Task(
                supplier_id="sup-1",
                task_type=TaskType.DATABASE_CHECK,
                title="PFAS check",
                verification_type="pfas_database",
            )
            repository.tasks[task.id] = task
            handles.append(simulator.dispatch(task, supplier))

        await simulator.drain()

        assert all(h.done() for h in handles)
        assert len(stub_registry.calls) == 3
