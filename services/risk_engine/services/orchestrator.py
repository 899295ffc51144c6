"""
Risk Orchestration
==================

Drives the engine end to end: recomputes supplier risk, cascades
verification work from completed questionnaires, and runs the task
housekeeping operations.

Operations:
- recompute_one: score one supplier under its lock and persist the result
- recompute_all: refresh site risk, then recompute every supplier on a
  bounded worker pool
- on_assessment_completed: evaluate verification rules and dispatch
  automated checks
- mark_overdue / request_documents / send_reminder: task lifecycle
- on_document_analyzed: follow-ups from a document analysis

Concurrency:
Writes for one supplier are serialised by an in-process lock; the
optimistic ``version`` check on the supplier row catches writers in
other processes. Different suppliers are processed in parallel.

Version: 0.1.0
"""

import asyncio
import time
import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime

from services.risk_engine.events import EventName, EventPublisher
from services.risk_engine.exceptions import RiskEngineError
from services.risk_engine.models import (
    Alert,
    RiskLevel,
    Task,
    TaskStatus,
    TaskWorkflow,
)
from services.risk_engine.repository import RiskRepository
from services.risk_engine.services.aggregator import ScoreAggregator
from services.risk_engine.services.alerts import AlertGenerator, RiskState
from services.risk_engine.services.dimensions import (
    DimensionCalculator,
    DimensionScores,
    data_completeness,
)
from services.risk_engine.services.follow_up import (
    DocumentAnalysis,
    FollowUpGenerator,
    FollowUps,
)
from services.risk_engine.services.rules import VerificationRuleEngine
from services.risk_engine.services.verification import (
    RegistryClient,
    SimulatedRegistryClient,
    VerificationHandle,
    VerificationSimulator,
)
from services.risk_engine.tables import RiskEngineConfig, default_risk_config
from shared.config import RiskEngineSettings
from shared.logging import get_logger, log_context


logger = get_logger(__name__)


# =============================================================================
# Results & Context
# =============================================================================


@dataclass(frozen=True)
class RiskDelta:
    """Before/after view of one supplier recompute."""

    supplier_id: str
    previous_score: int | None
    new_score: int
    previous_level: RiskLevel | None
    new_level: RiskLevel
    dimensions: DimensionScores
    data_completeness: int
    alerts: list[Alert] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.previous_score != self.new_score or self.previous_level != self.new_level


@dataclass(frozen=True)
class BatchFailure:
    supplier_id: str
    error: str
    error_type: str


@dataclass
class BatchResult:
    """Summary of a full recompute run."""

    suppliers_updated: int = 0
    sites_updated: int = 0
    alerts_created: int = 0
    failures: list[BatchFailure] = field(default_factory=list)
    cancelled: bool = False
    skipped: int = 0


@dataclass
class BatchContext:
    """
    Cancellation controls for a batch run.

    Both the deadline and the stop event are checked before a worker
    picks up the next supplier, never during a supplier recompute.
    """

    deadline: float | None = None
    stop_event: asyncio.Event = field(default_factory=asyncio.Event)

    @classmethod
    def with_timeout(cls, seconds: float | None) -> "BatchContext":
        """Context whose deadline is ``seconds`` from now (None: no deadline)."""
        return cls(deadline=None if seconds is None else time.monotonic() + seconds)

    def cancel(self) -> None:
        self.stop_event.set()

    def should_stop(self) -> bool:
        if self.stop_event.is_set():
            return True
        return self.deadline is not None and time.monotonic() >= self.deadline


@dataclass
class CascadeResult:
    """Everything produced by one completed assessment."""

    assessment_id: str
    tasks: list[Task] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)
    handles: list[VerificationHandle] = field(default_factory=list)
    delta: RiskDelta | None = None


class EntityLockRegistry:
    """
    One asyncio lock per entity id.

    A lock exists only while someone holds or waits for it, so the
    registry does not grow with the number of suppliers ever seen.
    """

    def __init__(self) -> None:
        self._locks: dict[str, asyncio.Lock] = {}
        self._holders: dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, entity_id: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(entity_id, asyncio.Lock())
        self._holders[entity_id] = self._holders.get(entity_id, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[entity_id] -= 1
            if not self._holders[entity_id]:
                del self._holders[entity_id]
                del self._locks[entity_id]

    def __len__(self) -> int:
        return len(self._locks)


# =============================================================================
# Orchestrator
# =============================================================================


class RiskOrchestrator:
    """
    Coordinates the risk engine services over a repository.

    Usage:
        orchestrator = RiskOrchestrator(repository, publisher)
        delta = await orchestrator.recompute_one("sup-1")
        batch = await orchestrator.recompute_all()
    """

    def __init__(
        self,
        repository: RiskRepository,
        publisher: EventPublisher,
        config: RiskEngineConfig | None = None,
        registry_client: RegistryClient | None = None,
        max_concurrency: int = 8,
        verification_timeout_seconds: float = 30.0,
        recompute_after_assessment: bool = True,
        strict_invariants: bool = False,
        batch_deadline_seconds: float | None = None,
    ) -> None:
        self.repository = repository
        self.publisher = publisher
        self.config = config or default_risk_config()
        self.max_concurrency = max(1, max_concurrency)
        self.recompute_after_assessment = recompute_after_assessment
        self.batch_deadline_seconds = batch_deadline_seconds

        self.workflow = TaskWorkflow()
        self.locks = EntityLockRegistry()
        self.calculator = DimensionCalculator(self.config.tables)
        self.aggregator = ScoreAggregator(
            self.config.weights,
            self.config.thresholds,
            strict=strict_invariants,
        )
        self.alert_generator = AlertGenerator(self.config.alert_thresholds)
        self.rule_engine = VerificationRuleEngine(self.config.rules)
        self.follow_ups = FollowUpGenerator()
        self.verifier = VerificationSimulator(
            repository,
            publisher,
            registry_client or SimulatedRegistryClient(),
            timeout_seconds=verification_timeout_seconds,
            workflow=self.workflow,
        )

    @classmethod
    def from_settings(
        cls,
        repository: RiskRepository,
        publisher: EventPublisher,
        risk_settings: RiskEngineSettings,
        config: RiskEngineConfig | None = None,
        registry_client: RegistryClient | None = None,
    ) -> "RiskOrchestrator":
        """Build an orchestrator from ``RISK_*`` settings."""
        if registry_client is None:
            registry_client = SimulatedRegistryClient(
                seed=risk_settings.simulator_seed,
                latency_seconds=risk_settings.simulated_latency_seconds,
            )
        return cls(
            repository,
            publisher,
            config=config,
            registry_client=registry_client,
            max_concurrency=risk_settings.max_concurrency,
            verification_timeout_seconds=risk_settings.verification_timeout_seconds,
            recompute_after_assessment=risk_settings.recompute_after_assessment,
            strict_invariants=risk_settings.strict_invariants,
            batch_deadline_seconds=risk_settings.batch_deadline_seconds,
        )

    # ------------------------------------------------------------------
    # Risk recompute
    # ------------------------------------------------------------------

    def risk_level(self, score: int) -> RiskLevel:
        """Level for an arbitrary score."""
        return self.aggregator.risk_level(score)

    async def recompute_one(self, supplier_id: str, now: datetime | None = None) -> RiskDelta:
        """
        Recompute and persist one supplier's risk.

        Raises:
            NotFound: If the supplier does not exist
            StaleEntity: If the supplier was modified concurrently elsewhere
            ComputeInvariantViolation: In strict mode only
        """
        now = now or datetime.now(UTC)

        async with self.locks.hold(supplier_id):
            supplier = await self.repository.get_supplier(supplier_id)
            sites = await self.repository.list_sites(supplier_id)
            tasks = await self.repository.list_tasks(supplier_id)

            dimensions = self.calculator.calculate(supplier, sites, tasks)
            score = self.aggregator.overall_score(dimensions)
            level = self.aggregator.risk_level(score)
            completeness = data_completeness(supplier)

            alerts = self.alert_generator.generate(
                supplier,
                RiskState(score=supplier.risk_score, level=supplier.risk_level),
                dimensions,
                score,
                level,
            )

            updated = supplier.model_copy(
                update={
                    **dimensions.as_fields(),
                    "risk_baselines": self.calculator.baselines(supplier),
                    "risk_score": score,
                    "risk_level": level,
                    "data_completeness": completeness,
                    "last_assessment_at": now,
                }
            )
            await self.repository.update_supplier_risk(updated, expected_version=supplier.version)

            for alert in alerts:
                await self.repository.create_alert(alert)

        for alert in alerts:
            await self.publisher.emit(
                EventName.ALERT_CREATED,
                supplier_id,
                alert=alert.model_dump(mode="json"),
            )
        await self.publisher.emit(
            EventName.RISK_RECOMPUTED,
            supplier_id,
            previous_score=supplier.risk_score,
            risk_score=score,
            previous_level=supplier.risk_level.value if supplier.risk_level else None,
            risk_level=level.value,
            dimensions=dimensions.as_fields(),
        )

        logger.info(
            "risk_recomputed",
            supplier_id=supplier_id,
            previous_score=supplier.risk_score,
            score=score,
            level=level.value,
            alerts=len(alerts),
        )

        return RiskDelta(
            supplier_id=supplier_id,
            previous_score=supplier.risk_score,
            new_score=score,
            previous_level=supplier.risk_level,
            new_level=level,
            dimensions=dimensions,
            data_completeness=completeness,
            alerts=alerts,
        )

    async def update_site_risks(self) -> int:
        """Persist site risk scores that changed; returns how many did."""
        updated = 0
        for site in await self.repository.list_all_sites():
            score = self.calculator.site_risk(site)
            if score != site.site_risk_score:
                await self.repository.update_site_risk(site.id, score)
                updated += 1
        return updated

    async def recompute_all(self, ctx: BatchContext | None = None) -> BatchResult:
        """
        Recompute every supplier.

        Per-supplier failures are recorded on the result and never abort
        the batch. When ``ctx`` stops the run, suppliers not yet started
        are counted as skipped.
        """
        ctx = ctx or BatchContext.with_timeout(self.batch_deadline_seconds)
        with log_context(batch_id=str(uuid.uuid4())):
            return await self._run_batch(ctx)

    async def _run_batch(self, ctx: BatchContext) -> BatchResult:
        started = time.perf_counter()

        result = BatchResult()
        result.sites_updated = await self.update_site_risks()

        queue: asyncio.Queue[str] = asyncio.Queue()
        for supplier in await self.repository.list_suppliers():
            queue.put_nowait(supplier.id)

        async def worker() -> None:
            while not queue.empty():
                if ctx.should_stop():
                    result.cancelled = True
                    return
                supplier_id = queue.get_nowait()
                try:
                    delta = await self.recompute_one(supplier_id)
                except RiskEngineError as e:
                    logger.warning(
                        "supplier_recompute_failed",
                        supplier_id=supplier_id,
                        error=e.message,
                        error_type=type(e).__name__,
                    )
                    result.failures.append(BatchFailure(supplier_id, e.message, type(e).__name__))
                except Exception as e:
                    logger.error(
                        "supplier_recompute_error",
                        supplier_id=supplier_id,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    result.failures.append(BatchFailure(supplier_id, str(e), type(e).__name__))
                else:
                    result.suppliers_updated += 1
                    result.alerts_created += len(delta.alerts)

        workers = min(self.max_concurrency, queue.qsize())
        await asyncio.gather(*(worker() for _ in range(workers)))
        result.skipped = queue.qsize()

        logger.info(
            "batch_recompute_finished",
            suppliers_updated=result.suppliers_updated,
            sites_updated=result.sites_updated,
            alerts_created=result.alerts_created,
            failures=len(result.failures),
            cancelled=result.cancelled,
            skipped=result.skipped,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        return result

    # ------------------------------------------------------------------
    # Verification cascade
    # ------------------------------------------------------------------

    async def on_assessment_completed(self, task_id: str, now: datetime | None = None) -> CascadeResult:
        """
        Cascade verification work from a completed questionnaire.

        Tasks that are not completed questionnaires produce an empty
        result.

        Raises:
            NotFound: If the task or its supplier does not exist
        """
        assessment = await self.repository.get_task(task_id)
        cascade = CascadeResult(assessment_id=task_id)

        if not assessment.is_completed_questionnaire:
            logger.info(
                "assessment_not_cascadable",
                task_id=task_id,
                task_type=assessment.task_type.value,
                status=assessment.status.value,
            )
            return cascade

        supplier = await self.repository.get_supplier(assessment.supplier_id)

        for triggered in self.rule_engine.evaluate(assessment, now):
            task = await self.repository.create_task(triggered.task)
            cascade.tasks.append(task)
            await self.publisher.emit(
                EventName.TASK_CREATED,
                supplier.id,
                task=task.model_dump(mode="json"),
            )

            if triggered.alert is not None:
                await self.repository.create_alert(triggered.alert)
                cascade.alerts.append(triggered.alert)
                await self.publisher.emit(
                    EventName.ALERT_CREATED,
                    supplier.id,
                    alert=triggered.alert.model_dump(mode="json"),
                )

            if triggered.is_automated:
                cascade.handles.append(self.verifier.dispatch(task, supplier))

        if self.recompute_after_assessment:
            cascade.delta = await self.recompute_one(supplier.id, now)

        logger.info(
            "assessment_cascaded",
            task_id=task_id,
            supplier_id=supplier.id,
            tasks=len(cascade.tasks),
            alerts=len(cascade.alerts),
            automated=len(cascade.handles),
        )
        return cascade

    async def drain_verifications(self) -> None:
        """Wait for every dispatched automated check."""
        await self.verifier.drain()

    # ------------------------------------------------------------------
    # Task lifecycle
    # ------------------------------------------------------------------

    async def mark_overdue(self, now: datetime | None = None) -> list[Task]:
        """Move open tasks past their due date to ``overdue``."""
        now = now or datetime.now(UTC)
        today = now.date()

        updated: list[Task] = []
        for task in await self.repository.list_tasks():
            if task.due_date is None or task.due_date >= today:
                continue
            if not self.workflow.is_open(task.status):
                continue
            overdue = self.workflow.transition(task, TaskStatus.OVERDUE)
            updated.append(await self.repository.update_task(overdue))

        if updated:
            logger.info("tasks_marked_overdue", count=len(updated))
        return updated

    async def request_documents(self, task_id: str, now: datetime | None = None) -> Task:
        """
        Mark a task as sent and ask the notifier to request its documents.

        Raises:
            NotFound: If the task does not exist
            InvalidTaskTransition: If the task cannot move to ``sent``
        """
        now = now or datetime.now(UTC)
        task = await self.repository.get_task(task_id)

        sent = self.workflow.transition(task, TaskStatus.SENT).model_copy(update={"sent_at": now})
        await self.repository.update_task(sent)

        await self.publisher.emit(
            EventName.DOCUMENTS_REQUESTED,
            sent.supplier_id,
            task_id=sent.id,
            title=sent.title,
            description=sent.description,
            documents=sent.required_documents,
            due_date=sent.due_date.isoformat() if sent.due_date else None,
        )
        logger.info(
            "documents_requested",
            task_id=sent.id,
            supplier_id=sent.supplier_id,
            documents=len(sent.required_documents),
        )
        return sent

    async def send_reminder(self, task_id: str, now: datetime | None = None) -> Task:
        """
        Record a reminder for a task, marking it overdue when past due.

        Raises:
            NotFound: If the task does not exist
        """
        now = now or datetime.now(UTC)
        task = await self.repository.get_task(task_id)

        overdue = task.due_date is not None and task.due_date < now.date()
        if overdue and self.workflow.is_open(task.status):
            task = self.workflow.transition(task, TaskStatus.OVERDUE)

        reminded = task.model_copy(
            update={"reminder_count": task.reminder_count + 1, "updated_at": now}
        )
        await self.repository.update_task(reminded)

        await self.publisher.emit(
            EventName.REMINDER_SENT,
            reminded.supplier_id,
            task_id=reminded.id,
            title=reminded.title,
            overdue=overdue,
            reminder_count=reminded.reminder_count,
            due_date=reminded.due_date.isoformat() if reminded.due_date else None,
        )
        logger.info(
            "task_reminder_sent",
            task_id=reminded.id,
            overdue=overdue,
            reminder_count=reminded.reminder_count,
        )
        return reminded

    async def on_document_analyzed(
        self,
        task_id: str,
        analysis: DocumentAnalysis,
        now: datetime | None = None,
    ) -> FollowUps:
        """
        Persist follow-ups for a document uploaded against a task.

        Raises:
            NotFound: If the task does not exist
        """
        original = await self.repository.get_task(task_id)
        follow_ups = self.follow_ups.generate(analysis, original, now)

        for task in follow_ups.tasks:
            await self.repository.create_task(task)
            await self.publisher.emit(
                EventName.TASK_CREATED,
                task.supplier_id,
                task=task.model_dump(mode="json"),
            )
        for alert in follow_ups.alerts:
            await self.repository.create_alert(alert)
            await self.publisher.emit(
                EventName.ALERT_CREATED,
                alert.supplier_id,
                alert=alert.model_dump(mode="json"),
            )

        logger.info(
            "document_follow_ups_created",
            task_id=task_id,
            valid=analysis.is_valid,
            tasks=len(follow_ups.tasks),
            alerts=len(follow_ups.alerts),
        )
        return follow_ups

    async def close(self) -> None:
        """Finish in-flight checks and release clients."""
        await self.verifier.drain()
        await self.verifier.client.close()
        await self.publisher.close()
