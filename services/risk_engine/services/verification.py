"""
Automated Verification
======================

Runs automated database checks for cascaded ``database_check`` tasks
and writes the findings back to the task.

Check Flow:
1. Task moves to ``in_progress``
2. Registry client looks up the supplier (bounded by a timeout)
3. Task moves to ``verified`` or ``failed`` with the raw result attached
4. Adverse or unavailable checks raise an alert

Checks run as background asyncio tasks. Callers get a
``VerificationHandle`` they may await, poll or ignore.

Version: 0.1.0
"""

import asyncio
import random
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime, timedelta
from typing import Any

import httpx
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from services.risk_engine.events import EventName, EventPublisher
from services.risk_engine.exceptions import ExternalCheckUnavailable
from services.risk_engine.models import (
    Alert,
    AlertSeverity,
    AlertSource,
    Supplier,
    Task,
    TaskStatus,
    TaskWorkflow,
)
from services.risk_engine.repository import RiskRepository
from shared.config import settings
from shared.logging import get_logger


logger = get_logger(__name__)


# Supported automated check types
PFAS_DATABASE = "pfas_database"
DEFORESTATION_SATELLITE = "deforestation_satellite"
EMISSIONS_REGISTRY = "emissions_registry"
SANCTIONS_SCREENING = "sanctions_screening"
CERTIFICATION_CHECK = "certification_check"

VERIFICATION_TYPES = frozenset({
    PFAS_DATABASE,
    DEFORESTATION_SATELLITE,
    EMISSIONS_REGISTRY,
    SANCTIONS_SCREENING,
    CERTIFICATION_CHECK,
})


def is_adverse(result: dict[str, Any]) -> bool:
    """
    Whether a check result needs attention.

    Adverse findings: any database matches, detected deforestation,
    a HIGH risk level, or certifications that could not be verified.
    """
    return bool(
        (result.get("matches_found") or 0) > 0
        or result.get("deforestation_detected")
        or result.get("risk_level") == "HIGH"
        or result.get("unverified")
    )


# =============================================================================
# Registry Clients
# =============================================================================


class RegistryClient(ABC):
    """Looks up a supplier in an external compliance registry."""

    @abstractmethod
    async def check(self, verification_type: str, supplier: Supplier) -> dict[str, Any]:
        """
        Run one check.

        Raises:
            ExternalCheckUnavailable: If the check type is unknown or the
                registry cannot answer
        """

    async def close(self) -> None:
        """Release client resources."""


class SimulatedRegistryClient(RegistryClient):
    """
    Probabilistic stand-in for the external registries.

    Each check draws one sample from a seeded generator and returns a
    consistent payload for it. Hit rates: PFAS matches 30%, deforestation
    20%, registry entry found 50%, sanctions match 10%, unverified
    certification 70%.
    """

    def __init__(self, seed: int | None = None, latency_seconds: float = 0.0) -> None:
        self._random = random.Random(seed)
        self._latency = latency_seconds
        self._builders: dict[str, Callable[[Supplier, bool], dict[str, Any]]] = {
            PFAS_DATABASE: self._pfas_database,
            DEFORESTATION_SATELLITE: self._deforestation_satellite,
            EMISSIONS_REGISTRY: self._emissions_registry,
            SANCTIONS_SCREENING: self._sanctions_screening,
            CERTIFICATION_CHECK: self._certification_check,
        }
        self._hit_threshold = {
            PFAS_DATABASE: 0.7,
            DEFORESTATION_SATELLITE: 0.8,
            EMISSIONS_REGISTRY: 0.5,
            SANCTIONS_SCREENING: 0.9,
            CERTIFICATION_CHECK: 0.3,
        }

    async def check(self, verification_type: str, supplier: Supplier) -> dict[str, Any]:
        builder = self._builders.get(verification_type)
        if builder is None:
            raise ExternalCheckUnavailable(
                f"Unknown verification type: {verification_type}",
                verification_type=verification_type,
            )

        if self._latency > 0:
            await asyncio.sleep(self._latency)

        hit = self._random.random() > self._hit_threshold[verification_type]
        result = builder(supplier, hit)
        result["verified_at"] = datetime.now(UTC).isoformat()
        return result

    def _pfas_database(self, supplier: Supplier, hit: bool) -> dict[str, Any]:
        return {
            "checked_databases": ["ECHA SVHC List", "EPA PFAS Master List", "REACH Registry"],
            "matches_found": 2 if hit else 0,
            "risk_substances": ["PFOA", "PFOS"] if hit else [],
            "recommendation": (
                "High-concern substances detected. Request detailed substance inventory."
                if hit
                else "No high-concern PFAS substances identified in databases."
            ),
        }

    def _deforestation_satellite(self, supplier: Supplier, hit: bool) -> dict[str, Any]:
        imagery_date = date.today() - timedelta(days=30)
        return {
            "analysis_provider": "Global Forest Watch",
            "region_analyzed": supplier.country,
            "deforestation_detected": hit,
            "forest_loss_hectares": round(self._random.random() * 500) if hit else 0,
            "confidence_level": "92%",
            "imagery_date": imagery_date.isoformat(),
            "recommendation": (
                "Potential deforestation activity detected. On-site verification recommended."
                if hit
                else "No significant deforestation activity detected in analyzed period."
            ),
        }

    def _emissions_registry(self, supplier: Supplier, hit: bool) -> dict[str, Any]:
        return {
            "checked_registries": ["EU ETS Registry", "National GHG Registries"],
            "installation_found": hit,
            "reported_emissions_tco2": round(self._random.random() * 50000) if hit else None,
            "verification_status": "Third-party verified" if hit else "Self-reported",
            "recommendation": (
                "Emissions data found in registry. Cross-reference with supplier declaration."
                if hit
                else "No registry entry found. Request direct emissions data."
            ),
        }

    def _sanctions_screening(self, supplier: Supplier, hit: bool) -> dict[str, Any]:
        return {
            "checked_lists": [
                "UFLPA Entity List",
                "UK Modern Slavery Registry",
                "OFAC SDN",
                "EU Sanctions List",
            ],
            "matches_found": 1 if hit else 0,
            "match_details": (
                ["Potential match on UFLPA Entity List - manual review required"] if hit else []
            ),
            "risk_level": "HIGH" if hit else "LOW",
            "recommendation": (
                "CRITICAL: Potential sanctions match detected. Halt engagement pending review."
                if hit
                else "No matches found on screened sanctions lists."
            ),
        }

    def _certification_check(self, supplier: Supplier, hit: bool) -> dict[str, Any]:
        return {
            "claimed_certifications": ["ISO 9001", "ISO 14001"],
            "verified_certifications": ["ISO 9001"] if hit else ["ISO 9001", "ISO 14001"],
            "unverified": ["ISO 14001"] if hit else [],
            "certification_bodies_checked": ["BSI", "TÜV", "SGS", "Bureau Veritas"],
            "recommendation": (
                "Some certifications could not be verified. Request certificate copies."
                if hit
                else "All claimed certifications verified."
            ),
        }


class HttpRegistryClient(RegistryClient):
    """
    Registry client for a compliance screening HTTP API.

    Calls ``POST {base_url}/checks/{verification_type}`` with the
    supplier's identifying data and returns the JSON body as the result.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
    ) -> None:
        self._base_url = base_url or settings.risk.registry_base_url
        self._api_key = api_key or settings.risk.registry_api_key.get_secret_value()
        self._timeout = timeout or settings.risk.verification_timeout_seconds

        headers = {"Accept": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"

        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=httpx.Timeout(self._timeout),
            headers=headers,
        )

        logger.debug("registry_client_initialized", base_url=self._base_url)

    async def check(self, verification_type: str, supplier: Supplier) -> dict[str, Any]:
        if verification_type not in VERIFICATION_TYPES:
            raise ExternalCheckUnavailable(
                f"Unknown verification type: {verification_type}",
                verification_type=verification_type,
            )

        try:
            return await self._post_check(verification_type, supplier)
        except httpx.HTTPStatusError as e:
            logger.error(
                "registry_http_error",
                verification_type=verification_type,
                status_code=e.response.status_code,
            )
            raise ExternalCheckUnavailable(
                f"Registry returned {e.response.status_code} for {verification_type}",
                verification_type=verification_type,
                status_code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise ExternalCheckUnavailable(
                f"Registry unreachable for {verification_type}: {e}",
                verification_type=verification_type,
            ) from e

    @retry(
        retry=retry_if_exception_type((httpx.ConnectError, httpx.TimeoutException)),
        stop=stop_after_attempt(settings.risk.registry_max_retries),
        wait=wait_exponential(multiplier=1, min=1, max=10),
        before_sleep=lambda retry_state: logger.warning(
            "registry_retry",
            attempt=retry_state.attempt_number,
        ),
        reraise=True,
    )
    async def _post_check(self, verification_type: str, supplier: Supplier) -> dict[str, Any]:
        response = await self._client.post(
            f"/checks/{verification_type}",
            json={
                "supplier_id": supplier.id,
                "legal_name": supplier.legal_name,
                "country": supplier.country,
                "vat_number": supplier.vat_number,
                "nace_code": supplier.nace_code,
            },
        )
        response.raise_for_status()
        return response.json()

    async def close(self) -> None:
        await self._client.aclose()


# =============================================================================
# Handles & Outcomes
# =============================================================================


@dataclass(frozen=True)
class VerificationOutcome:
    """Final state of one automated check."""

    task: Task
    passed: bool
    result: dict[str, Any]
    alert: Alert | None = None
    unavailable: bool = False
    # The stored task moved on while the check ran; nothing was written
    skipped: bool = False


class VerificationHandle:
    """
    Handle on a running automated check.

    Wraps the underlying ``asyncio.Task``; ``wait()`` shields it so a
    cancelled waiter does not cancel the check itself.
    """

    def __init__(self, task_id: str, verification_type: str, future: "asyncio.Task[VerificationOutcome]") -> None:
        self.task_id = task_id
        self.verification_type = verification_type
        self._future = future

    def done(self) -> bool:
        return self._future.done()

    async def wait(self) -> VerificationOutcome:
        return await asyncio.shield(self._future)

    def result(self) -> VerificationOutcome:
        """Outcome of a finished check; raises if still running."""
        return self._future.result()

    def add_done_callback(self, callback: Callable[["VerificationHandle"], None]) -> None:
        """Invoke ``callback(handle)`` once the check finishes."""
        self._future.add_done_callback(lambda _: callback(self))

    def __repr__(self) -> str:
        state = "done" if self.done() else "running"
        return f"<VerificationHandle task_id={self.task_id} type={self.verification_type} {state}>"


# =============================================================================
# Simulator
# =============================================================================


class VerificationSimulator:
    """Executes automated checks against a registry client."""

    def __init__(
        self,
        repository: RiskRepository,
        publisher: EventPublisher,
        client: RegistryClient,
        timeout_seconds: float = 30.0,
        workflow: TaskWorkflow | None = None,
    ) -> None:
        self.repository = repository
        self.publisher = publisher
        self.client = client
        self.timeout_seconds = timeout_seconds
        self.workflow = workflow or TaskWorkflow()
        self._running: set[asyncio.Task[VerificationOutcome]] = set()

    def dispatch(self, task: Task, supplier: Supplier) -> VerificationHandle:
        """Start a check in the background and return its handle."""
        future = asyncio.create_task(self.run(task, supplier), name=f"verification-{task.id}")
        self._running.add(future)
        future.add_done_callback(self._running.discard)
        future.add_done_callback(self._log_crash)

        logger.info(
            "verification_dispatched",
            task_id=task.id,
            supplier_id=supplier.id,
            verification_type=task.verification_type,
        )
        return VerificationHandle(task.id, task.verification_type or "", future)

    async def run(self, task: Task, supplier: Supplier) -> VerificationOutcome:
        """
        Run one check to completion and persist its outcome.

        Check failures never escape: they mark the task failed with a
        diagnostic result. Repository errors propagate.

        The stored task is re-read before each transition. If it was moved
        elsewhere in the meantime (reviewed, archived, marked overdue) the
        result is discarded and the stored task is left untouched.
        """
        verification_type = task.verification_type or ""

        task = await self.repository.get_task(task.id)
        if not self.workflow.can_transition(task.status, TaskStatus.IN_PROGRESS):
            return self._discard(task, verification_type, {}, stage="dispatch")

        task = self.workflow.transition(task, TaskStatus.IN_PROGRESS)
        await self.repository.update_task(task)

        unavailable = False
        try:
            result = await asyncio.wait_for(
                self.client.check(verification_type, supplier),
                timeout=self.timeout_seconds,
            )
        except asyncio.TimeoutError:
            unavailable = True
            result = {
                "error": f"Check timed out after {self.timeout_seconds}s",
                "check_unavailable": True,
            }
        except ExternalCheckUnavailable as e:
            unavailable = True
            result = {"error": e.message, "check_unavailable": True}
        except Exception as e:
            unavailable = True
            result = {"error": f"{type(e).__name__}: {e}", "check_unavailable": True}

        if unavailable:
            logger.warning(
                "verification_check_unavailable",
                task_id=task.id,
                verification_type=verification_type,
                error=result["error"],
            )

        task = await self.repository.get_task(task.id)
        if task.status != TaskStatus.IN_PROGRESS:
            return self._discard(task, verification_type, result, stage="completion")

        passed = not unavailable and not is_adverse(result)
        task = self.workflow.transition(task, TaskStatus.VERIFIED if passed else TaskStatus.FAILED)
        task = task.model_copy(update={
            "verification_result": result,
            "completed_at": datetime.now(UTC),
        })
        await self.repository.update_task(task)

        alert = None
        if unavailable:
            alert = self._unavailable_alert(task, verification_type, result["error"])
        elif not passed:
            alert = self._adverse_alert(task, verification_type, result)

        if alert is not None:
            await self.repository.create_alert(alert)
            await self.publisher.emit(
                EventName.ALERT_CREATED,
                task.supplier_id,
                alert=alert.model_dump(mode="json"),
            )

        await self.publisher.emit(
            EventName.VERIFICATION_COMPLETED,
            task.supplier_id,
            task_id=task.id,
            verification_type=verification_type,
            passed=passed,
            unavailable=unavailable,
        )

        logger.info(
            "verification_completed",
            task_id=task.id,
            supplier_id=task.supplier_id,
            verification_type=verification_type,
            passed=passed,
            unavailable=unavailable,
        )
        return VerificationOutcome(
            task=task,
            passed=passed,
            result=result,
            alert=alert,
            unavailable=unavailable,
        )

    async def drain(self) -> None:
        """Wait for every dispatched check to finish."""
        if self._running:
            await asyncio.gather(*list(self._running), return_exceptions=True)

    def _discard(
        self,
        task: Task,
        verification_type: str,
        result: dict[str, Any],
        stage: str,
    ) -> VerificationOutcome:
        logger.warning(
            "verification_result_discarded",
            task_id=task.id,
            supplier_id=task.supplier_id,
            verification_type=verification_type,
            status=task.status.value,
            stage=stage,
        )
        return VerificationOutcome(task=task, passed=False, result=result, skipped=True)

    def _adverse_alert(self, task: Task, verification_type: str, result: dict[str, Any]) -> Alert:
        severity = AlertSeverity.CRITICAL if result.get("risk_level") == "HIGH" else AlertSeverity.WARNING
        return Alert(
            supplier_id=task.supplier_id,
            alert_type="compliance",
            severity=severity,
            title=f"Verification Alert: {verification_type.replace('_', ' ')}",
            description=result.get("recommendation") or "Automated verification needs attention.",
            source=AlertSource.VERIFICATION_ENGINE,
        )

    def _unavailable_alert(self, task: Task, verification_type: str, error: str) -> Alert:
        return Alert(
            supplier_id=task.supplier_id,
            alert_type="compliance",
            severity=AlertSeverity.WARNING,
            title=f"Verification Unavailable: {verification_type.replace('_', ' ')}",
            description=f"Automated check could not be completed: {error}. Manual verification required.",
            source=AlertSource.VERIFICATION_ENGINE,
        )

    @staticmethod
    def _log_crash(future: "asyncio.Task[VerificationOutcome]") -> None:
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(
                "verification_crashed",
                task=future.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )
