"""
In-Memory Risk Repository
=========================

Dictionary-backed repository for tests and embedded use. Records are
copied on the way in and out so callers never share mutable state with
the store.

Version: 0.1.0
"""

import asyncio
from datetime import UTC, datetime

from services.risk_engine.exceptions import NotFound, StaleEntity
from services.risk_engine.models import Alert, Site, Supplier, Task
from services.risk_engine.repository.base import RiskRepository


class InMemoryRiskRepository(RiskRepository):
    """Asyncio-safe in-memory store."""

    def __init__(
        self,
        suppliers: list[Supplier] | None = None,
        sites: list[Site] | None = None,
        tasks: list[Task] | None = None,
        alerts: list[Alert] | None = None,
    ) -> None:
        self.suppliers: dict[str, Supplier] = {s.id: s.model_copy(deep=True) for s in suppliers or []}
        self.sites: dict[str, Site] = {s.id: s.model_copy(deep=True) for s in sites or []}
        self.tasks: dict[str, Task] = {t.id: t.model_copy(deep=True) for t in tasks or []}
        self.alerts: dict[str, Alert] = {a.id: a.model_copy(deep=True) for a in alerts or []}
        self._lock = asyncio.Lock()

    # ---------------------------------------------------------------- reads

    async def get_supplier(self, supplier_id: str) -> Supplier:
        supplier = self.suppliers.get(supplier_id)
        if supplier is None:
            raise NotFound("supplier", supplier_id)
        return supplier.model_copy(deep=True)

    async def list_suppliers(self) -> list[Supplier]:
        return [s.model_copy(deep=True) for s in self.suppliers.values()]

    async def list_sites(self, supplier_id: str) -> list[Site]:
        return [s.model_copy(deep=True) for s in self.sites.values() if s.supplier_id == supplier_id]

    async def list_all_sites(self) -> list[Site]:
        return [s.model_copy(deep=True) for s in self.sites.values()]

    async def list_tasks(self, supplier_id: str | None = None) -> list[Task]:
        return [
            t.model_copy(deep=True)
            for t in self.tasks.values()
            if supplier_id is None or t.supplier_id == supplier_id
        ]

    async def get_task(self, task_id: str) -> Task:
        task = self.tasks.get(task_id)
        if task is None:
            raise NotFound("task", task_id)
        return task.model_copy(deep=True)

    async def list_alerts(self, supplier_id: str) -> list[Alert]:
        return [a.model_copy(deep=True) for a in self.alerts.values() if a.supplier_id == supplier_id]

    # --------------------------------------------------------------- writes

    async def update_supplier_risk(self, supplier: Supplier, expected_version: int) -> Supplier:
        async with self._lock:
            stored = self.suppliers.get(supplier.id)
            if stored is None:
                raise NotFound("supplier", supplier.id)
            if stored.version != expected_version:
                raise StaleEntity(
                    f"Supplier {supplier.id} changed concurrently",
                    supplier_id=supplier.id,
                    expected_version=expected_version,
                    actual_version=stored.version,
                )
            updated = supplier.model_copy(
                update={"version": expected_version + 1, "updated_at": datetime.now(UTC)},
                deep=True,
            )
            self.suppliers[supplier.id] = updated
            return updated.model_copy(deep=True)

    async def update_site_risk(self, site_id: str, site_risk_score: int) -> None:
        async with self._lock:
            site = self.sites.get(site_id)
            if site is None:
                raise NotFound("site", site_id)
            self.sites[site_id] = site.model_copy(update={"site_risk_score": site_risk_score})

    async def create_task(self, task: Task) -> Task:
        async with self._lock:
            self.tasks[task.id] = task.model_copy(deep=True)
        return task

    async def update_task(self, task: Task) -> Task:
        async with self._lock:
            if task.id not in self.tasks:
                raise NotFound("task", task.id)
            self.tasks[task.id] = task.model_copy(deep=True)
        return task

    async def create_alert(self, alert: Alert) -> Alert:
        async with self._lock:
            self.alerts[alert.id] = alert.model_copy(deep=True)
        return alert
