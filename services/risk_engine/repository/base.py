"""
Risk Repository Interface
=========================

Storage boundary for suppliers, sites, tasks and alerts.

Version: 0.1.0
"""

from abc import ABC, abstractmethod

from services.risk_engine.models import Alert, Site, Supplier, Task


class RiskRepository(ABC):
    """
    Persistence operations the engine depends on.

    Supplier risk writes are optimistic: ``update_supplier_risk`` only
    succeeds when the stored version still equals ``expected_version``
    and bumps the version on success.
    """

    # ---------------------------------------------------------------- reads

    @abstractmethod
    async def get_supplier(self, supplier_id: str) -> Supplier:
        """Raises NotFound if the supplier does not exist."""

    @abstractmethod
    async def list_suppliers(self) -> list[Supplier]:
        ...

    @abstractmethod
    async def list_sites(self, supplier_id: str) -> list[Site]:
        ...

    @abstractmethod
    async def list_all_sites(self) -> list[Site]:
        ...

    @abstractmethod
    async def list_tasks(self, supplier_id: str | None = None) -> list[Task]:
        """Tasks of one supplier, or of every supplier when None."""

    @abstractmethod
    async def get_task(self, task_id: str) -> Task:
        """Raises NotFound if the task does not exist."""

    @abstractmethod
    async def list_alerts(self, supplier_id: str) -> list[Alert]:
        ...

    # --------------------------------------------------------------- writes

    @abstractmethod
    async def update_supplier_risk(self, supplier: Supplier, expected_version: int) -> Supplier:
        """
        Persist risk fields of a supplier.

        Returns:
            The stored supplier with its new version

        Raises:
            NotFound: If the supplier does not exist
            StaleEntity: If the stored version differs from expected_version
        """

    @abstractmethod
    async def update_site_risk(self, site_id: str, site_risk_score: int) -> None:
        ...

    @abstractmethod
    async def create_task(self, task: Task) -> Task:
        ...

    @abstractmethod
    async def update_task(self, task: Task) -> Task:
        """Raises NotFound if the task does not exist."""

    @abstractmethod
    async def create_alert(self, alert: Alert) -> Alert:
        ...

    async def close(self) -> None:
        """Release storage resources."""
