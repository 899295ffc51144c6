"""
PostgreSQL Risk Repository
==========================

Repository over the ``supplylens`` schema using SQLAlchemy async
``text()`` statements.

Tables:
- suppliers: master data, risk dimensions, score, level, version
- supplier_sites: sites and their site risk score
- onboarding_tasks: questionnaires and cascaded verification tasks
- risk_alerts: alerts raised by the engine

Version: 0.1.0
"""

import json
from collections.abc import Callable
from contextlib import AbstractAsyncContextManager
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from services.risk_engine.exceptions import NotFound, StaleEntity
from services.risk_engine.models import Alert, Dimension, Site, Supplier, Task
from services.risk_engine.repository.base import RiskRepository
from shared.database import postgres_session
from shared.logging import get_logger


logger = get_logger(__name__)

SessionScope = Callable[[], AbstractAsyncContextManager[AsyncSession]]

_RISK_COLUMNS = [d.field for d in Dimension]

_TASK_COLUMNS = [
    "id", "supplier_id", "task_type", "title", "description", "status",
    "questionnaire_type", "responses", "verification_type", "verification_result",
    "required_documents", "severity", "triggered_by", "notes", "due_date",
    "sent_at", "completed_at", "reminder_count", "created_at", "updated_at",
]

_TASK_JSON_COLUMNS = {"responses", "verification_result"}


def _json_value(value: Any) -> Any:
    """asyncpg returns json/jsonb columns as text unless a codec is set."""
    if isinstance(value, str):
        return json.loads(value)
    return value


def _dump(value: Any) -> str | None:
    return None if value is None else json.dumps(value, default=str)


def _task_params(task: Task) -> dict[str, Any]:
    data = task.model_dump(mode="python")
    params: dict[str, Any] = {}
    for column in _TASK_COLUMNS:
        value = data[column]
        if column in _TASK_JSON_COLUMNS:
            value = _dump(value)
        elif hasattr(value, "value"):
            value = value.value
        params[column] = value
    return params


def _row_to_supplier(row: Any) -> Supplier:
    data = dict(row._mapping)
    data["id"] = str(data["id"])
    data["risk_baselines"] = _json_value(data.get("risk_baselines")) or {}
    return Supplier.model_validate(data)


def _row_to_site(row: Any) -> Site:
    data = dict(row._mapping)
    data["id"] = str(data["id"])
    data["supplier_id"] = str(data["supplier_id"])
    data["certifications"] = data.get("certifications") or []
    return Site.model_validate(data)


def _row_to_task(row: Any) -> Task:
    data = dict(row._mapping)
    data["id"] = str(data["id"])
    data["supplier_id"] = str(data["supplier_id"])
    if data.get("triggered_by") is not None:
        data["triggered_by"] = str(data["triggered_by"])
    for column in _TASK_JSON_COLUMNS:
        data[column] = _json_value(data.get(column))
    data["required_documents"] = data.get("required_documents") or []
    return Task.model_validate(data)


def _row_to_alert(row: Any) -> Alert:
    data = dict(row._mapping)
    data["id"] = str(data["id"])
    data["supplier_id"] = str(data["supplier_id"])
    return Alert.model_validate(data)


class PostgresRiskRepository(RiskRepository):
    """
    Repository backed by PostgreSQL.

    Every call runs in its own transaction obtained from ``session_scope``
    (``postgres_session`` by default).
    """

    def __init__(self, session_scope: SessionScope = postgres_session) -> None:
        self._session = session_scope

    # ---------------------------------------------------------------- reads

    async def get_supplier(self, supplier_id: str) -> Supplier:
        async with self._session() as session:
            result = await session.execute(
                text("SELECT * FROM suppliers WHERE id = :id"),
                {"id": supplier_id},
            )
            row = result.fetchone()
        if row is None:
            raise NotFound("supplier", supplier_id)
        return _row_to_supplier(row)

    async def list_suppliers(self) -> list[Supplier]:
        async with self._session() as session:
            result = await session.execute(text("SELECT * FROM suppliers ORDER BY id"))
            rows = result.fetchall()
        return [_row_to_supplier(row) for row in rows]

    async def list_sites(self, supplier_id: str) -> list[Site]:
        async with self._session() as session:
            result = await session.execute(
                text("SELECT * FROM supplier_sites WHERE supplier_id = :supplier_id ORDER BY id"),
                {"supplier_id": supplier_id},
            )
            rows = result.fetchall()
        return [_row_to_site(row) for row in rows]

    async def list_all_sites(self) -> list[Site]:
        async with self._session() as session:
            result = await session.execute(text("SELECT * FROM supplier_sites ORDER BY id"))
            rows = result.fetchall()
        return [_row_to_site(row) for row in rows]

    async def list_tasks(self, supplier_id: str | None = None) -> list[Task]:
        async with self._session() as session:
            result = await session.execute(
                text("""
                    SELECT * FROM onboarding_tasks
                    WHERE CAST(:supplier_id AS text) IS NULL OR supplier_id = :supplier_id
                    ORDER BY created_at
                """),
                {"supplier_id": supplier_id},
            )
            rows = result.fetchall()
        return [_row_to_task(row) for row in rows]

    async def get_task(self, task_id: str) -> Task:
        async with self._session() as session:
            result = await session.execute(
                text("SELECT * FROM onboarding_tasks WHERE id = :id"),
                {"id": task_id},
            )
            row = result.fetchone()
        if row is None:
            raise NotFound("task", task_id)
        return _row_to_task(row)

    async def list_alerts(self, supplier_id: str) -> list[Alert]:
        async with self._session() as session:
            result = await session.execute(
                text("SELECT * FROM risk_alerts WHERE supplier_id = :supplier_id ORDER BY created_at"),
                {"supplier_id": supplier_id},
            )
            rows = result.fetchall()
        return [_row_to_alert(row) for row in rows]

    # --------------------------------------------------------------- writes

    async def update_supplier_risk(self, supplier: Supplier, expected_version: int) -> Supplier:
        assignments = ",\n                ".join(f"{column} = :{column}" for column in _RISK_COLUMNS)
        query = text(f"""
            UPDATE suppliers
            SET {assignments},
                risk_baselines = CAST(:risk_baselines AS jsonb),
                risk_score = :risk_score,
                risk_level = :risk_level,
                data_completeness = :data_completeness,
                last_assessment_at = :last_assessment_at,
                updated_at = :updated_at,
                version = version + 1
            WHERE id = :id AND version = :expected_version
            RETURNING *
        """)

        params: dict[str, Any] = {column: getattr(supplier, column) for column in _RISK_COLUMNS}
        params.update({
            "id": supplier.id,
            "expected_version": expected_version,
            "risk_baselines": _dump(supplier.risk_baselines),
            "risk_score": supplier.risk_score,
            "risk_level": supplier.risk_level.value if supplier.risk_level else None,
            "data_completeness": supplier.data_completeness,
            "last_assessment_at": supplier.last_assessment_at,
            "updated_at": datetime.now(UTC),
        })

        async with self._session() as session:
            result = await session.execute(query, params)
            row = result.fetchone()
            if row is None:
                exists = await session.execute(
                    text("SELECT version FROM suppliers WHERE id = :id"),
                    {"id": supplier.id},
                )
                current = exists.scalar()

        if row is None:
            if current is None:
                raise NotFound("supplier", supplier.id)
            raise StaleEntity(
                f"Supplier {supplier.id} changed concurrently",
                supplier_id=supplier.id,
                expected_version=expected_version,
                actual_version=current,
            )
        return _row_to_supplier(row)

    async def update_site_risk(self, site_id: str, site_risk_score: int) -> None:
        async with self._session() as session:
            result = await session.execute(
                text("""
                    UPDATE supplier_sites
                    SET site_risk_score = :site_risk_score, updated_at = :updated_at
                    WHERE id = :id
                """),
                {"id": site_id, "site_risk_score": site_risk_score, "updated_at": datetime.now(UTC)},
            )
        if result.rowcount == 0:
            raise NotFound("site", site_id)

    async def create_task(self, task: Task) -> Task:
        columns = ", ".join(_TASK_COLUMNS)
        values = ", ".join(
            f"CAST(:{c} AS jsonb)" if c in _TASK_JSON_COLUMNS else f":{c}" for c in _TASK_COLUMNS
        )
        async with self._session() as session:
            await session.execute(
                text(f"INSERT INTO onboarding_tasks ({columns}) VALUES ({values})"),
                _task_params(task),
            )
        logger.debug("task_inserted", task_id=task.id, supplier_id=task.supplier_id)
        return task

    async def update_task(self, task: Task) -> Task:
        assignments = ", ".join(
            f"{c} = CAST(:{c} AS jsonb)" if c in _TASK_JSON_COLUMNS else f"{c} = :{c}"
            for c in _TASK_COLUMNS
            if c not in ("id", "supplier_id", "created_at")
        )
        async with self._session() as session:
            result = await session.execute(
                text(f"UPDATE onboarding_tasks SET {assignments} WHERE id = :id"),
                _task_params(task),
            )
        if result.rowcount == 0:
            raise NotFound("task", task.id)
        return task

    async def create_alert(self, alert: Alert) -> Alert:
        async with self._session() as session:
            await session.execute(
                text("""
                    INSERT INTO risk_alerts (
                        id, supplier_id, alert_type, severity, title,
                        description, source, status, created_at
                    ) VALUES (
                        :id, :supplier_id, :alert_type, :severity, :title,
                        :description, :source, :status, :created_at
                    )
                """),
                {
                    "id": alert.id,
                    "supplier_id": alert.supplier_id,
                    "alert_type": alert.alert_type,
                    "severity": alert.severity.value,
                    "title": alert.title,
                    "description": alert.description,
                    "source": alert.source.value,
                    "status": alert.status.value,
                    "created_at": alert.created_at,
                },
            )
        return alert
