"""
Task Models
===========

Onboarding tasks: questionnaires (assessments) and the verification /
remediation work items cascaded from them.

Lifecycle:
1. pending -> sent (documents requested)
2. sent / pending -> in_progress -> completed
3. completed / in_progress -> verified | failed
4. any open state -> overdue once the due date passes
5. anything -> archived (tasks are never deleted)

Version: 0.1.0
"""

import uuid
from dataclasses import dataclass, field
from datetime import UTC, date, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from services.risk_engine.exceptions import InvalidTaskTransition
from services.risk_engine.models.questionnaire import QuestionnaireType


class TaskType(str, Enum):
    """Kinds of onboarding tasks."""

    QUESTIONNAIRE = "questionnaire"
    DOCUMENTATION = "documentation"
    VERIFICATION = "verification"
    DATABASE_CHECK = "database_check"
    TEST_REPORT_REQUEST = "test_report_request"
    AUDIT_REQUEST = "audit_request"


class TaskStatus(str, Enum):
    """Task lifecycle status."""

    PENDING = "pending"
    SENT = "sent"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    VERIFIED = "verified"
    FAILED = "failed"
    OVERDUE = "overdue"
    ARCHIVED = "archived"


class TaskSeverity(str, Enum):
    """Escalation marker carried by verification specs."""

    NORMAL = "normal"
    CRITICAL = "critical"


@dataclass
class TaskWorkflow:
    """Task status state machine."""

    transitions: dict[TaskStatus, frozenset[TaskStatus]] = field(
        default_factory=lambda: {
            TaskStatus.PENDING: frozenset({
                TaskStatus.SENT,
                TaskStatus.IN_PROGRESS,
                TaskStatus.COMPLETED,
                TaskStatus.OVERDUE,
                TaskStatus.ARCHIVED,
            }),
            TaskStatus.SENT: frozenset({
                TaskStatus.IN_PROGRESS,
                TaskStatus.COMPLETED,
                TaskStatus.OVERDUE,
                TaskStatus.ARCHIVED,
            }),
            TaskStatus.IN_PROGRESS: frozenset({
                TaskStatus.COMPLETED,
                TaskStatus.VERIFIED,
                TaskStatus.FAILED,
                TaskStatus.OVERDUE,
                TaskStatus.ARCHIVED,
            }),
            TaskStatus.OVERDUE: frozenset({
                TaskStatus.SENT,
                TaskStatus.IN_PROGRESS,
                TaskStatus.COMPLETED,
                TaskStatus.ARCHIVED,
            }),
            TaskStatus.COMPLETED: frozenset({
                TaskStatus.VERIFIED,
                TaskStatus.FAILED,
                TaskStatus.ARCHIVED,
            }),
            TaskStatus.VERIFIED: frozenset({TaskStatus.ARCHIVED}),
            TaskStatus.FAILED: frozenset({TaskStatus.ARCHIVED}),
            TaskStatus.ARCHIVED: frozenset(),
        }
    )

    def can_transition(self, current: TaskStatus, target: TaskStatus) -> bool:
        """Check if transition is valid."""
        return target in self.transitions.get(current, frozenset())

    def is_open(self, status: TaskStatus) -> bool:
        """Whether a task in this status can still become overdue."""
        return self.can_transition(status, TaskStatus.OVERDUE)

    def transition(self, task: "Task", target: TaskStatus) -> "Task":
        """
        Return a copy of ``task`` moved to ``target``.

        Raises:
            InvalidTaskTransition: If the workflow does not allow the move
        """
        if not self.can_transition(task.status, target):
            raise InvalidTaskTransition(
                f"Task {task.id} cannot move from {task.status.value} to {target.value}",
                task_id=task.id,
                current=task.status.value,
                target=target.value,
            )
        return task.model_copy(update={"status": target, "updated_at": datetime.now(UTC)})


class Task(BaseModel):
    """An onboarding task (questionnaire, check, document or audit request)."""

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    supplier_id: str
    task_type: TaskType
    title: str = ""
    description: str = ""
    status: TaskStatus = TaskStatus.PENDING

    # Questionnaire payload
    questionnaire_type: QuestionnaireType | None = None
    responses: dict[str, Any] | None = None

    # Verification payload
    verification_type: str | None = None
    verification_result: dict[str, Any] | None = None
    required_documents: list[str] = Field(default_factory=list)
    severity: TaskSeverity = TaskSeverity.NORMAL

    # Provenance
    triggered_by: str | None = None
    notes: str | None = None

    due_date: date | None = None
    sent_at: datetime | None = None
    completed_at: datetime | None = None
    reminder_count: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @property
    def is_completed_questionnaire(self) -> bool:
        return (
            self.task_type == TaskType.QUESTIONNAIRE
            and self.status == TaskStatus.COMPLETED
            and self.questionnaire_type is not None
            and bool(self.responses)
        )
