"""
Document Follow-Ups
===================

Creates follow-up tasks from the structured analysis of an uploaded
supplier document. The analysis itself (extraction, authenticity checks)
is produced elsewhere and arrives as a ``DocumentAnalysis``.

Follow-Up Rules (only when the document is not valid):
- Each critical compliance flag: documentation task due in 7 days plus
  a critical alert
- Missing information: documentation task due in 14 days
- Inconsistencies: verification task due in 10 days
- Expired document: documentation task due in 7 days

Version: 0.1.0
"""

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum

from pydantic import BaseModel, Field

from services.risk_engine.models import (
    Alert,
    AlertSeverity,
    AlertSource,
    Task,
    TaskType,
)


class FlagSeverity(str, Enum):
    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class RecommendedAction(str, Enum):
    ACCEPT = "accept"
    REQUEST_CLARIFICATION = "request_clarification"
    REQUEST_RESUBMISSION = "request_resubmission"
    ESCALATE = "escalate"


class AuthenticityCheck(BaseModel):
    has_official_stamps: bool | None = None
    has_signatures: bool | None = None
    appears_authentic: bool | None = None


class ComplianceFlag(BaseModel):
    """One issue found in a document."""

    flag_type: str
    severity: FlagSeverity = FlagSeverity.INFO
    description: str = ""
    recommendation: str = ""


class DocumentAnalysis(BaseModel):
    """Structured result of a document compliance analysis."""

    is_valid: bool
    confidence_score: float | None = Field(default=None, ge=0, le=100)
    authenticity_check: AuthenticityCheck | None = None
    completeness_score: float | None = Field(default=None, ge=0, le=100)
    expiration_date: str | None = None
    is_expired: bool = False
    compliance_flags: list[ComplianceFlag] = Field(default_factory=list)
    missing_information: list[str] = Field(default_factory=list)
    inconsistencies: list[str] = Field(default_factory=list)
    overall_assessment: str | None = None
    recommended_action: RecommendedAction | None = None


@dataclass
class FollowUps:
    tasks: list[Task] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)


def _bullets(items: list[str]) -> str:
    return "\n".join(f"• {item}" for item in items)


class FollowUpGenerator:
    """Derives follow-up tasks and alerts from a document analysis."""

    critical_flag_due_days = 7
    missing_information_due_days = 14
    inconsistency_due_days = 10
    expired_due_days = 7

    def generate(
        self,
        analysis: DocumentAnalysis,
        original: Task,
        now: datetime | None = None,
    ) -> FollowUps:
        """
        Build follow-ups for the task the document was uploaded against.

        Args:
            analysis: Document analysis result
            original: Task the document belongs to
            now: Reference time for due dates

        Returns:
            FollowUps with tasks and alerts to persist (empty when valid)
        """
        follow_ups = FollowUps()
        if analysis.is_valid:
            return follow_ups

        today = (now or datetime.now(UTC)).date()

        def new_task(task_type: TaskType, title: str, description: str, due_days: int, documents: list[str] | None = None) -> Task:
            return Task(
                supplier_id=original.supplier_id,
                task_type=task_type,
                title=title,
                description=description,
                due_date=today + timedelta(days=due_days),
                required_documents=documents or [],
                triggered_by=original.id,
            )

        for flag in analysis.compliance_flags:
            if flag.severity != FlagSeverity.CRITICAL:
                continue
            follow_ups.tasks.append(
                new_task(
                    TaskType.DOCUMENTATION,
                    f"CRITICAL: {flag.flag_type}",
                    f"{flag.description}\n\nRecommendation: {flag.recommendation}",
                    self.critical_flag_due_days,
                )
            )
            follow_ups.alerts.append(
                Alert(
                    supplier_id=original.supplier_id,
                    alert_type="compliance",
                    severity=AlertSeverity.CRITICAL,
                    title=f"Document Compliance Issue: {flag.flag_type}",
                    description=flag.description,
                    source=AlertSource.DOCUMENT_ANALYSIS,
                )
            )

        if analysis.missing_information:
            follow_ups.tasks.append(
                new_task(
                    TaskType.DOCUMENTATION,
                    "Request Missing Document Information",
                    "The submitted document is incomplete. Missing information:\n"
                    + _bullets(analysis.missing_information),
                    self.missing_information_due_days,
                    ["Updated document with complete information"],
                )
            )

        if analysis.inconsistencies:
            follow_ups.tasks.append(
                new_task(
                    TaskType.VERIFICATION,
                    "Clarify Document Inconsistencies",
                    "Inconsistencies detected:\n"
                    + _bullets(analysis.inconsistencies)
                    + "\n\nPlease provide clarification.",
                    self.inconsistency_due_days,
                )
            )

        if analysis.is_expired:
            expired_on = analysis.expiration_date or "an unknown date"
            follow_ups.tasks.append(
                new_task(
                    TaskType.DOCUMENTATION,
                    "Submit Updated Document (Expired)",
                    f"The submitted document expired on {expired_on}. Please submit a current version.",
                    self.expired_due_days,
                    ["Updated non-expired document"],
                )
            )

        return follow_ups
