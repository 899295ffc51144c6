"""
Verification Rule Engine
========================

Turns a completed questionnaire into concrete verification work.

Each ``(category, response_key)`` rule lists one or more verification
specs. When an answer matches the rule's trigger value, every spec is
materialised as a pending task linked to the assessment. Critical specs
also raise an alert straight away.

The engine does no I/O: persistence and dispatch of automated checks
belong to the orchestrator.

Version: 0.1.0
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from services.risk_engine.models.alert import Alert, AlertSeverity, AlertSource
from services.risk_engine.models.questionnaire import Answer, parse_responses
from services.risk_engine.models.task import Task, TaskSeverity, TaskStatus
from services.risk_engine.tables import RuleTable, VerificationRule, VerificationSpec
from shared.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class TriggeredVerification:
    """One verification spec fired by one questionnaire answer."""

    task: Task
    spec: VerificationSpec
    rule: VerificationRule
    response_key: str
    answer: Answer
    alert: Alert | None = None

    @property
    def is_automated(self) -> bool:
        """Whether the task should be handed to the verification simulator."""
        return self.spec.is_automated


class VerificationRuleEngine:
    """Evaluates completed questionnaires against the rule table."""

    def __init__(self, rules: RuleTable) -> None:
        self.rules = rules

    def evaluate(
        self,
        assessment: Task,
        now: datetime | None = None,
    ) -> list[TriggeredVerification]:
        """
        Materialise the verifications triggered by an assessment.

        Args:
            assessment: Completed questionnaire task
            now: Reference time for due dates (defaults to current UTC time)

        Returns:
            Triggered verifications in response order, then spec order
        """
        if not assessment.is_completed_questionnaire:
            return []

        now = now or datetime.now(UTC)
        responses = parse_responses(assessment.questionnaire_type, assessment.responses)

        triggered: list[TriggeredVerification] = []
        for response_key, answer in responses.items():
            rule = self.rules.get(responses.category, response_key)
            if rule is None or not rule.matches(answer):
                continue

            for spec in rule.verifications:
                task = self._build_task(assessment, spec, response_key, answer, now)
                alert = self._critical_alert(assessment, spec) if spec.severity == TaskSeverity.CRITICAL else None
                triggered.append(
                    TriggeredVerification(
                        task=task,
                        spec=spec,
                        rule=rule,
                        response_key=response_key,
                        answer=answer,
                        alert=alert,
                    )
                )

        logger.info(
            "verification_rules_evaluated",
            assessment_id=assessment.id,
            supplier_id=assessment.supplier_id,
            category=responses.category.value,
            triggered=len(triggered),
        )
        return triggered

    def _build_task(
        self,
        assessment: Task,
        spec: VerificationSpec,
        response_key: str,
        answer: Answer,
        now: datetime,
    ) -> Task:
        category = assessment.questionnaire_type.value
        return Task(
            supplier_id=assessment.supplier_id,
            task_type=spec.task_type,
            title=spec.title,
            description=spec.description,
            status=TaskStatus.PENDING,
            verification_type=spec.verification_type,
            required_documents=list(spec.required_documents),
            severity=spec.severity,
            triggered_by=assessment.id,
            due_date=now.date() + timedelta(days=spec.due_days),
            notes=(
                f"Auto-triggered by {category} questionnaire response: "
                f"{response_key} = {answer.value}"
            ),
            created_at=now,
            updated_at=now,
        )

    def _critical_alert(self, assessment: Task, spec: VerificationSpec) -> Alert:
        return Alert(
            supplier_id=assessment.supplier_id,
            alert_type="human_rights",
            severity=AlertSeverity.CRITICAL,
            title=f"Critical Verification Required: {spec.title}",
            description=(
                "Questionnaire response triggered critical verification workflow. "
                "Immediate action required."
            ),
            source=AlertSource.VERIFICATION_ENGINE,
        )
