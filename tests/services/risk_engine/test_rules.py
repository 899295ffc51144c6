"""
Verification Rule Engine Tests
==============================

Tests for cascading verification tasks from questionnaire answers.

Version: 0.1.0
"""

from datetime import UTC, date, datetime

import pytest

from services.risk_engine.models import (
    AlertSeverity,
    AlertSource,
    QuestionnaireType,
    TaskSeverity,
    TaskStatus,
    TaskType,
)
from services.risk_engine.services.rules import VerificationRuleEngine


NOW = datetime(2026, 3, 2, 9, 30, tzinfo=UTC)


@pytest.fixture
def engine(risk_config) -> VerificationRuleEngine:
    return VerificationRuleEngine(risk_config.rules)


class TestRuleEvaluation:
    """Tests for rule matching and task materialisation."""

    def test_forced_labour_cascade(self, engine, make_questionnaire):
        assessment = make_questionnaire(
            QuestionnaireType.HUMAN_RIGHTS,
            {"no_forced_labor": "no", "living_wage": "yes"},
        )
        triggered = engine.evaluate(assessment, NOW)

        assert [t.task.task_type for t in triggered] == [TaskType.AUDIT_REQUEST, TaskType.DATABASE_CHECK]
        audit, screening = triggered

        assert audit.task.severity == TaskSeverity.CRITICAL
        assert audit.alert is not None
        assert audit.alert.severity == AlertSeverity.CRITICAL
        assert audit.alert.alert_type == "human_rights"
        assert audit.alert.source == AlertSource.VERIFICATION_ENGINE
        assert audit.alert.title == f"Critical Verification Required: {audit.task.title}"

        assert screening.alert is None
        assert screening.is_automated
        assert screening.task.verification_type == "sanctions_screening"

    def test_task_fields(self, engine, make_questionnaire):
        assessment = make_questionnaire(QuestionnaireType.HUMAN_RIGHTS, {"no_forced_labor": False})
        screening = engine.evaluate(assessment, NOW)[1].task

        assert screening.status == TaskStatus.PENDING
        assert screening.supplier_id == assessment.supplier_id
        assert screening.triggered_by == assessment.id
        assert screening.due_date == date(2026, 3, 3)
        assert screening.notes == (
            "Auto-triggered by human_rights questionnaire response: no_forced_labor = no"
        )

    def test_required_documents_copied(self, engine, make_questionnaire):
        assessment = make_questionnaire(QuestionnaireType.CHEMICAL_CONTENT, {"uses_pfas": "yes"})
        triggered = engine.evaluate(assessment, NOW)

        assert len(triggered) == 2
        lab_reports = triggered[1].task
        assert lab_reports.task_type == TaskType.TEST_REPORT_REQUEST
        assert "PFAS Lab Test Certificate" in lab_reports.required_documents
        assert lab_reports.due_date == date(2026, 3, 16)

    def test_boolean_answer_matches_yes_trigger(self, engine, make_questionnaire):
        as_bool = make_questionnaire(QuestionnaireType.CHEMICAL_CONTENT, {"uses_pfas": True})
        as_text = make_questionnaire(QuestionnaireType.CHEMICAL_CONTENT, {"uses_pfas": "Yes"})

        assert len(engine.evaluate(as_bool, NOW)) == len(engine.evaluate(as_text, NOW)) == 2

    def test_non_matching_answer(self, engine, make_questionnaire):
        assessment = make_questionnaire(QuestionnaireType.CHEMICAL_CONTENT, {"uses_pfas": "no"})
        assert engine.evaluate(assessment, NOW) == []

    def test_keys_without_rules(self, engine, make_questionnaire):
        assessment = make_questionnaire(
            QuestionnaireType.HUMAN_RIGHTS,
            {"freedom_of_association": "no", "unknown_question": "no"},
        )
        assert engine.evaluate(assessment, NOW) == []

    def test_incomplete_assessment_ignored(self, engine, make_questionnaire):
        assessment = make_questionnaire(
            QuestionnaireType.HUMAN_RIGHTS,
            {"no_child_labor": "no"},
            status=TaskStatus.IN_PROGRESS,
        )
        assert engine.evaluate(assessment, NOW) == []

    def test_category_without_rules(self, engine, make_questionnaire):
        assessment = make_questionnaire(QuestionnaireType.PACKAGING, {"recyclable_packaging": "no"})
        assert engine.evaluate(assessment, NOW) == []

    def test_response_order_preserved(self, engine, make_questionnaire):
        assessment = make_questionnaire(
            QuestionnaireType.HUMAN_RIGHTS,
            {"living_wage": "no", "no_child_labor": "no"},
        )
        triggered = engine.evaluate(assessment, NOW)

        assert [t.response_key for t in triggered] == ["living_wage", "no_child_labor"]

    def test_fresh_tasks_per_evaluation(self, engine, make_questionnaire):
        assessment = make_questionnaire(QuestionnaireType.HUMAN_RIGHTS, {"living_wage": "no"})
        first = engine.evaluate(assessment, NOW)
        second = engine.evaluate(assessment, NOW)

        assert first[0].task.id != second[0].task.id
