"""
Risk Engine Models
==================

Pydantic models for the records the engine reads and writes.

Models:
- Supplier, Site: scored entities and their facilities
- Task: questionnaires and cascaded verification tasks
- Alert: risk alerts
- QuestionnaireResponses: typed, normalised questionnaire answers

Version: 0.1.0
"""

from services.risk_engine.models.alert import (
    Alert,
    AlertSeverity,
    AlertSource,
    AlertStatus,
)
from services.risk_engine.models.questionnaire import (
    QUESTION_KEYS,
    Answer,
    QuestionnaireResponses,
    QuestionnaireType,
    normalize_answer,
    parse_responses,
)
from services.risk_engine.models.supplier import (
    Dimension,
    FacilityType,
    RiskLevel,
    Site,
    Supplier,
)
from services.risk_engine.models.task import (
    Task,
    TaskSeverity,
    TaskStatus,
    TaskType,
    TaskWorkflow,
)

__all__ = [
    # Supplier
    "Supplier",
    "Site",
    "Dimension",
    "FacilityType",
    "RiskLevel",
    # Task
    "Task",
    "TaskType",
    "TaskStatus",
    "TaskSeverity",
    "TaskWorkflow",
    # Alert
    "Alert",
    "AlertSeverity",
    "AlertSource",
    "AlertStatus",
    # Questionnaire
    "QuestionnaireType",
    "QuestionnaireResponses",
    "Answer",
    "QUESTION_KEYS",
    "normalize_answer",
    "parse_responses",
]
