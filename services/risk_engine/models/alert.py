"""
Alert Models
============

Risk alerts raised by the alert generator and the verification engine.

Version: 0.1.0
"""

import uuid
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AlertSeverity(str, Enum):
    """Alert severity levels."""

    INFO = "info"
    WARNING = "warning"
    CRITICAL = "critical"


class AlertStatus(str, Enum):
    """Alert review status."""

    OPEN = "open"
    ACKNOWLEDGED = "acknowledged"
    RESOLVED = "resolved"
    DISMISSED = "dismissed"


class AlertSource(str, Enum):
    """Engine component that raised an alert."""

    RISK_ENGINE = "Risk Engine"
    VERIFICATION_ENGINE = "Verification Engine"
    DOCUMENT_ANALYSIS = "Document Analysis"


class Alert(BaseModel):
    """
    A supplier risk alert.

    Immutable once created apart from ``status``, which reviewers change
    outside the engine.
    """

    model_config = ConfigDict(from_attributes=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    supplier_id: str
    alert_type: str
    severity: AlertSeverity
    title: str
    description: str
    source: AlertSource
    status: AlertStatus = AlertStatus.OPEN
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
