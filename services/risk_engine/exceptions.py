"""
Engine Exceptions
=================

Error taxonomy for the risk & verification engine.

Version: 0.1.0
"""

from typing import Any


class RiskEngineError(Exception):
    """Base error for the risk engine."""

    def __init__(self, message: str, **context: Any) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class NotFound(RiskEngineError):
    """A referenced supplier, task or site does not exist."""

    def __init__(self, kind: str, identifier: str) -> None:
        super().__init__(f"{kind} not found: {identifier}", kind=kind, identifier=identifier)
        self.kind = kind
        self.identifier = identifier


class InvalidRule(RiskEngineError):
    """A rule or table entry is malformed and cannot be loaded."""


class ExternalCheckUnavailable(RiskEngineError):
    """An automated verification dependency failed or timed out."""


class ComputeInvariantViolation(RiskEngineError):
    """A computed score left [0, 100] before clamping (table or weight bug)."""


class InvalidTaskTransition(RiskEngineError):
    """A task status change is not allowed by the task workflow."""


class StaleEntity(RiskEngineError):
    """The supplier changed underneath a read-modify-write cycle."""
