"""
Shared Models
=============

Pydantic models shared across SupplyLens services.
"""

from shared.models.common import ErrorResponse, HealthResponse


__all__ = [
    "ErrorResponse",
    "HealthResponse",
]
