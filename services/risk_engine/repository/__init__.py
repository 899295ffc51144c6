"""
Risk Engine Repositories
========================

Storage implementations behind the ``RiskRepository`` interface.
"""

from services.risk_engine.repository.base import RiskRepository
from services.risk_engine.repository.memory import InMemoryRiskRepository
from services.risk_engine.repository.postgres import PostgresRiskRepository

__all__ = [
    "RiskRepository",
    "InMemoryRiskRepository",
    "PostgresRiskRepository",
]
