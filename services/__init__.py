"""
SupplyLens Services
===================

Backend services for the SupplyLens supplier due-diligence platform.

Services:
- risk_engine: supplier risk scoring, risk alerts and verification cascades
"""

__all__ = [
    "risk_engine",
]
