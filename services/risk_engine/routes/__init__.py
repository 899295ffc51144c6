"""
Risk Engine Routes
==================

API route handlers for the Risk & Verification Engine.
"""

from services.risk_engine.routes import risk, verification


__all__ = ["risk", "verification"]
