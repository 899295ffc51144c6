"""
Logging Module
==============

Structured logging using structlog with JSON output for production
and colored console output for development.

Usage:
    from shared.logging import get_logger, log_context, setup_logging

    # Setup at application start
    setup_logging(service_name="risk-engine")

    # Get logger for a module
    logger = get_logger(__name__)

    # Log with context
    logger.info("risk_recomputed", supplier_id="sup-1", score=42)

    with log_context(batch_id=batch_id):
        logger.info("batch_started")
"""

from shared.logging.logger import (
    get_logger,
    log_context,
    setup_logging,
)


__all__ = [
    "get_logger",
    "setup_logging",
    "log_context",
]
