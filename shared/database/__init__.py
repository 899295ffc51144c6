"""
Database Module
===============

Async clients for SupplyLens backing services.

Clients:
- PostgreSQL (asyncpg + SQLAlchemy)
- Kafka (aiokafka)

Usage:
    from shared.database import postgres_session

    async with postgres_session() as session:
        await session.execute(text("SELECT 1"))
"""

from shared.database.kafka import KafkaClient
from shared.database.postgres import (
    SCHEMA,
    PostgresClient,
    postgres_session,
)


__all__ = [
    # PostgreSQL
    "PostgresClient",
    "postgres_session",
    "SCHEMA",
    # Kafka
    "KafkaClient",
]
