#!/usr/bin/env python3
"""
Database Initialization Script
==============================

Create the SupplyLens schema and verify the event backend.

Usage:
    python scripts/init_databases.py
    python scripts/init_databases.py --postgres-only
    python scripts/init_databases.py --kafka-only
    python scripts/init_databases.py --seed

Version: 0.1.0
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from shared.logging import get_logger, setup_logging

setup_logging(log_level="INFO", json_logs=False, service_name="init-db")
logger = get_logger(__name__)

INIT_SQL = Path(__file__).parent.parent / "infrastructure" / "docker" / "postgres" / "init.sql"


async def init_postgres() -> bool:
    """Create the supplylens schema and tables."""
    from sqlalchemy import text

    from shared.database.postgres import PostgresClient

    logger.info("postgres_init_started", sql=str(INIT_SQL))

    try:
        engine = PostgresClient.get_engine()
        async with engine.begin() as conn:
            sql = INIT_SQL.read_text()
            for statement in sql.split(";"):
                lines = [line for line in statement.splitlines() if not line.strip().startswith("--")]
                stmt = "\n".join(lines).strip()
                if stmt:
                    await conn.execute(text(stmt))

            result = await conn.execute(text("SELECT version()"))
            version = result.scalar()
            logger.info("postgres_connected", version=version[:50])

        logger.info("postgres_initialized")
        return True

    except Exception as e:
        logger.error("postgres_init_failed", error=str(e))
        return False


async def init_kafka() -> bool:
    """Verify the Kafka connection used for engine events."""
    from shared.database.kafka import KafkaClient

    logger.info("kafka_init_started")

    try:
        health = await KafkaClient.health_check()
        if health.get("status") == "healthy":
            logger.info("kafka_connected", brokers=health["brokers"])
            return True

        logger.error("kafka_health_check_failed", error=health.get("error"))
        return False

    except Exception as e:
        logger.error("kafka_init_failed", error=str(e))
        return False
    finally:
        await KafkaClient.close()


async def seed_data() -> bool:
    """Seed a demo supplier with one site and a completed questionnaire."""
    from services.risk_engine.models import (
        FacilityType,
        QuestionnaireType,
        Site,
        Supplier,
        Task,
        TaskStatus,
        TaskType,
    )
    from services.risk_engine.repository import PostgresRiskRepository
    from shared.database import postgres_session
    from sqlalchemy import text

    logger.info("seed_started")

    supplier = Supplier(
        id="demo-supplier-1",
        legal_name="Demo Textiles Ltd",
        country="Bangladesh",
        nace_code="C14.1",
        city="Dhaka",
    )
    site = Site(
        id="demo-site-1",
        supplier_id=supplier.id,
        country="Bangladesh",
        facility_type=FacilityType.FACTORY,
        certifications=["SA8000"],
    )
    questionnaire = Task(
        id="demo-questionnaire-1",
        supplier_id=supplier.id,
        task_type=TaskType.QUESTIONNAIRE,
        title="Human rights self-assessment",
        status=TaskStatus.COMPLETED,
        questionnaire_type=QuestionnaireType.HUMAN_RIGHTS,
        responses={"no_child_labor": "yes", "living_wage": "no"},
    )

    try:
        async with postgres_session() as session:
            await session.execute(
                text("""
                    INSERT INTO suppliers (id, legal_name, country, nace_code, city)
                    VALUES (:id, :legal_name, :country, :nace_code, :city)
                    ON CONFLICT (id) DO NOTHING
                """),
                supplier.model_dump(include={"id", "legal_name", "country", "nace_code", "city"}),
            )
            await session.execute(
                text("""
                    INSERT INTO supplier_sites (id, supplier_id, country, facility_type, certifications)
                    VALUES (:id, :supplier_id, :country, :facility_type, :certifications)
                    ON CONFLICT (id) DO NOTHING
                """),
                {
                    "id": site.id,
                    "supplier_id": site.supplier_id,
                    "country": site.country,
                    "facility_type": FacilityType.FACTORY.value,
                    "certifications": site.certifications,
                },
            )

        repository = PostgresRiskRepository()
        existing = {t.id for t in await repository.list_tasks(supplier.id)}
        if questionnaire.id not in existing:
            await repository.create_task(questionnaire)

        logger.info("seed_completed", supplier_id=supplier.id)
        return True

    except Exception as e:
        logger.error("seed_failed", error=str(e))
        return False


async def main(args: argparse.Namespace) -> int:
    """Main initialization function."""
    logger.info("supplylens_init_started")

    results = {}

    try:
        if args.all or args.postgres_only:
            results["PostgreSQL"] = await init_postgres()

        if args.all or args.kafka_only:
            results["Kafka"] = await init_kafka()

        if args.seed:
            results["Seed Data"] = await seed_data()
    finally:
        from shared.database.postgres import PostgresClient

        await PostgresClient.close()

    failed = [name for name, success in results.items() if not success]
    for name, success in results.items():
        logger.info("init_step_result", step=name, ok=success)

    if failed:
        logger.error("supplylens_init_failed", failed=failed)
        return 1

    logger.info("supplylens_init_completed")
    return 0


def parse_args() -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        description="Initialize SupplyLens databases",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--postgres-only",
        action="store_true",
        help="Initialize only PostgreSQL",
    )
    parser.add_argument(
        "--kafka-only",
        action="store_true",
        help="Verify only Kafka",
    )
    parser.add_argument(
        "--seed",
        action="store_true",
        help="Seed a demo supplier",
    )

    args = parser.parse_args()

    # If no specific backend is selected, init all
    args.all = not (args.postgres_only or args.kafka_only)

    return args


if __name__ == "__main__":
    args = parse_args()
    exit_code = asyncio.run(main(args))
    sys.exit(exit_code)
