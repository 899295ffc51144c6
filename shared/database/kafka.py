"""
Kafka Client
============

Async Kafka producer used to publish engine events to downstream
consumers (notifications, dashboards).

Version: 0.1.0
"""

import json
import time
from typing import Any

from aiokafka import AIOKafkaProducer

from shared.config import settings
from shared.logging import get_logger

logger = get_logger(__name__)


class KafkaClient:
    """
    Async Kafka producer wrapper.

    Manages the producer lifecycle; one producer is shared per process.
    """

    _producer: AIOKafkaProducer | None = None

    @classmethod
    async def get_producer(cls) -> AIOKafkaProducer:
        """Get or create the async producer."""
        if cls._producer is None:
            cls._producer = AIOKafkaProducer(
                bootstrap_servers=settings.kafka.bootstrap_servers,
                security_protocol=settings.kafka.security_protocol,
                key_serializer=lambda k: k.encode("utf-8") if k and isinstance(k, str) else k,
                compression_type="gzip",
                acks="all",
                enable_idempotence=True,
            )
            await cls._producer.start()
            logger.info(
                "kafka_producer_created",
                bootstrap_servers=settings.kafka.bootstrap_servers,
            )
        return cls._producer

    @classmethod
    async def close(cls) -> None:
        """Close the producer."""
        if cls._producer is not None:
            await cls._producer.stop()
            cls._producer = None
            logger.info("kafka_producer_closed")

    @classmethod
    async def health_check(cls) -> dict[str, Any]:
        """
        Check Kafka health.

        Returns:
            dict with status and cluster info
        """
        try:
            start = time.perf_counter()
            producer = await cls.get_producer()

            metadata = await producer.client.fetch_all_metadata()
            latency_ms = (time.perf_counter() - start) * 1000

            return {
                "status": "healthy",
                "latency_ms": round(latency_ms, 2),
                "brokers": len(metadata.brokers()),
            }
        except Exception as e:
            logger.error("kafka_health_check_failed", error=str(e))
            return {
                "status": "unhealthy",
                "error": str(e),
            }

    @classmethod
    async def publish(
        cls,
        topic: str,
        value: dict[str, Any],
        key: str | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """
        Publish a JSON message to a topic.

        Args:
            topic: Topic name
            value: JSON-serialisable message body
            key: Optional message key for partitioning
            headers: Optional message headers
        """
        producer = await cls.get_producer()

        kafka_headers = None
        if headers:
            kafka_headers = [(k, v.encode("utf-8")) for k, v in headers.items()]

        await producer.send_and_wait(
            topic,
            value=json.dumps(value, default=str).encode("utf-8"),
            key=key,
            headers=kafka_headers,
        )

        logger.debug(
            "kafka_message_published",
            topic=topic,
            key=key,
        )
