"""
Engine Events
=============

Outbound events emitted by the risk engine and the publishers that
deliver them.

Events:
- entity.risk_recomputed: supplier risk changed
- alert.created: a new risk alert was persisted
- task.created: a verification or follow-up task was persisted
- task.verification_completed: an automated check finished
- task.documents_requested: a document request should be sent
- task.reminder_sent: a task reminder should be sent

Publishers:
- InMemoryEventOutbox: records events for tests and embedding
- KafkaEventPublisher: JSON messages on a Kafka topic

Version: 0.1.0
"""

import asyncio
import uuid
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field

from shared.config import EventBackend, Settings
from shared.database import KafkaClient
from shared.logging import get_logger


logger = get_logger(__name__)


class EventName(str, Enum):
    """Engine event names."""

    RISK_RECOMPUTED = "entity.risk_recomputed"
    ALERT_CREATED = "alert.created"
    TASK_CREATED = "task.created"
    VERIFICATION_COMPLETED = "task.verification_completed"
    DOCUMENTS_REQUESTED = "task.documents_requested"
    REMINDER_SENT = "task.reminder_sent"


class EngineEvent(BaseModel):
    """An event envelope."""

    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    name: EventName
    supplier_id: str
    payload: dict[str, Any] = Field(default_factory=dict)
    occurred_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class EventPublisher(ABC):
    """Delivers engine events to interested collaborators."""

    @abstractmethod
    async def publish(self, event: EngineEvent) -> None:
        """Deliver one event."""

    async def emit(self, name: EventName, supplier_id: str, **payload: Any) -> EngineEvent:
        """Build and publish an event."""
        event = EngineEvent(name=name, supplier_id=supplier_id, payload=payload)
        await self.publish(event)
        return event

    async def close(self) -> None:
        """Release publisher resources."""


class InMemoryEventOutbox(EventPublisher):
    """Keeps every published event in memory, in publish order."""

    def __init__(self) -> None:
        self.events: list[EngineEvent] = []
        self._lock = asyncio.Lock()

    async def publish(self, event: EngineEvent) -> None:
        async with self._lock:
            self.events.append(event)
        logger.debug("event_recorded", event_name=event.name.value, supplier_id=event.supplier_id)

    def named(self, name: EventName) -> list[EngineEvent]:
        """Events with the given name."""
        return [e for e in self.events if e.name == name]

    def clear(self) -> None:
        self.events.clear()


class KafkaEventPublisher(EventPublisher):
    """
    Publishes events as JSON to a Kafka topic.

    Messages are keyed by supplier id so a supplier's events stay ordered
    within a partition. Delivery failures are logged and not raised; the
    engine's own writes are already committed at that point.
    """

    def __init__(self, topic: str) -> None:
        self.topic = topic

    async def publish(self, event: EngineEvent) -> None:
        try:
            await KafkaClient.publish(
                topic=self.topic,
                value=event.model_dump(mode="json"),
                key=event.supplier_id,
                headers={"event_name": event.name.value},
            )
        except Exception as e:
            logger.error(
                "kafka_publish_failed",
                event_name=event.name.value,
                supplier_id=event.supplier_id,
                error=str(e),
            )

    async def close(self) -> None:
        await KafkaClient.close()


def build_publisher(settings: Settings) -> EventPublisher:
    """Create the publisher selected by ``RISK_EVENT_BACKEND``."""
    if settings.risk.event_backend == EventBackend.KAFKA:
        logger.info("event_publisher_configured", backend="kafka", topic=settings.risk.event_topic)
        return KafkaEventPublisher(settings.risk.event_topic)
    logger.info("event_publisher_configured", backend="memory")
    return InMemoryEventOutbox()
