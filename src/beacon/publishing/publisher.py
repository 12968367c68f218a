"""Fire-and-forget publication of accountability events to Kafka."""

from __future__ import annotations

import logging
from typing import Any

from kafka import KafkaProducer
from kafka.admin import KafkaAdminClient, NewTopic
from kafka.errors import KafkaError, TopicAlreadyExistsError

from ..config.settings import KafkaConfig
from ..core.types import AccountabilityEvent
from .events import serialize_event

LOGGER = logging.getLogger(__name__)


class AccountabilityEventPublisher:
    """Send events keyed by partition key without waiting for acknowledgement."""

    def __init__(self, producer: Any, topic: str) -> None:
        self._producer = producer
        self._topic = topic

    @property
    def topic(self) -> str:
        return self._topic

    def publish(self, event: AccountabilityEvent) -> None:
        payload = serialize_event(event)
        future = self._producer.send(
            self._topic,
            key=event.partition_key.encode("utf8"),
            value=payload,
        )
        event_id = event.uuid

        def _on_success(metadata: Any) -> None:
            LOGGER.info(
                "Published accountability event %s to topic %s partition %s offset %s",
                event_id,
                metadata.topic,
                metadata.partition,
                metadata.offset,
            )

        def _on_failure(exc: BaseException) -> None:
            LOGGER.error("Failed to publish accountability event %s: %s", event_id, exc)

        future.add_callback(_on_success)
        future.add_errback(_on_failure)

    def close(self) -> None:
        self._producer.flush()
        self._producer.close()


def create_producer(config: KafkaConfig) -> KafkaProducer:
    return KafkaProducer(
        bootstrap_servers=[server.strip() for server in config.bootstrap_servers.split(",") if server.strip()],
        client_id=config.client_id,
        max_block_ms=config.max_block_ms,
    )


def ensure_topic(config: KafkaConfig) -> None:
    """Create the event topic with the configured partition count if it is missing."""

    try:
        admin = KafkaAdminClient(bootstrap_servers=config.bootstrap_servers, client_id=config.client_id)
    except KafkaError as exc:
        LOGGER.warning("Could not connect to Kafka to verify topic %s: %s", config.topic, exc)
        return
    try:
        admin.create_topics([NewTopic(name=config.topic, num_partitions=config.partitions, replication_factor=1)])
        LOGGER.info("Created topic %s with %s partitions", config.topic, config.partitions)
    except TopicAlreadyExistsError:
        LOGGER.debug("Topic %s already exists", config.topic)
    except KafkaError as exc:
        LOGGER.warning("Could not create topic %s: %s", config.topic, exc)
    finally:
        admin.close()


__all__ = ["AccountabilityEventPublisher", "create_producer", "ensure_topic"]
