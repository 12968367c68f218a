"""Change event publication."""
from __future__ import annotations

from .events import INGESTION_SOURCE, build_event, event_to_dict, partition_key, serialize_event
from .publisher import AccountabilityEventPublisher, create_producer, ensure_topic

__all__ = [
    "AccountabilityEventPublisher",
    "INGESTION_SOURCE",
    "build_event",
    "create_producer",
    "ensure_topic",
    "event_to_dict",
    "partition_key",
    "serialize_event",
]
