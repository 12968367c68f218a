"""Construction and JSON encoding of accountability change events."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from enum import Enum
from typing import Any, Dict
import json

from ..core.identifiers import random_token
from ..core.types import AccountabilityEvent, LegislativeBody, PublicOfficial

INGESTION_SOURCE = "congress.gov"


def partition_key(official: PublicOfficial, body: LegislativeBody) -> str:
    """Route every event for one official in one chamber to the same partition."""

    return f"{official.uuid}::{body.chamber.value.lower()}"


def build_event(body: LegislativeBody, official: PublicOfficial, captured_at: datetime) -> AccountabilityEvent:
    return AccountabilityEvent(
        uuid=random_token(),
        source_id=official.source_id,
        captured_at=captured_at,
        ingestion_source=INGESTION_SOURCE,
        partition_key=partition_key(official, body),
        legislative_body=body,
        public_official=official,
    )


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.name
    if isinstance(value, dict):
        return {key: _jsonable(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(item) for item in value]
    return value


def event_to_dict(event: AccountabilityEvent) -> Dict[str, Any]:
    return _jsonable(asdict(event))


def serialize_event(event: AccountabilityEvent) -> bytes:
    return json.dumps(event_to_dict(event), ensure_ascii=False, separators=(",", ":")).encode("utf8")


__all__ = ["INGESTION_SOURCE", "build_event", "event_to_dict", "partition_key", "serialize_event"]
