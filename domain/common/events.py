"""
Domain event base.

Dataclass events record business facts raised by aggregates. The persistence
layer converts each one into an outbox row in the same transaction as the
state change that produced it. Domain remains free of infrastructure imports.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field, fields
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class DomainEvent:
    event_id: uuid.UUID = field(default_factory=uuid.uuid4, kw_only=True)
    occurred_on: datetime = field(default_factory=lambda: datetime.now(timezone.utc), kw_only=True)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_payload(self) -> dict[str, Any]:
        """JSON-safe representation used as outbox content."""
        payload: dict[str, Any] = {}
        for f in fields(self):
            value = getattr(self, f.name)
            if isinstance(value, uuid.UUID):
                value = str(value)
            elif isinstance(value, datetime):
                value = value.isoformat()
            payload[f.name] = value
        return payload
