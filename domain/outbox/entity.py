"""
Outbox message.
"""
from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from domain.common.entity import ensure_utc, utcnow
from domain.common.events import DomainEvent
from shared.ids import uuid7


@dataclass
class OutboxMessage:
    """Durable record of a domain event awaiting publication.

    Written in the same transaction as the state change that raised the
    event; afterwards only the outbox processor mutates it.
    """

    type: str
    content: str
    occurred_on: datetime
    id: uuid.UUID = field(default_factory=uuid7)
    processed_on: Optional[datetime] = None
    error: Optional[str] = None
    retry_count: int = 0

    def __post_init__(self) -> None:
        self.occurred_on = ensure_utc(self.occurred_on)  # type: ignore[assignment]
        self.processed_on = ensure_utc(self.processed_on)

    @classmethod
    def from_event(cls, event: DomainEvent) -> "OutboxMessage":
        return cls(
            type=event.event_type,
            content=json.dumps(event.to_payload(), separators=(",", ":"), ensure_ascii=False),
            occurred_on=event.occurred_on,
        )

    @property
    def is_processed(self) -> bool:
        return self.processed_on is not None

    def mark_processed(self, when: Optional[datetime] = None) -> None:
        self.processed_on = when or utcnow()

    def mark_failed(self, error: str) -> None:
        self.retry_count += 1
        self.error = error
