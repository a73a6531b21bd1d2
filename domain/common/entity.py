"""
Aggregate root base with domain-event collection.
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from domain.common.events import DomainEvent


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


class AggregateRoot:
    """Keeps events raised during state transitions until persistence pulls them."""

    def __init__(self) -> None:
        self._domain_events: List[DomainEvent] = []

    @property
    def domain_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._domain_events)

    def raise_event(self, event: DomainEvent) -> None:
        self._domain_events.append(event)

    def pull_events(self) -> List[DomainEvent]:
        events, self._domain_events = self._domain_events, []
        return events

    def clear_events(self) -> None:
        self._domain_events.clear()
