"""
Integration event publisher port used by the outbox processor.
"""
from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class EventPublisher(Protocol):
    async def publish(self, event_type: str, content: str) -> None: ...
