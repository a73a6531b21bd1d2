"""
Outbox repository interface.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from .entity import OutboxMessage


class OutboxRepository(ABC):

    @abstractmethod
    async def add_many(self, messages: Iterable[OutboxMessage]) -> None:
        ...

    @abstractmethod
    async def fetch_unprocessed(self, batch_size: int, max_retries: Optional[int] = None) -> List[OutboxMessage]:
        """Claim up to ``batch_size`` unprocessed rows, oldest first.

        Rows already claimed by a concurrent processor are skipped.
        """

    @abstractmethod
    async def save_many(self, messages: Iterable[OutboxMessage]) -> None:
        """Persist processed_on / retry_count / error for a claimed batch."""
