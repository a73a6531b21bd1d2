"""
Idempotency key repository interface.
"""
from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Optional

from .entity import IdempotencyRecord


class IdempotencyRepository(ABC):

    @abstractmethod
    async def find_by_key(self, user_id: uuid.UUID, key: str) -> Optional[IdempotencyRecord]:
        ...

    @abstractmethod
    async def insert(self, record: IdempotencyRecord) -> None:
        """Insert a new record.

        Raises ``IdempotencyKeyExistsError`` when (user_id, key) is already
        stored, which callers treat as a lost race.
        """

    @abstractmethod
    async def delete(self, record: IdempotencyRecord) -> None:
        """Remove a stale (expired) record so the key can be reused."""
