"""
Idempotency key record.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Optional

from domain.common.entity import ensure_utc, utcnow
from shared.ids import uuid7


@dataclass
class IdempotencyRecord:
    """Stored response for one (user_id, key) pair.

    Created once, the first time a request with that key completes; never
    mutated afterwards.
    """

    user_id: uuid.UUID
    key: str
    request_hash: str
    response_status: int
    response_body: str
    expires_at: datetime
    id: uuid.UUID = field(default_factory=uuid7)
    created_at: datetime = field(default_factory=utcnow)

    def __post_init__(self) -> None:
        self.expires_at = ensure_utc(self.expires_at)  # type: ignore[assignment]
        self.created_at = ensure_utc(self.created_at)  # type: ignore[assignment]

    @classmethod
    def create(
        cls,
        user_id: uuid.UUID,
        key: str,
        request_hash: str,
        response_status: int,
        response_body: str,
        retention: timedelta,
    ) -> "IdempotencyRecord":
        now = utcnow()
        return cls(
            user_id=user_id,
            key=key,
            request_hash=request_hash,
            response_status=response_status,
            response_body=response_body,
            expires_at=now + retention,
            created_at=now,
        )

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        return (now or utcnow()) >= self.expires_at

    def matches(self, request_hash: str) -> bool:
        return self.request_hash == request_hash
