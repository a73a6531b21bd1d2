"""
Payment domain events.

Dataclass events record important payment lifecycle facts for downstream
handling (outbox publishing, projections).
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from domain.common.events import DomainEvent


@dataclass(frozen=True)
class PaymentSucceeded(DomainEvent):
    payment_id: uuid.UUID
    order_id: uuid.UUID
