"""
Order domain events.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass

from domain.common.events import DomainEvent


@dataclass(frozen=True)
class OrderPaid(DomainEvent):
    order_id: uuid.UUID
