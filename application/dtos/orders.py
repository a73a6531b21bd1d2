"""
Order DTOs (Pydantic v2).
"""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from domain.order.entity import Order


class OrderDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    amount: Decimal
    currency: str
    status: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, order: Order) -> "OrderDTO":
        return cls(
            id=order.id,
            amount=order.amount,
            currency=order.currency,
            status=order.status.value,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
