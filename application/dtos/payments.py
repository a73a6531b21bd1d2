"""
Payment DTOs (Pydantic v2) used at application boundaries.
"""
from __future__ import annotations

import uuid
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict

from domain.payment.entity import Payment


class PaymentDTO(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: uuid.UUID
    order_id: uuid.UUID
    amount: Decimal
    currency: str
    status: str
    provider_ref: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_entity(cls, payment: Payment) -> "PaymentDTO":
        return cls(
            id=payment.id,
            order_id=payment.order_id,
            amount=payment.amount,
            currency=payment.currency,
            status=payment.status.value,
            provider_ref=payment.provider_ref,
            created_at=payment.created_at,
            updated_at=payment.updated_at,
        )
