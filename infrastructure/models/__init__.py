"""Infrastructure models package exports."""
from .base import Base, metadata
from .idempotency_key import IdempotencyKeyModel
from .order import OrderModel
from .outbox_message import OutboxMessageModel
from .payment import PaymentModel

__all__ = [
    "Base",
    "metadata",
    "OrderModel",
    "PaymentModel",
    "IdempotencyKeyModel",
    "OutboxMessageModel",
]
