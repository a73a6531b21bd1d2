"""
Payment provider port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from typing import Optional, Protocol, runtime_checkable


@dataclass(frozen=True)
class ChargeRequest:
    payment_id: uuid.UUID
    order_id: uuid.UUID
    amount: Decimal
    currency: str


class ChargeStatus(str, Enum):
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    UNAVAILABLE = "unavailable"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class ChargeResult:
    status: ChargeStatus
    reference: Optional[str] = None
    reason: Optional[str] = None

    @property
    def is_success(self) -> bool:
        return self.status is ChargeStatus.SUCCEEDED

    @classmethod
    def succeeded(cls, reference: str) -> "ChargeResult":
        return cls(ChargeStatus.SUCCEEDED, reference=reference)

    @classmethod
    def failed(cls, reason: str) -> "ChargeResult":
        return cls(ChargeStatus.FAILED, reason=reason)

    @classmethod
    def unavailable(cls, reason: str) -> "ChargeResult":
        return cls(ChargeStatus.UNAVAILABLE, reason=reason)

    @classmethod
    def timeout(cls, reason: str) -> "ChargeResult":
        return cls(ChargeStatus.TIMEOUT, reason=reason)


@runtime_checkable
class PaymentProviderClient(Protocol):
    """Charge operation of an external payment provider.

    Raw adapters may raise ``ProviderTransientError``; the resilient wrapper
    never raises and only returns a ``ChargeResult``.
    """

    async def charge(self, request: ChargeRequest) -> ChargeResult: ...
