"""
Exceptions raised inside the provider call pipeline.

None of these escape ``ResilientPaymentProviderClient``; it maps each one to
a ``ChargeResult`` status.
"""
from __future__ import annotations

from typing import Optional


class PaymentProviderError(Exception):
    def __init__(self, message: str, *, provider: str = "unknown", details: Optional[dict] = None):
        self.provider = provider
        self.details = details or {}
        super().__init__(message)


class ProviderTransientError(PaymentProviderError):
    """Outage, throttling or transport failure; the charge may be retried."""


class ProviderTimeoutError(PaymentProviderError):
    """A single attempt exceeded its timeout."""


class BrokenCircuitError(PaymentProviderError):
    """The circuit breaker is open (or its half-open probe is busy)."""
