"""
In-process payment provider for local runs and tests.
"""
from __future__ import annotations

import asyncio
import hashlib
from typing import Optional

from application.ports.payment_provider import ChargeRequest, ChargeResult
from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import ProviderTransientError


logger = get_logger(__name__)


class FakePaymentProviderClient:
    """Simulated provider.

    Options are checked in this order: ``always_unavailable`` raises a
    transient error, ``always_decline`` declines, ``success_rate`` declines
    deterministically by payment id, otherwise the charge succeeds with a
    ``FAKE-<hex>`` reference. ``delay_ms`` is applied before any outcome.
    """

    provider = "fake"

    def __init__(
        self,
        *,
        always_unavailable: bool = False,
        always_decline: bool = False,
        success_rate: Optional[float] = None,
        delay_ms: int = 0,
    ) -> None:
        self.always_unavailable = always_unavailable
        self.always_decline = always_decline
        self.success_rate = success_rate
        self.delay_ms = delay_ms
        self.calls = 0

    async def charge(self, request: ChargeRequest) -> ChargeResult:
        self.calls += 1
        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000)

        if self.always_unavailable:
            logger.info("fake_provider_unavailable", payment_id=str(request.payment_id))
            raise ProviderTransientError("Simulated provider outage", provider=self.provider)

        if self.always_decline:
            return ChargeResult.failed("Simulated decline")

        if self.success_rate is not None and self._bucket(request) >= self.success_rate:
            return ChargeResult.failed("Simulated decline (success rate)")

        return ChargeResult.succeeded(f"FAKE-{request.payment_id.hex}")

    @staticmethod
    def _bucket(request: ChargeRequest) -> float:
        """Stable value in [0, 1) derived from the payment id."""
        digest = hashlib.sha256(request.payment_id.bytes).digest()
        return int.from_bytes(digest[:8], "big") / 2**64
