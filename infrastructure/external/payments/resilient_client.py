"""
Resilient decorator over a raw provider client.
"""
from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Optional

from application.ports.payment_provider import ChargeRequest, ChargeResult, PaymentProviderClient
from core.config import ResilienceSettings
from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import (
    BrokenCircuitError,
    ProviderTimeoutError,
    ProviderTransientError,
)
from infrastructure.external.payments.resilience import (
    CircuitBreaker,
    build_pipeline,
    circuit_breaker_policy,
    retry_policy,
    timeout_policy,
)


logger = get_logger(__name__)


class ResilientPaymentProviderClient:
    """Never raises (except on cancellation): every outcome is a ``ChargeResult``.

    The breaker is long-lived and shared by all calls through this instance,
    so one instance should exist per process.
    """

    def __init__(
        self,
        inner: PaymentProviderClient,
        *,
        breaker: Optional[CircuitBreaker] = None,
        attempt_timeout: float = 2.0,
        max_retries: int = 2,
        retry_delay: float = 0.1,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ) -> None:
        self.inner = inner
        self.breaker = breaker or CircuitBreaker()
        self._call = build_pipeline(
            inner.charge,
            [
                circuit_breaker_policy(self.breaker),
                retry_policy(max_retries, retry_delay, sleep=sleep),
                timeout_policy(attempt_timeout),
            ],
        )

    @classmethod
    def from_settings(
        cls,
        inner: PaymentProviderClient,
        cfg: ResilienceSettings,
        *,
        clock: Optional[Callable[[], float]] = None,
    ) -> "ResilientPaymentProviderClient":
        breaker_kwargs = {"clock": clock} if clock is not None else {}
        breaker = CircuitBreaker(
            failure_ratio=cfg.failure_ratio,
            sampling_duration=cfg.sampling_duration,
            minimum_throughput=cfg.minimum_throughput,
            break_duration=cfg.break_duration,
            **breaker_kwargs,
        )
        return cls(
            inner,
            breaker=breaker,
            attempt_timeout=cfg.attempt_timeout,
            max_retries=cfg.max_retries,
            retry_delay=cfg.retry_delay,
        )

    async def charge(self, request: ChargeRequest) -> ChargeResult:
        payment_id = str(request.payment_id)
        try:
            result = await self._call(request)
        except ProviderTimeoutError as exc:
            logger.warning("provider_timeout", payment_id=payment_id, error=str(exc))
            return ChargeResult.timeout(str(exc))
        except BrokenCircuitError:
            logger.warning("provider_circuit_open", payment_id=payment_id, breaker=self.breaker.name)
            return ChargeResult.unavailable("Payment provider is temporarily unavailable (circuit open).")
        except ProviderTransientError as exc:
            logger.warning("provider_unavailable", payment_id=payment_id, error=str(exc))
            return ChargeResult.unavailable(str(exc))
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("provider_unexpected_error", payment_id=payment_id)
            return ChargeResult.unavailable("Payment provider call failed unexpectedly.")

        logger.info("provider_charge_result", payment_id=payment_id, status=result.status.value)
        return result
