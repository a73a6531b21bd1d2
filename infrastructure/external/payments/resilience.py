"""
Resilience policies for provider calls.

A policy takes "the next call" and returns a decorated call. The pipeline is
composed outer to inner::

    circuit breaker -> retry -> timeout -> raw call

so the breaker records one sample per logical charge (after retries), the
retry loop sees per-attempt timeouts as retryable, and each attempt gets its
own timeout.
"""
from __future__ import annotations

import asyncio
import time
from collections import deque
from enum import Enum
from typing import Awaitable, Callable, Deque, Iterable, Optional, Tuple, Type

from tenacity import AsyncRetrying, retry_if_exception_type, stop_after_attempt, wait_fixed

from application.ports.payment_provider import ChargeRequest, ChargeResult
from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import (
    BrokenCircuitError,
    ProviderTimeoutError,
    ProviderTransientError,
)


logger = get_logger(__name__)

Call = Callable[[ChargeRequest], Awaitable[ChargeResult]]
Policy = Callable[[Call], Call]

RETRYABLE_ERRORS: Tuple[Type[BaseException], ...] = (ProviderTransientError, ProviderTimeoutError)


class CircuitState(str, Enum):
    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"


class CircuitBreaker:
    """Failure-ratio circuit breaker over a rolling time window.

    Transitions:
    - CLOSED -> OPEN when the window holds at least ``minimum_throughput``
      samples and the failure ratio reaches ``failure_ratio``.
    - OPEN -> HALF_OPEN once ``break_duration`` seconds have elapsed.
    - HALF_OPEN admits a single probe; success closes the circuit and clears
      the window, failure re-opens it for another ``break_duration``.
    - While OPEN, late outcomes of calls admitted before the circuit opened
      are dropped; they never extend the break.

    ``clock`` is a monotonic seconds source, injectable for tests.
    """

    def __init__(
        self,
        *,
        failure_ratio: float = 0.5,
        sampling_duration: float = 10.0,
        minimum_throughput: int = 3,
        break_duration: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "payment-provider",
    ) -> None:
        self.failure_ratio = failure_ratio
        self.sampling_duration = sampling_duration
        self.minimum_throughput = minimum_throughput
        self.break_duration = break_duration
        self.name = name
        self._clock = clock
        self._samples: Deque[Tuple[float, bool]] = deque()
        self._state = CircuitState.CLOSED
        self._opened_at = 0.0
        self._probe_in_flight = False

    @property
    def state(self) -> CircuitState:
        if self._state is CircuitState.OPEN and self._clock() - self._opened_at >= self.break_duration:
            self._state = CircuitState.HALF_OPEN
            self._probe_in_flight = False
            logger.info("circuit_half_open", breaker=self.name)
        return self._state

    def before_call(self) -> None:
        """Admit or reject a call; raises ``BrokenCircuitError`` when rejected."""
        state = self.state
        if state is CircuitState.OPEN:
            raise BrokenCircuitError("Circuit is open", provider=self.name)
        if state is CircuitState.HALF_OPEN:
            if self._probe_in_flight:
                raise BrokenCircuitError("Circuit is half-open and a probe is in flight", provider=self.name)
            self._probe_in_flight = True

    def record_success(self) -> None:
        if self._state is CircuitState.OPEN:
            return
        if self._state is CircuitState.HALF_OPEN:
            self._close()
            return
        self._add_sample(failed=False)

    def record_failure(self) -> None:
        if self._state is CircuitState.OPEN:
            return
        if self._state is CircuitState.HALF_OPEN:
            self._open()
            return
        self._add_sample(failed=True)
        total = len(self._samples)
        failures = sum(1 for _, failed in self._samples if failed)
        if total >= self.minimum_throughput and failures / total >= self.failure_ratio:
            self._open()

    def release_probe(self) -> None:
        """Give back a half-open probe slot without recording an outcome."""
        if self._state is CircuitState.HALF_OPEN:
            self._probe_in_flight = False

    def _add_sample(self, *, failed: bool) -> None:
        now = self._clock()
        self._samples.append((now, failed))
        horizon = now - self.sampling_duration
        while self._samples and self._samples[0][0] <= horizon:
            self._samples.popleft()

    def _open(self) -> None:
        self._state = CircuitState.OPEN
        self._opened_at = self._clock()
        self._probe_in_flight = False
        self._samples.clear()
        logger.warning("circuit_opened", breaker=self.name, break_duration=self.break_duration)

    def _close(self) -> None:
        self._state = CircuitState.CLOSED
        self._probe_in_flight = False
        self._samples.clear()
        logger.info("circuit_closed", breaker=self.name)


def circuit_breaker_policy(
    breaker: CircuitBreaker,
    failures: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS,
) -> Policy:
    def wrap(next_call: Call) -> Call:
        async def call(request: ChargeRequest) -> ChargeResult:
            breaker.before_call()
            try:
                result = await next_call(request)
            except failures:
                breaker.record_failure()
                raise
            except BaseException:
                breaker.release_probe()
                raise
            breaker.record_success()
            return result

        return call

    return wrap


def retry_policy(
    max_retries: int,
    delay: float,
    *,
    retry_on: Tuple[Type[BaseException], ...] = RETRYABLE_ERRORS,
    sleep: Optional[Callable[[float], Awaitable[None]]] = None,
) -> Policy:
    """Retry up to ``max_retries`` times with a constant ``delay`` (tenacity)."""

    def _before_sleep(retry_state) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        logger.warning(
            "provider_retry",
            attempt=retry_state.attempt_number,
            max_attempts=max_retries + 1,
            error=repr(exc),
        )

    def wrap(next_call: Call) -> Call:
        async def call(request: ChargeRequest) -> ChargeResult:
            kwargs = {"sleep": sleep} if sleep is not None else {}
            async for attempt in AsyncRetrying(
                stop=stop_after_attempt(max_retries + 1),
                wait=wait_fixed(delay),
                retry=retry_if_exception_type(retry_on),
                before_sleep=_before_sleep,
                reraise=True,
                **kwargs,
            ):
                with attempt:
                    return await next_call(request)
            raise AssertionError("unreachable")  # pragma: no cover

        return call

    return wrap


def timeout_policy(seconds: float) -> Policy:
    """Abort a single attempt after ``seconds``."""

    def wrap(next_call: Call) -> Call:
        async def call(request: ChargeRequest) -> ChargeResult:
            try:
                async with asyncio.timeout(seconds):
                    return await next_call(request)
            except TimeoutError as exc:
                raise ProviderTimeoutError(f"Provider call exceeded {seconds:g}s") from exc

        return call

    return wrap


def build_pipeline(raw: Call, policies: Iterable[Policy]) -> Call:
    """Compose ``policies`` (given outer to inner) around ``raw``."""
    call = raw
    for policy in reversed(list(policies)):
        call = policy(call)
    return call
