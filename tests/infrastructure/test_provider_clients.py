import json
import uuid
from decimal import Decimal

import httpx
import pytest

from application.ports.payment_provider import ChargeRequest, ChargeStatus
from core.config import Settings
from infrastructure.external.payments import build_raw_provider, get_payment_provider
from infrastructure.external.payments.exceptions import ProviderTransientError
from infrastructure.external.payments.fake_client import FakePaymentProviderClient
from infrastructure.external.payments.http_client import HttpPaymentProviderClient
from infrastructure.external.payments.resilient_client import ResilientPaymentProviderClient


def _request() -> ChargeRequest:
    return ChargeRequest(payment_id=uuid.uuid4(), order_id=uuid.uuid4(), amount=Decimal("10.00"), currency="USD")


# -- fake provider -----------------------------------------------------------

async def test_fake_provider_succeeds_with_reference():
    request = _request()
    result = await FakePaymentProviderClient().charge(request)
    assert result.status is ChargeStatus.SUCCEEDED
    assert result.reference == f"FAKE-{request.payment_id.hex}"


async def test_fake_provider_unavailable_raises_transient():
    with pytest.raises(ProviderTransientError):
        await FakePaymentProviderClient(always_unavailable=True).charge(_request())


async def test_fake_provider_decline():
    result = await FakePaymentProviderClient(always_decline=True).charge(_request())
    assert result.status is ChargeStatus.FAILED


async def test_fake_provider_success_rate_is_deterministic():
    client = FakePaymentProviderClient(success_rate=0.5)
    request = _request()
    first = await client.charge(request)
    second = await client.charge(request)
    assert first.status is second.status
    assert client.calls == 2

    assert (await FakePaymentProviderClient(success_rate=0.0).charge(request)).status is ChargeStatus.FAILED
    assert (await FakePaymentProviderClient(success_rate=1.0).charge(request)).is_success


# -- http provider -----------------------------------------------------------

def _http_client(handler) -> HttpPaymentProviderClient:
    transport = httpx.MockTransport(handler)
    return HttpPaymentProviderClient(
        "https://provider.test",
        client=httpx.AsyncClient(base_url="https://provider.test", transport=transport),
    )


async def test_http_provider_success_payload_and_headers():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["key"] = request.headers.get("Idempotency-Key")
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"status": "succeeded", "reference": "ch_123"})

    charge = _request()
    result = await _http_client(handler).charge(charge)

    assert result.is_success
    assert result.reference == "ch_123"
    assert seen["path"] == "/charges"
    assert seen["key"] == str(charge.payment_id)
    assert seen["body"] == {
        "payment_id": str(charge.payment_id),
        "order_id": str(charge.order_id),
        "amount": "10.00",
        "currency": "USD",
    }


@pytest.mark.parametrize(
    "status,body",
    [
        (402, {"reason": "card declined"}),
        (400, {"message": "bad card"}),
        (200, {"status": "declined"}),
        (200, {"status": "succeeded"}),
    ],
)
async def test_http_provider_declines(status, body):
    result = await _http_client(lambda r: httpx.Response(status, json=body)).charge(_request())
    assert result.status is ChargeStatus.FAILED
    assert result.reason


@pytest.mark.parametrize("status", [429, 500, 502, 503])
async def test_http_provider_transient_statuses(status):
    with pytest.raises(ProviderTransientError):
        await _http_client(lambda r: httpx.Response(status)).charge(_request())


async def test_http_provider_transport_error_is_transient():
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(ProviderTransientError):
        await _http_client(handler).charge(_request())


# -- factory -----------------------------------------------------------------

def test_factory_builds_fake_and_wraps_it():
    cfg = Settings(provider={"kind": "fake", "fake": {"always_decline": True}})
    raw = build_raw_provider(cfg)
    assert isinstance(raw, FakePaymentProviderClient)
    assert raw.always_decline

    wrapped = get_payment_provider(cfg)
    assert isinstance(wrapped, ResilientPaymentProviderClient)
    assert wrapped.breaker.minimum_throughput == cfg.resilience.minimum_throughput


def test_factory_builds_http_client():
    cfg = Settings(provider={"kind": "http", "base_url": "https://provider.test"})
    assert isinstance(build_raw_provider(cfg), HttpPaymentProviderClient)
