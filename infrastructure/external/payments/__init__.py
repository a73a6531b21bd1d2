"""
Factory for payment provider clients.
"""
from __future__ import annotations

from typing import Optional

from core.config import Settings, settings as default_settings
from application.ports.payment_provider import PaymentProviderClient


def build_raw_provider(cfg: Optional[Settings] = None) -> PaymentProviderClient:
    cfg = cfg or default_settings
    kind = cfg.provider.kind.lower()
    if kind == "fake":
        from .fake_client import FakePaymentProviderClient
        fake = cfg.provider.fake
        return FakePaymentProviderClient(
            always_unavailable=fake.always_unavailable,
            always_decline=fake.always_decline,
            success_rate=fake.success_rate,
            delay_ms=fake.delay_ms,
        )
    if kind == "http":
        from .http_client import HttpPaymentProviderClient
        return HttpPaymentProviderClient(
            cfg.provider.base_url or "",
            charge_path=cfg.provider.charge_path,
            api_key=cfg.provider.api_key,
        )
    raise ValueError(f"Unsupported payment provider: {kind}")


def get_payment_provider(cfg: Optional[Settings] = None) -> PaymentProviderClient:
    """Raw provider wrapped in the timeout/retry/circuit-breaker pipeline."""
    from .resilient_client import ResilientPaymentProviderClient

    cfg = cfg or default_settings
    return ResilientPaymentProviderClient.from_settings(build_raw_provider(cfg), cfg.resilience)
