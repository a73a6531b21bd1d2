"""
HTTP payment provider adapter (httpx).
"""
from __future__ import annotations

from typing import Optional

import httpx

from application.ports.payment_provider import ChargeRequest, ChargeResult
from core.logging_config import get_logger
from infrastructure.external.payments.exceptions import ProviderTransientError


logger = get_logger(__name__)

# 429 与 5xx 视为可重试
_TRANSIENT_STATUSES = {408, 425, 429}


class HttpPaymentProviderClient:
    """POSTs ``{payment_id, order_id, amount, currency}`` to the provider.

    Response mapping:
    - 2xx ``{"status": "succeeded", "reference": ...}`` -> Succeeded
    - other 2xx bodies, 402 and remaining 4xx -> Failed
    - 408/425/429/5xx and transport errors -> ``ProviderTransientError``

    Timeouts are enforced by the resilience pipeline, not by httpx.
    """

    provider = "http"

    def __init__(
        self,
        base_url: str,
        *,
        charge_path: str = "/charges",
        api_key: Optional[str] = None,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._charge_path = charge_path
        headers = {"Accept": "application/json"}
        if api_key:
            headers["Authorization"] = f"Bearer {api_key}"
        self._client = client or httpx.AsyncClient(base_url=base_url, headers=headers, timeout=None)
        self._owns_client = client is None

    async def aclose(self) -> None:
        """Close underlying HTTP client if created here."""
        if self._owns_client:
            await self._client.aclose()

    async def charge(self, request: ChargeRequest) -> ChargeResult:
        payload = {
            "payment_id": str(request.payment_id),
            "order_id": str(request.order_id),
            "amount": str(request.amount),
            "currency": request.currency,
        }
        try:
            response = await self._client.post(
                self._charge_path,
                json=payload,
                headers={"Idempotency-Key": str(request.payment_id)},
            )
        except httpx.TransportError as exc:
            logger.warning("provider_transport_error", payment_id=payload["payment_id"], error=repr(exc))
            raise ProviderTransientError(f"Transport error: {exc!r}", provider=self.provider) from exc

        status = response.status_code
        if status >= 500 or status in _TRANSIENT_STATUSES:
            logger.warning("provider_transient_status", payment_id=payload["payment_id"], status=status)
            raise ProviderTransientError(f"Provider returned HTTP {status}", provider=self.provider)

        body = self._json(response)
        if 200 <= status < 300 and str(body.get("status", "")).lower() == "succeeded":
            reference = body.get("reference") or body.get("id")
            if reference:
                return ChargeResult.succeeded(str(reference))

        reason = body.get("reason") or body.get("message") or f"Provider declined the charge (HTTP {status})"
        logger.info("provider_declined", payment_id=payload["payment_id"], status=status, reason=reason)
        return ChargeResult.failed(str(reason))

    @staticmethod
    def _json(response: httpx.Response) -> dict:
        try:
            data = response.json()
        except ValueError:
            return {}
        return data if isinstance(data, dict) else {}
