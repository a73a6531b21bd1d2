"""
Payments API routes.

Keep this thin: the confirmation protocol lives in ConfirmPaymentService.
"""
from __future__ import annotations

import uuid
from typing import Optional

from fastapi import APIRouter, Depends, Header, status

from api.dependencies import get_confirm_payment_service, get_current_user_id, get_idempotency_service
from api.responses import stored_response, unwrap
from application.dtos.payments import PaymentDTO
from application.services.confirm_payment_service import ConfirmPaymentService
from application.services.idempotency_service import IdempotencyService, compute_request_hash


router = APIRouter(prefix="/payments", tags=["Payments"])


@router.post("/{payment_id}/confirm", response_model=PaymentDTO)
async def confirm_payment(
    payment_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: ConfirmPaymentService = Depends(get_confirm_payment_service),
    idempotency: IdempotencyService = Depends(get_idempotency_service),
):
    request_hash = compute_request_hash("confirm", user_id, payment_id)
    stored = unwrap(
        await idempotency.execute(
            user_id,
            idempotency_key,
            request_hash,
            status.HTTP_200_OK,
            lambda: service.confirm_payment(user_id, payment_id),
        )
    )
    return stored_response(stored)
