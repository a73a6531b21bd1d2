"""
Orders API routes.
"""
from __future__ import annotations

import uuid
from decimal import Decimal

from typing import Optional

from fastapi import APIRouter, Depends, Header, status
from pydantic import BaseModel, Field

from api.dependencies import (
    get_current_user_id,
    get_idempotency_service,
    get_order_service,
    get_payment_service,
)
from api.responses import json_list_response, json_response, stored_response, unwrap
from application.dtos.orders import OrderDTO
from application.dtos.payments import PaymentDTO
from application.services.idempotency_service import IdempotencyService, compute_request_hash
from application.services.order_service import OrderService
from application.services.payment_service import PaymentService


router = APIRouter(prefix="/orders", tags=["Orders"])


class CreateOrderRequest(BaseModel):
    amount: Decimal
    currency: str = Field(min_length=1, max_length=10)


@router.post("", status_code=status.HTTP_201_CREATED, response_model=OrderDTO)
async def create_order(
    body: CreateOrderRequest,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: OrderService = Depends(get_order_service),
):
    order = unwrap(await service.create_order(user_id, body.amount, body.currency))
    return json_response(order, status.HTTP_201_CREATED)


@router.get("/{order_id}", response_model=OrderDTO)
async def get_order(
    order_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: OrderService = Depends(get_order_service),
):
    return json_response(unwrap(await service.get_order(user_id, order_id)))


@router.post("/{order_id}/cancel", response_model=OrderDTO)
async def cancel_order(
    order_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: OrderService = Depends(get_order_service),
):
    return json_response(unwrap(await service.cancel_order(user_id, order_id)))


@router.post("/{order_id}/payments", status_code=status.HTTP_201_CREATED, response_model=PaymentDTO)
async def create_payment(
    order_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    idempotency_key: Optional[str] = Header(default=None, alias="Idempotency-Key"),
    service: PaymentService = Depends(get_payment_service),
    idempotency: IdempotencyService = Depends(get_idempotency_service),
):
    request_hash = compute_request_hash("create-payment", user_id, order_id)
    stored = unwrap(
        await idempotency.execute(
            user_id,
            idempotency_key,
            request_hash,
            status.HTTP_201_CREATED,
            lambda: service.create_payment(user_id, order_id),
        )
    )
    return stored_response(stored)


@router.get("/{order_id}/payments", response_model=list[PaymentDTO])
async def list_payments(
    order_id: uuid.UUID,
    user_id: uuid.UUID = Depends(get_current_user_id),
    service: PaymentService = Depends(get_payment_service),
):
    return json_list_response(unwrap(await service.list_payments(user_id, order_id)))
