"""
支付应用服务 - 创建与查询支付
"""
from __future__ import annotations

import uuid
from typing import Callable, List

from application.dtos.payments import PaymentDTO
from application.services.order_service import order_not_found
from core.logging_config import get_logger
from domain.common.result import Error, Result
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import OrderStatus
from domain.payment.entity import Payment


logger = get_logger(__name__)


class PaymentService:
    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def create_payment(self, user_id: uuid.UUID, order_id: uuid.UUID) -> Result[PaymentDTO]:
        """为订单创建一笔 Pending 支付，金额与币种取自订单"""
        async with self._uow_factory() as uow:
            order = await uow.orders.get(order_id)
            if order is None or order.user_id != user_id:
                await uow.rollback()
                return Result.fail(order_not_found(order_id))

            if order.status != OrderStatus.CREATED:
                await uow.rollback()
                return Result.fail(
                    Error.conflict("Order.Status", "Payments can only be created for orders in 'Created' status.")
                )

            created = Payment.create(order.id, user_id, order.amount, order.currency)
            if created.is_failure:
                await uow.rollback()
                return Result.fail(created.error)
            payment = created.value

            attached = order.add_payment(payment)
            if attached.is_failure:
                await uow.rollback()
                return Result.fail(attached.error)

            await uow.payments.add(payment)
            await uow.commit()

        logger.info("payment_created", payment_id=str(payment.id), order_id=str(order_id), user_id=str(user_id))
        return Result.ok(PaymentDTO.from_entity(payment))

    async def list_payments(self, user_id: uuid.UUID, order_id: uuid.UUID) -> Result[List[PaymentDTO]]:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.orders.get(order_id)
            if order is None or order.user_id != user_id:
                return Result.fail(order_not_found(order_id))
            payments = await uow.payments.list_by_order(order_id, user_id)
        return Result.ok([PaymentDTO.from_entity(p) for p in payments])
