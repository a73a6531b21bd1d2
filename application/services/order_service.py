"""
订单应用服务（application/services）- 创建、查询、取消订单
"""
from __future__ import annotations

import uuid
from typing import Any, Callable, Optional

from application.dtos.orders import OrderDTO
from core.logging_config import get_logger
from domain.common.result import Error, Result
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.order.entity import Order


logger = get_logger(__name__)


def order_not_found(order_id: uuid.UUID) -> Error:
    return Error.not_found("Order.NotFound", f"Order '{order_id}' was not found.")


class OrderService:
    """订单用例。订单只对创建它的用户可见，其他用户一律视为不存在。"""

    def __init__(self, uow_factory: Callable[..., AbstractUnitOfWork]) -> None:
        self._uow_factory = uow_factory

    async def create_order(self, user_id: uuid.UUID, amount: Any, currency: str) -> Result[OrderDTO]:
        created = Order.create(user_id, amount, currency)
        if created.is_failure:
            return Result.fail(created.error)

        order = created.value
        async with self._uow_factory() as uow:
            await uow.orders.add(order)
            await uow.commit()

        logger.info("order_created", order_id=str(order.id), user_id=str(user_id), amount=str(order.amount), currency=order.currency)
        return Result.ok(OrderDTO.from_entity(order))

    async def get_order(self, user_id: uuid.UUID, order_id: uuid.UUID) -> Result[OrderDTO]:
        async with self._uow_factory(readonly=True) as uow:
            order = await uow.orders.get(order_id)
        if order is None or order.user_id != user_id:
            return Result.fail(order_not_found(order_id))
        return Result.ok(OrderDTO.from_entity(order))

    async def cancel_order(self, user_id: uuid.UUID, order_id: uuid.UUID) -> Result[OrderDTO]:
        """取消订单；持有订单锁，与并发的支付确认串行化"""
        async with self._uow_factory() as uow:
            await uow.order_lock.acquire(order_id, uow)
            order: Optional[Order] = await uow.orders.get(order_id)
            if order is None or order.user_id != user_id:
                await uow.rollback()
                return Result.fail(order_not_found(order_id))

            cancelled = order.mark_as_cancelled()
            if cancelled.is_failure:
                await uow.rollback()
                return Result.fail(cancelled.error)
            await uow.commit()

        logger.info("order_cancelled", order_id=str(order_id), user_id=str(user_id))
        return Result.ok(OrderDTO.from_entity(order))
