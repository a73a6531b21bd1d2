"""
订单领域实体 - 订单聚合根
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, List, Optional, TYPE_CHECKING

from domain.common.entity import AggregateRoot, ensure_utc, utcnow
from domain.common.money import Money
from domain.common.result import Error, Result
from domain.order.events import OrderPaid
from shared.ids import uuid7

if TYPE_CHECKING:
    from domain.payment.entity import Payment


class OrderStatus(str, Enum):
    """订单状态枚举"""
    CREATED = "created"
    PAID = "paid"
    CANCELLED = "cancelled"


@dataclass(eq=False)
class Order(AggregateRoot):
    """
    订单聚合根

    业务规则：
    1. 状态只能 Created→Paid 或 Created→Cancelled
    2. 只有 Created 状态的订单可以挂载支付
    3. 订单从不物理删除
    """

    id: uuid.UUID
    user_id: uuid.UUID
    money: Money
    status: OrderStatus = OrderStatus.CREATED
    payments: List["Payment"] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        AggregateRoot.__init__(self)
        self.created_at = ensure_utc(self.created_at)
        self.updated_at = ensure_utc(self.updated_at)

    @property
    def amount(self) -> Decimal:
        return self.money.amount

    @property
    def currency(self) -> str:
        return self.money.currency

    @classmethod
    def create(cls, user_id: Optional[uuid.UUID], amount: Any, currency: str) -> Result["Order"]:
        if user_id is None or user_id.int == 0:
            return Result.fail(Error.validation("Order.UserId.Empty", "UserId cannot be empty"))

        money = Money.create(amount, currency)
        if money.is_failure:
            return Result.fail(money.error)

        now = utcnow()
        return Result.ok(
            cls(
                id=uuid7(),
                user_id=user_id,
                money=money.value,
                status=OrderStatus.CREATED,
                created_at=now,
                updated_at=now,
            )
        )

    def mark_as_paid(self) -> Result[None]:
        """业务规则：只有 Created 状态可以标记为已支付"""
        if self.status != OrderStatus.CREATED:
            return Result.fail(
                Error.conflict("Order.Status", "Order can only be marked as paid if it is in 'Created' status.")
            )
        self.status = OrderStatus.PAID
        self.updated_at = utcnow()
        self.raise_event(OrderPaid(order_id=self.id))
        return Result.ok()

    def mark_as_cancelled(self) -> Result[None]:
        """业务规则：只有 Created 状态可以取消"""
        if self.status != OrderStatus.CREATED:
            return Result.fail(
                Error.conflict("Order.Status", "Only orders in 'Created' status can be cancelled.")
            )
        self.status = OrderStatus.CANCELLED
        self.updated_at = utcnow()
        return Result.ok()

    def add_payment(self, payment: "Payment") -> Result[None]:
        if payment.order_id != self.id:
            return Result.fail(Error.validation("Payment.OrderId", "Payment does not belong to this order."))
        if self.status != OrderStatus.CREATED:
            return Result.fail(
                Error.conflict("Order.Status", "Payments can only be attached to orders in 'Created' status.")
            )
        self.payments.append(payment)
        return Result.ok()
