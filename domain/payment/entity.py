"""
支付领域实体 - 支付聚合根
"""
from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any, Optional

from domain.common.entity import AggregateRoot, ensure_utc, utcnow
from domain.common.money import Money
from domain.common.result import Error, Result
from domain.payment.events import PaymentSucceeded
from shared.ids import uuid7


class PaymentStatus(str, Enum):
    """支付状态枚举"""
    PENDING = "pending"           # 待支付
    SUCCESSFUL = "successful"     # 支付成功
    FAILED = "failed"             # 支付失败


@dataclass(eq=False)
class Payment(AggregateRoot):
    """
    支付聚合根 - 管理支付生命周期

    业务规则：
    1. 金额与币种由 Money 校验
    2. 状态只能 Pending→Successful 或 Pending→Failed，终态不可变
    3. 同一订单至多一笔支付成功（事务内校验 + 部分唯一索引兜底）
    """

    id: uuid.UUID
    order_id: uuid.UUID
    user_id: uuid.UUID
    money: Money
    status: PaymentStatus = PaymentStatus.PENDING
    provider_ref: Optional[str] = None
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
    def create(
        cls,
        order_id: Optional[uuid.UUID],
        user_id: Optional[uuid.UUID],
        amount: Any,
        currency: str,
    ) -> Result["Payment"]:
        if order_id is None or order_id.int == 0:
            return Result.fail(Error.validation("Payment.OrderId.Empty", "OrderId cannot be empty"))
        if user_id is None or user_id.int == 0:
            return Result.fail(Error.validation("Payment.UserId.Empty", "UserId cannot be empty"))

        money = Money.create(amount, currency)
        if money.is_failure:
            return Result.fail(money.error)

        now = utcnow()
        return Result.ok(
            cls(
                id=uuid7(),
                order_id=order_id,
                user_id=user_id,
                money=money.value,
                status=PaymentStatus.PENDING,
                created_at=now,
                updated_at=now,
            )
        )

    def mark_as_completed(self, provider_ref: Optional[str] = None) -> Result[None]:
        """业务规则：只能从 Pending 转为 Successful"""
        if self.status != PaymentStatus.PENDING:
            return Result.fail(
                Error.conflict("Payment.Status", "Only payments in 'Pending' status can be marked as completed.")
            )
        self.status = PaymentStatus.SUCCESSFUL
        if provider_ref:
            self.provider_ref = provider_ref
        self.updated_at = utcnow()
        self.raise_event(PaymentSucceeded(payment_id=self.id, order_id=self.order_id))
        return Result.ok()

    def mark_as_failed(self) -> Result[None]:
        """业务规则：只能从 Pending 转为 Failed"""
        if self.status != PaymentStatus.PENDING:
            return Result.fail(
                Error.conflict("Payment.Status", "Only payments in 'Pending' status can be marked as failed.")
            )
        self.status = PaymentStatus.FAILED
        self.updated_at = utcnow()
        return Result.ok()

    def is_final_status(self) -> bool:
        """检查是否为终态"""
        return self.status in (PaymentStatus.SUCCESSFUL, PaymentStatus.FAILED)
