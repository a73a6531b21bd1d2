"""
支付仓储接口 - 定义支付数据访问的抽象接口
"""
from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Dict, List, Optional

from .entity import Payment


class PaymentRepository(ABC):
    """支付仓储抽象接口 - 只定义能做什么，不管怎么做"""

    def __init__(self) -> None:
        self.seen: Dict[uuid.UUID, Payment] = {}

    async def add(self, payment: Payment) -> None:
        """创建支付记录"""
        await self._add(payment)
        self.seen[payment.id] = payment

    async def get(self, payment_id: uuid.UUID) -> Optional[Payment]:
        """根据ID获取支付"""
        if payment_id in self.seen:
            return self.seen[payment_id]
        payment = await self._get(payment_id)
        if payment is not None:
            self.seen[payment.id] = payment
        return payment

    @abstractmethod
    async def _add(self, payment: Payment) -> None:
        ...

    @abstractmethod
    async def _get(self, payment_id: uuid.UUID) -> Optional[Payment]:
        ...

    @abstractmethod
    async def list_by_order(self, order_id: uuid.UUID, user_id: uuid.UUID) -> List[Payment]:
        """获取订单下某用户的支付列表（按创建时间倒序）"""

    @abstractmethod
    async def exists_successful_for_order(self, order_id: uuid.UUID) -> bool:
        """检查订单是否已有成功的支付"""
