"""
订单仓储接口 - 定义订单数据访问的抽象接口
"""
from __future__ import annotations

import uuid
from abc import ABC, abstractmethod
from typing import Dict, Optional

from .entity import Order


class OrderRepository(ABC):
    """订单仓储抽象接口

    Every aggregate returned or added here is tracked in ``seen`` so the unit
    of work can persist its changes and harvest its events on commit.
    """

    def __init__(self) -> None:
        self.seen: Dict[uuid.UUID, Order] = {}

    async def add(self, order: Order) -> None:
        await self._add(order)
        self.seen[order.id] = order

    async def get(self, order_id: uuid.UUID) -> Optional[Order]:
        """根据ID获取订单（含已挂载的支付）"""
        if order_id in self.seen:
            return self.seen[order_id]
        order = await self._get(order_id)
        if order is not None:
            self.seen[order.id] = order
        return order

    @abstractmethod
    async def _add(self, order: Order) -> None:
        ...

    @abstractmethod
    async def _get(self, order_id: uuid.UUID) -> Optional[Order]:
        ...
