"""Unit of Work 抽象定义"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Iterator, List, TYPE_CHECKING

from domain.common.entity import AggregateRoot
from domain.common.events import DomainEvent
from domain.idempotency.repository import IdempotencyRepository
from domain.order.repository import OrderRepository
from domain.outbox.repository import OutboxRepository
from domain.payment.repository import PaymentRepository

if TYPE_CHECKING:
    from application.ports.order_lock import OrderLock


class AbstractUnitOfWork(ABC):
    """应用层事务边界控制抽象

    One unit of work is one transaction. Aggregates loaded or added through
    ``orders``/``payments`` are tracked; committing persists their changes and
    turns their pending domain events into outbox rows atomically.
    """

    orders: OrderRepository
    payments: PaymentRepository
    idempotency_keys: IdempotencyRepository
    outbox: OutboxRepository
    order_lock: "OrderLock"

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._rolled_back = False
        self._readonly = readonly

    @property
    def readonly(self) -> bool:
        return self._readonly

    async def __aenter__(self) -> "AbstractUnitOfWork":
        self._committed = False
        self._rolled_back = False
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        elif self._readonly:
            await self.rollback()
        # 只在未显式提交/回滚时自动提交
        elif not self._committed and not self._rolled_back:
            await self.commit()

    def tracked_aggregates(self) -> Iterator[AggregateRoot]:
        yield from self.orders.seen.values()
        yield from self.payments.seen.values()

    def collect_new_events(self) -> List[DomainEvent]:
        """Pull pending events from every tracked aggregate, oldest first."""
        events: List[DomainEvent] = []
        for aggregate in self.tracked_aggregates():
            events.extend(aggregate.pull_events())
        events.sort(key=lambda e: e.occurred_on)
        return events

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
