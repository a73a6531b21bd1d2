"""
Order lock implementations.
"""
import uuid
from typing import Set

from sqlalchemy import select

from core.logging_config import get_logger
from infrastructure.models.order import OrderModel


logger = get_logger(__name__)


class SqlOrderLock:
    """Row lock via ``SELECT ... FOR UPDATE`` on the order row.

    Held until the owning unit of work commits or rolls back. Dialects
    without row locks (SQLite) render the query without the clause.
    """

    def __init__(self) -> None:
        self._held: Set[uuid.UUID] = set()

    async def acquire(self, order_id: uuid.UUID, uow) -> None:
        if order_id in self._held:
            return
        await uow.session.execute(
            select(OrderModel.id).where(OrderModel.id == order_id).with_for_update()
        )
        self._held.add(order_id)
        logger.debug("order_lock_acquired", order_id=str(order_id))

    def release_all(self) -> None:
        self._held.clear()


class NoOpOrderLock:
    """Single-writer deployments and tests that do not exercise contention."""

    async def acquire(self, order_id: uuid.UUID, uow) -> None:
        return None

    def release_all(self) -> None:
        return None
