"""
Order lock port: exclusive, transaction-scoped lock on one order row.
"""
from __future__ import annotations

import uuid
from typing import Protocol, TYPE_CHECKING, runtime_checkable

if TYPE_CHECKING:
    from domain.common.unit_of_work import AbstractUnitOfWork


@runtime_checkable
class OrderLock(Protocol):
    """Blocks until no other transaction holds the lock for ``order_id``.

    Only valid inside an open unit of work; released when that unit of work
    commits or rolls back. Acquiring twice in the same transaction is a no-op.
    """

    async def acquire(self, order_id: uuid.UUID, uow: "AbstractUnitOfWork") -> None: ...
