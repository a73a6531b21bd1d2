"""SQLAlchemy Unit of Work 实现"""
from __future__ import annotations

import inspect
from typing import Callable, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import DuplicateSuccessfulPaymentError, IdempotencyKeyExistsError
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.outbox.entity import OutboxMessage
from infrastructure.database import AsyncSessionLocal
from infrastructure.locks.order_lock import SqlOrderLock
from infrastructure.models.idempotency_key import IDEMPOTENCY_KEY_CONSTRAINT
from infrastructure.models.payment import SUCCESSFUL_PAYMENT_INDEX
from infrastructure.repositories.idempotency_repository import SQLAlchemyIdempotencyRepository
from infrastructure.repositories.order_repository import SQLAlchemyOrderRepository
from infrastructure.repositories.outbox_repository import SQLAlchemyOutboxRepository
from infrastructure.repositories.payment_repository import SQLAlchemyPaymentRepository


logger = get_logger(__name__)


def translate_integrity_error(exc: IntegrityError) -> Optional[Exception]:
    """把唯一约束冲突映射为领域异常；无法识别时返回 None"""
    msg = str(exc.orig if exc.orig is not None else exc).lower()
    # PostgreSQL 报约束名，SQLite 报列名
    if SUCCESSFUL_PAYMENT_INDEX in msg or "unique constraint failed: payments.order_id" in msg:
        return DuplicateSuccessfulPaymentError()
    if IDEMPOTENCY_KEY_CONSTRAINT in msg or "unique constraint failed: idempotency_keys.user_id" in msg:
        return IdempotencyKeyExistsError()
    return None


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """基于SQLAlchemy的Unit of Work

    提交时：把跟踪实体的变更写回 ORM 模型，收集领域事件写入 outbox_messages，
    与业务变更在同一事务中提交。
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        session: Optional[AsyncSession] = None,
        *,
        readonly: bool = False,
        order_lock_factory: Callable[[], object] = SqlOrderLock,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self._external_session = session
        self._order_lock_factory = order_lock_factory
        self.session: Optional[AsyncSession] = session

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        await super().__aenter__()
        if self.session is None:
            self.session = self._session_factory()
        self.orders = SQLAlchemyOrderRepository(self.session)
        self.payments = SQLAlchemyPaymentRepository(self.session)
        self.idempotency_keys = SQLAlchemyIdempotencyRepository(self.session)
        self.outbox = SQLAlchemyOutboxRepository(self.session)
        self.order_lock = self._order_lock_factory()  # type: ignore[assignment]
        # 仅在非只读模式下显式开启事务
        if not self._readonly:
            self._transaction = await self.session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            # 事务在 commit/rollback 后通常会结束，这里仅在仍然活动时做安全关闭
            tx = getattr(self, "_transaction", None)
            if tx is not None and getattr(tx, "is_active", False):
                res = tx.close()
                if inspect.isawaitable(res):
                    await res
            self._transaction = None
            self.order_lock.release_all()  # type: ignore[attr-defined]
            if self._external_session is None and self.session is not None:
                await self.session.close()
                self.session = None

    async def commit(self) -> None:
        if self._readonly:
            # 只读情况下不提交
            self._committed = True
            return
        if self.session is None:
            return

        self.orders.sync_changes()  # type: ignore[attr-defined]
        self.payments.sync_changes()  # type: ignore[attr-defined]
        events = self.collect_new_events()
        if events:
            await self.outbox.add_many(OutboxMessage.from_event(e) for e in events)

        try:
            if self.session.in_transaction():
                await self.session.commit()
        except IntegrityError as exc:
            await self.session.rollback()
            self._rolled_back = True
            translated = translate_integrity_error(exc)
            if translated is None:
                raise
            logger.warning("commit_constraint_violation", error=type(translated).__name__)
            raise translated from exc

        self._committed = True
        if events:
            logger.info("outbox_messages_captured", count=len(events), types=[e.event_type for e in events])

    async def rollback(self) -> None:
        if self.session and self.session.in_transaction():
            await self.session.rollback()
        self._rolled_back = True
        self._committed = False
