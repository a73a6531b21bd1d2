"""In-memory doubles for the unit of work, repositories and order lock.

Reads return copies and commits write copies back, so two units of work
never share entity instances (as with a real database). Locks are real
``asyncio.Lock`` objects released when the owning unit of work ends.
"""
from __future__ import annotations

import asyncio
import copy
import uuid
from typing import Dict, Iterable, List, Optional, Set, Tuple

from domain.common.exceptions import DuplicateSuccessfulPaymentError, IdempotencyKeyExistsError
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.idempotency.entity import IdempotencyRecord
from domain.idempotency.repository import IdempotencyRepository
from domain.order.entity import Order
from domain.order.repository import OrderRepository
from domain.outbox.entity import OutboxMessage
from domain.outbox.repository import OutboxRepository
from domain.payment.entity import Payment, PaymentStatus
from domain.payment.repository import PaymentRepository


class InMemoryStore:
    def __init__(self) -> None:
        self.orders: Dict[uuid.UUID, Order] = {}
        self.payments: Dict[uuid.UUID, Payment] = {}
        self.idempotency: Dict[Tuple[uuid.UUID, str], IdempotencyRecord] = {}
        self.outbox: Dict[uuid.UUID, OutboxMessage] = {}
        self.locks: Dict[uuid.UUID, asyncio.Lock] = {}
        self.claimed_outbox: Set[uuid.UUID] = set()
        self.commits = 0

    def uow_factory(self, *, readonly: bool = False) -> "FakeUnitOfWork":
        return FakeUnitOfWork(self, readonly=readonly)

    def lock_for(self, order_id: uuid.UUID) -> asyncio.Lock:
        return self.locks.setdefault(order_id, asyncio.Lock())

    # seeding helpers (bypass the unit of work)
    def put_order(self, order: Order) -> Order:
        order.clear_events()
        self.orders[order.id] = copy.deepcopy(order)
        return order

    def put_payment(self, payment: Payment) -> Payment:
        payment.clear_events()
        self.payments[payment.id] = copy.deepcopy(payment)
        return payment


class FakeOrderLock:
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self._held: Set[uuid.UUID] = set()
        self.acquired: List[uuid.UUID] = []

    async def acquire(self, order_id: uuid.UUID, uow) -> None:
        if order_id in self._held:
            return
        await self._store.lock_for(order_id).acquire()
        self._held.add(order_id)
        self.acquired.append(order_id)

    def release_all(self) -> None:
        for order_id in self._held:
            self._store.lock_for(order_id).release()
        self._held.clear()


class FakeOrderRepository(OrderRepository):
    def __init__(self, store: InMemoryStore) -> None:
        super().__init__()
        self._store = store

    async def _add(self, order: Order) -> None:
        return None

    async def _get(self, order_id: uuid.UUID) -> Optional[Order]:
        order = self._store.orders.get(order_id)
        if order is None:
            return None
        order = copy.deepcopy(order)
        order.payments = [
            copy.deepcopy(p)
            for p in sorted(self._store.payments.values(), key=lambda p: p.created_at)
            if p.order_id == order_id
        ]
        return order


class FakePaymentRepository(PaymentRepository):
    def __init__(self, store: InMemoryStore) -> None:
        super().__init__()
        self._store = store

    async def _add(self, payment: Payment) -> None:
        return None

    async def _get(self, payment_id: uuid.UUID) -> Optional[Payment]:
        payment = self._store.payments.get(payment_id)
        return copy.deepcopy(payment) if payment is not None else None

    async def list_by_order(self, order_id: uuid.UUID, user_id: uuid.UUID) -> List[Payment]:
        found = [
            copy.deepcopy(p)
            for p in self._store.payments.values()
            if p.order_id == order_id and p.user_id == user_id
        ]
        return sorted(found, key=lambda p: (p.created_at, p.id), reverse=True)

    async def exists_successful_for_order(self, order_id: uuid.UUID) -> bool:
        return any(
            p.order_id == order_id and p.status == PaymentStatus.SUCCESSFUL
            for p in self._store.payments.values()
        )


class FakeIdempotencyRepository(IdempotencyRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.pending: List[IdempotencyRecord] = []
        self.deleted: List[IdempotencyRecord] = []

    async def find_by_key(self, user_id: uuid.UUID, key: str) -> Optional[IdempotencyRecord]:
        record = self._store.idempotency.get((user_id, key))
        return copy.deepcopy(record) if record is not None else None

    async def insert(self, record: IdempotencyRecord) -> None:
        deleted_ids = {r.id for r in self.deleted}
        existing = self._store.idempotency.get((record.user_id, record.key))
        if existing is not None and existing.id not in deleted_ids:
            raise IdempotencyKeyExistsError(str(record.user_id), record.key)
        self.pending.append(record)

    async def delete(self, record: IdempotencyRecord) -> None:
        self.deleted.append(record)


class FakeOutboxRepository(OutboxRepository):
    def __init__(self, store: InMemoryStore) -> None:
        self._store = store
        self.added: List[OutboxMessage] = []
        self.saved: List[OutboxMessage] = []
        self.claimed: Set[uuid.UUID] = set()

    async def add_many(self, messages: Iterable[OutboxMessage]) -> None:
        self.added.extend(messages)

    async def fetch_unprocessed(self, batch_size: int, max_retries: Optional[int] = None) -> List[OutboxMessage]:
        candidates = [
            m
            for m in self._store.outbox.values()
            if m.processed_on is None
            and m.id not in self._store.claimed_outbox
            and (max_retries is None or m.retry_count < max_retries)
        ]
        candidates.sort(key=lambda m: (m.occurred_on, m.id))
        batch = candidates[:batch_size]
        for m in batch:
            self._store.claimed_outbox.add(m.id)
            self.claimed.add(m.id)
        return [copy.deepcopy(m) for m in batch]

    async def save_many(self, messages: Iterable[OutboxMessage]) -> None:
        self.saved.extend(messages)

    def release(self) -> None:
        self._store.claimed_outbox.difference_update(self.claimed)
        self.claimed.clear()


class FakeUnitOfWork(AbstractUnitOfWork):
    def __init__(self, store: InMemoryStore, *, readonly: bool = False) -> None:
        super().__init__(readonly=readonly)
        self._store = store

    async def __aenter__(self) -> "FakeUnitOfWork":
        await super().__aenter__()
        self.orders = FakeOrderRepository(self._store)
        self.payments = FakePaymentRepository(self._store)
        self.idempotency_keys = FakeIdempotencyRepository(self._store)
        self.outbox = FakeOutboxRepository(self._store)
        self.order_lock = FakeOrderLock(self._store)
        return self

    async def commit(self) -> None:
        if self._readonly:
            self._committed = True
            self._end()
            return
        try:
            events = self.collect_new_events()
            if events:
                await self.outbox.add_many(OutboxMessage.from_event(e) for e in events)
            self._check_successful_payment_index()
            self._check_idempotency_keys()
            self._write()
        except Exception:
            self._rolled_back = True
            self._end()
            raise
        self._committed = True
        self._store.commits += 1
        self._end()

    async def rollback(self) -> None:
        self._rolled_back = True
        self._committed = False
        self._end()

    def _end(self) -> None:
        self.order_lock.release_all()
        self.outbox.release()

    def _check_successful_payment_index(self) -> None:
        merged = dict(self._store.payments)
        merged.update(self.payments.seen)
        winners: Dict[uuid.UUID, uuid.UUID] = {}
        for payment in merged.values():
            if payment.status != PaymentStatus.SUCCESSFUL:
                continue
            if payment.order_id in winners and winners[payment.order_id] != payment.id:
                raise DuplicateSuccessfulPaymentError(str(payment.order_id))
            winners[payment.order_id] = payment.id

    def _check_idempotency_keys(self) -> None:
        deleted_ids = {r.id for r in self.idempotency_keys.deleted}
        for record in self.idempotency_keys.pending:
            existing = self._store.idempotency.get((record.user_id, record.key))
            if existing is not None and existing.id not in deleted_ids:
                raise IdempotencyKeyExistsError(str(record.user_id), record.key)

    def _write(self) -> None:
        for order in self.orders.seen.values():
            stored = copy.deepcopy(order)
            stored.payments = []
            self._store.orders[order.id] = stored
        for payment in self.payments.seen.values():
            self._store.payments[payment.id] = copy.deepcopy(payment)
        for record in self.idempotency_keys.deleted:
            self._store.idempotency.pop((record.user_id, record.key), None)
        for record in self.idempotency_keys.pending:
            self._store.idempotency[(record.user_id, record.key)] = copy.deepcopy(record)
        for message in self.outbox.added:
            self._store.outbox[message.id] = copy.deepcopy(message)
        for message in self.outbox.saved:
            if message.id in self.outbox.claimed:
                self._store.outbox[message.id] = copy.deepcopy(message)


class StubProvider:
    """Scripted provider: pops one outcome per call (last one repeats)."""

    def __init__(self, *outcomes, delay: float = 0.0) -> None:
        self._outcomes = list(outcomes)
        self.delay = delay
        self.requests = []

    @property
    def calls(self) -> int:
        return len(self.requests)

    async def charge(self, request):
        self.requests.append(request)
        if self.delay:
            await asyncio.sleep(self.delay)
        else:
            await asyncio.sleep(0)
        outcome = self._outcomes.pop(0) if len(self._outcomes) > 1 else self._outcomes[0]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingPublisher:
    def __init__(self, fail_types: Iterable[str] = ()) -> None:
        self.fail_types = set(fail_types)
        self.published: List[Tuple[str, str]] = []

    async def publish(self, event_type: str, content: str) -> None:
        if event_type in self.fail_types:
            raise RuntimeError(f"sink rejected {event_type}")
        self.published.append((event_type, content))
