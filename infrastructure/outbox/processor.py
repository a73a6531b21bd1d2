"""
Outbox processor: publishes captured domain events at least once.

Each cycle claims a batch of unprocessed rows (``FOR UPDATE SKIP LOCKED`` so
several processes can run side by side), publishes them one by one and
writes the outcome of the whole batch in a single commit. A failing message
only bumps its own ``retry_count``; it is picked up again next cycle.
"""
from __future__ import annotations

import asyncio
import traceback
from typing import Callable, Optional

from application.ports.event_publisher import EventPublisher
from core.logging_config import get_logger
from domain.common.entity import utcnow
from domain.common.unit_of_work import AbstractUnitOfWork


logger = get_logger(__name__)


class OutboxProcessor:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        publisher: EventPublisher,
        *,
        interval: float = 10.0,
        batch_size: int = 20,
        max_retries: Optional[int] = None,
    ) -> None:
        self._uow_factory = uow_factory
        self._publisher = publisher
        self.interval = interval
        self.batch_size = batch_size
        self.max_retries = max_retries
        self._task: Optional[asyncio.Task] = None
        self._stop_event = asyncio.Event()

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def process_batch(self) -> int:
        """Run one cycle; returns the number of messages published."""
        published = 0
        async with self._uow_factory() as uow:
            messages = await uow.outbox.fetch_unprocessed(self.batch_size, self.max_retries)
            if not messages:
                await uow.rollback()
                return 0

            for message in messages:
                try:
                    await self._publisher.publish(message.type, message.content)
                except asyncio.CancelledError:
                    raise
                except Exception as exc:
                    message.mark_failed("".join(traceback.format_exception(exc)))
                    logger.warning(
                        "outbox_publish_failed",
                        message_id=str(message.id),
                        event_type=message.type,
                        retry_count=message.retry_count,
                        error=repr(exc),
                    )
                else:
                    message.mark_processed(utcnow())
                    published += 1

            await uow.outbox.save_many(messages)
            await uow.commit()

        logger.info("outbox_batch_processed", fetched=len(messages), published=published)
        return published

    async def run(self) -> None:
        """Loop until ``stop()``, waiting one ``interval`` before each cycle.

        One failing cycle never ends the loop.
        """
        logger.info("outbox_processor_started", interval=self.interval, batch_size=self.batch_size)
        while not self._stop_event.is_set():
            try:
                await asyncio.wait_for(self._stop_event.wait(), timeout=self.interval)
            except asyncio.TimeoutError:
                pass
            if self._stop_event.is_set():
                break
            try:
                await self.process_batch()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("outbox_cycle_failed")
        logger.info("outbox_processor_stopped")

    def start(self) -> None:
        if self.running:
            return
        self._stop_event.clear()
        self._task = asyncio.create_task(self.run(), name="outbox-processor")

    async def stop(self, timeout: float = 5.0) -> None:
        if self._task is None:
            return
        self._stop_event.set()
        try:
            await asyncio.wait_for(self._task, timeout=timeout)
        except asyncio.TimeoutError:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        finally:
            self._task = None
