"""
Outbox 仓储实现
"""
import uuid
from typing import Dict, Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.outbox.entity import OutboxMessage
from domain.outbox.repository import OutboxRepository
from infrastructure.models.outbox_message import OutboxMessageModel


class SQLAlchemyOutboxRepository(OutboxRepository):

    def __init__(self, session: AsyncSession):
        self.session = session
        self._models: Dict[uuid.UUID, OutboxMessageModel] = {}

    @staticmethod
    def _to_entity(model: OutboxMessageModel) -> OutboxMessage:
        return OutboxMessage(
            id=model.id,
            type=model.type,
            content=model.content,
            occurred_on=model.occurred_on,
            processed_on=model.processed_on,
            error=model.error,
            retry_count=model.retry_count,
        )

    async def add_many(self, messages: Iterable[OutboxMessage]) -> None:
        self.session.add_all(
            [
                OutboxMessageModel(
                    id=m.id,
                    occurred_on=m.occurred_on,
                    type=m.type,
                    content=m.content,
                    processed_on=m.processed_on,
                    error=m.error,
                    retry_count=m.retry_count,
                )
                for m in messages
            ]
        )

    async def fetch_unprocessed(self, batch_size: int, max_retries: Optional[int] = None) -> List[OutboxMessage]:
        query = select(OutboxMessageModel).where(OutboxMessageModel.processed_on.is_(None))
        if max_retries is not None:
            query = query.where(OutboxMessageModel.retry_count < max_retries)
        query = (
            query.order_by(OutboxMessageModel.occurred_on, OutboxMessageModel.id)
            .limit(batch_size)
            .with_for_update(skip_locked=True)
        )
        result = await self.session.execute(query)
        models = result.scalars().all()
        for model in models:
            self._models[model.id] = model
        return [self._to_entity(m) for m in models]

    async def save_many(self, messages: Iterable[OutboxMessage]) -> None:
        for message in messages:
            model = self._models.get(message.id)
            if model is None:
                continue
            model.processed_on = message.processed_on
            model.error = message.error
            model.retry_count = message.retry_count
        await self.session.flush()
