"""
幂等键仓储实现
"""
import uuid
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.exceptions import IdempotencyKeyExistsError
from domain.idempotency.entity import IdempotencyRecord
from domain.idempotency.repository import IdempotencyRepository
from infrastructure.models.idempotency_key import IdempotencyKeyModel


logger = get_logger(__name__)


class SQLAlchemyIdempotencyRepository(IdempotencyRepository):

    def __init__(self, session: AsyncSession):
        self.session = session

    @staticmethod
    def _to_entity(model: IdempotencyKeyModel) -> IdempotencyRecord:
        return IdempotencyRecord(
            id=model.id,
            user_id=model.user_id,
            key=model.key,
            request_hash=model.request_hash,
            response_status=model.response_status,
            response_body=model.response_body,
            created_at=model.created_at,
            expires_at=model.expires_at,
        )

    async def find_by_key(self, user_id: uuid.UUID, key: str) -> Optional[IdempotencyRecord]:
        result = await self.session.execute(
            select(IdempotencyKeyModel).where(
                IdempotencyKeyModel.user_id == user_id,
                IdempotencyKeyModel.key == key,
            )
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def insert(self, record: IdempotencyRecord) -> None:
        self.session.add(
            IdempotencyKeyModel(
                id=record.id,
                user_id=record.user_id,
                key=record.key,
                request_hash=record.request_hash,
                response_status=record.response_status,
                response_body=record.response_body,
                created_at=record.created_at,
                expires_at=record.expires_at,
            )
        )
        try:
            await self.session.flush()
        except IntegrityError:
            await self.session.rollback()
            logger.info("idempotency_key_conflict", user_id=str(record.user_id), key=record.key)
            raise IdempotencyKeyExistsError(str(record.user_id), record.key)

    async def delete(self, record: IdempotencyRecord) -> None:
        await self.session.execute(
            delete(IdempotencyKeyModel).where(IdempotencyKeyModel.id == record.id)
        )
