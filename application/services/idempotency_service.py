"""
Idempotent execution of side-effecting use cases.

A request carrying an ``Idempotency-Key`` is processed at most once per
(user, key). The first successful response is stored; repeats with the same
payload get that response back verbatim, repeats with a different payload
get a Conflict.
"""
from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass
from datetime import timedelta
from typing import Awaitable, Callable, Optional

from pydantic import BaseModel

from core.logging_config import get_logger
from domain.common.exceptions import IdempotencyKeyExistsError
from domain.common.result import Error, Result
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.idempotency.entity import IdempotencyRecord


logger = get_logger(__name__)

MAX_KEY_LENGTH = 255

IDEMPOTENCY_CONFLICT = Error.conflict(
    "Idempotency.Conflict", "Idempotency key was already used with a different request payload."
)


def compute_request_hash(operation: str, *parts: object) -> str:
    """SHA-256 hex of ``"<operation>:" + ":".join(parts)``.

    The operation prefix keeps the same key used for two different
    operations from colliding.
    """
    canonical = f"{operation}:" + ":".join(str(p) for p in parts)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class StoredResponse:
    status_code: int
    body: str
    replayed: bool = False


class IdempotencyService:
    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        retention: timedelta = timedelta(days=1),
    ) -> None:
        self._uow_factory = uow_factory
        self._retention = retention

    async def execute(
        self,
        user_id: uuid.UUID,
        key: Optional[str],
        request_hash: str,
        success_status: int,
        action: Callable[[], Awaitable[Result[BaseModel]]],
    ) -> Result[StoredResponse]:
        if not key:
            return await self._run(action, success_status)
        if len(key) > MAX_KEY_LENGTH:
            return Result.fail(
                Error.validation("Idempotency.Key.Invalid", f"Idempotency key must be at most {MAX_KEY_LENGTH} characters.")
            )

        async with self._uow_factory(readonly=True) as uow:
            existing = await uow.idempotency_keys.find_by_key(user_id, key)

        stale: Optional[IdempotencyRecord] = None
        if existing is not None:
            if existing.is_expired():
                # 过期记录不再拦截，重新执行并替换
                logger.info("idempotency_key_expired", user_id=str(user_id), key=key)
                stale = existing
            else:
                return self._replay(existing, request_hash)

        result = await self._run(action, success_status)
        if result.is_failure:
            return result

        response = result.value
        record = IdempotencyRecord.create(
            user_id=user_id,
            key=key,
            request_hash=request_hash,
            response_status=response.status_code,
            response_body=response.body,
            retention=self._retention,
        )
        try:
            async with self._uow_factory() as uow:
                if stale is not None:
                    await uow.idempotency_keys.delete(stale)
                await uow.idempotency_keys.insert(record)
                await uow.commit()
        except IdempotencyKeyExistsError:
            logger.info("idempotency_race_lost", user_id=str(user_id), key=key)
            async with self._uow_factory(readonly=True) as uow:
                winner = await uow.idempotency_keys.find_by_key(user_id, key)
            if winner is not None:
                return self._replay(winner, request_hash)
            raise

        logger.info("idempotency_key_stored", user_id=str(user_id), key=key, status=response.status_code)
        return Result.ok(response)

    @staticmethod
    async def _run(
        action: Callable[[], Awaitable[Result[BaseModel]]], success_status: int
    ) -> Result[StoredResponse]:
        result = await action()
        if result.is_failure:
            return Result.fail(result.error)
        return Result.ok(StoredResponse(status_code=success_status, body=result.value.model_dump_json()))

    @staticmethod
    def _replay(record: IdempotencyRecord, request_hash: str) -> Result[StoredResponse]:
        if not record.matches(request_hash):
            logger.warning("idempotency_conflict", user_id=str(record.user_id), key=record.key)
            return Result.fail(IDEMPOTENCY_CONFLICT)
        logger.info("idempotency_replay", user_id=str(record.user_id), key=record.key)
        return Result.ok(StoredResponse(record.response_status, record.response_body, replayed=True))
