"""
API依赖项 - 认证与应用服务装配
"""
import uuid
from typing import Callable

import jwt
import structlog
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from application.ports.payment_provider import PaymentProviderClient
from application.services.confirm_payment_service import ConfirmPaymentService
from application.services.idempotency_service import IdempotencyService
from application.services.order_service import OrderService
from application.services.payment_service import PaymentService
from core.config import settings
from core.exceptions import UnauthorizedException
from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.external.payments import get_payment_provider
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork

# HTTP Bearer for direct API calls
http_bearer = HTTPBearer(
    scheme_name="Bearer",
    description="JWT Bearer token authentication (sub = user id)",
    auto_error=False,
)


async def get_current_user_id(
    credentials: HTTPAuthorizationCredentials = Depends(http_bearer),
) -> uuid.UUID:
    """从 Bearer Token 的 sub 声明解析当前用户ID（不负责签发）"""
    if credentials is None or not credentials.credentials:
        raise UnauthorizedException("Missing bearer token")
    try:
        payload = jwt.decode(credentials.credentials, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except jwt.PyJWTError:
        raise UnauthorizedException("Invalid or expired token")
    try:
        user_id = uuid.UUID(str(payload.get("sub")))
    except ValueError:
        raise UnauthorizedException("Token subject is not a valid user id")
    structlog.contextvars.bind_contextvars(user_id=str(user_id))
    return user_id


def get_uow_factory() -> Callable[..., AbstractUnitOfWork]:
    return SQLAlchemyUnitOfWork


def get_provider_client(request: Request) -> PaymentProviderClient:
    """进程级单例：熔断器状态必须跨请求共享"""
    provider = getattr(request.app.state, "payment_provider", None)
    if provider is None:
        provider = get_payment_provider()
        request.app.state.payment_provider = provider
    return provider


async def get_order_service(uow_factory=Depends(get_uow_factory)) -> OrderService:
    return OrderService(uow_factory)


async def get_payment_service(uow_factory=Depends(get_uow_factory)) -> PaymentService:
    return PaymentService(uow_factory)


async def get_confirm_payment_service(
    uow_factory=Depends(get_uow_factory),
    provider: PaymentProviderClient = Depends(get_provider_client),
) -> ConfirmPaymentService:
    return ConfirmPaymentService(uow_factory, provider)


async def get_idempotency_service(uow_factory=Depends(get_uow_factory)) -> IdempotencyService:
    return IdempotencyService(uow_factory, retention=settings.idempotency.retention)
