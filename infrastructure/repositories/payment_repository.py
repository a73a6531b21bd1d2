"""
支付仓储实现 - 使用SQLAlchemy实现数据访问
"""
import uuid
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy import exists, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.logging_config import get_logger
from domain.common.money import Money
from domain.payment.entity import Payment, PaymentStatus
from domain.payment.repository import PaymentRepository
from infrastructure.models.payment import PaymentModel


logger = get_logger(__name__)


def payment_to_entity(model: PaymentModel) -> Payment:
    """将数据库模型转换为领域实体"""
    return Payment(
        id=model.id,
        order_id=model.order_id,
        user_id=model.user_id,
        money=Money(amount=Decimal(str(model.amount)), currency=model.currency),
        status=PaymentStatus(model.status),
        provider_ref=model.provider_ref,
        created_at=model.created_at,
        updated_at=model.updated_at,
    )


class SQLAlchemyPaymentRepository(PaymentRepository):
    """支付仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        super().__init__()
        self.session = session
        self._models: Dict[uuid.UUID, PaymentModel] = {}

    @staticmethod
    def _to_model(entity: Payment) -> PaymentModel:
        """将领域实体转换为数据库模型"""
        return PaymentModel(
            id=entity.id,
            order_id=entity.order_id,
            user_id=entity.user_id,
            amount=entity.amount,
            currency=entity.currency,
            status=entity.status.value,
            provider_ref=entity.provider_ref,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def _add(self, payment: Payment) -> None:
        model = self._to_model(payment)
        self.session.add(model)
        self._models[payment.id] = model

    async def _get(self, payment_id: uuid.UUID) -> Optional[Payment]:
        result = await self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.id == payment_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        self._models[model.id] = model
        return payment_to_entity(model)

    async def list_by_order(self, order_id: uuid.UUID, user_id: uuid.UUID) -> List[Payment]:
        result = await self.session.execute(
            select(PaymentModel)
            .where(PaymentModel.order_id == order_id, PaymentModel.user_id == user_id)
            .order_by(PaymentModel.created_at.desc(), PaymentModel.id.desc())
        )
        return [payment_to_entity(m) for m in result.scalars().all()]

    async def exists_successful_for_order(self, order_id: uuid.UUID) -> bool:
        result = await self.session.execute(
            select(
                exists().where(
                    PaymentModel.order_id == order_id,
                    PaymentModel.status == PaymentStatus.SUCCESSFUL.value,
                )
            )
        )
        return bool(result.scalar())

    def sync_changes(self) -> None:
        """把已跟踪实体的可变字段写回 ORM 模型，随提交一起 flush"""
        for payment_id, payment in self.seen.items():
            model = self._models.get(payment_id)
            if model is None:
                continue
            if model.status != payment.status.value:
                logger.info(
                    "payment_status_changed",
                    payment_id=str(payment_id),
                    order_id=str(payment.order_id),
                    old=model.status,
                    new=payment.status.value,
                )
            model.status = payment.status.value
            model.provider_ref = payment.provider_ref
            model.updated_at = payment.updated_at
