"""
订单仓储实现 - 使用SQLAlchemy实现数据访问
"""
import uuid
from decimal import Decimal
from typing import Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from core.logging_config import get_logger
from domain.common.money import Money
from domain.order.entity import Order, OrderStatus
from domain.order.repository import OrderRepository
from infrastructure.models.order import OrderModel
from infrastructure.repositories.payment_repository import payment_to_entity


logger = get_logger(__name__)


class SQLAlchemyOrderRepository(OrderRepository):
    """订单仓储的SQLAlchemy实现

    订单下的支付只随订单一起读出；支付的新增与状态变更由支付仓储负责。
    """

    def __init__(self, session: AsyncSession):
        super().__init__()
        self.session = session
        self._models: Dict[uuid.UUID, OrderModel] = {}

    def _to_entity(self, model: OrderModel) -> Order:
        """将数据库模型转换为领域实体"""
        return Order(
            id=model.id,
            user_id=model.user_id,
            money=Money(amount=Decimal(str(model.amount)), currency=model.currency),
            status=OrderStatus(model.status),
            payments=[payment_to_entity(p) for p in model.payments],
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    @staticmethod
    def _to_model(entity: Order) -> OrderModel:
        """将领域实体转换为数据库模型"""
        return OrderModel(
            id=entity.id,
            user_id=entity.user_id,
            amount=entity.amount,
            currency=entity.currency,
            status=entity.status.value,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
        )

    async def _add(self, order: Order) -> None:
        model = self._to_model(order)
        self.session.add(model)
        self._models[order.id] = model

    async def _get(self, order_id: uuid.UUID) -> Optional[Order]:
        result = await self.session.execute(
            select(OrderModel)
            .options(selectinload(OrderModel.payments))
            .where(OrderModel.id == order_id)
            .execution_options(populate_existing=True)
        )
        model = result.scalar_one_or_none()
        if model is None:
            return None
        self._models[model.id] = model
        return self._to_entity(model)

    def sync_changes(self) -> None:
        """把已跟踪实体的可变字段写回 ORM 模型，随提交一起 flush"""
        for order_id, order in self.seen.items():
            model = self._models.get(order_id)
            if model is None:
                continue
            if model.status != order.status.value:
                logger.info("order_status_changed", order_id=str(order_id), old=model.status, new=order.status.value)
            model.status = order.status.value
            model.updated_at = order.updated_at
