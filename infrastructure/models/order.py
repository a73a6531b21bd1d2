"""
订单数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Index, Numeric, String, Uuid
from sqlalchemy.orm import relationship

from .base import Base


class OrderModel(Base):
    """
    订单数据库模型

    所有业务规则都在 domain.order.entity.Order 中
    """
    __tablename__ = "orders"

    id = Column(Uuid, primary_key=True)
    user_id = Column(Uuid, nullable=False, comment="下单用户ID")

    amount = Column(Numeric(), nullable=False, comment="订单金额（不限定小数位，按原值存储）")
    currency = Column(String(3), nullable=False, comment="货币代码 ISO-4217")

    status = Column(String(20), nullable=False, default="created", comment="订单状态: created/paid/cancelled")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )

    payments = relationship("PaymentModel", back_populates="order", lazy="raise", order_by="PaymentModel.created_at")

    __table_args__ = (
        Index("ix_orders_user_id", "user_id"),
    )

    def __repr__(self):
        return f"<OrderModel(id={self.id}, amount={self.amount} {self.currency}, status='{self.status}')>"
