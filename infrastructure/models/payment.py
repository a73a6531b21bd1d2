"""
支付数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, Numeric, String, Uuid, text
from sqlalchemy.orm import relationship

from .base import Base


# 同一订单至多一笔成功支付（事务内校验之外的最后防线）
SUCCESSFUL_PAYMENT_INDEX = "ux_payments_order_successful"


class PaymentModel(Base):
    """
    支付数据库模型

    这是数据库表的映射，不包含业务逻辑
    所有业务规则都在 domain.payment.entity.Payment 中
    """
    __tablename__ = "payments"

    id = Column(Uuid, primary_key=True)
    order_id = Column(Uuid, ForeignKey("orders.id", ondelete="RESTRICT"), nullable=False, comment="订单ID")
    user_id = Column(Uuid, nullable=False, comment="用户ID")

    amount = Column(Numeric(), nullable=False, comment="支付金额（不限定小数位，按原值存储）")
    currency = Column(String(3), nullable=False, comment="货币代码 ISO-4217")

    status = Column(String(20), nullable=False, default="pending", comment="支付状态: pending/successful/failed")
    provider_ref = Column(String(200), nullable=True, comment="支付渠道返回的流水号")

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

    order = relationship("OrderModel", back_populates="payments")

    __table_args__ = (
        Index("ix_payments_order_id", "order_id"),
        Index("ix_payments_user_id", "user_id"),
        Index(
            SUCCESSFUL_PAYMENT_INDEX,
            "order_id",
            unique=True,
            postgresql_where=text("status = 'successful'"),
            sqlite_where=text("status = 'successful'"),
        ),
    )

    def __repr__(self):
        return (
            f"<PaymentModel(id={self.id}, order_id={self.order_id}, "
            f"amount={self.amount} {self.currency}, status='{self.status}')>"
        )
