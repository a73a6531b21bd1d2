"""
幂等键数据库模型
"""
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint, Uuid

from .base import Base


IDEMPOTENCY_KEY_CONSTRAINT = "uq_idempotency_keys_user_key"


class IdempotencyKeyModel(Base):
    __tablename__ = "idempotency_keys"

    id = Column(Uuid, primary_key=True)
    user_id = Column(Uuid, nullable=False, comment="调用方用户ID")
    key = Column(String(255), nullable=False, comment="调用方提供的 Idempotency-Key")
    request_hash = Column(String(64), nullable=False, comment="请求指纹 SHA-256")
    response_status = Column(Integer, nullable=False, comment="首次响应状态码")
    response_body = Column(Text, nullable=False, comment="首次响应体")

    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    expires_at = Column(DateTime(timezone=True), nullable=False, comment="过期时间")

    __table_args__ = (
        UniqueConstraint("user_id", "key", name=IDEMPOTENCY_KEY_CONSTRAINT),
    )

    def __repr__(self):
        return f"<IdempotencyKeyModel(user_id={self.user_id}, key='{self.key}', status={self.response_status})>"
