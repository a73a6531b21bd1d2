"""
Outbox 消息数据库模型
"""
from sqlalchemy import Column, DateTime, Index, Integer, String, Text, Uuid

from .base import Base


class OutboxMessageModel(Base):
    __tablename__ = "outbox_messages"

    id = Column(Uuid, primary_key=True, comment="时间有序ID (UUIDv7)")
    occurred_on = Column(DateTime(timezone=True), nullable=False, comment="事件发生时间")
    type = Column(String(200), nullable=False, comment="事件类型")
    content = Column(Text, nullable=False, comment="事件内容 JSON")
    processed_on = Column(DateTime(timezone=True), nullable=True, comment="发布完成时间")
    error = Column(Text, nullable=True, comment="最近一次发布失败信息")
    retry_count = Column(Integer, nullable=False, default=0, comment="发布失败次数")

    __table_args__ = (
        Index("ix_outbox_messages_processed_on", "processed_on"),
        Index("ix_outbox_messages_occurred_on", "occurred_on"),
    )

    def __repr__(self):
        return f"<OutboxMessageModel(id={self.id}, type='{self.type}', processed_on={self.processed_on})>"
