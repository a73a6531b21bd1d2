"""create_payment_tables

Revision ID: 5b1e2c7d9a10
Revises:
Create Date: 2026-10-17 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '5b1e2c7d9a10'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False, comment='下单用户ID'),
        sa.Column('amount', sa.Numeric(), nullable=False, comment='订单金额（不限定小数位，按原值存储）'),
        sa.Column('currency', sa.String(length=3), nullable=False, comment='货币代码 ISO-4217'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='订单状态: created/paid/cancelled'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('order_id', sa.Uuid(), nullable=False, comment='订单ID'),
        sa.Column('user_id', sa.Uuid(), nullable=False, comment='用户ID'),
        sa.Column('amount', sa.Numeric(), nullable=False, comment='支付金额（不限定小数位，按原值存储）'),
        sa.Column('currency', sa.String(length=3), nullable=False, comment='货币代码 ISO-4217'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='支付状态: pending/successful/failed'),
        sa.Column('provider_ref', sa.String(length=200), nullable=True, comment='支付渠道返回的流水号'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id'], ondelete='RESTRICT'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_payments_order_id', 'payments', ['order_id'])
    op.create_index('ix_payments_user_id', 'payments', ['user_id'])
    # 同一订单至多一笔成功支付
    op.create_index(
        'ux_payments_order_successful',
        'payments',
        ['order_id'],
        unique=True,
        postgresql_where=sa.text("status = 'successful'"),
        sqlite_where=sa.text("status = 'successful'"),
    )

    op.create_table(
        'idempotency_keys',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('user_id', sa.Uuid(), nullable=False, comment='调用方用户ID'),
        sa.Column('key', sa.String(length=255), nullable=False, comment='调用方提供的 Idempotency-Key'),
        sa.Column('request_hash', sa.String(length=64), nullable=False, comment='请求指纹 SHA-256'),
        sa.Column('response_status', sa.Integer(), nullable=False, comment='首次响应状态码'),
        sa.Column('response_body', sa.Text(), nullable=False, comment='首次响应体'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False, comment='过期时间'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'key', name='uq_idempotency_keys_user_key'),
    )

    op.create_table(
        'outbox_messages',
        sa.Column('id', sa.Uuid(), nullable=False, comment='时间有序ID (UUIDv7)'),
        sa.Column('occurred_on', sa.DateTime(timezone=True), nullable=False, comment='事件发生时间'),
        sa.Column('type', sa.String(length=200), nullable=False, comment='事件类型'),
        sa.Column('content', sa.Text(), nullable=False, comment='事件内容 JSON'),
        sa.Column('processed_on', sa.DateTime(timezone=True), nullable=True, comment='发布完成时间'),
        sa.Column('error', sa.Text(), nullable=True, comment='最近一次发布失败信息'),
        sa.Column('retry_count', sa.Integer(), nullable=False, server_default='0', comment='发布失败次数'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_outbox_messages_processed_on', 'outbox_messages', ['processed_on'])
    op.create_index('ix_outbox_messages_occurred_on', 'outbox_messages', ['occurred_on'])


def downgrade() -> None:
    op.drop_index('ix_outbox_messages_occurred_on', table_name='outbox_messages')
    op.drop_index('ix_outbox_messages_processed_on', table_name='outbox_messages')
    op.drop_table('outbox_messages')
    op.drop_table('idempotency_keys')
    op.drop_index('ux_payments_order_successful', table_name='payments')
    op.drop_index('ix_payments_user_id', table_name='payments')
    op.drop_index('ix_payments_order_id', table_name='payments')
    op.drop_table('payments')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_table('orders')
