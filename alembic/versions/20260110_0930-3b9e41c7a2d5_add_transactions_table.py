"""add_transactions_table

Revision ID: 3b9e41c7a2d5
Revises:
Create Date: 2026-01-10 09:30:12.418203

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b9e41c7a2d5'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    # merchants / cashiers / orders 由各自服务维护，这里只建交易表
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False, comment='主键ID'),
        sa.Column('order_id', sa.Integer(), nullable=False, comment='订单ID'),
        sa.Column('cashier_id', sa.Integer(), nullable=False, comment='收银员ID'),
        sa.Column('merchant_id', sa.Integer(), nullable=False, comment='商户ID（由收银员推导）'),
        sa.Column('payment_method', sa.String(length=50), nullable=False, comment='支付方式'),
        sa.Column('amount', sa.Integer(), nullable=False, comment='含税总额（最小货币单位）'),
        sa.Column('payment_status', sa.String(length=20), nullable=False, server_default='pending', comment='支付状态: pending/success/failed/paid/refunded'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False, comment='更新时间'),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True, comment='删除时间（软删除）'),
        sa.ForeignKeyConstraint(['order_id'], ['orders.id']),
        sa.ForeignKeyConstraint(['cashier_id'], ['cashiers.id']),
        sa.ForeignKeyConstraint(['merchant_id'], ['merchants.id']),
        sa.PrimaryKeyConstraint('id'),
        comment='交易表，记录订单的支付结果'
    )

    # Create indexes
    op.create_index('ix_transactions_id', 'transactions', ['id'], unique=False)
    op.create_index('ix_transactions_order_id', 'transactions', ['order_id'], unique=False)
    op.create_index('ix_transactions_cashier_id', 'transactions', ['cashier_id'], unique=False)
    op.create_index('ix_transactions_merchant_id', 'transactions', ['merchant_id'], unique=False)
    op.create_index('ix_transactions_payment_status', 'transactions', ['payment_status'], unique=False)
    op.create_index('ix_transactions_deleted_at', 'transactions', ['deleted_at'], unique=False)
    op.create_index('ix_transactions_merchant_status', 'transactions', ['merchant_id', 'payment_status'], unique=False)
    op.create_index('ix_transactions_created_at', 'transactions', ['created_at'], unique=False)


def downgrade() -> None:
    # Drop indexes
    op.drop_index('ix_transactions_created_at', table_name='transactions')
    op.drop_index('ix_transactions_merchant_status', table_name='transactions')
    op.drop_index('ix_transactions_deleted_at', table_name='transactions')
    op.drop_index('ix_transactions_payment_status', table_name='transactions')
    op.drop_index('ix_transactions_merchant_id', table_name='transactions')
    op.drop_index('ix_transactions_cashier_id', table_name='transactions')
    op.drop_index('ix_transactions_order_id', table_name='transactions')
    op.drop_index('ix_transactions_id', table_name='transactions')

    # Drop table
    op.drop_table('transactions')
