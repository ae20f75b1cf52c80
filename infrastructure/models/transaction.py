"""
交易数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Index
from datetime import datetime, timezone

from .base import Base


class TransactionModel(Base):
    """
    交易数据库模型

    这是数据库表的映射，不包含业务逻辑
    所有业务规则都在 domain.transaction 中
    """
    __tablename__ = "transactions"

    # 主键
    id = Column(Integer, primary_key=True, index=True)

    # 关联信息
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True, comment="订单ID")
    cashier_id = Column(Integer, ForeignKey("cashiers.id"), nullable=False, index=True, comment="收银员ID")
    merchant_id = Column(Integer, ForeignKey("merchants.id"), nullable=False, index=True, comment="商户ID（由收银员推导）")

    # 支付信息
    payment_method = Column(String(50), nullable=False, comment="支付方式")
    amount = Column(Integer, nullable=False, comment="含税总额（最小货币单位）")
    payment_status = Column(
        String(20),
        nullable=False,
        default="pending",
        index=True,
        comment="支付状态: pending/success/failed/paid/refunded"
    )

    # 时间戳
    created_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
        nullable=False,
        comment="更新时间"
    )
    deleted_at = Column(DateTime(timezone=True), nullable=True, index=True, comment="删除时间（软删除）")

    __table_args__ = (
        Index("ix_transactions_merchant_status", "merchant_id", "payment_status"),
        Index("ix_transactions_created_at", "created_at"),
    )

    def __repr__(self):
        return (
            f"<TransactionModel(id={self.id}, order_id={self.order_id}, "
            f"amount={self.amount}, payment_status='{self.payment_status}')>"
        )
