"""
订单 / 订单项读模型

表由订单服务维护，交易服务只读。
"""
from sqlalchemy import Column, Integer, DateTime, ForeignKey

from .base import Base


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    merchant_id = Column(Integer, ForeignKey("merchants.id"), nullable=False, index=True)
    cashier_id = Column(Integer, ForeignKey("cashiers.id"), nullable=False, index=True)
    total_price = Column(Integer, nullable=False, default=0, comment="订单总价")
    deleted_at = Column(DateTime(timezone=True), nullable=True, comment="删除时间（软删除）")


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True, index=True)
    order_id = Column(Integer, ForeignKey("orders.id"), nullable=False, index=True)
    product_id = Column(Integer, nullable=False, comment="商品ID")
    quantity = Column(Integer, nullable=False, comment="数量")
    price = Column(Integer, nullable=False, comment="单价（最小货币单位）")
    deleted_at = Column(DateTime(timezone=True), nullable=True, comment="删除时间（软删除）")
