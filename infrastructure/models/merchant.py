"""
商户 / 收银员读模型

表由商户、收银员服务维护，交易服务只读。
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey

from .base import Base


class MerchantModel(Base):
    __tablename__ = "merchants"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(255), nullable=False, comment="商户名称")
    status = Column(String(50), nullable=True, comment="商户状态")
    deleted_at = Column(DateTime(timezone=True), nullable=True, comment="删除时间（软删除）")


class CashierModel(Base):
    __tablename__ = "cashiers"

    id = Column(Integer, primary_key=True, index=True)
    merchant_id = Column(Integer, ForeignKey("merchants.id"), nullable=False, index=True, comment="所属商户")
    name = Column(String(255), nullable=False, comment="收银员名称")
    deleted_at = Column(DateTime(timezone=True), nullable=True, comment="删除时间（软删除）")
