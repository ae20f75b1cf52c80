"""
数据库模型基类（SQLAlchemy 2.0 风格）

交易表与只读的引用表（商户、收银员、订单、订单项）共用同一元数据。
"""
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


# 元数据对象用于数据库迁移
metadata = Base.metadata
