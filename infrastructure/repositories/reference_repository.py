"""
引用实体只读仓储 - 收银员、商户、订单、订单项

均排除已软删除的记录。
"""
from __future__ import annotations

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from domain.references.entity import Cashier, Merchant, Order, OrderItem
from domain.references.repository import (
    CashierLookup,
    MerchantLookup,
    OrderItemLookup,
    OrderLookup,
)
from infrastructure.models.merchant import CashierModel, MerchantModel
from infrastructure.models.order import OrderItemModel, OrderModel
from infrastructure.repositories.errors import persistence_errors


class SQLAlchemyCashierRepository(CashierLookup):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, cashier_id: int) -> Optional[Cashier]:
        with persistence_errors("cashier lookup"):
            result = await self.session.execute(
                select(CashierModel).where(
                    CashierModel.id == cashier_id,
                    CashierModel.deleted_at.is_(None),
                )
            )
            model = result.scalar_one_or_none()
        if not model:
            return None
        return Cashier(id=model.id, merchant_id=model.merchant_id, name=model.name)


class SQLAlchemyMerchantRepository(MerchantLookup):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, merchant_id: int) -> Optional[Merchant]:
        with persistence_errors("merchant lookup"):
            result = await self.session.execute(
                select(MerchantModel).where(
                    MerchantModel.id == merchant_id,
                    MerchantModel.deleted_at.is_(None),
                )
            )
            model = result.scalar_one_or_none()
        if not model:
            return None
        return Merchant(id=model.id, name=model.name, status=model.status)


class SQLAlchemyOrderRepository(OrderLookup):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_id(self, order_id: int, *, for_update: bool = False) -> Optional[Order]:
        query = select(OrderModel).where(
            OrderModel.id == order_id,
            OrderModel.deleted_at.is_(None),
        )
        if for_update:
            query = query.with_for_update()
        with persistence_errors("order lookup"):
            result = await self.session.execute(query)
            model = result.scalar_one_or_none()
        if not model:
            return None
        return Order(
            id=model.id,
            merchant_id=model.merchant_id,
            cashier_id=model.cashier_id,
            total_price=model.total_price,
        )


class SQLAlchemyOrderItemRepository(OrderItemLookup):

    def __init__(self, session: AsyncSession):
        self.session = session

    async def list_by_order(self, order_id: int, *, lock: bool = False) -> List[OrderItem]:
        query = (
            select(OrderItemModel)
            .where(
                OrderItemModel.order_id == order_id,
                OrderItemModel.deleted_at.is_(None),
            )
            .order_by(OrderItemModel.id)
        )
        if lock:
            # FOR SHARE：事务结束前其他会话不能修改这些订单项
            query = query.with_for_update(read=True)
        with persistence_errors("order item lookup"):
            result = await self.session.execute(query)
            models = result.scalars().all()
        return [
            OrderItem(
                id=m.id,
                order_id=m.order_id,
                product_id=m.product_id,
                quantity=m.quantity,
                price=m.price,
            )
            for m in models
        ]
