"""
引用实体查询接口 - 交易流水线的输入校验叶子
"""
from abc import ABC, abstractmethod
from typing import Optional, List

from .entity import Cashier, Merchant, Order, OrderItem


class CashierLookup(ABC):

    @abstractmethod
    async def get_by_id(self, cashier_id: int) -> Optional[Cashier]:
        """根据ID获取未删除的收银员"""
        pass


class MerchantLookup(ABC):

    @abstractmethod
    async def get_by_id(self, merchant_id: int) -> Optional[Merchant]:
        """根据ID获取未删除的商户"""
        pass


class OrderLookup(ABC):

    @abstractmethod
    async def get_by_id(self, order_id: int, *, for_update: bool = False) -> Optional[Order]:
        """根据ID获取未删除的订单；for_update 时锁定订单行直到事务结束"""
        pass


class OrderItemLookup(ABC):

    @abstractmethod
    async def list_by_order(self, order_id: int, *, lock: bool = False) -> List[OrderItem]:
        """获取订单的全部订单项（按ID排序）；lock 时以共享锁读取"""
        pass
