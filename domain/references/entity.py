"""
交易所引用的外部实体（收银员、商户、订单、订单项）

对交易服务而言它们只读，由各自的服务维护。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Merchant:
    id: int
    name: str
    status: Optional[str] = None


@dataclass(frozen=True)
class Cashier:
    """收银员 - merchant_id 是交易商户的唯一来源"""
    id: int
    merchant_id: int
    name: str


@dataclass(frozen=True)
class Order:
    id: int
    merchant_id: int
    cashier_id: int
    total_price: int = 0


@dataclass(frozen=True)
class OrderItem:
    id: int
    order_id: int
    product_id: int
    quantity: int
    price: int  # 单价，最小货币单位
