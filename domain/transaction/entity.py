"""
交易领域实体 - 交易聚合根
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from domain.common.exceptions import DomainValidationException
from .exceptions import PaymentStatusImmutableException


class PaymentStatus(str, Enum):
    """支付状态枚举"""
    PENDING = "pending"
    SUCCESS = "success"
    FAILED = "failed"
    PAID = "paid"          # 终态，由其他服务设置
    REFUNDED = "refunded"  # 终态，由其他服务设置


TERMINAL_PAYMENT_STATUSES = frozenset({PaymentStatus.PAID, PaymentStatus.REFUNDED})


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Transaction:
    """
    交易聚合根

    业务规则：
    1. merchant_id 总是通过收银员推导，不接受客户端传入
    2. amount 为含税总额，由流水线计算后覆盖
    3. paid / refunded 为终态，终态交易不可再修改
    """

    id: Optional[int]
    order_id: int
    cashier_id: int
    merchant_id: int
    payment_method: str
    amount: int
    payment_status: PaymentStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    deleted_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.payment_status, PaymentStatus):
            self.payment_status = PaymentStatus(self.payment_status)
        if self.amount < 0:
            raise DomainValidationException(
                f"交易金额不能为负数: {self.amount}",
                field="amount",
            )
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)
        self.deleted_at = _ensure_utc(self.deleted_at)

    def is_terminal(self) -> bool:
        """是否处于终态支付状态"""
        return self.payment_status in TERMINAL_PAYMENT_STATUSES

    def ensure_mutable(self) -> None:
        """业务规则：终态交易拒绝任何修改（不区分字段）"""
        if self.is_terminal():
            raise PaymentStatusImmutableException(self.id, self.payment_status.value)

    def apply_settlement(
        self,
        *,
        order_id: int,
        cashier_id: int,
        merchant_id: int,
        payment_method: str,
        amount: int,
        payment_status: PaymentStatus,
    ) -> None:
        """写入对账结果"""
        self.ensure_mutable()
        self.order_id = order_id
        self.cashier_id = cashier_id
        self.merchant_id = merchant_id
        self.payment_method = payment_method
        self.amount = amount
        self.payment_status = payment_status
        self.updated_at = datetime.now(timezone.utc)
