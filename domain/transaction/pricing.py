"""
计税与支付对账 - 纯函数，无 I/O

含税总额 = 小计 + 小计 * 11 / 100（整数截断，不四舍五入）。
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Tuple

from .entity import PaymentStatus
from .exceptions import AmountOverflowException, InsufficientPaymentException


TAX_RATE_PERCENT = 11
# 交易金额列为有符号 32 位整数
MAX_AMOUNT = 2**31 - 1


def _truncating_percent(value: int, percent: int) -> int:
    """按百分比取整，向零截断"""
    product = value * percent
    quotient = abs(product) // 100
    return quotient if product >= 0 else -quotient


@dataclass(frozen=True)
class TaxBreakdown:
    subtotal: int
    tax: int
    total: int


class TaxCalculator:
    """含税总额计算"""

    def __init__(self, rate_percent: int = TAX_RATE_PERCENT, max_amount: int = MAX_AMOUNT):
        self.rate_percent = rate_percent
        self.max_amount = max_amount

    def calculate(self, lines: Iterable[Tuple[int, int]]) -> TaxBreakdown:
        """lines 为 (price, quantity) 序列"""
        subtotal = sum(price * quantity for price, quantity in lines)
        tax = _truncating_percent(subtotal, self.rate_percent)
        total = subtotal + tax
        if abs(total) > self.max_amount:
            raise AmountOverflowException(total, self.max_amount)
        return TaxBreakdown(subtotal=subtotal, tax=tax, total=total)


@dataclass(frozen=True)
class Settlement:
    """对账结果：amount 总是含税总额，多付部分不保留"""
    payment_status: PaymentStatus
    amount: int
    tendered: int


class PaymentReconciler:
    """比较实付金额与含税总额"""

    def reconcile(self, tendered: int, total: int) -> Settlement:
        if tendered < total:
            raise InsufficientPaymentException(tendered, total)
        return Settlement(payment_status=PaymentStatus.SUCCESS, amount=total, tendered=tendered)
