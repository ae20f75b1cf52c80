"""
交易领域异常 - 封闭的错误分类

调用方按 ``kind`` 分支处理（not_found / validation / business_rule /
persistence / overflow），而不是比较异常实例本身。
"""
from __future__ import annotations

from enum import Enum
from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes import BusinessCode


class TransactionErrorKind(str, Enum):
    """交易错误类别"""
    NOT_FOUND = "not_found"
    VALIDATION = "validation"
    BUSINESS_RULE = "business_rule"
    PERSISTENCE = "persistence"
    OVERFLOW = "overflow"


class TransactionError(BusinessException):
    """交易流水线错误基类"""

    kind: TransactionErrorKind = TransactionErrorKind.BUSINESS_RULE


class CashierNotFoundException(TransactionError):
    kind = TransactionErrorKind.NOT_FOUND

    def __init__(self, cashier_id: int):
        super().__init__(
            code=BusinessCode.CASHIER_NOT_FOUND,
            message=f"Cashier {cashier_id} not found",
            error_type="CashierNotFound",
            details={"cashier_id": cashier_id},
            field="cashier_id",
        )


class MerchantNotFoundException(TransactionError):
    kind = TransactionErrorKind.NOT_FOUND

    def __init__(self, merchant_id: int):
        super().__init__(
            code=BusinessCode.MERCHANT_NOT_FOUND,
            message=f"Merchant {merchant_id} not found",
            error_type="MerchantNotFound",
            details={"merchant_id": merchant_id},
        )


class OrderNotFoundException(TransactionError):
    kind = TransactionErrorKind.NOT_FOUND

    def __init__(self, order_id: int):
        super().__init__(
            code=BusinessCode.ORDER_NOT_FOUND,
            message=f"Order {order_id} not found",
            error_type="OrderNotFound",
            details={"order_id": order_id},
            field="order_id",
        )


class TransactionNotFoundException(TransactionError):
    kind = TransactionErrorKind.NOT_FOUND

    def __init__(self, transaction_id: int):
        super().__init__(
            code=BusinessCode.TRANSACTION_NOT_FOUND,
            message=f"Transaction {transaction_id} not found",
            error_type="TransactionNotFound",
            details={"transaction_id": transaction_id},
            field="transaction_id",
        )


class EmptyOrderItemsException(TransactionError):
    kind = TransactionErrorKind.VALIDATION

    def __init__(self, order_id: int):
        super().__init__(
            code=BusinessCode.ORDER_ITEMS_EMPTY,
            message=f"Order {order_id} has no items",
            error_type="EmptyOrderItems",
            details={"order_id": order_id},
            field="order_id",
        )


class InvalidOrderItemQuantityException(TransactionError):
    kind = TransactionErrorKind.VALIDATION

    def __init__(self, order_id: int, invalid_items: list[dict]):
        super().__init__(
            code=BusinessCode.ORDER_ITEM_QUANTITY_INVALID,
            message="Invalid quantity order item",
            error_type="InvalidOrderItemQuantity",
            details={"order_id": order_id, "invalid_items": invalid_items},
            field="quantity",
        )


class InvalidOrderItemPriceException(TransactionError):
    kind = TransactionErrorKind.VALIDATION

    def __init__(self, order_id: int, invalid_items: list[dict]):
        super().__init__(
            code=BusinessCode.ORDER_ITEM_PRICE_INVALID,
            message="Invalid price order item",
            error_type="InvalidOrderItemPrice",
            details={"order_id": order_id, "invalid_items": invalid_items},
            field="price",
        )


class InsufficientPaymentException(TransactionError):
    kind = TransactionErrorKind.BUSINESS_RULE

    def __init__(self, tendered: int, total: int):
        super().__init__(
            code=BusinessCode.PAYMENT_INSUFFICIENT,
            message=f"Insufficient payment: tendered {tendered}, required {total}",
            error_type="InsufficientPayment",
            details={"tendered": tendered, "total": total},
            field="amount",
        )


class PaymentStatusImmutableException(TransactionError):
    kind = TransactionErrorKind.BUSINESS_RULE

    def __init__(self, transaction_id: int, payment_status: str):
        super().__init__(
            code=BusinessCode.PAYMENT_STATUS_IMMUTABLE,
            message=f"Transaction {transaction_id} is {payment_status} and cannot be modified",
            error_type="PaymentStatusImmutable",
            details={"transaction_id": transaction_id, "payment_status": payment_status},
        )


class AmountOverflowException(TransactionError):
    kind = TransactionErrorKind.OVERFLOW

    def __init__(self, value: int, limit: int):
        super().__init__(
            code=BusinessCode.AMOUNT_OVERFLOW,
            message=f"Amount {value} exceeds the representable limit {limit}",
            error_type="AmountOverflow",
            details={"value": value, "limit": limit},
            field="amount",
        )


class TransactionPersistenceException(TransactionError):
    kind = TransactionErrorKind.PERSISTENCE

    def __init__(self, operation: str, transaction_id: Optional[int] = None, reason: Optional[str] = None):
        details: dict = {"operation": operation}
        if transaction_id is not None:
            details["transaction_id"] = transaction_id
        if reason:
            details["reason"] = reason
        super().__init__(
            code=BusinessCode.DATABASE_ERROR,
            message=f"Transaction persistence failed during {operation}",
            error_type="TransactionPersistenceError",
            details=details,
        )
