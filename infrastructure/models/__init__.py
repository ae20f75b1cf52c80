"""Infrastructure models package exports."""
from .base import Base, metadata
from .merchant import MerchantModel, CashierModel
from .order import OrderModel, OrderItemModel
from .transaction import TransactionModel

__all__ = [
    "Base",
    "metadata",
    "MerchantModel",
    "CashierModel",
    "OrderModel",
    "OrderItemModel",
    "TransactionModel",
]
