"""Transaction domain package exports."""
from .entity import PaymentStatus, Transaction, TERMINAL_PAYMENT_STATUSES
from .exceptions import TransactionError, TransactionErrorKind
from .pricing import PaymentReconciler, Settlement, TaxBreakdown, TaxCalculator
from .repository import TransactionRepository
from .service import (
    ImmutabilityGuard,
    OrderItemAggregator,
    PipelineStage,
    ReferenceResolver,
    TransactionCommandPipeline,
)

__all__ = [
    "PaymentStatus",
    "Transaction",
    "TERMINAL_PAYMENT_STATUSES",
    "TransactionError",
    "TransactionErrorKind",
    "PaymentReconciler",
    "Settlement",
    "TaxBreakdown",
    "TaxCalculator",
    "TransactionRepository",
    "ImmutabilityGuard",
    "OrderItemAggregator",
    "PipelineStage",
    "ReferenceResolver",
    "TransactionCommandPipeline",
]
