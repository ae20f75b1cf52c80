"""
交易领域服务 - 交易对账流水线

流程：引用校验 → [仅更新] 不可变校验 → 订单项汇总 → 计税 → 对账 → 持久化。
任一步失败立即中止，持久化之前的步骤均无副作用。
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any, List, Optional, Tuple

from domain.common.observer import NoopObserver, Observer
from domain.references.entity import Cashier, Merchant, Order
from domain.references.repository import (
    CashierLookup,
    MerchantLookup,
    OrderItemLookup,
    OrderLookup,
)
from .entity import Transaction
from .exceptions import (
    CashierNotFoundException,
    EmptyOrderItemsException,
    InvalidOrderItemPriceException,
    InvalidOrderItemQuantityException,
    MerchantNotFoundException,
    OrderNotFoundException,
    TransactionNotFoundException,
)
from .pricing import PaymentReconciler, Settlement, TaxCalculator
from .repository import TransactionRepository


class PipelineStage(str, Enum):
    VALIDATING = "validating"
    AGGREGATING = "aggregating"
    COMPUTING = "computing"
    RECONCILING = "reconciling"
    PERSISTING = "persisting"
    DONE = "done"


@dataclass(frozen=True)
class ResolvedReferences:
    cashier: Cashier
    merchant: Merchant
    order: Order


class ReferenceResolver:
    """依次解析 收银员 → 商户（经由收银员） → 订单，遇到缺失立即失败"""

    def __init__(
        self,
        cashier_lookup: CashierLookup,
        merchant_lookup: MerchantLookup,
        order_lookup: OrderLookup,
    ):
        self.cashier_lookup = cashier_lookup
        self.merchant_lookup = merchant_lookup
        self.order_lookup = order_lookup

    async def resolve(self, cashier_id: int, order_id: int) -> ResolvedReferences:
        cashier = await self.cashier_lookup.get_by_id(cashier_id)
        if cashier is None:
            raise CashierNotFoundException(cashier_id)

        # 商户只从收银员推导，防止客户端伪造
        merchant = await self.merchant_lookup.get_by_id(cashier.merchant_id)
        if merchant is None:
            raise MerchantNotFoundException(cashier.merchant_id)

        order = await self.order_lookup.get_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundException(order_id)

        return ResolvedReferences(cashier=cashier, merchant=merchant, order=order)


class OrderItemAggregator:
    """读取订单项并校验数量与单价"""

    def __init__(self, order_item_lookup: OrderItemLookup):
        self.order_item_lookup = order_item_lookup

    async def aggregate(self, order_id: int) -> List[Tuple[int, int]]:
        """返回按订单项顺序排列的 (price, quantity)"""
        items = await self.order_item_lookup.list_by_order(order_id, lock=True)
        if not items:
            raise EmptyOrderItemsException(order_id)

        # 全部检查完再报错，错误详情中列出所有不合法的行
        invalid = [
            {"order_item_id": item.id, "product_id": item.product_id, "quantity": item.quantity}
            for item in items
            if item.quantity <= 0
        ]
        if invalid:
            raise InvalidOrderItemQuantityException(order_id, invalid)

        # 负单价会得到负总额，同样在计税前拒绝
        bad_price = [
            {"order_item_id": item.id, "product_id": item.product_id, "price": item.price}
            for item in items
            if item.price < 0
        ]
        if bad_price:
            raise InvalidOrderItemPriceException(order_id, bad_price)

        return [(item.price, item.quantity) for item in items]


class ImmutabilityGuard:
    """更新前检查：交易必须存在且不处于终态"""

    def __init__(self, transaction_repository: TransactionRepository):
        self.transaction_repository = transaction_repository

    async def check(self, transaction_id: int) -> Transaction:
        existing = await self.transaction_repository.get_by_id(transaction_id, for_update=True)
        if existing is None:
            raise TransactionNotFoundException(transaction_id)
        existing.ensure_mutable()
        return existing


class TransactionCommandPipeline:
    """
    创建/更新交易的编排

    状态：validating → aggregating → computing → reconciling → persisting → done，
    每个阶段的失败都以对应的 TransactionError 返回给调用方，不做重试。
    """

    def __init__(
        self,
        cashier_lookup: CashierLookup,
        merchant_lookup: MerchantLookup,
        order_lookup: OrderLookup,
        order_item_lookup: OrderItemLookup,
        transaction_repository: TransactionRepository,
        observer: Optional[Observer] = None,
        tax_calculator: Optional[TaxCalculator] = None,
        reconciler: Optional[PaymentReconciler] = None,
    ):
        self.transaction_repository = transaction_repository
        self.resolver = ReferenceResolver(cashier_lookup, merchant_lookup, order_lookup)
        self.aggregator = OrderItemAggregator(order_item_lookup)
        self.guard = ImmutabilityGuard(transaction_repository)
        self.tax_calculator = tax_calculator or TaxCalculator()
        self.reconciler = reconciler or PaymentReconciler()
        self.observer = observer or NoopObserver()
        self.stage: Optional[PipelineStage] = None

    def _enter(self, stage: PipelineStage, span: Any = None) -> None:
        self.stage = stage
        self.observer.set_attributes(span, **{"pipeline.stage": stage.value})
        self.observer.log_event("transaction_pipeline_stage", stage=stage.value)

    async def _settle(self, order_id: int, tendered: int, span: Any) -> Settlement:
        self._enter(PipelineStage.AGGREGATING, span)
        lines = await self.aggregator.aggregate(order_id)

        self._enter(PipelineStage.COMPUTING, span)
        breakdown = self.tax_calculator.calculate(lines)
        self.observer.set_attributes(
            span,
            **{
                "amount.subtotal": breakdown.subtotal,
                "amount.tax": breakdown.tax,
                "amount.total": breakdown.total,
            },
        )

        self._enter(PipelineStage.RECONCILING, span)
        return self.reconciler.reconcile(tendered, breakdown.total)

    async def create_transaction(
        self,
        *,
        order_id: int,
        cashier_id: int,
        payment_method: str,
        amount: int,
        span: Any = None,
    ) -> Transaction:
        self._enter(PipelineStage.VALIDATING, span)
        refs = await self.resolver.resolve(cashier_id=cashier_id, order_id=order_id)

        settlement = await self._settle(order_id, amount, span)

        self._enter(PipelineStage.PERSISTING, span)
        now = datetime.now(timezone.utc)
        transaction = Transaction(
            id=None,
            order_id=refs.order.id,
            cashier_id=refs.cashier.id,
            merchant_id=refs.cashier.merchant_id,
            payment_method=payment_method,
            amount=settlement.amount,
            payment_status=settlement.payment_status,
            created_at=now,
            updated_at=now,
        )
        created = await self.transaction_repository.create(transaction)

        self._enter(PipelineStage.DONE, span)
        return created

    async def update_transaction(
        self,
        *,
        transaction_id: int,
        order_id: int,
        cashier_id: int,
        payment_method: str,
        amount: int,
        span: Any = None,
    ) -> Transaction:
        self._enter(PipelineStage.VALIDATING, span)
        refs = await self.resolver.resolve(cashier_id=cashier_id, order_id=order_id)
        existing = await self.guard.check(transaction_id)

        settlement = await self._settle(order_id, amount, span)

        self._enter(PipelineStage.PERSISTING, span)
        existing.apply_settlement(
            order_id=refs.order.id,
            cashier_id=refs.cashier.id,
            merchant_id=refs.cashier.merchant_id,
            payment_method=payment_method,
            amount=settlement.amount,
            payment_status=settlement.payment_status,
        )
        updated = await self.transaction_repository.update(existing)

        self._enter(PipelineStage.DONE, span)
        return updated
