"""In-memory collaborators shared by the pipeline, service and gRPC tests."""
from __future__ import annotations

import copy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple

from domain.common.observer import Observer
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.references.entity import Cashier, Merchant, Order, OrderItem
from domain.references.repository import (
    CashierLookup,
    MerchantLookup,
    OrderItemLookup,
    OrderLookup,
)
from domain.transaction.entity import Transaction
from domain.transaction.exceptions import TransactionNotFoundException
from domain.transaction.repository import TransactionRepository


@dataclass
class InMemoryStore:
    cashiers: Dict[int, Cashier] = field(default_factory=dict)
    merchants: Dict[int, Merchant] = field(default_factory=dict)
    orders: Dict[int, Order] = field(default_factory=dict)
    order_items: Dict[int, List[OrderItem]] = field(default_factory=dict)
    transactions: Dict[int, Transaction] = field(default_factory=dict)
    next_id: int = 1
    calls: List[Tuple[str, Any]] = field(default_factory=list)
    commits: int = 0
    rollbacks: int = 0

    def add_transaction(self, **overrides: Any) -> Transaction:
        now = datetime.now(timezone.utc)
        data = dict(
            id=self.next_id,
            order_id=100,
            cashier_id=10,
            merchant_id=1,
            payment_method="cash",
            amount=27750,
            payment_status="success",
            created_at=now,
            updated_at=now,
            deleted_at=None,
        )
        data.update(overrides)
        transaction = Transaction(**data)
        self.transactions[transaction.id] = transaction
        self.next_id = max(self.next_id, transaction.id) + 1
        return transaction


def seed_store() -> InMemoryStore:
    store = InMemoryStore()
    store.merchants[1] = Merchant(id=1, name="Toko Maju")
    store.merchants[2] = Merchant(id=2, name="Warung Sejahtera")
    store.cashiers[10] = Cashier(id=10, merchant_id=1, name="Ani")
    store.cashiers[11] = Cashier(id=11, merchant_id=2, name="Budi")
    store.orders[100] = Order(id=100, merchant_id=1, cashier_id=10, total_price=25000)
    store.order_items[100] = [
        OrderItem(id=1, order_id=100, product_id=501, quantity=2, price=10000),
        OrderItem(id=2, order_id=100, product_id=502, quantity=1, price=5000),
    ]
    return store


class InMemoryCashierLookup(CashierLookup):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, cashier_id: int) -> Optional[Cashier]:
        self.store.calls.append(("cashier", cashier_id))
        return self.store.cashiers.get(cashier_id)


class InMemoryMerchantLookup(MerchantLookup):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, merchant_id: int) -> Optional[Merchant]:
        self.store.calls.append(("merchant", merchant_id))
        return self.store.merchants.get(merchant_id)


class InMemoryOrderLookup(OrderLookup):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def get_by_id(self, order_id: int, *, for_update: bool = False) -> Optional[Order]:
        self.store.calls.append(("order", order_id, for_update))
        return self.store.orders.get(order_id)


class InMemoryOrderItemLookup(OrderItemLookup):
    def __init__(self, store: InMemoryStore):
        self.store = store

    async def list_by_order(self, order_id: int, *, lock: bool = False) -> List[OrderItem]:
        self.store.calls.append(("order_items", order_id, lock))
        return list(self.store.order_items.get(order_id, []))


class InMemoryTransactionRepository(TransactionRepository):
    """与 SQLAlchemy 实现相同的可见性规则：默认只看活动记录"""

    def __init__(self, store: InMemoryStore):
        self.store = store

    def _find(self, transaction_id: int, trashed: Optional[bool]) -> Optional[Transaction]:
        found = self.store.transactions.get(transaction_id)
        if found is None:
            return None
        if trashed is True and found.deleted_at is None:
            return None
        if trashed is False and found.deleted_at is not None:
            return None
        return found

    async def create(self, transaction: Transaction) -> Transaction:
        stored = copy.deepcopy(transaction)
        stored.id = self.store.next_id
        self.store.next_id += 1
        self.store.transactions[stored.id] = stored
        return copy.deepcopy(stored)

    async def update(self, transaction: Transaction) -> Transaction:
        if self._find(transaction.id, False) is None:
            raise TransactionNotFoundException(transaction.id)
        self.store.transactions[transaction.id] = copy.deepcopy(transaction)
        return copy.deepcopy(transaction)

    async def get_by_id(
        self,
        transaction_id: int,
        *,
        include_trashed: bool = False,
        for_update: bool = False,
    ) -> Optional[Transaction]:
        self.store.calls.append(("transaction", transaction_id, for_update))
        found = self._find(transaction_id, None if include_trashed else False)
        return copy.deepcopy(found) if found else None

    async def trash(self, transaction_id: int) -> Transaction:
        found = self._find(transaction_id, False)
        if found is None:
            raise TransactionNotFoundException(transaction_id)
        found.deleted_at = datetime.now(timezone.utc)
        return copy.deepcopy(found)

    async def restore(self, transaction_id: int) -> Transaction:
        found = self._find(transaction_id, True)
        if found is None:
            raise TransactionNotFoundException(transaction_id)
        found.deleted_at = None
        return copy.deepcopy(found)

    async def delete_permanent(self, transaction_id: int) -> bool:
        if self._find(transaction_id, True) is None:
            raise TransactionNotFoundException(transaction_id)
        del self.store.transactions[transaction_id]
        return True

    async def restore_all(self) -> bool:
        for transaction in self.store.transactions.values():
            transaction.deleted_at = None
        return True

    async def delete_all_permanent(self) -> bool:
        for transaction_id in [t.id for t in self.store.transactions.values() if t.deleted_at]:
            del self.store.transactions[transaction_id]
        return True


class FakeUnitOfWork(AbstractUnitOfWork):
    """回滚时恢复进入时的交易快照"""

    def __init__(self, store: InMemoryStore, *, readonly: bool = False):
        super().__init__(readonly=readonly)
        self.store = store

    async def __aenter__(self) -> "FakeUnitOfWork":
        self._snapshot = copy.deepcopy(self.store.transactions)
        self._next_id = self.store.next_id
        self.cashier_repository = InMemoryCashierLookup(self.store)
        self.merchant_repository = InMemoryMerchantLookup(self.store)
        self.order_repository = InMemoryOrderLookup(self.store)
        self.order_item_repository = InMemoryOrderItemLookup(self.store)
        self.transaction_repository = InMemoryTransactionRepository(self.store)
        return self

    async def commit(self) -> None:
        self._committed = True
        self.store.commits += 1

    async def rollback(self) -> None:
        self.store.transactions = self._snapshot
        self.store.next_id = self._next_id
        self.store.rollbacks += 1


def uow_factory_for(store: InMemoryStore):
    def _factory(**kwargs: Any) -> FakeUnitOfWork:
        return FakeUnitOfWork(store, **kwargs)

    return _factory


class RecordingObserver(Observer):
    def __init__(self) -> None:
        self.events: List[Tuple[str, Dict[str, Any]]] = []
        self.counters: List[Tuple[str, Dict[str, str]]] = []
        self.durations: List[Tuple[str, float, Dict[str, str]]] = []
        self.attributes: Dict[str, Any] = {}
        self.ended: List[Optional[BaseException]] = []

    def start_span(self, name: str, attributes: Optional[dict] = None) -> Any:
        return name

    def end_span(self, span: Any, *, error: Optional[BaseException] = None) -> None:
        self.ended.append(error)

    def set_attributes(self, span: Any, **attributes: Any) -> None:
        self.attributes.update(attributes)

    def increment(self, name: str, **labels: str) -> None:
        self.counters.append((name, labels))

    def observe_duration(self, name: str, seconds: float, **labels: str) -> None:
        self.durations.append((name, seconds, labels))

    def log_event(self, event: str, **fields: Any) -> None:
        self.events.append((event, fields))

    def stages(self) -> List[str]:
        return [f["stage"] for e, f in self.events if e == "transaction_pipeline_stage"]


class FakeTransactionCache:
    def __init__(self) -> None:
        self.data: Dict[int, Dict[str, Any]] = {}
        self.hits = 0
        self.invalidated: List[int] = []
        self.cleared = 0

    async def get(self, transaction_id: int) -> Optional[Dict[str, Any]]:
        value = self.data.get(transaction_id)
        if value is not None:
            self.hits += 1
        return value

    async def set(self, transaction_id: int, payload: Dict[str, Any]) -> None:
        self.data[transaction_id] = payload

    async def invalidate(self, transaction_id: int) -> None:
        self.invalidated.append(transaction_id)
        self.data.pop(transaction_id, None)

    async def clear(self) -> None:
        self.cleared += 1
        self.data.clear()
