"""SQLite 上的端到端测试：Unit of Work + SQLAlchemy 仓储 + 命令服务"""
import pytest
from sqlalchemy import select, update
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from application.dto import CreateTransactionDTO, UpdateTransactionDTO
from application.services.transaction_service import TransactionCommandService
from domain.transaction.exceptions import (
    CashierNotFoundException,
    InsufficientPaymentException,
    InvalidOrderItemQuantityException,
    PaymentStatusImmutableException,
    TransactionErrorKind,
    TransactionNotFoundException,
    TransactionPersistenceException,
)
from infrastructure.models import (
    CashierModel,
    MerchantModel,
    OrderItemModel,
    OrderModel,
    TransactionModel,
)
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork
from tests.fakes import RecordingObserver


@pytest.fixture
async def seeded(sqlite_session_factory):
    async with sqlite_session_factory() as session:
        session.add_all([
            MerchantModel(id=1, name="Toko Maju", status="active"),
            MerchantModel(id=2, name="Warung Sejahtera", status="active"),
        ])
        await session.flush()
        session.add_all([
            CashierModel(id=10, merchant_id=1, name="Ani"),
            CashierModel(id=11, merchant_id=2, name="Budi"),
        ])
        await session.flush()
        session.add_all([
            OrderModel(id=100, merchant_id=1, cashier_id=10, total_price=25000),
            OrderModel(id=200, merchant_id=1, cashier_id=10, total_price=0),
        ])
        await session.flush()
        session.add_all([
            OrderItemModel(id=1, order_id=100, product_id=501, quantity=2, price=10000),
            OrderItemModel(id=2, order_id=100, product_id=502, quantity=1, price=5000),
            OrderItemModel(id=3, order_id=200, product_id=503, quantity=0, price=900),
        ])
        await session.commit()
    return sqlite_session_factory


@pytest.fixture
def service(seeded) -> TransactionCommandService:
    def uow_factory(**kwargs):
        return SQLAlchemyUnitOfWork(session_factory=seeded, **kwargs)

    return TransactionCommandService(uow_factory=uow_factory)


async def _count_rows(session_factory) -> int:
    async with session_factory() as session:
        result = await session.execute(select(TransactionModel))
        return len(result.scalars().all())


async def _create(service, **overrides):
    data = dict(order_id=100, cashier_id=10, payment_method="cash", amount=30000)
    data.update(overrides)
    return await service.create_transaction(CreateTransactionDTO(**data))


async def test_create_and_read_back(service):
    created = await _create(service)

    assert created.amount == 27750
    assert created.payment_status == "success"

    found = await service.get_transaction(created.id)
    assert found.merchant_id == 1
    assert found.created_at is not None
    assert found.created_at.tzinfo is not None


async def test_failed_commands_leave_no_rows(service, seeded):
    with pytest.raises(InsufficientPaymentException):
        await _create(service, amount=27749)
    with pytest.raises(CashierNotFoundException):
        await _create(service, cashier_id=999)
    with pytest.raises(InvalidOrderItemQuantityException):
        await _create(service, order_id=200)

    assert await _count_rows(seeded) == 0


async def test_soft_deleted_reference_rows_are_invisible(service, seeded):
    from datetime import datetime, timezone

    async with seeded() as session:
        await session.execute(
            update(CashierModel).where(CashierModel.id == 10).values(deleted_at=datetime.now(timezone.utc))
        )
        await session.commit()

    with pytest.raises(CashierNotFoundException):
        await _create(service)


async def test_update_uses_cashier_merchant(service):
    created = await _create(service)

    updated = await service.update_transaction(
        UpdateTransactionDTO(transaction_id=created.id, order_id=100, cashier_id=11,
                             payment_method="card", amount=27750)
    )

    assert updated.merchant_id == 2
    assert updated.payment_method == "card"
    assert updated.amount == 27750


async def test_paid_transaction_cannot_be_updated(service, seeded):
    created = await _create(service)
    async with seeded() as session:
        await session.execute(
            update(TransactionModel).where(TransactionModel.id == created.id).values(payment_status="paid")
        )
        await session.commit()

    with pytest.raises(PaymentStatusImmutableException):
        await service.update_transaction(
            UpdateTransactionDTO(transaction_id=created.id, order_id=100, cashier_id=10,
                                 payment_method="card", amount=99999)
        )

    async with seeded() as session:
        row = await session.get(TransactionModel, created.id)
        assert row.payment_method == "cash"
        assert row.amount == 27750


async def test_trash_then_restore(service):
    created = await _create(service)

    trashed = await service.trashed_transaction(created.id)
    assert trashed.deleted_at is not None
    with pytest.raises(TransactionNotFoundException):
        await service.get_transaction(created.id)

    restored = await service.restore_transaction(created.id)
    assert restored.deleted_at is None
    assert (await service.get_transaction(created.id)).id == created.id


async def test_trash_then_delete_then_restore_is_not_found(service, seeded):
    created = await _create(service)

    await service.trashed_transaction(created.id)
    assert await service.delete_transaction_permanent(created.id) is True

    with pytest.raises(TransactionNotFoundException):
        await service.restore_transaction(created.id)
    assert await _count_rows(seeded) == 0


async def test_lifecycle_preconditions(service):
    created = await _create(service)

    with pytest.raises(TransactionNotFoundException):
        await service.restore_transaction(created.id)
    with pytest.raises(TransactionNotFoundException):
        await service.delete_transaction_permanent(created.id)
    with pytest.raises(TransactionNotFoundException):
        await service.trashed_transaction(created.id + 1000)


async def test_bulk_restore_and_bulk_delete(service, seeded):
    first = await _create(service)
    second = await _create(service)
    kept = await _create(service)
    await service.trashed_transaction(first.id)
    await service.trashed_transaction(second.id)

    assert await service.restore_all_transactions() is True
    for tx in (first, second, kept):
        assert (await service.get_transaction(tx.id)).id == tx.id

    await service.trashed_transaction(first.id)
    await service.trashed_transaction(second.id)
    assert await service.delete_all_transaction_permanent() is True

    assert await _count_rows(seeded) == 1
    assert (await service.get_transaction(kept.id)).id == kept.id


async def test_bulk_operations_on_empty_trash_succeed(service):
    assert await service.restore_all_transactions() is True
    assert await service.delete_all_transaction_permanent() is True


async def _row_snapshot(session_factory, transaction_id: int) -> dict:
    async with session_factory() as session:
        row = await session.get(TransactionModel, transaction_id)
        return {
            "amount": row.amount,
            "payment_method": row.payment_method,
            "merchant_id": row.merchant_id,
            "payment_status": row.payment_status,
            "order_id": row.order_id,
        }


async def test_failed_updates_leave_row_unchanged(service, seeded):
    created = await _create(service)
    before = await _row_snapshot(seeded, created.id)

    with pytest.raises(InsufficientPaymentException):
        await service.update_transaction(
            UpdateTransactionDTO(transaction_id=created.id, order_id=100, cashier_id=11,
                                 payment_method="card", amount=27749)
        )
    with pytest.raises(InvalidOrderItemQuantityException):
        await service.update_transaction(
            UpdateTransactionDTO(transaction_id=created.id, order_id=200, cashier_id=11,
                                 payment_method="card", amount=99999)
        )

    assert await _row_snapshot(seeded, created.id) == before


class ConnectionLostOnCommitSession(AsyncSession):
    """提交时模拟连接中断"""

    async def commit(self) -> None:
        raise OperationalError("COMMIT", {}, Exception("server closed the connection"))


async def test_commit_failure_is_a_persistence_error(seeded):
    observer = RecordingObserver()
    failing_factory = async_sessionmaker(
        bind=seeded.kw["bind"], class_=ConnectionLostOnCommitSession, expire_on_commit=False
    )
    service = TransactionCommandService(
        uow_factory=lambda **kwargs: SQLAlchemyUnitOfWork(session_factory=failing_factory, **kwargs),
        observer=observer,
    )

    with pytest.raises(TransactionPersistenceException) as exc_info:
        await _create(service)

    assert exc_info.value.kind is TransactionErrorKind.PERSISTENCE
    assert exc_info.value.details["operation"] == "commit"
    assert exc_info.value.details["reason"] == "OperationalError"
    assert ("request_total", {"method": "CreateTransaction", "status": "error_persistence"}) in observer.counters
    assert await _count_rows(seeded) == 0


async def test_read_failure_is_a_persistence_error():
    # 未建表的库：第一次引用查询即失败
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    factory = async_sessionmaker(bind=engine, expire_on_commit=False)
    service = TransactionCommandService(
        uow_factory=lambda **kwargs: SQLAlchemyUnitOfWork(session_factory=factory, **kwargs),
    )
    try:
        with pytest.raises(TransactionPersistenceException) as create_exc:
            await _create(service)
        with pytest.raises(TransactionPersistenceException) as read_exc:
            await service.get_transaction(1)
    finally:
        await engine.dispose()

    assert create_exc.value.details["operation"] == "cashier lookup"
    assert read_exc.value.details == {"operation": "read", "transaction_id": 1, "reason": "OperationalError"}
