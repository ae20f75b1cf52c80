import pytest

from application.dto import CreateTransactionDTO, UpdateTransactionDTO, TransactionIdDTO, parse_dto
from application.services.transaction_service import TransactionCommandService
from domain.common.exceptions import DomainValidationException
from domain.transaction.exceptions import (
    InsufficientPaymentException,
    PaymentStatusImmutableException,
    TransactionNotFoundException,
)
from tests.fakes import FakeTransactionCache, uow_factory_for


@pytest.fixture
def cache() -> FakeTransactionCache:
    return FakeTransactionCache()


@pytest.fixture
def service(store, observer, cache) -> TransactionCommandService:
    return TransactionCommandService(uow_factory=uow_factory_for(store), observer=observer, cache=cache)


def create_dto(**overrides) -> CreateTransactionDTO:
    data = dict(order_id=100, cashier_id=10, payment_method="cash", amount=30000)
    data.update(overrides)
    return CreateTransactionDTO(**data)


async def test_create_returns_projection_and_counts_success(service, store, observer):
    dto = await service.create_transaction(create_dto())

    assert dto.amount == 27750
    assert dto.payment_status == "success"
    assert dto.merchant_id == 1
    assert store.commits == 1
    assert ("request_total", {"method": "CreateTransaction", "status": "success"}) in observer.counters
    assert observer.durations[0][0] == "request_duration_seconds"
    assert observer.attributes["transaction.id"] == dto.id


async def test_failed_create_rolls_back_and_labels_error_kind(service, store, observer):
    with pytest.raises(InsufficientPaymentException):
        await service.create_transaction(create_dto(amount=100))

    assert store.transactions == {}
    assert store.rollbacks == 1
    assert ("request_total", {"method": "CreateTransaction", "status": "error_business_rule"}) in observer.counters
    failed = [fields for event, fields in observer.events if event == "operation_failed"]
    assert failed and failed[0]["error_type"] == "InsufficientPayment"


async def test_update_invalidates_cached_projection(service, store, cache):
    existing = store.add_transaction(payment_status="pending")
    await service.get_transaction(existing.id)
    assert existing.id in cache.data

    dto = await service.update_transaction(
        UpdateTransactionDTO(transaction_id=existing.id, order_id=100, cashier_id=10,
                             payment_method="card", amount=27750)
    )

    assert dto.payment_method == "card"
    assert cache.invalidated == [existing.id]
    assert existing.id not in cache.data


async def test_update_of_paid_transaction_keeps_cache(service, store, cache):
    existing = store.add_transaction(payment_status="paid")
    with pytest.raises(PaymentStatusImmutableException):
        await service.update_transaction(
            UpdateTransactionDTO(transaction_id=existing.id, order_id=100, cashier_id=10,
                                 payment_method="card", amount=27750)
        )
    assert cache.invalidated == []


async def test_get_transaction_reads_through_cache(service, store, cache):
    existing = store.add_transaction()

    first = await service.get_transaction(existing.id)
    store.transactions[existing.id].payment_method = "changed-behind-cache"
    second = await service.get_transaction(existing.id)

    assert cache.hits == 1
    assert second.payment_method == first.payment_method == "cash"
    assert second.created_at == first.created_at


async def test_trash_restore_cycle(service, store):
    existing = store.add_transaction()

    trashed = await service.trashed_transaction(existing.id)
    assert trashed.deleted_at is not None
    with pytest.raises(TransactionNotFoundException):
        await service.get_transaction(existing.id)
    with pytest.raises(TransactionNotFoundException):
        await service.trashed_transaction(existing.id)

    restored = await service.restore_transaction(existing.id)
    assert restored.deleted_at is None
    assert (await service.get_transaction(existing.id)).id == existing.id


async def test_permanent_delete_requires_trashed_record(service, store):
    existing = store.add_transaction()

    with pytest.raises(TransactionNotFoundException):
        await service.delete_transaction_permanent(existing.id)

    await service.trashed_transaction(existing.id)
    assert await service.delete_transaction_permanent(existing.id) is True

    with pytest.raises(TransactionNotFoundException):
        await service.restore_transaction(existing.id)


async def test_bulk_operations_clear_cache(service, store, cache):
    first = store.add_transaction()
    second = store.add_transaction()
    active = store.add_transaction()
    await service.trashed_transaction(first.id)
    await service.trashed_transaction(second.id)

    assert await service.restore_all_transactions() is True
    assert all(t.deleted_at is None for t in store.transactions.values())

    await service.trashed_transaction(first.id)
    assert await service.delete_all_transaction_permanent() is True
    assert set(store.transactions) == {second.id, active.id}
    assert cache.cleared == 2


async def test_service_works_without_cache(store):
    service = TransactionCommandService(uow_factory=uow_factory_for(store))
    existing = store.add_transaction()
    assert (await service.get_transaction(existing.id)).amount == 27750
    assert await service.restore_all_transactions() is True


@pytest.mark.parametrize(
    "payload, field",
    [
        ({"order_id": 0, "cashier_id": 10, "payment_method": "cash", "amount": 1}, "order_id"),
        ({"order_id": 100, "cashier_id": -1, "payment_method": "cash", "amount": 1}, "cashier_id"),
        ({"order_id": 100, "cashier_id": 10, "payment_method": "  ", "amount": 1}, "payment_method"),
        ({"order_id": 100, "cashier_id": 10, "payment_method": "cash", "amount": -5}, "amount"),
        ({"order_id": 100, "cashier_id": 10, "payment_method": "cash"}, "amount"),
    ],
)
def test_invalid_create_payload_is_a_validation_error(payload, field):
    with pytest.raises(DomainValidationException) as exc_info:
        parse_dto(CreateTransactionDTO, payload)
    assert exc_info.value.field == field


def test_transaction_id_must_be_positive():
    with pytest.raises(DomainValidationException):
        parse_dto(TransactionIdDTO, {"id": 0})
    assert parse_dto(TransactionIdDTO, {"id": 3}).id == 3
