"""
交易命令应用服务（application/services）- 编排交易流水线与生命周期操作

每个命令一个 Unit of Work：引用读取、校验和写入在同一数据库事务中完成，
任何异常都会回滚。缓存只在事务提交成功后失效。
"""
from typing import Callable, Optional

from domain.common.observer import NoopObserver, Observer
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.transaction import Transaction, TransactionCommandPipeline
from domain.transaction.exceptions import TransactionNotFoundException
from application.dto import (
    CreateTransactionDTO,
    UpdateTransactionDTO,
    TransactionResponseDTO,
    TransactionDeleteAtResponseDTO,
)
from application.ports.transaction_cache import TransactionCachePort


class TransactionCommandService:
    """交易命令服务 - 处理应用层逻辑"""

    def __init__(
        self,
        uow_factory: Callable[..., AbstractUnitOfWork],
        observer: Optional[Observer] = None,
        cache: Optional[TransactionCachePort] = None,
    ):
        self._uow_factory = uow_factory
        self._observer = observer or NoopObserver()
        self._cache = cache

    def _pipeline(self, uow: AbstractUnitOfWork) -> TransactionCommandPipeline:
        return TransactionCommandPipeline(
            cashier_lookup=uow.cashier_repository,
            merchant_lookup=uow.merchant_repository,
            order_lookup=uow.order_repository,
            order_item_lookup=uow.order_item_repository,
            transaction_repository=uow.transaction_repository,
            observer=self._observer,
        )

    async def create_transaction(self, data: CreateTransactionDTO) -> TransactionResponseDTO:
        """创建交易：校验引用与订单项，计税并对账后写入"""
        with self._observer.operation(
            "CreateTransaction", order_id=data.order_id, cashier_id=data.cashier_id
        ) as span:
            async with self._uow_factory() as uow:
                created = await self._pipeline(uow).create_transaction(
                    order_id=data.order_id,
                    cashier_id=data.cashier_id,
                    payment_method=data.payment_method,
                    amount=data.amount,
                    span=span,
                )
            self._observer.set_attributes(span, **{"transaction.id": created.id})
            return self._to_response_dto(created)

    async def update_transaction(self, data: UpdateTransactionDTO) -> TransactionResponseDTO:
        """更新交易：终态（paid/refunded）交易拒绝任何修改"""
        with self._observer.operation(
            "UpdateTransaction",
            transaction_id=data.transaction_id,
            order_id=data.order_id,
            cashier_id=data.cashier_id,
        ) as span:
            async with self._uow_factory() as uow:
                updated = await self._pipeline(uow).update_transaction(
                    transaction_id=data.transaction_id,
                    order_id=data.order_id,
                    cashier_id=data.cashier_id,
                    payment_method=data.payment_method,
                    amount=data.amount,
                    span=span,
                )
            await self._invalidate(updated.id)
            return self._to_response_dto(updated)

    async def trashed_transaction(self, transaction_id: int) -> TransactionDeleteAtResponseDTO:
        """移入回收站"""
        with self._observer.operation("TrashedTransaction", transaction_id=transaction_id):
            async with self._uow_factory() as uow:
                trashed = await uow.transaction_repository.trash(transaction_id)
            await self._invalidate(transaction_id)
            return self._to_delete_at_dto(trashed)

    async def restore_transaction(self, transaction_id: int) -> TransactionDeleteAtResponseDTO:
        """从回收站恢复"""
        with self._observer.operation("RestoreTransaction", transaction_id=transaction_id):
            async with self._uow_factory() as uow:
                restored = await uow.transaction_repository.restore(transaction_id)
            await self._invalidate(transaction_id)
            return self._to_delete_at_dto(restored)

    async def delete_transaction_permanent(self, transaction_id: int) -> bool:
        """永久删除（仅限回收站中的交易）"""
        with self._observer.operation("DeleteTransactionPermanent", transaction_id=transaction_id):
            async with self._uow_factory() as uow:
                deleted = await uow.transaction_repository.delete_permanent(transaction_id)
            await self._invalidate(transaction_id)
            return deleted

    async def restore_all_transactions(self) -> bool:
        """恢复回收站中的全部交易"""
        with self._observer.operation("RestoreAllTransactions"):
            async with self._uow_factory() as uow:
                result = await uow.transaction_repository.restore_all()
            if self._cache is not None:
                await self._cache.clear()
            return result

    async def delete_all_transaction_permanent(self) -> bool:
        """永久删除回收站中的全部交易"""
        with self._observer.operation("DeleteAllTransactionPermanent"):
            async with self._uow_factory() as uow:
                result = await uow.transaction_repository.delete_all_permanent()
            if self._cache is not None:
                await self._cache.clear()
            return result

    async def get_transaction(self, transaction_id: int) -> TransactionResponseDTO:
        """按ID获取活动交易（优先读缓存）"""
        with self._observer.operation("FindTransactionById", transaction_id=transaction_id) as span:
            if self._cache is not None:
                cached = await self._cache.get(transaction_id)
                if cached is not None:
                    self._observer.set_attributes(span, **{"cache.hit": True})
                    return TransactionResponseDTO.model_validate(cached)

            async with self._uow_factory(readonly=True) as uow:
                transaction = await uow.transaction_repository.get_by_id(transaction_id)
            if transaction is None:
                raise TransactionNotFoundException(transaction_id)

            dto = self._to_response_dto(transaction)
            if self._cache is not None:
                await self._cache.set(transaction_id, dto.model_dump())
            return dto

    async def _invalidate(self, transaction_id: Optional[int]) -> None:
        if self._cache is not None and transaction_id is not None:
            await self._cache.invalidate(transaction_id)

    def _to_response_dto(self, transaction: Transaction) -> TransactionResponseDTO:
        """转换为响应DTO"""
        return TransactionResponseDTO(
            id=transaction.id,
            order_id=transaction.order_id,
            cashier_id=transaction.cashier_id,
            merchant_id=transaction.merchant_id,
            payment_method=transaction.payment_method,
            amount=transaction.amount,
            payment_status=transaction.payment_status.value,
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
        )

    def _to_delete_at_dto(self, transaction: Transaction) -> TransactionDeleteAtResponseDTO:
        return TransactionDeleteAtResponseDTO(
            id=transaction.id,
            order_id=transaction.order_id,
            cashier_id=transaction.cashier_id,
            merchant_id=transaction.merchant_id,
            payment_method=transaction.payment_method,
            amount=transaction.amount,
            payment_status=transaction.payment_status.value,
            created_at=transaction.created_at,
            updated_at=transaction.updated_at,
            deleted_at=transaction.deleted_at,
        )
