"""
交易仓储实现 - 使用SQLAlchemy实现数据访问
"""
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from domain.transaction.entity import PaymentStatus, Transaction
from domain.transaction.exceptions import TransactionNotFoundException
from domain.transaction.repository import TransactionRepository
from infrastructure.models.transaction import TransactionModel
from infrastructure.repositories.errors import persistence_errors
from core.logging_config import get_logger


logger = get_logger(__name__)


class SQLAlchemyTransactionRepository(TransactionRepository):
    """交易仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: TransactionModel) -> Transaction:
        """将数据库模型转换为领域实体"""
        return Transaction(
            id=model.id,
            order_id=model.order_id,
            cashier_id=model.cashier_id,
            merchant_id=model.merchant_id,
            payment_method=model.payment_method,
            amount=model.amount,
            payment_status=PaymentStatus(model.payment_status),
            created_at=model.created_at,
            updated_at=model.updated_at,
            deleted_at=model.deleted_at,
        )

    def _to_model(self, entity: Transaction) -> TransactionModel:
        """将领域实体转换为数据库模型"""
        return TransactionModel(
            id=entity.id,
            order_id=entity.order_id,
            cashier_id=entity.cashier_id,
            merchant_id=entity.merchant_id,
            payment_method=entity.payment_method,
            amount=entity.amount,
            payment_status=entity.payment_status.value,
            created_at=entity.created_at,
            updated_at=entity.updated_at,
            deleted_at=entity.deleted_at,
        )

    async def _get_model(
        self,
        transaction_id: int,
        *,
        trashed: Optional[bool] = False,
        for_update: bool = False,
    ) -> Optional[TransactionModel]:
        """trashed: False 仅活动记录，True 仅回收站记录，None 不限"""
        query = select(TransactionModel).where(TransactionModel.id == transaction_id)
        if trashed is False:
            query = query.where(TransactionModel.deleted_at.is_(None))
        elif trashed is True:
            query = query.where(TransactionModel.deleted_at.is_not(None))
        if for_update:
            query = query.with_for_update()
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create(self, transaction: Transaction) -> Transaction:
        """创建交易记录"""
        with persistence_errors("create"):
            db_transaction = self._to_model(transaction)
            self.session.add(db_transaction)
            await self.session.flush()
            await self.session.refresh(db_transaction)

        logger.info(
            "transaction_created",
            transaction_id=db_transaction.id,
            order_id=db_transaction.order_id,
            merchant_id=db_transaction.merchant_id,
            amount=db_transaction.amount,
        )
        return self._to_entity(db_transaction)

    async def update(self, transaction: Transaction) -> Transaction:
        """更新交易记录"""
        with persistence_errors("update", transaction.id):
            db_transaction = await self._get_model(transaction.id)
            if not db_transaction:
                raise TransactionNotFoundException(transaction.id)

            db_transaction.order_id = transaction.order_id
            db_transaction.cashier_id = transaction.cashier_id
            db_transaction.merchant_id = transaction.merchant_id
            db_transaction.payment_method = transaction.payment_method
            db_transaction.amount = transaction.amount
            db_transaction.payment_status = transaction.payment_status.value
            db_transaction.updated_at = transaction.updated_at or datetime.now(timezone.utc)

            await self.session.flush()
            await self.session.refresh(db_transaction)

        logger.info(
            "transaction_updated",
            transaction_id=db_transaction.id,
            amount=db_transaction.amount,
            payment_status=db_transaction.payment_status,
        )
        return self._to_entity(db_transaction)

    async def get_by_id(
        self,
        transaction_id: int,
        *,
        include_trashed: bool = False,
        for_update: bool = False,
    ) -> Optional[Transaction]:
        """根据ID获取交易"""
        with persistence_errors("read", transaction_id):
            db_transaction = await self._get_model(
                transaction_id,
                trashed=None if include_trashed else False,
                for_update=for_update,
            )
        return self._to_entity(db_transaction) if db_transaction else None

    async def trash(self, transaction_id: int) -> Transaction:
        """软删除交易"""
        with persistence_errors("trash", transaction_id):
            db_transaction = await self._get_model(transaction_id, trashed=False)
            if not db_transaction:
                raise TransactionNotFoundException(transaction_id)

            now = datetime.now(timezone.utc)
            db_transaction.deleted_at = now
            db_transaction.updated_at = now
            await self.session.flush()
            await self.session.refresh(db_transaction)

        logger.info("transaction_trashed", transaction_id=transaction_id)
        return self._to_entity(db_transaction)

    async def restore(self, transaction_id: int) -> Transaction:
        """从回收站恢复交易"""
        with persistence_errors("restore", transaction_id):
            db_transaction = await self._get_model(transaction_id, trashed=True)
            if not db_transaction:
                raise TransactionNotFoundException(transaction_id)

            db_transaction.deleted_at = None
            db_transaction.updated_at = datetime.now(timezone.utc)
            await self.session.flush()
            await self.session.refresh(db_transaction)

        logger.info("transaction_restored", transaction_id=transaction_id)
        return self._to_entity(db_transaction)

    async def delete_permanent(self, transaction_id: int) -> bool:
        """永久删除回收站中的交易"""
        with persistence_errors("delete", transaction_id):
            db_transaction = await self._get_model(transaction_id, trashed=True)
            if not db_transaction:
                raise TransactionNotFoundException(transaction_id)

            await self.session.delete(db_transaction)
            await self.session.flush()

        logger.info("transaction_deleted_permanently", transaction_id=transaction_id)
        return True

    async def restore_all(self) -> bool:
        """恢复回收站中的全部交易"""
        with persistence_errors("restore all"):
            result = await self.session.execute(
                update(TransactionModel)
                .where(TransactionModel.deleted_at.is_not(None))
                .values(deleted_at=None, updated_at=datetime.now(timezone.utc))
            )
            await self.session.flush()

        logger.info("transactions_restored_all", count=result.rowcount)
        return True

    async def delete_all_permanent(self) -> bool:
        """永久删除回收站中的全部交易"""
        with persistence_errors("delete all"):
            result = await self.session.execute(
                delete(TransactionModel).where(TransactionModel.deleted_at.is_not(None))
            )
            await self.session.flush()

        logger.info("transactions_deleted_all_permanently", count=result.rowcount)
        return True
