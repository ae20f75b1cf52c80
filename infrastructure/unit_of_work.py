"""SQLAlchemy Unit of Work 实现"""
from __future__ import annotations

from typing import Optional, Callable
import inspect

from sqlalchemy.ext.asyncio import AsyncSession

from domain.common.unit_of_work import AbstractUnitOfWork
from infrastructure.database import AsyncSessionLocal
from infrastructure.repositories.reference_repository import (
    SQLAlchemyCashierRepository,
    SQLAlchemyMerchantRepository,
    SQLAlchemyOrderItemRepository,
    SQLAlchemyOrderRepository,
)
from infrastructure.repositories.transaction_repository import (
    SQLAlchemyTransactionRepository,
)
from infrastructure.repositories.errors import persistence_errors


class SQLAlchemyUnitOfWork(AbstractUnitOfWork):
    """基于SQLAlchemy的Unit of Work

    一次命令的引用读取、校验与交易写入共享同一数据库事务。
    """

    def __init__(
        self,
        session_factory: Callable[[], AsyncSession] = AsyncSessionLocal,
        session: Optional[AsyncSession] = None,
        *,
        readonly: bool = False,
    ) -> None:
        super().__init__(readonly=readonly)
        self._session_factory = session_factory
        self._external_session = session
        self.session: Optional[AsyncSession] = session
        self._clear_repositories()

    def _clear_repositories(self) -> None:
        self.cashier_repository = None
        self.merchant_repository = None
        self.order_repository = None
        self.order_item_repository = None
        self.transaction_repository = None

    async def __aenter__(self) -> "SQLAlchemyUnitOfWork":
        if self.session is None:
            self.session = self._session_factory()
        self.cashier_repository = SQLAlchemyCashierRepository(self.session)
        self.merchant_repository = SQLAlchemyMerchantRepository(self.session)
        self.order_repository = SQLAlchemyOrderRepository(self.session)
        self.order_item_repository = SQLAlchemyOrderItemRepository(self.session)
        self.transaction_repository = SQLAlchemyTransactionRepository(self.session)
        # 仅在非只读模式下显式开启事务
        if not self._readonly:
            self._transaction = await self.session.begin()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        try:
            await super().__aexit__(exc_type, exc, tb)
        finally:
            tx = getattr(self, "_transaction", None)
            if tx is not None and getattr(tx, "is_active", False):
                close = getattr(tx, "close", None)
                if callable(close):
                    res = close()
                    if inspect.isawaitable(res):
                        await res
            if self._external_session is None and self.session is not None:
                await self.session.close()
                self.session = None
            self._clear_repositories()

    async def commit(self) -> None:
        if self._readonly:
            self._committed = True
            return
        if self.session and self.session.in_transaction():
            # 提交失败（序列化冲突、连接中断）同样归为 persistence 错误
            with persistence_errors("commit"):
                await self.session.commit()
        self._committed = True

    async def rollback(self) -> None:
        if self.session and self.session.in_transaction():
            await self.session.rollback()
        self._committed = False
