"""数据库异常到领域持久化异常的转换"""
from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.exc import SQLAlchemyError

from domain.transaction.exceptions import TransactionPersistenceException
from core.logging_config import get_logger


logger = get_logger(__name__)


@contextmanager
def persistence_errors(operation: str, transaction_id: Optional[int] = None) -> Iterator[None]:
    """读、写、提交中的 SQLAlchemyError 统一转换为 persistence 类错误"""
    try:
        yield
    except SQLAlchemyError as exc:
        logger.error(
            "transaction_persistence_failed",
            operation=operation,
            transaction_id=transaction_id,
            error=str(exc),
        )
        raise TransactionPersistenceException(operation, transaction_id, reason=type(exc).__name__) from exc
