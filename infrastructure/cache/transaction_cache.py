"""按ID读取交易的缓存，写操作提交后失效"""
from __future__ import annotations

from typing import Any, Dict, Optional

from redis.exceptions import RedisError

from core.logging_config import get_logger
from application.ports.transaction_cache import TransactionCachePort
from .redis_cache import RedisCache


logger = get_logger(__name__)

KEY_PREFIX = "transaction:id:"
DEFAULT_TTL_SECONDS = 300


class TransactionCache(TransactionCachePort):
    """
    缓存失败只记录日志，不影响命令本身的结果。
    """

    def __init__(self, cache: RedisCache, ttl: int = DEFAULT_TTL_SECONDS) -> None:
        self._cache = cache
        self._ttl = ttl

    @staticmethod
    def key(transaction_id: int) -> str:
        return f"{KEY_PREFIX}{transaction_id}"

    async def get(self, transaction_id: int) -> Optional[Dict[str, Any]]:
        try:
            return await self._cache.get(self.key(transaction_id))
        except RedisError as exc:
            logger.warning("transaction_cache_get_failed", transaction_id=transaction_id, error=str(exc))
            return None

    async def set(self, transaction_id: int, payload: Dict[str, Any]) -> None:
        try:
            await self._cache.set(self.key(transaction_id), payload, ttl=self._ttl)
        except RedisError as exc:
            logger.warning("transaction_cache_set_failed", transaction_id=transaction_id, error=str(exc))

    async def invalidate(self, transaction_id: int) -> None:
        try:
            await self._cache.delete(self.key(transaction_id))
        except RedisError as exc:
            logger.warning("transaction_cache_invalidate_failed", transaction_id=transaction_id, error=str(exc))

    async def clear(self) -> None:
        try:
            removed = await self._cache.delete_prefix(KEY_PREFIX)
            logger.info("transaction_cache_cleared", removed=removed)
        except RedisError as exc:
            logger.warning("transaction_cache_clear_failed", error=str(exc))
