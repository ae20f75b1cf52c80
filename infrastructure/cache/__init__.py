"""缓存层对外暴露的接口"""
from .redis_cache import (
    RedisCache,
    init_redis_cache,
    shutdown_redis_cache,
)
from .transaction_cache import TransactionCache

__all__ = [
    "RedisCache",
    "TransactionCache",
    "init_redis_cache",
    "shutdown_redis_cache",
]
