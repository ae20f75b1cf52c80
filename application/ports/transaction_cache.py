"""Application-owned cache port for the transaction-by-id read path.

With no cache configured the service simply skips these calls.
"""
from __future__ import annotations

from typing import Any, Dict, Optional, Protocol, runtime_checkable


@runtime_checkable
class TransactionCachePort(Protocol):
    async def get(self, transaction_id: int) -> Optional[Dict[str, Any]]:
        ...

    async def set(self, transaction_id: int, payload: Dict[str, Any]) -> None:
        ...

    async def invalidate(self, transaction_id: int) -> None:
        ...

    async def clear(self) -> None:
        ...
