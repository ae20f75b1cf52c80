"""
交易仓储接口 - 定义交易数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from typing import Optional

from .entity import Transaction


class TransactionRepository(ABC):
    """交易仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def create(self, transaction: Transaction) -> Transaction:
        """创建交易记录"""
        pass

    @abstractmethod
    async def update(self, transaction: Transaction) -> Transaction:
        """更新交易记录"""
        pass

    @abstractmethod
    async def get_by_id(
        self,
        transaction_id: int,
        *,
        include_trashed: bool = False,
        for_update: bool = False,
    ) -> Optional[Transaction]:
        """根据ID获取交易（默认排除已移入回收站的记录）"""
        pass

    @abstractmethod
    async def trash(self, transaction_id: int) -> Transaction:
        """软删除：设置 deleted_at"""
        pass

    @abstractmethod
    async def restore(self, transaction_id: int) -> Transaction:
        """从回收站恢复：清空 deleted_at"""
        pass

    @abstractmethod
    async def delete_permanent(self, transaction_id: int) -> bool:
        """永久删除已在回收站中的记录"""
        pass

    @abstractmethod
    async def restore_all(self) -> bool:
        """恢复回收站中的全部记录"""
        pass

    @abstractmethod
    async def delete_all_permanent(self) -> bool:
        """永久删除回收站中的全部记录"""
        pass
