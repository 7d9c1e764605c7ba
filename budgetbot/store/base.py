"""
存储层抽象接口 (store/base.py)

建议服务和工具只依赖这里的抽象方法，不关心底层是 JSON 文件、SQL 还是向量数据库。

- TransactionRepository：交易查询能力（搜索、分类聚合、计数、最近导入时间）
- RecommendationRepository：建议的持久化（替换有效建议、查询有效建议）
"""

from abc import ABC, abstractmethod
from datetime import datetime

from budgetbot.store.types import CategorySpending, StoredRecommendation, Transaction


class TransactionRepository(ABC):
    """交易数据访问接口。所有方法都只访问 user_id 名下的数据。"""

    @abstractmethod
    async def search(self, user_id: str, query: str, limit: int) -> list[Transaction]:
        """按相关度从高到低返回最多 limit 条匹配 query 的交易。"""
        pass

    @abstractmethod
    async def category_spending(self, user_id: str, top_n: int, include_income: bool) -> list[CategorySpending]:
        """按分类聚合，支出最大（total 最负）的在前，最多 top_n 条。"""
        pass

    @abstractmethod
    async def count(self, user_id: str) -> int:
        pass

    @abstractmethod
    async def last_imported_at(self, user_id: str) -> datetime | None:
        pass


class RecommendationRepository(ABC):
    """建议持久化接口。"""

    @abstractmethod
    async def last_generated_at(self, user_id: str) -> datetime | None:
        pass

    @abstractmethod
    async def replace_active(self, user_id: str, recommendations: list[StoredRecommendation]) -> None:
        """把 user_id 当前所有 active 建议标记为 expired，再保存新建议。"""
        pass

    @abstractmethod
    async def active(self, user_id: str, now: datetime, limit: int) -> list[StoredRecommendation]:
        """未过期的 active 建议，按优先级降序、生成时间降序，最多 limit 条。"""
        pass
