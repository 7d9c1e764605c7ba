"""
存储模块 (store)

- types.py：Transaction / CategorySpending / StoredRecommendation 数据类
- base.py：TransactionRepository / RecommendationRepository 抽象接口
- json_store.py：基于 JSON 文件的默认实现
"""

from budgetbot.store.base import RecommendationRepository, TransactionRepository
from budgetbot.store.json_store import JsonRecommendationStore, JsonTransactionStore
from budgetbot.store.types import CategorySpending, StoredRecommendation, Transaction

__all__ = [
    "Transaction",
    "CategorySpending",
    "StoredRecommendation",
    "TransactionRepository",
    "RecommendationRepository",
    "JsonTransactionStore",
    "JsonRecommendationStore",
]
