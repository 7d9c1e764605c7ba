"""
存储层数据类型 - 交易、分类统计、已保存建议。

本模块定义了工具和建议服务之间流转的数据结构：
- Transaction：一笔导入的交易（金额为负表示支出，为正表示收入）
- CategorySpending：按分类聚合后的统计结果
- StoredRecommendation：持久化的建议（带状态与过期时间）
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Literal

from budgetbot.agent.outcome import RecommendationCategory, RecommendationPriority
from budgetbot.utils.helpers import utc_now


@dataclass
class Transaction:
    """单笔交易。"""
    id: str
    user_id: str
    date: date
    description: str
    amount: float                      # 负数 = 支出，正数 = 收入
    category: str | None = None
    account: str | None = None
    imported_at: datetime = field(default_factory=utc_now)  # naive UTC


@dataclass
class CategorySpending:
    """分类聚合结果。total 保留原始符号（支出为负）。"""
    category: str
    total: float
    count: int


@dataclass
class StoredRecommendation:
    """
    持久化的建议。

    同一用户同一时刻只有最近一次生成的建议处于 active 状态，
    重新生成时旧的 active 建议会被标记为 expired。
    """
    id: str
    user_id: str
    title: str
    message: str
    category: RecommendationCategory
    priority: RecommendationPriority
    generated_at: datetime
    expires_at: datetime
    status: Literal["active", "expired", "dismissed"] = "active"
