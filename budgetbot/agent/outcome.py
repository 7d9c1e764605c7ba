"""
Agent 运行结果类型 (agent/outcome.py)

一次 Agent 运行只会以下面三种结果之一结束：
- Recommendations：正常完成，并解析出至少一条建议
- Empty：正常完成，但没有可用的建议（无文本、JSON 损坏、元素全部无效）
- Aborted：被终止，reason 说明原因（迭代上限 / 输出被截断 / 内容被过滤）

【Java 开发者类比】
    相当于一个 sealed interface + 三个 record 实现，调用方用 isinstance 做模式匹配。
"""

from dataclasses import dataclass
from enum import Enum
from typing import Union


class RecommendationCategory(str, Enum):
    """建议分类。未知取值回退到 BEHAVIORAL_INSIGHT。"""
    SPENDING_ALERT = "SpendingAlert"
    SAVINGS_OPPORTUNITY = "SavingsOpportunity"
    BEHAVIORAL_INSIGHT = "BehavioralInsight"
    BUDGET_WARNING = "BudgetWarning"


class RecommendationPriority(str, Enum):
    """建议优先级。未知取值回退到 MEDIUM。"""
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"
    CRITICAL = "Critical"

    @property
    def rank(self) -> int:
        """用于排序的数值，越大越紧急。"""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    RecommendationPriority.LOW: 0,
    RecommendationPriority.MEDIUM: 1,
    RecommendationPriority.HIGH: 2,
    RecommendationPriority.CRITICAL: 3,
}


class AbortReason(str, Enum):
    """运行被终止的原因。"""
    MAX_ITERATIONS = "max_iterations"
    LENGTH_LIMIT = "length_limit"
    CONTENT_FILTERED = "content_filtered"


@dataclass(frozen=True)
class Recommendation:
    """一条结构化建议。"""
    title: str
    message: str
    category: RecommendationCategory
    priority: RecommendationPriority


@dataclass(frozen=True)
class Recommendations:
    items: tuple[Recommendation, ...]

    kind = "recommendations"

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class Empty:
    kind = "empty"


@dataclass(frozen=True)
class Aborted:
    reason: AbortReason

    kind = "aborted"


AgentOutcome = Union[Recommendations, Empty, Aborted]
