"""
分类消费统计工具 (agent/tools/spending.py)

GetCategorySpendingTool 返回按分类聚合的消费总额，用于回答
"钱主要花在哪里"、"哪些分类占比最高" 这类问题。

聚合能力在构造时注入：
    async def aggregate(subject_id: str, top_n: int, include_income: bool) -> list[CategorySpending]
返回结果应按支出从大到小排序（total 最负的在前）。
"""

from typing import TYPE_CHECKING, Any, Awaitable, Callable

from loguru import logger

from budgetbot.agent.tools.base import Tool, clamp

if TYPE_CHECKING:
    from budgetbot.store.types import CategorySpending

AggregateFn = Callable[[str, int, bool], Awaitable[list["CategorySpending"]]]


class GetCategorySpendingTool(Tool):
    """按分类统计消费，topN 在工具内部钳制到 [1, max_top_n]。"""

    name = "GetCategorySpending"
    description = (
        "Get spending totals grouped by category. Use this to answer questions about "
        "how much was spent in each category, what the top spending categories are, "
        "or to compare spending across categories. Returns category names with total amounts."
    )

    def __init__(self, aggregate: AggregateFn, default_top_n: int = 10, max_top_n: int = 20):
        self._aggregate = aggregate
        self.default_top_n = default_top_n
        self.max_top_n = max_top_n

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "topN": {
                    "type": "integer",
                    "description": (
                        f"Number of top categories to return "
                        f"(default: {self.default_top_n}, max: {self.max_top_n})"
                    ),
                    "default": self.default_top_n,
                },
                "includeIncome": {
                    "type": "boolean",
                    "description": "Include income categories (positive amounts). Default is false (expenses only).",
                    "default": False,
                },
            },
            "required": [],
        }

    async def run(
        self,
        subject_id: str,
        topN: int | None = None,
        includeIncome: bool = False,
        **kwargs: Any,
    ) -> dict[str, Any]:
        top_n = clamp(topN, self.default_top_n, self.max_top_n)
        logger.info(f"GetCategorySpending called: topN={top_n}, includeIncome={includeIncome}")

        rows = await self._aggregate(subject_id, top_n, includeIncome)
        if not rows:
            return {
                "success": True,
                "count": 0,
                "message": "No categorized transactions found.",
                "categories": [],
            }

        categories = [
            {
                "category": row.category,
                "total": round(abs(row.total), 2),
                "transactionCount": row.count,
            }
            for row in rows[:top_n]
        ]
        return {
            "success": True,
            "count": len(categories),
            "grandTotal": round(sum(c["total"] for c in categories), 2),
            "categories": categories,
        }
