"""
交易搜索工具 (agent/tools/search.py)

模块职责：
    SearchTransactionsTool 让模型用自然语言查找交易（订阅、咖啡店、外卖等），
    是 Agent 探索用户消费模式的主要手段。

依赖注入：
    工具本身不关心搜索如何实现（向量检索、关键词匹配都可以），
    只需要在构造时注入一个异步搜索函数：
        async def search(subject_id: str, query: str, limit: int) -> list[Transaction]
"""

from typing import TYPE_CHECKING, Any, Awaitable, Callable

from loguru import logger

from budgetbot.agent.tools.base import Tool, clamp

if TYPE_CHECKING:
    from budgetbot.store.types import Transaction

SearchFn = Callable[[str, str, int], Awaitable[list["Transaction"]]]


class SearchTransactionsTool(Tool):
    """
    语义搜索交易。

    maxResults 默认 10，在工具内部钳制到 [1, max_results]，
    不论模型请求多大的值。
    """

    name = "SearchTransactions"
    description = (
        "Search transactions using semantic search. Use this to find specific patterns, merchants, "
        "or transaction types. Examples: 'subscriptions', 'coffee shops', 'shopping', "
        "'dining'. Returns up to maxResults transactions with descriptions and amounts."
    )

    def __init__(self, search: SearchFn, default_results: int = 10, max_results: int = 20):
        self._search = search
        self.default_results = default_results
        self.max_results = max_results

    @property
    def parameters(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "query": {
                    "type": "string",
                    "description": "Natural language search query describing what transactions to find",
                    "minLength": 1,
                },
                "maxResults": {
                    "type": "integer",
                    "description": (
                        f"Maximum number of results to return "
                        f"(default: {self.default_results}, max: {self.max_results})"
                    ),
                    "default": self.default_results,
                },
            },
            "required": ["query"],
        }

    async def run(
        self,
        subject_id: str,
        query: str,
        maxResults: int | None = None,
        **kwargs: Any,
    ) -> dict[str, Any]:
        limit = clamp(maxResults, self.default_results, self.max_results)
        logger.info(f"SearchTransactions called: query={query!r}, maxResults={limit}")

        results = await self._search(subject_id, query, limit)
        if not results:
            return {
                "success": True,
                "count": 0,
                "message": "No transactions found matching the query.",
                "transactions": [],
            }

        transactions = [
            {
                "id": t.id,
                "date": t.date.isoformat(),
                "description": t.description,
                "amount": t.amount,
                "category": t.category,
                "account": t.account,
            }
            for t in results[:limit]
        ]
        return {
            "success": True,
            "count": len(transactions),
            "query": query,
            "transactions": transactions,
        }
