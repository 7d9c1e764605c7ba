"""
建议服务模块 (recommendations/service.py)

RecommendationService 包装 Agent 循环，负责一次"生成建议"任务的完整业务流程：

1. 前置检查
   - 自上次生成以来没有新导入的交易 → 跳过（skipped）
   - 交易数少于 min_transactions → 数据不足（insufficient_data）
2. 运行 Agent（迭代上限来自配置）
3. 按结果分别处理
   - Recommendations → 旧的有效建议置为过期，保存新建议（generated）
   - Empty → 模型正常结束但没有可用建议（no_recommendations）
   - Aborted → 记录终止原因（aborted），调用方可据此决定是否调整参数重试
   - TransportError → 记录错误（failed）

每种情况都在 GenerationReport.status 中区分开，不会把"解析为空"和"被截断/被过滤"混为一谈。
"""

import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, Literal

from loguru import logger

from budgetbot.agent.extractor import OutputExtractor
from budgetbot.agent.loop import AgentLoop
from budgetbot.agent.outcome import Aborted, AgentOutcome, Recommendations
from budgetbot.agent.tools import GetCategorySpendingTool, SearchTransactionsTool, ToolRegistry
from budgetbot.config.schema import Config, RecommendationsConfig
from budgetbot.providers.base import LLMProvider, TransportError
from budgetbot.store.base import RecommendationRepository, TransactionRepository
from budgetbot.store.types import StoredRecommendation
from budgetbot.utils.helpers import utc_now

GenerationStatus = Literal[
    "skipped",
    "insufficient_data",
    "generated",
    "no_recommendations",
    "aborted",
    "failed",
]


@dataclass
class GenerationReport:
    """一次生成任务的结果报告。"""
    status: GenerationStatus
    outcome: AgentOutcome | None = None
    stored: int = 0
    error: str | None = None


class RecommendationService:
    """建议生成与查询服务。"""

    def __init__(
        self,
        agent: AgentLoop,
        transactions: TransactionRepository,
        recommendations: RecommendationRepository,
        max_iterations: int,
        settings: RecommendationsConfig | None = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.agent = agent
        self.transactions = transactions
        self.recommendations = recommendations
        self.max_iterations = max_iterations
        self.settings = settings or RecommendationsConfig()
        self._clock = clock

    async def generate(self, user_id: str, force: bool = False) -> GenerationReport:
        """
        为用户生成建议。

        参数:
            user_id: 用户 ID
            force: 为 True 时跳过"没有新数据"检查
        """
        if not force and await self._is_up_to_date(user_id):
            logger.info(f"Skipping generation - no new data for user {user_id}")
            return GenerationReport(status="skipped")

        count = await self.transactions.count(user_id)
        if count < self.settings.min_transactions:
            logger.info(f"Insufficient transaction data for user {user_id} ({count} transactions)")
            return GenerationReport(status="insufficient_data")

        try:
            outcome = await self.agent.run(user_id, self.max_iterations)
        except TransportError as e:
            logger.error(f"Failed to generate recommendations for user {user_id}: {e}")
            return GenerationReport(status="failed", error=str(e))

        if isinstance(outcome, Aborted):
            logger.warning(f"Agent aborted for user {user_id}: {outcome.reason.value}")
            return GenerationReport(status="aborted", outcome=outcome)
        if not isinstance(outcome, Recommendations):
            logger.info(f"Agent generated no recommendations for {user_id}")
            return GenerationReport(status="no_recommendations", outcome=outcome)

        stored = await self._store(user_id, outcome)
        logger.info(f"Generated {stored} recommendations for user {user_id}")
        return GenerationReport(status="generated", outcome=outcome, stored=stored)

    async def active(self, user_id: str) -> list[StoredRecommendation]:
        """查询用户当前有效的建议。"""
        return await self.recommendations.active(user_id, self._clock(), self.settings.active_limit)

    async def _is_up_to_date(self, user_id: str) -> bool:
        last_generated = await self.recommendations.last_generated_at(user_id)
        last_imported = await self.transactions.last_imported_at(user_id)
        if last_generated is None or last_imported is None:
            return False
        grace = timedelta(seconds=self.settings.regeneration_grace_seconds)
        return last_generated > last_imported - grace

    async def _store(self, user_id: str, outcome: Recommendations) -> int:
        now = self._clock()
        expires_at = now + timedelta(days=self.settings.expiry_days)
        rows = [
            StoredRecommendation(
                id=str(uuid.uuid4()),
                user_id=user_id,
                title=rec.title,
                message=rec.message,
                category=rec.category,
                priority=rec.priority,
                generated_at=now,
                expires_at=expires_at,
            )
            for rec in outcome.items
        ]
        await self.recommendations.replace_active(user_id, rows)
        return len(rows)


def build_tool_registry(config: Config, transactions: TransactionRepository) -> ToolRegistry:
    """按配置创建注册表，把交易仓库的能力注入到各个工具中。"""
    search_cfg = config.tools.search
    spending_cfg = config.tools.spending
    return ToolRegistry([
        SearchTransactionsTool(
            transactions.search,
            default_results=search_cfg.default_results,
            max_results=search_cfg.max_results,
        ),
        GetCategorySpendingTool(
            transactions.category_spending,
            default_top_n=spending_cfg.default_top_n,
            max_top_n=spending_cfg.max_top_n,
        ),
    ])


def build_service(
    config: Config,
    provider: LLMProvider,
    transactions: TransactionRepository,
    recommendations: RecommendationRepository,
) -> RecommendationService:
    """根据配置组装 Agent 与建议服务。"""
    defaults = config.agents.defaults
    agent = AgentLoop(
        provider=provider,
        tools=build_tool_registry(config, transactions),
        model=defaults.model,
        max_tokens=defaults.max_tokens,
        temperature=defaults.temperature,
        tool_timeout=defaults.tool_timeout or None,
        extractor=OutputExtractor(max_items=defaults.max_recommendations),
    )
    return RecommendationService(
        agent=agent,
        transactions=transactions,
        recommendations=recommendations,
        max_iterations=defaults.max_iterations,
        settings=config.recommendations,
    )
