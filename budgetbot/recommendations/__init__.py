"""建议服务：生成前置检查、运行 Agent、持久化与查询。"""

from budgetbot.recommendations.service import (
    GenerationReport,
    RecommendationService,
    build_service,
    build_tool_registry,
)

__all__ = ["GenerationReport", "RecommendationService", "build_service", "build_tool_registry"]
