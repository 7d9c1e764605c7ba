"""
Agent 核心模块：budgetbot 的"大脑"。

本包包含 Agent 运行所需的全部核心组件：
- AgentLoop: 工具调用循环（状态机），run(subject_id, max_iterations) -> AgentOutcome
- Conversation: 单次运行的只追加对话历史
- ContextBuilder: 生成系统指令和任务消息
- OutputExtractor: 把最终回复解析为结构化建议
- outcome: Recommendations / Empty / Aborted 三种结果类型
"""

from budgetbot.agent.context import ContextBuilder
from budgetbot.agent.conversation import Conversation, ConversationError, Message, Role
from budgetbot.agent.extractor import OutputExtractor
from budgetbot.agent.loop import AgentLoop, AgentRun, AgentState, ToolExecutionOutcome
from budgetbot.agent.outcome import (
    AbortReason,
    Aborted,
    AgentOutcome,
    Empty,
    Recommendation,
    RecommendationCategory,
    RecommendationPriority,
    Recommendations,
)

__all__ = [
    "AgentLoop",
    "AgentRun",
    "AgentState",
    "ToolExecutionOutcome",
    "Conversation",
    "ConversationError",
    "Message",
    "Role",
    "ContextBuilder",
    "OutputExtractor",
    "AbortReason",
    "Aborted",
    "AgentOutcome",
    "Empty",
    "Recommendation",
    "RecommendationCategory",
    "RecommendationPriority",
    "Recommendations",
]
