"""
Agent 主循环模块：budgetbot 的核心处理引擎。

一次运行（run）的完整流程：
  播种对话（system + user）→ 请求模型 → 执行工具 → 回填结果 → 再次请求 → ... → 解析最终回复

状态机：
    REQUESTING ──有工具调用──→ TOOL_CALLS_PENDING → EXECUTING → REQUESTING
        │
        ├─ 无工具调用 + stop             → COMPLETED（交给 OutputExtractor）
        ├─ 无工具调用 + length           → LENGTH_ABORTED（输出被截断，不解析）
        ├─ 无工具调用 + content_filtered → CONTENT_FILTER_ABORTED（不解析）
        └─ 请求次数达到 max_iterations    → MAX_ITERATIONS_ABORTED

关键约束：
1. 每轮响应都原样追加到对话中，之前的消息不可修改
2. 响应中只要带有工具调用（不论结束原因），就先执行工具
3. 每个 call_id 都一定有且只有一条结果消息：工具不存在、抛异常、超时都会合成错误结果
4. 同一轮内的多个工具调用并发执行，全部完成后才发起下一轮请求，结果按 call_id 关联
5. 传输层失败不重试，以 TransportError 中止整次运行
6. max_iterations 由调用方提供，最多发起 max_iterations 次模型请求

【Java 开发者类比】
- AgentLoop 类似于一个无状态的 Service：每次 run() 都新建 Conversation，多个用户可以并发调用
- ToolRegistry 类似于只读的 Bean 容器，按名称查找工具
- asyncio.gather 相当于 CompletableFuture.allOf(...).join()
"""

import asyncio
import json
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from loguru import logger

from budgetbot.agent.context import ContextBuilder
from budgetbot.agent.conversation import Conversation, ConversationError, Message
from budgetbot.agent.extractor import OutputExtractor
from budgetbot.agent.outcome import AbortReason, Aborted, AgentOutcome
from budgetbot.agent.tools.registry import ToolRegistry
from budgetbot.providers.base import (
    FINISH_CONTENT_FILTERED,
    FINISH_LENGTH,
    FINISH_STOP,
    LLMProvider,
    LLMResponse,
    ToolCallRequest,
    TransportError,
)

TOOL_NOT_FOUND = "tool not found"


class AgentState(str, Enum):
    REQUESTING = "requesting"
    TOOL_CALLS_PENDING = "tool_calls_pending"
    EXECUTING = "executing"
    COMPLETED = "completed"
    LENGTH_ABORTED = "length_aborted"
    CONTENT_FILTER_ABORTED = "content_filter_aborted"
    MAX_ITERATIONS_ABORTED = "max_iterations_aborted"

    @property
    def is_terminal(self) -> bool:
        return self in _TERMINAL


_TERMINAL = {
    AgentState.COMPLETED,
    AgentState.LENGTH_ABORTED,
    AgentState.CONTENT_FILTER_ABORTED,
    AgentState.MAX_ITERATIONS_ABORTED,
}

_ABORT_REASONS = {
    AgentState.LENGTH_ABORTED: AbortReason.LENGTH_LIMIT,
    AgentState.CONTENT_FILTER_ABORTED: AbortReason.CONTENT_FILTERED,
    AgentState.MAX_ITERATIONS_ABORTED: AbortReason.MAX_ITERATIONS,
}


@dataclass
class ToolExecutionOutcome:
    """
    单个工具调用的执行结果。

    属性:
        call_id: 对应的工具调用 ID
        tool_name: 工具名称
        success: 是否成功（工具返回 {"success": false} 也视为失败）
        payload: 工具返回的载荷（工具不存在或抛异常时为 None）
        error: 错误信息（成功时为 None）
        duration: 执行耗时（秒）
    """
    call_id: str
    tool_name: str
    success: bool
    payload: Any = None
    error: str | None = None
    duration: float = 0.0

    def to_result(self) -> Any:
        """回填给模型的内容：工具的载荷，没有载荷的失败则合成错误载荷。"""
        if self.success or self.payload is not None:
            return self.payload
        return {"success": False, "error": self.error}


@dataclass
class AgentRun:
    """一次运行的完整记录：结果、终止状态、请求次数、对话与工具执行明细。"""
    outcome: AgentOutcome
    state: AgentState
    iterations: int
    conversation: Conversation
    tool_outcomes: list[ToolExecutionOutcome] = field(default_factory=list)


class AgentLoop:
    """
    工具调用 Agent 循环。

    核心属性：
    - provider: 模型传输层
    - tools: 工具注册表（构造后只读）
    - context: 播种对话的上下文构建器
    - extractor: 最终回复解析器
    - tool_timeout: 单个工具调用的超时（秒），None 表示不限制
    """

    def __init__(
        self,
        provider: LLMProvider,
        tools: ToolRegistry,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
        tool_timeout: float | None = None,
        context: ContextBuilder | None = None,
        extractor: OutputExtractor | None = None,
    ):
        self.provider = provider
        self.tools = tools
        self.model = model or provider.get_default_model()
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.tool_timeout = tool_timeout
        self.extractor = extractor or OutputExtractor()
        self.context = context or ContextBuilder(tools, max_items=self.extractor.max_items)

    async def run(self, subject_id: str, max_iterations: int) -> AgentOutcome:
        """
        针对一个主体（用户）运行 Agent，返回最终结果。

        异常:
            ValueError: max_iterations < 1
            TransportError: 模型传输层失败
        """
        result = await self.run_detailed(subject_id, max_iterations)
        return result.outcome

    async def run_detailed(self, subject_id: str, max_iterations: int) -> AgentRun:
        """与 run() 相同，但返回包含对话历史和工具明细的 AgentRun。"""
        if max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

        conversation = self.context.seed()
        definitions = self.tools.get_definitions()
        tool_outcomes: list[ToolExecutionOutcome] = []
        final: Message | None = None
        state = AgentState.REQUESTING
        iteration = 0

        logger.info(f"Agent started for subject {subject_id} ({len(self.tools)} tools)")

        while not state.is_terminal:
            if iteration >= max_iterations:
                state = AgentState.MAX_ITERATIONS_ABORTED
                logger.warning(f"Agent reached max iterations ({max_iterations}) without completion")
                break

            iteration += 1
            logger.info(f"Agent iteration {iteration}/{max_iterations} for subject {subject_id}")

            response = await self._request(conversation, definitions)
            try:
                final = conversation.add_assistant(response)
            except ConversationError as e:
                raise TransportError(f"Malformed model response: {e}") from e

            state = self._next_state(response, iteration)
            if state is AgentState.TOOL_CALLS_PENDING:
                state = AgentState.EXECUTING
                outcomes = await self._execute_tool_calls(subject_id, response.tool_calls)
                for outcome in outcomes:
                    conversation.add_tool_result(outcome.call_id, outcome.tool_name, outcome.to_result())
                tool_outcomes.extend(outcomes)
                state = AgentState.REQUESTING

        if state is AgentState.COMPLETED:
            logger.info(f"Agent completed after {iteration} iterations")
            outcome: AgentOutcome = self.extractor.extract(final)
        else:
            outcome = Aborted(_ABORT_REASONS[state])

        return AgentRun(
            outcome=outcome,
            state=state,
            iterations=iteration,
            conversation=conversation,
            tool_outcomes=tool_outcomes,
        )

    async def _request(self, conversation: Conversation, definitions: list[dict[str, Any]]) -> LLMResponse:
        """请求一轮模型响应；任何传输异常都以 TransportError 抛出。"""
        try:
            return await self.provider.chat(
                messages=conversation.to_provider_messages(),
                tools=definitions or None,
                model=self.model,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except TransportError:
            raise
        except Exception as e:
            logger.error(f"Model transport failed: {e}")
            raise TransportError(f"Model transport failed: {e}") from e

    def _next_state(self, response: LLMResponse, iteration: int) -> AgentState:
        if response.has_tool_calls:
            return AgentState.TOOL_CALLS_PENDING
        if response.finish_reason == FINISH_STOP:
            return AgentState.COMPLETED
        if response.finish_reason == FINISH_LENGTH:
            logger.warning(f"Max tokens reached at iteration {iteration}")
            return AgentState.LENGTH_ABORTED
        if response.finish_reason == FINISH_CONTENT_FILTERED:
            logger.warning(f"Content filtered at iteration {iteration}")
            return AgentState.CONTENT_FILTER_ABORTED
        logger.warning(
            f"Unexpected finish reason {response.finish_reason!r} without tool calls at iteration {iteration}"
        )
        return AgentState.REQUESTING

    async def _execute_tool_calls(
        self,
        subject_id: str,
        calls: list[ToolCallRequest],
    ) -> list[ToolExecutionOutcome]:
        """并发执行同一轮的全部工具调用，结果顺序与请求顺序一致。"""
        logger.info(f"Executing {len(calls)} tool call(s)")
        return list(await asyncio.gather(*(self._execute_one(subject_id, call) for call in calls)))

    async def _execute_one(self, subject_id: str, call: ToolCallRequest) -> ToolExecutionOutcome:
        start = time.perf_counter()
        tool = self.tools.resolve(call.name)
        if tool is None:
            logger.warning(f"Tool not found: {call.name}")
            return ToolExecutionOutcome(call.id, call.name, success=False, error=TOOL_NOT_FOUND)

        args_str = json.dumps(call.arguments, ensure_ascii=False, default=str)
        logger.info(f"Tool call: {call.name}({args_str[:200]})")

        try:
            if self.tool_timeout:
                payload = await asyncio.wait_for(tool.execute(subject_id, call.arguments), self.tool_timeout)
            else:
                payload = await tool.execute(subject_id, call.arguments)
        except asyncio.TimeoutError:
            logger.error(f"Tool {call.name} timed out after {self.tool_timeout}s")
            return ToolExecutionOutcome(
                call.id, call.name, success=False,
                error=f"Tool '{call.name}' timed out after {self.tool_timeout}s",
                duration=time.perf_counter() - start,
            )
        except Exception as e:
            logger.error(f"Error executing tool {call.name}: {e}")
            return ToolExecutionOutcome(
                call.id, call.name, success=False,
                error=str(e) or type(e).__name__,
                duration=time.perf_counter() - start,
            )

        duration = time.perf_counter() - start
        logger.info(f"Tool {call.name} executed in {duration * 1000:.0f}ms")

        failed = isinstance(payload, dict) and payload.get("success") is False
        return ToolExecutionOutcome(
            call.id, call.name,
            success=not failed,
            payload=payload,
            error=str(payload.get("error") or "tool reported failure") if failed else None,
            duration=duration,
        )
