"""
LiteLLM 提供者实现模块：模型传输层的默认实现。

LiteLLM 将 100+ 家 LLM 服务商的 API 统一为 OpenAI 兼容格式，
类比 Java 世界：LiteLLM 类似于 JDBC，一套接口，多种数据库驱动。

与 Agent 的约定：
  1. 工具参数如果是 JSON 字符串，在这里解析为字典（解析失败时保留为 {"raw": ...}）
  2. 结束原因归一化为 stop / length / content_filtered / tool_calls
  3. 调用失败统一抛出 TransportError，由上层决定是否中止，不做自动重试

数据流：
  AgentLoop → LiteLLMProvider.chat() → litellm.acompletion() → LLM API
                                                          ↓
  AgentLoop ← _parse_response() ← LLMResponse ←┘
"""

import json
from typing import Any

import litellm
from litellm import acompletion
from loguru import logger

from budgetbot.providers.base import (
    FINISH_CONTENT_FILTERED,
    FINISH_STOP,
    LLMProvider,
    LLMResponse,
    ToolCallRequest,
    TransportError,
)

# 各家 API 的结束原因 → 统一取值
_FINISH_ALIASES = {
    "content_filter": FINISH_CONTENT_FILTERED,
    "content_filtered": FINISH_CONTENT_FILTERED,
    "end_turn": FINISH_STOP,
    "max_tokens": "length",
    "tool_use": "tool_calls",
    "function_call": "tool_calls",
}


class LiteLLMProvider(LLMProvider):
    """
    基于 LiteLLM 的 LLM 提供者实现类。

    构造参数：
        api_key: API 密钥
        api_base: 自定义 API 基础 URL（用于代理/网关/本地部署）
        default_model: 默认模型名称（如 "openai/gpt-4o-mini"）
        extra_headers: 额外的 HTTP 请求头
        timeout: 单次请求超时（秒），None 表示使用 LiteLLM 默认值
    """

    def __init__(
        self,
        api_key: str | None = None,
        api_base: str | None = None,
        default_model: str = "openai/gpt-4o-mini",
        extra_headers: dict[str, str] | None = None,
        timeout: float | None = None,
    ):
        super().__init__(api_key, api_base)
        self.default_model = default_model
        self.extra_headers = extra_headers or {}
        self.timeout = timeout

        # 禁用 LiteLLM 的调试日志输出（默认很啰嗦）
        litellm.suppress_debug_info = True
        # 自动丢弃服务商不支持的参数
        litellm.drop_params = True

    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        发送对话补全请求。Agent 的每一轮"思考"都会调用此方法。

        返回：
            LLMResponse：统一的响应格式

        异常：
            TransportError: LiteLLM 调用或响应解析失败
        """
        kwargs: dict[str, Any] = {
            "model": model or self.default_model,
            "messages": messages,
            "max_tokens": max_tokens,
            "temperature": temperature,
        }

        if self.api_key:
            kwargs["api_key"] = self.api_key
        if self.api_base:
            kwargs["api_base"] = self.api_base
        if self.extra_headers:
            kwargs["extra_headers"] = self.extra_headers
        if self.timeout:
            kwargs["timeout"] = self.timeout

        if tools:
            kwargs["tools"] = tools
            kwargs["tool_choice"] = "auto"  # 让 LLM 自主决定是否调用工具

        try:
            response = await acompletion(**kwargs)
            return self._parse_response(response)
        except Exception as e:
            logger.error(f"LLM call failed ({kwargs['model']}): {e}")
            raise TransportError(f"Error calling LLM: {e}") from e

    def _parse_response(self, response: Any) -> LLMResponse:
        """
        将 LiteLLM 的原始响应（OpenAI 规范）解析为 LLMResponse。

        response.choices[0].message 中包含：
          - content: 文本回复
          - tool_calls: 工具调用请求列表
        """
        choice = response.choices[0]
        message = choice.message

        tool_calls = []
        if getattr(message, "tool_calls", None):
            for tc in message.tool_calls:
                args = tc.function.arguments
                if isinstance(args, str):
                    try:
                        args = json.loads(args) if args.strip() else {}
                    except json.JSONDecodeError:
                        args = {"raw": args}  # JSON 解析失败时保留原始字符串，交给工具侧校验
                tool_calls.append(ToolCallRequest(
                    id=tc.id,
                    name=tc.function.name,
                    arguments=args if isinstance(args, dict) else {"raw": args},
                ))

        usage = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens,
                "completion_tokens": response.usage.completion_tokens,
                "total_tokens": response.usage.total_tokens,
            }

        return LLMResponse(
            content=message.content,
            tool_calls=tool_calls,
            finish_reason=normalize_finish_reason(choice.finish_reason),
            usage=usage,
        )

    def get_default_model(self) -> str:
        """获取默认模型名称。"""
        return self.default_model


def normalize_finish_reason(reason: str | None) -> str:
    """把服务商的结束原因归一化；缺省视为 stop。"""
    if not reason:
        return FINISH_STOP
    reason = reason.lower()
    return _FINISH_ALIASES.get(reason, reason)
