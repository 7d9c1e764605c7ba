"""
LLM 提供者基类定义模块。

本模块定义了 Agent 循环与大语言模型交互所需的最小接口：
- ToolCallRequest : LLM 返回的工具调用请求（id 由模型侧生成，Agent 只负责透传）
- LLMResponse     : 单轮模型响应（文本内容 + 工具调用 + 结束原因）
- LLMProvider     : 抽象基类，所有模型传输层实现都必须继承它
- TransportError  : 传输层失败（网络错误、鉴权失败、服务端异常等）

架构角色：
  AgentLoop → LLMProvider.chat() → LLM API → LLMResponse → Agent 状态机

类比 Java：
  - LLMProvider 相当于一个 interface
  - LLMResponse / ToolCallRequest 相当于不可变的 DTO
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any


# 结束原因（finish signal）取值。传输层实现负责把各家 API 的取值归一化到这几个常量上
FINISH_STOP = "stop"
FINISH_LENGTH = "length"
FINISH_CONTENT_FILTERED = "content_filtered"
FINISH_TOOL_CALLS = "tool_calls"


class TransportError(RuntimeError):
    """模型传输层调用失败。Agent 不做重试，直接中止本次运行。"""


@dataclass
class ToolCallRequest:
    """
    LLM 返回的工具调用请求。

    属性：
        id: 工具调用的唯一标识符（由 LLM API 生成，用于将工具结果与请求关联）
        name: 要调用的工具名称（如 "SearchTransactions"）
        arguments: 工具调用的参数字典（未经校验的原始数据）
    """
    id: str
    name: str
    arguments: dict[str, Any]


@dataclass
class LLMResponse:
    """
    单轮模型响应。

    属性：
        content: 文本内容（只返回工具调用时可能为 None）
        tool_calls: 本轮请求的工具调用（可以同时请求多个）
        finish_reason: 结束原因，取值见 FINISH_* 常量
        usage: token 用量统计
    """
    content: str | None
    tool_calls: list[ToolCallRequest] = field(default_factory=list)
    finish_reason: str = FINISH_STOP
    usage: dict[str, int] = field(default_factory=dict)

    @property
    def has_tool_calls(self) -> bool:
        """检查响应中是否包含工具调用请求。"""
        return len(self.tool_calls) > 0


class LLMProvider(ABC):
    """
    LLM 提供者抽象基类。

    实现类只需要保证两件事：
    1. chat() 接收 OpenAI 格式的消息列表和工具定义，返回一轮 LLMResponse
    2. 传输失败时抛出 TransportError，而不是返回伪造的响应
    """

    def __init__(self, api_key: str | None = None, api_base: str | None = None):
        self.api_key = api_key
        self.api_base = api_base

    @abstractmethod
    async def chat(
        self,
        messages: list[dict[str, Any]],
        tools: list[dict[str, Any]] | None = None,
        model: str | None = None,
        max_tokens: int = 4096,
        temperature: float = 0.7,
    ) -> LLMResponse:
        """
        发送对话补全请求。

        参数：
            messages: OpenAI 格式的消息列表
            tools: 可选的工具定义列表（OpenAI 函数调用格式）
            model: 模型标识符，为 None 时使用默认模型
            max_tokens: 响应的最大 token 数
            temperature: 采样温度

        返回：
            LLMResponse

        异常：
            TransportError: 传输层失败
        """
        pass

    @abstractmethod
    def get_default_model(self) -> str:
        """获取该提供者的默认模型名称。"""
        pass
