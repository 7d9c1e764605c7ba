"""
LLM 提供者抽象层模块（providers 包）。

模块组成：
- base.py             : LLMProvider 抽象基类、LLMResponse / ToolCallRequest 数据结构、TransportError
- litellm_provider.py : 基于 LiteLLM 的默认实现

Agent 核心只依赖 base.py 中的接口；如需接入其他传输层，继承 LLMProvider 即可。
"""

from budgetbot.providers.base import LLMProvider, LLMResponse, ToolCallRequest, TransportError
from budgetbot.providers.litellm_provider import LiteLLMProvider

__all__ = ["LLMProvider", "LLMResponse", "ToolCallRequest", "TransportError", "LiteLLMProvider"]
