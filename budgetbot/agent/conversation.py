"""
对话状态模块 (agent/conversation.py)

模块职责：
    保存一次 Agent 运行中的完整消息历史，并维护工具调用的关联关系。
    每次运行新建一个 Conversation，运行结束、结果解析完成后即丢弃，不做持久化。

消息结构：
    Message(role, contents)，role 取 system / user / assistant / tool，
    contents 是有序的内容项列表，内容项有三种：
      - TextContent：纯文本
      - ToolCallContent：助手发起的工具调用请求（call_id 由模型侧生成）
      - ToolResultContent：工具执行结果（通过 call_id 关联到请求）

顺序约束（模型侧依赖它做关联）：
    1. 消息只能追加，不能修改或删除
    2. tool 消息必须引用此前某条助手消息发起、且尚未回答的 call_id
    3. 在所有待回答的 call_id 都有结果之前，不能追加新的助手消息
    违反约束时抛出 ConversationError。

【Java 开发者类比】
    内容项相当于一组 record，Message 相当于带 role 的不可变值对象，
    Conversation 相当于一个只允许 append 的 List<Message> 包装类。
"""

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterator, Union

from budgetbot.providers.base import LLMResponse


class ConversationError(ValueError):
    """消息追加违反了顺序约束。"""


class Role(str, Enum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"
    TOOL = "tool"


@dataclass(frozen=True)
class TextContent:
    text: str


@dataclass(frozen=True)
class ToolCallContent:
    call_id: str
    name: str
    arguments: dict[str, Any]


@dataclass(frozen=True)
class ToolResultContent:
    call_id: str
    name: str
    result: Any


Content = Union[TextContent, ToolCallContent, ToolResultContent]


@dataclass(frozen=True)
class Message:
    """一条对话消息。"""
    role: Role
    contents: tuple[Content, ...] = field(default_factory=tuple)

    @property
    def text(self) -> str | None:
        """第一个文本内容项，没有则返回 None。"""
        for item in self.contents:
            if isinstance(item, TextContent):
                return item.text
        return None

    @property
    def tool_calls(self) -> list[ToolCallContent]:
        return [c for c in self.contents if isinstance(c, ToolCallContent)]

    @property
    def tool_results(self) -> list[ToolResultContent]:
        return [c for c in self.contents if isinstance(c, ToolResultContent)]


class Conversation:
    """
    只追加的对话历史 + 待回答工具调用的簿记。

    属性:
        messages: 只读视图（返回元组副本）
        pending_call_ids: 已发起但尚未回填结果的 call_id
    """

    def __init__(self) -> None:
        self._messages: list[Message] = []
        self._pending: dict[str, str] = {}  # call_id -> tool name
        self._answered: set[str] = set()

    @property
    def messages(self) -> tuple[Message, ...]:
        return tuple(self._messages)

    @property
    def pending_call_ids(self) -> list[str]:
        return list(self._pending)

    @property
    def last(self) -> Message | None:
        return self._messages[-1] if self._messages else None

    def __len__(self) -> int:
        return len(self._messages)

    def __iter__(self) -> Iterator[Message]:
        return iter(self._messages)

    def add_system(self, text: str) -> Message:
        return self._append(Message(Role.SYSTEM, (TextContent(text),)))

    def add_user(self, text: str) -> Message:
        return self._append(Message(Role.USER, (TextContent(text),)))

    def add_assistant(self, response: LLMResponse) -> Message:
        """
        把一轮模型响应追加为助手消息。

        文本在前，工具调用请求按模型给出的顺序在后。
        """
        contents: list[Content] = []
        if response.content:
            contents.append(TextContent(response.content))
        contents.extend(
            ToolCallContent(call_id=tc.id, name=tc.name, arguments=tc.arguments)
            for tc in response.tool_calls
        )
        return self._append(Message(Role.ASSISTANT, tuple(contents)))

    def add_tool_result(self, call_id: str, name: str, result: Any) -> Message:
        """为一个待回答的 call_id 追加工具结果消息。"""
        return self._append(Message(Role.TOOL, (ToolResultContent(call_id, name, result),)))

    def _append(self, message: Message) -> Message:
        if message.role is Role.ASSISTANT:
            if self._pending:
                raise ConversationError(
                    f"Cannot add assistant turn with unanswered tool calls: {', '.join(self._pending)}"
                )
            for call in message.tool_calls:
                if call.call_id in self._pending or call.call_id in self._answered:
                    raise ConversationError(f"Duplicate tool call id: {call.call_id}")
                self._pending[call.call_id] = call.name
        elif message.role is Role.TOOL:
            for res in message.tool_results:
                if res.call_id not in self._pending:
                    raise ConversationError(f"Tool result for unknown or answered call id: {res.call_id}")
                del self._pending[res.call_id]
                self._answered.add(res.call_id)
        self._messages.append(message)
        return message

    def to_provider_messages(self) -> list[dict[str, Any]]:
        """
        序列化为 OpenAI 格式的消息列表，交给传输层。

        - 助手消息的 tool_calls.arguments 必须是 JSON 字符串
        - 工具结果作为 role="tool" 的消息，content 为 JSON 字符串
        """
        out: list[dict[str, Any]] = []
        for msg in self._messages:
            if msg.role is Role.TOOL:
                for res in msg.tool_results:
                    out.append({
                        "role": "tool",
                        "tool_call_id": res.call_id,
                        "name": res.name,
                        "content": _dump(res.result),
                    })
                continue

            entry: dict[str, Any] = {"role": msg.role.value, "content": msg.text or ""}
            if msg.tool_calls:
                entry["tool_calls"] = [
                    {
                        "id": tc.call_id,
                        "type": "function",
                        "function": {
                            "name": tc.name,
                            "arguments": json.dumps(tc.arguments, ensure_ascii=False),
                        },
                    }
                    for tc in msg.tool_calls
                ]
            out.append(entry)
        return out


def _dump(result: Any) -> str:
    if isinstance(result, str):
        return result
    return json.dumps(result, ensure_ascii=False, default=str)
