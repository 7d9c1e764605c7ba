"""Test doubles: a scripted model provider and small in-memory tools."""

from typing import Any

from budgetbot.agent.tools.base import Tool
from budgetbot.providers.base import (
    FINISH_STOP,
    FINISH_TOOL_CALLS,
    LLMProvider,
    LLMResponse,
    ToolCallRequest,
)


class ScriptedProvider(LLMProvider):
    """Replays a fixed list of responses and records every request it receives."""

    def __init__(self, responses: list[Any]):
        super().__init__()
        self._responses = list(responses)
        self.requests: list[list[dict[str, Any]]] = []
        self.tool_definitions: list[Any] = []

    async def chat(self, messages, tools=None, model=None, max_tokens=4096, temperature=0.7):
        self.requests.append(messages)
        self.tool_definitions.append(tools)
        if not self._responses:
            raise AssertionError("ScriptedProvider ran out of responses")
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    def get_default_model(self) -> str:
        return "scripted/test"


class EchoTool(Tool):
    """Returns its arguments; used to check call-id correlation."""

    parameters = {
        "type": "object",
        "properties": {"value": {"type": "string"}},
        "required": ["value"],
    }

    def __init__(self, name: str = "Echo"):
        self._name = name
        self.calls: list[tuple[str, dict[str, Any]]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def description(self) -> str:
        return f"Echo tool {self._name}"

    async def run(self, subject_id: str, **kwargs: Any) -> dict[str, Any]:
        self.calls.append((subject_id, kwargs))
        return {"success": True, "tool": self._name, "value": kwargs["value"]}


class FailingTool(Tool):
    name = "Explode"
    description = "Always raises"
    parameters = {"type": "object", "properties": {}}

    async def run(self, subject_id: str, **kwargs: Any) -> dict[str, Any]:
        raise RuntimeError("database unavailable")


def tool_call(call_id: str, name: str, **arguments: Any) -> ToolCallRequest:
    return ToolCallRequest(id=call_id, name=name, arguments=arguments)


def calls_response(*calls: ToolCallRequest, content: str | None = None) -> LLMResponse:
    return LLMResponse(content=content, tool_calls=list(calls), finish_reason=FINISH_TOOL_CALLS)


def final_response(content: str | None, finish_reason: str = FINISH_STOP) -> LLMResponse:
    return LLMResponse(content=content, finish_reason=finish_reason)


RECOMMENDATIONS_JSON = """```json
{
  "recommendations": [
    {"title": "Cancel unused streaming", "message": "You pay for three streaming services.",
     "category": "SavingsOpportunity", "priority": "High"},
    {"title": "Coffee habit", "message": "Coffee shops cost you $120 last month.",
     "category": "BehavioralInsight", "priority": "Medium"}
  ]
}
```"""
