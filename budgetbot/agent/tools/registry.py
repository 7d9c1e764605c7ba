"""
工具注册表模块 (agent/tools/registry.py)

模块职责：
    持有 Agent 可用的全部工具，按名称解析，并导出给模型传输层的工具描述。
    注册表在构造时一次性接收完整的工具列表，名称重复视为配置错误，启动即失败，
    不会拖到某次工具调用时才暴露。

在架构中的位置：
    AgentLoop 持有一个 ToolRegistry：
    1. 每轮请求模型时，调用 get_definitions() 获取所有工具的 JSON Schema
    2. 模型返回 tool_calls 时，调用 resolve(name) 找到对应工具并执行
    Agent 只关心"这个名字的工具是否存在"，新增工具不需要改动循环逻辑。

设计模式对比（Java 视角）：
    类似于一个只读的 ServiceRegistry<Tool>：构造完成后不再变化，可被多个并发运行安全共享。
"""

from typing import Any, Iterable

from budgetbot.agent.tools.base import Tool


class DuplicateToolError(ValueError):
    """同名工具被注册了两次。"""


class ToolRegistry:
    """
    Agent 工具注册表。

    内部使用 dict[str, Tool] 存储，以工具名称为键。
    """

    def __init__(self, tools: Iterable[Tool] = ()):
        self._tools: dict[str, Tool] = {}
        for tool in tools:
            self.register(tool)

    def register(self, tool: Tool) -> None:
        """
        注册一个工具。

        异常:
            DuplicateToolError: 同名工具已存在
        """
        if tool.name in self._tools:
            raise DuplicateToolError(f"Tool '{tool.name}' is already registered")
        self._tools[tool.name] = tool

    def resolve(self, name: str) -> Tool | None:
        """按名称获取工具实例，未找到返回 None。"""
        return self._tools.get(name)

    def get_definitions(self) -> list[dict[str, Any]]:
        """
        获取所有已注册工具的 OpenAI Function Calling 格式定义。

        此列表直接传给 LLM API 的 tools 参数。
        """
        return [tool.to_schema() for tool in self._tools.values()]

    def export_descriptors(self) -> list[tuple[str, str, dict[str, Any]]]:
        """导出 (name, description, schema) 三元组，顺序与注册顺序一致。"""
        return [(t.name, t.description, t.parameters) for t in self._tools.values()]

    @property
    def tool_names(self) -> list[str]:
        """获取所有已注册工具的名称列表。"""
        return list(self._tools.keys())

    def __len__(self) -> int:
        return len(self._tools)

    def __contains__(self, name: str) -> bool:
        return name in self._tools
