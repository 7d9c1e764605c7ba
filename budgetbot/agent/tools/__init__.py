"""
Agent 工具子包 (agent/tools)

工具系统采用"注册表模式"：
  - Tool（基类）：统一接口（名称、描述、参数 schema、执行方法）
  - ToolRegistry（注册表）：构造时接收全部工具，按名称解析

内置工具清单：
    - SearchTransactionsTool：交易语义搜索
    - GetCategorySpendingTool：分类消费统计

扩展新工具只需继承 Tool 并把实例加入传给 ToolRegistry 的列表，Agent 循环无需改动。
"""

from budgetbot.agent.tools.base import Tool
from budgetbot.agent.tools.registry import DuplicateToolError, ToolRegistry
from budgetbot.agent.tools.search import SearchTransactionsTool
from budgetbot.agent.tools.spending import GetCategorySpendingTool

__all__ = [
    "Tool",
    "ToolRegistry",
    "DuplicateToolError",
    "SearchTransactionsTool",
    "GetCategorySpendingTool",
]
