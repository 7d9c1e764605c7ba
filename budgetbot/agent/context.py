"""
上下文构建模块 (agent/context.py)

负责为每次运行生成初始对话：一条系统指令 + 一条任务消息。
系统指令中的"可用工具"一节由注册表动态生成，新增工具时提示词自动更新。
"""

from budgetbot.agent.conversation import Conversation
from budgetbot.agent.tools.registry import ToolRegistry

SYSTEM_PROMPT = """You are an autonomous financial analysis agent with access to transaction data tools.

Your goal is to investigate spending patterns and generate 3-{max_items} highly specific, actionable recommendations.

AVAILABLE TOOLS:
{tools}

ANALYSIS STRATEGY:
1. Start with exploratory searches to discover patterns
2. Look for recurring charges, subscriptions, and spending categories
3. Identify behavioral patterns and opportunities
4. Focus on the most impactful findings

RECOMMENDATION CRITERIA:
- SPECIFIC: Include exact merchants, dates, and patterns found
- ACTIONABLE: Clear next steps the user can take
- IMPACTFUL: Focus on changes that make a real difference
- EVIDENCE-BASED: Reference the specific transactions you found

When you've completed your analysis (after 2-4 tool calls), respond with JSON in this format:
{{
  "recommendations": [
    {{
      "title": "Brief, attention-grabbing title",
      "message": "Specific recommendation with evidence from your searches",
      "category": "SpendingAlert|SavingsOpportunity|BehavioralInsight|BudgetWarning",
      "priority": "Low|Medium|High|Critical"
    }}
  ]
}}

Think step-by-step. Use the tools to explore before making recommendations."""

TASK_PROMPT = """Analyze this user's transaction data to generate proactive financial recommendations.

Use the available tools to investigate:
1. Recurring charges and subscriptions
2. Frequent spending patterns
3. Unusual or concerning transactions
4. Optimization opportunities

Make 2-4 targeted tool calls, then provide 3-{max_items} specific recommendations based on what you find."""


class ContextBuilder:
    """根据注册表生成系统指令，并播种新的 Conversation。"""

    def __init__(self, tools: ToolRegistry, max_items: int = 5):
        self.tools = tools
        self.max_items = max_items

    def build_system_prompt(self) -> str:
        lines = [f"- {name}: {desc}" for name, desc, _ in self.tools.export_descriptors()]
        return SYSTEM_PROMPT.format(
            max_items=self.max_items,
            tools="\n".join(lines) or "(none)",
        )

    def build_task_prompt(self) -> str:
        return TASK_PROMPT.format(max_items=self.max_items)

    def seed(self) -> Conversation:
        """新建一次运行的对话：system + user 两条消息。"""
        conversation = Conversation()
        conversation.add_system(self.build_system_prompt())
        conversation.add_user(self.build_task_prompt())
        return conversation
