"""
输出解析模块 (agent/extractor.py)

把模型最后一轮的自由文本解析为结构化建议。期望的格式：

    {
      "recommendations": [
        {"title": "...", "message": "...", "category": "SpendingAlert", "priority": "High"}
      ]
    }

容错规则：
    - 外层可以包一层 ```json ... ``` 代码块，也可以是裸 JSON
    - 缺少任一必填字段的元素直接丢弃，不影响其他元素
    - category / priority 取值未知时回退到默认值，而不是丢弃元素
    - 结果最多保留 max_items 条
    - 任何解析失败都返回 Empty 并记录日志，绝不向调用方抛出异常
"""

import json
import re
from typing import Any

from loguru import logger

from budgetbot.agent.conversation import Message
from budgetbot.agent.outcome import (
    Empty,
    Recommendation,
    RecommendationCategory,
    RecommendationPriority,
    Recommendations,
)

_FENCE_RE = re.compile(r"```[a-zA-Z0-9_-]*\s*\n?(.*?)```", re.DOTALL)
_NORMALIZE_RE = re.compile(r"[^a-z0-9]")

DEFAULT_CATEGORY = RecommendationCategory.BEHAVIORAL_INSIGHT
DEFAULT_PRIORITY = RecommendationPriority.MEDIUM


def strip_code_fence(text: str) -> str:
    """去掉可选的 Markdown 代码块包裹，返回其中的内容。"""
    match = _FENCE_RE.search(text)
    if match:
        return match.group(1).strip()
    return text.strip()


def _loads_object(text: str) -> Any:
    """解析 JSON；整体解析失败时再尝试第一个 "{" 到最后一个 "}" 之间的片段（模型常在前后加说明文字）。"""
    try:
        return json.loads(text)
    except json.JSONDecodeError:
        start, end = text.find("{"), text.rfind("}")
        if start == -1 or end <= start:
            raise
        return json.loads(text[start:end + 1])


def _parse_enum(enum_cls: Any, value: Any, default: Any) -> Any:
    """宽松匹配枚举值：忽略大小写和分隔符（"spending_alert" == "SpendingAlert"）。"""
    if not isinstance(value, str):
        return default
    key = _NORMALIZE_RE.sub("", value.lower())
    for member in enum_cls:
        if _NORMALIZE_RE.sub("", member.value.lower()) == key:
            return member
    return default


class OutputExtractor:
    """最终回复 → Recommendations | Empty。"""

    def __init__(self, max_items: int = 5):
        self.max_items = max_items

    def extract(self, message: Message | None) -> Recommendations | Empty:
        text = message.text if message else None
        if not text:
            logger.warning("No text content in final message")
            return Empty()

        try:
            data = _loads_object(strip_code_fence(text))
        except (json.JSONDecodeError, RecursionError) as e:
            logger.warning(f"Failed to parse recommendations from agent output: {e}")
            return Empty()

        if not isinstance(data, dict) or not isinstance(data.get("recommendations"), list):
            logger.warning("Agent output has no 'recommendations' list")
            return Empty()

        items: list[Recommendation] = []
        for raw in data["recommendations"]:
            rec = self._parse_item(raw)
            if rec is not None:
                items.append(rec)

        if not items:
            return Empty()
        if len(items) > self.max_items:
            logger.info(f"Agent returned {len(items)} recommendations, keeping {self.max_items}")
        return Recommendations(tuple(items[: self.max_items]))

    def _parse_item(self, raw: Any) -> Recommendation | None:
        if not isinstance(raw, dict):
            return None
        # 早期提示词用 "type" 表示分类，两种写法都接受
        category = raw.get("category", raw.get("type"))
        title, message, priority = raw.get("title"), raw.get("message"), raw.get("priority")
        if category is None or priority is None:
            return None
        if not isinstance(title, str) or not isinstance(message, str):
            return None
        return Recommendation(
            title=title.strip(),
            message=message.strip(),
            category=_parse_enum(RecommendationCategory, category, DEFAULT_CATEGORY),
            priority=_parse_enum(RecommendationPriority, priority, DEFAULT_PRIORITY),
        )
