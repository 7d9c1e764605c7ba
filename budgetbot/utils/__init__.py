"""
工具函数模块 - 提供 budgetbot 项目全局通用的辅助函数。
"""

from budgetbot.utils.helpers import ensure_dir, to_naive_utc, truncate_string, utc_now

__all__ = ["ensure_dir", "truncate_string", "utc_now", "to_naive_utc"]
