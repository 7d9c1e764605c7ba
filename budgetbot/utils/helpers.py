"""
工具函数集合 - budgetbot 项目全局通用的辅助函数。

函数分类：
- 路径管理：ensure_dir
- 字符串工具：truncate_string
- 时间工具：utc_now, to_naive_utc
"""

from datetime import datetime, timezone
from pathlib import Path


def ensure_dir(path: Path) -> Path:
    """
    确保目录存在，不存在则递归创建。

    参数:
        path: 目标目录路径

    返回:
        创建后的目录路径（原样返回）
    """
    path.mkdir(parents=True, exist_ok=True)
    return path


def truncate_string(s: str, max_len: int = 100, suffix: str = "...") -> str:
    """
    截断字符串到指定最大长度，超出时添加后缀。

    参数:
        s: 原始字符串
        max_len: 最大长度（包含后缀），默认 100
        suffix: 截断后缀，默认 "..."
    """
    if len(s) <= max_len:
        return s
    return s[: max_len - len(suffix)] + suffix


def utc_now() -> datetime:
    """当前 UTC 时间（naive）。项目内所有持久化的时间戳都使用这一约定。"""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: datetime) -> datetime:
    """带时区的时间转换为 UTC 后去掉时区；naive 时间视为已经是 UTC，原样返回。"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)
