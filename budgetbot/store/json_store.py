"""
JSON 文件存储实现 (store/json_store.py)

本模块提供两个基于 JSON 文件的仓库实现，适合 CLI 和本地开发：
- JsonTransactionStore：<data_dir>/transactions.json
- JsonRecommendationStore：<data_dir>/recommendations.json

文件使用 camelCase 键名（userId、importedAt 等），加载时转换为 snake_case 数据类。
两者都是懒加载：首次访问时读取文件，写操作后立即落盘。
所有时间戳统一为 naive UTC，带时区的输入先转换为 UTC 再去掉时区。

交易搜索使用关键词重叠打分，作为语义搜索的本地替身；
接入向量检索时只需另写一个 TransactionRepository 实现。
"""

import json
import re
from collections import defaultdict
from datetime import date, datetime
from pathlib import Path
from typing import Any

from loguru import logger

from budgetbot.agent.outcome import RecommendationCategory, RecommendationPriority
from budgetbot.store.base import RecommendationRepository, TransactionRepository
from budgetbot.store.types import CategorySpending, StoredRecommendation, Transaction
from budgetbot.utils.helpers import to_naive_utc, utc_now

_TOKEN_RE = re.compile(r"[a-z0-9]+")


def _tokens(text: str) -> list[str]:
    return [t for t in _TOKEN_RE.findall(text.lower()) if len(t) > 1]


def _parse_dt(value: str | None) -> datetime | None:
    return to_naive_utc(datetime.fromisoformat(value)) if value else None


class JsonTransactionStore(TransactionRepository):
    """基于 JSON 文件的交易仓库。"""

    def __init__(self, path: Path):
        self.path = path
        self._transactions: list[Transaction] | None = None

    def _load(self) -> list[Transaction]:
        if self._transactions is not None:
            return self._transactions

        self._transactions = []
        if self.path.exists():
            data = json.loads(self.path.read_text())
            # 既接受 {"transactions": [...]} 也接受裸列表
            rows = data.get("transactions", []) if isinstance(data, dict) else data
            self._transactions = [transaction_from_dict(row) for row in rows]
        return self._transactions

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": 1,
            "transactions": [transaction_to_dict(t) for t in self._load()],
        }
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False))

    def add(self, transactions: list[Transaction]) -> int:
        """追加交易并落盘，已存在的 id 会被跳过，导入时间统一为 naive UTC。返回实际新增的数量。"""
        existing = {t.id for t in self._load()}
        added = [t for t in transactions if t.id not in existing]
        for t in added:
            t.imported_at = to_naive_utc(t.imported_at)
        self._load().extend(added)
        self._save()
        logger.info(f"Imported {len(added)} transactions into {self.path}")
        return len(added)

    def _for_user(self, user_id: str) -> list[Transaction]:
        return [t for t in self._load() if t.user_id == user_id]

    async def search(self, user_id: str, query: str, limit: int) -> list[Transaction]:
        terms = _tokens(query)
        if not terms:
            return []

        scored = []
        for t in self._for_user(user_id):
            haystack = " ".join(filter(None, [t.description, t.category, t.account])).lower()
            words = set(_tokens(haystack))
            # 整词命中计 2 分，子串命中（如 "coffee" 命中 "coffeeshop"）计 1 分
            score = sum(2 if term in words else 1 if term in haystack else 0 for term in terms)
            if score:
                scored.append((score, t))

        scored.sort(key=lambda item: (item[0], item[1].date), reverse=True)
        return [t for _, t in scored[:limit]]

    async def category_spending(self, user_id: str, top_n: int, include_income: bool) -> list[CategorySpending]:
        totals: dict[str, float] = defaultdict(float)
        counts: dict[str, int] = defaultdict(int)
        for t in self._for_user(user_id):
            if not t.category:
                continue
            if not include_income and t.amount >= 0:
                continue
            totals[t.category] += t.amount
            counts[t.category] += 1

        rows = [CategorySpending(c, round(totals[c], 2), counts[c]) for c in totals]
        rows.sort(key=lambda r: r.total)  # 最负（支出最大）的在前
        return rows[:top_n]

    async def count(self, user_id: str) -> int:
        return len(self._for_user(user_id))

    async def last_imported_at(self, user_id: str) -> datetime | None:
        return max((t.imported_at for t in self._for_user(user_id)), default=None)


class JsonRecommendationStore(RecommendationRepository):
    """基于 JSON 文件的建议仓库。"""

    def __init__(self, path: Path):
        self.path = path
        self._items: list[StoredRecommendation] | None = None

    def _load(self) -> list[StoredRecommendation]:
        if self._items is not None:
            return self._items

        self._items = []
        if self.path.exists():
            data = json.loads(self.path.read_text())
            self._items = [
                StoredRecommendation(
                    id=r["id"],
                    user_id=r["userId"],
                    title=r["title"],
                    message=r["message"],
                    category=RecommendationCategory(r["category"]),
                    priority=RecommendationPriority(r["priority"]),
                    generated_at=_parse_dt(r["generatedAt"]),
                    expires_at=_parse_dt(r["expiresAt"]),
                    status=r.get("status", "active"),
                )
                for r in data.get("recommendations", [])
            ]
        return self._items

    def _save(self) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        data = {
            "version": 1,
            "recommendations": [
                {
                    "id": r.id,
                    "userId": r.user_id,
                    "title": r.title,
                    "message": r.message,
                    "category": r.category.value,
                    "priority": r.priority.value,
                    "generatedAt": r.generated_at.isoformat(),
                    "expiresAt": r.expires_at.isoformat(),
                    "status": r.status,
                }
                for r in self._load()
            ],
        }
        self.path.write_text(json.dumps(data, indent=2, ensure_ascii=False))

    async def last_generated_at(self, user_id: str) -> datetime | None:
        return max((r.generated_at for r in self._load() if r.user_id == user_id), default=None)

    async def replace_active(self, user_id: str, recommendations: list[StoredRecommendation]) -> None:
        items = self._load()
        for r in items:
            if r.user_id == user_id and r.status == "active":
                r.status = "expired"
        for r in recommendations:
            r.generated_at = to_naive_utc(r.generated_at)
            r.expires_at = to_naive_utc(r.expires_at)
        items.extend(recommendations)
        self._save()
        logger.info(f"Stored {len(recommendations)} recommendations for user {user_id}")

    async def active(self, user_id: str, now: datetime, limit: int) -> list[StoredRecommendation]:
        now = to_naive_utc(now)
        rows = [
            r for r in self._load()
            if r.user_id == user_id and r.status == "active" and r.expires_at > now
        ]
        rows.sort(key=lambda r: (r.priority.rank, r.generated_at), reverse=True)
        return rows[:limit]


def transaction_from_dict(row: dict[str, Any]) -> Transaction:
    """从 camelCase 字典构建 Transaction；时间统一为 naive UTC，importedAt 缺省为当前时间。"""
    imported_at = _parse_dt(row.get("importedAt"))
    return Transaction(
        id=str(row["id"]),
        user_id=str(row["userId"]),
        date=date.fromisoformat(row["date"][:10]),
        description=row.get("description", ""),
        amount=float(row["amount"]),
        category=row.get("category"),
        account=row.get("account"),
        imported_at=imported_at or utc_now(),
    )


def transaction_to_dict(t: Transaction) -> dict[str, Any]:
    return {
        "id": t.id,
        "userId": t.user_id,
        "date": t.date.isoformat(),
        "description": t.description,
        "amount": t.amount,
        "category": t.category,
        "account": t.account,
        "importedAt": t.imported_at.isoformat(),
    }
