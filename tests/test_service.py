"""
Tests for the recommendation service and the JSON-file stores.
"""

import asyncio
import json
from datetime import datetime, timedelta

from fakes import RECOMMENDATIONS_JSON, ScriptedProvider, calls_response, final_response, tool_call

from budgetbot.agent.outcome import AbortReason, RecommendationCategory, RecommendationPriority
from budgetbot.config.schema import Config
from budgetbot.providers.base import FINISH_LENGTH
from budgetbot.recommendations.service import build_service
from budgetbot.store.json_store import JsonRecommendationStore, JsonTransactionStore, transaction_from_dict
from budgetbot.store.types import StoredRecommendation


def _service(provider, transaction_store, recommendation_store, now):
    service = build_service(Config(), provider, transaction_store, recommendation_store)
    service._clock = lambda: now
    return service


def test_search_ranks_and_scopes_to_user(transaction_store) -> None:
    results = asyncio.run(transaction_store.search("u1", "coffee", 10))

    assert [t.id for t in results] == ["t4", "t3"]
    assert asyncio.run(transaction_store.search("u1", "   ", 10)) == []
    assert [t.id for t in asyncio.run(transaction_store.search("u2", "coffee", 10))] == ["x1"]


def test_category_spending_orders_by_largest_expense(transaction_store) -> None:
    rows = asyncio.run(transaction_store.category_spending("u1", 10, False))

    assert [r.category for r in rows] == ["Groceries", "Entertainment", "Dining"]
    assert rows[1].count == 2
    assert rows[1].total == -25.98

    with_income = asyncio.run(transaction_store.category_spending("u1", 10, True))
    assert "Income" in [r.category for r in with_income]
    assert len(asyncio.run(transaction_store.category_spending("u1", 1, False))) == 1


def test_transaction_store_persists_and_skips_duplicates(tmp_path, transaction_store, transactions) -> None:
    assert transaction_store.add(transactions[:2]) == 0

    reloaded = JsonTransactionStore(tmp_path / "transactions.json")
    assert asyncio.run(reloaded.count("u1")) == 7
    data = json.loads((tmp_path / "transactions.json").read_text())
    assert data["transactions"][0]["userId"] == "u1"


def test_generate_runs_agent_and_stores(transaction_store, recommendation_store, imported_at) -> None:
    now = imported_at + timedelta(hours=1)
    provider = ScriptedProvider([
        calls_response(tool_call("c1", "SearchTransactions", query="coffee", maxResults=50)),
        final_response(RECOMMENDATIONS_JSON),
    ])
    service = _service(provider, transaction_store, recommendation_store, now)

    report = asyncio.run(service.generate("u1"))

    assert report.status == "generated"
    assert report.stored == 2
    tool_payload = json.loads(provider.requests[1][-1]["content"])
    assert tool_payload["count"] == 2

    active = asyncio.run(service.active("u1"))
    assert [r.title for r in active] == ["Cancel unused streaming", "Coffee habit"]
    assert active[0].expires_at == now + timedelta(days=7)


def test_generate_skips_without_new_data(transaction_store, recommendation_store, imported_at) -> None:
    now = imported_at + timedelta(hours=1)
    provider = ScriptedProvider([final_response(RECOMMENDATIONS_JSON)])
    service = _service(provider, transaction_store, recommendation_store, now)

    assert asyncio.run(service.generate("u1")).status == "generated"
    assert asyncio.run(service.generate("u1")).status == "skipped"
    assert len(provider.requests) == 1


def test_regeneration_expires_previous(transaction_store, recommendation_store, imported_at) -> None:
    now = imported_at + timedelta(hours=1)
    provider = ScriptedProvider([final_response(RECOMMENDATIONS_JSON), final_response(RECOMMENDATIONS_JSON)])
    service = _service(provider, transaction_store, recommendation_store, now)

    asyncio.run(service.generate("u1"))
    asyncio.run(service.generate("u1", force=True))

    statuses = [r.status for r in recommendation_store._load()]
    assert statuses.count("active") == 2
    assert statuses.count("expired") == 2


def test_generate_requires_enough_transactions(transaction_store, recommendation_store, imported_at) -> None:
    provider = ScriptedProvider([])
    service = _service(provider, transaction_store, recommendation_store, imported_at)

    report = asyncio.run(service.generate("u2"))

    assert report.status == "insufficient_data"
    assert provider.requests == []


def test_generate_reports_aborts_and_failures(transaction_store, recommendation_store, imported_at) -> None:
    provider = ScriptedProvider([
        final_response(RECOMMENDATIONS_JSON, finish_reason=FINISH_LENGTH),
        RuntimeError("503 Service Unavailable"),
        final_response("nothing to report"),
    ])
    service = _service(provider, transaction_store, recommendation_store, imported_at)

    aborted = asyncio.run(service.generate("u1"))
    assert aborted.status == "aborted"
    assert aborted.outcome.reason is AbortReason.LENGTH_LIMIT

    failed = asyncio.run(service.generate("u1"))
    assert failed.status == "failed"
    assert "503" in failed.error

    assert asyncio.run(service.generate("u1")).status == "no_recommendations"
    assert asyncio.run(recommendation_store.last_generated_at("u1")) is None


def test_active_orders_by_priority_then_recency(tmp_path) -> None:
    store = JsonRecommendationStore(tmp_path / "recommendations.json")
    now = datetime(2024, 3, 10, 12, 0)

    def rec(rid, priority, age_hours, expires_in_days=7, status="active"):
        generated = now - timedelta(hours=age_hours)
        return StoredRecommendation(
            id=rid, user_id="u1", title=rid, message="m",
            category=RecommendationCategory.SPENDING_ALERT,
            priority=priority,
            generated_at=generated,
            expires_at=now + timedelta(days=expires_in_days),
            status=status,
        )

    store._load().extend([
        rec("low", RecommendationPriority.LOW, 1),
        rec("high-old", RecommendationPriority.HIGH, 5),
        rec("high-new", RecommendationPriority.HIGH, 1),
        rec("critical", RecommendationPriority.CRITICAL, 9),
        rec("expired", RecommendationPriority.CRITICAL, 1, expires_in_days=-1),
        rec("dismissed", RecommendationPriority.CRITICAL, 1, status="dismissed"),
    ])
    store._save()

    reloaded = JsonRecommendationStore(tmp_path / "recommendations.json")
    active = asyncio.run(reloaded.active("u1", now, 3))

    assert [r.id for r in active] == ["critical", "high-new", "high-old"]


def test_offset_import_times_mix_with_naive_rows(transaction_store, recommendation_store) -> None:
    """Import times carrying a UTC offset are normalized, so freshness checks keep working."""

    transaction_store.add([transaction_from_dict({
        "id": "t8", "userId": "u1", "date": "2024-03-02", "description": "Lyft ride",
        "amount": -18.40, "category": "Transport", "importedAt": "2024-03-02T11:00:00+02:00",
    })])
    assert asyncio.run(transaction_store.last_imported_at("u1")) == datetime(2024, 3, 2, 9, 0)

    provider = ScriptedProvider([final_response(RECOMMENDATIONS_JSON)])
    service = _service(provider, transaction_store, recommendation_store, datetime(2024, 3, 2, 10, 0))

    assert asyncio.run(service.generate("u1")).status == "generated"
    assert asyncio.run(service.generate("u1")).status == "skipped"
    assert len(provider.requests) == 1
