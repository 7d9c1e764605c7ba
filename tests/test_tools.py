"""
Tests for the tool base class, the registry and the two transaction tools.
"""

import asyncio

import pytest
from fakes import EchoTool

from budgetbot.agent.tools import (
    DuplicateToolError,
    GetCategorySpendingTool,
    SearchTransactionsTool,
    ToolRegistry,
)
from budgetbot.store.types import CategorySpending


def test_registry_resolves_by_name(echo_tool, failing_tool) -> None:
    """Registered tools are found by name; unknown names yield None."""

    registry = ToolRegistry([echo_tool, failing_tool])

    assert registry.resolve("Echo") is echo_tool
    assert registry.resolve("Explode") is failing_tool
    assert registry.resolve("Nope") is None
    assert "Echo" in registry
    assert len(registry) == 2


def test_registry_rejects_duplicate_names() -> None:
    """Two tools with the same name fail at construction time."""

    with pytest.raises(DuplicateToolError):
        ToolRegistry([EchoTool("Same"), EchoTool("Same")])


def test_registry_exports_descriptors_in_registration_order(echo_tool, failing_tool) -> None:
    registry = ToolRegistry([failing_tool, echo_tool])

    descriptors = registry.export_descriptors()
    assert [name for name, _, _ in descriptors] == ["Explode", "Echo"]
    assert descriptors[1][2]["required"] == ["value"]

    definitions = registry.get_definitions()
    assert definitions[0]["type"] == "function"
    assert definitions[1]["function"]["name"] == "Echo"


def test_execute_rejects_invalid_arguments(echo_tool) -> None:
    """Schema violations become an error payload; run() is never called."""

    result = asyncio.run(echo_tool.execute("u1", {"value": 42}))

    assert result["success"] is False
    assert "value should be string" in result["error"]
    assert echo_tool.calls == []


def test_execute_converts_exceptions(failing_tool) -> None:
    result = asyncio.run(failing_tool.execute("u1", {}))

    assert result == {"success": False, "error": "database unavailable"}


def _search_spy(results):
    calls = []

    async def search(subject_id, query, limit):
        calls.append((subject_id, query, limit))
        return results[:limit]

    return search, calls


def test_search_clamps_max_results(transactions) -> None:
    """maxResults above the ceiling is clamped, not rejected."""

    search, calls = _search_spy(transactions)
    tool = SearchTransactionsTool(search)

    result = asyncio.run(tool.execute("u1", {"query": "coffee", "maxResults": 500}))

    assert result["success"] is True
    assert calls == [("u1", "coffee", 20)]

    asyncio.run(tool.execute("u1", {"query": "coffee", "maxResults": 0}))
    asyncio.run(tool.execute("u1", {"query": "coffee"}))
    assert [c[2] for c in calls[1:]] == [1, 10]


def test_search_payload_shape(transactions) -> None:
    search, _ = _search_spy(transactions[:2])
    tool = SearchTransactionsTool(search)

    result = asyncio.run(tool.execute("u1", {"query": "streaming", "maxResults": 5}))

    assert result["count"] == 2
    assert result["query"] == "streaming"
    first = result["transactions"][0]
    assert first == {
        "id": "t1",
        "date": "2024-02-01",
        "description": "NETFLIX.COM",
        "amount": -15.99,
        "category": "Entertainment",
        "account": "Checking",
    }


def test_search_no_results_and_missing_query() -> None:
    search, calls = _search_spy([])
    tool = SearchTransactionsTool(search)

    empty = asyncio.run(tool.execute("u1", {"query": "yachts"}))
    assert empty["success"] is True
    assert empty["count"] == 0
    assert empty["transactions"] == []

    missing = asyncio.run(tool.execute("u1", {}))
    assert missing["success"] is False
    assert "missing required query" in missing["error"]
    assert len(calls) == 1


def test_category_spending_clamps_and_reports_absolute_totals() -> None:
    seen = []

    async def aggregate(subject_id, top_n, include_income):
        seen.append((subject_id, top_n, include_income))
        return [
            CategorySpending("Groceries", -84.2, 1),
            CategorySpending("Entertainment", -25.98, 2),
        ]

    tool = GetCategorySpendingTool(aggregate)
    result = asyncio.run(tool.execute("u1", {"topN": 99, "includeIncome": True}))

    assert seen == [("u1", 20, True)]
    assert result["count"] == 2
    assert result["categories"][0] == {"category": "Groceries", "total": 84.2, "transactionCount": 1}
    assert result["grandTotal"] == pytest.approx(110.18)


def test_category_spending_rejects_non_boolean_flag() -> None:
    async def aggregate(subject_id, top_n, include_income):
        return []

    tool = GetCategorySpendingTool(aggregate)

    bad = asyncio.run(tool.execute("u1", {"includeIncome": "yes"}))
    assert bad["success"] is False

    empty = asyncio.run(tool.execute("u1", {}))
    assert empty == {
        "success": True,
        "count": 0,
        "message": "No categorized transactions found.",
        "categories": [],
    }


def test_undecodable_arguments_are_rejected() -> None:
    """A lone "raw" key from the transport is an error, not a call with defaults."""

    seen = []

    async def aggregate(subject_id, top_n, include_income):
        seen.append(top_n)
        return []

    tool = GetCategorySpendingTool(aggregate)

    result = asyncio.run(tool.execute("u1", {"raw": "{topN: 5"}))

    assert result["success"] is False
    assert "not valid JSON" in result["error"]
    assert seen == []
