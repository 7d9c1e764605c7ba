"""
Tests for the append-only conversation and its tool-call bookkeeping.
"""

import json

import pytest
from fakes import calls_response, final_response, tool_call

from budgetbot.agent.conversation import Conversation, ConversationError, Role


def _seeded() -> Conversation:
    conversation = Conversation()
    conversation.add_system("system")
    conversation.add_user("task")
    return conversation


def test_assistant_blocked_while_calls_pending() -> None:
    """A new assistant turn cannot be added until every call id is answered."""

    conversation = _seeded()
    conversation.add_assistant(calls_response(tool_call("c1", "Echo", value="a"), tool_call("c2", "Echo", value="b")))
    assert conversation.pending_call_ids == ["c1", "c2"]

    conversation.add_tool_result("c2", "Echo", {"success": True})
    with pytest.raises(ConversationError):
        conversation.add_assistant(final_response("done"))

    conversation.add_tool_result("c1", "Echo", {"success": True})
    conversation.add_assistant(final_response("done"))
    assert conversation.last.role is Role.ASSISTANT
    assert len(conversation) == 6


def test_tool_result_requires_known_unanswered_call() -> None:
    conversation = _seeded()

    with pytest.raises(ConversationError):
        conversation.add_tool_result("ghost", "Echo", {})

    conversation.add_assistant(calls_response(tool_call("c1", "Echo", value="a")))
    conversation.add_tool_result("c1", "Echo", {})
    with pytest.raises(ConversationError):
        conversation.add_tool_result("c1", "Echo", {})


def test_duplicate_call_ids_rejected() -> None:
    conversation = _seeded()
    conversation.add_assistant(calls_response(tool_call("c1", "Echo", value="a")))
    conversation.add_tool_result("c1", "Echo", {})

    with pytest.raises(ConversationError):
        conversation.add_assistant(calls_response(tool_call("c1", "Echo", value="again")))


def test_provider_messages_use_json_strings() -> None:
    """Tool arguments and results are serialized as JSON text for the wire."""

    conversation = _seeded()
    conversation.add_assistant(calls_response(tool_call("c1", "Echo", value="a"), content="Looking"))
    conversation.add_tool_result("c1", "Echo", {"success": True, "count": 0})

    messages = conversation.to_provider_messages()

    assert [m["role"] for m in messages] == ["system", "user", "assistant", "tool"]
    assistant = messages[2]
    assert assistant["content"] == "Looking"
    call = assistant["tool_calls"][0]
    assert call["id"] == "c1"
    assert json.loads(call["function"]["arguments"]) == {"value": "a"}

    tool = messages[3]
    assert tool["tool_call_id"] == "c1"
    assert tool["name"] == "Echo"
    assert json.loads(tool["content"]) == {"success": True, "count": 0}


def test_messages_view_is_a_copy() -> None:
    conversation = _seeded()
    snapshot = conversation.messages
    conversation.add_user("more")

    assert len(snapshot) == 2
    assert conversation.messages[0].text == "system"
