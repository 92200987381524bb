# tests/tests_decorators/test_envelope.py
import json
import asyncio
import pytest

from chat_web_bridge.decorators import tool_envelope
from chat_web_bridge.errors import SESSION_BUSY, StructuredError
from chat_web_bridge.models import CleanupOutcome, Reply

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!


def test_async_dict_result_is_json(event_loop):
    @tool_envelope
    async def tool():
        return {"ok": True, "replyText": "4"}

    out = event_loop.run_until_complete(tool())
    assert json.loads(out) == {"ok": True, "replyText": "4"}


def test_sync_string_result_passes_through():
    @tool_envelope
    def tool():
        return "plain"

    assert tool() == "plain"


def test_none_becomes_empty_string():
    @tool_envelope
    def tool():
        return None

    assert tool() == ""


def test_values_with_to_dict_are_serialized(event_loop):
    @tool_envelope
    async def tool():
        return {"reply": Reply("4"), "cleanup": CleanupOutcome.skipped()}

    out = json.loads(event_loop.run_until_complete(tool()))
    assert out["reply"] == {"replyText": "4"}
    assert out["cleanup"]["attempted"] is False


def test_structured_error_payload_has_no_traceback(event_loop):
    @tool_envelope
    async def tool():
        raise StructuredError("busy", code=SESSION_BUSY, status=429)

    out = json.loads(event_loop.run_until_complete(tool()))
    assert out["ok"] is False
    assert out["summary"] == "[session_busy] busy"
    assert out["error"]["code"] == SESSION_BUSY
    assert out["error"]["status"] == 429
    assert "traceback" not in out["error"]
    assert "timestamp" in out


def test_unexpected_error_is_normalized_with_traceback():
    @tool_envelope
    def tool():
        raise ValueError("boom")

    out = json.loads(tool())
    assert out["ok"] is False
    assert out["error"]["status"] == 500
    assert "ValueError: boom" in out["error"]["message"]
    assert "Traceback" in out["error"]["traceback"]


def test_traceback_can_be_disabled(monkeypatch):
    monkeypatch.setenv("CWB_TOOL_ERRORS_TRACEBACK", "0")

    @tool_envelope
    def tool():
        raise ValueError("boom")

    out = json.loads(tool())
    assert "traceback" not in out["error"]


def test_cancellation_is_not_swallowed(event_loop):
    @tool_envelope
    async def tool():
        raise asyncio.CancelledError()

    with pytest.raises(asyncio.CancelledError):
        event_loop.run_until_complete(tool())


def test_wraps_preserves_name():
    @tool_envelope
    async def chat_web_bridge__status():
        """Report readiness."""
        return {}

    assert chat_web_bridge__status.__name__ == "chat_web_bridge__status"
    assert chat_web_bridge__status.__doc__ == "Report readiness."
