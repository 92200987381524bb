# tests/test_tools.py
import json
import pytest

import chat_web_bridge.actions.input as input_mod
import chat_web_bridge.actions.lifecycle as lifecycle_mod
from chat_web_bridge.bridge import ChatBridge, reset_bridge
from chat_web_bridge.errors import StructuredError
from chat_web_bridge.tools import chat, session

from _fakes import DriverFactory, script_reply

HISTORY = [{"role": "user", "content": "2+2?"}]


@pytest.fixture
def bridge(config, sel, page, monkeypatch):
    monkeypatch.setattr(lifecycle_mod, "ENTER_PROJECT_DELAY_SECS", 0.01)
    monkeypatch.setattr(input_mod, "SUBMIT_DELAY_SECS", 0.01)
    bridge = ChatBridge(config, driver_factory=DriverFactory(page), selectors=sel)
    reset_bridge(bridge)
    yield bridge
    reset_bridge(None)


def test_status_before_and_after_ensure_ready(event_loop, bridge):
    before = json.loads(event_loop.run_until_complete(session.status()))
    assert before == {"ok": True, "ready": False, "busy": False, "holder": None, "context": "unpositioned"}

    ready = json.loads(event_loop.run_until_complete(session.ensure_ready()))
    assert ready == {"ok": True, "ready": True, "generation": 1}


def test_send_message(event_loop, bridge, page):
    script_reply(page, "4", busy_for=0.2)

    out = json.loads(event_loop.run_until_complete(chat.send_message(HISTORY, "project", cleanup=False)))

    assert out["ok"] is True
    assert out["replyText"] == "4"
    assert out["cleanup"]["attempted"] is False


def test_stream_message(event_loop, bridge, page):
    script_reply(page, None, busy_for=0.3, steps=[(0.05, "Hel"), (0.15, "Hello")])

    out = json.loads(event_loop.run_until_complete(chat.stream_message(HISTORY, "project", cleanup=False)))

    assert out["replyText"] == "Hello"
    assert "".join(out["deltas"]) == "Hello"


def test_stream_message_raises_terminal_error(event_loop, bridge):
    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(chat.stream_message([], "project"))
    assert ei.value.status == 400


def test_close_session(event_loop, bridge, page):
    event_loop.run_until_complete(session.ensure_ready())
    out = json.loads(event_loop.run_until_complete(session.close_session()))
    assert out == {"ok": True, "ready": False}
    assert page.closed
