# tests/test_lifecycle.py
import pytest

from selenium.common.exceptions import InvalidSessionIdException

import chat_web_bridge.actions.lifecycle as lifecycle_mod
from chat_web_bridge.actions.lifecycle import ChatLifecycleManager
from chat_web_bridge.browser.session import Session
from chat_web_bridge.context import ContextState
from chat_web_bridge.errors import ENTER_CONTEXT_FAILED, StructuredError
from chat_web_bridge.models import ChatMode


@pytest.fixture(autouse=True)
def fast_settles(monkeypatch):
    monkeypatch.setattr(lifecycle_mod, "ENTER_PROJECT_DELAY_SECS", 0.01)
    monkeypatch.setattr(lifecycle_mod, "TEMP_INPUT_DELAY_SECS", 0.01)
    monkeypatch.setattr(lifecycle_mod, "DELETE_ROOT_SETTLE_SECS", 0.0)
    monkeypatch.setattr(lifecycle_mod, "HOVER_SETTLE_SECS", 0.0)


def _session(page, generation=1):
    return Session(driver=page, generation=generation, ready=True)


def _clicks(page):
    return [args[0] for name, args in page.calls if name == "click"]


def test_enter_project_is_idempotent(event_loop, config, sel, page):
    manager = ChatLifecycleManager(config, selectors=sel)
    session = _session(page)

    event_loop.run_until_complete(manager.enter(session, ChatMode.PROJECT))
    assert _clicks(page) == [sel.project_link]
    assert ("focus", (sel.input_surface,)) in page.calls
    assert manager.context.state == ContextState.POSITIONED

    event_loop.run_until_complete(manager.enter(session, ChatMode.PROJECT))
    assert _clicks(page) == [sel.project_link]


def test_new_session_generation_re_enters(event_loop, config, sel, page):
    manager = ChatLifecycleManager(config, selectors=sel)
    event_loop.run_until_complete(manager.enter(_session(page, 1), ChatMode.PROJECT))
    event_loop.run_until_complete(manager.enter(_session(page, 2), ChatMode.PROJECT))
    assert _clicks(page) == [sel.project_link, sel.project_link]


def test_lost_input_surface_re_enters(event_loop, config, sel, page):
    manager = ChatLifecycleManager(config, selectors=sel)
    session = _session(page)
    event_loop.run_until_complete(manager.enter(session, ChatMode.PROJECT))

    page.visible.discard(sel.input_surface)
    page.click_hooks[sel.project_link] = lambda p: p.visible.add(sel.input_surface)
    event_loop.run_until_complete(manager.enter(session, ChatMode.PROJECT))

    assert _clicks(page) == [sel.project_link, sel.project_link]
    assert manager.context.state == ContextState.POSITIONED


def test_enter_project_exhausts_retries(event_loop, config, sel, page):
    page.visible.discard(sel.project_link)
    manager = ChatLifecycleManager(config, selectors=sel)

    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(manager.enter_project(_session(page)))

    err = ei.value
    assert err.code == ENTER_CONTEXT_FAILED
    assert err.status == 502
    assert err.param == config["project_link"]
    assert "failed after 3 attempts" in err.message
    assert len(_clicks(page)) == 3
    assert manager.context.state == ContextState.UNPOSITIONED


def test_enter_temporary_is_a_no_op_when_already_open(event_loop, config, sel, page):
    page.visible.add(sel.temporary_close)
    manager = ChatLifecycleManager(config, selectors=sel)

    event_loop.run_until_complete(manager.enter(_session(page), ChatMode.TEMPORARY))

    assert _clicks(page) == []
    assert manager.context.is_positioned_in(ChatMode.TEMPORARY, 1)


def test_enter_temporary_toggles_the_ephemeral_chat(event_loop, config, sel, page):
    page.visible.add(sel.temporary_toggle)
    manager = ChatLifecycleManager(config, selectors=sel)

    event_loop.run_until_complete(manager.enter_temporary(_session(page)))

    assert _clicks(page) == [sel.home_link, sel.temporary_toggle]
    assert ("wait_for_visible", (sel.header_actions,)) in page.calls
    assert manager.context.state == ContextState.POSITIONED


def test_enter_temporary_falls_back_to_root_navigation(event_loop, config, sel, page):
    page.visible.discard(sel.home_link)
    page.visible.add(sel.temporary_toggle)
    manager = ChatLifecycleManager(config, selectors=sel)

    event_loop.run_until_complete(manager.enter_temporary(_session(page)))

    assert ("navigate", (config["chat_url"], "domcontentloaded")) in page.calls


def test_enter_temporary_failure_is_enter_context_failed(event_loop, config, sel, page):
    page.visible.discard(sel.header_actions)
    manager = ChatLifecycleManager(config, selectors=sel)

    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(manager.enter_temporary(_session(page)))

    assert ei.value.code == ENTER_CONTEXT_FAILED
    assert ei.value.param == sel.header_actions
    assert manager.context.state == ContextState.UNPOSITIONED


def _deletable(page, sel):
    page.visible |= {
        sel.project_thread,
        sel.conversation_item,
        sel.conversation_item_menu,
        sel.delete_menu_item,
        sel.delete_confirm,
        sel.conversation_options,
    }


def test_delete_current_project_conversation(event_loop, config, sel, page):
    _deletable(page, sel)
    manager = ChatLifecycleManager(config, selectors=sel)
    session = _session(page)
    event_loop.run_until_complete(manager.enter(session, ChatMode.PROJECT))

    outcome = event_loop.run_until_complete(manager.delete_current(session, ChatMode.PROJECT))

    assert outcome.ok and outcome.attempted and outcome.deleted == 1
    assert ("navigate", ("https://chat.example.test/g/test/project", "domcontentloaded")) in page.calls
    assert ("hover", (sel.conversation_item,)) in page.calls
    assert _clicks(page)[-3:] == [sel.conversation_item_menu, sel.delete_menu_item, sel.delete_confirm]
    assert manager.context.state == ContextState.UNPOSITIONED


def test_delete_temporary_conversation(event_loop, config, sel, page):
    _deletable(page, sel)
    manager = ChatLifecycleManager(config, selectors=sel)

    outcome = event_loop.run_until_complete(manager.delete_current(_session(page), ChatMode.TEMPORARY))

    assert outcome.ok and outcome.deleted == 1
    assert _clicks(page) == [sel.conversation_options, sel.delete_menu_item, sel.delete_confirm]


def test_delete_failure_is_reported_not_raised(event_loop, config, sel, page):
    _deletable(page, sel)
    page.visible.discard(sel.delete_confirm)
    manager = ChatLifecycleManager(config, selectors=sel)
    session = _session(page)
    event_loop.run_until_complete(manager.enter(session, ChatMode.PROJECT))

    outcome = event_loop.run_until_complete(manager.delete_current(session, ChatMode.PROJECT))

    assert outcome.attempted and not outcome.ok
    assert sel.delete_confirm in outcome.error
    assert manager.context.state == ContextState.UNPOSITIONED
    assert not outcome.session_lost


def test_lost_session_during_delete_is_flagged_on_the_outcome(event_loop, config, sel, page):
    _deletable(page, sel)
    page.fail("click", sel.delete_menu_item, InvalidSessionIdException("browser went away"))
    manager = ChatLifecycleManager(config, selectors=sel)
    session = _session(page)

    outcome = event_loop.run_until_complete(manager.delete_current(session, ChatMode.PROJECT))

    assert outcome.attempted and not outcome.ok
    assert outcome.session_lost
    assert "InvalidSessionIdException" in outcome.error
    assert manager.context.state == ContextState.UNPOSITIONED


def test_delete_with_nothing_to_delete(event_loop, config, sel, page):
    page.visible.add(sel.project_thread)
    manager = ChatLifecycleManager(config, selectors=sel)

    outcome = event_loop.run_until_complete(manager.delete_current(_session(page), ChatMode.PROJECT))
    assert outcome.ok and outcome.deleted == 0


def test_purge_stops_when_no_conversation_is_left(event_loop, config, sel, page):
    _deletable(page, sel)
    deleted = []

    def on_confirm(p):
        deleted.append(1)
        if len(deleted) == 2:
            p.visible.discard(sel.conversation_item)

    page.click_hooks[sel.delete_confirm] = on_confirm
    manager = ChatLifecycleManager(config, selectors=sel)

    outcome = event_loop.run_until_complete(manager.purge(_session(page), limit=10))

    assert outcome.ok and outcome.deleted == 2
    assert page.count_calls("reload") == 2


def test_purge_respects_limit(event_loop, config, sel, page):
    _deletable(page, sel)
    manager = ChatLifecycleManager(config, selectors=sel)

    outcome = event_loop.run_until_complete(manager.purge(_session(page), limit=3))
    assert outcome.deleted == 3
