# tests/test_session.py
import json
import pytest

from chat_web_bridge.browser.session import SessionManager
from chat_web_bridge.constants import HIDE_WEBDRIVER_SCRIPT
from chat_web_bridge.errors import SESSION_INIT_FAILED, StructuredError

from _fakes import DriverFactory, FakePageDriver


def test_second_ensure_ready_is_a_no_op(event_loop, config, sel, page):
    factory = DriverFactory(page)
    manager = SessionManager(config, driver_factory=factory, selectors=sel)

    first = event_loop.run_until_complete(manager.ensure_ready())
    launches, navigations = len(factory.launched), page.count_calls("navigate")

    second = event_loop.run_until_complete(manager.ensure_ready())

    assert second is first
    assert len(factory.launched) - launches == 0
    assert page.count_calls("navigate") - navigations == 0
    assert manager.status() == {"ready": True}


def test_initialization_order_and_identity(event_loop, config, sel, page):
    manager = SessionManager(config, driver_factory=DriverFactory(page), selectors=sel)
    session = event_loop.run_until_complete(manager.ensure_ready())

    assert page.names() == [
        "add_init_script",
        "set_user_agent",
        "block_urls",
        "navigate",
        "wait_for_visible",
    ]
    assert page.init_scripts == [HIDE_WEBDRIVER_SCRIPT]
    assert page.calls[1] == ("set_user_agent", ("TestAgent/1.0",))
    assert page.calls[3][1][0] == config["chat_url"]
    assert page.calls[4][1][0] == sel.input_surface
    assert session.generation == 1
    assert not session.identity.authenticated


def test_cookie_bundle_is_injected_when_present(event_loop, config, sel, page, tmp_path):
    cookies = [
        {"name": "session-token", "value": "abc", "domain": ".example.test", "path": "/", "sameSite": "lax"},
        {"name": "broken"},
    ]
    (tmp_path / "cookies.json").write_text(json.dumps(cookies), encoding="utf-8")
    manager = SessionManager(config, driver_factory=DriverFactory(page), selectors=sel)

    session = event_loop.run_until_complete(manager.ensure_ready())

    assert ("set_cookies", (1,)) in page.calls
    assert session.identity.authenticated


def test_resource_blocking_can_be_disabled(event_loop, config, sel, page):
    config["block_resources"] = False
    manager = SessionManager(config, driver_factory=DriverFactory(page), selectors=sel)
    event_loop.run_until_complete(manager.ensure_ready())
    assert "block_urls" not in page.names()


def test_missing_input_surface_fails_initialization(event_loop, config, sel):
    page = FakePageDriver(config)  # nothing visible
    manager = SessionManager(config, driver_factory=DriverFactory(page), selectors=sel)

    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(manager.ensure_ready())

    err = ei.value
    assert err.code == SESSION_INIT_FAILED
    assert err.status == 500
    assert err.type == "server_error"
    assert sel.input_surface in err.message
    assert "Session generation: 1" in err.details
    assert page.closed
    assert manager.session is None
    assert manager.status() == {"ready": False}


def test_launch_failure_is_session_init_failed(event_loop, config, sel):
    factory = DriverFactory(error=RuntimeError("chrome not found"))
    manager = SessionManager(config, driver_factory=factory, selectors=sel)

    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(manager.ensure_ready())
    assert ei.value.code == SESSION_INIT_FAILED
    assert "chrome not found" in ei.value.message


def test_dead_session_is_recreated(event_loop, config, sel, page):
    replacement = FakePageDriver(config, visible={sel.input_surface})
    factory = DriverFactory(page, replacement)
    manager = SessionManager(config, driver_factory=factory, selectors=sel)

    first = event_loop.run_until_complete(manager.ensure_ready())
    page.alive = False
    second = event_loop.run_until_complete(manager.ensure_ready())

    assert second is not first
    assert second.driver is replacement
    assert second.generation == 2
    assert page.closed


def test_invalidate_forces_recreation(event_loop, config, sel, page):
    replacement = FakePageDriver(config, visible={sel.input_surface})
    manager = SessionManager(config, driver_factory=DriverFactory(page, replacement), selectors=sel)

    event_loop.run_until_complete(manager.ensure_ready())
    manager.invalidate()
    assert manager.status() == {"ready": False}

    session = event_loop.run_until_complete(manager.ensure_ready())
    assert session.driver is replacement


def test_close_and_reload(event_loop, config, sel, page):
    manager = SessionManager(config, driver_factory=DriverFactory(page), selectors=sel)

    with pytest.raises(StructuredError):
        event_loop.run_until_complete(manager.reload())

    event_loop.run_until_complete(manager.ensure_ready())
    event_loop.run_until_complete(manager.reload())
    assert page.count_calls("reload") == 1

    event_loop.run_until_complete(manager.close())
    assert page.closed
    assert manager.session is None
