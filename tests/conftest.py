# tests/conftest.py
import sys
import asyncio
import pathlib
import pytest

## We DO NOT want to use pytest-asyncio.
## Instead, use event_loop.run_until_complete()!

ROOT = pathlib.Path(__file__).resolve().parent
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from _fakes import FakePageDriver  # noqa: E402
from chat_web_bridge.dom_selectors import selectors_for  # noqa: E402


@pytest.fixture(scope="function")
def event_loop():
    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    yield loop
    loop.close()


@pytest.fixture
def config(tmp_path):
    return {
        "chat_url": "https://chat.example.test/",
        "project_link": "/g/test/project",
        "cookies_path": str(tmp_path / "cookies.json"),
        "user_agent": "TestAgent/1.0",
        "headless": True,
        "slow_mo_ms": 0,
        "chrome_path": None,
        "user_data_dir": None,
        "block_resources": True,
        "ready_timeout_ms": 1000,
        "response_timeout_ms": 5000,
        "idle_ms": 300,
        "poll_ms": 50,
        "upstream_timeout_ms": 10_000,
        "lock_wait_secs": 0,
    }


@pytest.fixture
def sel(config):
    return selectors_for(config)


@pytest.fixture
def page(config, sel):
    """A fake page sitting on the chat home screen with the project link painted."""
    return FakePageDriver(config, visible={sel.input_surface, sel.project_link, sel.home_link, sel.header_actions})
