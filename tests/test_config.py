# tests/test_config.py
import pytest

import chat_web_bridge.config.environment as environment
from chat_web_bridge.config import cookies_file, get_env_config, project_url

ENV_VARS = (
    "CHAT_URL", "PROJECT_LINK", "COOKIES_PATH", "USER_AGENT", "HEADLESS", "SLOW_MO",
    "CHROME_EXECUTABLE_PATH", "CHROME_PROFILE_USER_DATA_DIR", "CWB_BLOCK_RESOURCES",
    "CWB_READY_TIMEOUT_MS", "CWB_RESPONSE_TIMEOUT_MS", "CWB_IDLE_MS", "CWB_POLL_MS",
    "UPSTREAM_TIMEOUT_MS", "CWB_LOCK_WAIT_SECS",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    # Keep any developer .env out of the picture
    monkeypatch.setattr(environment, "_DOTENV_LOADED", True)
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    cfg = get_env_config()
    assert cfg["chat_url"] == environment.DEFAULT_CHAT_URL
    assert cfg["headless"] is False
    assert cfg["block_resources"] is True
    assert cfg["idle_ms"] == 1200
    assert cfg["poll_ms"] == 250
    assert cfg["upstream_timeout_ms"] == 90_000
    assert cfg["lock_wait_secs"] == 90
    assert cfg["chrome_path"] is None


def test_overrides(monkeypatch):
    monkeypatch.setenv("CHAT_URL", "http://localhost:3000/")
    monkeypatch.setenv("HEADLESS", "true")
    monkeypatch.setenv("CWB_BLOCK_RESOURCES", "0")
    monkeypatch.setenv("CWB_IDLE_MS", "500")
    monkeypatch.setenv("UPSTREAM_TIMEOUT_MS", "1000")

    cfg = get_env_config()
    assert cfg["chat_url"] == "http://localhost:3000/"
    assert cfg["headless"] is True
    assert cfg["block_resources"] is False
    assert cfg["idle_ms"] == 500
    assert cfg["upstream_timeout_ms"] == 1000


def test_project_link_gets_leading_slash(monkeypatch):
    monkeypatch.setenv("CHAT_URL", "https://chat.example.test/")
    monkeypatch.setenv("PROJECT_LINK", "g/abc/project")

    cfg = get_env_config()
    assert cfg["project_link"] == "/g/abc/project"
    assert project_url(cfg) == "https://chat.example.test/g/abc/project"


@pytest.mark.parametrize(
    "name, value",
    [
        ("CWB_IDLE_MS", "soon"),
        ("CWB_RESPONSE_TIMEOUT_MS", "-5"),
        ("CWB_POLL_MS", "0"),
        ("CHAT_URL", "chat.example.test"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, name, value):
    monkeypatch.setenv(name, value)
    with pytest.raises(EnvironmentError) as ei:
        get_env_config()
    assert name in str(ei.value)


def test_cookies_file(tmp_path):
    assert cookies_file({"cookies_path": ""}) is None
    assert cookies_file({"cookies_path": str(tmp_path / "c.json")}) == (tmp_path / "c.json").resolve()
