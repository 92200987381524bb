"""Environment configuration and validation."""

import os
from typing import Optional

from dotenv import load_dotenv, find_dotenv

from ..constants import DEFAULT_USER_AGENT

import logging
logger = logging.getLogger(__name__)

_DOTENV_LOADED = False

DEFAULT_CHAT_URL = "https://chatgpt.com/"
DEFAULT_PROJECT_LINK = "/g/g-p-6879204074488191b4d06d1b76b5696f-game/project"

_TRUTHY = ("1", "true", "yes", "on")


def _load_dotenv_once() -> None:
    global _DOTENV_LOADED
    if _DOTENV_LOADED:
        return
    # Real environment wins over .env
    load_dotenv(find_dotenv(filename=".env", usecwd=True), override=False)
    _DOTENV_LOADED = True


def _env_str(name: str, default: Optional[str]) -> Optional[str]:
    value = (os.getenv(name) or "").strip()
    return value or default


def _env_bool(name: str, default: bool) -> bool:
    value = (os.getenv(name) or "").strip()
    if not value:
        return default
    return value.lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    value = (os.getenv(name) or "").strip()
    if not value:
        return default
    try:
        parsed = int(value)
    except ValueError:
        raise EnvironmentError(f"{name} must be an integer, got {value!r}.")
    if parsed < 0:
        raise EnvironmentError(f"{name} must not be negative, got {parsed}.")
    return parsed


def get_env_config() -> dict:
    """
    Read environment variables (after loading a .env file, if any).

    Application:
                CHAT_URL (default https://chatgpt.com/)
                PROJECT_LINK (href of the project conversation link)
                COOKIES_PATH (default ./cookies.json)
                USER_AGENT
    Browser:
                HEADLESS (default false)
                SLOW_MO (milliseconds slept after each page action, default 5)
                CHROME_EXECUTABLE_PATH
                CHROME_PROFILE_USER_DATA_DIR
                CWB_BLOCK_RESOURCES (default true)
    Timing (milliseconds unless noted):
                CWB_READY_TIMEOUT_MS (default 60000)
                CWB_RESPONSE_TIMEOUT_MS (default 60000)
                CWB_IDLE_MS (default 1200)
                CWB_POLL_MS (default 250)
                UPSTREAM_TIMEOUT_MS (default 90000)
                CWB_LOCK_WAIT_SECS (seconds, default 90)
    """
    _load_dotenv_once()

    chat_url = _env_str("CHAT_URL", DEFAULT_CHAT_URL)
    if not chat_url.startswith(("http://", "https://")):
        raise EnvironmentError(f"CHAT_URL must be an absolute http(s) URL, got {chat_url!r}.")

    project_link = _env_str("PROJECT_LINK", DEFAULT_PROJECT_LINK)
    if not project_link.startswith("/"):
        project_link = "/" + project_link

    poll_ms = _env_int("CWB_POLL_MS", 250)
    if poll_ms == 0:
        raise EnvironmentError("CWB_POLL_MS must be greater than zero.")

    return {
        "chat_url": chat_url,
        "project_link": project_link,
        "cookies_path": _env_str("COOKIES_PATH", "./cookies.json"),
        "user_agent": _env_str("USER_AGENT", DEFAULT_USER_AGENT),
        "headless": _env_bool("HEADLESS", False),
        "slow_mo_ms": _env_int("SLOW_MO", 5),
        "chrome_path": _env_str("CHROME_EXECUTABLE_PATH", None),
        "user_data_dir": _env_str("CHROME_PROFILE_USER_DATA_DIR", None),
        "block_resources": _env_bool("CWB_BLOCK_RESOURCES", True),
        "ready_timeout_ms": _env_int("CWB_READY_TIMEOUT_MS", 60_000),
        "response_timeout_ms": _env_int("CWB_RESPONSE_TIMEOUT_MS", 60_000),
        "idle_ms": _env_int("CWB_IDLE_MS", 1200),
        "poll_ms": poll_ms,
        "upstream_timeout_ms": _env_int("UPSTREAM_TIMEOUT_MS", 90_000),
        "lock_wait_secs": _env_int("CWB_LOCK_WAIT_SECS", 90),
    }


def project_url(config: dict) -> str:
    """Absolute URL of the project conversation root."""
    return f"{config['chat_url'].rstrip('/')}{config['project_link']}"
