"""Configuration management for the chat automation core."""

from .environment import (
    get_env_config,
    project_url,
)

from .paths import (
    cookies_file,
    chromedriver_log_path,
)

__all__ = [
    "get_env_config",
    "project_url",
    "cookies_file",
    "chromedriver_log_path",
]
