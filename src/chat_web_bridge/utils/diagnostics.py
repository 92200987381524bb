"""Diagnostics and debugging information utility functions."""

import sys
import platform
from typing import Optional

import selenium

from ..browser.page import PageDriver


def collect_diagnostics(
    driver: Optional[PageDriver] = None,
    exc: Optional[BaseException] = None,
    config: Optional[dict] = None,
    generation: Optional[int] = None,
) -> str:
    """
    Collect diagnostic information about the browser session and environment.

    Args:
        driver: PageDriver of the session being diagnosed (may be None)
        exc: Exception that occurred (can be None)
        config: Configuration dictionary
        generation: Session generation number, if known

    Returns:
        str: Formatted diagnostic information
    """
    config = config or {}

    parts = [
        f"OS                : {platform.system()} {platform.release()}",
        f"Python            : {sys.version.split()[0]}",
        f"Selenium          : {getattr(selenium, '__version__', '?')}",
        f"Chat URL          : {config.get('chat_url')}",
        f"Chrome binary     : {config.get('chrome_path') or '<default>'}",
        f"Headless          : {bool(config.get('headless'))}",
        f"Cookie file       : {config.get('cookies_path') or '<none>'}",
        f"Session generation: {generation if generation is not None else '<none>'}",
        f"Driver created    : {driver is not None}",
    ]

    if driver is not None:
        try:
            alive = driver.is_alive()
        except Exception:
            alive = False
        parts.append(f"Driver alive      : {alive}")
        parts.append(f"Current URL       : {driver.current_url or '<unknown>'}")

    if exc is not None:
        parts += [
            "---- ERROR ----",
            f"Error type        : {type(exc).__name__}",
            f"Error message     : {exc}",
        ]

    return "\n".join(parts)


__all__ = ['collect_diagnostics']
