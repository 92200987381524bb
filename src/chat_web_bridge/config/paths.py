"""Filesystem locations used by the browser session."""

import os
import tempfile
from pathlib import Path
from typing import Optional


def cookies_file(config: dict) -> Optional[Path]:
    """Resolved path of the identity bundle, or None when not configured."""
    raw = (config.get("cookies_path") or "").strip()
    if not raw:
        return None
    return Path(raw).expanduser().resolve()


def chromedriver_log_path() -> str:
    """Per-process chromedriver log file."""
    log_dir = Path(os.getenv("CWB_LOG_DIR") or Path(tempfile.gettempdir()) / "chat_web_bridge_logs")
    log_dir.mkdir(parents=True, exist_ok=True)
    return str(log_dir / f"chromedriver_{os.getpid()}.log")
