"""Identity bundle: saved cookies and the user agent injected into new sessions."""

import json
from dataclasses import dataclass, field
from typing import List, Optional

from ..config.paths import cookies_file
from ..constants import DEFAULT_USER_AGENT

import logging
logger = logging.getLogger(__name__)

_CDP_COOKIE_KEYS = ("name", "value", "url", "domain", "path", "secure", "httpOnly", "sameSite", "expires")

_SAME_SITE = {
    "strict": "Strict",
    "lax": "Lax",
    "none": "None",
    "no_restriction": "None",
}


@dataclass
class Identity:
    cookies: List[dict] = field(default_factory=list)
    user_agent: str = DEFAULT_USER_AGENT

    @property
    def authenticated(self) -> bool:
        return bool(self.cookies)


def normalize_cookie(raw: dict) -> Optional[dict]:
    """
    Convert a Puppeteer/Chrome-extension cookie export entry into a CDP
    ``Network.CookieParam``. Returns None for entries that cannot be used.
    """
    if not isinstance(raw, dict) or not raw.get("name") or "value" not in raw:
        return None
    if not (raw.get("domain") or raw.get("url")):
        return None

    cookie = {k: raw[k] for k in _CDP_COOKIE_KEYS if k in raw and raw[k] is not None}

    # Extension exports use expirationDate; session cookies carry -1 or nothing
    expires = raw.get("expires", raw.get("expirationDate"))
    if isinstance(expires, (int, float)) and expires > 0 and not raw.get("session"):
        cookie["expires"] = float(expires)
    else:
        cookie.pop("expires", None)

    same_site = str(raw.get("sameSite") or "").lower()
    if same_site in _SAME_SITE:
        cookie["sameSite"] = _SAME_SITE[same_site]
    else:
        cookie.pop("sameSite", None)

    return cookie


def read_cookies_safe(config: dict) -> List[dict]:
    """Cookies from the configured bundle; an absent or broken file yields []."""
    path = cookies_file(config)
    if path is None:
        return []
    try:
        with open(path, "r", encoding="utf-8") as f:
            raw = json.load(f)
    except FileNotFoundError:
        logger.warning(f"Cookie file {path} not found; continuing without a saved login")
        return []
    except (OSError, ValueError) as e:
        logger.warning(f"Cookie file {path} could not be read ({e}); continuing without a saved login")
        return []

    if isinstance(raw, dict):
        raw = raw.get("cookies") or []
    if not isinstance(raw, list):
        logger.warning(f"Cookie file {path} does not contain a list; ignoring it")
        return []

    cookies = [c for c in (normalize_cookie(item) for item in raw) if c]
    skipped = len(raw) - len(cookies)
    if skipped:
        logger.debug(f"Skipped {skipped} unusable cookie entries from {path}")
    return cookies


def load_identity(config: dict) -> Identity:
    return Identity(
        cookies=read_cookies_safe(config),
        user_agent=config.get("user_agent") or DEFAULT_USER_AGENT,
    )


__all__ = ["Identity", "normalize_cookie", "read_cookies_safe", "load_identity"]
