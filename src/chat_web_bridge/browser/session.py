"""Browser session ownership: creation, liveness checks and recreation."""

import time
import asyncio
import contextlib
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple

from ..constants import BLOCKED_RESOURCE_PATTERNS, HIDE_WEBDRIVER_SCRIPT, NAVIGATION_TIMEOUT_SECS
from ..dom_selectors import ChatSelectors, selectors_for
from ..errors import StructuredError, session_init_failed
from ..utils.diagnostics import collect_diagnostics
from .driver import launch_page_driver
from .identity import Identity, load_identity
from .page import PageDriver, WAIT_LOAD, WAIT_DOMCONTENTLOADED

import logging
logger = logging.getLogger(__name__)


@dataclass
class Session:
    """One browser process plus one page. Recreated, never repaired."""

    driver: PageDriver
    generation: int
    identity: Identity = field(default_factory=Identity)
    blocked_patterns: Tuple[str, ...] = ()
    created_at: float = field(default_factory=time.time)
    ready: bool = False

    def is_alive(self) -> bool:
        if not self.ready:
            return False
        try:
            return self.driver.is_alive()
        except Exception:
            return False


class SessionManager:
    """
    Sole owner of the Session. Other components ask for readiness through
    ``ensure_ready()`` and never replace the session themselves.
    """

    def __init__(
        self,
        config: dict,
        driver_factory: Callable[[dict], PageDriver] = launch_page_driver,
        selectors: Optional[ChatSelectors] = None,
    ):
        self._config = config
        self._factory = driver_factory
        self._selectors = selectors or selectors_for(config)
        self._session: Optional[Session] = None
        self._generation = 0
        self._init_lock: Optional[asyncio.Lock] = None

    @property
    def session(self) -> Optional[Session]:
        return self._session

    @property
    def generation(self) -> int:
        """Generation of the current session, 0 before the first one exists."""
        return self._session.generation if self._session else 0

    def is_ready(self) -> bool:
        return self._session is not None and self._session.is_alive()

    def status(self) -> dict:
        return {"ready": self.is_ready()}

    def _lock(self) -> asyncio.Lock:
        if self._init_lock is None:
            self._init_lock = asyncio.Lock()
        return self._init_lock

    async def ensure_ready(self) -> Session:
        """
        Return a usable session, creating or recreating it when needed.

        Idempotent: when the current session is alive nothing is launched or
        navigated. Raises StructuredError(session_init_failed) when a fresh
        session cannot reach the ready state.
        """
        async with self._lock():
            current = self._session
            if current is not None and current.is_alive():
                return current
            if current is not None:
                logger.info(f"Browser session {current.generation} is no longer usable, re-initializing")
                self._discard()
            self._session = await self._initialize()
            return self._session

    def invalidate(self) -> None:
        """Force recreation on the next ensure_ready()."""
        if self._session is not None:
            logger.info(f"Invalidating browser session {self._session.generation}")
            self._session.ready = False

    async def close(self) -> None:
        async with self._lock():
            self._discard()

    async def reload(self, wait_policy: str = WAIT_DOMCONTENTLOADED) -> None:
        session = self._session
        if session is None or not session.is_alive():
            raise session_init_failed("no live session to reload")
        session.driver.reload(wait_policy=wait_policy, timeout=NAVIGATION_TIMEOUT_SECS)

    def _discard(self) -> None:
        session, self._session = self._session, None
        if session is not None:
            session.ready = False
            with contextlib.suppress(Exception):
                session.driver.close()

    async def _initialize(self) -> Session:
        self._generation += 1
        generation = self._generation
        logger.info(f"Launching browser session {generation}")

        try:
            driver = self._factory(self._config)
        except Exception as e:
            raise session_init_failed(
                f"could not launch browser: {e}",
                details=collect_diagnostics(None, e, self._config, generation),
            ) from e

        identity = load_identity(self._config)
        blocked = BLOCKED_RESOURCE_PATTERNS if self._config.get("block_resources", True) else ()
        session = Session(driver=driver, generation=generation, identity=identity, blocked_patterns=blocked)

        try:
            self._prepare(session)
        except asyncio.CancelledError:
            with contextlib.suppress(Exception):
                driver.close()
            raise
        except Exception as e:
            details = collect_diagnostics(driver, e, self._config, generation)
            with contextlib.suppress(Exception):
                driver.close()
            reason = e.message if isinstance(e, StructuredError) else f"{e.__class__.__name__}: {e}"
            logger.error(f"Browser session {generation} failed to initialize: {reason}")
            raise session_init_failed(reason, details=details) from e

        session.ready = True
        logger.info(
            f"Browser session {generation} ready "
            f"({'authenticated' if identity.authenticated else 'unauthenticated'}, "
            f"{len(blocked)} blocked resource patterns)"
        )
        return session

    def _prepare(self, session: Session) -> None:
        driver = session.driver
        driver.add_init_script(HIDE_WEBDRIVER_SCRIPT)
        if session.identity.cookies:
            driver.set_cookies(session.identity.cookies)
        driver.set_user_agent(session.identity.user_agent)
        if session.blocked_patterns:
            driver.block_urls(session.blocked_patterns)

        driver.navigate(self._config["chat_url"], wait_policy=WAIT_LOAD, timeout=NAVIGATION_TIMEOUT_SECS)
        ready_timeout = self._config.get("ready_timeout_ms", 60_000) / 1000.0
        driver.wait_for_visible(self._selectors.input_surface, timeout=ready_timeout)


__all__ = ["Session", "SessionManager"]
