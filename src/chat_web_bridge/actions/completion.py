"""
Deciding when the remote application has finished producing an answer.

The page gives no completion event, so two signals are fused:

1. Busy indicator: the stop-generation control is visible (or the composer
   ready control is present but disabled) while the answer is generated.
2. Content stability: the last answer region's text stays unchanged for an
   idle window.

The busy indicator wins whenever it is observable. Stability only decides
when the indicator is unknown, or never appeared within a short grace period.
"""

import asyncio
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from selenium.common.exceptions import WebDriverException

from ..browser.page import PageDriver
from ..browser.session import Session
from ..constants import BUSY_GRACE_SECS
from ..dom_selectors import ChatSelectors, selectors_for
from ..errors import response_timeout
from ..utils.retry import SESSION_LOST

import logging
logger = logging.getLogger(__name__)

SIGNAL_BUSY_INDICATOR = "busy_indicator"
SIGNAL_STABILITY = "content_stability"


class BusyState(str, Enum):
    BUSY = "busy"
    IDLE = "idle"
    UNKNOWN = "unknown"


def probe_busy(driver: PageDriver, selectors: ChatSelectors) -> BusyState:
    """Classify the composer controls into BUSY / IDLE / UNKNOWN."""
    stop = driver.element_state(selectors.stop_button)
    if stop.visible:
        return BusyState.BUSY
    ready = driver.element_state(selectors.ready_button)
    if ready.present:
        return BusyState.IDLE if ready.enabled else BusyState.BUSY
    return BusyState.UNKNOWN


@dataclass(frozen=True)
class Completion:
    signal: str
    elapsed: float
    text: str = ""


class CompletionDetector:

    def __init__(
        self,
        config: dict,
        selectors: Optional[ChatSelectors] = None,
        *,
        idle_ms: Optional[int] = None,
        timeout_ms: Optional[int] = None,
        poll_ms: Optional[int] = None,
        busy_grace: float = BUSY_GRACE_SECS,
    ):
        self._selectors = selectors or selectors_for(config)
        self.idle_ms = int(idle_ms if idle_ms is not None else config.get("idle_ms", 1200))
        self.timeout_ms = int(timeout_ms if timeout_ms is not None else config.get("response_timeout_ms", 60_000))
        self.poll_ms = int(poll_ms if poll_ms is not None else config.get("poll_ms", 250))
        self.busy_grace = busy_grace

    def _probe(self, driver: PageDriver) -> BusyState:
        try:
            return probe_busy(driver, self._selectors)
        except SESSION_LOST:
            raise
        except WebDriverException as e:
            logger.debug(f"Busy probe failed, treating as unknown: {e}")
            return BusyState.UNKNOWN

    def _read(self, driver: PageDriver, after: int, previous: Optional[str]) -> Optional[str]:
        try:
            return driver.read_text(self._selectors.answer_region, after)
        except SESSION_LOST:
            raise
        except WebDriverException as e:
            logger.debug(f"Answer read failed, keeping previous sample: {e}")
            return previous

    async def wait(self, session: Session, after: int = 0) -> Completion:
        """
        Block until the newest answer region (index >= ``after``) is complete.

        Raises StructuredError(response_timeout) once ``timeout_ms`` elapses,
        never earlier and at most one poll interval later.
        """
        driver = session.driver
        loop = asyncio.get_running_loop()
        poll = self.poll_ms / 1000.0
        idle = self.idle_ms / 1000.0
        started = loop.time()
        deadline = started + self.timeout_ms / 1000.0

        saw_busy = False
        last_text: Optional[str] = None
        stable_since = started

        while True:
            state = self._probe(driver)
            text = self._read(driver, after, last_text)
            now = loop.time()

            if state is BusyState.BUSY:
                if not saw_busy:
                    logger.debug("Busy indicator observed")
                saw_busy = True
            elif saw_busy:
                logger.info(f"Answer complete (busy indicator cleared after {now - started:.2f}s)")
                return Completion(SIGNAL_BUSY_INDICATOR, now - started, text or "")

            if text != last_text:
                last_text = text
                stable_since = now
            else:
                stability_allowed = state is BusyState.UNKNOWN or (
                    not saw_busy and now - started >= self.busy_grace
                )
                if text and stability_allowed and now - stable_since >= idle:
                    logger.info(f"Answer complete (content stable for {self.idle_ms}ms after {now - started:.2f}s)")
                    return Completion(SIGNAL_STABILITY, now - started, text)

            remaining = deadline - now
            if remaining <= 0:
                logger.warning(f"Answer not complete after {self.timeout_ms}ms (busy seen: {saw_busy})")
                raise response_timeout(self.timeout_ms)
            await asyncio.sleep(min(poll, remaining))


__all__ = [
    "BusyState",
    "Completion",
    "CompletionDetector",
    "probe_busy",
    "SIGNAL_BUSY_INDICATOR",
    "SIGNAL_STABILITY",
]
