"""Serialize a message history and commit it to the remote input surface."""

from typing import Iterable, List, Optional

from ..browser.session import Session
from ..constants import ELEMENT_TIMEOUT_SECS, SUBMIT_DELAY_SECS, SUBMIT_RETRIES
from ..dom_selectors import ChatSelectors, selectors_for
from ..errors import INPUT_SURFACE_MISSING, SELECTOR_NOT_FOUND, StructuredError, invalid_request
from ..models import Message, coerce_history
from ..utils.retry import retry_async

import logging
logger = logging.getLogger(__name__)

ROLE_PREFIXES = {
    "user": "User",
    "assistant": "Assistant",
    "system": "System",
}


def serialize_history(history: Iterable[Message]) -> str:
    """
    Flatten the conversation into one submission.

    The automated surface has no multi-turn append primitive, so the whole
    history goes in as role-prefixed lines, oldest first.
    """
    lines = [f"{ROLE_PREFIXES[m.role]}: {m.content}" for m in history]
    if not lines:
        raise invalid_request("`messages` must be a non-empty array", param="messages")
    return "\n".join(lines)


class InputSubmitter:

    def __init__(self, config: dict, selectors: Optional[ChatSelectors] = None, wait_timeout: float = ELEMENT_TIMEOUT_SECS):
        self._selectors = selectors or selectors_for(config)
        self._wait_timeout = wait_timeout

    async def submit(self, session: Session, history: Iterable) -> str:
        """Write the serialized history into the input surface and press Enter. Returns the payload."""
        messages: List[Message] = coerce_history(history)
        payload = serialize_history(messages)
        selector = self._selectors.input_surface
        driver = session.driver

        def attempt():
            try:
                driver.wait_for_visible(selector, timeout=self._wait_timeout)
            except StructuredError as e:
                if e.code != SELECTOR_NOT_FOUND:
                    raise
                raise StructuredError(
                    "Input surface not found",
                    code=INPUT_SURFACE_MISSING,
                    status=502,
                    param=selector,
                    details=e.details,
                ) from e
            driver.set_input_value(selector, payload)
            driver.press_enter(selector)

        await retry_async(
            attempt,
            retries=SUBMIT_RETRIES,
            delay=SUBMIT_DELAY_SECS,
            label="fill chat input",
            error_code=INPUT_SURFACE_MISSING,
            status=502,
            param=selector,
        )
        logger.info(f"Submitted {len(messages)} message(s), {len(payload)} chars")
        return payload


__all__ = ["InputSubmitter", "serialize_history", "ROLE_PREFIXES"]
