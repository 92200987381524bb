"""Reading the final reply text out of the last answer region."""

from typing import Optional

from ..browser.session import Session
from ..cleaners import clean_answer_html
from ..constants import CAPTURE_DELAY_SECS, CAPTURE_RETRIES, DEGRADED_REPLY_MARKERS
from ..dom_selectors import ChatSelectors, selectors_for
from ..errors import CAPTURE_REPLY_FAILED, INVALID_REPLY, StructuredError
from ..utils.retry import LINEAR, retry_async

import logging
logger = logging.getLogger(__name__)


class ReplyExtractor:

    def __init__(
        self,
        config: dict,
        selectors: Optional[ChatSelectors] = None,
        retries: int = CAPTURE_RETRIES,
        delay: float = CAPTURE_DELAY_SECS,
    ):
        self._selectors = selectors or selectors_for(config)
        self._retries = retries
        self._delay = delay

    def read_once(self, session: Session, after: int = 0) -> str:
        """Clean text of the newest answer region, '' when it is missing or empty."""
        sel = self._selectors
        html = session.driver.read_html(sel.answer_region, after)
        text, counts = clean_answer_html(html, sel.answer_chrome, sel.scrollable_code)
        logger.debug(
            f"Answer region read: {len(html)} chars html -> {len(text)} chars text "
            f"(chrome removed {counts['chrome_removed']}, code fenced {counts['code_fenced']})"
        )
        return text

    async def extract_final(self, session: Session, after: int = 0) -> str:
        """
        Read the last answer, retrying while it is still empty; the render can
        lag one tick behind the completion signal.

        Raises StructuredError(capture_reply_failed, 504) when every attempt
        comes back empty.
        """
        def attempt() -> str:
            text = self.read_once(session, after)
            if not text:
                raise StructuredError(
                    "Answer region is empty",
                    code=CAPTURE_REPLY_FAILED,
                    status=504,
                    param=self._selectors.answer_region,
                )
            return text

        text = await retry_async(
            attempt,
            retries=self._retries,
            delay=self._delay,
            strategy=LINEAR,
            label="capture reply",
            error_code=CAPTURE_REPLY_FAILED,
            status=504,
            param=self._selectors.answer_region,
            preserve_code=False,
        )
        logger.info(f"Captured reply ({len(text)} chars)")
        return text

    @staticmethod
    def validate(text: str) -> str:
        """Reject empty replies and error banners rendered in place of an answer."""
        stripped = (text or "").strip()
        if not stripped:
            raise StructuredError("Empty reply from remote", code=INVALID_REPLY, status=502)
        for marker in DEGRADED_REPLY_MARKERS:
            if stripped.startswith(marker):
                raise StructuredError(
                    "Remote returned an error banner instead of an answer",
                    code=INVALID_REPLY,
                    status=502,
                    details=stripped[:200],
                )
        return stripped


__all__ = ["ReplyExtractor"]
