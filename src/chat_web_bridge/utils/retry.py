"""Retry logic and error handling utilities."""

import asyncio
import inspect
from typing import Any, Callable, Optional, Tuple, Type

from selenium.common.exceptions import (
    InvalidSessionIdException,
    NoSuchWindowException,
)

from ..errors import RETRY_EXHAUSTED, StructuredError

import logging
logger = logging.getLogger(__name__)

FIXED = "fixed"
LINEAR = "linear"
EXPONENTIAL = "exponential"

# A dead browser is recreated by the SessionManager, never retried in place
SESSION_LOST: Tuple[Type[BaseException], ...] = (InvalidSessionIdException, NoSuchWindowException)


def backoff_delay(attempt: int, delay: float, strategy: str = FIXED) -> float:
    """Seconds to wait after failed attempt number ``attempt`` (1-based)."""
    if strategy == LINEAR:
        return delay * attempt
    if strategy == EXPONENTIAL:
        return delay * (2 ** (attempt - 1))
    return delay


def _describe(err: BaseException) -> str:
    if isinstance(err, StructuredError):
        return err.message
    return str(err) or err.__class__.__name__


async def retry_async(
    fn: Callable[[], Any],
    *,
    retries: int = 5,
    delay: float = 0.3,
    strategy: str = FIXED,
    label: str = "operation",
    error_code: str = RETRY_EXHAUSTED,
    status: int = 500,
    param: Optional[str] = None,
    preserve_code: bool = True,
) -> Any:
    """
    Call ``fn`` (sync or async) until it succeeds, at most ``retries`` times.

    After the last failure a StructuredError is raised whose message embeds
    the final underlying reason. With ``preserve_code`` a StructuredError
    raised by ``fn`` keeps its code and status; anything else is reported as
    ``error_code``.
    Request errors (4xx) and lost browser sessions are not retried.

    Returns:
        Whatever ``fn`` returns on its first successful call
    """
    retries = max(1, int(retries))
    last: Optional[BaseException] = None

    for attempt in range(1, retries + 1):
        try:
            result = fn()
            if inspect.isawaitable(result):
                result = await result
            return result
        except asyncio.CancelledError:
            raise
        except SESSION_LOST:
            raise
        except StructuredError as e:
            if 400 <= e.status < 500:
                raise
            last = e
        except Exception as e:
            last = e

        logger.warning(f"[{label}] attempt {attempt}/{retries} failed: {_describe(last)}")
        if attempt < retries:
            await asyncio.sleep(backoff_delay(attempt, delay, strategy))

    message = f"[{label}] failed after {retries} attempts: {_describe(last)}"
    if preserve_code and isinstance(last, StructuredError):
        raise last.with_message(message) from last
    raise StructuredError(
        message,
        code=error_code,
        status=status,
        param=param,
        details=f"{last.__class__.__name__}: {last}",
    ) from last


__all__ = [
    "retry_async",
    "backoff_delay",
    "FIXED",
    "LINEAR",
    "EXPONENTIAL",
    "SESSION_LOST",
]
