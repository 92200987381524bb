"""
Single-flight guard for the shared browser page.

The page has no concurrent-access contract, so at most one submission may
be in flight per session. Callers queue on an asyncio lock for a bounded
time and are rejected with ``session_busy`` once that wait is exhausted.
"""

import asyncio
import contextlib
from typing import AsyncIterator, Optional

from ..errors import SESSION_BUSY, StructuredError

import logging
logger = logging.getLogger(__name__)


class SingleFlight:

    def __init__(self, wait_secs: float = 90.0):
        self._wait_secs = max(0.0, float(wait_secs))
        self._lock: Optional[asyncio.Lock] = None
        self._holder: Optional[str] = None

    def _get_lock(self) -> asyncio.Lock:
        if self._lock is None:
            self._lock = asyncio.Lock()
        return self._lock

    @property
    def busy(self) -> bool:
        return self._lock is not None and self._lock.locked()

    @property
    def holder(self) -> Optional[str]:
        return self._holder

    def _busy_error(self, label: str) -> StructuredError:
        return StructuredError(
            f"Session is busy with '{self._holder}'; '{label}' was not started",
            code=SESSION_BUSY,
            status=429,
            details=f"waited {self._wait_secs:.1f}s",
        )

    async def _acquire(self, label: str) -> None:
        lock = self._get_lock()
        if self._wait_secs == 0:
            if lock.locked():
                raise self._busy_error(label)
            await lock.acquire()
            return
        try:
            await asyncio.wait_for(lock.acquire(), timeout=self._wait_secs)
        except asyncio.TimeoutError:
            raise self._busy_error(label) from None

    @contextlib.asynccontextmanager
    async def hold(self, label: str) -> AsyncIterator[None]:
        """Hold the page exclusively for the duration of the block."""
        if self.busy:
            logger.info(f"'{label}' waiting for in-flight '{self._holder}'")
        await self._acquire(label)
        self._holder = label
        try:
            yield
        finally:
            self._holder = None
            self._get_lock().release()


__all__ = ["SingleFlight"]
