"""
Turning full-text answer snapshots into an ordered stream of deltas.

Two producers feed one bridge: a MutationObserver installed in the page that
calls an exposed host function, and a plain poll of the last answer region.
The bridge deduplicates what they push and emits only the unseen suffix.
"""

import asyncio
from dataclasses import dataclass
from typing import AsyncIterator, Callable, List, Optional, Union

from selenium.common.exceptions import WebDriverException

from ..browser.page import PageDriver
from ..constants import HOST_SNAPSHOT_FUNCTION, MUTATION_PUMP_SECS
from ..dom_selectors import ChatSelectors
from ..errors import STREAM_BRIDGE_FAILED, StructuredError, as_structured, response_timeout
from ..models import StreamEvent
from ..utils.retry import SESSION_LOST

import logging
logger = logging.getLogger(__name__)


@dataclass
class StreamState:
    emitted: str = ""
    last_emitted_length: int = 0
    last_snapshot: Optional[str] = None
    terminal: bool = False


class DeltaStreamBridge:
    """
    Consume snapshots pushed by any number of producers and yield StreamEvents.

    The idle timer arms on the first non-empty snapshot and is re-armed only
    by a snapshot that differs from the previous one. When it expires the
    stream ends with a single ``done`` event; when the overall timeout
    expires it ends with a ``response_timeout`` error event instead.
    """

    def __init__(
        self,
        idle_ms: int = 1200,
        timeout_ms: int = 60_000,
        busy_probe: Optional[Callable[[], bool]] = None,
    ):
        self.idle_ms = idle_ms
        self.timeout_ms = timeout_ms
        self.state = StreamState()
        self._busy_probe = busy_probe
        self._queue: "asyncio.Queue[Union[str, StructuredError]]" = asyncio.Queue()

    def push(self, snapshot: str) -> None:
        if self.state.terminal or snapshot is None:
            return
        self._queue.put_nowait(str(snapshot))

    def fail(self, error: StructuredError) -> None:
        """End the stream with ``error`` once queued snapshots are consumed."""
        if not self.state.terminal:
            self._queue.put_nowait(error)

    def _apply(self, snapshot: str):
        """Returns (changed, delta) for one snapshot."""
        state = self.state
        if snapshot == state.last_snapshot:
            return False, ""
        if not snapshot and state.last_snapshot is None:
            return False, ""
        previous = state.last_snapshot or ""
        state.last_snapshot = snapshot

        # The delivered length never shrinks; only text past it is new
        n = state.last_emitted_length
        if len(snapshot) < n or (len(previous) >= n and snapshot[:n] != previous[:n]):
            logger.warning(
                f"Snapshot rewrote already delivered text "
                f"({len(snapshot)} chars vs {n} delivered); continuing past the delivered length"
            )
        delta = snapshot[n:]
        if delta:
            state.emitted += delta
            state.last_emitted_length = len(snapshot)
        return True, delta

    def _still_busy(self) -> bool:
        if self._busy_probe is None:
            return False
        try:
            return bool(self._busy_probe())
        except SESSION_LOST:
            raise
        except Exception as e:
            logger.debug(f"Busy probe failed during stream, assuming idle: {e}")
            return False

    async def _next(self, timeout: float):
        try:
            return self._queue.get_nowait()
        except asyncio.QueueEmpty:
            pass
        return await asyncio.wait_for(self._queue.get(), timeout=max(0.0, timeout))

    async def events(self) -> AsyncIterator[StreamEvent]:
        loop = asyncio.get_running_loop()
        idle = self.idle_ms / 1000.0
        deadline = loop.time() + self.timeout_ms / 1000.0
        idle_deadline: Optional[float] = None

        while True:
            now = loop.time()
            if now >= deadline:
                self.state.terminal = True
                logger.warning(f"Stream timed out after {self.timeout_ms}ms, {self.state.last_emitted_length} chars delivered")
                yield StreamEvent(error=response_timeout(self.timeout_ms))
                return

            wake_at = deadline if idle_deadline is None else min(deadline, idle_deadline)
            try:
                item = await self._next(wake_at - now)
            except asyncio.TimeoutError:
                now = loop.time()
                if idle_deadline is not None and now >= idle_deadline and now < deadline:
                    if self._still_busy():
                        idle_deadline = now + idle
                        continue
                    self.state.terminal = True
                    logger.info(f"Stream idle for {self.idle_ms}ms; done after {self.state.last_emitted_length} chars")
                    yield StreamEvent(done=True)
                    return
                continue

            if isinstance(item, StructuredError):
                self.state.terminal = True
                yield StreamEvent(error=item)
                return

            changed, delta = self._apply(item)
            if changed:
                idle_deadline = loop.time() + idle
            if delta:
                yield StreamEvent(delta=delta)


class SnapshotProducers:
    """Mutation and poll producers for one stream, run as asyncio tasks."""

    def __init__(
        self,
        driver: PageDriver,
        bridge: DeltaStreamBridge,
        selectors: ChatSelectors,
        *,
        poll_interval: float = 0.25,
        after: int = 0,
        use_mutations: bool = True,
    ):
        self._driver = driver
        self._bridge = bridge
        self._selectors = selectors
        self._poll_interval = poll_interval
        self._after = after
        self._use_mutations = use_mutations
        self._tasks: List[asyncio.Task] = []
        self._installed = False

    def _on_snapshot(self, text=None, *_):
        if isinstance(text, str):
            self._bridge.push(text)

    def start(self) -> None:
        """Install the page-side bridge and start both producers."""
        if self._use_mutations:
            try:
                self._driver.expose_host_function(HOST_SNAPSHOT_FUNCTION, self._on_snapshot)
                self._driver.register_mutation_bridge(
                    self._selectors.answer_region, HOST_SNAPSHOT_FUNCTION, self._after
                )
            except SESSION_LOST:
                raise
            except Exception as e:
                raise StructuredError(
                    "Failed to install the snapshot bridge",
                    code=STREAM_BRIDGE_FAILED,
                    status=500,
                    details=f"{e.__class__.__name__}: {e}",
                ) from e
            self._installed = True
            self._tasks.append(asyncio.create_task(self._pump_mutations()))
        self._tasks.append(asyncio.create_task(self._poll()))

    async def _pump_mutations(self) -> None:
        try:
            while True:
                self._driver.pump_host_calls()
                await asyncio.sleep(MUTATION_PUMP_SECS)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Mutation producer stopped: {e}")
            self._bridge.fail(as_structured(e, code=STREAM_BRIDGE_FAILED, status=500))

    async def _poll(self) -> None:
        selector = self._selectors.answer_region
        try:
            while True:
                try:
                    text = self._driver.read_text(selector, self._after)
                except SESSION_LOST:
                    raise
                except WebDriverException as e:
                    logger.debug(f"Poll read failed: {e}")
                    text = ""
                if text:
                    self._bridge.push(text)
                await asyncio.sleep(self._poll_interval)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Poll producer stopped: {e}")
            self._bridge.fail(as_structured(e, code=STREAM_BRIDGE_FAILED, status=500))

    async def stop(self) -> None:
        """Cancel both producers and remove the page-side observer."""
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        if self._installed:
            self._installed = False
            try:
                self._driver.remove_mutation_bridge(HOST_SNAPSHOT_FUNCTION)
            except Exception as e:
                logger.debug(f"Removing mutation observer failed: {e}")


__all__ = ["DeltaStreamBridge", "SnapshotProducers", "StreamState"]
