"""
ChatBridge: the facade an outer request layer talks to.

It wires the SessionManager, ChatLifecycleManager, InputSubmitter,
CompletionDetector, ReplyExtractor and DeltaStreamBridge together and
guarantees that everything leaving it is either a result or a
StructuredError. One submission at a time is allowed per session.

Usage:
    from chat_web_bridge.bridge import get_bridge

    bridge = get_bridge()
    reply = await bridge.send_synchronous([{"role": "user", "content": "2+2?"}], "temporary")
    print(reply.reply_text)
"""

import asyncio
from typing import AsyncIterator, Callable, Iterable, List, Optional

from .actions.completion import BusyState, CompletionDetector, probe_busy
from .actions.extraction import ReplyExtractor
from .actions.input import InputSubmitter
from .actions.lifecycle import ChatLifecycleManager
from .actions.stream import DeltaStreamBridge, SnapshotProducers
from .browser.driver import launch_page_driver
from .browser.page import PageDriver
from .browser.session import Session, SessionManager
from .config.environment import get_env_config
from .constants import PURGE_DEFAULT_LIMIT
from .dom_selectors import ChatSelectors, selectors_for
from .errors import UPSTREAM_TIMEOUT, StructuredError, as_structured, session_init_failed
from .locking.single_flight import SingleFlight
from .models import ChatMode, CleanupOutcome, Message, Reply, StreamEvent, coerce_history
from .utils.retry import SESSION_LOST

import logging
logger = logging.getLogger(__name__)


class ChatBridge:

    def __init__(
        self,
        config: Optional[dict] = None,
        driver_factory: Callable[[dict], PageDriver] = launch_page_driver,
        selectors: Optional[ChatSelectors] = None,
    ):
        self.config = config if config is not None else get_env_config()
        self.selectors = selectors or selectors_for(self.config)
        self.sessions = SessionManager(self.config, driver_factory=driver_factory, selectors=self.selectors)
        self.lifecycle = ChatLifecycleManager(self.config, selectors=self.selectors)
        self.submitter = InputSubmitter(self.config, selectors=self.selectors)
        self.detector = CompletionDetector(self.config, selectors=self.selectors)
        self.extractor = ReplyExtractor(self.config, selectors=self.selectors)
        self.flight = SingleFlight(wait_secs=float(self.config.get("lock_wait_secs", 90)))

    # ------------------------------------------------------------------
    # Readiness
    # ------------------------------------------------------------------

    async def ensure_ready(self) -> None:
        await self.sessions.ensure_ready()

    def status(self) -> dict:
        return self.sessions.status()

    async def close(self) -> None:
        self.lifecycle.release()
        await self.sessions.close()

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _normalize(self, exc: BaseException, operation: str) -> StructuredError:
        if isinstance(exc, SESSION_LOST):
            self.sessions.invalidate()
            self.lifecycle.release()
            err = session_init_failed(
                "browser session was lost during the request",
                details=f"{exc.__class__.__name__}: {exc}",
            )
        else:
            err = as_structured(exc)
        logger.error(f"{operation} failed: [{err.code}] {err.message}")
        return err

    def _baseline(self, session: Session) -> int:
        """Answer regions already on the page; only later ones belong to this submission."""
        return session.driver.count(self.selectors.answer_region)

    def _note_cleanup(self, outcome: CleanupOutcome) -> CleanupOutcome:
        if outcome.session_lost:
            self.sessions.invalidate()
            self.lifecycle.release()
        return outcome

    async def _finish(self, session: Optional[Session], mode: ChatMode, cleanup: bool, submitted: bool) -> CleanupOutcome:
        if session is None or not (cleanup and submitted):
            return CleanupOutcome.skipped()
        try:
            outcome = self._note_cleanup(await self.lifecycle.delete_current(session, mode, from_root=True))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            outcome = CleanupOutcome.failed(e)
        if not outcome.ok:
            logger.warning(f"Conversation cleanup failed, result unaffected: {outcome.error}")
        return outcome

    # ------------------------------------------------------------------
    # Request / response
    # ------------------------------------------------------------------

    async def _exchange(self, messages: List[Message], mode: ChatMode, progress: dict) -> str:
        """Enter, submit, wait and capture. ``progress`` tells the caller what cleanup is owed."""
        session = await self.sessions.ensure_ready()
        progress["session"] = session
        await self.lifecycle.enter(session, mode)
        after = self._baseline(session)
        await self.submitter.submit(session, messages)
        progress["submitted"] = True
        completion = await self.detector.wait(session, after=after)
        logger.debug(f"Completion via {completion.signal} after {completion.elapsed:.2f}s")
        text = await self.extractor.extract_final(session, after=after)
        return self.extractor.validate(text)

    async def send_synchronous(
        self,
        history: Iterable,
        mode=ChatMode.PROJECT,
        cleanup: bool = True,
    ) -> Reply:
        """
        Submit the conversation and wait for the complete reply.

        Bounded by ``upstream_timeout_ms``; a best-effort deletion of the
        conversation runs afterwards and never changes the outcome.

        Raises:
            StructuredError: every failure, already normalized
        """
        timeout_ms = int(self.config.get("upstream_timeout_ms", 90_000))
        try:
            messages = coerce_history(history)
            mode = ChatMode.parse(mode)
            async with self.flight.hold("send_synchronous"):
                progress = {"session": None, "submitted": False}
                try:
                    try:
                        reply_text = await asyncio.wait_for(
                            self._exchange(messages, mode, progress),
                            timeout=timeout_ms / 1000.0,
                        )
                    except asyncio.TimeoutError:
                        raise StructuredError(
                            "Upstream timeout",
                            code=UPSTREAM_TIMEOUT,
                            status=504,
                            details=f"timeout_ms={timeout_ms}",
                        ) from None
                finally:
                    # Cleanup is not covered by the upstream timeout
                    outcome = await self._finish(progress["session"], mode, cleanup, progress["submitted"])
                return Reply(reply_text=reply_text, cleanup=outcome)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            err = self._normalize(e, "send_synchronous")
            if err is e:
                raise
            raise err from e

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    def _stream_bridge(self, session: Session) -> DeltaStreamBridge:
        def still_busy() -> bool:
            return probe_busy(session.driver, self.selectors) is BusyState.BUSY

        return DeltaStreamBridge(
            idle_ms=int(self.config.get("idle_ms", 1200)),
            timeout_ms=int(self.config.get("response_timeout_ms", 60_000)),
            busy_probe=still_busy,
        )

    async def open_stream(
        self,
        history: Iterable,
        mode=ChatMode.PROJECT,
        cleanup: bool = True,
    ) -> AsyncIterator[StreamEvent]:
        """
        Submit the conversation and yield deltas as the answer renders.

        The iterator ends with exactly one terminal event: ``done`` or
        ``error``. Errors are delivered as events, never raised.
        """
        try:
            messages = coerce_history(history)
            mode = ChatMode.parse(mode)
            async with self.flight.hold("open_stream"):
                session = await self.sessions.ensure_ready()
                submitted = False
                producers: Optional[SnapshotProducers] = None
                try:
                    await self.lifecycle.enter(session, mode)
                    after = self._baseline(session)
                    bridge = self._stream_bridge(session)
                    producers = SnapshotProducers(
                        session.driver,
                        bridge,
                        self.selectors,
                        poll_interval=int(self.config.get("poll_ms", 250)) / 1000.0,
                        after=after,
                    )
                    # Producers run before submission so the first render is not missed
                    producers.start()
                    await self.submitter.submit(session, messages)
                    submitted = True
                    async for event in bridge.events():
                        if event.error is not None:
                            logger.error(f"open_stream failed: [{event.error.code}] {event.error.message}")
                        yield event
                finally:
                    if producers is not None:
                        await producers.stop()
                    await self._finish(session, mode, cleanup, submitted)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            yield StreamEvent(error=self._normalize(e, "open_stream"))

    # ------------------------------------------------------------------
    # Best-effort cleanup
    # ------------------------------------------------------------------

    async def delete_current_context(self, mode=ChatMode.PROJECT) -> CleanupOutcome:
        """Delete the current conversation. Never raises; failures come back in the outcome."""
        try:
            mode = ChatMode.parse(mode)
            async with self.flight.hold("delete_current_context"):
                session = await self.sessions.ensure_ready()
                return self._note_cleanup(await self.lifecycle.delete_current(session, mode, from_root=True))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"delete_current_context skipped: {e}")
            return CleanupOutcome.failed(e)

    async def purge_contexts(self, limit: int = PURGE_DEFAULT_LIMIT) -> CleanupOutcome:
        """Delete project conversations until none is left or ``limit`` is reached. Never raises."""
        try:
            async with self.flight.hold("purge_contexts"):
                session = await self.sessions.ensure_ready()
                return self._note_cleanup(await self.lifecycle.purge(session, limit=limit))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.warning(f"purge_contexts skipped: {e}")
            return CleanupOutcome.failed(e)


# Process-wide bridge
_global_bridge: Optional[ChatBridge] = None


def get_bridge() -> ChatBridge:
    """
    Get or create the process-wide ChatBridge.

    All calls return the same instance; reset_bridge() drops it (mainly for
    testing).
    """
    global _global_bridge
    if _global_bridge is None:
        _global_bridge = ChatBridge()
    return _global_bridge


def reset_bridge(bridge: Optional[ChatBridge] = None) -> None:
    """Replace (or clear) the process-wide bridge without closing the old one."""
    global _global_bridge
    _global_bridge = bridge


__all__ = ["ChatBridge", "get_bridge", "reset_bridge"]
