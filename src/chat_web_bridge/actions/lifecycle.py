"""
Conversation lifecycle: entering the project or temporary chat surface,
and best-effort deletion of the current conversation.
"""

import asyncio
from typing import Optional

from ..browser.page import WAIT_DOMCONTENTLOADED
from ..browser.session import Session
from ..config.environment import project_url
from ..constants import (
    DELETE_ROOT_SETTLE_SECS,
    ELEMENT_TIMEOUT_SECS,
    ENTER_PROJECT_DELAY_SECS,
    ENTER_PROJECT_RETRIES,
    HOVER_SETTLE_SECS,
    MENU_TIMEOUT_SECS,
    PURGE_DEFAULT_LIMIT,
    TEMP_INPUT_DELAY_SECS,
    TEMP_INPUT_RETRIES,
)
from ..context import ChatContext
from ..dom_selectors import ChatSelectors, selectors_for
from ..errors import ENTER_CONTEXT_FAILED, SELECTOR_NOT_FOUND, StructuredError
from ..models import ChatMode, CleanupOutcome
from ..utils.retry import SESSION_LOST, retry_async

import logging
logger = logging.getLogger(__name__)


class ChatLifecycleManager:

    def __init__(self, config: dict, context: Optional[ChatContext] = None, selectors: Optional[ChatSelectors] = None):
        self._config = config
        self.context = context or ChatContext()
        self._selectors = selectors or selectors_for(config)

    # ------------------------------------------------------------------
    # Entering
    # ------------------------------------------------------------------

    async def enter(self, session: Session, mode: ChatMode) -> None:
        if mode == ChatMode.TEMPORARY:
            await self.enter_temporary(session)
        else:
            await self.enter_project(session)

    def _already_positioned(self, session: Session, mode: ChatMode) -> bool:
        if not self.context.is_positioned_in(mode, session.generation):
            return False
        if session.driver.is_visible(self._selectors.input_surface):
            return True
        # Something outside our control navigated away
        logger.info(f"{mode.value} context lost its input surface; re-entering")
        self.context.reset()
        return False

    async def enter_project(self, session: Session) -> None:
        """Open the fixed project conversation and focus its input surface."""
        if self._already_positioned(session, ChatMode.PROJECT):
            logger.debug("Already positioned in project chat")
            return

        sel = self._selectors
        driver = session.driver
        self.context.begin_navigation(ChatMode.PROJECT, session.generation)

        def attempt():
            driver.click(sel.project_link, timeout=ELEMENT_TIMEOUT_SECS)
            driver.wait_for_visible(sel.input_surface, timeout=ELEMENT_TIMEOUT_SECS)
            driver.focus(sel.input_surface)

        try:
            await retry_async(
                attempt,
                retries=ENTER_PROJECT_RETRIES,
                delay=ENTER_PROJECT_DELAY_SECS,
                label="enter project chat",
                error_code=ENTER_CONTEXT_FAILED,
                status=502,
                param=self._config.get("project_link"),
                preserve_code=False,
            )
        except BaseException:
            self.context.reset()
            raise

        self.context.mark_positioned()
        logger.info("Entered project chat")

    async def enter_temporary(self, session: Session) -> None:
        """Open a temporary chat unless one is already open."""
        if self._already_positioned(session, ChatMode.TEMPORARY):
            logger.debug("Already positioned in temporary chat")
            return

        sel = self._selectors
        driver = session.driver

        if driver.is_visible(sel.temporary_close):
            self.context.begin_navigation(ChatMode.TEMPORARY, session.generation)
            self.context.mark_positioned()
            logger.info("Temporary chat already open")
            return

        self.context.begin_navigation(ChatMode.TEMPORARY, session.generation)
        try:
            self._go_home(session)
            driver.wait_for_visible(sel.header_actions, timeout=MENU_TIMEOUT_SECS)
            driver.click(sel.temporary_toggle, timeout=MENU_TIMEOUT_SECS)
            await retry_async(
                lambda: driver.wait_for_visible(sel.input_surface, timeout=5.0),
                retries=TEMP_INPUT_RETRIES,
                delay=TEMP_INPUT_DELAY_SECS,
                label="wait temp chat input",
            )
        except asyncio.CancelledError:
            self.context.reset()
            raise
        except SESSION_LOST:
            self.context.reset()
            raise
        except Exception as e:
            self.context.reset()
            reason = e.message if isinstance(e, StructuredError) else f"{e.__class__.__name__}: {e}"
            raise StructuredError(
                f"Failed to enter temporary chat: {reason}",
                code=ENTER_CONTEXT_FAILED,
                status=502,
                param=getattr(e, "param", None),
                details=reason,
            ) from e

        self.context.mark_positioned()
        logger.info("Entered temporary chat")

    def _go_home(self, session: Session) -> None:
        try:
            session.driver.click(self._selectors.home_link, timeout=5.0)
        except StructuredError as e:
            if e.code != SELECTOR_NOT_FOUND:
                raise
            logger.debug("Home link not visible; navigating to the application root")
            session.driver.navigate(self._config["chat_url"], wait_policy=WAIT_DOMCONTENTLOADED)

    def release(self) -> None:
        """Leave the current context without touching the page."""
        self.context.reset()

    # ------------------------------------------------------------------
    # Deleting (best effort, never raises)
    # ------------------------------------------------------------------

    async def delete_current(self, session: Session, mode: ChatMode, from_root: bool = True) -> CleanupOutcome:
        """Delete the conversation just used. Failures are logged and reported, never raised."""
        self.context.begin_deletion()
        try:
            if mode == ChatMode.TEMPORARY:
                deleted = await self._delete_temporary(session)
            else:
                deleted = await self._delete_latest_project_entry(session, from_root=from_root)
        except asyncio.CancelledError:
            raise
        except SESSION_LOST as e:
            logger.warning(f"Browser session lost while deleting the current {mode.value} conversation: {e}")
            return CleanupOutcome.failed(e, session_lost=True)
        except Exception as e:
            logger.warning(f"Deleting current {mode.value} conversation failed (non-fatal): {e}")
            return CleanupOutcome.failed(e)
        finally:
            self.context.reset()

        if deleted:
            logger.info(f"Deleted current {mode.value} conversation")
        return CleanupOutcome(attempted=True, ok=True, deleted=int(deleted))

    async def purge(self, session: Session, limit: int = PURGE_DEFAULT_LIMIT) -> CleanupOutcome:
        """Delete project conversations one by one until none is left or ``limit`` is reached."""
        deleted = 0
        self.context.begin_deletion()
        try:
            for _ in range(max(0, limit)):
                if not await self._delete_latest_project_entry(session, from_root=True):
                    break
                deleted += 1
                session.driver.reload(wait_policy=WAIT_DOMCONTENTLOADED)
                await asyncio.sleep(DELETE_ROOT_SETTLE_SECS)
        except asyncio.CancelledError:
            raise
        except SESSION_LOST as e:
            logger.warning(f"Browser session lost while purging, after {deleted} deleted: {e}")
            return CleanupOutcome.failed(e, deleted=deleted, session_lost=True)
        except Exception as e:
            logger.warning(f"Purging project conversations stopped after {deleted} (non-fatal): {e}")
            return CleanupOutcome.failed(e, deleted=deleted)
        finally:
            self.context.reset()

        logger.info(f"Purged {deleted} project conversations")
        return CleanupOutcome(attempted=True, ok=True, deleted=deleted)

    async def _delete_latest_project_entry(self, session: Session, from_root: bool) -> bool:
        sel = self._selectors
        driver = session.driver

        if from_root:
            driver.navigate(project_url(self._config), wait_policy=WAIT_DOMCONTENTLOADED)
            driver.wait_for_visible(sel.project_thread, timeout=ELEMENT_TIMEOUT_SECS)
            await asyncio.sleep(DELETE_ROOT_SETTLE_SECS)

        try:
            driver.wait_for_visible(sel.conversation_item, timeout=MENU_TIMEOUT_SECS)
        except StructuredError as e:
            if e.code != SELECTOR_NOT_FOUND:
                raise
            logger.debug("No conversation entry to delete")
            return False

        driver.hover(sel.conversation_item)
        await asyncio.sleep(HOVER_SETTLE_SECS)
        driver.click(sel.conversation_item_menu, timeout=MENU_TIMEOUT_SECS)
        driver.click(sel.delete_menu_item, timeout=MENU_TIMEOUT_SECS)
        driver.click(sel.delete_confirm, timeout=MENU_TIMEOUT_SECS)
        return True

    async def _delete_temporary(self, session: Session) -> bool:
        sel = self._selectors
        driver = session.driver
        driver.click(sel.conversation_options, timeout=MENU_TIMEOUT_SECS)
        driver.click(sel.delete_menu_item, timeout=MENU_TIMEOUT_SECS)
        driver.click(sel.delete_confirm, timeout=MENU_TIMEOUT_SECS)
        return True


__all__ = ["ChatLifecycleManager"]
