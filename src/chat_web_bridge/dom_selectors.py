"""
Selector mapping table for the remote chat UI.

Every CSS selector the core uses lives here. When the remote UI changes shape,
this is the only file that should need editing.
"""

from dataclasses import dataclass, replace
from typing import Tuple


@dataclass(frozen=True)
class ChatSelectors:
    # Composer
    input_surface: str = "#prompt-textarea"
    stop_button: str = 'button[data-testid="stop-button"]'
    ready_button: str = '[data-testid="composer-speech-button"]'

    # Answers
    answer_region: str = "div.markdown"
    answer_chrome: Tuple[str, ...] = (
        ".flex.items-center.text-token-text-secondary.px-4.py-2.text-xs.font-sans.justify-between"
        ".h-9.bg-token-sidebar-surface-primary.select-none.rounded-t-2xl",
        ".flex.gap-1.items-center.select-none.py-1",
        ".flex.items-center.gap-1.py-1.select-none",
    )
    scrollable_code: str = ".overflow-y-auto.p-4"

    # Navigation
    home_link: str = 'a[href="/"]'
    project_link: str = 'a[href="{project_link}"]'
    header_actions: str = "#conversation-header-actions"
    temporary_toggle: str = '#conversation-header-actions button[aria-label*="emporary"]'
    temporary_close: str = '#conversation-header-actions button[aria-label*="lose temporary"]'

    # Deletion
    project_thread: str = "#thread div.mt-8.mb-14.contain-inline-size"
    conversation_item: str = ".group.relative.flex.flex-col.gap-1.p-3"
    conversation_item_menu: str = ".group.relative.flex.flex-col.gap-1.p-3 button svg.icon"
    conversation_options: str = '[data-testid="conversation-options-button"]'
    delete_menu_item: str = '[data-testid="delete-chat-menu-item"]'
    delete_confirm: str = '[data-testid="delete-conversation-confirm-button"] > div'

    def project_link_for(self, link: str) -> str:
        return self.project_link.format(project_link=link)


DEFAULT_SELECTORS = ChatSelectors()


def selectors_for(config: dict) -> ChatSelectors:
    """Selector table with the configured project link baked in."""
    link = config.get("project_link") or ""
    return replace(DEFAULT_SELECTORS, project_link=DEFAULT_SELECTORS.project_link_for(link))


__all__ = ["ChatSelectors", "DEFAULT_SELECTORS", "selectors_for"]
