"""
The PageDriver capability: everything the automation core needs from a
controllable browser page.

Components above this layer only speak in selectors from
``dom_selectors.ChatSelectors`` and never touch Selenium directly, so the
core can be exercised against an in-memory fake.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, List, Optional


WAIT_LOAD = "load"
WAIT_DOMCONTENTLOADED = "domcontentloaded"
WAIT_NONE = "none"
WAIT_POLICIES = (WAIT_LOAD, WAIT_DOMCONTENTLOADED, WAIT_NONE)


@dataclass(frozen=True)
class ElementState:
    present: bool = False
    visible: bool = False
    enabled: bool = False


class PageDriver(ABC):
    """Interface for a single controllable browser page."""

    # Navigation
    @abstractmethod
    def navigate(self, url: str, wait_policy: str = WAIT_LOAD, timeout: float = 30.0) -> None:
        """Load ``url`` and wait according to ``wait_policy``."""

    @abstractmethod
    def reload(self, wait_policy: str = WAIT_DOMCONTENTLOADED, timeout: float = 30.0) -> None:
        """Reload the current document."""

    # Waiting and probing
    @abstractmethod
    def wait_for_visible(self, selector: str, timeout: float) -> None:
        """Block until the first match is visible; raises selector_not_found."""

    @abstractmethod
    def element_state(self, selector: str) -> ElementState:
        """Non-blocking probe of the first match."""

    def is_visible(self, selector: str) -> bool:
        return self.element_state(selector).visible

    # Interaction
    @abstractmethod
    def click(self, selector: str, timeout: float = 10.0) -> None:
        """Wait for the first match to be visible, then click it."""

    @abstractmethod
    def hover(self, selector: str, timeout: float = 10.0) -> None:
        """Move the pointer over the first match."""

    @abstractmethod
    def focus(self, selector: str) -> None:
        """Scroll the first match into view and focus it."""

    @abstractmethod
    def set_input_value(self, selector: str, text: str) -> None:
        """Replace the value through the native setter and dispatch ``input``."""

    @abstractmethod
    def press_enter(self, selector: str) -> None:
        """Send an Enter key press to the first match."""

    # Reading
    @abstractmethod
    def count(self, selector: str) -> int:
        """Number of current matches."""

    @abstractmethod
    def read_text(self, selector: str, after: int = 0) -> str:
        """
        Trimmed innerText of the *last* match, or '' when there are no more
        than ``after`` matches (regions that predate the current submission).
        """

    @abstractmethod
    def read_html(self, selector: str, after: int = 0) -> str:
        """outerHTML of the *last* match, with the same ``after`` rule as read_text."""

    @abstractmethod
    def evaluate(self, script: str, *args: Any) -> Any:
        """Run ``script`` in the page and return its value."""

    # Page-to-host bridge
    @abstractmethod
    def expose_host_function(self, name: str, handler: Callable[..., None]) -> None:
        """Make ``window[name](...)`` deliver its arguments to ``handler``."""

    @abstractmethod
    def register_mutation_bridge(self, root_selector: str, callback_name: str, after: int = 0) -> None:
        """Push the last ``root_selector`` match's text to ``callback_name`` whenever it changes."""

    @abstractmethod
    def remove_mutation_bridge(self, callback_name: str) -> None:
        """Disconnect an observer installed by register_mutation_bridge."""

    @abstractmethod
    def pump_host_calls(self) -> int:
        """Deliver queued page-to-host calls to their handlers; returns how many ran."""

    # Session identity and policy
    @abstractmethod
    def add_init_script(self, source: str) -> None:
        """Evaluate ``source`` in every new document before page scripts run."""

    @abstractmethod
    def set_cookies(self, cookies: List[dict]) -> None:
        """Install cookies before navigation."""

    @abstractmethod
    def set_user_agent(self, user_agent: str) -> None:
        """Override the user agent for subsequent requests."""

    @abstractmethod
    def block_urls(self, patterns: Iterable[str]) -> None:
        """Drop requests whose URL matches any of ``patterns``."""

    # Lifecycle
    @abstractmethod
    def is_alive(self) -> bool:
        """True while the browser process runs and the page is open."""

    @abstractmethod
    def close(self) -> None:
        """Close the page and the browser process."""

    @property
    def current_url(self) -> Optional[str]:
        return None


__all__ = [
    "PageDriver",
    "ElementState",
    "WAIT_LOAD",
    "WAIT_DOMCONTENTLOADED",
    "WAIT_NONE",
    "WAIT_POLICIES",
]
