"""
Conversation positioning state.

The remote application can be "inside" one of two conversation surfaces:
the persistent project conversation or an ephemeral temporary chat. The
ChatContext records which one the core believes it is positioned in, and
under which browser session generation that belief was formed.

Thread Safety:
    ChatContext is NOT thread-safe. It is only mutated by the component
    holding the single in-flight submission (see locking.single_flight).
"""

from enum import Enum
from dataclasses import dataclass
from typing import Optional

from .models import ChatMode


class ContextState(str, Enum):
    UNPOSITIONED = "unpositioned"
    NAVIGATING = "navigating"
    POSITIONED = "positioned"
    DELETING = "deleting"


@dataclass
class ChatContext:
    """
    Attributes:
        mode: Surface the context is (or was last) positioned in
        state: Lifecycle state: Unpositioned -> Navigating -> Positioned -> Deleting -> Unpositioned
        generation: Session generation the positioning belongs to
    """

    mode: Optional[ChatMode] = None
    state: ContextState = ContextState.UNPOSITIONED
    generation: int = -1

    def is_positioned_in(self, mode: ChatMode, generation: int) -> bool:
        return (
            self.state == ContextState.POSITIONED
            and self.mode == mode
            and self.generation == generation
        )

    def begin_navigation(self, mode: ChatMode, generation: int) -> None:
        self.mode = mode
        self.generation = generation
        self.state = ContextState.NAVIGATING

    def mark_positioned(self) -> None:
        self.state = ContextState.POSITIONED

    def begin_deletion(self) -> None:
        self.state = ContextState.DELETING

    def reset(self) -> None:
        """Back to Unpositioned; the mode is kept for logging."""
        self.state = ContextState.UNPOSITIONED
        self.generation = -1


__all__ = [
    "ContextState",
    "ChatContext",
]
