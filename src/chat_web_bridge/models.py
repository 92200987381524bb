"""Value types exchanged between the core and its callers."""

from enum import Enum
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from .errors import StructuredError, invalid_request


ROLES = ("user", "assistant", "system")


class ChatMode(str, Enum):
    """Which conversation surface a submission goes to."""

    PROJECT = "project"
    TEMPORARY = "temporary"

    @classmethod
    def parse(cls, value) -> "ChatMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise invalid_request(
                f"mode must be one of {[m.value for m in cls]}, got {value!r}",
                param="mode",
            )


@dataclass(frozen=True)
class Message:
    role: str
    content: str

    def __post_init__(self):
        if self.role not in ROLES:
            raise invalid_request(
                "role must be one of 'user' | 'assistant' | 'system'",
                param="role",
            )
        if not isinstance(self.content, str):
            raise invalid_request("content must be a string", param="content")

    @classmethod
    def from_dict(cls, data) -> "Message":
        if not isinstance(data, dict):
            raise invalid_request("Each message must have {role, content:string}", param="messages")
        return cls(role=data.get("role"), content=data.get("content"))


def coerce_history(messages: Iterable) -> List[Message]:
    """Accept Message instances or {role, content} dicts; reject an empty history."""
    if messages is None or isinstance(messages, (str, bytes, dict)):
        raise invalid_request("`messages` must be a non-empty array", param="messages")
    history = [m if isinstance(m, Message) else Message.from_dict(m) for m in messages]
    if not history:
        raise invalid_request("`messages` must be a non-empty array", param="messages")
    return history


@dataclass(frozen=True)
class CleanupOutcome:
    """
    Result of a best-effort operation (conversation deletion, purge).

    A failed cleanup is reported here instead of being raised, so the caller's
    primary result or error is never replaced by it.
    """

    attempted: bool = False
    ok: bool = True
    error: Optional[str] = None
    deleted: int = 0
    session_lost: bool = False

    @classmethod
    def skipped(cls) -> "CleanupOutcome":
        return cls(attempted=False, ok=True)

    @classmethod
    def failed(cls, error: BaseException, deleted: int = 0, session_lost: bool = False) -> "CleanupOutcome":
        return cls(
            attempted=True,
            ok=False,
            error=f"{error.__class__.__name__}: {error}",
            deleted=deleted,
            session_lost=session_lost,
        )

    def to_dict(self) -> dict:
        return {
            "attempted": self.attempted,
            "ok": self.ok,
            "error": self.error,
            "deleted": self.deleted,
            "session_lost": self.session_lost,
        }


@dataclass(frozen=True)
class Reply:
    reply_text: str
    cleanup: CleanupOutcome = field(default_factory=CleanupOutcome.skipped)

    def to_dict(self) -> dict:
        return {"replyText": self.reply_text}


@dataclass(frozen=True)
class StreamEvent:
    """One item of a stream: a delta, the terminal ``done``, or a terminal error."""

    delta: Optional[str] = None
    done: bool = False
    error: Optional[StructuredError] = None

    @property
    def terminal(self) -> bool:
        return self.done or self.error is not None

    def to_dict(self) -> dict:
        if self.error is not None:
            return {"error": self.error.to_dict()}
        if self.done:
            return {"done": True}
        return {"delta": self.delta}


__all__ = [
    "ROLES",
    "ChatMode",
    "Message",
    "coerce_history",
    "CleanupOutcome",
    "Reply",
    "StreamEvent",
]
