# chat_web_bridge/tools/__init__.py
"""
MCP tool implementations - async wrappers that return JSON responses.

Each tool:
- Delegates to the process-wide ChatBridge
- Returns a JSON string with an "ok" flag
- Lets StructuredError propagate to the tool_envelope decorator
"""

from .session import (
    ensure_ready,
    status,
    delete_current_context,
    purge_contexts,
    close_session,
)

from .chat import (
    send_message,
    stream_message,
)

__all__ = [
    "ensure_ready",
    "status",
    "delete_current_context",
    "purge_contexts",
    "close_session",
    "send_message",
    "stream_message",
]
