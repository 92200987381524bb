# chat_web_bridge/decorators/__init__.py
#
# Re-exports decorators from their respective modules.

from .ensure import ensure_session_ready
from .envelope import tool_envelope

__all__ = [
    "ensure_session_ready",
    "tool_envelope",
]
