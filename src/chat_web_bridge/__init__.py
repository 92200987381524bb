"""
Browser automation core that re-exposes a conversational web application as
request/response and streaming operations.

The entry point for callers is ChatBridge (see bridge.py). Everything it
raises or reports is a StructuredError.
"""

from .errors import StructuredError
from .models import ChatMode, CleanupOutcome, Message, Reply, StreamEvent
from .bridge import ChatBridge, get_bridge, reset_bridge

__all__ = [
    "ChatBridge",
    "get_bridge",
    "reset_bridge",
    "ChatMode",
    "CleanupOutcome",
    "Message",
    "Reply",
    "StreamEvent",
    "StructuredError",
]
