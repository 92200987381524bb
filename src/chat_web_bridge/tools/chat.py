"""Chat submission tool implementations."""

import json
import contextlib
from typing import List

from ..bridge import get_bridge

import logging
logger = logging.getLogger(__name__)


async def send_message(messages: List[dict], mode: str = "project", cleanup: bool = True) -> str:
    """
    Submit a conversation and wait for the full reply.

    Returns:
        JSON string: {"ok": true, "replyText": ..., "cleanup": {...}}
    """
    reply = await get_bridge().send_synchronous(messages, mode, cleanup=cleanup)
    return json.dumps({"ok": True, **reply.to_dict(), "cleanup": reply.cleanup.to_dict()}, ensure_ascii=False)


async def stream_message(messages: List[dict], mode: str = "project", cleanup: bool = True) -> str:
    """
    Submit a conversation through the streaming path and collect its events.

    Returns:
        JSON string with the deltas in arrival order and their concatenation.
        A terminal error event is raised as StructuredError.
    """
    deltas = []
    async with contextlib.aclosing(get_bridge().open_stream(messages, mode, cleanup=cleanup)) as events:
        async for event in events:
            if event.error is not None:
                if deltas:
                    logger.info(f"Stream failed after {len(deltas)} deltas")
                raise event.error
            if event.delta:
                deltas.append(event.delta)
    return json.dumps({"ok": True, "deltas": deltas, "replyText": "".join(deltas)}, ensure_ascii=False)


__all__ = ["send_message", "stream_message"]
