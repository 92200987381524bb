"""Session and conversation-cleanup tool implementations."""

import json

from ..bridge import get_bridge
from ..constants import PURGE_DEFAULT_LIMIT


async def ensure_ready() -> str:
    """
    Make sure the browser session is up and on the chat page.

    Returns:
        JSON string with readiness and the session generation
    """
    bridge = get_bridge()
    await bridge.ensure_ready()
    return json.dumps({"ok": True, **bridge.status(), "generation": bridge.sessions.generation})


async def status() -> str:
    bridge = get_bridge()
    return json.dumps({
        "ok": True,
        **bridge.status(),
        "busy": bridge.flight.busy,
        "holder": bridge.flight.holder,
        "context": bridge.lifecycle.context.state.value,
    })


async def delete_current_context(mode: str = "project") -> str:
    """Best-effort deletion of the current conversation; failures are reported, not raised."""
    outcome = await get_bridge().delete_current_context(mode)
    return json.dumps({"ok": outcome.ok, "cleanup": outcome.to_dict()})


async def purge_contexts(limit: int = PURGE_DEFAULT_LIMIT) -> str:
    outcome = await get_bridge().purge_contexts(limit=limit)
    return json.dumps({"ok": outcome.ok, "cleanup": outcome.to_dict()})


async def close_session() -> str:
    await get_bridge().close()
    return json.dumps({"ok": True, "ready": False})
