#region Overview
"""
Browser automation bridge for a conversational web application, served as
an MCP server.

## What it does

A single Chrome session is kept logged in (cookies from COOKIES_PATH) on the
chat application. Tools submit a message history into either the fixed
project conversation or a temporary chat, wait until the answer has finished
rendering, and return its plain text. The streaming tool takes the same path
but collects the answer as incremental deltas.

## One submission at a time

The page has no concurrent-access contract. Submissions queue for up to
CWB_LOCK_WAIT_SECS and are then rejected with `session_busy`.

## Errors

Every failure is returned as {"ok": false, "error": {type, code, status,
param, details, message}}. The code tells the caller what happened:
`selector_not_found` (the UI changed shape), `response_timeout` (the answer
took too long), `session_init_failed` (the browser had to restart), and so on.
"""
#endregion

#region Imports
import os
import logging
from typing import List
from mcp.server.fastmcp import FastMCP
#endregion

#region Import from your package __init__.py
import chat_web_bridge as CWB
from chat_web_bridge.constants import PURGE_DEFAULT_LIMIT
from chat_web_bridge.decorators import tool_envelope, ensure_session_ready
from chat_web_bridge.tools import chat, session
#endregion

#region Logger
logger = logging.getLogger(__name__)
#endregion

#region Logging
def configure_logging() -> None:
    level = os.getenv("CWB_LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
#endregion

#region FastMCP Initialization
mcp = FastMCP("chat_web_bridge")
#endregion

#region Tools -- Session
@mcp.tool()
@tool_envelope
async def chat_web_bridge__ensure_ready() -> str:
    """
    Start the browser session if needed and wait until the chat input is on screen.
    Safe to call repeatedly; does nothing when the session is already ready.
    """
    return await session.ensure_ready()

@mcp.tool()
@tool_envelope
async def chat_web_bridge__status() -> str:
    """Report whether the session is ready and whether a submission is in flight."""
    return await session.status()

@mcp.tool()
@tool_envelope
async def chat_web_bridge__close_session() -> str:
    """
    Close the browser. The next tool call starts a fresh one.
    Do not use this unless explicitly asked to.
    """
    return await session.close_session()
#endregion

#region Tools -- Chat
@mcp.tool()
@tool_envelope
@ensure_session_ready
async def chat_web_bridge__send_message(
    messages: List[dict],
    mode: str = "project",
    cleanup: bool = True,
) -> str:
    """
    Send a conversation and wait for the complete reply.

    Args:
        messages: [{"role": "user" | "assistant" | "system", "content": "..."}], oldest first
        mode: "project" (the configured project conversation) or "temporary"
        cleanup: Delete the conversation afterwards (best effort)

    Returns:
        {"ok": true, "replyText": "...", "cleanup": {...}}
    """
    return await chat.send_message(messages, mode=mode, cleanup=cleanup)

@mcp.tool()
@tool_envelope
@ensure_session_ready
async def chat_web_bridge__stream_message(
    messages: List[dict],
    mode: str = "project",
    cleanup: bool = True,
) -> str:
    """
    Same as send_message, but the reply is captured as incremental deltas.

    Returns:
        {"ok": true, "deltas": [...], "replyText": "..."}
    """
    return await chat.stream_message(messages, mode=mode, cleanup=cleanup)
#endregion

#region Tools -- Cleanup
@mcp.tool()
@tool_envelope
async def chat_web_bridge__delete_current_context(mode: str = "project") -> str:
    """Delete the current conversation. Failures are reported in the result, never raised."""
    return await session.delete_current_context(mode=mode)

@mcp.tool()
@tool_envelope
async def chat_web_bridge__purge_contexts(limit: int = PURGE_DEFAULT_LIMIT) -> str:
    """
    Delete project conversations one by one, newest first, up to `limit`.
    This is destructive; only use it when explicitly asked to.
    """
    return await session.purge_contexts(limit=limit)
#endregion


def main() -> None:
    configure_logging()
    logger.info(f"chat_web_bridge from: {getattr(CWB, '__file__', '<namespace>')}")
    mcp.run()


if __name__ == "__main__":
    main()
