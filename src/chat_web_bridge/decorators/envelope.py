# chat_web_bridge/decorators/envelope.py

import os
import json
import asyncio
import inspect
import datetime
import functools
import traceback
from typing import Any, Callable

from ..errors import StructuredError, as_structured


__all__ = [
    "tool_envelope",
]


def tool_envelope(func: Callable):
    """
    Decorator for MCP tool functions:
      - Works with both async and sync callables.
      - On success: ensures the return value is a string (json.dumps for non-strings,
        using ``to_dict()`` where the value has one).
      - On error: returns {"ok": false, "error": <StructuredError wire shape>}.
        Unexpected exceptions are normalized first and carry a traceback.
    Environment:
      - Set CWB_TOOL_ERRORS_TRACEBACK=0 to suppress traceback in error payloads.
    """
    include_tb = os.getenv("CWB_TOOL_ERRORS_TRACEBACK", "1") not in ("0", "false", "False")

    def _default(o: Any):
        if hasattr(o, "to_dict"):
            return o.to_dict()
        return getattr(o, "__dict__", repr(o))

    def _normalize(value: Any) -> str:
        if value is None:
            return ""
        if isinstance(value, str):
            return value
        if isinstance(value, bytes):
            return value.decode("utf-8", "replace")
        return json.dumps(value, ensure_ascii=False, default=_default)

    def _error_payload(err: Exception) -> str:
        structured = as_structured(err)
        payload = {
            "ok": False,
            "summary": f"[{structured.code}] {structured.message}",
            "error": structured.to_dict(),
            "timestamp": datetime.datetime.now(datetime.timezone.utc).isoformat(),
        }
        if include_tb and not isinstance(err, StructuredError):
            payload["error"]["traceback"] = traceback.format_exc()
        return json.dumps(payload, ensure_ascii=False)

    if inspect.iscoroutinefunction(func):
        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            try:
                result = await func(*args, **kwargs)
            except asyncio.CancelledError:
                # Preserve cooperative cancellation semantics
                raise
            except Exception as e:
                return _error_payload(e)
            return _normalize(result)
        return wrapper
    else:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                result = func(*args, **kwargs)
            except Exception as e:
                return _error_payload(e)
            return _normalize(result)
        return wrapper
