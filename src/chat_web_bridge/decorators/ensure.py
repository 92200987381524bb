# chat_web_bridge/decorators/ensure.py
import json
import inspect
import functools

from ..errors import StructuredError


def ensure_session_ready(_func=None, *, include_diagnostics=False):
    """
    Make sure the shared browser session is ready before the tool body runs.

    A session that cannot be (re)initialized short-circuits the tool with
    {"ok": false, "error": {...}} instead of running it against a dead page.
    """
    def decorator(fn):
        if not inspect.iscoroutinefunction(fn):
            raise TypeError("ensure_session_ready only wraps async tools")

        @functools.wraps(fn)
        async def wrapper(*args, **kwargs):
            from ..bridge import get_bridge  # resolved per call so reset_bridge() takes effect

            bridge = get_bridge()
            try:
                await bridge.ensure_ready()
            except StructuredError as e:
                payload = {"ok": False, "error": e.to_dict()}
                if include_diagnostics:
                    from ..utils.diagnostics import collect_diagnostics
                    payload["diagnostics"] = collect_diagnostics(None, e, bridge.config)
                return json.dumps(payload)

            return await fn(*args, **kwargs)
        return wrapper
    return decorator if _func is None else decorator(_func)


__all__ = ["ensure_session_ready"]
