"""
Structured errors surfaced by the automation core.

Every failure that leaves ``ChatBridge`` is a ``StructuredError``. The wire
shape mirrors an OpenAI-style error object so an HTTP layer can forward it
unchanged:

    {"type": ..., "code": ..., "status": ..., "param": ..., "details": ...}
"""

from typing import Optional


# Error codes
SELECTOR_NOT_FOUND = "selector_not_found"
SESSION_INIT_FAILED = "session_init_failed"
INPUT_SURFACE_MISSING = "input_surface_missing"
RESPONSE_TIMEOUT = "response_timeout"
CAPTURE_REPLY_FAILED = "capture_reply_failed"
STREAM_BRIDGE_FAILED = "stream_bridge_failed"
INVALID_REPLY = "invalid_reply"
ENTER_CONTEXT_FAILED = "enter_context_failed"
RETRY_EXHAUSTED = "retry_exhausted"
SESSION_BUSY = "session_busy"
UPSTREAM_TIMEOUT = "upstream_timeout"
INVALID_REQUEST = "invalid_request"

SERVER_ERROR = "server_error"
INVALID_REQUEST_ERROR = "invalid_request_error"


class StructuredError(Exception):
    """Uniform error carrying type/code/status/param/details."""

    def __init__(
        self,
        message: str,
        *,
        type: str = SERVER_ERROR,
        code: Optional[str] = None,
        status: int = 500,
        param: Optional[str] = None,
        details: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.type = type
        self.code = code
        self.status = status
        self.param = param
        self.details = details

    def to_dict(self) -> dict:
        return {
            "message": self.message,
            "type": self.type,
            "code": self.code,
            "status": self.status,
            "param": self.param,
            "details": self.details,
        }

    def with_message(self, message: str) -> "StructuredError":
        """Copy of this error with a new message; code/status/param are kept."""
        return StructuredError(
            message,
            type=self.type,
            code=self.code,
            status=self.status,
            param=self.param,
            details=self.details,
        )

    def __repr__(self) -> str:
        return f"StructuredError(code={self.code!r}, status={self.status}, message={self.message!r})"


def selector_not_found(selector: str, details: Optional[str] = None) -> StructuredError:
    return StructuredError(
        f"Element not found: {selector}",
        code=SELECTOR_NOT_FOUND,
        status=502,
        param=selector,
        details=details,
    )


def session_init_failed(reason: str, details: Optional[str] = None) -> StructuredError:
    return StructuredError(
        f"Browser session could not be initialized: {reason}",
        code=SESSION_INIT_FAILED,
        status=500,
        details=details,
    )


def response_timeout(timeout_ms: int) -> StructuredError:
    return StructuredError(
        "Response not completed in time",
        code=RESPONSE_TIMEOUT,
        status=504,
        details=f"timeout_ms={timeout_ms}",
    )


def invalid_request(message: str, param: Optional[str] = None) -> StructuredError:
    return StructuredError(
        message,
        type=INVALID_REQUEST_ERROR,
        code=INVALID_REQUEST,
        status=400,
        param=param,
    )


def as_structured(
    exc: BaseException,
    *,
    code: str = RETRY_EXHAUSTED,
    status: int = 500,
    message: Optional[str] = None,
) -> StructuredError:
    """Normalize any exception into a StructuredError (StructuredErrors pass through)."""
    if isinstance(exc, StructuredError):
        return exc
    return StructuredError(
        message or f"{exc.__class__.__name__}: {exc}",
        code=code,
        status=status,
        details=str(exc) or None,
    )


__all__ = [
    "StructuredError",
    "selector_not_found",
    "session_init_failed",
    "response_timeout",
    "invalid_request",
    "as_structured",
    "SELECTOR_NOT_FOUND",
    "SESSION_INIT_FAILED",
    "INPUT_SURFACE_MISSING",
    "RESPONSE_TIMEOUT",
    "CAPTURE_REPLY_FAILED",
    "STREAM_BRIDGE_FAILED",
    "INVALID_REPLY",
    "ENTER_CONTEXT_FAILED",
    "RETRY_EXHAUSTED",
    "SESSION_BUSY",
    "UPSTREAM_TIMEOUT",
    "INVALID_REQUEST",
    "SERVER_ERROR",
    "INVALID_REQUEST_ERROR",
]
