# tests/test_retry.py
import asyncio
import pytest

from selenium.common.exceptions import InvalidSessionIdException, WebDriverException

from chat_web_bridge.errors import (
    CAPTURE_REPLY_FAILED,
    RETRY_EXHAUSTED,
    SELECTOR_NOT_FOUND,
    StructuredError,
    invalid_request,
    selector_not_found,
)
from chat_web_bridge.utils.retry import EXPONENTIAL, FIXED, LINEAR, backoff_delay, retry_async


def test_backoff_strategies():
    assert [backoff_delay(n, 0.3, FIXED) for n in (1, 2, 3)] == [0.3, 0.3, 0.3]
    assert [backoff_delay(n, 0.3, LINEAR) for n in (1, 2, 3)] == pytest.approx([0.3, 0.6, 0.9])
    assert [backoff_delay(n, 0.1, EXPONENTIAL) for n in (1, 2, 3)] == pytest.approx([0.1, 0.2, 0.4])


def test_succeeds_after_transient_failures(event_loop):
    attempts = []

    def op():
        attempts.append(1)
        if len(attempts) < 3:
            raise WebDriverException("not yet")
        return "ok"

    result = event_loop.run_until_complete(retry_async(op, retries=5, delay=0.001))
    assert result == "ok"
    assert len(attempts) == 3


def test_calls_at_most_n_times_and_embeds_final_reason(event_loop):
    attempts = []

    def op():
        attempts.append(1)
        raise RuntimeError(f"boom #{len(attempts)}")

    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(retry_async(op, retries=4, delay=0.001, label="flaky op"))

    assert len(attempts) == 4
    err = ei.value
    assert err.code == RETRY_EXHAUSTED
    assert err.status == 500
    assert "boom #4" in err.message
    assert "[flaky op] failed after 4 attempts" in err.message


def test_preserves_structured_code_of_last_failure(event_loop):
    def op():
        raise selector_not_found("#missing")

    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(retry_async(op, retries=2, delay=0.001))

    assert ei.value.code == SELECTOR_NOT_FOUND
    assert ei.value.status == 502
    assert ei.value.param == "#missing"
    assert "Element not found: #missing" in ei.value.message


def test_reports_configured_code_when_not_preserving(event_loop):
    def op():
        raise selector_not_found("div.markdown")

    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(
            retry_async(op, retries=2, delay=0.001, error_code=CAPTURE_REPLY_FAILED, status=504, preserve_code=False)
        )
    assert ei.value.code == CAPTURE_REPLY_FAILED
    assert ei.value.status == 504


def test_async_operations_are_awaited(event_loop):
    attempts = []

    async def op():
        attempts.append(1)
        await asyncio.sleep(0)
        if len(attempts) == 1:
            raise WebDriverException("first")
        return 42

    assert event_loop.run_until_complete(retry_async(op, retries=3, delay=0.001)) == 42
    assert len(attempts) == 2


def test_request_errors_are_not_retried(event_loop):
    attempts = []

    def op():
        attempts.append(1)
        raise invalid_request("bad", param="messages")

    with pytest.raises(StructuredError) as ei:
        event_loop.run_until_complete(retry_async(op, retries=5, delay=0.001))
    assert len(attempts) == 1
    assert ei.value.status == 400


def test_lost_session_is_not_retried(event_loop):
    attempts = []

    def op():
        attempts.append(1)
        raise InvalidSessionIdException("gone")

    with pytest.raises(InvalidSessionIdException):
        event_loop.run_until_complete(retry_async(op, retries=5, delay=0.001))
    assert len(attempts) == 1
