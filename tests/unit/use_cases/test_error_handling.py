"""Unit tests for error categorization, reporting and retries."""

from unittest.mock import AsyncMock

import pytest

from app.application.error_handler import ErrorHandler, RetryableOperation
from app.application.errors import (
    AuthenticationError,
    NetworkError,
    UnknownError,
    ValidationError,
    as_app_error,
)


def test_as_app_error_wraps_unknown_exceptions():
    original = RuntimeError("boom")

    wrapped = as_app_error(original)

    assert isinstance(wrapped, UnknownError)
    assert wrapped.cause is original
    assert as_app_error(wrapped) is wrapped


def test_validation_error_shows_its_own_message():
    assert ValidationError("Please enter a valid email address").user_friendly_message == (
        "Please enter a valid email address"
    )
    assert "internet connection" in NetworkError("timeout").user_friendly_message


def test_error_handler_records_current_error():
    handler = ErrorHandler()

    app_error = handler.handle(ConnectionResetError("reset"), context="Data Sync")

    assert handler.current_error is app_error
    assert handler.showing_error
    handler.clear_error()
    assert handler.current_error is None
    assert not handler.showing_error


@pytest.mark.asyncio
async def test_retry_succeeds_after_transient_failures():
    operation = AsyncMock(side_effect=[NetworkError("offline"), NetworkError("offline"), "done"])
    attempts = []

    result = await RetryableOperation(max_retries=3, retry_delay=0).execute(
        operation, on_error=lambda error, attempt: attempts.append(attempt)
    )

    assert result == "done"
    assert attempts == [1, 2]


@pytest.mark.asyncio
async def test_retry_gives_up_after_max_attempts():
    operation = AsyncMock(side_effect=NetworkError("offline"))

    with pytest.raises(NetworkError):
        await RetryableOperation(max_retries=2, retry_delay=0).execute(operation)

    assert operation.await_count == 2


@pytest.mark.asyncio
async def test_non_retryable_errors_are_raised_immediately():
    operation = AsyncMock(side_effect=AuthenticationError("expired"))

    with pytest.raises(AuthenticationError):
        await RetryableOperation(max_retries=5, retry_delay=0).execute(operation)

    assert operation.await_count == 1
