"""User-facing error reporting."""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from app.application.errors import AppError, UnknownError, as_app_error
from app.infrastructure.logging.logger import logger

T = TypeVar("T")


class ErrorHandler:
    """Records the latest error for the UI and logs it with context."""

    def __init__(self) -> None:
        """Initialize with no current error."""
        self.current_error: Optional[AppError] = None
        self.showing_error = False

    def handle(self, error: BaseException, context: str = "") -> AppError:
        """
        Categorize, log and record an error.

        Args:
            error: Raised exception
            context: Short label of the failing operation (e.g., 'Data Sync')

        Returns:
            The categorized error
        """
        app_error = as_app_error(error)
        logger.error(f"[{context}] {app_error}")
        self.current_error = app_error
        self.showing_error = True
        return app_error

    def clear_error(self) -> None:
        self.current_error = None
        self.showing_error = False


class RetryableOperation:
    """Retry an async operation a bounded number of times."""

    def __init__(self, max_retries: int = 3, retry_delay: float = 1.0) -> None:
        """
        Initialize retry policy.

        Args:
            max_retries: Total attempts, including the first one
            retry_delay: Seconds to wait between attempts
        """
        self.max_retries = max_retries
        self.retry_delay = retry_delay

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        on_error: Optional[Callable[[BaseException, int], Any]] = None,
    ) -> T:
        """
        Run the operation until it succeeds or attempts run out.

        Non-retryable AppErrors are re-raised immediately.

        Args:
            operation: Zero-argument coroutine factory
            on_error: Optional callback receiving (error, attempt_number)

        Returns:
            Result of the first successful attempt

        Raises:
            AppError: The last error once attempts are exhausted
        """
        last_error: Optional[BaseException] = None

        for attempt in range(self.max_retries):
            try:
                return await operation()
            except Exception as e:
                last_error = e
                if on_error:
                    on_error(e, attempt + 1)

                if isinstance(e, AppError) and not e.retryable:
                    logger.info(f"Error should not be retried: {e}")
                    raise

                if attempt < self.max_retries - 1:
                    await asyncio.sleep(self.retry_delay)

        if last_error is None:
            raise UnknownError(f"Operation failed after {self.max_retries} attempts")
        raise last_error
