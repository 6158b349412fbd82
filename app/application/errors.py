"""Application error taxonomy.

Adapters raise these at the call site, translating provider exceptions
(SQLAlchemy, redis, identity backend) into one of the categories below.
"""

from typing import Optional


class AppError(Exception):
    """Base class for categorized application errors."""

    retryable: bool = True
    category: str = "unknown"
    friendly_message: str = "Something went wrong. Please try again."

    def __init__(self, message: str, cause: Optional[BaseException] = None) -> None:
        """
        Initialize error.

        Args:
            message: Technical description for logs
            cause: Original provider exception, if any
        """
        super().__init__(message)
        self.message = message
        self.cause = cause

    @property
    def user_friendly_message(self) -> str:
        """Message suitable for showing to the rep."""
        return self.friendly_message

    def __str__(self) -> str:
        return f"{self.category.title()} Error: {self.message}"


class NetworkError(AppError):
    """Remote store or identity provider unreachable."""

    category = "network"
    friendly_message = (
        "Network connection issue. Please check your internet connection and try again."
    )


class DataError(AppError):
    """Local persistence failure."""

    category = "data"
    friendly_message = "Unable to save or load data. Please try again."


class AuthenticationError(AppError):
    """Credentials rejected or session missing."""

    retryable = False
    category = "authentication"
    friendly_message = "Authentication failed. Please sign in again."


class PermissionDeniedError(AppError):
    """Remote store refused access to a path."""

    retryable = False
    category = "permission"
    friendly_message = "Permission denied. Please check your account settings."


class ValidationError(AppError):
    """Input rejected before any network call."""

    retryable = False
    category = "validation"

    @property
    def user_friendly_message(self) -> str:
        return self.message


class UnknownError(AppError):
    """Anything not classified at the call site."""

    category = "unknown"


class SyncNotAuthenticated(AuthenticationError):
    """The session ended while a sync was running."""

    def __init__(self, message: str = "User not authenticated") -> None:
        super().__init__(message)


def as_app_error(error: BaseException) -> AppError:
    """
    Wrap an arbitrary exception as an AppError.

    Args:
        error: Exception raised somewhere below the application layer

    Returns:
        The error itself if already categorized, otherwise UnknownError
    """
    if isinstance(error, AppError):
        return error
    return UnknownError(str(error) or error.__class__.__name__, cause=error)
