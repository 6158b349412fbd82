"""Identity provider port."""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, Optional


@dataclass(frozen=True)
class AuthUser:
    """Authenticated user as reported by the identity provider."""

    uid: str
    email: str
    display_name: Optional[str] = None
    is_email_verified: bool = False


AuthStateListener = Callable[[Optional[AuthUser]], None]


class IdentityProvider(ABC):
    """Port interface for the authentication service."""

    @property
    @abstractmethod
    def current_user(self) -> Optional[AuthUser]:
        """Currently signed-in user, or None."""
        pass

    @property
    def is_authenticated(self) -> bool:
        """Whether a session is active."""
        return self.current_user is not None

    @abstractmethod
    async def sign_up(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> AuthUser:
        """
        Create an account and sign it in.

        Args:
            email: Account email
            password: Account password
            display_name: Optional display name

        Returns:
            The new user

        Raises:
            ValidationError: If the email is already in use
            NetworkError: If the provider is unreachable
        """
        pass

    @abstractmethod
    async def sign_in(self, email: str, password: str) -> AuthUser:
        """
        Sign in with email and password.

        Raises:
            AuthenticationError: If the credentials are rejected
        """
        pass

    @abstractmethod
    async def sign_out(self) -> None:
        """Revoke the current session."""
        pass

    @abstractmethod
    async def delete_account(self, current_password: str) -> None:
        """
        Delete the signed-in account after re-authentication.

        Raises:
            AuthenticationError: If no session exists or the password is wrong
        """
        pass

    @abstractmethod
    async def reset_password(self, email: str) -> None:
        """Send a password reset for the email."""
        pass

    @abstractmethod
    def add_state_listener(self, listener: AuthStateListener) -> None:
        """
        Register a callback fired on every session change.

        Args:
            listener: Receives the new user, or None after sign-out
        """
        pass
