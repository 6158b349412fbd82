"""In-memory identity provider adapter."""

import hashlib
import secrets
from dataclasses import dataclass
from typing import Optional
from uuid import uuid4

from app.application.errors import AuthenticationError, NetworkError, ValidationError
from app.application.ports.identity_provider import AuthStateListener, AuthUser, IdentityProvider
from app.infrastructure.logging.logger import logger


@dataclass
class _Account:
    user: AuthUser
    salt: str
    password_hash: str


def _hash_password(password: str, salt: str) -> str:
    return hashlib.sha256(f"{salt}:{password}".encode("utf-8")).hexdigest()


class InMemoryIdentityProvider(IdentityProvider):
    """Accounts and the current session kept in process memory."""

    def __init__(self) -> None:
        """Initialize with no accounts and no session."""
        self._accounts: dict[str, _Account] = {}
        self._current_user: Optional[AuthUser] = None
        self._listeners: list[AuthStateListener] = []
        self.offline = False
        self.password_resets: list[str] = []

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._current_user

    def _check_online(self) -> None:
        if self.offline:
            raise NetworkError("Identity provider unreachable")

    def _set_current_user(self, user: Optional[AuthUser]) -> None:
        self._current_user = user
        for listener in list(self._listeners):
            try:
                listener(user)
            except Exception as e:
                logger.error(f"Auth state listener failed: {e}")

    async def sign_up(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> AuthUser:
        """
        Create an account and sign it in.

        Raises:
            ValidationError: If the email is already in use
            NetworkError: When offline
        """
        self._check_online()
        key = email.strip().lower()
        if key in self._accounts:
            raise ValidationError("The email address is already in use by another account.")

        salt = secrets.token_hex(16)
        user = AuthUser(uid=uuid4().hex, email=email.strip(), display_name=display_name)
        self._accounts[key] = _Account(user=user, salt=salt, password_hash=_hash_password(password, salt))
        self._set_current_user(user)
        return user

    def _verify(self, email: str, password: str) -> _Account:
        account = self._accounts.get(email.strip().lower())
        if account is None or not secrets.compare_digest(
            account.password_hash, _hash_password(password, account.salt)
        ):
            raise AuthenticationError("Invalid email or password")
        return account

    async def sign_in(self, email: str, password: str) -> AuthUser:
        self._check_online()
        account = self._verify(email, password)
        self._set_current_user(account.user)
        return account.user

    async def sign_out(self) -> None:
        self._set_current_user(None)

    async def delete_account(self, current_password: str) -> None:
        self._check_online()
        user = self._current_user
        if user is None:
            raise AuthenticationError("No user is signed in")
        self._verify(user.email, current_password)
        del self._accounts[user.email.lower()]
        self._set_current_user(None)

    async def reset_password(self, email: str) -> None:
        self._check_online()
        # Unknown emails are accepted silently so accounts cannot be probed
        self.password_resets.append(email.strip().lower())

    def add_state_listener(self, listener: AuthStateListener) -> None:
        self._listeners.append(listener)

    def expire_session(self) -> None:
        """End the session without a sign-out call (token revoked elsewhere)."""
        self._set_current_user(None)
