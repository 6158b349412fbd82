"""Unit tests for the in-memory identity provider."""

import pytest

from app.adapters.outbound.identity import InMemoryIdentityProvider
from app.application.errors import AuthenticationError, NetworkError, ValidationError


@pytest.fixture
def provider():
    return InMemoryIdentityProvider()


@pytest.mark.asyncio
async def test_sign_up_signs_in_and_notifies(provider):
    changes = []
    provider.add_state_listener(changes.append)

    user = await provider.sign_up("Rep@Example.com", "secret123", display_name="Rep")

    assert provider.current_user == user
    assert provider.is_authenticated
    assert changes == [user]


@pytest.mark.asyncio
async def test_duplicate_sign_up_is_rejected(provider):
    await provider.sign_up("rep@example.com", "secret123")

    with pytest.raises(ValidationError):
        await provider.sign_up("REP@example.com", "other-secret")


@pytest.mark.asyncio
async def test_sign_in_checks_password(provider):
    user = await provider.sign_up("rep@example.com", "secret123")
    await provider.sign_out()

    with pytest.raises(AuthenticationError):
        await provider.sign_in("rep@example.com", "wrong")
    assert await provider.sign_in("rep@example.com", "secret123") == user


@pytest.mark.asyncio
async def test_offline_provider_raises_network_error(provider):
    provider.offline = True

    with pytest.raises(NetworkError):
        await provider.sign_in("rep@example.com", "secret123")


@pytest.mark.asyncio
async def test_delete_account_requires_correct_password(provider):
    await provider.sign_up("rep@example.com", "secret123")

    with pytest.raises(AuthenticationError):
        await provider.delete_account("wrong")
    await provider.delete_account("secret123")

    assert provider.current_user is None
    with pytest.raises(AuthenticationError):
        await provider.sign_in("rep@example.com", "secret123")


@pytest.mark.asyncio
async def test_expire_session_notifies_listeners(provider):
    changes = []
    await provider.sign_up("rep@example.com", "secret123")
    provider.add_state_listener(changes.append)

    provider.expire_session()

    assert changes == [None]
    assert not provider.is_authenticated
