"""
Unit tests for ConfirmSignupUseCase

Covers:
- Correct code confirms the user and spends the code
- Resubmitting after success reports already_confirmed
- Wrong code leaves the cycle usable
- Unknown url token, stale signup, disabled user
- Token store outage
- A failed database write keeps the code for a retry
"""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, MagicMock

import pytest
from sqlalchemy.exc import OperationalError

from caddy_auth.app.services.confirmation_tokens import (
    ConfirmationTokens,
    cooldown_key,
    token_hash_key,
    token_salt_key,
    url_token_key,
)
from caddy_auth.app.services.token_store import TokenStoreUnavailable
from caddy_auth.app.use_cases.auth import ConfirmSignupUseCase
from caddy_auth.domain.entities import ErrorCode, User

SIGNUP_TIME = datetime(2024, 3, 1, 12, 0, 0)
NOW = SIGNUP_TIME + timedelta(minutes=10)


def pending_user(**overrides) -> User:
    fields = dict(
        username="alice",
        email="alice@example.com",
        password_hash="x" * 60,
        password_salt="y" * 29,
        default_timezone="UTC",
        signup_time=SIGNUP_TIME,
    )
    fields.update(overrides)
    return User(**fields)


@pytest.fixture
def confirmation_tokens(token_store):
    return ConfirmationTokens(token_store)


@pytest.mark.asyncio
async def test_correct_code_confirms_user(mock_uow, confirmation_tokens, redis_client):
    # Arrange
    user = pending_user()
    mock_uow.users.get_by_username.return_value = user
    tokens = await confirmation_tokens.issue("alice")
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)

    # Act
    result = await use_case.execute(tokens.url_token, tokens.confirm_token, NOW)

    # Assert
    assert result.is_ok()
    assert result.value.status == "confirmed"
    assert result.value.username == "alice"
    assert user.signup_confirmation_time == NOW
    mock_uow.users.update.assert_awaited_once_with(user)
    mock_uow.commit.assert_awaited_once()

    assert await redis_client.get(token_hash_key("alice")) is None
    assert await redis_client.get(cooldown_key("alice")) is None


@pytest.mark.asyncio
async def test_resubmission_is_idempotent(mock_uow, confirmation_tokens):
    user = pending_user()
    mock_uow.users.get_by_username.return_value = user
    tokens = await confirmation_tokens.issue("alice")
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)
    await use_case.execute(tokens.url_token, tokens.confirm_token, NOW)

    result = await use_case.execute(
        tokens.url_token, tokens.confirm_token, NOW + timedelta(minutes=1)
    )

    assert result.is_ok()
    assert result.value.status == "already_confirmed"
    assert user.signup_confirmation_time == NOW
    mock_uow.users.update.assert_awaited_once()


@pytest.mark.asyncio
async def test_wrong_code_keeps_cycle(mock_uow, confirmation_tokens):
    """The user can retry with the right code afterwards"""
    user = pending_user()
    mock_uow.users.get_by_username.return_value = user
    tokens = await confirmation_tokens.issue("alice")
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)

    wrong = await use_case.execute(tokens.url_token, "0" * 32, NOW)

    assert wrong.is_err()
    assert wrong.error.code == ErrorCode.WRONG_CODE
    assert user.signup_confirmation_time is None
    mock_uow.commit.assert_not_called()

    retry = await use_case.execute(tokens.url_token, tokens.confirm_token, NOW)
    assert retry.is_ok()
    assert retry.value.status == "confirmed"


@pytest.mark.asyncio
async def test_unknown_url_token(mock_uow, confirmation_tokens):
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)

    result = await use_case.execute("unknown", "0" * 32, NOW)

    assert result.is_err()
    assert result.error.code == ErrorCode.TOKEN_EXPIRED
    mock_uow.users.get_by_username.assert_not_called()


@pytest.mark.asyncio
async def test_lapsed_code_reports_expired(mock_uow, confirmation_tokens, redis_client):
    mock_uow.users.get_by_username.return_value = pending_user()
    tokens = await confirmation_tokens.issue("alice")
    await redis_client.delete(token_hash_key("alice"))
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)

    result = await use_case.execute(tokens.url_token, tokens.confirm_token, NOW)

    assert result.is_err()
    assert result.error.code == ErrorCode.TOKEN_EXPIRED
    assert await redis_client.get(url_token_key(tokens.url_token)) is None


@pytest.mark.asyncio
async def test_stale_signup_is_purged(mock_uow, confirmation_tokens, redis_client):
    """A signup older than the inactivity window is deleted, not confirmed"""
    mock_uow.users.get_by_username.return_value = pending_user()
    mock_uow.users.destroy_if_unconfirmed_stale = AsyncMock(return_value=None)
    tokens = await confirmation_tokens.issue("alice")
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)

    result = await use_case.execute(
        tokens.url_token, tokens.confirm_token, SIGNUP_TIME + timedelta(days=8)
    )

    assert result.is_err()
    assert result.error.code == ErrorCode.SIGNUP_EXPIRED
    mock_uow.commit.assert_awaited_once()
    assert await redis_client.get(url_token_key(tokens.url_token)) is None
    assert await redis_client.get(token_hash_key("alice")) is None


@pytest.mark.asyncio
async def test_disabled_user(mock_uow, confirmation_tokens):
    mock_uow.users.get_by_username.return_value = pending_user(disabled=True)
    tokens = await confirmation_tokens.issue("alice")
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)

    result = await use_case.execute(tokens.url_token, tokens.confirm_token, NOW)

    assert result.is_err()
    assert result.error.code == ErrorCode.ACCOUNT_DISABLED


@pytest.mark.asyncio
async def test_token_store_outage(mock_uow):
    confirmation_tokens = MagicMock()
    confirmation_tokens.username_for = AsyncMock(side_effect=TokenStoreUnavailable("down"))
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)

    result = await use_case.execute("u" * 32, "c" * 32, NOW)

    assert result.is_err()
    assert result.error.code == ErrorCode.TECHNICAL_ERROR


@pytest.mark.asyncio
async def test_database_failure_keeps_tokens(mock_uow, confirmation_tokens, redis_client):
    mock_uow.users.get_by_username.return_value = pending_user()
    mock_uow.users.update.side_effect = OperationalError("UPDATE users", {}, Exception("locked"))
    tokens = await confirmation_tokens.issue("alice")
    use_case = ConfirmSignupUseCase(mock_uow, confirmation_tokens)

    result = await use_case.execute(tokens.url_token, tokens.confirm_token, NOW)

    assert result.is_err()
    assert result.error.code == ErrorCode.TECHNICAL_ERROR
    mock_uow.commit.assert_not_called()
    assert await redis_client.get(token_hash_key("alice")) is not None
    assert await redis_client.get(token_salt_key("alice")) is not None
    assert await redis_client.get(url_token_key(tokens.url_token)) == "alice"

    # The rolled back row is still unconfirmed
    mock_uow.users.get_by_username.return_value = pending_user()
    mock_uow.users.update.side_effect = lambda user: user

    retry = await use_case.execute(tokens.url_token, tokens.confirm_token, NOW)

    assert retry.is_ok()
    assert retry.value.status == "confirmed"
    assert await redis_client.get(token_hash_key("alice")) is None
