import pytest
import pytest_asyncio
from fakeredis import aioredis
from unittest.mock import AsyncMock, MagicMock

from caddy_auth.adapter.services.token_store import RedisTokenStore
from caddy_auth.domain.entities import User


@pytest.fixture
def mock_uow():
    uow = MagicMock()
    uow.__aenter__ = AsyncMock(return_value=uow)
    uow.__aexit__ = AsyncMock(return_value=False)  # Must return False to not suppress exceptions
    uow.commit = AsyncMock()
    uow.rollback = AsyncMock()

    uow.users = MagicMock()
    uow.users.get_by_id = AsyncMock(return_value=None)

    async def lock_by_id(user_id):
        # Same user the test stubbed for the preceding lookup
        for lookup in (uow.users.get_by_email, uow.users.get_by_username, uow.users.get_by_id):
            user = lookup.return_value
            if isinstance(user, User) and user.id == user_id:
                return user
        return None

    uow.users.lock_by_id = AsyncMock(side_effect=lock_by_id)
    uow.users.get_by_username = AsyncMock(return_value=None)
    uow.users.get_by_email = AsyncMock(return_value=None)
    uow.users.get_by_username_or_email = AsyncMock(return_value=None)
    uow.users.create = AsyncMock(side_effect=lambda user: user)
    uow.users.update = AsyncMock(side_effect=lambda user: user)
    uow.users.destroy_if_unconfirmed_stale = AsyncMock(side_effect=lambda user, now: user)
    uow.users.purge_stale_by_username = AsyncMock(return_value=0)
    uow.users.purge_stale_by_email = AsyncMock(return_value=0)

    uow.password_reset_requests = MagicMock()
    uow.password_reset_requests.create = AsyncMock(side_effect=lambda request: request)
    uow.password_reset_requests.update = AsyncMock(side_effect=lambda request: request)
    uow.password_reset_requests.get_active_by_url_token = AsyncMock(return_value=None)
    uow.password_reset_requests.url_token_exists = AsyncMock(return_value=False)
    uow.password_reset_requests.count_recent_for_user = AsyncMock(return_value=0)
    uow.password_reset_requests.deactivate_all_for_user = AsyncMock(return_value=0)
    return uow


@pytest_asyncio.fixture
async def redis_client():
    client = aioredis.FakeRedis(decode_responses=True)
    await client.flushall()
    yield client
    await client.flushall()
    await client.aclose()


@pytest_asyncio.fixture
async def token_store(redis_client):
    return RedisTokenStore(redis_client)


@pytest.fixture
def mock_mailer():
    mailer = MagicMock()
    mailer.send_signup_confirmation = AsyncMock(return_value=True)
    mailer.send_password_reset = AsyncMock(return_value=True)
    return mailer
