import re
from datetime import datetime

import pytest
import pytest_asyncio
from fakeredis import aioredis
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession

from caddy_auth.adapter.services.token_store import RedisTokenStore
from caddy_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from caddy_auth.app.services.notifier import INotifier
from caddy_auth.depends import get_notifier, get_token_store, get_unit_of_work

URL_TOKEN_PATTERN = re.compile(r"url_token=([0-9a-f]+)")
CONFIRM_TOKEN_PATTERN = re.compile(r"Confirmation code: ([0-9a-f]+)")


class RecordingNotifier(INotifier):
    """Keeps every message instead of delivering it"""

    def __init__(self):
        self.sent = []

    async def send(self, to: str, subject: str, body: str) -> None:
        self.sent.append((to, subject, body))

    def last_tokens(self, to: str):
        """(url_token, confirm_token) from the latest message sent to ``to``"""
        for recipient, _, body in reversed(self.sent):
            if recipient == to:
                return (
                    URL_TOKEN_PATTERN.search(body).group(1),
                    CONFIRM_TOKEN_PATTERN.search(body).group(1),
                )
        raise AssertionError(f"No email sent to {to}")


class Clock:
    """Reference time handed to the use cases by the routes"""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest_asyncio.fixture
async def engine():
    engine = create_async_engine("sqlite+aiosqlite:///./test.db")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(engine):
    Session = sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with Session() as session:
        yield session


@pytest_asyncio.fixture
async def redis_client():
    client = aioredis.FakeRedis(decode_responses=True)
    await client.flushall()
    yield client
    await client.flushall()
    await client.aclose()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def clock(monkeypatch):
    clock = Clock(datetime(2024, 3, 1, 12, 0, 0))
    monkeypatch.setattr("caddy_auth.api.routes.auth.utc_now", clock)
    return clock


@pytest_asyncio.fixture
async def client(db_session, redis_client, notifier, clock):
    from caddy_auth.api.app import create_app
    from config import ApplicationConfig

    app = create_app(ApplicationConfig)

    async def override_get_unit_of_work():
        yield SqlAlchemyUnitOfWork(db_session)

    app.dependency_overrides[get_unit_of_work] = override_get_unit_of_work
    app.dependency_overrides[get_token_store] = lambda: RedisTokenStore(redis_client)
    app.dependency_overrides[get_notifier] = lambda: notifier

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
