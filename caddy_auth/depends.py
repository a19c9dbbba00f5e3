from functools import lru_cache

from fastapi import Depends
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel import SQLModel
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from caddy_auth.adapter.services.notifier import LoggingNotifier, SmtpNotifier
from caddy_auth.adapter.services.token_store import RedisTokenStore
from caddy_auth.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from caddy_auth.app.services.confirmation_tokens import ConfirmationTokens
from caddy_auth.app.services.mailer import AccountMailer
from caddy_auth.app.services.notifier import INotifier
from caddy_auth.app.services.token_store import ITokenStore

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)


async def init_models():
    """Create any missing tables"""
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)


async def get_unit_of_work():
    async with AsyncSessionLocal() as session:
        yield SqlAlchemyUnitOfWork(session)


@lru_cache
def get_token_store() -> ITokenStore:
    return RedisTokenStore.from_url(
        ApplicationConfig.REDIS_URL, socket_timeout=ApplicationConfig.REDIS_SOCKET_TIMEOUT
    )


async def close_token_store():
    """Close the cached token store, if one was ever created"""
    if get_token_store.cache_info().currsize:
        await get_token_store().close()
        get_token_store.cache_clear()


def get_confirmation_tokens(
    store: ITokenStore = Depends(get_token_store),
) -> ConfirmationTokens:
    return ConfirmationTokens(store)


@lru_cache
def get_notifier() -> INotifier:
    if not ApplicationConfig.EMAIL_ENABLED:
        return LoggingNotifier()
    return SmtpNotifier(
        host=ApplicationConfig.SMTP_HOST,
        port=ApplicationConfig.SMTP_PORT,
        sender=ApplicationConfig.EMAIL_FROM,
        username=ApplicationConfig.SMTP_USERNAME,
        password=ApplicationConfig.SMTP_PASSWORD,
        starttls=ApplicationConfig.SMTP_STARTTLS,
    )


def get_mailer(notifier: INotifier = Depends(get_notifier)) -> AccountMailer:
    return AccountMailer(
        notifier,
        base_url=ApplicationConfig.PUBLIC_BASE_URL,
        support_email=ApplicationConfig.SUPPORT_EMAIL,
    )
