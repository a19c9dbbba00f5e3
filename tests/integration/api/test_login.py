"""
Integration tests for the login decision route
"""

from datetime import datetime, timedelta

import pytest
from httpx import AsyncClient
from sqlmodel.ext.asyncio.session import AsyncSession

from caddy_auth.app.services.credentials import hash_password
from caddy_auth.domain.entities import User

SIGNUP_TIME = datetime(2024, 2, 1, 9, 0, 0)


async def create_user(
    db_session: AsyncSession,
    username: str = "carol",
    email: str = "carol@example.com",
    password: str = "correct horse",
    confirmed: bool = True,
    disabled: bool = False,
    signup_time: datetime = SIGNUP_TIME,
) -> User:
    """Helper to insert a user directly"""
    password_hash, password_salt = hash_password(password)
    user = User(
        username=username,
        email=email,
        password_hash=password_hash,
        password_salt=password_salt,
        disabled=disabled,
        default_timezone="America/New_York",
        signup_time=signup_time,
        signup_confirmation_time=signup_time + timedelta(minutes=5) if confirmed else None,
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest.mark.asyncio
async def test_login_by_username_and_email(client: AsyncClient, db_session):
    user = await create_user(db_session)
    user_id = str(user.id)

    by_username = await client.post(
        "/api/auth/login", json={"username_or_email": "carol", "password": "correct horse"}
    )
    by_email = await client.post(
        "/api/auth/login",
        json={"username_or_email": "carol@example.com", "password": "correct horse"},
    )

    for response in (by_username, by_email):
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "authenticated"
        assert data["user_id"] == user_id
        assert data["default_timezone"] == "America/New_York"


@pytest.mark.asyncio
async def test_wrong_password_and_unknown_user(client: AsyncClient, db_session):
    await create_user(db_session)

    wrong = await client.post(
        "/api/auth/login", json={"username_or_email": "carol", "password": "wrong password"}
    )
    unknown = await client.post(
        "/api/auth/login", json={"username_or_email": "dave", "password": "correct horse"}
    )

    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json()["error"]["code"] == unknown.json()["error"]["code"] == "INVALID_CREDENTIALS"
    assert wrong.json()["error"]["message"] == unknown.json()["error"]["message"]


@pytest.mark.asyncio
async def test_disabled_user(client: AsyncClient, db_session):
    await create_user(db_session, disabled=True)

    response = await client.post(
        "/api/auth/login", json={"username_or_email": "carol", "password": "correct horse"}
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "ACCOUNT_DISABLED"


@pytest.mark.asyncio
async def test_unconfirmed_user(client: AsyncClient, db_session, clock):
    await create_user(db_session, confirmed=False, signup_time=clock.now - timedelta(days=1))

    response = await client.post(
        "/api/auth/login", json={"username_or_email": "carol", "password": "correct horse"}
    )

    assert response.status_code == 403
    assert response.json()["error"]["code"] == "NOT_CONFIRMED"


@pytest.mark.asyncio
async def test_stale_unconfirmed_user_is_gone(client: AsyncClient, db_session, clock):
    await create_user(db_session, confirmed=False, signup_time=clock.now - timedelta(days=8))

    response = await client.post(
        "/api/auth/login", json={"username_or_email": "carol", "password": "correct horse"}
    )

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_CREDENTIALS"

    signup = await client.post(
        "/api/auth/signup",
        json={
            "username": "carol",
            "email": "carol@example.com",
            "password": "another password",
            "default_timezone": "UTC",
        },
    )
    assert signup.status_code == 201
