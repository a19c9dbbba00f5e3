import pytest


@pytest.fixture(autouse=True)
def fast_bcrypt(monkeypatch):
    """Minimum bcrypt cost so hashing does not dominate the suite"""
    monkeypatch.setattr("caddy_auth.app.services.credentials.BCRYPT_ROUNDS", 4)
