"""Session tokens and the guard on protected paths."""

from datetime import datetime, timedelta, timezone

import pytest
from jose import JWTError, jwt

from app.services.auth import create_session_token, verify_session_token


def test_session_token_roundtrip(test_settings):
    token = create_session_token("admin", test_settings)
    assert verify_session_token(token, test_settings) == "admin"


def test_session_token_expires_after_ttl(test_settings):
    issued = datetime.now(timezone.utc) - timedelta(hours=test_settings.SESSION_TTL_HOURS, minutes=1)
    token = create_session_token("admin", test_settings, now=issued)
    with pytest.raises(JWTError):
        verify_session_token(token, test_settings)


def test_token_signed_with_other_key_is_rejected(test_settings):
    other = test_settings.model_copy(update={"SECRET_KEY": "someone-else"})
    with pytest.raises(JWTError):
        verify_session_token(create_session_token("admin", other), test_settings)


def test_token_of_other_type_is_rejected(test_settings):
    token = jwt.encode({"sub": "admin", "type": "refresh"}, test_settings.SECRET_KEY, algorithm=test_settings.JWT_ALGORITHM)
    with pytest.raises(JWTError):
        verify_session_token(token, test_settings)


@pytest.mark.asyncio
async def test_guard_redirects_without_cookie(test_client):
    response = await test_client.get("/bookings")
    assert response.status_code == 303
    assert response.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_guard_redirects_on_expired_cookie(test_client, test_settings):
    issued = datetime.now(timezone.utc) - timedelta(days=2)
    test_client.cookies.set(test_settings.SESSION_COOKIE_NAME, create_session_token("admin", test_settings, now=issued))

    response = await test_client.get("/bookings")
    assert response.status_code == 303


@pytest.mark.asyncio
async def test_guard_redirects_on_garbage_cookie(test_client, test_settings):
    test_client.cookies.set(test_settings.SESSION_COOKIE_NAME, "not-a-jwt")

    response = await test_client.get("/bookings")
    assert response.status_code == 303


@pytest.mark.asyncio
async def test_guard_passes_valid_session(admin_client):
    response = await admin_client.get("/bookings")
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_login_then_list(test_client, test_settings):
    login = await test_client.post("/auth/login", json={"password": "862486"})
    token = login.cookies[test_settings.SESSION_COOKIE_NAME]
    test_client.cookies.set(test_settings.SESSION_COOKIE_NAME, token)

    response = await test_client.get("/bookings")
    assert response.status_code == 200
