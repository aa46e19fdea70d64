"""HTTP tests for /auth: login, logout and password reset."""

from datetime import datetime, timedelta, timezone

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy import select

from app.db.session import Database
from app.main import create_app
from app.models.models import User
from app.services import auth as auth_service
from app.services.accounts import AccountService


@pytest.fixture
def reset_user(database, test_settings):
    async def _create(username="jcastro", password="original-pass", email="owner@example.com"):
        async with database.sessionmaker() as session:
            return await AccountService(session, test_settings).create_user(username, password, email)

    return _create


async def _load_user(database, username):
    async with database.sessionmaker() as session:
        res = await session.execute(select(User).where(User.username == username))
        return res.scalars().first()


@pytest.mark.asyncio
async def test_admin_login_sets_session_cookie(test_client, test_settings):
    response = await test_client.post("/auth/login", json={"password": "862486"})

    assert response.status_code == 200
    assert response.json()["success"] is True
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f"{test_settings.SESSION_COOKIE_NAME}=")
    assert "HttpOnly" in cookie
    assert "SameSite=strict" in cookie
    assert "Max-Age=86400" in cookie

    token = cookie.split(";", 1)[0].split("=", 1)[1]
    assert auth_service.verify_session_token(token, test_settings) == "admin"


@pytest.mark.asyncio
async def test_wrong_password_is_rejected(test_client):
    response = await test_client.post("/auth/login", json={"password": "wrong"})

    assert response.status_code == 401
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_admin_hash_takes_precedence(test_app, test_client, test_settings):
    test_app.state.settings = test_settings.model_copy(update={"ADMIN_PASSWORD_HASH": auth_service.hash_password("hashed-secret")})

    assert (await test_client.post("/auth/login", json={"password": "hashed-secret"})).status_code == 200
    assert (await test_client.post("/auth/login", json={"password": "862486"})).status_code == 401


@pytest.mark.asyncio
async def test_no_admin_secret_configured(test_app, test_client, test_settings):
    test_app.state.settings = test_settings.model_copy(update={"ADMIN_PASSWORD": None})

    response = await test_client.post("/auth/login", json={"password": ""})
    assert response.status_code == 400
    response = await test_client.post("/auth/login", json={"password": "anything"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_username_login(test_client, reset_user):
    await reset_user()

    ok = await test_client.post("/auth/login", json={"username": "jcastro", "password": "original-pass"})
    bad = await test_client.post("/auth/login", json={"username": "jcastro", "password": "nope"})
    unknown = await test_client.post("/auth/login", json={"username": "ghost", "password": "original-pass"})

    assert ok.status_code == 200
    assert bad.status_code == 401
    assert unknown.status_code == 401


@pytest.mark.asyncio
async def test_logout_clears_cookie(test_client, test_settings):
    response = await test_client.post("/auth/logout")
    assert response.status_code == 200
    cookie = response.headers["set-cookie"]
    assert cookie.startswith(f'{test_settings.SESSION_COOKIE_NAME}=""')
    assert "Max-Age=0" in cookie


@pytest.mark.asyncio
async def test_forgot_password_unknown_user(test_client, provider):
    response = await test_client.post("/auth/forgot-password", json={"username": "unknown-user"})

    assert response.status_code == 404
    assert provider.emails == []


@pytest.mark.asyncio
async def test_forgot_password_stores_and_emails_code(test_client, provider, reset_user, database):
    await reset_user()

    response = await test_client.post("/auth/forgot-password", json={"username": "jcastro"})

    assert response.status_code == 200
    user = await _load_user(database, "jcastro")
    assert len(user.reset_code) == 6 and user.reset_code.isdigit()
    assert user.reset_code_expires is not None
    assert provider.emails[0]["to"] == "owner@example.com"
    assert user.reset_code in provider.emails[0]["body"]


@pytest.mark.asyncio
async def test_new_request_replaces_code(test_client, provider, reset_user, database):
    await reset_user()
    await test_client.post("/auth/forgot-password", json={"username": "jcastro"})
    await test_client.post("/auth/forgot-password", json={"username": "jcastro"})

    user = await _load_user(database, "jcastro")
    assert len(provider.emails) == 2
    assert user.reset_code in provider.emails[-1]["body"]


@pytest.mark.asyncio
async def test_forgot_password_email_failure_is_soft(test_client, provider, reset_user, database):
    await reset_user()
    provider.fail_with = ConnectionError("smtp unreachable")

    response = await test_client.post("/auth/forgot-password", json={"username": "jcastro"})

    assert response.status_code == 200
    assert "smtp unreachable" in response.json()["notificationError"]
    assert (await _load_user(database, "jcastro")).reset_code


@pytest.mark.asyncio
async def test_reset_password_flow(test_client, reset_user, database):
    await reset_user()
    await test_client.post("/auth/forgot-password", json={"username": "jcastro"})
    code = (await _load_user(database, "jcastro")).reset_code

    response = await test_client.post(
        "/auth/reset-password",
        json={"username": "jcastro", "verificationCode": code, "newPassword": "brand-new-pass"},
    )

    assert response.status_code == 200
    user = await _load_user(database, "jcastro")
    assert user.reset_code is None and user.reset_code_expires is None
    assert auth_service.verify_password("brand-new-pass", user.hashed_password)

    # single use
    again = await test_client.post(
        "/auth/reset-password",
        json={"username": "jcastro", "verificationCode": code, "newPassword": "another-pass"},
    )
    assert again.status_code == 404


@pytest.mark.asyncio
async def test_reset_password_wrong_code(test_client, reset_user, database):
    await reset_user()
    await test_client.post("/auth/forgot-password", json={"username": "jcastro"})
    code = (await _load_user(database, "jcastro")).reset_code
    wrong = "000000" if code != "000000" else "111111"

    response = await test_client.post(
        "/auth/reset-password",
        json={"username": "jcastro", "verificationCode": wrong, "newPassword": "brand-new-pass"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_reset_password_expired_code(test_client, reset_user, database):
    await reset_user()
    await test_client.post("/auth/forgot-password", json={"username": "jcastro"})
    async with database.sessionmaker() as session:
        async with session.begin():
            user = (await session.execute(select(User).where(User.username == "jcastro"))).scalars().first()
            user.reset_code_expires = datetime.now(timezone.utc) - timedelta(minutes=1)
            code = user.reset_code

    response = await test_client.post(
        "/auth/reset-password",
        json={"username": "jcastro", "verificationCode": code, "newPassword": "brand-new-pass"},
    )

    assert response.status_code == 400
    user = await _load_user(database, "jcastro")
    assert auth_service.verify_password("original-pass", user.hashed_password)


@pytest.mark.asyncio
async def test_reset_password_unknown_user(test_client):
    response = await test_client.post(
        "/auth/reset-password",
        json={"username": "ghost", "verificationCode": "123456", "newPassword": "brand-new-pass"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_reset_password_without_request(test_client, reset_user):
    await reset_user()
    response = await test_client.post(
        "/auth/reset-password",
        json={"username": "jcastro", "verificationCode": "123456", "newPassword": "brand-new-pass"},
    )
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_empty_username_does_not_fall_back_to_admin_secret(test_client):
    response = await test_client.post("/auth/login", json={"username": "", "password": "862486"})

    assert response.status_code == 401
    assert "set-cookie" not in response.headers


@pytest.mark.asyncio
async def test_account_database_unavailable_returns_503(test_settings, notifications, provider, tmp_path):
    broken = Database(f"sqlite+aiosqlite:///{tmp_path}/missing/dir/accounts.db")
    app = create_app(test_settings, database=broken, notifications=notifications)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as client:
        forgot = await client.post("/auth/forgot-password", json={"username": "jcastro"})
        login = await client.post("/auth/login", json={"username": "jcastro", "password": "original-pass"})
        reset = await client.post(
            "/auth/reset-password",
            json={"username": "jcastro", "verificationCode": "123456", "newPassword": "brand-new-pass"},
        )
    await broken.dispose()

    assert forgot.status_code == 503
    assert forgot.json()["success"] is False
    assert login.status_code == 503
    assert reset.status_code == 503
    assert provider.emails == []
