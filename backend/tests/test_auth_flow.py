from __future__ import annotations

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from coursemart.core.settings import get_settings
from support import TEST_PASSWORD, create_user, csrf_headers, login


def _cookie_header(resp: httpx.Response, name: str) -> str:
    return next(h for h in resp.headers.get_list("set-cookie") if h.startswith(f"{name}="))


@pytest.mark.asyncio
async def test_login_refresh_rotation_logout_flow(client: httpx.AsyncClient, db: AsyncSession, app) -> None:
    settings = get_settings()
    user = await create_user(db, email="ada@example.com")

    csrf = await client.get("/api/v1/auth/csrf")
    assert csrf.status_code == 200
    assert csrf.headers.get("cache-control") == "no-store"
    csrf_token = csrf.json()["csrfToken"]
    assert csrf_token
    headers = {settings.csrf_header_name: csrf_token}

    # CSRF must be present for login.
    missing_csrf = await client.post("/api/v1/auth/login", json={"email": user.email, "password": TEST_PASSWORD})
    assert missing_csrf.status_code == 403

    # Emails are matched case-insensitively.
    resp = await client.post(
        "/api/v1/auth/login",
        json={"email": "ADA@example.com", "password": TEST_PASSWORD},
        headers=headers,
    )
    assert resp.status_code == 200

    set_cookie_headers = resp.headers.get_list("set-cookie")
    assert any(settings.access_cookie_name in h for h in set_cookie_headers)
    assert any(settings.refresh_cookie_name in h for h in set_cookie_headers)

    old_refresh = client.cookies.get(settings.refresh_cookie_name)
    assert old_refresh is not None

    me = await client.get("/api/v1/users/me")
    assert me.status_code == 200
    data = me.json()
    assert data["id"] == user.id
    assert data["email"] == "ada@example.com"
    assert data["full_name"] == "Ada Lovelace"

    missing_csrf_refresh = await client.post("/api/v1/auth/refresh")
    assert missing_csrf_refresh.status_code == 403

    refresh1 = await client.post("/api/v1/auth/refresh", headers=headers)
    assert refresh1.status_code == 200

    new_refresh = client.cookies.get(settings.refresh_cookie_name)
    assert new_refresh is not None
    assert new_refresh != old_refresh

    # Replay old refresh token should fail (rotation).
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as replay_client:
        replay_headers = await csrf_headers(replay_client)
        replay_client.cookies.set(settings.refresh_cookie_name, old_refresh)
        replay = await replay_client.post("/api/v1/auth/refresh", headers=replay_headers)
    assert replay.status_code == 401

    missing_csrf_logout = await client.post("/api/v1/auth/logout")
    assert missing_csrf_logout.status_code == 403

    logout = await client.post("/api/v1/auth/logout", headers=headers)
    assert logout.status_code == 200

    after_logout = await client.get("/api/v1/users/me")
    assert after_logout.status_code == 401


@pytest.mark.asyncio
async def test_wrong_password_is_rejected(client: httpx.AsyncClient, db: AsyncSession) -> None:
    await create_user(db, email="ada@example.com")
    headers = await csrf_headers(client)

    resp = await client.post(
        "/api/v1/auth/login",
        json={"email": "ada@example.com", "password": "not-the-password"},
        headers=headers,
    )

    assert resp.status_code == 401
    assert resp.json()["detail"] == "Invalid login"


@pytest.mark.asyncio
async def test_remember_me_controls_refresh_cookie_lifetime(client: httpx.AsyncClient, db: AsyncSession) -> None:
    settings = get_settings()
    await create_user(db, email="ada@example.com")
    headers = await csrf_headers(client)

    session_only = await client.post(
        "/api/v1/auth/login",
        json={"email": "ada@example.com", "password": TEST_PASSWORD},
        headers=headers,
    )
    assert session_only.status_code == 200
    assert "max-age" not in _cookie_header(session_only, settings.refresh_cookie_name).lower()

    remembered = await client.post(
        "/api/v1/auth/login",
        json={"email": "ada@example.com", "password": TEST_PASSWORD, "rememberMe": True},
        headers=headers,
    )
    assert remembered.status_code == 200
    assert (
        f"max-age={settings.jwt_refresh_ttl_seconds}"
        in _cookie_header(remembered, settings.refresh_cookie_name).lower()
    )


@pytest.mark.asyncio
async def test_signup_sets_cookies_and_returns_names(client: httpx.AsyncClient) -> None:
    settings = get_settings()
    headers = await csrf_headers(client)
    body = {"email": "Grace@Example.com", "password": "password123", "firstName": " Grace ", "lastName": "Hopper"}

    # CSRF must be present for signup.
    missing_csrf = await client.post("/api/v1/auth/signup", json=body)
    assert missing_csrf.status_code == 403

    resp = await client.post("/api/v1/auth/signup", json=body, headers=headers)
    assert resp.status_code == 200

    set_cookie_headers = resp.headers.get_list("set-cookie")
    assert any(settings.access_cookie_name in h for h in set_cookie_headers)
    assert any(settings.refresh_cookie_name in h for h in set_cookie_headers)

    me = await client.get("/api/v1/users/me")
    assert me.status_code == 200
    data = me.json()
    assert data["email"] == "grace@example.com"
    assert data["first_name"] == "Grace"
    assert data["last_name"] == "Hopper"
    assert data["full_name"] == "Grace Hopper"

    dup = await client.post("/api/v1/auth/signup", json=body, headers=headers)
    assert dup.status_code == 409


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "body",
    [
        {"email": "x@example.com", "password": "password123", "firstName": "  ", "lastName": "Hopper"},
        {"email": "x@example.com", "password": "password123", "firstName": "G" * 61, "lastName": "Hopper"},
        {"email": "x@example.com", "password": "short", "firstName": "Grace", "lastName": "Hopper"},
    ],
)
async def test_signup_guards(client: httpx.AsyncClient, body: dict) -> None:
    headers = await csrf_headers(client)

    resp = await client.post("/api/v1/auth/signup", json=body, headers=headers)

    assert resp.status_code == 400


@pytest.mark.asyncio
async def test_profile_update(client: httpx.AsyncClient, db: AsyncSession) -> None:
    await create_user(db, email="ada@example.com")
    headers = await login(client, "ada@example.com")

    resp = await client.patch("/api/v1/users/me", json={"lastName": "King"}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["full_name"] == "Ada King"

    blank = await client.patch("/api/v1/users/me", json={"firstName": "   "}, headers=headers)
    assert blank.status_code == 422
