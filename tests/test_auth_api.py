"""
Authentication API Tests
========================

Registration, login, refresh-token rotation and logout.
"""

from datetime import datetime, timedelta, timezone
import uuid

import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.security import create_refresh_token
from app.models.refresh_token import RefreshToken
from tests.conftest import register_user


@pytest.mark.asyncio
async def test_register_returns_user_and_tokens(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={"name": "Alice", "email": "Alice@Example.com", "password": "secret123"},
    )

    assert response.status_code == 201
    data = response.json()["data"]
    assert data["user"]["email"] == "alice@example.com"
    assert data["user"]["name"] == "Alice"
    assert "password" not in str(data["user"]).lower()
    assert data["tokens"]["access_token"]
    assert data["tokens"]["refresh_token"]
    assert data["tokens"]["token_type"] == "bearer"
    assert response.cookies.get("refreshToken") == data["tokens"]["refresh_token"]


@pytest.mark.asyncio
async def test_register_duplicate_email_conflicts(client: AsyncClient):
    await register_user(client, email="dup@example.com")

    response = await client.post(
        "/api/auth/register",
        json={"name": "Other", "email": "dup@example.com", "password": "secret123"},
    )

    assert response.status_code == 409
    assert response.json()["error"]["code"] == "AUTH_004"


@pytest.mark.asyncio
async def test_register_rejects_short_password(client: AsyncClient):
    response = await client.post(
        "/api/auth/register",
        json={"email": "short@example.com", "password": "123"},
    )

    assert response.status_code == 422
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_login_success_and_failure(client: AsyncClient):
    await register_user(client, email="bob@example.com", password="hunter22")

    ok = await client.post(
        "/api/auth/login",
        json={"email": "bob@example.com", "password": "hunter22"},
    )
    assert ok.status_code == 200
    assert ok.json()["data"]["user"]["email"] == "bob@example.com"

    bad = await client.post(
        "/api/auth/login",
        json={"email": "bob@example.com", "password": "wrong-pass"},
    )
    assert bad.status_code == 401
    assert bad.json()["error"]["code"] == "AUTH_001"

    unknown = await client.post(
        "/api/auth/login",
        json={"email": "nobody@example.com", "password": "hunter22"},
    )
    assert unknown.status_code == 401


@pytest.mark.asyncio
async def test_refresh_rotates_and_old_token_is_dead(client: AsyncClient):
    user = await register_user(client)
    original = user["tokens"]["refresh_token"]
    client.cookies.clear()

    first = await client.post("/api/auth/refresh", json={"refresh_token": original})
    assert first.status_code == 200
    rotated = first.json()["data"]
    assert rotated["refresh_token"] != original
    assert rotated["access_token"]

    client.cookies.clear()
    reuse = await client.post("/api/auth/refresh", json={"refresh_token": original})
    assert reuse.status_code == 401
    assert reuse.json()["error"]["code"] == "AUTH_007"

    client.cookies.clear()
    second = await client.post("/api/auth/refresh", json={"refreshToken": rotated["refresh_token"]})
    assert second.status_code == 200


@pytest.mark.asyncio
async def test_refresh_uses_cookie(client: AsyncClient):
    await register_user(client)

    response = await client.post("/api/auth/refresh")

    assert response.status_code == 200
    new_token = response.json()["data"]["refresh_token"]
    assert response.cookies.get("refreshToken") == new_token


@pytest.mark.asyncio
async def test_refresh_without_token_is_unauthorized(client: AsyncClient):
    response = await client.post("/api/auth/refresh")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_006"


@pytest.mark.asyncio
async def test_refresh_with_unknown_token_is_unauthorized(client: AsyncClient):
    response = await client.post("/api/auth/refresh", json={"refresh_token": "not-a-token"})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_005"


@pytest.mark.asyncio
async def test_new_access_token_works(client: AsyncClient):
    user = await register_user(client)
    client.cookies.clear()

    refreshed = await client.post(
        "/api/auth/refresh",
        json={"refresh_token": user["tokens"]["refresh_token"]},
    )
    access = refreshed.json()["data"]["access_token"]

    response = await client.get("/api/profile", headers={"Authorization": f"Bearer {access}"})
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_logout_revokes_refresh_token(client: AsyncClient):
    user = await register_user(client)
    token = user["tokens"]["refresh_token"]
    client.cookies.clear()

    response = await client.post("/api/auth/logout", json={"refresh_token": token})
    assert response.status_code == 200
    assert response.json()["message"] == "Logged out"

    again = await client.post("/api/auth/refresh", json={"refresh_token": token})
    assert again.status_code == 401


@pytest.mark.asyncio
async def test_logout_without_token_succeeds(client: AsyncClient):
    response = await client.post("/api/auth/logout")

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_protected_route_requires_bearer_token(client: AsyncClient):
    missing = await client.get("/api/tasks")
    assert missing.status_code == 401

    garbage = await client.get("/api/tasks", headers={"Authorization": "Bearer garbage"})
    assert garbage.status_code == 401
    assert garbage.json()["success"] is False


@pytest.mark.asyncio
async def test_refresh_with_expired_token_is_rejected(
    client: AsyncClient,
    session_factory: async_sessionmaker[AsyncSession],
):
    user = await register_user(client)
    user_id = uuid.UUID(user["user"]["id"])
    token, expires_at = create_refresh_token(user_id, expires_delta=timedelta(minutes=-5))
    assert expires_at < datetime.now(timezone.utc)

    async with session_factory() as session:
        session.add(RefreshToken(token=token, user_id=user_id, expires_at=expires_at))
        await session.commit()

    client.cookies.clear()
    response = await client.post("/api/auth/refresh", json={"refresh_token": token})

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "AUTH_007"
