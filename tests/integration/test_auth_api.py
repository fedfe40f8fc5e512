"""API tests for identity-provider tokens and profile sync."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from httpx import AsyncClient

from lilo.auth.jwt import _load_private_key, create_access_token, verify_token
from lilo.config import get_settings


def _expired_token(user_id: str) -> str:
    settings = get_settings()
    past = datetime.now(timezone.utc) - timedelta(hours=2)
    payload = {
        "sub": user_id,
        "iat": past,
        "exp": past + timedelta(minutes=5),
        "iss": settings.jwt_issuer,
        "type": "access",
    }
    return jwt.encode(payload, _load_private_key(), algorithm=settings.jwt_algorithm)


class TestTokens:
    def test_round_trip_claims(self):
        token = create_access_token("ana", "ana@lilo.app", name="Ana", picture="https://img/ana.png")
        payload = verify_token(token)
        assert payload["sub"] == "ana"
        assert payload["name"] == "Ana"
        assert payload["picture"] == "https://img/ana.png"

    def test_expired_token_rejected(self):
        with pytest.raises(jwt.InvalidTokenError, match="expired"):
            verify_token(_expired_token("ana"))

    def test_garbage_rejected(self):
        with pytest.raises(jwt.InvalidTokenError):
            verify_token("not-a-jwt")


class TestProfileSync:
    @pytest.mark.asyncio
    async def test_first_request_creates_profile(self, client: AsyncClient, headers_for):
        resp = await client.get("/api/v1/users/me", headers=headers_for("ana", name="Ana"))
        assert resp.status_code == 200
        body = resp.json()
        assert body["id"] == "ana"
        assert body["name"] == "Ana"
        assert body["email"] == "ana@lilo.app"
        assert body["avatar_url"].startswith("https://ui-avatars.com/")

    @pytest.mark.asyncio
    async def test_display_fields_resync(self, client: AsyncClient, headers_for):
        await client.get("/api/v1/users/me", headers=headers_for("ana", name="Ana"))
        resp = await client.get("/api/v1/users/me", headers=headers_for("ana", name="Ana Banana"))
        assert resp.json()["name"] == "Ana Banana"

    @pytest.mark.asyncio
    async def test_missing_token(self, client: AsyncClient):
        resp = await client.get("/api/v1/users/me")
        assert resp.status_code in (401, 403)

    @pytest.mark.asyncio
    async def test_expired_token(self, client: AsyncClient):
        resp = await client.get(
            "/api/v1/users/me", headers={"Authorization": f"Bearer {_expired_token('ana')}"}
        )
        assert resp.status_code == 401
