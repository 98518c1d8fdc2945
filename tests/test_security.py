"""Tests for token verification and owner scoping."""
from datetime import timedelta
import uuid

from shiptrack.core.security import create_access_token, get_owner_scope


def bearer(token: str) -> dict:
    return {"Authorization": f"Bearer {token}"}


class TestTokenVerification:

    async def test_valid_token_reaches_catalog(self, client, auth_headers):
        response = await client.get("/api/v1/products", headers=auth_headers)
        assert response.status_code == 200

    async def test_expired_token_rejected(self, client, user):
        token = create_access_token(user.id, expires_delta=timedelta(minutes=-1))
        response = await client.get("/api/v1/products", headers=bearer(token))
        assert response.status_code == 401
        assert response.headers["www-authenticate"] == "Bearer"

    async def test_non_access_token_rejected(self, client, user):
        token = create_access_token(user.id, additional_claims={"type": "refresh"})
        response = await client.get("/api/v1/products", headers=bearer(token))
        assert response.status_code == 401
        assert response.json()["error"] == "Access token required"

    async def test_subject_must_be_uuid(self, client):
        response = await client.get("/api/v1/products", headers=bearer(create_access_token("seller-42")))
        assert response.status_code == 401

    async def test_unknown_account_rejected(self, client):
        response = await client.get("/api/v1/products", headers=bearer(create_access_token(uuid.uuid4())))
        assert response.status_code == 401
        assert response.json()["error"] == "Unknown account"


class TestAccountState:

    async def test_disabled_account_forbidden(self, client, test_db, user, auth_headers):
        user.is_active = False
        await test_db.commit()

        response = await client.get("/api/v1/products", headers=auth_headers)
        assert response.status_code == 403

    async def test_admin_scope_flag(self, admin_user):
        scope = await get_owner_scope(admin_user)
        assert scope.is_admin
        assert scope.user_id == admin_user.id
