"""
MEDS Backend — Authentication and User Record Tests
=====================================================

What we test:
    ✅ Password login by email or username; token + record returned
    ✅ Wrong password and unknown identity fail the same way
    ✅ Token refresh, and 401 without a token
    ✅ User creation hashes the password; the hash is never serialized
    ✅ Non-admins cannot change their own role
    ✅ Password change needs the old password and revokes older tokens
    ✅ Email hidden from other non-admin users when not visible
    ✅ Login rate limit → 429 with Retry-After
"""

import pytest

from meds.config import settings
from meds.models import User
from meds.services.auth_service import create_access_token, decode_access_token

LOGIN = "/api/collections/users/auth-with-password"
REFRESH = "/api/collections/users/auth-refresh"
USERS = "/api/collections/users/records"


class TestLogin:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("identity", ["provider@example.com", "PROVIDER@example.com", "provider"])
    async def test_login_success(self, client, users, identity):
        response = await client.post(LOGIN, json={"identity": identity, "password": "password123"})

        assert response.status_code == 200
        body = response.json()
        assert body["record"]["id"] == users["provider"].id
        assert "password_hash" not in body["record"]
        assert decode_access_token(body["token"])["sub"] == users["provider"].id

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        "identity,password",
        [("provider@example.com", "wrong-password"), ("nobody@example.com", "password123")],
    )
    async def test_login_failure_is_uniform(self, client, users, identity, password):
        response = await client.post(LOGIN, json={"identity": identity, "password": password})

        assert response.status_code == 400
        assert response.json()["message"] == "Failed to authenticate."

    @pytest.mark.asyncio
    async def test_refresh(self, client, headers, users):
        response = await client.post(REFRESH, headers=headers["pharmacy"])

        assert response.status_code == 200
        assert response.json()["record"]["role"] == "pharmacy"

    @pytest.mark.asyncio
    async def test_refresh_requires_token(self, client):
        response = await client.post(REFRESH)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_rate_limit(self, client, users, monkeypatch):
        monkeypatch.setattr(settings, "login_rate_limit_requests", 2)
        payload = {"identity": "provider", "password": "wrong-password"}

        for _ in range(2):
            response = await client.post(LOGIN, json=payload)
            assert response.status_code == 400

        response = await client.post(LOGIN, json=payload)
        assert response.status_code == 429
        assert int(response.headers["Retry-After"]) >= 1
        assert response.json()["error"] == "rate_limit_exceeded"

        # Other endpoints are not limited
        response = await client.get("/health")
        assert response.status_code == 200


class TestUserRecords:
    @pytest.mark.asyncio
    async def test_admin_creates_user(self, client, headers):
        response = await client.post(
            USERS,
            json={
                "email": "nurse@example.com",
                "password": "s3cret-pass",
                "passwordConfirm": "s3cret-pass",
                "role": "provider",
            },
            headers=headers["admin"],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["username"] == "nurse"
        assert "password_hash" not in body
        assert "password" not in body

        response = await client.post(LOGIN, json={"identity": "nurse", "password": "s3cret-pass"})
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_password_confirmation_mismatch(self, client, headers):
        response = await client.post(
            USERS,
            json={"email": "x@example.com", "password": "s3cret-pass", "passwordConfirm": "other-pass"},
            headers=headers["admin"],
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_provider_cannot_create_users(self, client, headers):
        response = await client.post(
            USERS, json={"email": "x@example.com", "password": "s3cret-pass"}, headers=headers["provider"]
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_self_promotion_is_forbidden(self, client, headers, users):
        response = await client.patch(
            f"{USERS}/{users['provider'].id}", json={"role": "admin"}, headers=headers["provider"]
        )

        assert response.status_code == 403
        assert response.json()["details"]["field"] == "role"

    @pytest.mark.asyncio
    async def test_self_update_of_name(self, client, headers, users):
        response = await client.patch(
            f"{USERS}/{users['provider'].id}", json={"name": "Dr. P"}, headers=headers["provider"]
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Dr. P"

    @pytest.mark.asyncio
    async def test_password_change_requires_old_password(self, client, headers, users):
        url = f"{USERS}/{users['provider'].id}"

        response = await client.patch(url, json={"password": "brand-new-pass"}, headers=headers["provider"])
        assert response.status_code == 400
        assert response.json()["details"]["field"] == "oldPassword"

        old_token = create_access_token(users["provider"])
        response = await client.patch(
            url,
            json={"password": "brand-new-pass", "oldPassword": "password123"},
            headers=headers["provider"],
        )
        assert response.status_code == 200

        # Tokens issued before the change no longer resolve to the user
        response = await client.post(REFRESH, headers={"Authorization": f"Bearer {old_token}"})
        assert response.status_code == 401

        response = await client.post(
            LOGIN, json={"identity": "provider", "password": "brand-new-pass"}
        )
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_hidden_email(self, client, headers, users, session_factory):
        async with session_factory() as session:
            record = await session.get(User, users["pharmacy"].id)
            record.email_visibility = False
            await session.commit()
        url = f"{USERS}/{users['pharmacy'].id}"

        response = await client.get(url, headers=headers["provider"])
        assert "email" not in response.json()

        response = await client.get(url, headers=headers["admin"])
        assert response.json()["email"] == "pharmacy@example.com"

        response = await client.get(url, headers=headers["pharmacy"])
        assert response.json()["email"] == "pharmacy@example.com"

    @pytest.mark.asyncio
    async def test_cannot_filter_by_password_hash(self, client, headers):
        response = await client.get(USERS, params={"password_hash": "x"}, headers=headers["admin"])
        assert response.status_code == 400
