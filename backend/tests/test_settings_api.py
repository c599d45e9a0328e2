"""
MEDS Backend — Clinic Settings Tests
======================================

What we test:
    ✅ GET /api/settings/current → 404 before a record exists
    ✅ Creating settings fills in the default preferences and stamps the author
    ✅ PATCH merges keys instead of replacing the objects
    ✅ Only admins write settings
"""

import pytest

CURRENT = "/api/settings/current"


async def _create_settings(client, headers, **payload):
    response = await client.post("/api/collections/settings/records", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


class TestCurrentSettings:
    @pytest.mark.asyncio
    async def test_missing_settings(self, client, headers):
        response = await client.get(CURRENT, headers=headers["provider"])
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_anonymous_is_rejected_before_lookup(self, client):
        response = await client.get(CURRENT)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_create_fills_defaults(self, client, headers, users):
        created = await _create_settings(
            client, headers["admin"], unit_display={"temperature": "C"}
        )

        assert created["unit_display"] == {"height": "cm", "weight": "kg", "temperature": "C"}
        assert created["display_preferences"]["care_team_count"] == 6
        assert created["updated_by"] == users["admin"].id
        assert created["last_updated"] is not None

        response = await client.get(CURRENT, headers=headers["pharmacy"])
        assert response.json()["id"] == created["id"]

    @pytest.mark.asyncio
    async def test_provider_cannot_create(self, client, headers):
        response = await client.post(
            "/api/collections/settings/records", json={}, headers=headers["provider"]
        )
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_patch_merges(self, client, headers, users):
        await _create_settings(client, headers["superuser"])

        response = await client.patch(
            CURRENT,
            json={"display_preferences": {"care_team_count": 8, "show_gyn_team": True}},
            headers=headers["admin"],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["display_preferences"]["care_team_count"] == 8
        assert body["display_preferences"]["show_gyn_team"] is True
        assert body["display_preferences"]["unified_roles"] is False
        assert body["unit_display"]["weight"] == "kg"
        assert body["updated_by"] == users["admin"].id

    @pytest.mark.asyncio
    async def test_patch_is_admin_only(self, client, headers):
        await _create_settings(client, headers["admin"])

        response = await client.patch(
            CURRENT, json={"unit_display": {"weight": "lb"}}, headers=headers["pharmacy"]
        )

        assert response.status_code == 403
        response = await client.get(CURRENT, headers=headers["pharmacy"])
        assert response.json()["unit_display"]["weight"] == "kg"
