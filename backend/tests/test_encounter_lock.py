"""
MEDS Backend — Encounter Edit Lock Tests
==========================================

What we test:
    ✅ claim takes a free lock and refreshes an own lock
    ✅ a fresh lock held by someone else blocks claim and save (409)
    ✅ a stale lock can be taken over
    ✅ release: holder or admin only
    ✅ release_stale_editors() clears only expired locks
"""

from datetime import timedelta

import pytest
import pytest_asyncio

from meds.models import Encounter, User
from meds.models.base import utcnow
from meds.services.encounter_service import encounter_service, held_by_other

ENCOUNTERS = "/api/encounters"


@pytest_asyncio.fixture
async def encounter(session_factory, patient) -> Encounter:
    async with session_factory() as session:
        record = Encounter(patient=patient.id)
        session.add(record)
        await session.commit()
    return record


async def _set_lock(session_factory, encounter_id, editor_id, age: timedelta):
    async with session_factory() as session:
        record = await session.get(Encounter, encounter_id)
        record.active_editor = editor_id
        record.last_edit_activity = utcnow() - age
        await session.commit()


class TestClaim:
    @pytest.mark.asyncio
    async def test_claim_free_encounter(self, client, headers, users, encounter):
        response = await client.post(f"{ENCOUNTERS}/{encounter.id}/claim", headers=headers["provider"])

        assert response.status_code == 200
        body = response.json()
        assert body["id"] == encounter.id
        assert body["active_editor"] == users["provider"].id
        assert body["last_edit_activity"] is not None

    @pytest.mark.asyncio
    async def test_fresh_lock_blocks_others(self, client, headers, users, encounter):
        await client.post(f"{ENCOUNTERS}/{encounter.id}/claim", headers=headers["provider"])

        response = await client.post(f"{ENCOUNTERS}/{encounter.id}/claim", headers=headers["provider2"])
        assert response.status_code == 409
        assert response.json()["details"]["active_editor"] == users["provider"].id

        response = await client.patch(
            f"/api/collections/encounters/records/{encounter.id}",
            json={"heart_rate": 80},
            headers=headers["provider2"],
        )
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_holder_can_save(self, client, headers, encounter):
        await client.post(f"{ENCOUNTERS}/{encounter.id}/claim", headers=headers["provider"])

        response = await client.patch(
            f"/api/collections/encounters/records/{encounter.id}",
            json={"heart_rate": 80},
            headers=headers["provider"],
        )

        assert response.status_code == 200
        assert response.json()["heart_rate"] == 80

    @pytest.mark.asyncio
    async def test_stale_lock_is_taken_over(self, client, headers, users, encounter, session_factory):
        await _set_lock(session_factory, encounter.id, users["provider"].id, timedelta(hours=1))

        response = await client.post(f"{ENCOUNTERS}/{encounter.id}/claim", headers=headers["provider2"])

        assert response.status_code == 200
        assert response.json()["active_editor"] == users["provider2"].id

    @pytest.mark.asyncio
    async def test_unknown_encounter(self, client, headers):
        response = await client.post(f"{ENCOUNTERS}/doesnotexist123/claim", headers=headers["provider"])
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_anonymous_claim(self, client, encounter):
        response = await client.post(f"{ENCOUNTERS}/{encounter.id}/claim")
        assert response.status_code == 401


class TestRelease:
    @pytest.mark.asyncio
    async def test_only_holder_or_admin(self, client, headers, encounter):
        await client.post(f"{ENCOUNTERS}/{encounter.id}/claim", headers=headers["provider"])

        response = await client.post(f"{ENCOUNTERS}/{encounter.id}/release", headers=headers["pharmacy"])
        assert response.status_code == 403

        response = await client.post(f"{ENCOUNTERS}/{encounter.id}/release", headers=headers["admin"])
        assert response.status_code == 200
        assert response.json()["active_editor"] is None

    @pytest.mark.asyncio
    async def test_holder_releases(self, client, headers, encounter):
        await client.post(f"{ENCOUNTERS}/{encounter.id}/claim", headers=headers["provider"])

        response = await client.post(f"{ENCOUNTERS}/{encounter.id}/release", headers=headers["provider"])
        assert response.json()["active_editor"] is None

        response = await client.post(f"{ENCOUNTERS}/{encounter.id}/claim", headers=headers["provider2"])
        assert response.status_code == 200


class TestStaleEditors:
    @pytest.mark.asyncio
    async def test_release_stale_editors(self, db_session, users, patient):
        fresh = Encounter(
            patient=patient.id,
            active_editor=users["provider"].id,
            last_edit_activity=utcnow() - timedelta(minutes=1),
        )
        stale = Encounter(
            patient=patient.id,
            active_editor=users["provider2"].id,
            last_edit_activity=utcnow() - timedelta(hours=2),
        )
        db_session.add_all([fresh, stale])
        await db_session.commit()

        released = await encounter_service.release_stale_editors(db_session)
        await db_session.commit()

        assert released == 1
        await db_session.refresh(fresh)
        await db_session.refresh(stale)
        assert fresh.active_editor == users["provider"].id
        assert stale.active_editor is None

    def test_held_by_other(self):
        now = utcnow()
        holder = User(id="a" * 15, role="provider")
        other = User(id="b" * 15, role="provider")
        record = Encounter(active_editor=holder.id, last_edit_activity=now)

        assert held_by_other(record, other, now)
        assert held_by_other(record, None, now)
        assert not held_by_other(record, holder, now)
        assert not held_by_other(record, other, now + timedelta(hours=1))
