"""
MEDS Backend — Visit Queue Tests
==================================

What:  Line-number assignment by the database trigger and the check-in /
       status workflow endpoints.

What we test:
    ✅ Entries of one day are numbered 1..N in insert order
    ✅ Numbering restarts on a new UTC day
    ✅ An explicit line number is kept; the next automatic one follows it
    ✅ Generic collection creates are numbered too
    ✅ Status transitions stamp start/end times and the care team member
    ✅ Completed visits cannot be reopened (409)
    ✅ Unknown encounter / assignee on a status change → 400
    ✅ A stored line number cannot be cleared through PATCH
    ✅ Today's board: line order, patient expanded, status filter
"""

from datetime import datetime, timedelta, timezone

import pytest

from meds.models import Patient, QueueEntry
from meds.models.base import utcnow
from meds.services.queue_service import utc_day_bounds

CHECK_IN = "/api/queue/check-in"


async def _check_in(client, headers, patient_id, **fields):
    response = await client.post(CHECK_IN, json={"patient": patient_id, **fields}, headers=headers)
    assert response.status_code == 201, response.text
    return response.json()


class TestLineNumbers:
    @pytest.mark.asyncio
    async def test_sequential_numbers(self, client, headers, patient):
        numbers = [
            (await _check_in(client, headers["provider"], patient.id))["line_number"]
            for _ in range(3)
        ]
        assert numbers == [1, 2, 3]

    @pytest.mark.asyncio
    async def test_explicit_number_is_kept(self, client, headers, patient):
        await _check_in(client, headers["provider"], patient.id)

        explicit = await _check_in(client, headers["provider"], patient.id, line_number=10)
        following = await _check_in(client, headers["provider"], patient.id)

        assert explicit["line_number"] == 10
        assert following["line_number"] == 11

    @pytest.mark.asyncio
    async def test_generic_create_is_numbered(self, client, headers, patient):
        await _check_in(client, headers["provider"], patient.id)

        response = await client.post(
            "/api/collections/queue/records",
            json={"patient": patient.id, "priority": 1},
            headers=headers["provider"],
        )

        assert response.status_code == 200
        assert response.json()["line_number"] == 2
        assert response.json()["check_in_time"] is not None

    @pytest.mark.asyncio
    async def test_numbering_restarts_each_day(self, db_session, patient):
        yesterday = utc_day_bounds(utcnow())[0] - timedelta(hours=12)
        for offset in range(2):
            created = yesterday + timedelta(seconds=offset)
            entry = QueueEntry(patient=patient.id, check_in_time=created, created=created)
            db_session.add(entry)
            # One INSERT per flush so each sees the previous row
            await db_session.flush()

        today = QueueEntry(patient=patient.id, check_in_time=utcnow())
        db_session.add(today)
        await db_session.flush()
        await db_session.commit()

        result = await db_session.execute(
            QueueEntry.__table__.select().order_by(QueueEntry.created)
        )
        assert [row.line_number for row in result] == [1, 2, 1]

    @pytest.mark.asyncio
    async def test_unknown_patient(self, client, headers):
        response = await client.post(
            CHECK_IN, json={"patient": "doesnotexist123"}, headers=headers["provider"]
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "patient"

    @pytest.mark.asyncio
    async def test_anonymous_check_in(self, client, patient):
        response = await client.post(CHECK_IN, json={"patient": patient.id})
        assert response.status_code == 401


class TestStatusFlow:
    @pytest.mark.asyncio
    async def test_with_care_team_stamps_start_and_assignee(self, client, headers, users, patient):
        entry = await _check_in(client, headers["provider"], patient.id)

        response = await client.post(
            f"/api/queue/{entry['id']}/status",
            json={"status": "with_care_team"},
            headers=headers["provider2"],
        )

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "with_care_team"
        assert body["start_time"] is not None
        assert body["assigned_to"] == users["provider2"].id

    @pytest.mark.asyncio
    async def test_completed_is_terminal(self, client, headers, patient):
        entry = await _check_in(client, headers["provider"], patient.id)
        url = f"/api/queue/{entry['id']}/status"

        response = await client.post(url, json={"status": "completed"}, headers=headers["pharmacy"])
        assert response.json()["end_time"] is not None

        response = await client.post(url, json={"status": "checked_in"}, headers=headers["pharmacy"])
        assert response.status_code == 409

    @pytest.mark.asyncio
    async def test_generic_update_applies_same_rules(self, client, headers, users, patient):
        entry = await _check_in(client, headers["provider"], patient.id)

        response = await client.patch(
            f"/api/collections/queue/records/{entry['id']}",
            json={"status": "with_care_team"},
            headers=headers["provider"],
        )

        assert response.status_code == 200
        assert response.json()["start_time"] is not None
        assert response.json()["assigned_to"] == users["provider"].id

    @pytest.mark.asyncio
    async def test_unknown_entry(self, client, headers):
        response = await client.post(
            "/api/queue/doesnotexist123/status", json={"status": "completed"}, headers=headers["provider"]
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_anonymous_status_change(self, client):
        response = await client.post(
            "/api/queue/doesnotexist123/status", json={"status": "completed"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_invalid_status(self, client, headers, patient):
        entry = await _check_in(client, headers["provider"], patient.id)

        response = await client.post(
            f"/api/queue/{entry['id']}/status", json={"status": "teleported"}, headers=headers["provider"]
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    @pytest.mark.parametrize("field", ["encounter", "assigned_to"])
    async def test_unknown_relation_on_status_change(self, client, headers, patient, field):
        entry = await _check_in(client, headers["provider"], patient.id)

        response = await client.post(
            f"/api/queue/{entry['id']}/status",
            json={"status": "with_care_team", field: "doesnotexist123"},
            headers=headers["provider"],
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == field

    @pytest.mark.asyncio
    async def test_line_number_cannot_be_cleared(self, client, headers, patient):
        entry = await _check_in(client, headers["provider"], patient.id)
        url = f"/api/collections/queue/records/{entry['id']}"

        response = await client.patch(url, json={"line_number": None}, headers=headers["provider"])

        assert response.status_code == 400
        errors = response.json()["details"]["errors"]
        assert errors[0]["field"] == "line_number"
        response = await client.get(url, headers=headers["provider"])
        assert response.json()["line_number"] == entry["line_number"] == 1

    @pytest.mark.asyncio
    async def test_line_number_can_be_changed(self, client, headers, patient):
        entry = await _check_in(client, headers["provider"], patient.id)

        response = await client.patch(
            f"/api/collections/queue/records/{entry['id']}",
            json={"line_number": 7},
            headers=headers["provider"],
        )

        assert response.status_code == 200
        assert response.json()["line_number"] == 7
        assert response.status_code == 400


class TestTodayBoard:
    @pytest.mark.asyncio
    async def test_board_order_and_expand(self, client, headers, session_factory, patient):
        async with session_factory() as session:
            second = Patient(first_name="Jon", gender="male")
            session.add(second)
            await session.commit()

        first_entry = await _check_in(client, headers["provider"], patient.id)
        await _check_in(client, headers["provider"], second.id, priority=1)
        await client.post(
            f"/api/queue/{first_entry['id']}/status",
            json={"status": "ready_pharmacy"},
            headers=headers["provider"],
        )

        response = await client.get("/api/queue/today", headers=headers["pharmacy"])
        body = response.json()
        assert response.status_code == 200
        assert body["total"] == 2
        assert [i["line_number"] for i in body["items"]] == [1, 2]
        assert body["items"][0]["expand"]["patient"]["last_name"] == "Lopez"

        response = await client.get(
            "/api/queue/today", params={"status": "ready_pharmacy"}, headers=headers["pharmacy"]
        )
        assert [i["id"] for i in response.json()["items"]] == [first_entry["id"]]


class TestDayBounds:
    def test_bounds_are_utc_midnights(self):
        start, end = utc_day_bounds(datetime(2026, 3, 4, 23, 30, tzinfo=timezone(timedelta(hours=-5))))

        assert start == datetime(2026, 3, 5, tzinfo=timezone.utc)
        assert end - start == timedelta(days=1)
