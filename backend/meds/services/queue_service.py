"""
MEDS Backend — Visit Queue Service
====================================

What:  Patient check-in, status transitions and today's queue board.
How:   Inserts rely on the database trigger for `line_number` (see
       models/queue.py); after the INSERT is flushed the column is refreshed
       so the caller sees the number the trigger assigned.
Who:   /api/queue routes and the `queue` record hooks.

Status flow (front desk → care team → pharmacy → checkout):

    checked_in ─▶ with_care_team ─▶ ready_pharmacy ─▶ with_pharmacy ─▶ at_checkout ─▶ completed
         │                                                                               ▲
         └───────────────────────── any status may move to any other ──────────────────┘
                                       except out of `completed`

    entering with_care_team   stamps start_time (first time only) and
                              assigns the caller unless someone was named
    entering completed        stamps end_time
"""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meds.access import enforce, rules_for
from meds.exceptions import ConflictError, NotFoundError, ValidationError
from meds.models.base import utcnow
from meds.models.encounter import Encounter
from meds.models.patient import Patient
from meds.models.queue import QueueEntry
from meds.models.user import User
from meds.schemas.queue import CheckInRequest, StatusChangeRequest
from meds.services.hooks import RecordHooks
from meds.services.serialization import serialize_record

logger = logging.getLogger(__name__)

TERMINAL_STATUS = "completed"


def utc_day_bounds(day: datetime) -> tuple:
    """[start, end) of the UTC calendar day containing `day`."""
    day = day.astimezone(timezone.utc) if day.tzinfo else day.replace(tzinfo=timezone.utc)
    start = day.replace(hour=0, minute=0, second=0, microsecond=0)
    return start, start + timedelta(days=1)


def apply_status_change(
    entry: QueueEntry,
    new_status: str,
    user: Optional[User],
    assigned_to: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Column changes implied by moving `entry` to `new_status`.

    Raises:
        ConflictError: `entry` is already completed (→ 409)
    """
    if entry.status == TERMINAL_STATUS and new_status != TERMINAL_STATUS:
        raise ConflictError(
            message="This visit is already completed.",
            context={"queue_id": entry.id, "status": entry.status},
        )

    changes: Dict[str, Any] = {"status": new_status}
    now = utcnow()
    if new_status == "with_care_team":
        if entry.start_time is None:
            changes["start_time"] = now
        if assigned_to is not None:
            changes["assigned_to"] = assigned_to
        elif entry.assigned_to is None and user is not None:
            changes["assigned_to"] = user.id
    elif assigned_to is not None:
        changes["assigned_to"] = assigned_to
    if new_status == TERMINAL_STATUS and entry.end_time is None:
        changes["end_time"] = now
    return changes


class QueueHooks(RecordHooks):
    """Same stamping rules for writes through the generic collection API."""

    async def before_create(
        self, db: AsyncSession, user: Optional[User], data: Dict[str, Any]
    ) -> None:
        data["check_in_time"] = data.get("check_in_time") or utcnow()

    async def before_update(
        self, db: AsyncSession, user: Optional[User], record: QueueEntry, changes: Dict[str, Any]
    ) -> None:
        new_status = changes.get("status")
        if new_status is None or new_status == record.status:
            return
        implied = apply_status_change(record, new_status, user, changes.get("assigned_to"))
        for key, value in implied.items():
            changes.setdefault(key, value)


queue_hooks = QueueHooks()


class QueueService:
    async def _get_entry(self, db: AsyncSession, queue_id: str) -> QueueEntry:
        entry = await db.get(QueueEntry, queue_id)
        if entry is None:
            raise NotFoundError(resource="queue", resource_id=queue_id)
        return entry

    async def check_in(
        self, db: AsyncSession, user: Optional[User], request: CheckInRequest
    ) -> QueueEntry:
        """
        Put a patient in today's queue.

        Raises:
            ValidationError: Patient does not exist (→ 400)
        """
        enforce(rules_for("queue").create, user, action="check in patient")

        if await db.get(Patient, request.patient) is None:
            raise ValidationError(
                message=f"patients with ID '{request.patient}' was not found",
                field="patient",
            )

        now = utcnow()
        entry = QueueEntry(
            patient=request.patient,
            status="checked_in",
            check_in_time=now,
            priority=request.priority,
            intended_provider=request.intended_provider,
            line_number=request.line_number,
        )
        db.add(entry)
        await db.flush()
        # Assigned by the database trigger during the INSERT
        await db.refresh(entry, ["line_number"])

        logger.info(
            "Patient %s checked in as #%s (queue entry %s)",
            entry.patient, entry.line_number, entry.id,
        )
        return entry

    async def change_status(
        self,
        db: AsyncSession,
        user: Optional[User],
        queue_id: str,
        request: StatusChangeRequest,
    ) -> QueueEntry:
        """
        Raises:
            NotFoundError: Unknown queue entry (→ 404)
            ConflictError: Entry is already completed (→ 409)
            ValidationError: assigned_to user or encounter does not exist (→ 400)
        """
        enforce(rules_for("queue").update, user, action="change queue status")
        entry = await self._get_entry(db, queue_id)

        for field, model, value in (
            ("assigned_to", User, request.assigned_to),
            ("encounter", Encounter, request.encounter),
        ):
            if value is not None and await db.get(model, value) is None:
                raise ValidationError(
                    message=f"{model.__tablename__} with ID '{value}' was not found",
                    field=field,
                )

        previous = entry.status
        changes = apply_status_change(entry, request.status, user, request.assigned_to)
        if request.encounter is not None:
            changes["encounter"] = request.encounter
        for key, value in changes.items():
            setattr(entry, key, value)
        await db.flush()
        await db.refresh(entry)

        logger.info("Queue entry %s: %s → %s", entry.id, previous, entry.status)
        return entry

    async def today(
        self,
        db: AsyncSession,
        user: Optional[User],
        status: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        Today's (UTC) entries in line order, each with its patient expanded
        under `expand.patient`.
        """
        enforce(rules_for("queue").list, user, action="list queue")

        start, end = utc_day_bounds(now or utcnow())
        query = (
            select(QueueEntry, Patient)
            .join(Patient, Patient.id == QueueEntry.patient)
            .where(QueueEntry.created >= start, QueueEntry.created < end)
            .order_by(QueueEntry.line_number, QueueEntry.created)
        )
        if status:
            query = query.where(QueueEntry.status == status)

        result = await db.execute(query)
        items = []
        for entry, patient in result.all():
            item = serialize_record(entry, user)
            item["expand"] = {"patient": serialize_record(patient, user)}
            items.append(item)
        return items


# ── Singleton Instance ────────────────────────────────────────────────────
queue_service = QueueService()
