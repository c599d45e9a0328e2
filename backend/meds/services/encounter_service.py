"""
MEDS Backend — Encounter Edit Lock
====================================

What:  Soft lock that stops two staff members editing the same encounter.
How:   `encounters.active_editor` names the user holding the lock and
       `last_edit_activity` is refreshed on every claim and every save.
       A lock is "fresh" while its activity is newer than
       `settings.active_editor_timeout_minutes`; stale locks may be taken
       over by anyone and are cleared in bulk by `release_stale_editors()`
       (run from the CLI or a cron job).
Who:   /api/encounters/{id}/claim and /release, the `encounters` record hooks.

    claim     free or stale lock, or own lock  → take / refresh it
              fresh lock held by someone else  → 409
    release   holder, admin or superuser       → clear
              anyone else                      → 403
    save      fresh lock held by someone else  → 409
"""

import logging
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from meds.access import enforce, rules_for
from meds.config import settings
from meds.exceptions import ConflictError, NotFoundError, PermissionDeniedError
from meds.models.base import utcnow
from meds.models.encounter import Encounter
from meds.models.user import User
from meds.services.hooks import RecordHooks
from meds.services.serialization import as_utc

logger = logging.getLogger(__name__)


def lock_timeout() -> timedelta:
    return timedelta(minutes=settings.active_editor_timeout_minutes)


def held_by_other(encounter: Encounter, user: Optional[User], now: datetime) -> bool:
    """True when a fresh lock on `encounter` belongs to someone other than `user`."""
    if encounter.active_editor is None:
        return False
    if user is not None and encounter.active_editor == user.id:
        return False
    last_activity = as_utc(encounter.last_edit_activity)
    return last_activity is not None and now - last_activity < lock_timeout()


def _conflict(encounter: Encounter) -> ConflictError:
    return ConflictError(
        message="This encounter is being edited by another user.",
        context={"encounter": encounter.id, "active_editor": encounter.active_editor},
    )


class EncounterHooks(RecordHooks):
    async def before_update(
        self,
        db: AsyncSession,
        user: Optional[User],
        record: Encounter,
        changes: Dict[str, Any],
    ) -> None:
        now = utcnow()
        if held_by_other(record, user, now):
            raise _conflict(record)
        if user is not None and record.active_editor == user.id:
            changes["last_edit_activity"] = now


encounter_hooks = EncounterHooks()


class EncounterService:
    async def _get_encounter(self, db: AsyncSession, encounter_id: str) -> Encounter:
        encounter = await db.get(Encounter, encounter_id)
        if encounter is None:
            raise NotFoundError(resource="encounters", resource_id=encounter_id)
        return encounter

    async def claim(self, db: AsyncSession, user: Optional[User], encounter_id: str) -> Encounter:
        """
        Raises:
            NotFoundError: Unknown encounter (→ 404)
            ConflictError: Someone else holds a fresh lock (→ 409)
        """
        encounter = await self._get_encounter(db, encounter_id)
        enforce(rules_for("encounters").update, user, encounter, action="claim encounter")

        now = utcnow()
        if held_by_other(encounter, user, now):
            raise _conflict(encounter)

        if encounter.active_editor not in (None, user.id):
            logger.info(
                "Taking over stale lock on encounter %s from %s",
                encounter.id, encounter.active_editor,
            )
        encounter.active_editor = user.id
        encounter.last_edit_activity = now
        await db.flush()
        return encounter

    async def release(self, db: AsyncSession, user: Optional[User], encounter_id: str) -> Encounter:
        """
        Raises:
            NotFoundError: Unknown encounter (→ 404)
            PermissionDeniedError: Caller neither holds the lock nor is an admin (→ 403)
        """
        encounter = await self._get_encounter(db, encounter_id)
        enforce(rules_for("encounters").update, user, encounter, action="release encounter")

        if encounter.active_editor is None:
            return encounter
        is_holder = encounter.active_editor == user.id
        if not (is_holder or user.is_superuser or user.role == "admin"):
            raise PermissionDeniedError(
                message="Only the active editor or an admin can release this encounter.",
                context={"encounter": encounter.id},
            )

        encounter.active_editor = None
        encounter.last_edit_activity = utcnow()
        await db.flush()
        logger.info("Encounter %s released by %s", encounter.id, user.id)
        return encounter

    async def release_stale_editors(
        self, db: AsyncSession, now: Optional[datetime] = None
    ) -> int:
        """Clear every lock whose last activity is older than the timeout. Returns the count."""
        cutoff = (now or utcnow()) - lock_timeout()
        result = await db.execute(
            update(Encounter)
            .where(
                Encounter.active_editor.is_not(None),
                (Encounter.last_edit_activity.is_(None)) | (Encounter.last_edit_activity < cutoff),
            )
            .values(active_editor=None)
            .execution_options(synchronize_session=False)
        )
        released = result.rowcount or 0
        if released:
            logger.info("Released %d stale encounter lock(s)", released)
        return released


# ── Singleton Instance ────────────────────────────────────────────────────
encounter_service = EncounterService()
