"""
MEDS Backend — Clinic Settings Service
========================================

What:  Reads and updates the single clinic settings record.
How:   The oldest `settings` row is "the" settings record. PATCH merges the
       posted keys into the stored JSON objects rather than replacing them,
       so a client that only knows about `care_team_count` cannot wipe the
       other preferences.
Who:   GET/PATCH /api/settings/current, and the settings record hooks used
       by the generic collection endpoints.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meds.access import enforce, rules_for
from meds.exceptions import NotFoundError
from meds.models.base import utcnow
from meds.models.user import Setting, User
from meds.schemas.user import SettingsPatch
from meds.seed_data import DEFAULT_DISPLAY_PREFERENCES, DEFAULT_UNIT_DISPLAY
from meds.services.hooks import RecordHooks

logger = logging.getLogger(__name__)


class SettingHooks(RecordHooks):
    """Stamp `last_updated` / `updated_by` on every write."""

    async def before_create(
        self, db: AsyncSession, user: Optional[User], data: Dict[str, Any]
    ) -> None:
        data["unit_display"] = {**DEFAULT_UNIT_DISPLAY, **(data.get("unit_display") or {})}
        data["display_preferences"] = {
            **DEFAULT_DISPLAY_PREFERENCES,
            **(data.get("display_preferences") or {}),
        }
        data["last_updated"] = data.get("last_updated") or utcnow()
        if data.get("updated_by") is None and user is not None:
            data["updated_by"] = user.id

    async def before_update(
        self, db: AsyncSession, user: Optional[User], record: Setting, changes: Dict[str, Any]
    ) -> None:
        changes["last_updated"] = utcnow()
        if user is not None:
            changes["updated_by"] = user.id


setting_hooks = SettingHooks()


class SettingsService:
    async def get_current(self, db: AsyncSession) -> Setting:
        """
        Raises:
            NotFoundError: No settings record exists yet (→ 404)
        """
        result = await db.execute(select(Setting).order_by(Setting.created).limit(1))
        setting = result.scalars().first()
        if setting is None:
            raise NotFoundError(resource="settings")
        return setting

    async def update_current(
        self, db: AsyncSession, user: Optional[User], patch: SettingsPatch
    ) -> Setting:
        setting = await self.get_current(db)
        enforce(rules_for("settings").update, user, setting, action="update settings")

        # New dict objects so SQLAlchemy sees the JSON columns as changed
        setting.unit_display = {**(setting.unit_display or {}), **patch.unit_display}
        setting.display_preferences = {
            **(setting.display_preferences or {}),
            **patch.display_preferences,
        }
        setting.last_updated = utcnow()
        setting.updated_by = user.id if user is not None else None
        await db.flush()
        await db.refresh(setting)

        logger.info(
            "Settings updated by %s: %s",
            user.id if user is not None else "anonymous",
            sorted(list(patch.unit_display) + list(patch.display_preferences)),
        )
        return setting


# ── Singleton Instance ────────────────────────────────────────────────────
settings_service = SettingsService()
