"""
MEDS Backend — Clinic Settings Routes
=======================================

    GET   /api/settings/current   the clinic settings record (404 before seeding)
    PATCH /api/settings/current   merge keys into unit_display / display_preferences (admin)
"""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from meds.access import enforce, rules_for
from meds.database import get_db_session
from meds.models.user import User
from meds.schemas.common import ErrorResponse
from meds.schemas.user import SettingsPatch
from meds.services.auth_service import get_current_user
from meds.services.serialization import serialize_record
from meds.services.settings_service import settings_service

router = APIRouter(prefix="/api/settings", tags=["Settings"])


@router.get(
    "/current",
    responses={404: {"description": "No settings record yet", "model": ErrorResponse}},
    summary="Current clinic settings",
)
async def get_current_settings(
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Dict[str, Any]:
    enforce(rules_for("settings").view, user, action="view settings")
    setting = await settings_service.get_current(db)
    return serialize_record(setting, user)


@router.patch(
    "/current",
    responses={
        403: {"description": "Admins only", "model": ErrorResponse},
        404: {"description": "No settings record yet", "model": ErrorResponse},
    },
    summary="Merge changes into the clinic settings",
)
async def patch_current_settings(
    body: SettingsPatch,
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Dict[str, Any]:
    setting = await settings_service.update_current(db, user, body)
    return serialize_record(setting, user)
