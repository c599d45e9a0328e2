"""
MEDS Backend — Encounter Lock Routes
======================================

What:  Claim and release the edit lock on an encounter.

    POST /api/encounters/{id}/claim     take (or refresh) the lock; 409 if held
    POST /api/encounters/{id}/release   drop the lock; holder or admin only

The frontend calls claim when an encounter form opens and every few minutes
while it stays open, and release when the form closes.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from meds.database import get_db_session
from meds.models.user import User
from meds.schemas.common import ErrorResponse
from meds.schemas.encounter import EditLockResponse
from meds.services.auth_service import get_current_user
from meds.services.encounter_service import encounter_service
from meds.services.serialization import as_utc

router = APIRouter(prefix="/api/encounters", tags=["Encounters"])


def _lock_response(encounter) -> EditLockResponse:
    return EditLockResponse(
        id=encounter.id,
        active_editor=encounter.active_editor,
        last_edit_activity=as_utc(encounter.last_edit_activity),
    )


@router.post(
    "/{encounter_id}/claim",
    response_model=EditLockResponse,
    responses={
        404: {"description": "Unknown encounter", "model": ErrorResponse},
        409: {"description": "Another user is editing", "model": ErrorResponse},
    },
    summary="Claim the edit lock",
)
async def claim(
    encounter_id: str,
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> EditLockResponse:
    return _lock_response(await encounter_service.claim(db, user, encounter_id))


@router.post(
    "/{encounter_id}/release",
    response_model=EditLockResponse,
    responses={
        403: {"description": "Caller does not hold the lock", "model": ErrorResponse},
        404: {"description": "Unknown encounter", "model": ErrorResponse},
    },
    summary="Release the edit lock",
)
async def release(
    encounter_id: str,
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> EditLockResponse:
    return _lock_response(await encounter_service.release(db, user, encounter_id))
