"""
MEDS Backend — Visit Queue Routes
===================================

What:  Front-desk and care-team workflow on top of the `queue` collection.

    POST /api/queue/check-in       add a patient to today's line
    POST /api/queue/{id}/status    move a visit along (stamps start/end times)
    GET  /api/queue/today          today's board in line order, patients expanded
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from meds.database import get_db_session
from meds.models.base import utcnow
from meds.models.user import User
from meds.schemas.common import ErrorResponse
from meds.schemas.queue import CheckInRequest, QueueBoardResponse, QueueStatus, StatusChangeRequest
from meds.services.auth_service import get_current_user
from meds.services.queue_service import queue_service
from meds.services.serialization import serialize_record

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/queue", tags=["Queue"])


@router.post(
    "/check-in",
    status_code=201,
    responses={
        400: {"description": "Unknown patient", "model": ErrorResponse},
        401: {"description": "Sign-in required", "model": ErrorResponse},
    },
    summary="Check a patient in",
)
async def check_in(
    body: CheckInRequest,
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Dict[str, Any]:
    entry = await queue_service.check_in(db, user, body)
    return serialize_record(entry, user)


@router.post(
    "/{queue_id}/status",
    responses={
        404: {"description": "Unknown queue entry", "model": ErrorResponse},
        409: {"description": "Visit already completed", "model": ErrorResponse},
    },
    summary="Change the status of a visit",
)
async def change_status(
    queue_id: str,
    body: StatusChangeRequest,
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Dict[str, Any]:
    entry = await queue_service.change_status(db, user, queue_id, body)
    return serialize_record(entry, user)


@router.get(
    "/today",
    response_model=QueueBoardResponse,
    summary="Today's queue in line order",
)
async def today(
    status: Optional[QueueStatus] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> QueueBoardResponse:
    now = utcnow()
    items = await queue_service.today(db, user, status=status, now=now)
    return QueueBoardResponse(date=now.date().isoformat(), total=len(items), items=items)
