"""
MEDS Backend — Collection Records Routes
==========================================

What:  CRUD over every registered collection.

    GET    /api/collections/{collection}/records          list (paged, sorted, filtered)
    GET    /api/collections/{collection}/records/{id}     view
    POST   /api/collections/{collection}/records          create
    PATCH  /api/collections/{collection}/records/{id}     partial update
    DELETE /api/collections/{collection}/records/{id}     delete (204)

Routes stay thin: they pull query parameters and the JSON body off the
request and hand everything to RecordService, which owns rules, validation
and hooks.

Examples:
    GET /api/collections/queue/records?status=checked_in&sort=line_number&expand=patient
    GET /api/collections/inventory/records?drug_category=Allergy&perPage=100
"""

import logging
from typing import Any, Dict, Optional

from fastapi import APIRouter, Body, Depends, Query, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from meds.database import get_db_session
from meds.models.user import User
from meds.schemas.common import ErrorResponse, RecordListResponse
from meds.services.auth_service import get_current_user
from meds.services.record_service import record_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/collections", tags=["Records"])

# Query parameters with a meaning of their own; every other one is a filter
RESERVED_PARAMS = {"page", "perPage", "sort", "expand"}

ERROR_RESPONSES = {
    400: {"description": "Invalid payload, filter or relation", "model": ErrorResponse},
    401: {"description": "Sign-in required", "model": ErrorResponse},
    403: {"description": "Rule denies this user", "model": ErrorResponse},
    404: {"description": "Unknown collection or record", "model": ErrorResponse},
}


@router.get(
    "/{collection}/records",
    response_model=RecordListResponse,
    response_model_by_alias=True,
    responses=ERROR_RESPONSES,
    summary="List records of a collection",
)
async def list_records(
    collection: str,
    request: Request,
    page: int = Query(default=1, ge=1),
    per_page: Optional[int] = Query(default=None, alias="perPage", ge=1),
    sort: Optional[str] = Query(default=None, description="e.g. -created,last_name"),
    expand: Optional[str] = Query(default=None, description="e.g. patient,diagnosis"),
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Dict[str, Any]:
    filters = {
        key: value
        for key, value in request.query_params.items()
        if key not in RESERVED_PARAMS
    }
    return await record_service.list_records(
        db, user, collection,
        page=page, per_page=per_page, sort=sort, expand=expand, filters=filters,
    )


@router.get(
    "/{collection}/records/{record_id}",
    responses=ERROR_RESPONSES,
    summary="View one record",
)
async def get_record(
    collection: str,
    record_id: str,
    expand: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Dict[str, Any]:
    return await record_service.get_record(db, user, collection, record_id, expand=expand)


@router.post(
    "/{collection}/records",
    status_code=200,
    responses={**ERROR_RESPONSES, 409: {"description": "Unique value taken", "model": ErrorResponse}},
    summary="Create a record",
)
async def create_record(
    collection: str,
    payload: Dict[str, Any] = Body(...),
    expand: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Dict[str, Any]:
    return await record_service.create_record(db, user, collection, payload, expand=expand)


@router.patch(
    "/{collection}/records/{record_id}",
    responses={**ERROR_RESPONSES, 409: {"description": "Conflicting change", "model": ErrorResponse}},
    summary="Update fields of a record",
)
async def update_record(
    collection: str,
    record_id: str,
    payload: Dict[str, Any] = Body(...),
    expand: Optional[str] = Query(default=None),
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Dict[str, Any]:
    return await record_service.update_record(
        db, user, collection, record_id, payload, expand=expand
    )


@router.delete(
    "/{collection}/records/{record_id}",
    status_code=204,
    responses={**ERROR_RESPONSES, 409: {"description": "Record still referenced", "model": ErrorResponse}},
    summary="Delete a record",
)
async def delete_record(
    collection: str,
    record_id: str,
    db: AsyncSession = Depends(get_db_session),
    user: Optional[User] = Depends(get_current_user),
) -> Response:
    await record_service.delete_record(db, user, collection, record_id)
    return Response(status_code=204)
