"""
MEDS Backend — Auth Routes
============================

What:  Password login and token refresh for the `users` collection.

    POST /api/collections/users/auth-with-password   {identity, password} → {token, record}
    POST /api/collections/users/auth-refresh         Bearer token         → {token, record}

The login path is rate limited per client IP (middleware/rate_limit.py).
Both routes are declared before the generic records router so their paths
are not taken as record IDs.
"""

import logging

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from meds.database import get_db_session
from meds.models.user import User
from meds.schemas.common import ErrorResponse
from meds.schemas.user import AuthResponse, AuthWithPasswordRequest
from meds.services.auth_service import authenticate, create_access_token, require_user
from meds.services.serialization import serialize_record

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/collections/users", tags=["Auth"])


@router.post(
    "/auth-with-password",
    response_model=AuthResponse,
    responses={
        400: {"description": "Wrong identity or password", "model": ErrorResponse},
        429: {"description": "Too many login attempts", "model": ErrorResponse},
    },
    summary="Sign in with email/username and password",
)
async def auth_with_password(
    body: AuthWithPasswordRequest,
    db: AsyncSession = Depends(get_db_session),
) -> AuthResponse:
    user = await authenticate(db, body.identity, body.password)
    return AuthResponse(token=create_access_token(user), record=serialize_record(user, user))


@router.post(
    "/auth-refresh",
    response_model=AuthResponse,
    responses={401: {"description": "Missing or invalid token", "model": ErrorResponse}},
    summary="Issue a fresh token for the signed-in user",
)
async def auth_refresh(user: User = Depends(require_user)) -> AuthResponse:
    return AuthResponse(token=create_access_token(user), record=serialize_record(user, user))
