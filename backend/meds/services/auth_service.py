"""
MEDS Backend — Authentication Service
=======================================

What:  Password hashing, bearer token issue/verification, password login and
       the FastAPI dependencies that resolve the calling user.
How:   passlib `CryptContext` (pbkdf2_sha256) for hashes, python-jose for
       HS256 JWTs whose `sub` is the user's record ID.
Who:   Used by the auth routes, the users record hooks, the seed migration
       and every route that needs to know who is calling.

Token handling:
    Bearer tokens are optional on every request. A missing, malformed,
    expired or revoked token resolves to an anonymous caller; collection
    rules then decide whether anonymous access is enough.

    Each token carries `key`, a short fingerprint of the password hash, so
    changing a password invalidates every token issued before the change.
"""

import hashlib
import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from meds.config import settings
from meds.database import get_db_session
from meds.exceptions import AuthenticationError, ValidationError
from meds.models.user import User

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")

# auto_error=False: a missing header means anonymous, not 403
bearer_scheme = HTTPBearer(auto_error=False)

TOKEN_TYPE = "auth"


# ── Passwords ─────────────────────────────────────────────────────────────

def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def _password_fingerprint(password_hash: str) -> str:
    return hashlib.sha256(password_hash.encode("utf-8")).hexdigest()[:16]


# ── Tokens ────────────────────────────────────────────────────────────────

def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed bearer token for `user`."""
    now = datetime.now(timezone.utc)
    expire = now + (expires_delta or timedelta(minutes=settings.access_token_expire_minutes))
    claims = {
        "sub": user.id,
        "type": TOKEN_TYPE,
        "key": _password_fingerprint(user.password_hash),
        "iat": now,
        "exp": expire,
    }
    return jwt.encode(claims, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Return the token's claims, or None when it is invalid or expired."""
    try:
        claims = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    if claims.get("type") != TOKEN_TYPE or not claims.get("sub"):
        return None
    return claims


async def resolve_token_user(db: AsyncSession, token: str) -> Optional[User]:
    claims = decode_access_token(token)
    if claims is None:
        return None
    user = await db.get(User, claims["sub"])
    if user is None or claims.get("key") != _password_fingerprint(user.password_hash):
        return None
    return user


# ── Login ─────────────────────────────────────────────────────────────────

async def authenticate(db: AsyncSession, identity: str, password: str) -> User:
    """
    Look up a user by email or username and check the password.

    The same error is raised for an unknown identity and a wrong password so
    the response does not reveal which accounts exist.

    Raises:
        ValidationError: Identity/password combination is wrong (→ 400)
    """
    identity = identity.strip()
    result = await db.execute(
        select(User).where(
            or_(func.lower(User.email) == identity.lower(), User.username == identity)
        )
    )
    user = result.scalars().first()

    if user is None or not verify_password(password, user.password_hash):
        logger.info("Failed login for identity %r", identity)
        raise ValidationError(message="Failed to authenticate.", field="identity")

    logger.info("User %s signed in", user.id)
    return user


# ── FastAPI Dependencies ──────────────────────────────────────────────────

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[User]:
    """The signed-in user, or None for anonymous callers."""
    if credentials is None:
        return None
    return await resolve_token_user(db, credentials.credentials)


async def require_user(user: Optional[User] = Depends(get_current_user)) -> User:
    """Like `get_current_user` but rejects anonymous callers with 401."""
    if user is None:
        raise AuthenticationError(
            message="The request requires valid record authorization token."
        )
    return user
