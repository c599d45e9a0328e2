"""
MEDS Backend — User Record Hooks
==================================

What:  Keeps plaintext passwords out of the `users` table and stops users
       from promoting themselves.

    create  → hash `password`, drop `password_confirm`, default `username`
              to the local part of the email address
    update  → only admins/superusers may change `role` or `verified`;
              a user changing their own password must give `old_password`
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from meds.exceptions import PermissionDeniedError, ValidationError
from meds.models.user import User
from meds.services.auth_service import hash_password, verify_password
from meds.services.hooks import RecordHooks

logger = logging.getLogger(__name__)

PRIVILEGED_FIELDS = ("role", "verified")


def _is_admin(user: Optional[User]) -> bool:
    return user is not None and (user.is_superuser or user.role == "admin")


class UserHooks(RecordHooks):
    async def before_create(
        self, db: AsyncSession, user: Optional[User], data: Dict[str, Any]
    ) -> None:
        data.pop("password_confirm", None)
        data["password_hash"] = hash_password(data.pop("password"))
        if not data.get("username"):
            data["username"] = data["email"].split("@", 1)[0]

    async def before_update(
        self, db: AsyncSession, user: Optional[User], record: User, changes: Dict[str, Any]
    ) -> None:
        changes.pop("password_confirm", None)
        old_password = changes.pop("old_password", None)

        if not _is_admin(user):
            for field in PRIVILEGED_FIELDS:
                if field in changes and changes[field] != getattr(record, field):
                    raise PermissionDeniedError(
                        message=f"Only admins can change '{field}'.",
                        context={"field": field},
                    )

        if "password" in changes:
            password = changes.pop("password")
            if password is None:
                return
            if not _is_admin(user) and (
                old_password is None or not verify_password(old_password, record.password_hash)
            ):
                raise ValidationError(
                    message="Missing or invalid old password.", field="oldPassword"
                )
            changes["password_hash"] = hash_password(password)
            logger.info("Password changed for user %s", record.id)


user_hooks = UserHooks()
