"""
MEDS Backend — Record Hooks
=============================

What:  Extension points the records service calls around create, update and
       delete of a collection record.
How:   A collection registers one `RecordHooks` subclass; every method is a
       no-op by default. Hooks receive the request's session, so anything they
       write (stock changes, timestamps) commits or rolls back together with
       the record itself.

Call order:
    create:  before_create(data) → INSERT + flush → after_create(record)
    update:  before_update(record, changes) → apply + flush → after_update(record)
    delete:  before_delete(record) → DELETE + flush

`data` and `changes` are plain dicts of column values and may be modified in
place; the service applies whatever is left in them.
"""

from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from meds.models.user import User


class RecordHooks:
    async def before_create(
        self, db: AsyncSession, user: Optional[User], data: Dict[str, Any]
    ) -> None:
        pass

    async def after_create(self, db: AsyncSession, user: Optional[User], record: Any) -> None:
        pass

    async def before_update(
        self, db: AsyncSession, user: Optional[User], record: Any, changes: Dict[str, Any]
    ) -> None:
        pass

    async def after_update(self, db: AsyncSession, user: Optional[User], record: Any) -> None:
        pass

    async def before_delete(self, db: AsyncSession, user: Optional[User], record: Any) -> None:
        pass


NO_HOOKS = RecordHooks()
