"""
MEDS Backend — Record Serialization
=====================================

What:  Turns ORM rows into the JSON-ready dicts returned by every collection
       endpoint.

Output shape (one record):
    {
        "id": "k3j9x0c2m1p8q7z",
        "collectionName": "patients",
        "created": "2026-01-05T14:02:11.120000+00:00",
        "updated": "2026-01-05T14:02:11.120000+00:00",
        ...every column of the collection...
    }

SQLite hands back naive datetimes even for timezone-aware columns; they are
stored as UTC, so they are tagged UTC here and rendered with `isoformat()`,
giving the `+00:00` suffix regardless of how the JSON encoder writes UTC.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional

from sqlalchemy import inspect

from meds.models.user import User

# Never serialized for any caller
HIDDEN_FIELDS = {"users": {"password_hash"}}


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _can_see_email(record: User, viewer: Optional[User]) -> bool:
    if record.email_visibility:
        return True
    if viewer is None:
        return False
    return viewer.is_superuser or viewer.role == "admin" or viewer.id == record.id


def serialize_record(record: Any, viewer: Optional[User] = None) -> Dict[str, Any]:
    """Column values of `record` as a dict, minus hidden fields."""
    collection = record.__tablename__
    hidden = HIDDEN_FIELDS.get(collection, set())

    data: Dict[str, Any] = {"id": record.id, "collectionName": collection}
    for attr in inspect(record).mapper.column_attrs:
        if attr.key in hidden or attr.key == "id":
            continue
        value = getattr(record, attr.key)
        if isinstance(value, datetime):
            value = as_utc(value).isoformat()
        data[attr.key] = value

    if isinstance(record, User) and not _can_see_email(record, viewer):
        data.pop("email", None)
    return data
