"""
MEDS Backend — Shared Record Columns
======================================

What:  Columns every collection row carries: `id`, `created`, `updated`.
How:   A mixin combined with `Base` by each model class.

Record IDs are 15 random lowercase alphanumeric characters, the format the
frontend already stores in relation fields and URLs.
"""

import secrets
import string
from datetime import datetime, timezone

from sqlalchemy import DateTime, String
from sqlalchemy.orm import Mapped, mapped_column

RECORD_ID_LENGTH = 15
_ID_ALPHABET = string.ascii_lowercase + string.digits


def new_record_id() -> str:
    """Generate a random 15-character record ID."""
    return "".join(secrets.choice(_ID_ALPHABET) for _ in range(RECORD_ID_LENGTH))


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class RecordMixin:
    """Primary key and audit timestamps shared by all collections."""

    id: Mapped[str] = mapped_column(
        String(RECORD_ID_LENGTH),
        primary_key=True,
        default=new_record_id,
    )
    created: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    updated: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<{type(self).__name__}(id={self.id})>"
