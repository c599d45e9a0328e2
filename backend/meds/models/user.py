"""
MEDS Backend — Users and Clinic Settings Models
=================================================

What:  ORM models for the `users` and `settings` collections.

Roles:
    provider  — care team members recording encounters
    pharmacy  — staff dispensing medication and managing inventory
    admin     — clinic leads; may change settings and manage users

`is_superuser` marks dashboard administrators. Superusers bypass every
collection rule, including locked ones.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from meds.database import Base
from meds.models.base import RecordMixin

USER_ROLES = ("provider", "pharmacy", "admin")


class User(RecordMixin, Base):
    __tablename__ = "users"

    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    email_visibility: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="provider")
    verified: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    is_superuser: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Setting(RecordMixin, Base):
    """
    Clinic-wide display settings. The application reads the oldest row;
    the seed migration creates it.
    """

    __tablename__ = "settings"

    unit_display: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    display_preferences: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False, default=dict)
    last_updated: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    updated_by: Mapped[Optional[str]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"),
        nullable=True,
    )
