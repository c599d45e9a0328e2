"""
MEDS Backend — User, Auth and Settings Schemas
================================================

What:  Request/response models for the `users` and `settings` collections
       and the password login endpoints.

Password fields are write-only: they appear on create/update payloads and
never on a serialized record (`password_hash` is hidden by the records
service).
"""

from datetime import datetime
from typing import Any, Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from meds.models.user import USER_ROLES

UserRole = Literal[USER_ROLES]


class UserCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    username: Optional[str] = Field(default=None, min_length=3, max_length=150, pattern=r"^[\w.\-]+$")
    email: EmailStr
    email_visibility: bool = Field(default=True, alias="emailVisibility")
    name: Optional[str] = Field(default=None, max_length=255)
    password: str = Field(min_length=8, max_length=72)
    password_confirm: Optional[str] = Field(default=None, alias="passwordConfirm")
    role: UserRole = "provider"
    verified: bool = False

    @model_validator(mode="after")
    def passwords_match(self):
        if self.password_confirm is not None and self.password != self.password_confirm:
            raise ValueError("passwordConfirm does not match password")
        return self


class UserUpdate(UserCreate):
    email: Optional[EmailStr] = None
    email_visibility: Optional[bool] = Field(default=None, alias="emailVisibility")
    password: Optional[str] = Field(default=None, min_length=8, max_length=72)
    old_password: Optional[str] = Field(default=None, alias="oldPassword")
    role: Optional[UserRole] = None
    verified: Optional[bool] = None


# ── Auth ──────────────────────────────────────────────────────────────────

class AuthWithPasswordRequest(BaseModel):
    """`identity` is either the email address or the username."""

    identity: str = Field(min_length=1)
    password: str = Field(min_length=1)


class AuthResponse(BaseModel):
    token: str = Field(description="Bearer token for the Authorization header")
    record: Dict[str, Any] = Field(description="The authenticated user record")


# ── Settings ──────────────────────────────────────────────────────────────

class SettingCreate(BaseModel):
    unit_display: Dict[str, Any] = Field(default_factory=dict)
    display_preferences: Dict[str, Any] = Field(default_factory=dict)
    last_updated: Optional[datetime] = None
    updated_by: Optional[str] = None


class SettingUpdate(SettingCreate):
    unit_display: Optional[Dict[str, Any]] = None
    display_preferences: Optional[Dict[str, Any]] = None


class SettingsPatch(BaseModel):
    """
    Body of PATCH /api/settings/current. Keys are merged into the stored
    objects; keys not mentioned keep their current value.
    """

    unit_display: Dict[str, Any] = Field(default_factory=dict)
    display_preferences: Dict[str, Any] = Field(default_factory=dict)
