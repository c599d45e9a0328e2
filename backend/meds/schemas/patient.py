"""MEDS Backend — Patient Schemas."""

from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field

from meds.models.patient import PREGNANCY_STATUSES


class PatientCreate(BaseModel):
    first_name: Optional[str] = Field(default=None, max_length=150)
    last_name: Optional[str] = Field(default=None, max_length=150)
    dob: Optional[date] = None
    gender: str = Field(min_length=1, max_length=50)
    age: Optional[int] = Field(default=None, ge=0, le=150)
    smoker: Optional[str] = Field(default=None, max_length=50)
    allergies: Optional[str] = None
    pregnancy_status: Optional[Literal[PREGNANCY_STATUSES]] = None


class PatientUpdate(PatientCreate):
    gender: Optional[str] = Field(default=None, min_length=1, max_length=50)
