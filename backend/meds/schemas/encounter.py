"""
MEDS Backend — Encounter Schemas
==================================

What:  Payload models for `encounters` and its lookup collections, plus the
       edit-lock response.

Vital sign bounds are wide on purpose; they reject typos (a pulse of 700),
not unusual patients.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field


class NamedRecordCreate(BaseModel):
    """Payload for `chief_complaints` and `diagnosis`: a single unique name."""

    name: str = Field(min_length=1, max_length=255)


class NamedRecordUpdate(NamedRecordCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)


class EncounterCreate(BaseModel):
    patient: Optional[str] = None

    # ── Vitals ────────────────────────────────────────────────────────────
    height: Optional[int] = Field(default=None, ge=0, le=300)
    weight: Optional[float] = Field(default=None, ge=0, le=1000)
    temperature: Optional[float] = Field(default=None, ge=0, le=120)
    heart_rate: Optional[int] = Field(default=None, ge=0, le=300)
    systolic_pressure: Optional[int] = Field(default=None, ge=0, le=300)
    diastolic_pressure: Optional[int] = Field(default=None, ge=0, le=300)
    pulse_ox: Optional[int] = Field(default=None, ge=0, le=100)

    # ── History & Assessment ──────────────────────────────────────────────
    past_medical_history: Optional[str] = None
    allergies: Optional[str] = None
    chief_complaint: Optional[List[str]] = None
    diagnosis: Optional[List[str]] = None
    other_chief_complaint: Optional[str] = None
    other_diagnosis: Optional[str] = None
    subjective_notes: Optional[str] = None

    # ── Point-of-care Tests ───────────────────────────────────────────────
    urinalysis: Optional[bool] = None
    blood_sugar: Optional[bool] = None
    pregnancy_test: Optional[bool] = None
    urinalysis_result: Optional[str] = None
    blood_sugar_result: Optional[str] = None
    pregnancy_test_result: Optional[str] = None


# Every encounter field is already optional
EncounterUpdate = EncounterCreate


class EditLockResponse(BaseModel):
    id: str = Field(description="Encounter ID")
    active_editor: Optional[str] = Field(description="User currently editing, if any")
    last_edit_activity: Optional[datetime] = Field(description="Last claim or heartbeat")
