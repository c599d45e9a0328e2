"""
MEDS Backend — Encounter Models
=================================

What:  ORM models for `encounters` (one clinic visit) and the two lookup
       collections it references: `chief_complaints` and `diagnosis`.

Relation storage:
    patient, active_editor       → foreign keys (single relation)
    chief_complaint, diagnosis   → JSON arrays of record IDs (multi relation);
                                   the records service checks that every ID exists

Vitals are whole numbers except weight and temperature.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from meds.database import Base
from meds.models.base import RecordMixin


class ChiefComplaint(RecordMixin, Base):
    __tablename__ = "chief_complaints"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class Diagnosis(RecordMixin, Base):
    __tablename__ = "diagnosis"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)


class Encounter(RecordMixin, Base):
    __tablename__ = "encounters"

    patient: Mapped[Optional[str]] = mapped_column(
        ForeignKey("patients.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # ── Vitals ────────────────────────────────────────────────────────────
    height: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    weight: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    temperature: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    heart_rate: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    systolic_pressure: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    diastolic_pressure: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pulse_ox: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # ── History & Assessment ──────────────────────────────────────────────
    past_medical_history: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    allergies: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    chief_complaint: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    diagnosis: Mapped[List[str]] = mapped_column(JSON, nullable=False, default=list)
    other_chief_complaint: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    other_diagnosis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    subjective_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Point-of-care Tests ───────────────────────────────────────────────
    urinalysis: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    blood_sugar: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    pregnancy_test: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    urinalysis_result: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    blood_sugar_result: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pregnancy_test_result: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    # ── Edit Lock ─────────────────────────────────────────────────────────
    # Set while one user has the encounter open; see services/encounter_service.py
    active_editor: Mapped[Optional[str]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    last_edit_activity: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
