"""
MEDS Backend — Patient Model
==============================

What:  ORM model for the `patients` collection (intake demographics).

Only `gender` is mandatory: walk-in patients often cannot give a full name
or date of birth at the front desk, and an estimated `age` is accepted
instead of `dob`.
"""

from datetime import date
from typing import Optional

from sqlalchemy import Date, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from meds.database import Base
from meds.models.base import RecordMixin

PREGNANCY_STATUSES = ("yes", "no", "potentially")


class Patient(RecordMixin, Base):
    __tablename__ = "patients"

    first_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    last_name: Mapped[Optional[str]] = mapped_column(String(150), nullable=True)
    dob: Mapped[Optional[date]] = mapped_column(Date, nullable=True)
    gender: Mapped[str] = mapped_column(String(50), nullable=False)
    age: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    smoker: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    allergies: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pregnancy_status: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    __table_args__ = (
        Index("idx_patients_name", "last_name", "first_name"),
    )
