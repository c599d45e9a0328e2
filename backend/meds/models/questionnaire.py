"""
MEDS Backend — Encounter Questionnaire Models
===============================================

What:  ORM models for the configurable question data attached to visits.

    encounter_question_categories  — groups questions; type `counter` holds
                                     standard hand-out items (goodie bag,
                                     sunglasses...), type `survey` holds
                                     patient feedback questions
    encounter_questions            — one question; `depends_on` points at a
                                     checkbox question that must be ticked
                                     before this one is shown
    encounter_responses            — a patient's answer for one encounter
    bulk_distributions / _items    — counter items handed out outside of an
                                     encounter (community events)
"""

from datetime import datetime
from typing import Any, List, Optional

from sqlalchemy import JSON, Boolean, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from meds.database import Base
from meds.models.base import RecordMixin

CATEGORY_TYPES = ("counter", "survey")
QUESTION_INPUT_TYPES = ("checkbox", "text", "select")


class QuestionCategory(RecordMixin, Base):
    __tablename__ = "encounter_question_categories"

    name: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    order: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    type: Mapped[str] = mapped_column(String(20), nullable=False)
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class Question(RecordMixin, Base):
    __tablename__ = "encounter_questions"

    question_text: Mapped[str] = mapped_column(Text, nullable=False)
    input_type: Mapped[str] = mapped_column(String(20), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    options: Mapped[Optional[List[str]]] = mapped_column(JSON, nullable=True)
    category: Mapped[str] = mapped_column(
        ForeignKey("encounter_question_categories.id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    order: Mapped[float] = mapped_column(Float, nullable=False, default=0)
    required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    depends_on: Mapped[Optional[str]] = mapped_column(
        ForeignKey("encounter_questions.id", ondelete="SET NULL"), nullable=True
    )
    archived: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)


class EncounterResponse(RecordMixin, Base):
    __tablename__ = "encounter_responses"

    encounter: Mapped[str] = mapped_column(
        ForeignKey("encounters.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(
        ForeignKey("encounter_questions.id", ondelete="RESTRICT"), nullable=False
    )
    response_value: Mapped[Any] = mapped_column(JSON, nullable=False)


class BulkDistribution(RecordMixin, Base):
    __tablename__ = "bulk_distributions"

    date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)


class BulkDistributionItem(RecordMixin, Base):
    __tablename__ = "bulk_distribution_items"

    distribution: Mapped[str] = mapped_column(
        ForeignKey("bulk_distributions.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    question: Mapped[str] = mapped_column(
        ForeignKey("encounter_questions.id", ondelete="RESTRICT"), nullable=False
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False, default=0)
