"""MEDS Backend — Questionnaire and Bulk Distribution Schemas."""

from datetime import datetime
from typing import Any, List, Literal, Optional

from pydantic import BaseModel, Field, model_validator

from meds.models.questionnaire import CATEGORY_TYPES, QUESTION_INPUT_TYPES


class QuestionCategoryCreate(BaseModel):
    name: str = Field(min_length=1, max_length=255)
    order: float = 0
    type: Literal[CATEGORY_TYPES]
    archived: bool = False


class QuestionCategoryUpdate(QuestionCategoryCreate):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    order: Optional[float] = None
    type: Optional[Literal[CATEGORY_TYPES]] = None
    archived: Optional[bool] = None


class QuestionCreate(BaseModel):
    question_text: str = Field(min_length=1)
    input_type: Literal[QUESTION_INPUT_TYPES]
    description: Optional[str] = None
    options: Optional[List[str]] = None
    category: str = Field(min_length=1)
    order: float = 0
    required: bool = False
    depends_on: Optional[str] = None
    archived: bool = False

    @model_validator(mode="after")
    def select_needs_options(self):
        if self.input_type == "select" and not self.options:
            raise ValueError("select questions need at least one option")
        return self


class QuestionUpdate(QuestionCreate):
    question_text: Optional[str] = Field(default=None, min_length=1)
    input_type: Optional[Literal[QUESTION_INPUT_TYPES]] = None
    category: Optional[str] = Field(default=None, min_length=1)
    order: Optional[float] = None
    required: Optional[bool] = None
    archived: Optional[bool] = None

    @model_validator(mode="after")
    def select_needs_options(self):
        if self.input_type == "select" and "options" in self.model_fields_set and not self.options:
            raise ValueError("select questions need at least one option")
        return self


class EncounterResponseCreate(BaseModel):
    encounter: str = Field(min_length=1)
    question: str = Field(min_length=1)
    response_value: Any


class EncounterResponseUpdate(EncounterResponseCreate):
    encounter: Optional[str] = Field(default=None, min_length=1)
    question: Optional[str] = Field(default=None, min_length=1)
    response_value: Any = None


class BulkDistributionCreate(BaseModel):
    date: datetime
    notes: Optional[str] = None


class BulkDistributionUpdate(BulkDistributionCreate):
    date: Optional[datetime] = None


class BulkDistributionItemCreate(BaseModel):
    distribution: str = Field(min_length=1)
    question: str = Field(min_length=1)
    quantity: float = Field(default=0, ge=0)


class BulkDistributionItemUpdate(BulkDistributionItemCreate):
    distribution: Optional[str] = Field(default=None, min_length=1)
    question: Optional[str] = Field(default=None, min_length=1)
    quantity: Optional[float] = Field(default=None, ge=0)
