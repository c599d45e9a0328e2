"""
MEDS Backend — Visit Queue Schemas
====================================

What:  Payloads for the `queue` collection and the queue workflow endpoints
       (check-in, status change, today's board).
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field, field_validator

from meds.models.queue import CARE_TEAMS, DEFAULT_PRIORITY, QUEUE_STATUSES

QueueStatus = Literal[QUEUE_STATUSES]
CareTeam = Literal[CARE_TEAMS]


class QueueEntryCreate(BaseModel):
    """Generic record create; `line_number` is normally left to the database."""

    patient: str = Field(min_length=1)
    status: QueueStatus = "checked_in"
    line_number: Optional[int] = Field(default=None, ge=1)
    assigned_to: Optional[str] = None
    intended_provider: Optional[CareTeam] = None
    check_in_time: Optional[datetime] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    priority: int = Field(default=DEFAULT_PRIORITY, ge=1, le=5)
    encounter: Optional[str] = None


class QueueEntryUpdate(QueueEntryCreate):
    patient: Optional[str] = Field(default=None, min_length=1)
    status: Optional[QueueStatus] = None
    priority: Optional[int] = Field(default=None, ge=1, le=5)

    @field_validator("line_number")
    @classmethod
    def line_number_stays_assigned(cls, v: Optional[int]) -> Optional[int]:
        if v is None:
            raise ValueError("line_number cannot be cleared once assigned")
        return v


class CheckInRequest(BaseModel):
    patient: str = Field(min_length=1, description="Patient record ID")
    priority: int = Field(default=DEFAULT_PRIORITY, ge=1, le=5, description="1 = most urgent")
    intended_provider: Optional[CareTeam] = None
    line_number: Optional[int] = Field(
        default=None, ge=1, description="Explicit position; normally assigned automatically"
    )


class StatusChangeRequest(BaseModel):
    status: QueueStatus
    assigned_to: Optional[str] = Field(
        default=None, description="User taking the patient; defaults to the caller for with_care_team"
    )
    encounter: Optional[str] = Field(default=None, description="Encounter to link to this visit")


class QueueBoardResponse(BaseModel):
    date: str = Field(description="UTC calendar day, YYYY-MM-DD")
    total: int
    items: List[Dict[str, Any]]
