"""
MEDS Backend — ORM Models
===========================

Importing this package registers every collection table with
`Base.metadata` (needed by Alembic and `metadata.create_all`).
"""

from meds.models.encounter import ChiefComplaint, Diagnosis, Encounter
from meds.models.inventory import Disbursement, InventoryItem
from meds.models.patient import Patient
from meds.models.questionnaire import (
    BulkDistribution,
    BulkDistributionItem,
    EncounterResponse,
    Question,
    QuestionCategory,
)
from meds.models.queue import QueueEntry
from meds.models.user import Setting, User

__all__ = [
    "BulkDistribution",
    "BulkDistributionItem",
    "ChiefComplaint",
    "Diagnosis",
    "Disbursement",
    "Encounter",
    "EncounterResponse",
    "InventoryItem",
    "Patient",
    "Question",
    "QuestionCategory",
    "QueueEntry",
    "Setting",
    "User",
]
