"""
MEDS Backend — Collection Registry
====================================

What:  One entry per collection exposed under /api/collections/{name}:
       its ORM model, payload schemas, relation fields and record hooks.
Who:   Looked up by the records service for every collection request.

Relation fields:
    Single relations are read off the model's foreign keys; every table is
    named after its collection, so the FK target table *is* the target
    collection. Multi relations (JSON arrays of IDs) are declared here.
"""

from dataclasses import dataclass, field
from typing import Dict, Type

from pydantic import BaseModel

from meds.access import CollectionRules, rules_for
from meds.database import Base
from meds.exceptions import NotFoundError
from meds.models import (
    BulkDistribution,
    BulkDistributionItem,
    ChiefComplaint,
    Diagnosis,
    Disbursement,
    Encounter,
    EncounterResponse,
    InventoryItem,
    Patient,
    Question,
    QuestionCategory,
    QueueEntry,
    Setting,
    User,
)
from meds.schemas import encounter as encounter_schemas
from meds.schemas import inventory as inventory_schemas
from meds.schemas import patient as patient_schemas
from meds.schemas import questionnaire as questionnaire_schemas
from meds.schemas import queue as queue_schemas
from meds.schemas import user as user_schemas
from meds.services.disbursement_service import disbursement_hooks
from meds.services.encounter_service import encounter_hooks
from meds.services.hooks import NO_HOOKS, RecordHooks
from meds.services.queue_service import queue_hooks
from meds.services.settings_service import setting_hooks
from meds.services.user_service import user_hooks


@dataclass(frozen=True)
class Collection:
    model: Type[Base]
    create_schema: Type[BaseModel]
    update_schema: Type[BaseModel]
    multi_relations: Dict[str, str] = field(default_factory=dict)
    hooks: RecordHooks = NO_HOOKS

    @property
    def name(self) -> str:
        return self.model.__tablename__

    @property
    def rules(self) -> CollectionRules:
        return rules_for(self.name)

    @property
    def relations(self) -> Dict[str, str]:
        """Single relation fields → target collection name."""
        return {
            column.key: next(iter(column.foreign_keys)).column.table.name
            for column in self.model.__table__.columns
            if column.foreign_keys
        }

    @property
    def columns(self) -> Dict[str, object]:
        return {column.key: column for column in self.model.__table__.columns}


_COLLECTION_LIST = [
    Collection(User, user_schemas.UserCreate, user_schemas.UserUpdate, hooks=user_hooks),
    Collection(
        Setting, user_schemas.SettingCreate, user_schemas.SettingUpdate, hooks=setting_hooks
    ),
    Collection(Patient, patient_schemas.PatientCreate, patient_schemas.PatientUpdate),
    Collection(
        InventoryItem,
        inventory_schemas.InventoryItemCreate,
        inventory_schemas.InventoryItemUpdate,
    ),
    Collection(
        ChiefComplaint,
        encounter_schemas.NamedRecordCreate,
        encounter_schemas.NamedRecordUpdate,
    ),
    Collection(
        Diagnosis,
        encounter_schemas.NamedRecordCreate,
        encounter_schemas.NamedRecordUpdate,
    ),
    Collection(
        Encounter,
        encounter_schemas.EncounterCreate,
        encounter_schemas.EncounterUpdate,
        multi_relations={"chief_complaint": "chief_complaints", "diagnosis": "diagnosis"},
        hooks=encounter_hooks,
    ),
    Collection(
        Disbursement,
        inventory_schemas.DisbursementCreate,
        inventory_schemas.DisbursementUpdate,
        hooks=disbursement_hooks,
    ),
    Collection(
        QuestionCategory,
        questionnaire_schemas.QuestionCategoryCreate,
        questionnaire_schemas.QuestionCategoryUpdate,
    ),
    Collection(
        Question,
        questionnaire_schemas.QuestionCreate,
        questionnaire_schemas.QuestionUpdate,
    ),
    Collection(
        EncounterResponse,
        questionnaire_schemas.EncounterResponseCreate,
        questionnaire_schemas.EncounterResponseUpdate,
    ),
    Collection(
        BulkDistribution,
        questionnaire_schemas.BulkDistributionCreate,
        questionnaire_schemas.BulkDistributionUpdate,
    ),
    Collection(
        BulkDistributionItem,
        questionnaire_schemas.BulkDistributionItemCreate,
        questionnaire_schemas.BulkDistributionItemUpdate,
    ),
    Collection(
        QueueEntry,
        queue_schemas.QueueEntryCreate,
        queue_schemas.QueueEntryUpdate,
        hooks=queue_hooks,
    ),
]

COLLECTIONS: Dict[str, Collection] = {c.name: c for c in _COLLECTION_LIST}


def get_collection(name: str) -> Collection:
    """
    Raises:
        NotFoundError: No collection with this name (→ 404)
    """
    collection = COLLECTIONS.get(name)
    if collection is None:
        raise NotFoundError(resource="collection", resource_id=name)
    return collection
