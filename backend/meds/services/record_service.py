"""
MEDS Backend — Collection Records Service
===========================================

What:  Generic list/view/create/update/delete for every registered collection.
How:   Looks the collection up in the registry, enforces its access rule,
       validates the payload with the collection's Pydantic schema, checks
       that relation IDs exist, runs the collection hooks and flushes.
Who:   Called by routes/records.py.

Request Flow (create):
    ┌──────────┐   ┌──────────┐   ┌──────────┐   ┌───────────┐   ┌─────────┐   ┌──────────┐
    │ registry │──▶│  rule    │──▶│  schema  │──▶│ relations │──▶│  hooks  │──▶│ INSERT + │
    │ lookup   │   │ (401/403)│   │  (400)   │   │ exist(400)│   │ before_ │   │ refresh  │
    └──────────┘   └──────────┘   └──────────┘   └───────────┘   └─────────┘   └──────────┘

Listing:
    page / perPage        offset pagination, perPage capped at settings.max_page_size
    sort                  "-created,last_name": comma-separated columns, "-" = DESC
    expand                "patient,diagnosis": relation fields resolved one level deep
                          into the record's "expand" object
    anything else         equality filter on the column of that name

Integrity errors (unique names, deleting a record still referenced by a
required relation) surface as ConflictError (409).
"""

import logging
import math
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence

import pydantic
from sqlalchemy import Boolean, Date, DateTime, Float, Integer, JSON, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from meds.access import Rule, enforce
from meds.config import settings
from meds.exceptions import ConflictError, NotFoundError, ValidationError
from meds.models.user import User
from meds.registry import COLLECTIONS, Collection, get_collection
from meds.services.serialization import HIDDEN_FIELDS, serialize_record

logger = logging.getLogger(__name__)

DEFAULT_SORT = "-created"


# ── Payload Helpers ───────────────────────────────────────────────────────

def validate_payload(
    schema: type, payload: Mapping[str, Any], *, partial: bool
) -> Dict[str, Any]:
    """
    Validate `payload` with `schema` and return the column values to write.

    Create payloads drop None values so column defaults apply; update
    payloads keep only the keys the client actually sent.

    Raises:
        ValidationError: Payload does not match the schema (→ 400)
    """
    try:
        model = schema.model_validate(payload)
    except pydantic.ValidationError as e:
        errors = [
            {"field": ".".join(str(p) for p in err["loc"]), "message": err["msg"]}
            for err in e.errors()
        ]
        raise ValidationError(
            message="Failed to save record.",
            context={"errors": errors},
        )
    if partial:
        return model.model_dump(exclude_unset=True)
    return model.model_dump(exclude_none=True)


def _coerce_filter_value(column: Any, raw: str) -> Any:
    column_type = column.type
    if isinstance(column_type, Boolean):
        lowered = raw.lower()
        if lowered not in ("true", "false", "1", "0"):
            raise ValueError(raw)
        return lowered in ("true", "1")
    if isinstance(column_type, Integer):
        return int(raw)
    if isinstance(column_type, Float):
        return float(raw)
    if isinstance(column_type, DateTime):
        return datetime.fromisoformat(raw)
    if isinstance(column_type, Date):
        return date.fromisoformat(raw)
    return raw


def _split_csv(value: Optional[str]) -> List[str]:
    if not value:
        return []
    return [part.strip() for part in value.split(",") if part.strip()]


class RecordService:
    """
    Collection-agnostic record operations.

    Every method takes the calling user (None = anonymous) and enforces the
    collection's rule for that operation before touching data.
    """

    # ── Lookups ───────────────────────────────────────────────────────────

    def _check_anonymous(self, rule: Rule, user: Optional[User], action: str) -> None:
        """Reject anonymous callers before the record lookup."""
        if user is None:
            # No rule that depends on the record admits anonymous callers
            enforce(rule, None, action=action)

    async def _get_or_404(self, db: AsyncSession, collection: Collection, record_id: str) -> Any:
        record = await db.get(collection.model, record_id)
        if record is None:
            raise NotFoundError(resource=collection.name, resource_id=record_id)
        return record

    async def _validate_relations(
        self, db: AsyncSession, collection: Collection, data: Dict[str, Any]
    ) -> None:
        """
        Raises:
            ValidationError: A relation field names a record that does not exist (→ 400)
        """
        for field, target in collection.relations.items():
            value = data.get(field)
            if value is None:
                continue
            if await db.get(COLLECTIONS[target].model, value) is None:
                raise ValidationError(
                    message=f"{target} with ID '{value}' was not found",
                    field=field,
                )

        for field, target in collection.multi_relations.items():
            ids = data.get(field)
            if ids is None:
                continue
            # Keep the client's order, drop repeats
            ids = list(dict.fromkeys(ids))
            data[field] = ids
            if not ids:
                continue
            target_model = COLLECTIONS[target].model
            result = await db.execute(select(target_model.id).where(target_model.id.in_(ids)))
            missing = set(ids) - set(result.scalars().all())
            if missing:
                raise ValidationError(
                    message=f"{target} with ID '{sorted(missing)[0]}' was not found",
                    field=field,
                    context={"missing": sorted(missing)},
                )

    def _check_not_null(self, collection: Collection, changes: Dict[str, Any]) -> None:
        columns = collection.columns
        for key, value in changes.items():
            if value is None and not columns[key].nullable:
                raise ValidationError(message=f"{key} cannot be blank.", field=key)

    def _column_values(self, collection: Collection, data: Dict[str, Any]) -> Dict[str, Any]:
        columns = collection.columns
        return {key: value for key, value in data.items() if key in columns}

    async def _flush(self, db: AsyncSession, collection: Collection, action: str) -> None:
        try:
            await db.flush()
        except IntegrityError as e:
            logger.info("Integrity error on %s %s: %s", action, collection.name, e.orig)
            raise ConflictError(
                message=(
                    f"Failed to {action} record. Make sure that unique values are not "
                    "already taken and the record is not referenced by another record."
                ),
                context={"collection": collection.name},
            )

    # ── Expand ────────────────────────────────────────────────────────────

    async def _expand(
        self,
        db: AsyncSession,
        user: Optional[User],
        collection: Collection,
        records: Sequence[Any],
        items: List[Dict[str, Any]],
        expand: Iterable[str],
    ) -> None:
        """Attach related records under each item's "expand" key (one level)."""
        for field in expand:
            if field in collection.relations:
                target = COLLECTIONS[collection.relations[field]]
                many = False
            elif field in collection.multi_relations:
                target = COLLECTIONS[collection.multi_relations[field]]
                many = True
            else:
                raise ValidationError(
                    message=f"'{field}' is not a relation field of {collection.name}",
                    field="expand",
                )

            wanted = set()
            for record in records:
                value = getattr(record, field)
                if many:
                    wanted.update(value or [])
                elif value is not None:
                    wanted.add(value)
            if not wanted:
                continue

            result = await db.execute(select(target.model).where(target.model.id.in_(wanted)))
            related = {
                r.id: serialize_record(r, user)
                for r in result.scalars().all()
                if target.rules.view.allows(user, r)
            }

            for record, item in zip(records, items):
                value = getattr(record, field)
                if many:
                    # Dangling IDs (deleted targets) are skipped
                    expanded = [related[i] for i in value or [] if i in related]
                    if expanded:
                        item.setdefault("expand", {})[field] = expanded
                elif value in related:
                    item.setdefault("expand", {})[field] = related[value]

    async def _serialize(
        self,
        db: AsyncSession,
        user: Optional[User],
        collection: Collection,
        records: Sequence[Any],
        expand: Optional[str],
    ) -> List[Dict[str, Any]]:
        items = [serialize_record(r, user) for r in records]
        fields = _split_csv(expand)
        if fields:
            await self._expand(db, user, collection, records, items, fields)
        return items

    # ── Operations ────────────────────────────────────────────────────────

    async def list_records(
        self,
        db: AsyncSession,
        user: Optional[User],
        collection_name: str,
        page: int = 1,
        per_page: Optional[int] = None,
        sort: Optional[str] = None,
        expand: Optional[str] = None,
        filters: Optional[Mapping[str, str]] = None,
    ) -> Dict[str, Any]:
        """
        One page of records.

        Returns:
            {"page", "perPage", "totalItems", "totalPages", "items"}

        Raises:
            ValidationError: Unknown sort/filter/expand field or bad filter value (→ 400)
        """
        collection = get_collection(collection_name)
        enforce(collection.rules.list, user, action=f"list {collection.name}")

        per_page = min(per_page or settings.default_page_size, settings.max_page_size)
        page = max(page, 1)
        model = collection.model
        columns = collection.columns
        hidden = HIDDEN_FIELDS.get(collection.name, set())

        conditions = []
        for key, raw in (filters or {}).items():
            column = columns.get(key)
            if column is None or key in hidden or isinstance(column.type, JSON):
                raise ValidationError(message=f"Cannot filter by '{key}'", field=key)
            try:
                conditions.append(column == _coerce_filter_value(column, raw))
            except ValueError:
                raise ValidationError(message=f"Invalid value for '{key}': {raw!r}", field=key)

        order_by = []
        for token in _split_csv(sort or DEFAULT_SORT):
            descending = token.startswith("-")
            key = token.lstrip("+-")
            column = columns.get(key)
            if column is None or key in hidden:
                raise ValidationError(message=f"Cannot sort by '{key}'", field="sort")
            order_by.append(column.desc() if descending else column.asc())
        # Stable paging when the sort keys tie
        order_by.append(model.id.asc())

        total_items = (
            await db.execute(select(func.count()).select_from(model).where(*conditions))
        ).scalar_one()

        result = await db.execute(
            select(model)
            .where(*conditions)
            .order_by(*order_by)
            .offset((page - 1) * per_page)
            .limit(per_page)
        )
        records = list(result.scalars().all())

        return {
            "page": page,
            "perPage": per_page,
            "totalItems": total_items,
            "totalPages": math.ceil(total_items / per_page),
            "items": await self._serialize(db, user, collection, records, expand),
        }

    async def get_record(
        self,
        db: AsyncSession,
        user: Optional[User],
        collection_name: str,
        record_id: str,
        expand: Optional[str] = None,
    ) -> Dict[str, Any]:
        collection = get_collection(collection_name)
        self._check_anonymous(collection.rules.view, user, f"view {collection.name}")
        record = await self._get_or_404(db, collection, record_id)
        enforce(collection.rules.view, user, record, action=f"view {collection.name}")
        return (await self._serialize(db, user, collection, [record], expand))[0]

    async def create_record(
        self,
        db: AsyncSession,
        user: Optional[User],
        collection_name: str,
        payload: Mapping[str, Any],
        expand: Optional[str] = None,
    ) -> Dict[str, Any]:
        collection = get_collection(collection_name)
        enforce(collection.rules.create, user, action=f"create {collection.name}")

        data = validate_payload(collection.create_schema, payload, partial=False)
        await self._validate_relations(db, collection, data)
        await collection.hooks.before_create(db, user, data)

        record = collection.model(**self._column_values(collection, data))
        db.add(record)
        await self._flush(db, collection, "create")
        await collection.hooks.after_create(db, user, record)
        await db.refresh(record)

        logger.info("Created %s record %s", collection.name, record.id)
        return (await self._serialize(db, user, collection, [record], expand))[0]

    async def update_record(
        self,
        db: AsyncSession,
        user: Optional[User],
        collection_name: str,
        record_id: str,
        payload: Mapping[str, Any],
        expand: Optional[str] = None,
    ) -> Dict[str, Any]:
        collection = get_collection(collection_name)
        self._check_anonymous(collection.rules.update, user, f"update {collection.name}")
        record = await self._get_or_404(db, collection, record_id)
        enforce(collection.rules.update, user, record, action=f"update {collection.name}")

        changes = validate_payload(collection.update_schema, payload, partial=True)
        await self._validate_relations(db, collection, changes)
        await collection.hooks.before_update(db, user, record, changes)

        changes = self._column_values(collection, changes)
        self._check_not_null(collection, changes)
        for key, value in changes.items():
            setattr(record, key, value)
        await self._flush(db, collection, "update")
        await collection.hooks.after_update(db, user, record)
        await db.refresh(record)

        logger.info("Updated %s record %s (%s)", collection.name, record.id, ", ".join(sorted(changes)))
        return (await self._serialize(db, user, collection, [record], expand))[0]

    async def delete_record(
        self,
        db: AsyncSession,
        user: Optional[User],
        collection_name: str,
        record_id: str,
    ) -> None:
        collection = get_collection(collection_name)
        self._check_anonymous(collection.rules.delete, user, f"delete {collection.name}")
        record = await self._get_or_404(db, collection, record_id)
        enforce(collection.rules.delete, user, record, action=f"delete {collection.name}")

        await collection.hooks.before_delete(db, user, record)
        await db.delete(record)
        await self._flush(db, collection, "delete")
        logger.info("Deleted %s record %s", collection.name, record_id)


# ── Singleton Instance ────────────────────────────────────────────────────
record_service = RecordService()
