"""Seed reference data

Revision ID: 003
Revises: 002
Create Date: 2026-01-05 00:20:00.000000+00:00

What:  Inserts the default accounts, the clinic settings record, chief
       complaints, diagnoses, question categories/questions and a starter
       inventory (lists live in meds/seed_data.py).
How:   Every row is looked up by its natural key first, so running the
       upgrade against a database that already has some of the data only
       adds what is missing. Question `depends_on` links are resolved after
       all questions of a category exist.

Rollback: downgrade() deletes the seeded rows by the same natural keys, plus
the settings record.
"""

from datetime import datetime, timezone
from typing import Any, Dict, Optional, Sequence, Union

import sqlalchemy as sa
from alembic import op

from meds.models.base import new_record_id
from meds.seed_data import (
    CHIEF_COMPLAINTS,
    DEFAULT_DISPLAY_PREFERENCES,
    DEFAULT_PASSWORD,
    DEFAULT_UNIT_DISPLAY,
    DEFAULT_USERS,
    DIAGNOSES,
    QUESTION_CATEGORIES,
    SETTINGS_UPDATED_BY,
    STARTER_INVENTORY,
)
from meds.services.auth_service import hash_password

# revision identifiers
revision: str = "003"
down_revision: Union[str, None] = "002"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _record_table(name: str, *columns: sa.ColumnClause) -> sa.TableClause:
    """Lightweight table handle; typed so dates and JSON bind like the ORM's."""
    return sa.table(
        name,
        sa.column("id", sa.String()),
        sa.column("created", sa.DateTime(timezone=True)),
        sa.column("updated", sa.DateTime(timezone=True)),
        *columns,
    )


users = _record_table(
    "users",
    sa.column("username", sa.String()), sa.column("email", sa.String()),
    sa.column("email_visibility", sa.Boolean()), sa.column("name", sa.String()),
    sa.column("password_hash", sa.String()), sa.column("role", sa.String()),
    sa.column("verified", sa.Boolean()), sa.column("is_superuser", sa.Boolean()),
)
settings_table = _record_table(
    "settings",
    sa.column("unit_display", sa.JSON()), sa.column("display_preferences", sa.JSON()),
    sa.column("last_updated", sa.DateTime(timezone=True)), sa.column("updated_by", sa.String()),
)
chief_complaints = _record_table("chief_complaints", sa.column("name", sa.String()))
diagnosis = _record_table("diagnosis", sa.column("name", sa.String()))
categories = _record_table(
    "encounter_question_categories",
    sa.column("name", sa.String()), sa.column("order", sa.Float()),
    sa.column("type", sa.String()), sa.column("archived", sa.Boolean()),
)
questions = _record_table(
    "encounter_questions",
    sa.column("question_text", sa.Text()), sa.column("input_type", sa.String()),
    sa.column("description", sa.Text()), sa.column("options", sa.JSON()),
    sa.column("category", sa.String()), sa.column("order", sa.Float()),
    sa.column("required", sa.Boolean()), sa.column("depends_on", sa.String()),
    sa.column("archived", sa.Boolean()),
)
inventory = _record_table(
    "inventory",
    sa.column("drug_name", sa.String()), sa.column("drug_category", sa.String()),
    sa.column("stock", sa.Float()), sa.column("fixed_quantity", sa.Float()),
    sa.column("unit_size", sa.String()), sa.column("dose", sa.String()),
)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _find_id(conn, table, **where: Any) -> Optional[str]:
    query = sa.select(table.c.id)
    for key, value in where.items():
        query = query.where(table.c[key] == value)
    return conn.execute(query.limit(1)).scalar()


def _insert(conn, table, values: Dict[str, Any]) -> str:
    now = _now()
    record_id = new_record_id()
    conn.execute(sa.insert(table).values(id=record_id, created=now, updated=now, **values))
    return record_id


def upgrade() -> None:
    conn = op.get_bind()

    # ── Users ─────────────────────────────────────────────────────────────
    password_hash = hash_password(DEFAULT_PASSWORD)
    for email, username, name, role, is_superuser in DEFAULT_USERS:
        if _find_id(conn, users, email=email):
            continue
        _insert(conn, users, {
            "username": username,
            "email": email,
            "email_visibility": True,
            "name": name,
            "password_hash": password_hash,
            "role": role,
            "verified": True,
            "is_superuser": is_superuser,
        })

    # ── Settings ──────────────────────────────────────────────────────────
    if conn.execute(sa.select(sa.func.count()).select_from(settings_table)).scalar() == 0:
        _insert(conn, settings_table, {
            "unit_display": DEFAULT_UNIT_DISPLAY,
            "display_preferences": DEFAULT_DISPLAY_PREFERENCES,
            "last_updated": _now(),
            "updated_by": _find_id(conn, users, email=SETTINGS_UPDATED_BY),
        })

    # ── Lookup lists ──────────────────────────────────────────────────────
    for table, names in ((chief_complaints, CHIEF_COMPLAINTS), (diagnosis, DIAGNOSES)):
        for name in names:
            if not _find_id(conn, table, name=name):
                _insert(conn, table, {"name": name})

    # ── Questions ─────────────────────────────────────────────────────────
    for category in QUESTION_CATEGORIES:
        category_id = _find_id(conn, categories, name=category["name"])
        if category_id is None:
            category_id = _insert(conn, categories, {
                "name": category["name"],
                "order": category["order"],
                "type": category["type"],
                "archived": False,
            })

        ids_by_text: Dict[str, str] = {}
        for question in category["questions"]:
            text = question["question_text"]
            question_id = _find_id(conn, questions, category=category_id, question_text=text)
            if question_id is None:
                question_id = _insert(conn, questions, {
                    "question_text": text,
                    "input_type": question["input_type"],
                    "description": question.get("description"),
                    "options": question.get("options"),
                    "category": category_id,
                    "order": question["order"],
                    "required": question.get("required", False),
                    "depends_on": None,
                    "archived": False,
                })
            ids_by_text[text] = question_id

        for question in category["questions"]:
            parent = question.get("depends_on")
            if parent:
                conn.execute(
                    sa.update(questions)
                    .where(questions.c.id == ids_by_text[question["question_text"]])
                    .values(depends_on=ids_by_text[parent])
                )

    # ── Inventory ─────────────────────────────────────────────────────────
    for drug_name, drug_category, stock, fixed_quantity, unit_size, dose in STARTER_INVENTORY:
        if _find_id(conn, inventory, drug_name=drug_name, unit_size=unit_size, dose=dose):
            continue
        _insert(conn, inventory, {
            "drug_name": drug_name,
            "drug_category": drug_category,
            "stock": stock,
            "fixed_quantity": fixed_quantity,
            "unit_size": unit_size,
            "dose": dose,
        })


def downgrade() -> None:
    conn = op.get_bind()

    for drug_name, _, _, _, unit_size, dose in STARTER_INVENTORY:
        conn.execute(
            sa.delete(inventory).where(
                inventory.c.drug_name == drug_name,
                inventory.c.unit_size == unit_size,
                inventory.c.dose == dose,
            )
        )

    for category in QUESTION_CATEGORIES:
        category_id = _find_id(conn, categories, name=category["name"])
        if category_id is None:
            continue
        texts = [q["question_text"] for q in category["questions"]]
        # Dependent questions first
        conn.execute(
            sa.delete(questions).where(
                questions.c.category == category_id,
                questions.c.question_text.in_(texts),
                questions.c.depends_on.is_not(None),
            )
        )
        conn.execute(
            sa.delete(questions).where(
                questions.c.category == category_id,
                questions.c.question_text.in_(texts),
            )
        )
        remaining = conn.execute(
            sa.select(sa.func.count()).select_from(questions).where(
                questions.c.category == category_id
            )
        ).scalar()
        if remaining == 0:
            conn.execute(sa.delete(categories).where(categories.c.id == category_id))

    conn.execute(sa.delete(diagnosis).where(diagnosis.c.name.in_(DIAGNOSES)))
    conn.execute(sa.delete(chief_complaints).where(chief_complaints.c.name.in_(CHIEF_COMPLAINTS)))
    conn.execute(sa.delete(settings_table))
    conn.execute(sa.delete(users).where(users.c.email.in_([u[0] for u in DEFAULT_USERS])))
