"""Create questionnaire and visit queue collections

Revision ID: 002
Revises: 001
Create Date: 2026-01-05 00:10:00.000000+00:00

What:  Creates encounter_question_categories, encounter_questions,
       encounter_responses, bulk_distributions, bulk_distribution_items and
       queue, then installs the queue line-number trigger.
How:   The trigger SQL comes from meds.models.queue, the same statements
       `metadata.create_all` runs, picked for the connected dialect.

Rollback: downgrade() removes the trigger, then drops the tables.
"""

from typing import List, Sequence, Union

import sqlalchemy as sa
from alembic import op

from meds.models.queue import (
    create_line_number_trigger_statements,
    drop_line_number_trigger_statements,
)

# revision identifiers
revision: str = "002"
down_revision: Union[str, None] = "001"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def record_columns() -> List[sa.Column]:
    return [
        sa.Column("id", sa.String(15), primary_key=True),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated", sa.DateTime(timezone=True), nullable=False),
    ]


def relation(name: str, target: str, ondelete: str, nullable: bool) -> sa.Column:
    return sa.Column(
        name,
        sa.String(15),
        sa.ForeignKey(f"{target}.id", ondelete=ondelete),
        nullable=nullable,
    )


def created_index(table: str) -> None:
    op.create_index(f"ix_{table}_created", table, ["created"])


def upgrade() -> None:
    op.create_table(
        "encounter_question_categories",
        *record_columns(),
        sa.Column("name", sa.String(255), nullable=False, unique=True),
        sa.Column("order", sa.Float(), nullable=False),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("archived", sa.Boolean(), nullable=False),
    )
    created_index("encounter_question_categories")

    op.create_table(
        "encounter_questions",
        *record_columns(),
        sa.Column("question_text", sa.Text(), nullable=False),
        sa.Column("input_type", sa.String(20), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("options", sa.JSON(), nullable=True),
        relation("category", "encounter_question_categories", "RESTRICT", nullable=False),
        sa.Column("order", sa.Float(), nullable=False),
        sa.Column("required", sa.Boolean(), nullable=False),
        relation("depends_on", "encounter_questions", "SET NULL", nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False),
    )
    created_index("encounter_questions")
    op.create_index("ix_encounter_questions_category", "encounter_questions", ["category"])

    op.create_table(
        "encounter_responses",
        *record_columns(),
        relation("encounter", "encounters", "RESTRICT", nullable=False),
        relation("question", "encounter_questions", "RESTRICT", nullable=False),
        sa.Column("response_value", sa.JSON(), nullable=False),
    )
    created_index("encounter_responses")
    op.create_index("ix_encounter_responses_encounter", "encounter_responses", ["encounter"])

    op.create_table(
        "bulk_distributions",
        *record_columns(),
        sa.Column("date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
    )
    created_index("bulk_distributions")

    op.create_table(
        "bulk_distribution_items",
        *record_columns(),
        relation("distribution", "bulk_distributions", "RESTRICT", nullable=False),
        relation("question", "encounter_questions", "RESTRICT", nullable=False),
        sa.Column("quantity", sa.Float(), nullable=False),
    )
    created_index("bulk_distribution_items")
    op.create_index(
        "ix_bulk_distribution_items_distribution", "bulk_distribution_items", ["distribution"]
    )

    op.create_table(
        "queue",
        *record_columns(),
        relation("patient", "patients", "RESTRICT", nullable=False),
        sa.Column("status", sa.String(30), nullable=False),
        sa.Column("line_number", sa.Integer(), nullable=True),
        relation("assigned_to", "users", "SET NULL", nullable=True),
        sa.Column("intended_provider", sa.String(30), nullable=True),
        sa.Column("check_in_time", sa.DateTime(timezone=True), nullable=False),
        sa.Column("start_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("end_time", sa.DateTime(timezone=True), nullable=True),
        sa.Column("priority", sa.Integer(), nullable=False),
        relation("encounter", "encounters", "SET NULL", nullable=True),
    )
    created_index("queue")
    op.create_index("ix_queue_patient", "queue", ["patient"])
    op.create_index("idx_queue_status", "queue", ["status"])

    for statement in create_line_number_trigger_statements(op.get_bind().dialect.name):
        op.execute(statement)


def downgrade() -> None:
    for statement in drop_line_number_trigger_statements(op.get_bind().dialect.name):
        op.execute(statement)

    for table in (
        "queue",
        "bulk_distribution_items",
        "bulk_distributions",
        "encounter_responses",
        "encounter_questions",
        "encounter_question_categories",
    ):
        op.drop_table(table)
