"""Create core collections

Revision ID: 001
Revises: None
Create Date: 2026-01-05 00:00:00.000000+00:00

What:  Creates users, settings, patients, inventory, chief_complaints,
       diagnosis, encounters and disbursements.
How:   Plain `op.create_table`; column types match meds/models so
       `metadata.create_all` (tests) and this migration build the same schema.

Rollback: downgrade() drops the tables in reverse dependency order
(destructive: all clinic data is lost).
"""

from typing import List, Sequence, Union

import sqlalchemy as sa
from alembic import op

# revision identifiers
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def record_columns() -> List[sa.Column]:
    """id / created / updated, shared by every collection."""
    return [
        sa.Column("id", sa.String(15), primary_key=True),
        sa.Column("created", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated", sa.DateTime(timezone=True), nullable=False),
    ]


def created_index(table: str) -> None:
    op.create_index(f"ix_{table}_created", table, ["created"])


def upgrade() -> None:
    op.create_table(
        "users",
        *record_columns(),
        sa.Column("username", sa.String(150), nullable=False, unique=True),
        sa.Column("email", sa.String(255), nullable=False, unique=True),
        sa.Column("email_visibility", sa.Boolean(), nullable=False),
        sa.Column("name", sa.String(255), nullable=True),
        sa.Column("password_hash", sa.String(255), nullable=False),
        sa.Column("role", sa.String(20), nullable=False),
        sa.Column("verified", sa.Boolean(), nullable=False),
        sa.Column("is_superuser", sa.Boolean(), nullable=False),
    )
    created_index("users")

    op.create_table(
        "settings",
        *record_columns(),
        sa.Column("unit_display", sa.JSON(), nullable=False),
        sa.Column("display_preferences", sa.JSON(), nullable=False),
        sa.Column("last_updated", sa.DateTime(timezone=True), nullable=False),
        sa.Column(
            "updated_by",
            sa.String(15),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    created_index("settings")

    op.create_table(
        "patients",
        *record_columns(),
        sa.Column("first_name", sa.String(150), nullable=True),
        sa.Column("last_name", sa.String(150), nullable=True),
        sa.Column("dob", sa.Date(), nullable=True),
        sa.Column("gender", sa.String(50), nullable=False),
        sa.Column("age", sa.Integer(), nullable=True),
        sa.Column("smoker", sa.String(50), nullable=True),
        sa.Column("allergies", sa.Text(), nullable=True),
        sa.Column("pregnancy_status", sa.String(20), nullable=True),
    )
    created_index("patients")
    op.create_index("idx_patients_name", "patients", ["last_name", "first_name"])

    op.create_table(
        "inventory",
        *record_columns(),
        sa.Column("drug_name", sa.String(255), nullable=False),
        sa.Column("drug_category", sa.String(255), nullable=False),
        sa.Column("stock", sa.Float(), nullable=True),
        sa.Column("fixed_quantity", sa.Float(), nullable=False),
        sa.Column("unit_size", sa.String(100), nullable=True),
        sa.Column("dose", sa.String(100), nullable=True),
    )
    created_index("inventory")
    op.create_index("ix_inventory_drug_name", "inventory", ["drug_name"])

    for lookup in ("chief_complaints", "diagnosis"):
        op.create_table(
            lookup,
            *record_columns(),
            sa.Column("name", sa.String(255), nullable=False, unique=True),
        )
        created_index(lookup)

    op.create_table(
        "encounters",
        *record_columns(),
        sa.Column(
            "patient",
            sa.String(15),
            sa.ForeignKey("patients.id", ondelete="SET NULL"),
            nullable=True,
        ),
        # Vitals
        sa.Column("height", sa.Integer(), nullable=True),
        sa.Column("weight", sa.Float(), nullable=True),
        sa.Column("temperature", sa.Float(), nullable=True),
        sa.Column("heart_rate", sa.Integer(), nullable=True),
        sa.Column("systolic_pressure", sa.Integer(), nullable=True),
        sa.Column("diastolic_pressure", sa.Integer(), nullable=True),
        sa.Column("pulse_ox", sa.Integer(), nullable=True),
        # History & assessment; chief_complaint / diagnosis hold ID arrays
        sa.Column("past_medical_history", sa.Text(), nullable=True),
        sa.Column("allergies", sa.Text(), nullable=True),
        sa.Column("chief_complaint", sa.JSON(), nullable=False),
        sa.Column("diagnosis", sa.JSON(), nullable=False),
        sa.Column("other_chief_complaint", sa.Text(), nullable=True),
        sa.Column("other_diagnosis", sa.Text(), nullable=True),
        sa.Column("subjective_notes", sa.Text(), nullable=True),
        # Point-of-care tests
        sa.Column("urinalysis", sa.Boolean(), nullable=False),
        sa.Column("blood_sugar", sa.Boolean(), nullable=False),
        sa.Column("pregnancy_test", sa.Boolean(), nullable=False),
        sa.Column("urinalysis_result", sa.Text(), nullable=True),
        sa.Column("blood_sugar_result", sa.Text(), nullable=True),
        sa.Column("pregnancy_test_result", sa.Text(), nullable=True),
        # Edit lock
        sa.Column(
            "active_editor",
            sa.String(15),
            sa.ForeignKey("users.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("last_edit_activity", sa.DateTime(timezone=True), nullable=True),
    )
    created_index("encounters")
    op.create_index("ix_encounters_patient", "encounters", ["patient"])

    op.create_table(
        "disbursements",
        *record_columns(),
        sa.Column(
            "encounter",
            sa.String(15),
            sa.ForeignKey("encounters.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "medication",
            sa.String(15),
            sa.ForeignKey("inventory.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("quantity", sa.Float(), nullable=False),
        sa.Column("frequency", sa.String(10), nullable=True),
        sa.Column("frequency_hours", sa.Float(), nullable=True),
        sa.Column(
            "associated_diagnosis",
            sa.String(15),
            sa.ForeignKey("diagnosis.id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("multiplier", sa.Float(), nullable=True),
    )
    created_index("disbursements")
    op.create_index("ix_disbursements_encounter", "disbursements", ["encounter"])


def downgrade() -> None:
    for table in (
        "disbursements",
        "encounters",
        "diagnosis",
        "chief_complaints",
        "inventory",
        "patients",
        "settings",
        "users",
    ):
        op.drop_table(table)
