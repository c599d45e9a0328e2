"""
MEDS Backend — Visit Queue Model
==================================

What:  ORM model for the `queue` collection: one row per patient visit,
       from check-in to checkout.

Line numbers:
    Each entry gets a per-day position ("you are number 12 today"). When an
    entry is inserted without `line_number`, the database assigns
    `COALESCE(MAX(line_number), 0) + 1` over the entries created on the same
    UTC calendar day. An explicitly supplied line number is kept as-is.

    The rule lives in a trigger so it holds for every writer (API, CLI,
    admin SQL), not just this process:

    SQLite      AFTER INSERT ... WHEN NEW.line_number IS NULL → UPDATE the row.
                SQLite serializes writers, so the MAX read and the update
                cannot interleave with another insert.
    PostgreSQL  BEFORE INSERT trigger; a transaction-scoped advisory lock
                keyed on the day serializes concurrent check-ins.

    The DDL is attached to the table's `after_create` event (used by
    `metadata.create_all`) and reused verbatim by the Alembic migration.
    Callers holding an ORM instance must refresh `line_number` after flush.
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import DDL, DateTime, ForeignKey, Index, Integer, String, event
from sqlalchemy.orm import Mapped, mapped_column

from meds.database import Base
from meds.models.base import RecordMixin

QUEUE_STATUSES = (
    "checked_in",      # patient arrived
    "with_care_team",  # being seen
    "ready_pharmacy",  # waiting for pharmacy
    "with_pharmacy",
    "at_checkout",     # collecting standard items
    "completed",
)

CARE_TEAMS = tuple(f"team{i}" for i in range(1, 11)) + ("gyn_team", "optometry_team")

DEFAULT_PRIORITY = 3


class QueueEntry(RecordMixin, Base):
    __tablename__ = "queue"

    patient: Mapped[str] = mapped_column(
        ForeignKey("patients.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    status: Mapped[str] = mapped_column(String(30), nullable=False, default="checked_in")
    # Nullable at the database level: the trigger fills it after insert
    line_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    assigned_to: Mapped[Optional[str]] = mapped_column(
        ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    intended_provider: Mapped[Optional[str]] = mapped_column(String(30), nullable=True)
    check_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    start_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    end_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    priority: Mapped[int] = mapped_column(Integer, nullable=False, default=DEFAULT_PRIORITY)
    encounter: Mapped[Optional[str]] = mapped_column(
        ForeignKey("encounters.id", ondelete="SET NULL"), nullable=True
    )

    __table_args__ = (
        Index("idx_queue_status", "status"),
    )


# ══════════════════════════════════════════════════════════════════════════
# Line Number Trigger DDL
# ══════════════════════════════════════════════════════════════════════════

LINE_NUMBER_TRIGGER = "tr_queue_line_number"
LINE_NUMBER_FUNCTION = "queue_assign_line_number"

SQLITE_CREATE_TRIGGER = f"""
CREATE TRIGGER IF NOT EXISTS {LINE_NUMBER_TRIGGER}
AFTER INSERT ON queue
WHEN NEW.line_number IS NULL
BEGIN
    UPDATE queue
    SET line_number = (
        SELECT COALESCE(MAX(line_number), 0) + 1
        FROM queue
        WHERE date(created) = date(NEW.created)
    )
    WHERE id = NEW.id;
END
"""

POSTGRES_CREATE_FUNCTION = f"""
CREATE OR REPLACE FUNCTION {LINE_NUMBER_FUNCTION}() RETURNS trigger AS $$
BEGIN
    IF NEW.line_number IS NULL THEN
        PERFORM pg_advisory_xact_lock(
            hashtext('queue_line_number:' || CAST(CAST(NEW.created AT TIME ZONE 'UTC' AS date) AS text))
        );
        SELECT COALESCE(MAX(line_number), 0) + 1 INTO NEW.line_number
        FROM queue
        WHERE CAST(created AT TIME ZONE 'UTC' AS date) = CAST(NEW.created AT TIME ZONE 'UTC' AS date);
    END IF;
    RETURN NEW;
END;
$$ LANGUAGE plpgsql
"""

POSTGRES_CREATE_TRIGGER = f"""
CREATE TRIGGER {LINE_NUMBER_TRIGGER}
BEFORE INSERT ON queue
FOR EACH ROW EXECUTE FUNCTION {LINE_NUMBER_FUNCTION}()
"""


def create_line_number_trigger_statements(dialect_name: str) -> List[str]:
    """SQL statements that install the line-number trigger for `dialect_name`."""
    if dialect_name == "sqlite":
        return [SQLITE_CREATE_TRIGGER]
    if dialect_name == "postgresql":
        return [POSTGRES_CREATE_FUNCTION, POSTGRES_CREATE_TRIGGER]
    raise NotImplementedError(f"No queue line-number trigger for dialect '{dialect_name}'")


def drop_line_number_trigger_statements(dialect_name: str) -> List[str]:
    if dialect_name == "sqlite":
        return [f"DROP TRIGGER IF EXISTS {LINE_NUMBER_TRIGGER}"]
    if dialect_name == "postgresql":
        return [
            f"DROP TRIGGER IF EXISTS {LINE_NUMBER_TRIGGER} ON queue",
            f"DROP FUNCTION IF EXISTS {LINE_NUMBER_FUNCTION}()",
        ]
    raise NotImplementedError(f"No queue line-number trigger for dialect '{dialect_name}'")


for _dialect in ("sqlite", "postgresql"):
    for _statement in create_line_number_trigger_statements(_dialect):
        event.listen(
            QueueEntry.__table__,
            "after_create",
            DDL(_statement).execute_if(dialect=_dialect),
        )
