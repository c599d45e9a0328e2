"""
MEDS Backend — Inventory and Disbursement Models
==================================================

What:  ORM models for `inventory` (one row per drug/strength/unit) and
       `disbursements` (medication handed out during an encounter).

Stock:
    `stock` is nullable: items without a count (e.g. bulk IV fluids) are
    untracked and never adjusted. For tracked items the disbursement hooks
    keep `stock` equal to the starting count minus everything disbursed.
"""

from typing import Optional

from sqlalchemy import Float, ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from meds.database import Base
from meds.models.base import RecordMixin

DOSING_FREQUENCIES = ("QD", "BID", "TID", "QID", "QHS", "QAM", "QPM", "PRN", "Q#H", "STAT")


class InventoryItem(RecordMixin, Base):
    __tablename__ = "inventory"

    drug_name: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    drug_category: Mapped[str] = mapped_column(String(255), nullable=False)
    stock: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    fixed_quantity: Mapped[float] = mapped_column(Float, nullable=False)
    unit_size: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    dose: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)


class Disbursement(RecordMixin, Base):
    __tablename__ = "disbursements"

    encounter: Mapped[Optional[str]] = mapped_column(
        ForeignKey("encounters.id", ondelete="SET NULL"), nullable=True, index=True
    )
    medication: Mapped[Optional[str]] = mapped_column(
        ForeignKey("inventory.id", ondelete="SET NULL"), nullable=True
    )
    quantity: Mapped[float] = mapped_column(Float, nullable=False)
    frequency: Mapped[Optional[str]] = mapped_column(String(10), nullable=True)
    frequency_hours: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    associated_diagnosis: Mapped[Optional[str]] = mapped_column(
        ForeignKey("diagnosis.id", ondelete="SET NULL"), nullable=True
    )
    notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    multiplier: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
