"""MEDS Backend — Inventory and Disbursement Schemas."""

from typing import Literal, Optional

from pydantic import BaseModel, Field, model_validator

from meds.models.inventory import DOSING_FREQUENCIES


class InventoryItemCreate(BaseModel):
    drug_name: str = Field(min_length=1, max_length=255)
    drug_category: str = Field(min_length=1, max_length=255)
    stock: Optional[float] = Field(default=None, ge=0)
    fixed_quantity: float = Field(ge=0)
    unit_size: Optional[str] = Field(default=None, max_length=100)
    dose: Optional[str] = Field(default=None, max_length=100)


class InventoryItemUpdate(InventoryItemCreate):
    drug_name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    drug_category: Optional[str] = Field(default=None, min_length=1, max_length=255)
    fixed_quantity: Optional[float] = Field(default=None, ge=0)


class DisbursementCreate(BaseModel):
    """
    `quantity` may be left out when `multiplier` is given; the stock hook then
    computes it as the item's `fixed_quantity × multiplier`.
    """

    encounter: Optional[str] = None
    medication: Optional[str] = None
    quantity: Optional[float] = Field(default=None, ge=0)
    frequency: Optional[Literal[DOSING_FREQUENCIES]] = None
    frequency_hours: Optional[float] = Field(default=None, ge=1, le=24)
    associated_diagnosis: Optional[str] = None
    notes: Optional[str] = None
    multiplier: Optional[float] = Field(default=None, ge=1)

    @model_validator(mode="after")
    def every_n_hours_needs_hours(self):
        if self.frequency == "Q#H" and self.frequency_hours is None:
            raise ValueError("frequency_hours is required when frequency is Q#H")
        return self


class DisbursementUpdate(DisbursementCreate):
    @model_validator(mode="after")
    def every_n_hours_needs_hours(self):
        # The stored record may already carry the interval
        if (
            self.frequency == "Q#H"
            and "frequency_hours" in self.model_fields_set
            and self.frequency_hours is None
        ):
            raise ValueError("frequency_hours is required when frequency is Q#H")
        return self
