"""
MEDS Backend — Disbursement Stock Accounting
==============================================

What:  Keeps `inventory.stock` in step with the `disbursements` collection.
How:   Record hooks adjust the linked inventory row inside the request
       transaction; on PostgreSQL the row is locked (`SELECT ... FOR UPDATE`)
       so two pharmacists dispensing the same drug cannot both read the old
       count.

    create   stock -= quantity
    delete   stock += quantity
    update   same item:      stock -= (new quantity - old quantity)
             item changed:   old item += old quantity, new item -= new quantity

Quantity from multiplier:
    A disbursement may be posted with only `multiplier` (e.g. "2 courses");
    the quantity is then `fixed_quantity × multiplier` of the item.

Items with `stock = NULL` are untracked and never adjusted.
"""

import logging
from typing import Any, Dict, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from meds.exceptions import InsufficientStockError, ValidationError
from meds.models.inventory import Disbursement, InventoryItem
from meds.models.user import User
from meds.services.hooks import RecordHooks

logger = logging.getLogger(__name__)


async def _lock_item(db: AsyncSession, item_id: Optional[str]) -> Optional[InventoryItem]:
    if item_id is None:
        return None
    result = await db.execute(
        select(InventoryItem).where(InventoryItem.id == item_id).with_for_update()
    )
    return result.scalars().first()


def adjust_stock(item: Optional[InventoryItem], delta: float) -> None:
    """
    Add `delta` (negative to dispense) to the item's stock.

    Raises:
        InsufficientStockError: The result would be below zero (→ 409)
    """
    if item is None or item.stock is None or delta == 0:
        return
    new_stock = item.stock + delta
    if new_stock < 0:
        raise InsufficientStockError(
            drug_name=item.drug_name,
            available=item.stock,
            needed=-delta,
            context={"medication": item.id},
        )
    logger.debug("Stock for %s (%s): %g → %g", item.drug_name, item.id, item.stock, new_stock)
    item.stock = new_stock


def _quantity_from_multiplier(item: Optional[InventoryItem], multiplier: Optional[float]) -> float:
    if item is None or multiplier is None:
        raise ValidationError(
            message="quantity is required unless medication and multiplier are given.",
            field="quantity",
        )
    return item.fixed_quantity * multiplier


class DisbursementHooks(RecordHooks):
    async def before_create(
        self, db: AsyncSession, user: Optional[User], data: Dict[str, Any]
    ) -> None:
        item = await _lock_item(db, data.get("medication"))
        if data.get("quantity") is None:
            data["quantity"] = _quantity_from_multiplier(item, data.get("multiplier"))
        adjust_stock(item, -data["quantity"])

    async def before_update(
        self,
        db: AsyncSession,
        user: Optional[User],
        record: Disbursement,
        changes: Dict[str, Any],
    ) -> None:
        old_item_id, old_quantity = record.medication, record.quantity
        new_item_id = changes.get("medication", old_item_id)

        new_item = await _lock_item(db, new_item_id)
        quantity_cleared = "quantity" in changes and changes["quantity"] is None
        multiplier_only = "quantity" not in changes and changes.get("multiplier") is not None
        if quantity_cleared or multiplier_only:
            changes["quantity"] = _quantity_from_multiplier(
                new_item, changes.get("multiplier", record.multiplier)
            )
        new_quantity = changes.get("quantity", old_quantity)

        if new_item_id == old_item_id:
            adjust_stock(new_item, old_quantity - new_quantity)
            return

        # Medication swapped: return the old stock first, then take the new
        old_item = await _lock_item(db, old_item_id)
        adjust_stock(old_item, old_quantity)
        adjust_stock(new_item, -new_quantity)

    async def before_delete(
        self, db: AsyncSession, user: Optional[User], record: Disbursement
    ) -> None:
        item = await _lock_item(db, record.medication)
        adjust_stock(item, record.quantity)


disbursement_hooks = DisbursementHooks()
