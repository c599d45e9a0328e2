"""
MEDS Backend — Disbursement Stock Accounting Tests
====================================================

What:  Inventory stock must always equal the starting count minus every
       disbursement still on record, whatever sequence of create / update /
       delete produced them.

What we test:
    ✅ create subtracts, delete restores
    ✅ quantity change adjusts by the difference
    ✅ medication swap returns stock to the old item
    ✅ quantity from fixed_quantity × multiplier
    ✅ insufficient stock → 409 and nothing written
    ✅ untracked items (stock = null) are never adjusted
    ✅ Q#H needs frequency_hours
    ✅ adjust_stock() unit behavior
"""

import pytest

from meds.exceptions import InsufficientStockError
from meds.models import InventoryItem
from meds.services.disbursement_service import adjust_stock

DISBURSEMENTS = "/api/collections/disbursements/records"


async def _item(client, headers, **fields):
    payload = {"drug_name": "Acetaminophen", "drug_category": "Pain", "fixed_quantity": 10, **fields}
    response = await client.post("/api/collections/inventory/records", json=payload, headers=headers)
    assert response.status_code == 200, response.text
    return response.json()


async def _stock(client, headers, item_id):
    response = await client.get(f"/api/collections/inventory/records/{item_id}", headers=headers)
    return response.json()["stock"]


class TestDisbursementHooks:
    @pytest.mark.asyncio
    async def test_create_update_delete(self, client, headers):
        h = headers["pharmacy"]
        item = await _item(client, h, stock=100)

        response = await client.post(
            DISBURSEMENTS, json={"medication": item["id"], "quantity": 5}, headers=h
        )
        assert response.status_code == 200
        disbursement = response.json()
        assert await _stock(client, h, item["id"]) == 95

        response = await client.patch(
            f"{DISBURSEMENTS}/{disbursement['id']}", json={"quantity": 8}, headers=h
        )
        assert response.status_code == 200
        assert await _stock(client, h, item["id"]) == 92

        response = await client.patch(
            f"{DISBURSEMENTS}/{disbursement['id']}", json={"quantity": 2}, headers=h
        )
        assert await _stock(client, h, item["id"]) == 98

        response = await client.delete(f"{DISBURSEMENTS}/{disbursement['id']}", headers=h)
        assert response.status_code == 204
        assert await _stock(client, h, item["id"]) == 100

    @pytest.mark.asyncio
    async def test_medication_swap(self, client, headers):
        h = headers["pharmacy"]
        first = await _item(client, h, stock=100, dose="325 mg")
        second = await _item(client, h, stock=50, dose="500 mg")

        response = await client.post(
            DISBURSEMENTS, json={"medication": first["id"], "quantity": 10}, headers=h
        )
        disbursement_id = response.json()["id"]

        response = await client.patch(
            f"{DISBURSEMENTS}/{disbursement_id}",
            json={"medication": second["id"], "quantity": 12},
            headers=h,
        )

        assert response.status_code == 200
        assert await _stock(client, h, first["id"]) == 100
        assert await _stock(client, h, second["id"]) == 38

    @pytest.mark.asyncio
    async def test_quantity_from_multiplier(self, client, headers):
        h = headers["provider"]
        item = await _item(client, h, stock=100, fixed_quantity=14)

        response = await client.post(
            DISBURSEMENTS, json={"medication": item["id"], "multiplier": 2}, headers=h
        )

        assert response.status_code == 200
        assert response.json()["quantity"] == 28
        assert await _stock(client, h, item["id"]) == 72

        response = await client.patch(
            f"{DISBURSEMENTS}/{response.json()['id']}", json={"multiplier": 3}, headers=h
        )
        assert response.json()["quantity"] == 42
        assert await _stock(client, h, item["id"]) == 58

    @pytest.mark.asyncio
    async def test_quantity_or_multiplier_required(self, client, headers):
        item = await _item(client, headers["provider"], stock=100)

        response = await client.post(
            DISBURSEMENTS, json={"medication": item["id"]}, headers=headers["provider"]
        )

        assert response.status_code == 400
        assert response.json()["details"]["field"] == "quantity"

    @pytest.mark.asyncio
    async def test_insufficient_stock_rolls_back(self, client, headers):
        h = headers["pharmacy"]
        item = await _item(client, h, stock=3)

        response = await client.post(
            DISBURSEMENTS, json={"medication": item["id"], "quantity": 5}, headers=h
        )

        assert response.status_code == 409
        body = response.json()
        assert body["error"] == "insufficient_stock"
        assert body["details"]["available"] == 3
        assert body["details"]["needed"] == 5
        assert await _stock(client, h, item["id"]) == 3

        response = await client.get(DISBURSEMENTS, headers=h)
        assert response.json()["totalItems"] == 0

    @pytest.mark.asyncio
    async def test_untracked_item(self, client, headers):
        h = headers["pharmacy"]
        item = await _item(client, h, drug_name="0.9 NS", stock=None)

        response = await client.post(
            DISBURSEMENTS, json={"medication": item["id"], "quantity": 2}, headers=h
        )

        assert response.status_code == 200
        assert await _stock(client, h, item["id"]) is None

    @pytest.mark.asyncio
    async def test_unknown_frequency_rejected(self, client, headers):
        item = await _item(client, headers["provider"], stock=100)

        response = await client.post(
            DISBURSEMENTS,
            json={"medication": item["id"], "quantity": 1, "frequency": "HOURLY"},
            headers=headers["provider"],
        )

        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_every_n_hours_needs_hours(self, client, headers):
        h = headers["provider"]
        item = await _item(client, h, stock=100)
        base = {"medication": item["id"], "quantity": 1, "frequency": "Q#H"}

        response = await client.post(DISBURSEMENTS, json=base, headers=h)
        assert response.status_code == 400
        assert await _stock(client, h, item["id"]) == 100

        response = await client.post(DISBURSEMENTS, json={**base, "frequency_hours": 6}, headers=h)
        assert response.status_code == 200

        # The stored interval still applies when only the frequency is resent
        response = await client.patch(
            f"{DISBURSEMENTS}/{response.json()['id']}", json={"frequency": "Q#H"}, headers=h
        )
        assert response.status_code == 200
        assert response.json()["frequency_hours"] == 6
        assert response.status_code == 400


class TestAdjustStock:
    def test_subtract(self):
        item = InventoryItem(drug_name="Loratadine", stock=10)
        adjust_stock(item, -4)
        assert item.stock == 6

    def test_below_zero_raises(self):
        item = InventoryItem(id="i" * 15, drug_name="Loratadine", stock=1)
        with pytest.raises(InsufficientStockError) as exc_info:
            adjust_stock(item, -2)
        assert exc_info.value.status_code == 409
        assert item.stock == 1

    def test_untracked_and_missing_items_are_ignored(self):
        item = InventoryItem(drug_name="0.9 NS", stock=None)
        adjust_stock(item, -100)
        adjust_stock(None, -100)
        assert item.stock is None
