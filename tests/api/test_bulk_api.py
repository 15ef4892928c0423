"""API tests for bulk adjustment and export endpoints."""

import csv
import io
from unittest.mock import MagicMock

from stockledger.api.dependencies import get_app_settings
from stockledger.api.main import app

SHEET = "Product ID,Adjustment Quantity,Unit Cost,Reason\nPROD001,+5,2.00,Restock\nX,+1,1,R\n"


class TestBulkAdjustmentsAPI:
    async def test_json_submission(self, client, registered, make_product):
        await registered(make_product(stock=10))
        response = await client.post(
            "/api/bulk/adjustments", json={"actor_id": "importer", "content": SHEET}
        )
        assert response.status_code == 200
        data = response.json()
        assert data["successful"] == 1
        assert data["committed_rows"] == [1]
        assert data["errors"] == [
            {"row": 2, "product_id": "X", "error": "Product not found", "partial": False}
        ]

    async def test_file_upload(self, client, registered, make_product, product_store):
        await registered(make_product(stock=10))
        response = await client.post(
            "/api/bulk/adjustments/upload",
            files={"file": ("adjustments.csv", SHEET.encode("utf-8-sig"), "text/csv")},
            data={"actor_id": "importer"},
        )
        assert response.status_code == 200
        assert response.json()["successful"] == 1
        assert product_store.products["PROD001"].current_stock == 15

    async def test_non_csv_rejected(self, client):
        response = await client.post(
            "/api/bulk/adjustments/upload",
            files={"file": ("adjustments.xlsx", b"PK", "application/octet-stream")},
            data={"actor_id": "importer"},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "BAD_REQUEST"

    async def test_non_utf8_rejected(self, client):
        response = await client.post(
            "/api/bulk/adjustments/upload",
            files={"file": ("adjustments.csv", b"\xff\xfe\xfa", "text/csv")},
            data={"actor_id": "importer"},
        )
        assert response.status_code == 400

    async def test_oversized_upload_rejected(self, client):
        settings = MagicMock()
        settings.api.max_upload_size = 10
        app.dependency_overrides[get_app_settings] = lambda: settings
        try:
            response = await client.post(
                "/api/bulk/adjustments/upload",
                files={"file": ("adjustments.csv", SHEET.encode(), "text/csv")},
                data={"actor_id": "importer"},
            )
        finally:
            app.dependency_overrides.pop(get_app_settings, None)
        assert response.status_code == 413
        assert response.json()["error_code"] == "PAYLOAD_TOO_LARGE"

    async def test_missing_headers_returns_400(self, client):
        response = await client.post(
            "/api/bulk/adjustments",
            json={"actor_id": "importer", "content": "Product ID\nPROD001\n"},
        )
        assert response.status_code == 400
        data = response.json()
        assert data["error_code"] == "MISSING_HEADERS"
        assert "Adjustment Quantity" in data["message"]

    async def test_empty_sheet_returns_400(self, client):
        response = await client.post(
            "/api/bulk/adjustments", json={"actor_id": "importer", "content": ""}
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "EMPTY_INPUT"


class TestTemplatesAndExportsAPI:
    async def test_template(self, client):
        data = (await client.get("/api/bulk/template")).json()
        assert data["headers"][0] == "Product ID"
        assert len(data["sample_data"]) == 3

    async def test_template_csv(self, client):
        response = await client.get("/api/bulk/template.csv")
        assert response.headers["content-type"].startswith("text/csv")
        assert "inventory-adjustment-template.csv" in response.headers["content-disposition"]

    async def test_valuation_export(self, client, registered, make_product):
        await registered(make_product(stock=4, wac=2.5))
        response = await client.get("/api/bulk/export/valuation")

        rows = list(csv.reader(io.StringIO(response.text)))
        assert rows[0][0] == "Product ID"
        assert rows[1][:6] == ["PROD001", "Product PROD001", "Uncategorized", "4", "2.50", "10.00"]
        assert "inventory-valuation-" in response.headers["content-disposition"]

    async def test_transaction_export(self, client, registered, make_product, movement_service):
        await registered(make_product(stock=10))
        await movement_service.replenish("PROD001", 5, 3.0, "buyer")

        response = await client.get("/api/bulk/export/transactions", params={"type": "purchase"})

        rows = list(csv.reader(io.StringIO(response.text)))
        assert len(rows) == 2
        assert rows[1][3] == "purchase"
