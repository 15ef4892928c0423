"""API tests for inventory endpoints."""

from stockledger.core.entities.inventory import TransactionType


class TestProductsAPI:
    async def test_register_returns_201(self, client):
        response = await client.post(
            "/api/inventory/products",
            json={
                "product_id": "PROD001",
                "name": "Lavender Essential Oil",
                "current_stock": 100,
                "weighted_average_cost": 15.0,
            },
        )
        assert response.status_code == 201
        data = response.json()
        assert data["product_id"] == "PROD001"
        assert data["total_cost_value"] == 1500.0
        assert data["version"] == 0

    async def test_duplicate_returns_409(self, client, registered, make_product):
        await registered(make_product())
        response = await client.post("/api/inventory/products", json={"product_id": "PROD001"})
        assert response.status_code == 409
        assert response.json()["error_code"] == "PRODUCT_EXISTS"

    async def test_unknown_product_returns_404(self, client):
        response = await client.get("/api/inventory/products/NOPE")
        assert response.status_code == 404
        data = response.json()
        assert data["error_code"] == "PRODUCT_NOT_FOUND"
        assert data["detail"] == "product_id=NOPE"
        assert data["path"] == "/api/inventory/products/NOPE"
        assert data["hint"]

    async def test_list_products(self, client, registered, make_product):
        await registered(make_product("A"), make_product("B", is_active=False))
        response = await client.get("/api/inventory/products", params={"active_only": True})
        assert [p["product_id"] for p in response.json()] == ["A"]

    async def test_pricing(self, client, registered, make_product):
        await registered(make_product(wac=10.0, selling_price=12.0))

        default = (await client.get("/api/inventory/products/PROD001/pricing")).json()
        custom = (
            await client.get("/api/inventory/products/PROD001/pricing", params={"margin": 25})
        ).json()

        assert default["recommended_price"] == 14.0
        assert default["current_margin"] == 16.67
        assert default["is_profitable"] is True
        assert custom["recommended_price"] == 12.5

    async def test_request_id_header(self, client):
        response = await client.get("/api/inventory/products")
        assert len(response.headers["X-Request-ID"]) == 8


class TestMovementsAPI:
    async def test_replenish(self, client, registered, make_product):
        await registered(make_product(stock=100, wac=10.0))
        response = await client.post(
            "/api/inventory/replenish",
            json={"product_id": "PROD001", "quantity": 50, "unit_cost": 25.0, "actor_id": "buyer"},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["new_stock"] == 150
        assert data["new_wac"] == 15.0
        assert data["transaction"]["type"] == "purchase"

    async def test_reduce(self, client, registered, make_product):
        await registered(make_product(stock=100, wac=15.0))
        response = await client.post(
            "/api/inventory/reduce",
            json={"product_id": "PROD001", "quantity": 30, "actor_id": "till"},
        )
        assert response.status_code == 200
        assert response.json()["transaction"]["total_cost"] == -450.0

    async def test_insufficient_stock_returns_409(self, client, registered, make_product):
        await registered(make_product(stock=5))
        response = await client.post(
            "/api/inventory/reduce",
            json={"product_id": "PROD001", "quantity": 6, "actor_id": "till"},
        )
        assert response.status_code == 409
        data = response.json()
        assert data["error_code"] == "INSUFFICIENT_STOCK"
        assert "available=5" in data["detail"]

    async def test_zero_quantity_fails_validation(self, client):
        response = await client.post(
            "/api/inventory/reduce",
            json={"product_id": "PROD001", "quantity": 0, "actor_id": "till"},
        )
        assert response.status_code == 422
        assert response.json()["error_code"] == "VALIDATION_ERROR"

    async def test_adjust_correction(self, client, registered, make_product):
        await registered(make_product(stock=100))
        response = await client.post(
            "/api/inventory/adjust",
            json={
                "product_id": "PROD001",
                "mode": "correction",
                "quantity": 42,
                "reason": "Stock count",
                "actor_id": "counter",
            },
        )
        assert response.status_code == 200
        assert response.json()["new_stock"] == 42
        assert response.json()["transaction"]["quantity"] == -58

    async def test_quick_transaction(self, client, registered, make_product):
        await registered(make_product(stock=10))
        response = await client.post(
            "/api/inventory/transactions",
            json={"product_id": "PROD001", "type": "sale", "quantity": 2, "actor_id": "scanner"},
        )
        assert response.status_code == 201
        assert response.json()["transaction"]["reference"] == "barcode-quick-sale"

    async def test_quick_transfer_rejected(self, client, registered, make_product):
        await registered(make_product())
        response = await client.post(
            "/api/inventory/transactions",
            json={"product_id": "PROD001", "type": "transfer", "quantity": 2, "actor_id": "s"},
        )
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INPUT"

    async def test_transfer(self, client, registered, make_product):
        await registered(make_product("SRC", stock=100), make_product("DST", stock=0))
        response = await client.post(
            "/api/inventory/transfer",
            json={
                "source_product_id": "SRC",
                "destination_product_id": "DST",
                "quantity": 30,
                "actor_id": "mover",
            },
        )
        assert response.status_code == 200
        data = response.json()
        assert data["source"]["new_stock"] == 70
        assert data["destination"]["new_stock"] == 30

    async def test_partial_persistence_returns_500(
        self, client, registered, make_product, transaction_store
    ):
        await registered(make_product())
        transaction_store.fail_with = RuntimeError("disk full")
        response = await client.post(
            "/api/inventory/reduce",
            json={"product_id": "PROD001", "quantity": 1, "actor_id": "till"},
        )
        assert response.status_code == 500
        assert response.json()["error_code"] == "PARTIALLY_PERSISTED"

    async def test_slow_store_returns_503(self, client, registered, make_product, product_store):
        await registered(make_product())
        product_store.delay = 2.0
        response = await client.post(
            "/api/inventory/reduce",
            json={"product_id": "PROD001", "quantity": 1, "actor_id": "till"},
        )
        assert response.status_code == 503
        assert response.json()["error_code"] == "REPOSITORY_ERROR"


class TestLedgerAPI:
    async def test_history(self, client, registered, make_product, movement_service):
        await registered(make_product(stock=10))
        await movement_service.replenish("PROD001", 5, 1.0, "buyer")
        await movement_service.reduce_stock("PROD001", 3, TransactionType.SALE, "till")

        response = await client.get(
            "/api/inventory/history", params={"product_id": "PROD001", "limit": 1}
        )

        data = response.json()
        assert data["total"] == 1
        assert data["items"][0]["running_total"] == 12
        assert data["items"][0]["transaction"]["type"] == "sale"

    async def test_history_rejects_zero_limit(self, client):
        response = await client.get("/api/inventory/history", params={"limit": 0})
        assert response.status_code == 422

    async def test_reconcile_and_repair(
        self, client, registered, make_product, movement_service, transaction_store
    ):
        await registered(make_product(stock=10))
        transaction_store.fail_with = RuntimeError("disk full")
        await client.post(
            "/api/inventory/reduce",
            json={"product_id": "PROD001", "quantity": 4, "actor_id": "till"},
        )
        transaction_store.fail_with = None

        check = (await client.get("/api/inventory/products/PROD001/reconcile")).json()
        repaired = (
            await client.post(
                "/api/inventory/products/PROD001/reconcile", json={"actor_id": "auditor"}
            )
        ).json()

        assert check["drift"] == -4
        assert check["balanced"] is False
        assert check["needs_reconciliation"] is True
        assert repaired["balanced"] is True
        assert repaired["needs_reconciliation"] is False
