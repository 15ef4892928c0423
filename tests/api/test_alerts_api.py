"""API tests for reorder alert endpoints."""


class TestAlertsAPI:
    async def test_generate_and_list(self, client, registered, make_product):
        await registered(make_product(stock=0, reorder_point=10), make_product("OK", stock=50))

        generated = (await client.post("/api/alerts/generate")).json()
        active = (await client.get("/api/alerts/active")).json()

        assert generated["created"] == 1
        assert generated["alerts"][0]["priority"] == "critical"
        assert [a["product_id"] for a in active] == ["PROD001"]

    async def test_lifecycle(self, client, registered, make_product):
        await registered(make_product(stock=0, reorder_point=10))
        [alert] = (await client.post("/api/alerts/generate")).json()["alerts"]

        acknowledged = await client.post(
            f"/api/alerts/{alert['id']}/acknowledge", json={"actor_id": "clerk"}
        )
        ordered = await client.post(
            f"/api/alerts/{alert['id']}/order", json={"actor_id": "buyer", "notes": "PO-7"}
        )
        resolved = await client.post(
            f"/api/alerts/{alert['id']}/resolve", json={"actor_id": "receiver"}
        )

        assert acknowledged.json()["status"] == "acknowledged"
        assert ordered.json()["status"] == "ordered"
        assert ordered.json()["notes"] == "PO-7"
        assert resolved.json()["status"] == "resolved"
        assert (await client.get("/api/alerts/active")).json() == []

    async def test_unknown_alert_returns_404(self, client):
        response = await client.post("/api/alerts/missing/resolve", json={"actor_id": "x"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "ALERT_NOT_FOUND"

    async def test_recommendations(self, client, registered, make_product):
        await registered(make_product(stock=11, reorder_point=10, reorder_quantity=20))
        response = await client.get("/api/alerts/recommendations")
        assert response.status_code == 200
        [recommendation] = response.json()
        assert recommendation["recommended_quantity"] == 20
