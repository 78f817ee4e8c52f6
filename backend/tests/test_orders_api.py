import httpx
import pytest

from comandera.api import deps
from comandera.main import app

from conftest import CASHIER_EMAIL

ORDER_PAYLOAD = {
    "client_name": "Ana",
    "client_phone": "5551234567",
    "items": [{"meal_id": 1, "quantity": 2, "modifier_ids": [9]}],
    "payments": [{"payment_method": "cash", "amount_given": 130}],
}


@pytest.fixture
async def client(service, session_factory):
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[deps.get_order_service] = lambda: service
    app.dependency_overrides[deps.get_db] = override_get_db
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
    app.dependency_overrides.clear()


async def test_create_order(client):
    response = await client.post("/api/v1/orders/", json=ORDER_PAYLOAD, headers={"X-User-Email": CASHIER_EMAIL})

    assert response.status_code == 201
    body = response.json()
    assert body["total_price"] == 120.0
    assert body["exchange"] == 10.0
    assert body["subtotals"] == [{"meal_id": 1, "subtotal": 100.0}]


async def test_insufficient_payment_returns_stable_error(client):
    payload = dict(ORDER_PAYLOAD, payments=[{"payment_method": "cash", "amount_given": 100}])

    response = await client.post("/api/v1/orders/", json=payload)

    assert response.status_code == 400
    assert response.json() == {"success": False, "error": "INSUFFICIENT_PAYMENT_ERROR"}


async def test_unknown_meal_is_404(client):
    payload = dict(ORDER_PAYLOAD, items=[{"meal_id": 999, "quantity": 1}])

    response = await client.post("/api/v1/orders/", json=payload)

    assert response.status_code == 404
    assert response.json() == {"success": False, "error": "MEAL_NOT_FOUND"}


async def test_zero_quantity_fails_request_validation(client):
    payload = dict(ORDER_PAYLOAD, items=[{"meal_id": 1, "quantity": 0}])

    response = await client.post("/api/v1/orders/", json=payload)

    assert response.status_code == 422


async def test_read_update_delete_roundtrip(client):
    created = (await client.post("/api/v1/orders/", json=ORDER_PAYLOAD)).json()
    order_id = created["order_id"]

    listing = await client.get("/api/v1/orders/")
    assert [o["id"] for o in listing.json()] == [order_id]

    updated = await client.put(f"/api/v1/orders/{order_id}", json={"status": "in_progress"})
    assert updated.status_code == 200
    assert updated.json()["order"]["status"] == "in_progress"

    deleted = await client.delete(f"/api/v1/orders/{order_id}")
    assert deleted.json()["success"] is True

    missing = await client.get(f"/api/v1/orders/{order_id}")
    assert missing.status_code == 404
    assert missing.json() == {"success": False, "error": "ORDER_NOT_FOUND"}


async def test_order_numbers_and_audit_log(client, audit):
    assert (await client.get("/api/v1/orders/next-number")).json()["order_number"] == 1
    await client.post("/api/v1/orders/", json=ORDER_PAYLOAD, headers={"X-User-Email": CASHIER_EMAIL})
    await audit.drain()

    assert (await client.get("/api/v1/orders/last-number")).json()["order_number"] == 1
    logs = (await client.get("/api/v1/logs/", params={"user_id": 1})).json()
    assert [log["action_type"] for log in logs] == ["create"]
