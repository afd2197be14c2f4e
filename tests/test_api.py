"""
HTTP tests for the portal API.
"""

import pytest
from sqlalchemy.exc import OperationalError

from conftest import DEVICE_A, DEVICE_B, MAC_A, pizza, salad
from queue_portal import main
from queue_portal.services.ledger import OrderLedger
from queue_portal.services.menu import STARTER_MENU


def as_device(address):
    return {"X-Real-IP": address}


async def place(client, address, items, notes=""):
    response = await client.post(
        "/api/order", json={"items": items, "notes": notes}, headers=as_device(address)
    )
    assert response.status_code == 200, response.text
    return response.json()


async def set_status(client, order_id, status):
    return await client.put(f"/api/admin/order/{order_id}/status", json={"status": status})


# ==============================================================================
# CUSTOMER ENDPOINTS
# ==============================================================================

class TestCustomerEndpoints:

    async def test_menu(self, client):
        response = await client.get("/api/menu")

        assert response.status_code == 200
        items = response.json()
        assert len(items) == len(STARTER_MENU)
        assert items[0] == {
            "id": 1,
            "name": "Margherita Pizza",
            "description": "Classic tomato and mozzarella",
            "price": 12.99,
            "category": "Main",
        }

    async def test_currently_serving_empty(self, client):
        response = await client.get("/api/currently-serving")
        assert response.json() == {"currently_serving": None}

    async def test_submit_order(self, client):
        data = await place(client, DEVICE_A, pizza(), "extra cheese")

        assert data["queue_number"] == 1
        assert data["status"] == "pending"
        assert data["already_ordered"] is False

    async def test_resubmit_returns_same_number(self, client):
        await place(client, DEVICE_A, pizza())
        data = await place(client, DEVICE_A, salad())

        assert data["queue_number"] == 1
        assert data["already_ordered"] is True
        assert data["message"] == "You already have an order today"

    async def test_status_not_found(self, client):
        response = await client.get("/api/order/status", headers=as_device(DEVICE_A))

        assert response.status_code == 404
        assert response.json()["error"] == "No order found"

    async def test_status_found(self, client):
        await place(client, DEVICE_A, salad(2))
        response = await client.get("/api/order/status", headers=as_device(DEVICE_A))

        assert response.status_code == 200
        data = response.json()
        assert data["queue_number"] == 1
        assert data["status"] == "pending"
        assert data["items"] == salad(2)
        assert data["summary"] == "Caesar Salad x2"

    async def test_clear_is_idempotent(self, client):
        await place(client, DEVICE_A, pizza())

        for _ in range(2):
            response = await client.post("/api/order/clear", headers=as_device(DEVICE_A))
            assert response.json() == {"success": True}

        response = await client.get("/api/order/status", headers=as_device(DEVICE_A))
        assert response.status_code == 404

    async def test_peer_address_used_without_header(self, client):
        response = await client.post("/api/order", json={"items": pizza()})

        assert response.status_code == 200
        orders = (await client.get("/api/admin/orders")).json()
        assert orders[0]["device_id"] == "127.0.0.1"

    async def test_forwarded_address_is_trimmed(self, client):
        await client.post("/api/order", json={"items": pizza()}, headers=as_device("  10.0.0.7 "))

        orders = (await client.get("/api/admin/orders")).json()
        assert orders[0]["device_id"] == "10.0.0.7"

    async def test_forwarded_header_ignored_when_disabled(self, client, monkeypatch):
        monkeypatch.setattr(main.settings, "real_ip_header", "")

        await client.post("/api/order", json={"items": pizza()}, headers=as_device(DEVICE_A))

        orders = (await client.get("/api/admin/orders")).json()
        assert orders[0]["device_id"] == "127.0.0.1"

    @pytest.mark.parametrize("body", [
        {"items": []},
        {"items": [{"name": "Lemonade", "quantity": 0}]},
        {"items": [{"name": "  ", "quantity": 1}]},
        {"notes": "no items"},
    ])
    async def test_invalid_order_rejected(self, client, body):
        response = await client.post("/api/order", json=body, headers=as_device(DEVICE_A))
        assert response.status_code == 422


# ==============================================================================
# STAFF ENDPOINTS
# ==============================================================================

class TestStaffEndpoints:

    async def test_list_orders(self, client):
        await place(client, DEVICE_B, salad(), "table by the window")
        await place(client, DEVICE_A, pizza())

        orders = (await client.get("/api/admin/orders")).json()

        assert [o["queue_number"] for o in orders] == [1, 2]
        assert orders[0]["notes"] == "table by the window"
        assert orders[1]["device_id"] == MAC_A
        assert orders[1]["items"] == pizza()
        assert isinstance(orders[0]["timestamp"], int)

    async def test_update_status(self, client):
        await place(client, DEVICE_A, pizza())
        order_id = (await client.get("/api/admin/orders")).json()[0]["id"]

        response = await set_status(client, order_id, "ready")

        assert response.json() == {"success": True}
        status = (await client.get("/api/order/status", headers=as_device(DEVICE_A))).json()
        assert status["status"] == "ready"

    async def test_update_unknown_order(self, client):
        response = await set_status(client, 404, "ready")
        assert response.status_code == 404

    async def test_update_invalid_status(self, client):
        await place(client, DEVICE_A, pizza())
        response = await set_status(client, 1, "cancelled")
        assert response.status_code == 422

    async def test_strict_transitions_conflict(self, client, service):
        service.enforce_transitions = True
        await place(client, DEVICE_A, pizza())
        await set_status(client, 1, "completed")

        response = await set_status(client, 1, "pending")

        assert response.status_code == 409
        assert "cannot move from completed to pending" in response.json()["error"]

    async def test_stats(self, client):
        await place(client, DEVICE_A, pizza())
        await place(client, DEVICE_B, salad())
        await set_status(client, 2, "preparing")

        stats = (await client.get("/api/admin/stats")).json()

        assert stats["counts"] == {
            "total": 2, "pending": 1, "preparing": 1, "ready": 0, "completed": 0,
        }
        assert stats["currently_serving"] == 2

    async def test_store_failure_returns_503(self, client, monkeypatch):
        async def broken(*args, **kwargs):
            raise OperationalError("SELECT", {}, Exception("database is locked"))

        monkeypatch.setattr(OrderLedger, "list_for_day", broken)
        response = await client.get("/api/admin/orders")

        assert response.status_code == 503
        assert response.json()["error"] == "Service temporarily unavailable, please try again"


# ==============================================================================
# HEALTH
# ==============================================================================

class TestHealth:

    async def test_health(self, client):
        response = await client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "operational"
        assert data["database"] == "healthy"
        assert data["lease_table"] == "static: healthy"


# ==============================================================================
# SCENARIO
# ==============================================================================

class TestOrderingDay:

    async def test_walkthrough(self, client):
        """Customer and staff flow over one day through the API."""
        a = await place(client, DEVICE_A, pizza(1))
        assert (a["queue_number"], a["status"]) == (1, "pending")

        b = await place(client, DEVICE_B, salad(2))
        assert b["queue_number"] == 2

        orders = (await client.get("/api/admin/orders")).json()
        first_id = orders[0]["id"]

        await set_status(client, first_id, "preparing")
        serving = (await client.get("/api/currently-serving")).json()
        assert serving["currently_serving"] == 1

        await set_status(client, first_id, "completed")
        serving = (await client.get("/api/currently-serving")).json()
        assert serving["currently_serving"] is None

        status = (await client.get("/api/order/status", headers=as_device(DEVICE_A))).json()
        assert status["status"] == "completed"

        await client.post("/api/order/clear", headers=as_device(DEVICE_A))
        again = await place(client, DEVICE_A, pizza(1))
        assert again["queue_number"] == 3
        assert again["already_ordered"] is False
