"""
API tests for /api/orders.
"""

from ironing_service.models import OrderStatus


def _order_payload(seed, **overrides):
    payload = {
        "address_id": seed.address_id,
        "timeslot_id": seed.timeslot_id,
        "items": [{"service_id": seed.shirt_id, "quantity": 4}],
    }
    payload.update(overrides)
    return payload


def test_create_order(client, seed, auth, get_user):
    """Placing an order returns 201 with items, the first log row, and the total."""
    resp = client.post("/api/orders", json=_order_payload(seed), headers=auth("customer"))

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "PLACED"
    assert data["total_cents"] == 2000
    assert data["delivery_type"] == "STANDARD"
    assert data["items"][0]["name"] == "Shirt"
    assert len(data["logs"]) == 1
    assert data["logs"][0]["from_status"] is None
    assert data["logs"][0]["to_status"] == "PLACED"
    assert data["logs"][0]["metadata"] == {}

    assert get_user(seed.user_ids["customer"]).wallet.balance_cents == 48000


def test_create_order_requires_auth(client, seed):
    resp = client.post("/api/orders", json=_order_payload(seed))
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"


def test_create_order_staff_forbidden(client, seed, auth):
    resp = client.post("/api/orders", json=_order_payload(seed), headers=auth("operator"))
    assert resp.status_code == 403


def test_create_order_empty_items_rejected(client, seed, auth):
    resp = client.post("/api/orders", json=_order_payload(seed, items=[]), headers=auth("customer"))
    assert resp.status_code == 422


def test_create_order_insufficient_balance(client, seed, auth):
    payload = _order_payload(seed, items=[{"service_id": seed.dress_id, "quantity": 100}])
    resp = client.post("/api/orders", json=payload, headers=auth("customer"))

    assert resp.status_code == 400
    body = resp.json()
    assert body["detail"] == "Insufficient wallet balance"
    assert body["required"] == 120000
    assert body["available"] == 50000


def test_create_order_full_timeslot(client, seed, auth):
    payload = _order_payload(seed, timeslot_id=seed.last_seat_timeslot_id)
    assert client.post("/api/orders", json=payload, headers=auth("customer")).status_code == 201

    resp = client.post("/api/orders", json=payload, headers=auth("customer"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Timeslot is full"


def test_list_my_orders_only_returns_mine(client, seed, auth, place_order):
    mine = place_order()
    place_order(user_key="other_customer")

    resp = client.get("/api/orders/user", headers=auth("customer"))

    assert resp.status_code == 200
    assert [o["id"] for o in resp.json()["orders"]] == [mine]


def test_get_order_ownership(client, seed, auth, place_order):
    order_id = place_order()

    assert client.get(f"/api/orders/{order_id}", headers=auth("customer")).status_code == 200
    assert client.get(f"/api/orders/{order_id}", headers=auth("other_customer")).status_code == 403
    # Staff can see any order
    assert client.get(f"/api/orders/{order_id}", headers=auth("operator")).status_code == 200


def test_get_missing_order(client, auth):
    resp = client.get("/api/orders/9999", headers=auth("admin"))
    assert resp.status_code == 404
    assert resp.json()["detail"] == "Order not found"


def test_update_order(client, seed, auth, place_order):
    order_id = place_order()

    resp = client.put(
        f"/api/orders/{order_id}",
        json={"delivery_type": "PREMIUM", "address_id": seed.office_address_id},
        headers=auth("customer"),
    )

    assert resp.status_code == 200
    order = resp.json()["order"]
    assert order["delivery_type"] == "PREMIUM"
    assert order["address_id"] == seed.office_address_id
    assert order["total_cents"] == 1000 + 5000


def test_cancel_order(client, seed, auth, place_order, get_user):
    order_id = place_order()

    resp = client.post(f"/api/orders/{order_id}/cancel", json={"reason": "Travelling"}, headers=auth("customer"))

    assert resp.status_code == 200
    data = resp.json()
    assert data["order"]["status"] == "CANCELLED"
    assert data["refunded_amount_cents"] == 1000
    assert get_user(seed.user_ids["customer"]).wallet.balance_cents == 50000


def test_cancel_requires_reason(client, auth, place_order):
    order_id = place_order()
    resp = client.post(f"/api/orders/{order_id}/cancel", json={}, headers=auth("customer"))
    assert resp.status_code == 400
    assert resp.json()["detail"] == "Cancellation reason is required"


def test_cancel_twice(client, auth, place_order):
    order_id = place_order()
    client.post(f"/api/orders/{order_id}/cancel", json={"reason": "x"}, headers=auth("customer"))

    resp = client.post(f"/api/orders/{order_id}/cancel", json={"reason": "x"}, headers=auth("customer"))
    assert resp.status_code == 400
    assert resp.json()["current_status"] == "CANCELLED"


class TestStatusEndpoint:
    """POST /api/orders/{id}/status drives the state machine over HTTP."""

    def test_valid_transition(self, client, auth, place_order):
        order_id = place_order()

        resp = client.post(
            f"/api/orders/{order_id}/status",
            json={"status": "ASSIGNED_FOR_PICKUP"},
            headers=auth("manager"),
        )

        assert resp.status_code == 200
        assert resp.json()["order"]["status"] == "ASSIGNED_FOR_PICKUP"

        logs = client.get(f"/api/orders/{order_id}", headers=auth("manager")).json()["logs"]
        assert logs[-1]["from_status"] == "PLACED"
        assert logs[-1]["to_status"] == "ASSIGNED_FOR_PICKUP"
        assert logs[-1]["actor_role"] == "FLOOR_MANAGER"
        assert logs[-1]["metadata"] == {"updatedBy": "FLOOR_MANAGER"}

    def test_invalid_transition_lists_allowed(self, client, auth, place_order):
        order_id = place_order()

        resp = client.post(f"/api/orders/{order_id}/status", json={"status": "PICKED_UP"}, headers=auth("admin"))

        assert resp.status_code == 400
        body = resp.json()
        assert body["from_status"] == "PLACED"
        assert body["to_status"] == "PICKED_UP"
        assert body["allowed_transitions"] == ["ASSIGNED_FOR_PICKUP", "CANCELLED"]
        assert "Invalid transition from PLACED to PICKED_UP" in body["detail"]

    def test_terminal_state(self, client, auth, place_order, advance_order):
        order_id = place_order()
        advance_order(order_id, OrderStatus.CANCELLED)

        resp = client.post(f"/api/orders/{order_id}/status", json={"status": "PLACED"}, headers=auth("admin"))

        assert resp.status_code == 400
        assert "terminal state" in resp.json()["detail"]
        assert resp.json()["allowed_transitions"] == []

    def test_unknown_status(self, client, auth, place_order):
        order_id = place_order()
        resp = client.post(f"/api/orders/{order_id}/status", json={"status": "STEAMED"}, headers=auth("admin"))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Invalid status value: STEAMED"

    def test_missing_status(self, client, auth, place_order):
        order_id = place_order()
        resp = client.post(f"/api/orders/{order_id}/status", json={}, headers=auth("admin"))
        assert resp.status_code == 400
        assert resp.json()["detail"] == "Status is required"

    def test_unknown_order(self, client, auth):
        resp = client.post("/api/orders/9999/status", json={"status": "CANCELLED"}, headers=auth("admin"))
        assert resp.status_code == 404

    def test_customer_forbidden(self, client, auth, place_order):
        order_id = place_order()
        resp = client.post(
            f"/api/orders/{order_id}/status", json={"status": "CANCELLED"}, headers=auth("customer"),
        )
        assert resp.status_code == 403


def test_transitions_endpoint(client, auth, place_order, advance_order):
    order_id = place_order()

    resp = client.get(f"/api/orders/{order_id}/transitions", headers=auth("customer"))
    assert resp.status_code == 200
    assert resp.json() == {
        "order_id": order_id,
        "status": "PLACED",
        "allowed_transitions": ["ASSIGNED_FOR_PICKUP", "CANCELLED"],
        "is_exception_state": False,
        "is_terminal": False,
    }

    advance_order(order_id, OrderStatus.CANCELLED)
    data = client.get(f"/api/orders/{order_id}/transitions", headers=auth("customer")).json()
    assert data["allowed_transitions"] == []
    assert data["is_exception_state"] is True
    assert data["is_terminal"] is True
