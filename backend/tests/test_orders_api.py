from __future__ import annotations

from datetime import date, datetime, timezone

from fastapi.testclient import TestClient

from ordertrack.config import Settings
from ordertrack.engine import OrderLifecycleEngine
from ordertrack.main import create_app
from ordertrack.models import FleetDriver, MaterialLine, Order, StatusUpdate, User
from ordertrack.store import FleetRoster, InMemoryOrderStore, UserDirectory

FOREMAN = User(id="1", name="John Smith", role="site_foreman")
OTHER_FOREMAN = User(id="10", name="Raj Patel", role="site_foreman")
SHOP_MANAGER = User(id="3", name="Mike Wilson", role="shop_manager")
DRIVER = User(id="6", name="Tom Rodriguez", role="truck_driver")

_TS = datetime(2024, 1, 10, 8, 0, tzinfo=timezone.utc)


def _client() -> TestClient:
    order = Order(
        id="order-1",
        order_number="ORD-2024-001",
        project_name="Downtown Office Complex",
        job_site="123 Main St",
        requested_by=FOREMAN,
        status="pending",
        priority="high",
        materials=[MaterialLine(id="line-1", name='Steel Pipe 2"', unit="ft", quantity_requested=100, unit_price=12.5)],
        delivery_date=date(2024, 1, 15),
        created_at=_TS,
        updated_at=_TS,
        status_history=[StatusUpdate(id="h1", status="pending", updated_by=FOREMAN, timestamp=_TS)],
    )
    engine = OrderLifecycleEngine(
        store=InMemoryOrderStore([order]),
        directory=UserDirectory([FOREMAN, OTHER_FOREMAN, SHOP_MANAGER, DRIVER]),
        fleet=FleetRoster([FleetDriver(user=DRIVER, truck_number="T-101")]),
        settings=Settings(),
    )
    return TestClient(create_app(engine))


def _as(user: User) -> dict[str, str]:
    return {"X-User-Id": user.id}


def test_health_check() -> None:
    response = _client().get("/api/v1/system/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok", "version": "1.0.0", "orders": 1}


def test_requests_without_user_are_rejected() -> None:
    client = _client()

    response = client.get("/api/v1/orders")
    assert response.status_code == 401
    assert response.json()["code"] == "USER_NOT_IDENTIFIED"

    response = client.get("/api/v1/orders", headers={"X-User-Id": "ghost"})
    assert response.status_code == 401


def test_create_order_endpoint() -> None:
    client = _client()
    response = client.post(
        "/api/v1/orders",
        headers=_as(FOREMAN),
        json={
            "project_name": "Hospital Wing Extension",
            "job_site": "456 Oak Ave",
            "delivery_date": "2024-01-18",
            "priority": "urgent",
            "materials": [{"name": "Rebar #4", "unit": "ea", "quantity_requested": 120, "unit_price": 2.5}],
        },
    )

    assert response.status_code == 201
    payload = response.json()
    assert payload["status"] == "pending"
    assert payload["total_value"] == 300.0
    assert payload["requested_by"]["id"] == FOREMAN.id
    assert len(payload["status_history"]) == 1


def test_create_order_without_materials_is_problem_details() -> None:
    response = _client().post(
        "/api/v1/orders",
        headers=_as(FOREMAN),
        json={"project_name": "P", "job_site": "S", "delivery_date": "2024-01-18", "materials": []},
    )

    assert response.status_code == 422
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_order_actions_reflect_role_gate() -> None:
    client = _client()

    foreman = client.get("/api/v1/orders/order-1/actions", headers=_as(FOREMAN)).json()
    assert foreman["can_transition"] is False
    assert foreman["available_transitions"] == []
    assert foreman["permissions"]["canCreateOrders"] is True

    manager = client.get("/api/v1/orders/order-1/actions", headers=_as(SHOP_MANAGER)).json()
    assert manager["available_transitions"] == ["in_shop", "cancelled"]


def test_forbidden_and_invalid_transitions_map_to_problem_details() -> None:
    client = _client()

    response = client.post("/api/v1/orders/order-1/status", headers=_as(FOREMAN), json={"status": "in_shop"})
    assert response.status_code == 403
    assert response.json()["code"] == "UNAUTHORIZED"

    response = client.post("/api/v1/orders/order-1/status", headers=_as(SHOP_MANAGER), json={"status": "delivered"})
    assert response.status_code == 409
    body = response.json()
    assert body["code"] == "INVALID_TRANSITION"
    assert body["instance"] == "/api/v1/orders/order-1/status"


def test_transition_creates_notification() -> None:
    client = _client()

    response = client.post(
        "/api/v1/orders/order-1/status",
        headers=_as(SHOP_MANAGER),
        json={"status": "in_shop", "notes": "Materials received in shop", "expected_revision": 1},
    )
    assert response.status_code == 200
    assert response.json()["status"] == "in_shop"
    assert response.json()["revision"] == 2

    feed = client.get("/api/v1/notifications", headers=_as(FOREMAN)).json()
    assert feed["unread_count"] == 1
    item = feed["items"][0]
    assert item["type"] == "status_update"
    assert item["message"] == 'Order status updated to "IN SHOP" - Materials received in shop'

    marked = client.post(f"/api/v1/notifications/{item['id']}/read", headers=_as(FOREMAN))
    assert marked.json()["read"] is True
    assert client.post("/api/v1/notifications/missing/read", headers=_as(FOREMAN)).status_code == 404


def test_stale_revision_is_conflict() -> None:
    client = _client()
    client.post("/api/v1/orders/order-1/status", headers=_as(SHOP_MANAGER), json={"status": "in_shop"})

    response = client.post(
        "/api/v1/orders/order-1/status",
        headers=_as(SHOP_MANAGER),
        json={"status": "being_pulled", "expected_revision": 1},
    )
    assert response.status_code == 409
    assert response.json()["code"] == "CONCURRENT_MODIFICATION"


def test_other_site_foreman_cannot_see_order() -> None:
    client = _client()
    assert client.get("/api/v1/orders/order-1", headers=_as(OTHER_FOREMAN)).status_code == 404
    assert client.get("/api/v1/orders?view=active", headers=_as(OTHER_FOREMAN)).json() == []
    assert len(client.get("/api/v1/orders?view=active", headers=_as(FOREMAN)).json()) == 1


def test_unknown_view_lists_visible_orders() -> None:
    client = _client()
    response = client.get("/api/v1/orders?view=archived", headers=_as(SHOP_MANAGER))
    assert response.status_code == 200
    assert [order["id"] for order in response.json()] == ["order-1"]
    assert client.get("/api/v1/orders?view=archived", headers=_as(OTHER_FOREMAN)).json() == []
