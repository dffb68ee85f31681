from __future__ import annotations

import sys
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tableorder.api.main import app

TABLE_ORDERS = "/v1/restaurants/rst_001/tables/tbl_001/orders"


def test_order_flow_is_persisted(as_admin) -> None:
    client = TestClient(app)

    place_response = client.post(
        TABLE_ORDERS,
        json={"lines": [{"itemId": "itm_001", "quantity": 1, "notes": "no basil"}]},
    )
    assert place_response.status_code == 201
    placed = place_response.json()
    order_id = placed["order"]["orderId"]
    session_headers = {"X-Table-Session": placed["sessionToken"]}
    assert placed["order"]["status"] == "pending"
    assert placed["order"]["version"] == 1
    assert placed["order"]["lines"][0]["notes"] == "no basil"

    update_response = client.put(
        f"/v1/orders/{order_id}/lines",
        json={
            "lines": [
                {"itemId": "itm_001", "quantity": 2},
                {"itemId": "itm_003", "quantity": 1},
            ],
            "expectedVersion": 1,
        },
        headers=session_headers,
    )
    assert update_response.status_code == 200
    updated = update_response.json()
    assert updated["version"] == 2
    assert updated["total"]["amountCents"] == 2 * 1450 + 990

    stranger_response = client.put(
        f"/v1/orders/{order_id}/lines",
        json={"lines": [{"itemId": "itm_001", "quantity": 5}]},
    )
    assert stranger_response.status_code == 403

    with as_admin():
        accept_response = client.post(
            f"/v1/orders/{order_id}/status",
            json={"status": "accepted", "expectedVersion": 2},
        )
        assert accept_response.status_code == 200
        assert accept_response.json()["status"] == "accepted"

        list_response = client.get("/v1/restaurants/rst_001/orders", params={"status": "accepted"})
        assert list_response.status_code == 200
        assert [order["orderId"] for order in list_response.json()["orders"]] == [order_id]

    locked_response = client.put(
        f"/v1/orders/{order_id}/lines",
        json={"lines": [{"itemId": "itm_002", "quantity": 1}]},
        headers=session_headers,
    )
    assert locked_response.status_code == 409
    assert locked_response.json()["error"]["code"] == "INVALID_ORDER_STATE"

    get_response = client.get(f"/v1/orders/{order_id}")
    assert get_response.status_code == 200
    stored = get_response.json()
    assert stored["status"] == "accepted"
    assert stored["version"] == 3
    assert [line["itemId"] for line in stored["lines"]] == ["itm_001", "itm_003"]


def test_order_list_pages_with_cursor(as_admin) -> None:
    client = TestClient(app)
    placed_ids = []
    for _ in range(3):
        response = client.post(TABLE_ORDERS, json={"lines": [{"itemId": "itm_002", "quantity": 1}]})
        assert response.status_code == 201
        placed_ids.append(response.json()["order"]["orderId"])

    with as_admin():
        first_page = client.get("/v1/restaurants/rst_001/orders", params={"limit": 2}).json()
        assert len(first_page["orders"]) == 2
        assert first_page["nextCursor"]

        second_page = client.get(
            "/v1/restaurants/rst_001/orders",
            params={"limit": 2, "cursor": first_page["nextCursor"]},
        ).json()
        assert second_page["nextCursor"] is None

        bad_cursor = client.get("/v1/restaurants/rst_001/orders", params={"cursor": "%%%"})
        assert bad_cursor.status_code == 400

    listed = [order["orderId"] for order in first_page["orders"] + second_page["orders"]]
    assert listed == list(reversed(placed_ids))


def test_unavailable_item_is_rejected_without_writing() -> None:
    client = TestClient(app)

    response = client.post(TABLE_ORDERS, json={"lines": [{"itemId": "itm_004", "quantity": 1}]})

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "VALIDATION_ERROR"
    active = client.get(f"{TABLE_ORDERS}/active")
    assert active.json()["order"] is None
