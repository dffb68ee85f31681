from __future__ import annotations

import json
import sys
import time
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tableorder.api.main import app
from tableorder.infrastructure.cache.redis_client import get_redis_client


def _wait_for_messages(pubsub, count: int, timeout_seconds: float = 2.0) -> list[tuple[str, dict]]:
    deadline = time.time() + timeout_seconds
    received: list[tuple[str, dict]] = []
    while time.time() < deadline and len(received) < count:
        message = pubsub.get_message(ignore_subscribe_messages=True, timeout=0.2)
        if not message or message.get("type") != "pmessage":
            time.sleep(0.05)
            continue
        channel = message["channel"]
        payload = message["data"]
        received.append(
            (
                channel.decode("utf-8") if isinstance(channel, bytes) else str(channel),
                json.loads(payload.decode("utf-8") if isinstance(payload, bytes) else payload),
            )
        )
    return received


def test_order_changes_reach_restaurant_and_order_channels(as_admin) -> None:
    redis_client = get_redis_client()
    pubsub = redis_client.pubsub()
    pubsub.psubscribe("events:rst_001", "orders:*")
    pubsub.get_message(timeout=0.5)
    pubsub.get_message(timeout=0.5)

    client = TestClient(app)
    place_response = client.post(
        "/v1/restaurants/rst_001/tables/tbl_001/orders",
        json={"lines": [{"itemId": "itm_001", "quantity": 1}]},
    )
    assert place_response.status_code == 201
    order_id = place_response.json()["order"]["orderId"]

    with as_admin():
        accept_response = client.post(f"/v1/orders/{order_id}/status", json={"status": "accepted"})
        assert accept_response.status_code == 200

    messages = _wait_for_messages(pubsub, count=4)
    assert [channel for channel, _ in messages] == [
        "events:rst_001",
        f"orders:{order_id}",
        "events:rst_001",
        f"orders:{order_id}",
    ]
    placed, accepted = messages[0][1], messages[2][1]
    assert placed["event_type"] == "order.placed"
    assert placed["payload"]["orderId"] == order_id
    assert placed["payload"]["tableId"] == "tbl_001"
    assert accepted["event_type"] == "order.status_changed"
    assert accepted["payload"]["status"] == "accepted"
    assert accepted["payload"]["previousStatus"] == "pending"
    pubsub.close()
