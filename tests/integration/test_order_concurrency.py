from __future__ import annotations

import concurrent.futures
import sys
from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tableorder.api.main import app
from tableorder.application.ports.repositories import OptimisticConcurrencyError
from tableorder.domain.common.ids import OrderId
from tableorder.domain.order.entities import OrderStatus
from tableorder.infrastructure.db.repositories.order_repo import SqlAlchemyOrderRepository


def _place_order(client: TestClient) -> OrderId:
    place_response = client.post(
        "/v1/restaurants/rst_001/tables/tbl_001/orders",
        json={"lines": [{"itemId": "itm_001", "quantity": 1}]},
    )
    assert place_response.status_code == 201
    return OrderId(place_response.json()["order"]["orderId"])


def test_accept_concurrency_updates_version_once() -> None:
    order_id = _place_order(TestClient(app))

    repository = SqlAlchemyOrderRepository()
    order = repository.get(order_id)
    assert order is not None
    assert order.version == 1

    def _accept_once() -> str:
        try:
            updated = repository.update_status_with_version(
                order_id=order_id,
                new_status=OrderStatus.ACCEPTED,
                expected_version=1,
                updated_at=datetime.now(timezone.utc),
            )
            return updated.status.value
        except OptimisticConcurrencyError:
            return "CONFLICT"

    with concurrent.futures.ThreadPoolExecutor(max_workers=2) as executor:
        results = list(executor.map(lambda _: _accept_once(), [0, 1]))

    assert sorted(results) == ["CONFLICT", "accepted"]

    current = repository.get(order_id)
    assert current is not None
    assert current.status == OrderStatus.ACCEPTED
    assert current.version == 2


def test_line_replacement_loses_to_status_change() -> None:
    order_id = _place_order(TestClient(app))
    repository = SqlAlchemyOrderRepository()
    order = repository.get(order_id)
    assert order is not None

    repository.update_status_with_version(
        order_id=order_id,
        new_status=OrderStatus.ACCEPTED,
        expected_version=order.version,
        updated_at=datetime.now(timezone.utc),
    )

    edited = order.replace_lines(order.lines, datetime.now(timezone.utc))
    with pytest.raises(OptimisticConcurrencyError):
        repository.replace_lines_with_version(edited, expected_version=order.version)

    current = repository.get(order_id)
    assert current is not None
    assert current.status == OrderStatus.ACCEPTED
    assert len(current.lines) == 1
