from __future__ import annotations

import sys
from pathlib import Path

from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parents[2] / "src"))

from tableorder.api.main import app
from tableorder.infrastructure.db.repositories import menu_repo as menu_repo_module


def test_menu_endpoint_groups_items_and_uses_cache(monkeypatch) -> None:
    client = TestClient(app)

    first_response = client.get("/v1/restaurants/rst_001/menu")
    assert first_response.status_code == 200

    payload = first_response.json()
    assert payload["restaurantId"] == "rst_001"
    assert payload["currency"] == "USD"
    assert [category["name"] for category in payload["categories"]] == ["Mains", "Desserts"]
    mains = payload["categories"][0]["items"]
    assert [item["itemId"] for item in mains] == ["itm_001", "itm_002"]
    assert mains[0]["priceMoney"] == {"amountCents": 1450, "currency": "USD", "amount": "14.50"}
    assert [item["itemId"] for item in payload["uncategorizedItems"]] == ["itm_003"]
    assert payload["categories"][1]["items"][0]["isAvailable"] is False

    def _raise_if_called(*args, **kwargs):
        raise RuntimeError("database should not be called on warm cache")

    monkeypatch.setattr(
        menu_repo_module.SqlAlchemyMenuRepository,
        "get_menu_by_restaurant_id",
        _raise_if_called,
    )

    second_response = client.get("/v1/restaurants/rst_001/menu")
    assert second_response.status_code == 200
    assert second_response.json() == payload


def test_menu_endpoint_unknown_restaurant() -> None:
    client = TestClient(app)

    response = client.get("/v1/restaurants/rst_missing/menu")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "NOT_FOUND"
