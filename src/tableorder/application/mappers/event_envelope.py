from __future__ import annotations

import json
from datetime import datetime
from typing import Any
from uuid import uuid4

from tableorder.domain.common.money import Money
from tableorder.domain.order.entities import Order


def _money(money: Money) -> dict[str, Any]:
    return {
        "amountCents": money.amount_cents,
        "currency": money.currency,
    }


def _serialize_event(
    *,
    event_type: str,
    occurred_at: datetime,
    restaurant_id: str,
    payload: dict[str, Any],
    trace_id: str | None,
    request_id: str | None,
) -> str:
    envelope = {
        "event_id": str(uuid4()),
        "event_type": event_type,
        "occurred_at": occurred_at.isoformat(),
        "request_id": request_id,
        "trace_id": trace_id,
        "restaurant_id": restaurant_id,
        "payload": payload,
    }
    return json.dumps(envelope, separators=(",", ":"), ensure_ascii=False)


def serialize_order_event(
    *,
    event_type: str,
    occurred_at: datetime,
    order: Order,
    trace_id: str | None,
    request_id: str | None,
    previous_status: str | None = None,
) -> str:
    payload: dict[str, Any] = {
        "orderId": str(order.order_id),
        "tableId": str(order.table_id),
        "status": order.status.value,
        "version": order.version,
        "totalMoney": _money(order.total),
        "createdAt": order.created_at.isoformat(),
        "updatedAt": order.updated_at.isoformat() if order.updated_at else None,
        "lines": [
            {
                "lineId": str(line.line_id),
                "itemId": str(line.item_id) if line.item_id is not None else None,
                "name": line.name,
                "quantity": line.quantity,
                "unitPrice": _money(line.unit_price),
                "lineTotal": _money(line.line_total),
                "notes": line.notes,
            }
            for line in order.lines
        ],
    }
    if previous_status is not None:
        payload["previousStatus"] = previous_status
    return _serialize_event(
        event_type=event_type,
        occurred_at=occurred_at,
        restaurant_id=str(order.restaurant_id),
        trace_id=trace_id,
        request_id=request_id,
        payload=payload,
    )
