from __future__ import annotations

from tableorder.application.dto.responses import TableResponse
from tableorder.domain.table.entities import Table


def to_table_response(table: Table) -> TableResponse:
    return TableResponse(
        tableId=str(table.table_id),
        restaurantId=str(table.restaurant_id),
        name=table.name,
    )
