from __future__ import annotations

from sqlalchemy import Engine, or_, select
from sqlalchemy.orm import Session

from tableorder.application.ports.repositories import TableRepository
from tableorder.domain.common.ids import RestaurantId, TableId
from tableorder.domain.table.entities import Table
from tableorder.infrastructure.db.models.menu import RestaurantModel
from tableorder.infrastructure.db.models.table import TableModel
from tableorder.infrastructure.db.session import get_engine, storage_errors


class SqlAlchemyTableRepository(TableRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get(self, table_ref: str) -> Table | None:
        """Look a table up by its id or by the public ``table_uuid`` printed on the QR code."""
        statement = (
            select(TableModel)
            .where(or_(TableModel.id == table_ref, TableModel.table_uuid == table_ref))
            .limit(1)
        )
        with storage_errors("get_table"), Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()

        if model is None:
            return None
        return Table(
            table_id=TableId(model.id),
            restaurant_id=RestaurantId(model.restaurant_id),
            name=model.name,
            table_uuid=model.table_uuid,
        )

    def restaurant_exists(self, restaurant_id: RestaurantId) -> bool:
        statement = (
            select(RestaurantModel.id).where(RestaurantModel.id == str(restaurant_id)).limit(1)
        )
        with storage_errors("restaurant_exists"), Session(self._engine) as session:
            value = session.execute(statement).scalar_one_or_none()
        return value is not None
