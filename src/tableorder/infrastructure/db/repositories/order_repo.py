from __future__ import annotations

import base64
from datetime import datetime, timezone

from sqlalchemy import Engine, and_, delete, or_, select, update
from sqlalchemy.orm import Session, selectinload

from tableorder.application.ports.repositories import (
    InvalidCursorError,
    OptimisticConcurrencyError,
    OrderRepository,
)
from tableorder.domain.common.ids import MenuItemId, OrderId, OrderLineId, RestaurantId, TableId
from tableorder.domain.common.money import Money
from tableorder.domain.order.entities import Order, OrderLine, OrderStatus
from tableorder.infrastructure.db.models.order import OrderItemModel, OrderModel
from tableorder.infrastructure.db.session import get_engine, storage_errors


class SqlAlchemyOrderRepository(OrderRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def create(self, order: Order) -> None:
        model = OrderModel(
            id=str(order.order_id),
            restaurant_id=str(order.restaurant_id),
            table_id=str(order.table_id),
            status=order.status.value,
            total_cents=order.total.amount_cents,
            currency=order.total.currency,
            version=order.version,
            session_token_hash=order.session_token_hash,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
        with storage_errors("create_order"), Session(self._engine) as session:
            session.add(model)
            session.commit()

    def insert_lines(self, order_id: OrderId, lines: list[OrderLine]) -> None:
        with storage_errors("insert_order_lines"), Session(self._engine) as session:
            session.add_all(_to_item_models(order_id, lines))
            session.commit()

    def delete(self, order_id: OrderId) -> None:
        with storage_errors("delete_order"), Session(self._engine) as session:
            session.execute(delete(OrderModel).where(OrderModel.id == str(order_id)))
            session.commit()

    def get(self, order_id: OrderId) -> Order | None:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.id == str(order_id))
            .limit(1)
        )
        with storage_errors("get_order"), Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return _to_domain(model)

    def find_latest_pending(
        self,
        restaurant_id: RestaurantId,
        table_id: TableId,
    ) -> Order | None:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(
                OrderModel.restaurant_id == str(restaurant_id),
                OrderModel.table_id == str(table_id),
                OrderModel.status == OrderStatus.PENDING.value,
            )
            .order_by(OrderModel.created_at.desc(), OrderModel.id.desc())
            .limit(1)
        )
        with storage_errors("find_latest_pending"), Session(self._engine) as session:
            model = session.execute(statement).scalar_one_or_none()
            if model is None:
                return None
            return _to_domain(model)

    def replace_lines_with_version(self, order: Order, expected_version: int) -> Order:
        """Swap the order's lines and bump its version in a single transaction."""
        header = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order.order_id),
                OrderModel.version == expected_version,
                OrderModel.status == OrderStatus.PENDING.value,
            )
            .values(
                total_cents=order.total.amount_cents,
                currency=order.total.currency,
                updated_at=order.updated_at,
                version=OrderModel.version + 1,
            )
        )
        with storage_errors("replace_order_lines"), Session(self._engine) as session:
            result = session.execute(header)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"order {order.order_id} version conflict")
            session.execute(
                delete(OrderItemModel).where(OrderItemModel.order_id == str(order.order_id))
            )
            session.add_all(_to_item_models(order.order_id, order.lines))
            session.commit()

        updated = self.get(order.order_id)
        if updated is None:
            raise RuntimeError(f"order {order.order_id} not found after line update")
        return updated

    def update_status_with_version(
        self,
        order_id: OrderId,
        new_status: OrderStatus,
        expected_version: int,
        updated_at: datetime,
    ) -> Order:
        statement = (
            update(OrderModel)
            .where(
                OrderModel.id == str(order_id),
                OrderModel.version == expected_version,
            )
            .values(
                status=new_status.value,
                updated_at=updated_at,
                version=OrderModel.version + 1,
            )
        )
        with storage_errors("update_order_status"), Session(self._engine) as session:
            result = session.execute(statement)
            if result.rowcount != 1:
                session.rollback()
                raise OptimisticConcurrencyError(f"order {order_id} version conflict")
            session.commit()

        updated = self.get(order_id)
        if updated is None:
            raise RuntimeError(f"order {order_id} not found after status update")
        return updated

    def list_for_restaurant(
        self,
        restaurant_id: RestaurantId,
        status: OrderStatus | None,
        limit: int,
        cursor: str | None,
    ) -> tuple[list[Order], str | None]:
        statement = (
            select(OrderModel)
            .options(selectinload(OrderModel.items))
            .where(OrderModel.restaurant_id == str(restaurant_id))
        )
        if status is not None:
            statement = statement.where(OrderModel.status == status.value)

        cursor_parts = _decode_cursor(cursor) if cursor else None
        if cursor_parts is not None:
            cursor_created_at, cursor_order_id = cursor_parts
            statement = statement.where(
                or_(
                    OrderModel.created_at < cursor_created_at,
                    and_(
                        OrderModel.created_at == cursor_created_at,
                        OrderModel.id < cursor_order_id,
                    ),
                )
            )

        statement = statement.order_by(OrderModel.created_at.desc(), OrderModel.id.desc()).limit(
            limit + 1
        )

        with storage_errors("list_orders"), Session(self._engine) as session:
            models = list(session.execute(statement).scalars().all())
            has_more = len(models) > limit
            page_models = models[:limit]
            orders = [_to_domain(model) for model in page_models]

        next_cursor: str | None = None
        if has_more and orders:
            last = orders[-1]
            next_cursor = _encode_cursor(last.created_at, str(last.order_id))
        return orders, next_cursor


def _to_item_models(order_id: OrderId, lines: list[OrderLine]) -> list[OrderItemModel]:
    return [
        OrderItemModel(
            id=str(line.line_id),
            order_id=str(order_id),
            menu_item_id=str(line.item_id) if line.item_id else None,
            name_at_order=line.name,
            price_at_order_cents=line.unit_price.amount_cents,
            currency=line.unit_price.currency,
            quantity=line.quantity,
            line_total_cents=line.line_total.amount_cents,
            notes=line.notes,
            position=position,
        )
        for position, line in enumerate(lines)
    ]


def _to_domain(model: OrderModel) -> Order:
    lines = [
        OrderLine(
            line_id=OrderLineId(item.id),
            item_id=MenuItemId(item.menu_item_id) if item.menu_item_id else None,
            name=item.name_at_order,
            quantity=item.quantity,
            unit_price=Money(amount_cents=item.price_at_order_cents, currency=item.currency),
            line_total=Money(amount_cents=item.line_total_cents, currency=item.currency),
            notes=item.notes,
        )
        for item in model.items
    ]
    return Order(
        order_id=OrderId(model.id),
        restaurant_id=RestaurantId(model.restaurant_id),
        table_id=TableId(model.table_id),
        status=OrderStatus(model.status),
        lines=lines,
        total=Money(amount_cents=model.total_cents, currency=model.currency),
        created_at=_aware(model.created_at),
        updated_at=_aware(model.updated_at) if model.updated_at else None,
        version=model.version,
        session_token_hash=model.session_token_hash,
    )


def _aware(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _encode_cursor(created_at: datetime, order_id: str) -> str:
    payload = f"{created_at.isoformat()}|{order_id}"
    return base64.urlsafe_b64encode(payload.encode("utf-8")).decode("ascii")


def _decode_cursor(cursor: str) -> tuple[datetime, str]:
    try:
        raw = base64.urlsafe_b64decode(cursor.encode("ascii")).decode("utf-8")
        created_at_raw, order_id = raw.split("|", 1)
        return _aware(datetime.fromisoformat(created_at_raw)), order_id
    except ValueError as exc:
        raise InvalidCursorError("invalid cursor") from exc
