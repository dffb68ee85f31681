from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from tableorder.application.errors import AuthorizationError
from tableorder.domain.common.ids import RestaurantId, TableId, UserId


@dataclass(frozen=True)
class Principal:
    user_id: UserId
    restaurant_ids: frozenset[str]
    is_super_admin: bool = False

    def has_restaurant_access(self, restaurant_id: RestaurantId) -> bool:
        return self.is_super_admin or str(restaurant_id) in self.restaurant_ids


@dataclass(frozen=True)
class TableSession:
    restaurant_id: RestaurantId
    table_id: TableId
    issued_at: datetime
    token: str


@dataclass(frozen=True)
class Caller:
    """Who is asking: an authenticated admin, a table-scoped customer, or neither."""

    principal: Principal | None = None
    table_session: TableSession | None = None

    def has_restaurant_access(self, restaurant_id: RestaurantId) -> bool:
        return self.principal is not None and self.principal.has_restaurant_access(restaurant_id)

    def require_restaurant_access(self, restaurant_id: RestaurantId) -> Principal:
        if self.principal is None:
            raise AuthorizationError("authentication required")
        if not self.principal.has_restaurant_access(restaurant_id):
            raise AuthorizationError(f"no access to restaurant {restaurant_id}")
        return self.principal

    def session_for(self, restaurant_id: RestaurantId, table_id: TableId) -> TableSession | None:
        session = self.table_session
        if session is None:
            return None
        if str(session.restaurant_id) != str(restaurant_id):
            return None
        if str(session.table_id) != str(table_id):
            return None
        return session


ANONYMOUS = Caller()
