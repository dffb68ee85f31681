from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from tableorder.application.ports.repositories import AccessRepository
from tableorder.domain.common.ids import UserId
from tableorder.infrastructure.db.models.access import PlatformUserModel, RestaurantUserModel
from tableorder.infrastructure.db.session import get_engine, storage_errors


class SqlAlchemyAccessRepository(AccessRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def restaurant_ids_for_user(self, user_id: UserId) -> frozenset[str]:
        statement = select(RestaurantUserModel.restaurant_id).where(
            RestaurantUserModel.user_id == str(user_id)
        )
        with storage_errors("restaurant_ids_for_user"), Session(self._engine) as session:
            rows = session.execute(statement).scalars().all()
        return frozenset(rows)

    def is_super_admin(self, user_id: UserId) -> bool:
        statement = select(PlatformUserModel.is_super_admin).where(
            PlatformUserModel.user_id == str(user_id)
        )
        with storage_errors("is_super_admin"), Session(self._engine) as session:
            value = session.execute(statement).scalar_one_or_none()
        return bool(value)
