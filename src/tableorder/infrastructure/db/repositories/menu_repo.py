from __future__ import annotations

from sqlalchemy import Engine, select
from sqlalchemy.orm import Session

from tableorder.application.ports.repositories import MenuRepository
from tableorder.domain.common.ids import CategoryId, MenuItemId, RestaurantId
from tableorder.domain.common.money import Money
from tableorder.domain.menu.entities import Category, Menu, MenuItem
from tableorder.infrastructure.db.models.menu import CategoryModel, MenuItemModel, RestaurantModel
from tableorder.infrastructure.db.session import get_engine, storage_errors


class SqlAlchemyMenuRepository(MenuRepository):
    def __init__(self, engine: Engine | None = None) -> None:
        self._engine = engine or get_engine()

    def get_menu_by_restaurant_id(self, restaurant_id: RestaurantId) -> Menu | None:
        with storage_errors("get_menu"), Session(self._engine) as session:
            restaurant = session.get(RestaurantModel, str(restaurant_id))
            if restaurant is None:
                return None
            category_models = session.execute(
                select(CategoryModel)
                .where(CategoryModel.restaurant_id == str(restaurant_id))
                .order_by(CategoryModel.position, CategoryModel.id)
            ).scalars().all()
            item_models = session.execute(
                select(MenuItemModel)
                .where(MenuItemModel.restaurant_id == str(restaurant_id))
                .order_by(MenuItemModel.position, MenuItemModel.id)
            ).scalars().all()
            currency = restaurant.currency

        categories = [
            Category(
                category_id=CategoryId(model.id),
                name=model.name,
                position=model.position,
            )
            for model in category_models
        ]
        items = [
            MenuItem(
                item_id=MenuItemId(item.id),
                name=item.name,
                description=item.description,
                price_money=Money(amount_cents=item.price_cents, currency=item.currency),
                is_available=item.is_available,
                category_id=CategoryId(item.category_id) if item.category_id else None,
                position=item.position,
            )
            for item in item_models
        ]
        return Menu(
            restaurant_id=restaurant_id,
            currency=currency,
            categories=categories,
            items=items,
        )
