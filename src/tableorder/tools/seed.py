from __future__ import annotations

import os

from sqlalchemy import inspect
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.orm import Session

from tableorder.infrastructure.db.models.access import RestaurantUserModel
from tableorder.infrastructure.db.models.menu import CategoryModel, MenuItemModel, RestaurantModel
from tableorder.infrastructure.db.models.table import TableModel
from tableorder.infrastructure.db.session import get_engine

RESTAURANT_ID = "rst_001"
TABLE_ID = "tbl_001"
TABLE_UUID = "5f1c2d9e-7a4b-4c1e-9d3f-2b8a6e0c4d11"

CATEGORIES = [
    {"id": "cat_001", "restaurant_id": RESTAURANT_ID, "name": "Mains", "position": 1},
    {"id": "cat_002", "restaurant_id": RESTAURANT_ID, "name": "Desserts", "position": 2},
]

ITEMS = [
    {
        "id": "itm_001",
        "restaurant_id": RESTAURANT_ID,
        "category_id": "cat_001",
        "name": "Margherita Pizza",
        "description": "Tomato, mozzarella, basil",
        "price_cents": 1450,
        "currency": "USD",
        "is_available": True,
        "position": 1,
    },
    {
        "id": "itm_002",
        "restaurant_id": RESTAURANT_ID,
        "category_id": "cat_001",
        "name": "Chicken Alfredo",
        "description": "Fettuccine, creamy parmesan sauce",
        "price_cents": 1690,
        "currency": "USD",
        "is_available": True,
        "position": 2,
    },
    {
        "id": "itm_003",
        "restaurant_id": RESTAURANT_ID,
        "category_id": None,
        "name": "Caesar Salad",
        "description": "Romaine, croutons, parmesan",
        "price_cents": 990,
        "currency": "USD",
        "is_available": True,
        "position": 3,
    },
    {
        "id": "itm_004",
        "restaurant_id": RESTAURANT_ID,
        "category_id": "cat_002",
        "name": "Tiramisu",
        "description": "Espresso-soaked ladyfingers",
        "price_cents": 850,
        "currency": "USD",
        "is_available": False,
        "position": 1,
    },
]


def main() -> None:
    engine = get_engine(timeout_seconds=2.0)
    inspector = inspect(engine)
    required_tables = {"restaurants", "menu_categories", "menu_items", "tables", "restaurant_users"}
    if not required_tables.issubset(set(inspector.get_table_names(schema="public"))):
        print("no schema yet")
        return

    with Session(engine) as session:
        session.execute(
            insert(RestaurantModel)
            .values(id=RESTAURANT_ID, name="Downtown Test Kitchen", currency="USD")
            .on_conflict_do_update(
                index_elements=[RestaurantModel.id],
                set_={"name": "Downtown Test Kitchen", "currency": "USD"},
            )
        )

        for category in CATEGORIES:
            session.execute(
                insert(CategoryModel)
                .values(**category)
                .on_conflict_do_update(
                    index_elements=[CategoryModel.id],
                    set_={"name": category["name"], "position": category["position"]},
                )
            )

        for item in ITEMS:
            session.execute(
                insert(MenuItemModel)
                .values(**item)
                .on_conflict_do_update(
                    index_elements=[MenuItemModel.id],
                    set_={
                        key: value
                        for key, value in item.items()
                        if key not in ("id", "restaurant_id")
                    },
                )
            )

        session.execute(
            insert(TableModel)
            .values(id=TABLE_ID, restaurant_id=RESTAURANT_ID, name="Table 1", table_uuid=TABLE_UUID)
            .on_conflict_do_update(
                index_elements=[TableModel.id],
                set_={"name": "Table 1", "table_uuid": TABLE_UUID},
            )
        )

        admin_user_id = os.getenv("SEED_ADMIN_USER_ID")
        if admin_user_id:
            session.execute(
                insert(RestaurantUserModel)
                .values(user_id=admin_user_id, restaurant_id=RESTAURANT_ID, role="admin")
                .on_conflict_do_nothing()
            )

        session.commit()
        print("seed complete")


if __name__ == "__main__":
    main()
