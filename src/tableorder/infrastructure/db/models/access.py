from __future__ import annotations

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from tableorder.infrastructure.db.models.menu import Base


class RestaurantUserModel(Base):
    __tablename__ = "restaurant_users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    restaurant_id: Mapped[str] = mapped_column(
        String(50),
        ForeignKey("restaurants.id", ondelete="CASCADE"),
        primary_key=True,
    )
    role: Mapped[str] = mapped_column(String(20), nullable=False, server_default="admin")


class PlatformUserModel(Base):
    __tablename__ = "platform_users"

    user_id: Mapped[str] = mapped_column(String(64), primary_key=True)
    is_super_admin: Mapped[bool] = mapped_column(nullable=False, server_default="false")
