from __future__ import annotations

import json
import logging
from collections.abc import Callable
from contextlib import AbstractContextManager
from dataclasses import dataclass, replace
from typing import Any

from tableorder.application.callers import TableSession
from tableorder.application.ports.cache import KeyValueStore
from tableorder.application.table_sessions import hash_session_token
from tableorder.domain.cart.entities import Cart, CartLine, cart_from_order_lines
from tableorder.domain.common.ids import MenuItemId, OrderId, RestaurantId, TableId
from tableorder.domain.common.money import Money
from tableorder.domain.menu.entities import MenuItem
from tableorder.domain.order.entities import Order, OrderLine

logger = logging.getLogger(__name__)

DEFAULT_CART_TTL_SECONDS = 24 * 60 * 60
CART_LOCK_TIMEOUT_SECONDS = 5.0


@dataclass(frozen=True)
class CartKey:
    """Identifies one customer's cart: a table session at a table of a tenant."""

    tenant_id: RestaurantId | None
    table_id: TableId | None
    session_hash: str | None = None

    @classmethod
    def for_session(cls, session: TableSession) -> CartKey:
        return cls(
            tenant_id=session.restaurant_id,
            table_id=session.table_id,
            session_hash=hash_session_token(session.token),
        )

    @property
    def has_context(self) -> bool:
        return bool(self.tenant_id) and bool(self.table_id) and bool(self.session_hash)

    def storage_key(self) -> str:
        return f"cart:{self.tenant_id}:{self.table_id}:{self.session_hash}"

    def generation_key(self) -> str:
        return f"cart-gen:{self.tenant_id}:{self.table_id}:{self.session_hash}"

    def lock_key(self) -> str:
        return f"cart-lock:{self.tenant_id}:{self.table_id}:{self.session_hash}"


@dataclass(frozen=True)
class LoadToken:
    generation: int


class LoadGuard:
    """Tracks which background load is still allowed to apply its result.

    The generation counter lives in the store, so a load started by one
    worker is superseded by an edit made through any other worker.
    """

    def __init__(self, store: KeyValueStore, key: str, ttl_seconds: int) -> None:
        self._store = store
        self._key = key
        self._ttl_seconds = ttl_seconds

    def begin(self) -> LoadToken:
        return LoadToken(generation=self._store.incr(self._key, ttl_seconds=self._ttl_seconds))

    def invalidate(self) -> None:
        self._store.incr(self._key, ttl_seconds=self._ttl_seconds)

    def is_current(self, token: LoadToken) -> bool:
        raw = self._store.get(self._key)
        if raw is None:
            return False
        try:
            return int(raw) == token.generation
        except ValueError:
            return False


class CartManager:
    """Cart of one table session, persisted in the key-value store.

    Every mutation re-reads the stored cart under a store lock before
    applying itself, so concurrent requests for the same cart never
    overwrite each other's edits.
    """

    def __init__(
        self,
        store: KeyValueStore,
        key: CartKey,
        currency: str = "USD",
        ttl_seconds: int = DEFAULT_CART_TTL_SECONDS,
        lock_timeout_seconds: float = CART_LOCK_TIMEOUT_SECONDS,
    ) -> None:
        self._store = store
        self._key = key
        self._currency = currency
        self._ttl_seconds = ttl_seconds
        self._lock_timeout_seconds = lock_timeout_seconds
        self._guard = LoadGuard(store, key.generation_key(), ttl_seconds)
        self._cart = self._load()

    @property
    def key(self) -> CartKey:
        return self._key

    @property
    def cart(self) -> Cart:
        return self._cart

    @property
    def lines(self) -> tuple[CartLine, ...]:
        return self._cart.lines

    @property
    def guard(self) -> LoadGuard:
        return self._guard

    def add_item(self, menu_item: MenuItem) -> None:
        self._mutate(lambda cart: cart.add_item(menu_item))

    def change_quantity(self, menu_item_id: str, delta: int) -> None:
        self._mutate(lambda cart: cart.change_quantity(menu_item_id, delta))

    def update_notes(self, menu_item_id: str, text: str) -> None:
        self._mutate(lambda cart: cart.update_notes(menu_item_id, text))

    def remove_item(self, menu_item_id: str) -> None:
        self._mutate(lambda cart: cart.remove_item(menu_item_id))

    def total(self) -> Money:
        return self._cart.total(self._currency_for_total())

    def count(self) -> int:
        return self._cart.count()

    def clear(self) -> None:
        self._cart = Cart()
        if not self._key.has_context:
            return
        with self._locked():
            self._store.delete(self._key.storage_key())
            self._guard.invalidate()

    def reconcile_with_order(
        self,
        order_lines: list[OrderLine],
        order_id: OrderId | None = None,
        token: LoadToken | None = None,
    ) -> bool:
        """Seed an empty cart from a pending order; local edits always win.

        Returns True when the cart was seeded.
        """
        if not self._key.has_context:
            return False
        with self._locked():
            if token is not None and not self._guard.is_current(token):
                logger.info("cart_reconcile_superseded", extra={"cart_key": self._key.storage_key()})
                return False
            self._cart = self._load()
            if not self._cart.is_empty:
                return False
            seeded = cart_from_order_lines(order_lines, order_id=order_id)
            if seeded.is_empty:
                return False
            self._cart = seeded
            self._persist()
        return True

    def mark_submitted(self, order_id: OrderId) -> None:
        self._mutate(lambda cart: replace(cart, order_id=order_id), invalidate=False)

    def sync_with_order_status(self, order: Order | None) -> bool:
        """Drop the cart once the order it was submitted as is no longer editable.

        Returns True when the cart was cleared.
        """
        if order is None or self._cart.order_id is None:
            return False
        if str(order.order_id) != str(self._cart.order_id):
            return False
        if order.is_editable:
            return False
        self.clear()
        return True

    def _mutate(self, change: Callable[[Cart], Cart], invalidate: bool = True) -> None:
        if not self._key.has_context:
            return
        with self._locked():
            current = self._load()
            updated = change(current)
            self._cart = updated
            if updated == current:
                return
            if invalidate:
                self._guard.invalidate()
            self._persist()

    def _locked(self) -> AbstractContextManager[None]:
        return self._store.lock(self._key.lock_key(), timeout_seconds=self._lock_timeout_seconds)

    def _currency_for_total(self) -> str:
        if self._cart.lines:
            return self._cart.lines[0].unit_price.currency
        return self._currency

    def _persist(self) -> None:
        self._store.set(
            self._key.storage_key(),
            json.dumps(_serialize_cart(self._cart), separators=(",", ":")),
            ttl_seconds=self._ttl_seconds,
        )

    def _load(self) -> Cart:
        if not self._key.has_context:
            return Cart()
        raw = self._store.get(self._key.storage_key())
        if not raw:
            return Cart()
        try:
            return _deserialize_cart(json.loads(raw))
        except (ValueError, KeyError, TypeError):
            logger.warning("cart_payload_invalid", extra={"cart_key": self._key.storage_key()})
            return Cart()


def _serialize_cart(cart: Cart) -> dict[str, Any]:
    return {
        "orderId": str(cart.order_id) if cart.order_id else None,
        "lines": [
            {
                "menuItemId": str(line.menu_item_id),
                "name": line.name,
                "unitPriceCents": line.unit_price.amount_cents,
                "currency": line.unit_price.currency,
                "quantity": line.quantity,
                "notes": line.notes,
            }
            for line in cart.lines
        ],
    }


def _deserialize_cart(payload: dict[str, Any]) -> Cart:
    lines: list[CartLine] = []
    seen: set[str] = set()
    for raw_line in payload["lines"]:
        menu_item_id = str(raw_line["menuItemId"])
        if not menu_item_id or menu_item_id in seen:
            continue
        seen.add(menu_item_id)
        lines.append(
            CartLine(
                menu_item_id=MenuItemId(menu_item_id),
                name=str(raw_line["name"]),
                unit_price=Money(
                    amount_cents=int(raw_line["unitPriceCents"]),
                    currency=str(raw_line["currency"]),
                ),
                quantity=int(raw_line["quantity"]),
                notes=str(raw_line.get("notes") or ""),
            )
        )
    order_id = payload.get("orderId")
    return Cart(lines=tuple(lines), order_id=OrderId(order_id) if order_id else None)
