from __future__ import annotations

from dataclasses import dataclass, field, replace

from tableorder.domain.common.ids import MenuItemId, OrderId
from tableorder.domain.common.money import Money
from tableorder.domain.menu.entities import MenuItem
from tableorder.domain.order.entities import OrderLine


@dataclass(frozen=True)
class CartLine:
    menu_item_id: MenuItemId
    name: str
    unit_price: Money
    quantity: int
    notes: str = ""

    def __post_init__(self) -> None:
        if self.quantity < 1:
            raise ValueError("quantity must be >= 1")

    @property
    def line_total(self) -> Money:
        return self.unit_price.times(self.quantity)


@dataclass(frozen=True)
class Cart:
    """Working selection for one table session.

    Holds at most one line per menu item id. ``order_id`` is the order the
    cart was last submitted as, if any.
    """

    lines: tuple[CartLine, ...] = field(default_factory=tuple)
    order_id: OrderId | None = None

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def line(self, menu_item_id: str) -> CartLine | None:
        for line in self.lines:
            if str(line.menu_item_id) == menu_item_id:
                return line
        return None

    def add_item(self, menu_item: MenuItem) -> Cart:
        existing = self.line(str(menu_item.item_id))
        if existing is not None:
            return self._replace_line(replace(existing, quantity=existing.quantity + 1))
        new_line = CartLine(
            menu_item_id=menu_item.item_id,
            name=menu_item.name,
            unit_price=menu_item.price_money,
            quantity=1,
        )
        return replace(self, lines=self.lines + (new_line,))

    def change_quantity(self, menu_item_id: str, delta: int) -> Cart:
        existing = self.line(menu_item_id)
        if existing is None:
            return self
        quantity = existing.quantity + delta
        if quantity <= 0:
            return self.remove_item(menu_item_id)
        return self._replace_line(replace(existing, quantity=quantity))

    def update_notes(self, menu_item_id: str, notes: str) -> Cart:
        existing = self.line(menu_item_id)
        if existing is None:
            return self
        return self._replace_line(replace(existing, notes=notes))

    def remove_item(self, menu_item_id: str) -> Cart:
        return replace(
            self,
            lines=tuple(line for line in self.lines if str(line.menu_item_id) != menu_item_id),
        )

    def total(self, currency: str) -> Money:
        total = Money.zero(currency)
        for line in self.lines:
            total = total + line.line_total
        return total

    def count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def _replace_line(self, updated: CartLine) -> Cart:
        return replace(
            self,
            lines=tuple(
                updated if line.menu_item_id == updated.menu_item_id else line
                for line in self.lines
            ),
        )


def cart_from_order_lines(lines: list[OrderLine], order_id: OrderId | None = None) -> Cart:
    """Seed a cart from a pending order's snapshot lines.

    Lines whose menu item has since been deleted carry no item id and cannot
    be resubmitted, so they are skipped. Repeated item ids are merged.
    """
    cart = Cart(order_id=order_id)
    for order_line in lines:
        if order_line.item_id is None:
            continue
        existing = cart.line(str(order_line.item_id))
        if existing is not None:
            cart = cart._replace_line(
                replace(existing, quantity=existing.quantity + order_line.quantity)
            )
            continue
        cart = replace(
            cart,
            lines=cart.lines
            + (
                CartLine(
                    menu_item_id=order_line.item_id,
                    name=order_line.name,
                    unit_price=order_line.unit_price,
                    quantity=order_line.quantity,
                    notes=order_line.notes or "",
                ),
            ),
        )
    return cart
