"""
Turns a cart into priced line items.

Prices always come from the restaurant's current menu, never from the
client. The builder is pure: it reads the menu snapshot it is given and
persists nothing.
"""

from dataclasses import dataclass
from typing import Iterable, Sequence
from core.exceptions import ItemNotFound, ValidationError
from schemas.order_schemas import CartItem


@dataclass(frozen=True)
class LineItem:
    menu_item_id: str
    name: str
    unit_amount: int
    quantity: int

    @property
    def subtotal(self) -> int:
        return self.unit_amount * self.quantity


@dataclass(frozen=True)
class CheckoutQuote:
    line_items: list[LineItem]
    delivery_fee: int

    @property
    def items_total(self) -> int:
        return sum(item.subtotal for item in self.line_items)

    @property
    def total_amount(self) -> int:
        return self.items_total + self.delivery_fee


def parse_quantity(value) -> int:
    """Quantities may arrive as "2" or 2; anything else is rejected."""
    try:
        quantity = int(str(value).strip())
    except (TypeError, ValueError):
        raise ValidationError(f"Invalid quantity: {value!r}")
    if quantity <= 0:
        raise ValidationError(f"Quantity must be positive: {value!r}")
    return quantity


def build_checkout(cart_items: Sequence[CartItem], menu_items: Iterable, delivery_price: int) -> CheckoutQuote:
    """
    Price a cart against a menu.

    Args:
        cart_items: Cart entries in the order the client sent them
        menu_items: The restaurant's current menu (objects with id, name, price)
        delivery_price: Restaurant delivery fee in minor units

    Raises:
        ItemNotFound: a cart entry references no current menu item
        ValidationError: empty cart or bad quantity
    """
    if not cart_items:
        raise ValidationError("Cart is empty")

    menu = {str(item.id): item for item in menu_items}

    line_items = []
    for cart_item in cart_items:
        menu_item = menu.get(str(cart_item.menu_item_id))
        if menu_item is None:
            raise ItemNotFound(
                f"Menu item not found: {cart_item.menu_item_id}",
                menu_item_id=cart_item.menu_item_id,
            )

        line_items.append(LineItem(
            menu_item_id=str(menu_item.id),
            name=menu_item.name,
            unit_amount=int(menu_item.price),
            quantity=parse_quantity(cart_item.quantity),
        ))

    return CheckoutQuote(line_items=line_items, delivery_fee=int(delivery_price or 0))
