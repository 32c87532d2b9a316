import pytest
import pydantic
from types import SimpleNamespace
from core.exceptions import ItemNotFound, ValidationError
from schemas.order_schemas import CartItem
from services.checkout_builder import build_checkout, parse_quantity


MENU = [
    SimpleNamespace(id="A", name="Taco de asada", price=5000),
    SimpleNamespace(id="B", name="Agua de horchata", price=1500),
]


def test_total_is_menu_price_times_quantity_plus_delivery():
    cart = [CartItem(menu_item_id="A", quantity="2")]

    quote = build_checkout(cart, MENU, delivery_price=2000)

    assert quote.items_total == 10000
    assert quote.delivery_fee == 2000
    assert quote.total_amount == 12000


def test_line_items_keep_cart_order_and_snapshot_names():
    cart = [
        CartItem(menu_item_id="B", quantity=3),
        CartItem(menu_item_id="A", name="client supplied name", quantity="1"),
    ]

    quote = build_checkout(cart, MENU, delivery_price=0)

    assert [item.menu_item_id for item in quote.line_items] == ["B", "A"]
    # Name and price come from the menu, never from the client
    assert quote.line_items[1].name == "Taco de asada"
    assert quote.line_items[1].unit_amount == 5000
    assert quote.total_amount == 3 * 1500 + 5000


def test_unknown_menu_item_aborts_checkout():
    cart = [
        CartItem(menu_item_id="A", quantity=1),
        CartItem(menu_item_id="ZZZ", quantity=1),
    ]

    with pytest.raises(ItemNotFound) as exc_info:
        build_checkout(cart, MENU, delivery_price=2000)

    assert exc_info.value.status_code == 404
    assert "ZZZ" in exc_info.value.detail


def test_empty_cart_rejected():
    with pytest.raises(ValidationError):
        build_checkout([], MENU, delivery_price=2000)


def test_missing_delivery_price_counts_as_zero():
    quote = build_checkout([CartItem(menu_item_id="A", quantity=1)], MENU, delivery_price=None)

    assert quote.total_amount == 5000


@pytest.mark.parametrize("value, expected", [("2", 2), (" 7 ", 7), (3, 3)])
def test_parse_quantity_accepts_numeric_strings(value, expected):
    assert parse_quantity(value) == expected


@pytest.mark.parametrize("value", ["0", "-1", "two", "", None])
def test_parse_quantity_rejects_non_positive_or_garbage(value):
    with pytest.raises(ValidationError):
        parse_quantity(value)


def test_cart_item_schema_rejects_zero_quantity():
    with pytest.raises(pydantic.ValidationError):
        CartItem(menu_item_id="A", quantity="0")
