from dataclasses import dataclass
from decimal import Decimal

from pricing import (
    DINE_IN, PICKUP, CartLine, build_cart_lines, estimate_wait_minutes,
    filter_for_order_type, format_price, group_by_category, quote_order, sort_categories,
)


@dataclass
class Item:
    id: int
    name: str
    price: Decimal
    category: str = "fish"
    prep_time_minutes: int | None = None
    dine_in_only: bool = False
    pickup_only: bool = False


ITEMS = [
    Item(1, "Fried Cod", Decimal("12.00"), "fish", 20),
    Item(2, "Fries", Decimal("0.75"), "sides", 5),
    Item(3, "Clam Chowder", Decimal("4.00"), "sides", dine_in_only=True),
    Item(4, "Family Pack", Decimal("40.00"), "fish", 30, pickup_only=True),
    Item(5, "Soda", Decimal("1.50"), "drinks"),
]


def test_filter_for_order_type():
    assert [i.id for i in filter_for_order_type(ITEMS, DINE_IN)] == [1, 2, 3, 5]
    assert [i.id for i in filter_for_order_type(ITEMS, PICKUP)] == [1, 2, 4, 5]


def test_quote_total_and_wait():
    lines = build_cart_lines(ITEMS, {1: 1, 2: 2})
    quote = quote_order(lines)
    assert quote.total == Decimal("13.50")
    assert quote.estimated_wait_minutes == 20


def test_zero_and_unknown_quantities_are_dropped():
    lines = build_cart_lines(ITEMS, {1: 0, 2: 3, 99: 4})
    assert [(line.menu_item_id, line.quantity) for line in lines] == [(2, 3)]


def test_hidden_items_fall_out_of_cart():
    visible = filter_for_order_type(ITEMS, DINE_IN)
    lines = build_cart_lines(visible, {1: 1, 4: 2})
    assert [line.menu_item_id for line in lines] == [1]


def test_empty_quote():
    quote = quote_order([])
    assert quote.lines == []
    assert quote.total == Decimal("0.00")
    assert quote.estimated_wait_minutes is None


def test_wait_ignores_missing_and_zero_prep():
    lines = [
        CartLine(1, "a", Decimal("1"), 1, None),
        CartLine(2, "b", Decimal("1"), 1, 0),
    ]
    assert estimate_wait_minutes(lines) is None
    lines.append(CartLine(3, "c", Decimal("1"), 1, 7))
    assert estimate_wait_minutes(lines) == 7


def test_decimal_sums_do_not_drift():
    lines = build_cart_lines([Item(1, "x", Decimal("0.10"))], {1: 3})
    assert quote_order(lines).total == Decimal("0.30")


def test_category_order():
    assert sort_categories(["other", "drinks", "Zebra", "fish", "sides", "desserts"]) == [
        "fish", "sides", "drinks", "desserts", "other", "Zebra",
    ]


def test_group_by_category():
    groups = group_by_category(ITEMS)
    assert [name for name, _ in groups] == ["fish", "sides", "drinks"]
    assert [i.id for i in groups[0][1]] == [1, 4]


def test_format_price():
    assert format_price(Decimal("13.5")) == "$13.50"
    assert format_price(1234.5) == "$1,234.50"


def test_quote_to_dict():
    data = quote_order(build_cart_lines(ITEMS, {2: 2})).to_dict()
    assert data["total"] == "1.50"
    assert data["lines"][0]["line_total"] == "1.50"


def test_two_item_cart_total_and_wait():
    a = Item(10, "A", Decimal("5.00"), prep_time_minutes=10)
    b = Item(11, "B", Decimal("3.50"), prep_time_minutes=20)
    quote = quote_order(build_cart_lines([a, b], {10: 2, 11: 1}))
    assert quote.total == Decimal("13.50")
    assert quote.estimated_wait_minutes == 20

    a.prep_time_minutes = b.prep_time_minutes = None
    assert quote_order(build_cart_lines([a, b], {10: 2, 11: 1})).estimated_wait_minutes is None
