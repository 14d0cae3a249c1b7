"""
Cart math for customer orders: order-type availability, line totals,
order total and the advisory wait estimate.
"""
from dataclasses import dataclass, field
from decimal import Decimal

DINE_IN = "dine_in"
PICKUP = "pickup"
ORDER_TYPES = (DINE_IN, PICKUP)

CATEGORIES = ("fish", "sides", "drinks", "desserts", "other")
CATEGORY_ORDER = ("fish", "sides", "drinks", "desserts")

DIETARY_TAGS = (
    "Gluten Free",
    "Dairy Free",
    "Nut Free",
    "Vegetarian",
    "Vegan",
    "Spicy",
)


def to_decimal(value) -> Decimal:
    if isinstance(value, Decimal):
        return value
    # str() first so floats like 3.5 don't carry binary noise into the sum
    return Decimal(str(value))


def filter_for_order_type(items, order_type: str) -> list:
    """Hide pickup-only items from dine-in orders and dine-in-only items from pickup."""
    visible = []
    for item in items:
        if order_type == DINE_IN and item.pickup_only:
            continue
        if order_type == PICKUP and item.dine_in_only:
            continue
        visible.append(item)
    return visible


def sort_categories(categories) -> list[str]:
    def key(name):
        lowered = name.lower()
        if lowered in CATEGORY_ORDER:
            return (0, CATEGORY_ORDER.index(lowered), "")
        return (1, 0, lowered)

    return sorted(categories, key=key)


def group_by_category(items) -> list[tuple[str, list]]:
    groups: dict[str, list] = {}
    for item in items:
        groups.setdefault(item.category or "Other", []).append(item)
    return [(name, groups[name]) for name in sort_categories(groups)]


@dataclass
class CartLine:
    menu_item_id: int
    name: str
    unit_price: Decimal
    quantity: int
    prep_time_minutes: int | None = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity

    def to_dict(self) -> dict:
        return {
            "menu_item_id": self.menu_item_id,
            "name": self.name,
            "unit_price": str(self.unit_price),
            "quantity": self.quantity,
            "line_total": str(self.line_total),
        }


@dataclass
class OrderQuote:
    lines: list[CartLine] = field(default_factory=list)
    total: Decimal = Decimal("0.00")
    estimated_wait_minutes: int | None = None

    def to_dict(self) -> dict:
        return {
            "lines": [line.to_dict() for line in self.lines],
            "total": str(self.total),
            "estimated_wait_minutes": self.estimated_wait_minutes,
        }


def build_cart_lines(items, quantities) -> list[CartLine]:
    """
    One line per item with a positive quantity. ``quantities`` maps menu
    item id to quantity; ids not present in ``items`` are ignored, which is
    how selections hidden by the order-type filter fall out of the cart.
    """
    lines = []
    for item in items:
        qty = int(quantities.get(item.id, 0) or 0)
        if qty > 0:
            lines.append(CartLine(
                menu_item_id=item.id,
                name=item.name,
                unit_price=to_decimal(item.price),
                quantity=qty,
                prep_time_minutes=item.prep_time_minutes,
            ))
    return lines


def estimate_wait_minutes(lines) -> int | None:
    prep_times = [line.prep_time_minutes for line in lines if line.prep_time_minutes and line.prep_time_minutes > 0]
    return max(prep_times) if prep_times else None


def quote_order(lines) -> OrderQuote:
    lines = [line for line in lines if line.quantity > 0]
    total = sum((line.line_total for line in lines), Decimal("0.00"))
    return OrderQuote(lines=lines, total=total, estimated_wait_minutes=estimate_wait_minutes(lines))


def format_price(amount) -> str:
    return f"${to_decimal(amount):,.2f}"
