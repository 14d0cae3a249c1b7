"""
Form validation. Each validator returns the cleaned values plus a dict of
field -> error message; an empty dict means the input is good. Nothing
here touches the database or the network.
"""
import re
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import Decimal, InvalidOperation

from geo import is_known_state, state_abbr
from pricing import CATEGORIES, DIETARY_TAGS, ORDER_TYPES

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

LOCATION_TYPES = (
    ("church", "Church"),
    ("vfw", "VFW"),
    ("knights of columbus", "Knights of Columbus"),
    ("other", "Other"),
)

MIN_PASSWORD_LENGTH = 6

# menu_items.price is Numeric(10, 2)
MAX_PRICE = Decimal("99999999.99")


@dataclass
class OrderDetails:
    customer_name: str
    order_type: str
    customer_phone: str | None = None
    customer_email: str | None = None
    pickup_time: str | None = None
    notes: str | None = None


def _text(data, key) -> str:
    value = data.get(key)
    return str(value).strip() if value is not None else ""


def _optional(data, key) -> str | None:
    return _text(data, key) or None


def _as_bool(value) -> bool:
    if isinstance(value, bool):
        return value
    return str(value or "").strip().lower() in ("1", "true", "on", "yes")


def _get_list(data, key) -> list:
    if hasattr(data, "getlist"):
        return data.getlist(key)
    value = data.get(key)
    if value is None:
        return []
    return list(value) if isinstance(value, (list, tuple)) else [value]


def parse_price(value) -> Decimal:
    v = ("" if value is None else str(value)).strip().replace("$", "").replace(",", "")
    try:
        price = Decimal(v)
    except InvalidOperation:
        raise ValueError(f"not a price: {value!r}") from None
    if not price.is_finite():
        raise ValueError(f"not a price: {value!r}")
    try:
        return price.quantize(Decimal("0.01"))
    except InvalidOperation:
        raise ValueError(f"not a price: {value!r}") from None


def parse_date(value) -> date | None:
    if isinstance(value, date):
        return value
    v = str(value or "").strip()
    if not v:
        return None
    try:
        return date.fromisoformat(v)
    except ValueError:
        return None


def parse_time(value) -> time | None:
    v = str(value or "").strip()
    if not v:
        return None
    for fmt in ("%H:%M", "%H:%M:%S"):
        try:
            return datetime.strptime(v, fmt).time()
        except ValueError:
            continue
    raise ValueError(f"not a time: {value!r}")


def zip_digits(value) -> str:
    return "".join(ch for ch in str(value or "") if ch.isdigit())


# -----------------------
# Customer order
# -----------------------
def validate_order(data) -> tuple[OrderDetails, dict]:
    errors = {}
    details = OrderDetails(
        customer_name=_text(data, "customer_name"),
        order_type=_text(data, "order_type"),
        customer_phone=_optional(data, "customer_phone"),
        customer_email=_optional(data, "customer_email"),
        pickup_time=_optional(data, "pickup_time"),
        notes=_optional(data, "notes"),
    )
    if not details.customer_name:
        errors["customer_name"] = "Please enter your name."
    if details.order_type not in ORDER_TYPES:
        errors["order_type"] = "Choose dine-in or pickup."
    if details.customer_email and not EMAIL_RE.match(details.customer_email):
        errors["customer_email"] = "Please enter a valid email address."
    return details, errors


def parse_quantities(raw) -> dict[int, int]:
    """
    Menu item id -> quantity from either form fields named ``qty_<id>`` or a
    JSON list of ``{"menu_item_id": .., "quantity": ..}``. Bad entries are
    dropped; negative quantities count as zero.
    """
    quantities = {}
    if isinstance(raw, list):
        pairs = ((entry.get("menu_item_id"), entry.get("quantity")) for entry in raw if isinstance(entry, dict))
    elif isinstance(raw, Mapping):
        pairs = ((k[len("qty_"):], v) for k, v in raw.items() if str(k).startswith("qty_"))
    else:
        return quantities
    for item_id, qty in pairs:
        try:
            quantities[int(item_id)] = max(0, int(qty or 0))
        except (TypeError, ValueError, OverflowError):
            continue
    return quantities


# -----------------------
# Admin forms
# -----------------------
def validate_signup(data) -> tuple[str, str, dict]:
    errors = {}
    email = _text(data, "email").lower()
    password = str(data.get("password") or "")
    confirm = data.get("confirm_password")
    if not EMAIL_RE.match(email):
        errors["email"] = "Please enter a valid email address."
    if len(password) < MIN_PASSWORD_LENGTH:
        errors["password"] = f"Password must be at least {MIN_PASSWORD_LENGTH} characters."
    elif confirm is not None and confirm != password:
        errors["confirm_password"] = "Passwords do not match."
    return email, password, errors


def validate_location(data) -> tuple[dict, dict]:
    errors = {}
    fields = {
        "name": _text(data, "name"),
        "address": _optional(data, "address"),
        "city": _optional(data, "city"),
        "state": _optional(data, "state"),
        "zip": _optional(data, "zip"),
        "type": _optional(data, "type") or "church",
        "description": _optional(data, "description"),
        "contact_name": _optional(data, "contact_name"),
        "contact_phone": _optional(data, "contact_phone"),
        "contact_email": _optional(data, "contact_email"),
    }
    if not fields["name"]:
        errors["name"] = "Organization name is required."
    if fields["state"]:
        if not is_known_state(fields["state"]):
            errors["state"] = "Use a US state, e.g. MO or Missouri."
        else:
            fields["state"] = state_abbr(fields["state"]).upper()
    if fields["zip"] and len(zip_digits(fields["zip"])) < 5:
        errors["zip"] = "Zip code must have 5 digits."
    if fields["type"] not in {value for value, _ in LOCATION_TYPES}:
        errors["type"] = "Choose an organization type."
    if fields["contact_email"] and not EMAIL_RE.match(fields["contact_email"]):
        errors["contact_email"] = "Please enter a valid email address."
    return fields, errors


def validate_event(data) -> tuple[dict, dict]:
    errors = {}
    fields = {
        "event_date": parse_date(data.get("event_date")),
        "dine_in": _as_bool(data.get("dine_in")),
        "pickup": _as_bool(data.get("pickup")),
        "notes": _optional(data, "notes"),
        "start_time": None,
        "end_time": None,
    }
    if fields["event_date"] is None:
        errors["event_date"] = "Please choose a date."
    for key in ("start_time", "end_time"):
        try:
            fields[key] = parse_time(data.get(key))
        except ValueError:
            errors[key] = "Use HH:MM."
    return fields, errors


def validate_menu_item(data) -> tuple[dict, dict]:
    errors = {}
    fields = {
        "name": _text(data, "name"),
        "description": _optional(data, "description"),
        "category": _text(data, "category").lower() or "other",
        "dietary_tags": [t for t in _get_list(data, "dietary_tags") if t],
        "dine_in_only": _as_bool(data.get("dine_in_only")),
        "pickup_only": _as_bool(data.get("pickup_only")),
        "prep_time_minutes": None,
        "price": None,
    }
    if not fields["name"]:
        errors["name"] = "Name is required."

    try:
        fields["price"] = parse_price(data.get("price"))
        if fields["price"] < 0:
            errors["price"] = "Price cannot be negative."
        elif fields["price"] > MAX_PRICE:
            errors["price"] = "Price is too large."
    except ValueError:
        errors["price"] = "Price must be a number like 9.99."

    prep = _text(data, "prep_time_minutes")
    if prep:
        try:
            minutes = int(prep)
            if minutes < 0:
                raise ValueError(prep)
            fields["prep_time_minutes"] = minutes or None
        except ValueError:
            errors["prep_time_minutes"] = "Prep time must be a whole number of minutes."

    unknown = [t for t in fields["dietary_tags"] if t not in DIETARY_TAGS]
    if unknown:
        errors["dietary_tags"] = f"Unknown dietary tag: {unknown[0]}"
    if fields["dine_in_only"] and fields["pickup_only"]:
        errors["dine_in_only"] = "An item can be dine-in only or pickup only, not both."
    if fields["category"] not in CATEGORIES:
        # free text is allowed, only trimmed
        fields["category"] = fields["category"][:60]
    return fields, errors
