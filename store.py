"""
Persistence layer: typed CRUD over users, admins, locations, events,
menu_items, orders and order_items.

One session per call. Write failures are logged and re-raised as
StoreError so callers decide whether they are fatal.
"""
import logging
from contextlib import contextmanager
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import selectinload, joinedload

from event_filter import EventListing, LocationSummary
from models import Admin, Event, Location, MenuItem, Order, OrderItem, User

logger = logging.getLogger(__name__)

LOCATION_FIELDS = (
    "name", "address", "city", "state", "zip", "lat", "lng", "type",
    "description", "contact_name", "contact_phone", "contact_email",
)
EVENT_FIELDS = ("event_date", "start_time", "end_time", "dine_in", "pickup", "active", "notes")
MENU_ITEM_FIELDS = (
    "name", "description", "price", "category", "available",
    "prep_time_minutes", "dietary_tags", "dine_in_only", "pickup_only",
)


class StoreError(Exception):
    pass


class DuplicateError(StoreError):
    pass


def to_event_listing(event: Event) -> EventListing:
    loc = event.location
    summary = None
    if loc is not None:
        summary = LocationSummary(
            id=loc.id,
            name=loc.name or "",
            city=(loc.city or "").strip(),
            state=(loc.state or "").strip(),
            zip=(loc.zip or "").strip(),
            lat=loc.lat,
            lng=loc.lng,
        )
    return EventListing(
        id=event.id,
        event_date=event.event_date,
        start_time=event.start_time,
        end_time=event.end_time,
        dine_in=bool(event.dine_in),
        pickup=bool(event.pickup),
        location=summary,
    )


def copy_menu_item_fields(item: MenuItem) -> dict:
    data = {f: getattr(item, f) for f in MENU_ITEM_FIELDS}
    data["dietary_tags"] = list(item.dietary_tags or [])
    return data


class Store:
    def __init__(self, session_factory):
        self.session_factory = session_factory

    @contextmanager
    def _writing(self, what: str):
        with self.session_factory() as s:
            try:
                yield s
                s.commit()
            except IntegrityError as e:
                s.rollback()
                logger.error("%s failed: %s", what, e)
                raise DuplicateError(f"{what} failed") from e
            except SQLAlchemyError as e:
                s.rollback()
                logger.error("%s failed: %s", what, e)
                raise StoreError(f"{what} failed") from e

    # -----------------------
    # Users / admins
    # -----------------------
    def create_user(self, email: str, password_hash: str) -> User:
        with self._writing("Create user") as s:
            user = User(email=email.strip().lower(), password_hash=password_hash)
            s.add(user)
            s.flush()
        return user

    def get_user_by_email(self, email: str) -> User | None:
        with self.session_factory() as s:
            return s.scalars(select(User).filter_by(email=(email or "").strip().lower())).first()

    def get_user(self, user_id: int) -> User | None:
        with self.session_factory() as s:
            return s.get(User, user_id)

    def is_super_admin(self, user_id: int) -> bool:
        with self.session_factory() as s:
            return s.get(Admin, user_id) is not None

    def add_super_admin(self, user_id: int) -> None:
        with self._writing("Add super admin") as s:
            if s.get(Admin, user_id) is None:
                s.add(Admin(user_id=user_id))

    # -----------------------
    # Locations
    # -----------------------
    def create_location(self, user_id: int | None = None, **fields) -> Location:
        with self._writing("Create location") as s:
            loc = Location(user_id=user_id, **{k: v for k, v in fields.items() if k in LOCATION_FIELDS})
            s.add(loc)
            s.flush()
        return loc

    def get_location(self, location_id: int) -> Location | None:
        with self.session_factory() as s:
            return s.get(Location, location_id)

    def location_for_owner(self, user_id: int) -> Location | None:
        with self.session_factory() as s:
            return s.scalars(select(Location).filter_by(user_id=user_id)).first()

    def update_location(self, location_id: int, **fields) -> Location | None:
        with self._writing("Update location") as s:
            loc = s.get(Location, location_id)
            if loc is None:
                return None
            for key, value in fields.items():
                if key in LOCATION_FIELDS:
                    setattr(loc, key, value)
        return loc

    def managed_locations(self, user_id: int, is_super_admin: bool) -> list[Location]:
        with self.session_factory() as s:
            q = select(Location).order_by(Location.name)
            if not is_super_admin:
                q = q.filter_by(user_id=user_id)
            return list(s.scalars(q).all())

    # -----------------------
    # Events
    # -----------------------
    def upcoming_events(self, today: date) -> list[EventListing]:
        """Active events from today on, as plain listings for the filter engine."""
        with self.session_factory() as s:
            q = (
                select(Event)
                .options(joinedload(Event.location))
                .where(Event.active.is_(True), Event.event_date >= today)
                .order_by(Event.event_date, Event.start_time, Event.id)
            )
            return [to_event_listing(e) for e in s.scalars(q).unique().all()]

    def get_event(self, event_id: int) -> Event | None:
        with self.session_factory() as s:
            return s.scalars(
                select(Event).options(joinedload(Event.location)).filter_by(id=event_id)
            ).first()

    def events_for_location(self, location_id: int, with_menu: bool = False) -> list[Event]:
        with self.session_factory() as s:
            q = (
                select(Event)
                .options(joinedload(Event.location))
                .filter_by(location_id=location_id)
                .order_by(Event.event_date.desc(), Event.id.desc())
            )
            if with_menu:
                q = q.options(selectinload(Event.menu_items))
            return list(s.scalars(q).unique().all())

    def create_event(self, location_id: int, **fields) -> Event:
        with self._writing("Create event") as s:
            event = Event(location_id=location_id, **{k: v for k, v in fields.items() if k in EVENT_FIELDS})
            s.add(event)
            s.flush()
        return event

    def delete_event(self, event_id: int) -> bool:
        with self._writing("Delete event") as s:
            event = s.get(Event, event_id)
            if event is None:
                return False
            s.delete(event)
        return True

    # -----------------------
    # Menu items
    # -----------------------
    def menu_for_event(self, event_id: int, available_only: bool = True) -> list[MenuItem]:
        with self.session_factory() as s:
            q = select(MenuItem).filter_by(event_id=event_id)
            if available_only:
                q = q.where(MenuItem.available.is_(True))
            q = q.order_by(MenuItem.category, MenuItem.name)
            return list(s.scalars(q).all())

    def get_menu_item(self, item_id: int) -> MenuItem | None:
        with self.session_factory() as s:
            return s.get(MenuItem, item_id)

    def create_menu_item(self, event_id: int, **fields) -> MenuItem:
        with self._writing("Create menu item") as s:
            item = MenuItem(event_id=event_id, **{k: v for k, v in fields.items() if k in MENU_ITEM_FIELDS})
            s.add(item)
            s.flush()
        return item

    def add_menu_items(self, event_id: int, rows: list[dict]) -> list[MenuItem]:
        with self._writing("Insert menu items") as s:
            items = [
                MenuItem(event_id=event_id, **{k: v for k, v in row.items() if k in MENU_ITEM_FIELDS})
                for row in rows
            ]
            s.add_all(items)
            s.flush()
        return items

    def update_menu_item(self, item_id: int, **fields) -> MenuItem | None:
        with self._writing("Update menu item") as s:
            item = s.get(MenuItem, item_id)
            if item is None:
                return None
            for key, value in fields.items():
                if key in MENU_ITEM_FIELDS:
                    setattr(item, key, value)
        return item

    def delete_menu_item(self, item_id: int) -> bool:
        with self._writing("Delete menu item") as s:
            item = s.get(MenuItem, item_id)
            if item is None:
                return False
            s.delete(item)
        return True

    # -----------------------
    # Orders
    # -----------------------
    def create_order(self, event_id: int, **fields) -> Order:
        with self._writing("Order insert") as s:
            order = Order(event_id=event_id, **fields)
            s.add(order)
            s.flush()
        return order

    def add_order_items(self, order_id: int, lines) -> list[OrderItem]:
        """Snapshot name and unit price of each cart line."""
        with self._writing("Order items insert") as s:
            rows = [
                OrderItem(
                    order_id=order_id,
                    menu_item_id=line.menu_item_id,
                    item_name=line.name,
                    item_price=line.unit_price,
                    quantity=line.quantity,
                )
                for line in lines
            ]
            s.add_all(rows)
            s.flush()
        return rows

    def get_order(self, order_id: int) -> Order | None:
        with self.session_factory() as s:
            return s.scalars(
                select(Order)
                .options(
                    selectinload(Order.items),
                    joinedload(Order.event).joinedload(Event.location),
                )
                .filter_by(id=order_id)
            ).first()

    def orders_for_location(self, location_id: int) -> list[Order]:
        with self.session_factory() as s:
            q = (
                select(Order)
                .join(Event, Event.id == Order.event_id)
                .options(
                    selectinload(Order.items),
                    joinedload(Order.event).joinedload(Event.location),
                )
                .where(Event.location_id == location_id)
                .order_by(Order.created_at.desc(), Order.id.desc())
            )
            return list(s.scalars(q).unique().all())

    def update_order_status(self, order_id: int, status: str) -> Order | None:
        with self._writing("Order update") as s:
            order = s.get(Order, order_id)
            if order is None:
                return None
            order.status = status
        return self.get_order(order_id)
