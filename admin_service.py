"""
Admin-side management of a location, its events and their menus.

Callers check access first (see auth.AdminAccess); these methods assume
the current user may touch the rows they are given.
"""
import logging
from dataclasses import dataclass, field

from auth import hash_password
from store import DuplicateError, StoreError, copy_menu_item_fields
from validation import zip_digits

logger = logging.getLogger(__name__)


@dataclass
class AdminResult:
    success: bool
    message: str | None = None
    error: str | None = None
    errors: dict = field(default_factory=dict)
    value: object = None


def _fail(error, **errors) -> AdminResult:
    return AdminResult(success=False, error=error, errors=errors)


class AdminService:
    def __init__(self, store, lookup):
        self.store = store
        self.lookup = lookup

    # -----------------------
    # Locations
    # -----------------------
    def geocode_zip(self, zip_code) -> tuple[float | None, float | None]:
        """(lat, lng) for a zip code, or (None, None) when it can't be resolved."""
        if len(zip_digits(zip_code)) < 5:
            return None, None
        coords = self.lookup.resolve_postal_code(zip_code)
        if coords is None:
            logger.warning("Could not geocode zip %s; saving location without coordinates", zip_code)
            return None, None
        return coords.lat, coords.lng

    def register(self, email: str, password: str, location_fields: dict) -> AdminResult:
        """Sign up a location owner and create their location."""
        if self.store.get_user_by_email(email):
            return _fail("This email is already registered. Try signing in instead.",
                         email="This email is already registered.")
        try:
            user = self.store.create_user(email, hash_password(password))
        except DuplicateError:
            return _fail("This email is already registered. Try signing in instead.",
                         email="This email is already registered.")
        except StoreError:
            return _fail("Could not create account.")

        lat, lng = self.geocode_zip(location_fields.get("zip"))
        try:
            location = self.store.create_location(user_id=user.id, lat=lat, lng=lng, **location_fields)
        except StoreError:
            return AdminResult(
                success=False, value=user,
                error="Account was created but we could not save your location. Please sign in and contact support.",
            )
        return AdminResult(success=True, value=(user, location), message="Account created.")

    def save_location(self, location_id: int, fields: dict) -> AdminResult:
        lat, lng = self.geocode_zip(fields.get("zip"))
        try:
            location = self.store.update_location(location_id, lat=lat, lng=lng, **fields)
        except StoreError:
            return _fail("Could not save location.")
        if location is None:
            return _fail("Location not found.")
        return AdminResult(success=True, value=location, message="Location saved.")

    # -----------------------
    # Events
    # -----------------------
    def add_event(self, location_id: int, fields: dict) -> AdminResult:
        try:
            event = self.store.create_event(location_id, active=True, **fields)
        except StoreError:
            return _fail("Could not add event.")
        return AdminResult(success=True, value=event, message="Event added.")

    def delete_event(self, event_id: int) -> AdminResult:
        try:
            deleted = self.store.delete_event(event_id)
        except StoreError:
            return _fail("Could not delete event.")
        if not deleted:
            return _fail("Event not found.")
        return AdminResult(success=True, message="Event deleted.")

    def duplicate_event(self, source_event_id: int, new_date) -> AdminResult:
        """
        Clone an event onto a new date and copy its whole menu. The two
        writes are separate; if the copy fails the new event is kept and the
        failure is reported.
        """
        if not new_date:
            return _fail("Please choose a date.", event_date="Please choose a date.")
        source = self.store.get_event(source_event_id)
        if source is None:
            return _fail("Event not found.")
        try:
            created = self.store.create_event(
                source.location_id,
                event_date=new_date,
                start_time=source.start_time,
                end_time=source.end_time,
                dine_in=source.dine_in,
                pickup=source.pickup,
                notes=source.notes,
                active=True,
            )
        except StoreError:
            return _fail("Could not duplicate event.")

        rows = [copy_menu_item_fields(item) for item in self.store.menu_for_event(source_event_id, available_only=False)]
        if rows:
            try:
                self.store.add_menu_items(created.id, rows)
            except StoreError:
                return AdminResult(success=False, value=created,
                                   error="Event duplicated but its menu could not be copied.")
        return AdminResult(success=True, value=created, message="Event duplicated successfully.")

    # -----------------------
    # Menu
    # -----------------------
    def create_menu_item(self, event_id: int, fields: dict) -> AdminResult:
        try:
            item = self.store.create_menu_item(event_id, available=True, **fields)
        except StoreError:
            return _fail("Could not save menu item.")
        return AdminResult(success=True, value=item, message="Menu item created.")

    def update_menu_item(self, item_id: int, fields: dict) -> AdminResult:
        try:
            item = self.store.update_menu_item(item_id, **fields)
        except StoreError:
            return _fail("Could not save menu item.")
        if item is None:
            return _fail("Item not found.")
        return AdminResult(success=True, value=item, message="Menu item updated.")

    def toggle_menu_item(self, item_id: int) -> AdminResult:
        item = self.store.get_menu_item(item_id)
        if item is None:
            return _fail("Item not found.")
        return self.update_menu_item(item_id, {"available": not item.available})

    def delete_menu_item(self, item_id: int) -> AdminResult:
        try:
            deleted = self.store.delete_menu_item(item_id)
        except StoreError:
            return _fail("Could not delete menu item.")
        if not deleted:
            return _fail("Item not found.")
        return AdminResult(success=True, message="Menu item deleted.")

    def copy_menu(self, source_event_id: int, target_event_id: int | None) -> AdminResult:
        if not target_event_id:
            return _fail("Please choose an event to copy to.")
        if self.store.get_event(source_event_id) is None:
            return _fail("Could not find source event.")
        if self.store.get_event(target_event_id) is None:
            return _fail("Could not find target event.")
        source_items = self.store.menu_for_event(source_event_id, available_only=False)
        if not source_items:
            return _fail("Source event has no menu items to copy.")
        try:
            copied = self.store.add_menu_items(target_event_id, [copy_menu_item_fields(i) for i in source_items])
        except StoreError:
            return _fail("Could not copy menu items.")
        return AdminResult(success=True, value=copied, message=f"Copied {len(copied)} menu items successfully.")

    # -----------------------
    # Orders
    # -----------------------
    def list_orders(self, location_id: int) -> list:
        return self.store.orders_for_location(location_id)
