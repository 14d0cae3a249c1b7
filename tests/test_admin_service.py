from datetime import date, timedelta
from decimal import Decimal

from validation import OrderDetails

from conftest import ST_LOUIS


def _location_fields(**overrides):
    fields = dict(name="VFW Post 42", city="Kirkwood", state="MO", zip="63122", type="vfw")
    fields.update(overrides)
    return fields


def test_register_creates_user_and_geocoded_location(admin_service, store):
    result = admin_service.register("new@example.com", "secret123", _location_fields())

    assert result.success
    user, location = result.value
    assert store.location_for_owner(user.id).id == location.id
    assert location.lat is not None and location.lng is not None


def test_register_without_resolvable_zip_saves_null_coords(admin_service):
    result = admin_service.register("new@example.com", "secret123", _location_fields(zip="00000"))
    _, location = result.value
    assert location.lat is None and location.lng is None


def test_register_duplicate_email(admin_service, owner):
    result = admin_service.register("owner@example.com", "secret123", _location_fields())
    assert not result.success
    assert "email" in result.errors


def test_save_location_regeocodes(admin_service, store, location):
    result = admin_service.save_location(location.id, _location_fields(name="St. Mary", zip="63122"))
    assert result.success
    saved = store.get_location(location.id)
    assert saved.name == "St. Mary"
    assert saved.lat != ST_LOUIS.lat


def test_add_and_delete_event(admin_service, store, location):
    result = admin_service.add_event(location.id, {"event_date": date.today(), "dine_in": True, "pickup": False})
    assert result.success and result.value.active

    assert admin_service.delete_event(result.value.id).success
    assert store.get_event(result.value.id) is None
    assert not admin_service.delete_event(result.value.id).success


def test_duplicate_event_copies_whole_menu(admin_service, store, event, menu):
    store.update_menu_item(menu["Fries"].id, available=False)
    new_date = event.event_date + timedelta(days=7)

    result = admin_service.duplicate_event(event.id, new_date)

    assert result.success
    copy = store.get_event(result.value.id)
    assert copy.event_date == new_date
    assert copy.start_time == event.start_time
    items = {i.name: i for i in store.menu_for_event(copy.id, available_only=False)}
    assert set(items) == set(menu)
    assert not items["Fries"].available
    assert items["Family Pack"].pickup_only
    assert items["Clam Chowder"].dine_in_only


def test_duplicate_event_needs_date(admin_service, event):
    assert not admin_service.duplicate_event(event.id, None).success


def test_menu_item_lifecycle(admin_service, store, event):
    created = admin_service.create_menu_item(event.id, {"name": "Slaw", "price": Decimal("2.00"), "category": "sides"})
    assert created.success and created.value.available
    item_id = created.value.id

    assert admin_service.update_menu_item(item_id, {"price": Decimal("2.50")}).success
    assert store.get_menu_item(item_id).price == Decimal("2.50")

    assert admin_service.toggle_menu_item(item_id).success
    assert not store.get_menu_item(item_id).available
    assert admin_service.toggle_menu_item(item_id).success
    assert store.get_menu_item(item_id).available

    assert admin_service.delete_menu_item(item_id).success
    assert store.get_menu_item(item_id) is None
    assert not admin_service.toggle_menu_item(item_id).success


def test_copy_menu(admin_service, store, location, event, menu):
    target = store.create_event(location.id, event_date=date.today() + timedelta(days=10), active=True)

    result = admin_service.copy_menu(event.id, target.id)

    assert result.success
    assert result.message == "Copied 4 menu items successfully."
    assert len(store.menu_for_event(target.id, available_only=False)) == 4


def test_copy_menu_errors(admin_service, store, location, event):
    empty = store.create_event(location.id, event_date=date.today(), active=True)
    assert admin_service.copy_menu(event.id, None).error == "Please choose an event to copy to."
    assert admin_service.copy_menu(event.id, 999).error == "Could not find target event."
    assert admin_service.copy_menu(empty.id, event.id).error == "Source event has no menu items to copy."


def test_list_orders(admin_service, orders, event, location):
    placed = orders.place_order(event.id, OrderDetails(customer_name="Ann", order_type="pickup"), {})
    assert [o.id for o in admin_service.list_orders(location.id)] == [placed.order_id]
