from datetime import date, timedelta
from decimal import Decimal
from unittest.mock import MagicMock

from firestore_db import ORDER_PLACED, STATUS_CHANGED
from ordering import NOT_FOUND, OrderService, format_event_date
from store import StoreError
from validation import OrderDetails

from conftest import FakeMailer


def _details(order_type="dine_in", email="ann@example.com", **kw):
    return OrderDetails(customer_name="Ann", order_type=order_type, customer_email=email, **kw)


def test_format_event_date():
    assert format_event_date(date(2026, 3, 6)) == "Friday, March 6, 2026"


def test_place_order(orders, store, mailer, event, menu):
    result = orders.place_order(event.id, _details(), {menu["Fried Cod"].id: 1, menu["Fries"].id: 2})

    assert result.success
    assert result.customer_name == "Ann"
    assert result.quote.total == Decimal("13.50")
    assert result.quote.estimated_wait_minutes == 20
    assert result.email_sent

    saved = store.get_order(result.order_id)
    assert saved.status == "pending"
    assert saved.estimated_wait_minutes == 20
    assert sorted((i.item_name, i.quantity) for i in saved.items) == [("Fried Cod", 1), ("Fries", 2)]

    kind, to, confirmation = mailer.sent[0]
    assert (kind, to) == ("confirmation", "ann@example.com")
    assert confirmation.location_name == "St. Mary Parish"
    assert confirmation.total == Decimal("13.50")


def test_place_order_drops_items_hidden_for_order_type(orders, store, event, menu):
    result = orders.place_order(event.id, _details("dine_in"), {menu["Family Pack"].id: 1, menu["Fries"].id: 1})

    assert result.success
    assert [line.name for line in result.quote.lines] == ["Fries"]
    assert result.quote.total == Decimal("0.75")


def test_place_order_pickup_uses_pickup_menu(orders, event, menu):
    result = orders.place_order(
        event.id, _details("pickup", pickup_time="5:30"),
        {menu["Family Pack"].id: 1, menu["Clam Chowder"].id: 3},
    )
    assert [line.name for line in result.quote.lines] == ["Family Pack"]
    assert result.quote.estimated_wait_minutes == 30


def test_zero_item_order_is_accepted(orders, store, event, menu):
    result = orders.place_order(event.id, _details(), {})

    assert result.success
    assert result.quote.total == Decimal("0.00")
    assert result.quote.estimated_wait_minutes is None
    assert store.get_order(result.order_id).items == []


def test_no_email_no_send(orders, mailer, event, menu):
    result = orders.place_order(event.id, _details(email=None), {menu["Fries"].id: 1})
    assert result.success
    assert not result.email_sent
    assert mailer.sent == []


def test_failed_email_still_places_order(store, event, menu):
    service = OrderService(store, FakeMailer(fail=True))
    result = service.place_order(event.id, _details(), {menu["Fries"].id: 1})
    assert result.success
    assert not result.email_sent
    assert store.get_order(result.order_id) is not None


def test_missing_and_inactive_events_are_not_found(orders, store, location):
    assert orders.place_order(999, _details(), {}).error == NOT_FOUND

    inactive = store.create_event(location.id, event_date=date.today() + timedelta(days=1), active=False)
    result = orders.place_order(inactive.id, _details(), {})
    assert result.not_found
    assert orders.quote(inactive.id, "dine_in", {}) is None


def test_disabled_order_type_is_rejected(orders, store, location):
    event = store.create_event(location.id, event_date=date.today(), dine_in=False, pickup=True, active=True)
    result = orders.place_order(event.id, _details("dine_in"), {})
    assert not result.success
    assert "order_type" in result.errors


def test_event_without_modes_takes_no_orders(orders, store, location):
    event = store.create_event(location.id, event_date=date.today(), dine_in=False, pickup=False, active=True)
    result = orders.place_order(event.id, _details(), {})
    assert result.error == "This event is not taking orders."


def test_items_insert_failure_keeps_order(orders, store, event, menu, monkeypatch):
    def boom(order_id, lines):
        raise StoreError("Order items insert failed")

    monkeypatch.setattr(store, "add_order_items", boom)
    result = orders.place_order(event.id, _details(), {menu["Fries"].id: 1})

    assert not result.success
    assert result.order_id is not None
    assert store.get_order(result.order_id) is not None


def test_quote(orders, event, menu):
    quote = orders.quote(event.id, "pickup", {menu["Fried Cod"].id: 2})
    assert quote.total == Decimal("24.00")


def test_audit_log_records_events(store, mailer, event, menu):
    log = MagicMock()
    log.log.return_value = "doc-1"
    service = OrderService(store, mailer, order_log=log)

    result = service.place_order(event.id, _details(), {menu["Fries"].id: 1})
    service.set_status(result.order_id, "confirmed")

    events = [c.args[2] for c in log.log.call_args_list]
    assert events == [ORDER_PLACED, STATUS_CHANGED]


def test_audit_failure_does_not_fail_order(store, mailer, event, menu):
    log = MagicMock()
    log.log.side_effect = RuntimeError("firestore down")
    service = OrderService(store, mailer, order_log=log)

    assert service.place_order(event.id, _details(), {menu["Fries"].id: 1}).success


def test_set_status_ready_notifies_customer(orders, mailer, event, menu):
    placed = orders.place_order(event.id, _details(), {menu["Fries"].id: 1})
    mailer.sent.clear()

    result = orders.set_status(placed.order_id, "ready")

    assert result.success and result.notified
    assert result.order.status == "ready"
    assert mailer.sent == [("ready", "ann@example.com", "St. Mary Parish")]


def test_set_status_without_email_does_not_notify(orders, mailer, event, menu):
    placed = orders.place_order(event.id, _details(email=None), {})
    result = orders.set_status(placed.order_id, "ready")
    assert result.success and not result.notified
    assert mailer.sent == []


def test_set_status_any_order(orders, event):
    placed = orders.place_order(event.id, _details(email=None), {})
    for status in ("complete", "pending", "ready", "confirmed"):
        assert orders.set_status(placed.order_id, status).order.status == status


def test_set_status_rejects_unknown_and_missing(orders, event):
    placed = orders.place_order(event.id, _details(email=None), {})
    assert not orders.set_status(placed.order_id, "shipped").success
    assert orders.set_status(12345, "ready").error == NOT_FOUND
