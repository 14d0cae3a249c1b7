"""
Customer order placement and admin status changes.

Placement is insert order -> insert items -> email, with no rollback: if
the items insert fails the order row stays and the caller gets an error.
Email and audit logging are best-effort and never fail an order.
"""
import logging
from dataclasses import dataclass, field

from firestore_db import ORDER_PLACED, STATUS_CHANGED
from mailer import ConfirmationLine, OrderConfirmation
from pricing import DINE_IN, PICKUP, OrderQuote, build_cart_lines, filter_for_order_type, quote_order
from store import StoreError
from validation import OrderDetails

logger = logging.getLogger(__name__)

STATUSES = ("pending", "confirmed", "ready", "complete")

NOT_FOUND = "not_found"


def format_event_date(d) -> str:
    """Friday, March 6, 2026"""
    return f"{d:%A, %B} {d.day}, {d.year}"


def order_type_enabled(event, order_type: str) -> bool:
    if order_type == DINE_IN:
        return bool(event.dine_in)
    if order_type == PICKUP:
        return bool(event.pickup)
    return False


@dataclass
class PlaceOrderResult:
    success: bool
    order_id: int | None = None
    customer_name: str | None = None
    quote: OrderQuote = field(default_factory=OrderQuote)
    error: str | None = None
    errors: dict = field(default_factory=dict)
    email_sent: bool = False

    @property
    def not_found(self) -> bool:
        return self.error == NOT_FOUND


@dataclass
class StatusChangeResult:
    success: bool
    order: object = None
    error: str | None = None
    notified: bool = False


class OrderService:
    def __init__(self, store, mailer, order_log=None):
        self.store = store
        self.mailer = mailer
        self.order_log = order_log

    def _audit(self, order_id, customer_email, event, payload):
        if self.order_log is None:
            return
        try:
            doc_id = self.order_log.log(order_id, customer_email, event, payload)
            logger.info("Order event %s logged as %s", event, doc_id)
        except Exception as e:
            logger.warning("Order event log failed for order %s: %s", order_id, e)

    def quote(self, event_id: int, order_type: str, quantities: dict) -> OrderQuote | None:
        event = self.store.get_event(event_id)
        if event is None or not event.active:
            return None
        items = filter_for_order_type(self.store.menu_for_event(event_id), order_type)
        return quote_order(build_cart_lines(items, quantities))

    def place_order(self, event_id: int, details: OrderDetails, quantities: dict) -> PlaceOrderResult:
        event = self.store.get_event(event_id)
        if event is None or not event.active:
            return PlaceOrderResult(success=False, error=NOT_FOUND)

        if not (event.dine_in or event.pickup):
            return PlaceOrderResult(success=False, error="This event is not taking orders.")
        if not order_type_enabled(event, details.order_type):
            label = "Dine-in" if details.order_type == DINE_IN else "Pickup"
            return PlaceOrderResult(
                success=False,
                error=f"{label} is not available for this event.",
                errors={"order_type": f"{label} is not available for this event."},
            )

        items = filter_for_order_type(self.store.menu_for_event(event_id), details.order_type)
        quote = quote_order(build_cart_lines(items, quantities))

        try:
            order = self.store.create_order(
                event_id,
                customer_name=details.customer_name,
                customer_phone=details.customer_phone,
                customer_email=details.customer_email,
                order_type=details.order_type,
                pickup_time=details.pickup_time,
                notes=details.notes,
                status="pending",
                estimated_wait_minutes=quote.estimated_wait_minutes,
            )
        except StoreError:
            return PlaceOrderResult(success=False, quote=quote, error="Failed to create order")

        if quote.lines:
            try:
                self.store.add_order_items(order.id, quote.lines)
            except StoreError:
                return PlaceOrderResult(
                    success=False, order_id=order.id, quote=quote,
                    error="Your order was started but its items could not be saved. Please try again.",
                )

        self._audit(order.id, details.customer_email, ORDER_PLACED, {
            "event_id": event_id,
            "order_type": details.order_type,
            "total": str(quote.total),
            "items": len(quote.lines),
        })

        email_sent = False
        if details.customer_email:
            location_name = event.location.name if event.location and event.location.name else "Fish Fry"
            confirmation = OrderConfirmation(
                location_name=location_name,
                event_date=format_event_date(event.event_date),
                items=[ConfirmationLine(line.name, line.quantity, line.unit_price) for line in quote.lines],
                total=quote.total,
                estimated_wait_minutes=quote.estimated_wait_minutes,
                pickup_time=details.pickup_time,
            )
            try:
                result = self.mailer.send_order_confirmation(details.customer_email, confirmation)
                email_sent = result.ok
            except Exception as e:
                logger.error("Order confirmation email failed for order %s: %s", order.id, e)

        return PlaceOrderResult(
            success=True,
            order_id=order.id,
            customer_name=order.customer_name,
            quote=quote,
            email_sent=email_sent,
        )

    def set_status(self, order_id: int, status: str) -> StatusChangeResult:
        """Any status can be set at any time; "ready" emails the customer if we can."""
        if status not in STATUSES:
            return StatusChangeResult(success=False, error=f"Unknown status: {status}")
        try:
            order = self.store.update_order_status(order_id, status)
        except StoreError:
            return StatusChangeResult(success=False, error="Could not update the order.")
        if order is None:
            return StatusChangeResult(success=False, error=NOT_FOUND)

        self._audit(order.id, order.customer_email, STATUS_CHANGED, {"status": status})

        notified = False
        email = (order.customer_email or "").strip()
        if status == "ready" and email:
            event = order.event
            location_name = event.location.name if event and event.location else "Fish Fry"
            try:
                notified = self.mailer.send_order_ready(email, location_name).ok
            except Exception as e:
                logger.error("Order ready email failed for order %s: %s", order.id, e)
        return StatusChangeResult(success=True, order=order, notified=notified)
