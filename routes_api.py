from datetime import date

from flask import Blueprint, current_app, jsonify, request

from event_filter import parse_within_miles, search_events
from pricing import ORDER_TYPES, filter_for_order_type, group_by_category
from validation import parse_date, parse_quantities, validate_order

api = Blueprint("api", __name__, url_prefix="/api")


def _store():
    return current_app.extensions["store"]


def _menu_item_json(i):
    return {
        "id": i.id,
        "name": i.name,
        "description": i.description,
        "category": i.category,
        "price": str(i.price),
        "prep_time_minutes": i.prep_time_minutes,
        "dietary_tags": list(i.dietary_tags or []),
        "dine_in_only": i.dine_in_only,
        "pickup_only": i.pickup_only,
    }


def _not_found():
    return jsonify({"error": "Event not found"}), 404


def _bad_body():
    return jsonify({"error": "Expected a JSON object."}), 400


def _json_object():
    data = request.get_json(silent=True)
    if data is None:
        return {}
    return data if isinstance(data, dict) else None


@api.get("/events")
def list_events():
    events = _store().upcoming_events(date.today())
    result = search_events(
        events,
        current_app.extensions["lookup"],
        date_filter=parse_date(request.args.get("date")),
        zip_query=request.args.get("zip", ""),
        city_query=request.args.get("city", ""),
        within_miles=parse_within_miles(request.args.get("within")),
    )
    return jsonify({
        "events": [r.to_dict() for r in result.results],
        "shown": result.shown,
        "total": result.total,
        "origin_error": result.origin.error,
    })


@api.get("/events/<int:event_id>")
def get_event(event_id: int):
    event = _store().get_event(event_id)
    if event is None or not event.active:
        return _not_found()

    items = _store().menu_for_event(event_id)
    order_type = request.args.get("order_type", "")
    if order_type in ORDER_TYPES:
        items = filter_for_order_type(items, order_type)

    loc = event.location
    return jsonify({
        "id": event.id,
        "event_date": event.event_date.isoformat(),
        "start_time": event.start_time.strftime("%H:%M") if event.start_time else None,
        "end_time": event.end_time.strftime("%H:%M") if event.end_time else None,
        "dine_in": event.dine_in,
        "pickup": event.pickup,
        "location": {
            "name": loc.name, "address": loc.address, "city": loc.city,
            "state": loc.state, "zip": loc.zip, "type": loc.type,
        } if loc else None,
        "menu": [
            {"category": name, "items": [_menu_item_json(i) for i in group]}
            for name, group in group_by_category(items)
        ],
    })


@api.post("/events/<int:event_id>/quote")
def quote_order(event_id: int):
    data = _json_object()
    if data is None:
        return _bad_body()
    order_type = data.get("order_type", "")
    if order_type not in ORDER_TYPES:
        return jsonify({"error": "Choose dine-in or pickup.", "errors": {"order_type": "Choose dine-in or pickup."}}), 400
    quote = current_app.extensions["orders"].quote(event_id, order_type, parse_quantities(data.get("items") or []))
    if quote is None:
        return _not_found()
    return jsonify(quote.to_dict())


@api.post("/events/<int:event_id>/orders")
def place_order(event_id: int):
    data = _json_object()
    if data is None:
        return _bad_body()
    details, errors = validate_order(data)
    if errors:
        return jsonify({"error": next(iter(errors.values())), "errors": errors}), 400

    result = current_app.extensions["orders"].place_order(
        event_id, details, parse_quantities(data.get("items") or [])
    )
    if result.not_found:
        return _not_found()
    if not result.success:
        return jsonify({"error": result.error, "errors": result.errors}), 400

    return jsonify({
        "ok": True,
        "order": {"id": result.order_id, "customer_name": result.customer_name},
        "total": str(result.quote.total),
        "estimated_wait_minutes": result.quote.estimated_wait_minutes,
        "lines": [line.to_dict() for line in result.quote.lines],
    }), 201


@api.get("/cities")
def city_suggestions():
    state = request.args.get("state", "")
    partial = request.args.get("q", "")
    suggestions = current_app.extensions["lookup"].suggest_cities(state, partial)
    return jsonify([s.to_dict() for s in suggestions])
