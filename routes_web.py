import logging
from datetime import date

from flask import (
    Blueprint, abort, current_app, flash, redirect, render_template, request,
    session, url_for,
)

from auth import admin_required, current_access, login_required, sign_in, sign_out, verify_password
from event_filter import WITHIN_MILES_OPTIONS, parse_within_miles, search_events, upcoming_dates
from ordering import STATUSES, format_event_date
from pricing import (
    CATEGORIES, DIETARY_TAGS, DINE_IN, ORDER_TYPES, PICKUP,
    filter_for_order_type, format_price, group_by_category,
)
from store import LOCATION_FIELDS
from validation import (
    LOCATION_TYPES, parse_date, parse_quantities, validate_event,
    validate_location, validate_menu_item, validate_order, validate_signup,
)

logger = logging.getLogger(__name__)

web = Blueprint("web", __name__)


def _store():
    return current_app.extensions["store"]


def _admin():
    return current_app.extensions["admin"]


def _flash_errors(errors: dict):
    for message in errors.values():
        flash(message)


@web.app_template_filter("price")
def price_filter(value):
    return format_price(value)


@web.app_template_filter("event_date")
def event_date_filter(value):
    return format_event_date(value) if value else "TBA"


@web.app_template_filter("clock")
def clock_filter(value):
    if not value:
        return "TBA"
    hour = value.hour % 12 or 12
    return f"{hour}:{value.minute:02d} {'PM' if value.hour >= 12 else 'AM'}"


# -----------------------
# Home: upcoming events
# -----------------------
@web.get("/")
def index():
    events = _store().upcoming_events(date.today())
    city = request.args.get("city", "").strip()
    zip_code = request.args.get("zip", "").strip()
    selected_date = parse_date(request.args.get("date"))
    within = parse_within_miles(request.args.get("within"))

    search = search_events(
        events,
        current_app.extensions["lookup"],
        date_filter=selected_date,
        zip_query=zip_code,
        city_query=city,
        within_miles=within,
    )
    return render_template(
        "index.html",
        search=search,
        dates=upcoming_dates(events),
        within_options=WITHIN_MILES_OPTIONS,
        city=city,
        zip_code=zip_code,
        selected_date=selected_date,
        within=within,
    )


# -----------------------
# Event menu + ordering
# -----------------------
def _active_event_or_404(event_id: int):
    event = _store().get_event(event_id)
    if event is None or not event.active:
        abort(404)
    return event


@web.get("/events/<int:event_id>")
def event_detail(event_id: int):
    event = _active_event_or_404(event_id)
    menu = group_by_category(_store().menu_for_event(event_id))
    return render_template("event.html", event=event, menu=menu)


def _default_order_type(event) -> str:
    return DINE_IN if event.dine_in else PICKUP


def _render_order_form(event, order_type, form=None, quantities=None, status=200):
    items = filter_for_order_type(_store().menu_for_event(event.id), order_type)
    return render_template(
        "order.html",
        event=event,
        order_type=order_type,
        menu=group_by_category(items),
        form=form or {},
        quantities=quantities or {},
    ), status


@web.get("/events/<int:event_id>/order")
def order_form(event_id: int):
    event = _active_event_or_404(event_id)
    order_type = request.args.get("order_type", "")
    if order_type not in ORDER_TYPES:
        order_type = _default_order_type(event)
    return _render_order_form(event, order_type)


@web.post("/events/<int:event_id>/order")
def order_submit(event_id: int):
    event = _active_event_or_404(event_id)
    details, errors = validate_order(request.form)
    quantities = parse_quantities(request.form)
    order_type = details.order_type if details.order_type in ORDER_TYPES else _default_order_type(event)

    if errors:
        _flash_errors(errors)
        return _render_order_form(event, order_type, request.form, quantities, status=400)

    result = current_app.extensions["orders"].place_order(event_id, details, quantities)
    if result.not_found:
        abort(404)
    if not result.success:
        flash(result.error or "Something went wrong. Please try again.")
        return _render_order_form(event, order_type, request.form, quantities, status=400)

    logger.info("Order %s placed for event %s", result.order_id, event_id)
    return render_template("order_confirmation.html", event=event, details=details, result=result)


# -----------------------
# Auth
# -----------------------
@web.route("/register", methods=["GET", "POST"])
def register():
    if request.method == "POST":
        email, password, errors = validate_signup(request.form)
        location_fields, location_errors = validate_location(request.form)
        errors.update(location_errors)
        if errors:
            _flash_errors(errors)
            return render_template(
                "register.html", form=request.form, location_types=LOCATION_TYPES
            ), 400

        result = _admin().register(email, password, location_fields)
        if not result.success:
            flash(result.error)
            return render_template(
                "register.html", form=request.form, location_types=LOCATION_TYPES
            ), 400

        user, _location = result.value
        sign_in(user)
        flash("Account created.")
        return redirect(url_for("web.admin_dashboard"))

    return render_template("register.html", form={}, location_types=LOCATION_TYPES)


@web.route("/login", methods=["GET", "POST"])
def login():
    if request.method == "POST":
        email = request.form.get("email", "").strip().lower()
        pw = request.form.get("password", "")

        u = _store().get_user_by_email(email)
        if not u or not verify_password(pw, u.password_hash):
            flash("Invalid login.")
            return redirect(url_for("web.login"))

        sign_in(u)
        flash("Logged in.")
        return redirect(url_for("web.admin_dashboard"))

    return render_template("login.html")


@web.get("/logout")
def logout():
    sign_out()
    flash("Logged out.")
    return redirect(url_for("web.index"))


# -----------------------
# Admin helpers
# -----------------------
def _selected_location():
    access = current_access()
    return access.select_location(request.args.get("location_id", type=int))


def _managed_event_or_404(event_id: int):
    event = _store().get_event(event_id)
    if event is None or not current_access().can_manage(event.location_id):
        abort(404)
    return event


def _managed_location_or_404(location_id: int):
    if not current_access().can_manage(location_id):
        abort(404)
    location = _store().get_location(location_id)
    if location is None:
        abort(404)
    return location


def _managed_menu_item_or_404(item_id: int):
    item = _store().get_menu_item(item_id)
    if item is None:
        abort(404)
    event = _managed_event_or_404(item.event_id)
    return item, event


def _back_to(endpoint: str, location_id):
    return redirect(url_for(endpoint, location_id=location_id))


def _report(result):
    if result.success:
        flash(result.message)
    else:
        flash(result.error)


# -----------------------
# Admin: dashboard
# -----------------------
@web.get("/admin")
@login_required
@admin_required
def admin_dashboard():
    return render_template(
        "admin/dashboard.html",
        access=current_access(),
        location=_selected_location(),
        email=session.get("email"),
    )


# -----------------------
# Admin: location + events
# -----------------------
@web.get("/admin/location")
@login_required
@admin_required
def admin_location():
    selected = _selected_location()
    location = _store().get_location(selected.id) if selected else None
    events = _store().events_for_location(location.id) if location else []
    form = {f: getattr(location, f) for f in LOCATION_FIELDS} if location else {}
    return render_template(
        "admin/location.html",
        access=current_access(),
        location=location,
        events=events,
        form=form,
        location_types=LOCATION_TYPES,
    )


@web.post("/admin/location/<int:location_id>/save")
@login_required
@admin_required
def admin_location_save(location_id: int):
    _managed_location_or_404(location_id)
    fields, errors = validate_location(request.form)
    if errors:
        _flash_errors(errors)
    else:
        _report(_admin().save_location(location_id, fields))
    return _back_to("web.admin_location", location_id)


@web.post("/admin/location/<int:location_id>/events")
@login_required
@admin_required
def admin_event_create(location_id: int):
    _managed_location_or_404(location_id)
    fields, errors = validate_event(request.form)
    if errors:
        _flash_errors(errors)
    else:
        _report(_admin().add_event(location_id, fields))
    return _back_to("web.admin_location", location_id)


@web.post("/admin/events/<int:event_id>/delete")
@login_required
@admin_required
def admin_event_delete(event_id: int):
    event = _managed_event_or_404(event_id)
    _report(_admin().delete_event(event_id))
    return _back_to("web.admin_location", event.location_id)


@web.post("/admin/events/<int:event_id>/duplicate")
@login_required
@admin_required
def admin_event_duplicate(event_id: int):
    event = _managed_event_or_404(event_id)
    _report(_admin().duplicate_event(event_id, parse_date(request.form.get("event_date"))))
    return _back_to("web.admin_location", event.location_id)


# -----------------------
# Admin: CRUD Menu
# -----------------------
@web.get("/admin/menu")
@login_required
@admin_required
def admin_menu():
    location = _selected_location()
    events = _store().events_for_location(location.id, with_menu=True) if location else []
    return render_template(
        "admin/menu.html",
        access=current_access(),
        location=location,
        events=events,
        categories=CATEGORIES,
        dietary_tags=DIETARY_TAGS,
    )


@web.post("/admin/events/<int:event_id>/menu")
@login_required
@admin_required
def admin_menu_create(event_id: int):
    event = _managed_event_or_404(event_id)
    fields, errors = validate_menu_item(request.form)
    if errors:
        _flash_errors(errors)
    else:
        _report(_admin().create_menu_item(event_id, fields))
    return _back_to("web.admin_menu", event.location_id)


@web.post("/admin/menu/<int:item_id>/update")
@login_required
@admin_required
def admin_menu_update(item_id: int):
    _item, event = _managed_menu_item_or_404(item_id)
    fields, errors = validate_menu_item(request.form)
    if errors:
        _flash_errors(errors)
    else:
        _report(_admin().update_menu_item(item_id, fields))
    return _back_to("web.admin_menu", event.location_id)


@web.post("/admin/menu/<int:item_id>/toggle")
@login_required
@admin_required
def admin_menu_toggle(item_id: int):
    _item, event = _managed_menu_item_or_404(item_id)
    _report(_admin().toggle_menu_item(item_id))
    return _back_to("web.admin_menu", event.location_id)


@web.post("/admin/menu/<int:item_id>/delete")
@login_required
@admin_required
def admin_menu_delete(item_id: int):
    _item, event = _managed_menu_item_or_404(item_id)
    _report(_admin().delete_menu_item(item_id))
    return _back_to("web.admin_menu", event.location_id)


@web.post("/admin/events/<int:event_id>/menu/copy")
@login_required
@admin_required
def admin_menu_copy(event_id: int):
    event = _managed_event_or_404(event_id)
    target_id = request.form.get("target_event_id", type=int)
    if target_id:
        _managed_event_or_404(target_id)
    _report(_admin().copy_menu(event_id, target_id))
    return _back_to("web.admin_menu", event.location_id)


# -----------------------
# Admin: orders
# -----------------------
@web.get("/admin/orders")
@login_required
@admin_required
def admin_orders():
    location = _selected_location()
    orders = _admin().list_orders(location.id) if location else []
    return render_template(
        "admin/orders.html",
        access=current_access(),
        location=location,
        orders=orders,
        statuses=STATUSES,
    )


@web.post("/admin/orders/<int:order_id>/status")
@login_required
@admin_required
def admin_order_status(order_id: int):
    order = _store().get_order(order_id)
    if order is None or not current_access().can_manage(order.event.location_id):
        abort(404)

    status = request.form.get("status", "")
    result = current_app.extensions["orders"].set_status(order_id, status)
    if not result.success:
        flash(result.error)
    elif result.notified:
        flash(f"Order marked {status}; customer notified by email.")
    else:
        flash(f"Order marked {status}.")
    return _back_to("web.admin_orders", order.event.location_id)
