"""Pytest configuration and fixtures."""
from datetime import date, time, timedelta
from decimal import Decimal

import pytest

from app import create_app
from auth import hash_password
from geo import Coordinates
from mailer import SendResult

ST_LOUIS = Coordinates(38.627, -90.199)
KIRKWOOD = Coordinates(38.583, -90.407)
CHICAGO = Coordinates(41.878, -87.630)


class FakeLookup:
    """Postal lookup double: fixed answers, no network."""

    def __init__(self, zips=None, cities=None, suggestions=None):
        self.zips = zips or {}
        self.cities = cities or {}
        self.suggestions = suggestions or []
        self.calls = []

    def resolve_postal_code(self, code):
        self.calls.append(("zip", code))
        return self.zips.get("".join(ch for ch in str(code) if ch.isdigit())[:5])

    def resolve_city(self, city, state):
        self.calls.append(("city", city, state))
        return self.cities.get((city.lower(), state.upper()))

    def suggest_cities(self, state, partial):
        self.calls.append(("suggest", state, partial))
        return self.suggestions


class FakeMailer:
    def __init__(self, fail=False):
        self.fail = fail
        self.sent = []

    def _record(self, kind, to, payload):
        if self.fail:
            raise RuntimeError("mail server down")
        self.sent.append((kind, to, payload))
        return SendResult(ok=True, id=f"email-{len(self.sent)}")

    def send_order_confirmation(self, to, data):
        return self._record("confirmation", to, data)

    def send_order_ready(self, to, location_name):
        return self._record("ready", to, location_name)


@pytest.fixture
def lookup():
    return FakeLookup(
        zips={"63101": ST_LOUIS, "63122": KIRKWOOD, "60601": CHICAGO},
        cities={("saint louis", "MO"): ST_LOUIS, ("kirkwood", "MO"): KIRKWOOD},
    )


@pytest.fixture
def mailer():
    return FakeMailer()


@pytest.fixture
def app(lookup, mailer):
    app = create_app(
        {
            "TESTING": True,
            "SQLALCHEMY_DATABASE_URI": "sqlite://",
            "SECRET_KEY": "test-secret",
            "RESEND_API_KEY": "",
            "ORDER_EVENTS_ENABLED": False,
        },
        lookup=lookup,
        mailer=mailer,
    )
    yield app
    app.extensions["engine"].dispose()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def store(app):
    return app.extensions["store"]


@pytest.fixture
def orders(app):
    return app.extensions["orders"]


@pytest.fixture
def admin_service(app):
    return app.extensions["admin"]


@pytest.fixture
def owner(store):
    return store.create_user("owner@example.com", hash_password("secret123"))


@pytest.fixture
def location(store, owner):
    return store.create_location(
        user_id=owner.id,
        name="St. Mary Parish",
        address="1 Church St",
        city="Saint Louis",
        state="MO",
        zip="63101",
        lat=ST_LOUIS.lat,
        lng=ST_LOUIS.lng,
        type="church",
    )


@pytest.fixture
def event(store, location):
    return store.create_event(
        location.id,
        event_date=date.today() + timedelta(days=3),
        start_time=time(16, 30),
        end_time=time(19, 0),
        dine_in=True,
        pickup=True,
        active=True,
    )


@pytest.fixture
def menu(store, event):
    """Fish, a side, a dine-in-only soup and a pickup-only family pack."""
    rows = [
        dict(name="Fried Cod", price=Decimal("12.00"), category="fish", prep_time_minutes=20),
        dict(name="Fries", price=Decimal("0.75"), category="sides", prep_time_minutes=5),
        dict(name="Clam Chowder", price=Decimal("4.00"), category="sides", dine_in_only=True),
        dict(name="Family Pack", price=Decimal("40.00"), category="fish", pickup_only=True, prep_time_minutes=30),
    ]
    items = store.add_menu_items(event.id, rows)
    return {i.name: i for i in items}


@pytest.fixture
def logged_in(client, owner):
    """Client with the location owner signed in."""
    with client.session_transaction() as sess:
        sess["user_id"] = owner.id
        sess["email"] = owner.email
    return client
