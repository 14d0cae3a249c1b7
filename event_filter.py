"""
Event discovery: date filter, origin resolution and distance sort/radius
filtering over the list of upcoming events.
"""
import math
from dataclasses import dataclass, field
from datetime import date, time

from geo import Coordinates, cities_match, distance_between

WITHIN_MILES_OPTIONS = (
    (None, "Show all"),
    (10, "Within 10 mi"),
    (25, "Within 25 mi"),
    (50, "Within 50 mi"),
    (100, "Within 100 mi"),
)

NO_STATE_HINT = "Add state (e.g. Saint Louis, MO)"
ZIP_NOT_FOUND = "Could not find that zip code."
CITY_NOT_FOUND = "Could not find that city."


@dataclass
class LocationSummary:
    id: int
    name: str
    city: str = ""
    state: str = ""
    zip: str = ""
    lat: float | None = None
    lng: float | None = None

    @property
    def coordinates(self) -> Coordinates | None:
        if self.lat is None or self.lng is None:
            return None
        return Coordinates(lat=self.lat, lng=self.lng)

    @property
    def city_state(self) -> str:
        return ", ".join(p for p in (self.city, self.state) if p)


@dataclass
class EventListing:
    id: int
    event_date: date
    start_time: time | None = None
    end_time: time | None = None
    dine_in: bool = True
    pickup: bool = True
    location: LocationSummary | None = None

    @property
    def location_name(self) -> str:
        return self.location.name if self.location and self.location.name else "Unknown"


@dataclass
class RankedEvent:
    event: EventListing
    # None when no origin was resolved; math.inf when the location has no coordinates
    distance_miles: float | None = None

    @property
    def has_distance(self) -> bool:
        return self.distance_miles is not None and math.isfinite(self.distance_miles)

    def to_dict(self) -> dict:
        ev = self.event
        loc = ev.location
        return {
            "id": ev.id,
            "event_date": ev.event_date.isoformat(),
            "start_time": ev.start_time.strftime("%H:%M") if ev.start_time else None,
            "end_time": ev.end_time.strftime("%H:%M") if ev.end_time else None,
            "dine_in": ev.dine_in,
            "pickup": ev.pickup,
            "location": {
                "name": loc.name,
                "city": loc.city,
                "state": loc.state,
                "zip": loc.zip,
            } if loc else None,
            "distance_miles": round(self.distance_miles, 1) if self.has_distance else None,
        }


@dataclass
class OriginResolution:
    coords: Coordinates | None = None
    error: str | None = None


@dataclass
class EventSearch:
    results: list[RankedEvent] = field(default_factory=list)
    total: int = 0
    origin: OriginResolution = field(default_factory=OriginResolution)
    has_origin_query: bool = False

    @property
    def shown(self) -> int:
        return len(self.results)


def parse_within_miles(value) -> int | None:
    """Only the fixed radius options are accepted; anything else means "all"."""
    try:
        miles = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    allowed = {m for m, _ in WITHIN_MILES_OPTIONS if m is not None}
    return miles if miles in allowed else None


def upcoming_dates(events) -> list[date]:
    return sorted({e.event_date for e in events})


def _state_from_events(events, city: str) -> str:
    for event in events:
        loc = event.location
        if loc and loc.city and cities_match(loc.city, city):
            return (loc.state or "").strip()
    return ""


def resolve_origin(events, lookup, zip_query: str = "", city_query: str = "") -> OriginResolution:
    """
    Turn the customer's zip or "City, ST" text into coordinates.

    A zip with at least five digits wins. A bare city borrows the state of
    the first event whose location matches it; without a state there is
    nothing to look up and the caller gets a hint instead.
    """
    zip_digits = "".join(ch for ch in (zip_query or "") if ch.isdigit())
    city_text = (city_query or "").strip()

    if len(zip_digits) >= 5:
        coords = lookup.resolve_postal_code(zip_digits)
        return OriginResolution(coords=coords, error=None if coords else ZIP_NOT_FOUND)

    if not city_text:
        return OriginResolution()

    city, state = city_text, ""
    comma = city_text.find(",")
    if comma > 0:
        city = city_text[:comma].strip()
        state = city_text[comma + 1:].strip()

    if not state:
        state = _state_from_events(events, city)
    if not state:
        return OriginResolution(error=NO_STATE_HINT)

    coords = lookup.resolve_city(city, state)
    return OriginResolution(coords=coords, error=None if coords else CITY_NOT_FOUND)


def filter_and_sort_events(events, origin: Coordinates | None = None,
                           date_filter: date | None = None,
                           within_miles: int | None = None) -> list[RankedEvent]:
    selected = list(events)
    if date_filter:
        selected = [e for e in selected if e.event_date == date_filter]

    if origin is None:
        return [RankedEvent(event=e) for e in selected]

    ranked = []
    for event in selected:
        coords = event.location.coordinates if event.location else None
        distance = distance_between(origin, coords) if coords else math.inf
        ranked.append(RankedEvent(event=event, distance_miles=distance))

    # list.sort is stable, equal distances keep their incoming order
    ranked.sort(key=lambda r: r.distance_miles)

    if within_miles is not None and within_miles > 0:
        ranked = [r for r in ranked if r.distance_miles <= within_miles]
    return ranked


def search_events(events, lookup, date_filter: date | None = None, zip_query: str = "",
                  city_query: str = "", within_miles: int | None = None) -> EventSearch:
    events = list(events)
    has_origin_query = bool((zip_query or "").strip() or (city_query or "").strip())
    origin = resolve_origin(events, lookup, zip_query, city_query) if has_origin_query else OriginResolution()
    results = filter_and_sort_events(
        events,
        origin=origin.coords,
        date_filter=date_filter,
        within_miles=within_miles if origin.coords else None,
    )
    return EventSearch(results=results, total=len(events), origin=origin, has_origin_query=has_origin_query)
