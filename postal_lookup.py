"""
Client for the zippopotam.us postal lookup API (free, no key required).

Every call is best-effort: network errors, non-200 responses and missing
place data all come back as "no result" instead of raising.
"""
import logging
from concurrent.futures import ThreadPoolExecutor
from urllib.parse import quote

import requests

from geo import (
    CitySuggestion,
    Coordinates,
    cities_match,
    fallback_suggestions,
    search_variations,
    state_abbr,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.zippopotam.us"


def clean_postal_code(code) -> str | None:
    """First five digits of the input, or None when there are fewer than five."""
    digits = "".join(ch for ch in str(code or "") if ch.isdigit())[:5]
    return digits if len(digits) == 5 else None


def _first_place_coords(data: dict) -> Coordinates | None:
    places = data.get("places") or []
    if not places:
        return None
    place = places[0]
    lat = place.get("latitude")
    lng = place.get("longitude")
    if not lat or not lng:
        return None
    return Coordinates(lat=float(lat), lng=float(lng))


class PostalLookup:
    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        session: requests.Session | None = None,
        max_workers: int = 8,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.max_workers = max_workers

    def _get_json(self, path: str) -> dict | None:
        url = f"{self.base_url}/us/{path}"
        try:
            resp = self.session.get(url, timeout=self.timeout)
            if resp.status_code != 200:
                return None
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            logger.warning("Postal lookup failed for %s: %s", url, e)
            return None

    def resolve_postal_code(self, code) -> Coordinates | None:
        cleaned = clean_postal_code(code)
        if not cleaned:
            return None
        data = self._get_json(cleaned)
        if not data:
            return None
        try:
            return _first_place_coords(data)
        except (TypeError, ValueError):
            return None

    def resolve_city(self, city: str, state: str) -> Coordinates | None:
        """Coordinates of the first place the API returns for a city."""
        city = (city or "").strip()
        abbr = state_abbr(state)
        if not city or not abbr:
            return None
        data = self._get_json(f"{abbr}/{quote(city)}")
        if not data:
            return None
        try:
            return _first_place_coords(data)
        except (TypeError, ValueError):
            return None

    def _city_places(self, abbr: str, term: str) -> list[CitySuggestion]:
        data = self._get_json(f"{abbr}/{quote(term)}")
        if not data:
            return []
        state_from_api = str(data.get("state abbreviation") or abbr).upper()
        if state_from_api != abbr.upper():
            return []
        places = []
        for place in data.get("places") or []:
            name = str(place.get("place name") or "").strip()
            if name:
                places.append(CitySuggestion(city=name, state_abbr=state_from_api))
        return places

    def _safe_city_places(self, abbr: str, term: str) -> list[CitySuggestion]:
        # one failing variation must not sink the others
        try:
            return self._city_places(abbr, term)
        except Exception:
            logger.exception("City suggestion lookup failed for %r", term)
            return []

    def suggest_cities(self, state: str, partial: str) -> list[CitySuggestion]:
        abbr = state_abbr(state)
        partial = (partial or "").strip()
        if len(abbr) != 2 or len(partial) < 2:
            return []

        seen = set()
        results = []

        def add_unique(suggestion):
            key = (suggestion.city.lower(), suggestion.state_abbr)
            if key not in seen:
                seen.add(key)
                results.append(suggestion)

        for suggestion in fallback_suggestions(abbr, partial):
            add_unique(suggestion)

        variations = search_variations(partial)
        with ThreadPoolExecutor(max_workers=max(1, min(self.max_workers, len(variations)))) as pool:
            batches = list(pool.map(lambda term: self._safe_city_places(abbr, term), variations))

        for batch in batches:
            for suggestion in batch:
                if cities_match(suggestion.city, partial):
                    add_unique(suggestion)

        results.sort(key=lambda s: s.city.casefold())
        return results
