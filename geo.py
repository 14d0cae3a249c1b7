"""
Geographic helpers: city name normalization, fuzzy city matching,
great-circle distance and the US state lookup table used by the
postal lookup client.
"""
import math
import re
from dataclasses import dataclass

EARTH_RADIUS_MILES = 3959


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float


@dataclass(frozen=True)
class CitySuggestion:
    city: str
    state_abbr: str

    def to_dict(self) -> dict:
        return {"city": self.city, "state_abbr": self.state_abbr}


# -----------------------
# City names
# -----------------------
# Order matters: later patterns run on the partially expanded string.
_ABBREVIATIONS = [
    (re.compile(r"\bst\b\.?"), "saint"),
    (re.compile(r"\bft\b\.?"), "fort"),
    (re.compile(r"\bmt\b\.?"), "mount"),
    (re.compile(r"\bn\b\.?"), "north"),
    (re.compile(r"\bs\b\.?"), "south"),
    (re.compile(r"\be\b\.?"), "east"),
    (re.compile(r"\bw\b\.?"), "west"),
]

_WHITESPACE_RE = re.compile(r"\s+")


def normalize_city_name(name) -> str:
    """
    Lowercase a city name and expand St./Ft./Mt. and compass abbreviations
    so "St. Louis", "st louis" and "Saint Louis" compare equal.
    """
    if not name or not isinstance(name, str):
        return ""
    s = name.strip().lower()
    for pattern, replacement in _ABBREVIATIONS:
        s = pattern.sub(replacement, s)
    return _WHITESPACE_RE.sub(" ", s).strip()


def cities_match(a, b) -> bool:
    """True when either normalized name contains the other."""
    na = normalize_city_name(a)
    nb = normalize_city_name(b)
    if not na or not nb:
        return False
    return na in nb or nb in na


# -----------------------
# Distance
# -----------------------
def haversine_miles(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lng = math.radians(lng2 - lng1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lng / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_MILES * c


def distance_between(origin: Coordinates, target: Coordinates) -> float:
    return haversine_miles(origin.lat, origin.lng, target.lat, target.lng)


# -----------------------
# States
# -----------------------
US_STATE_ABBREVS = (
    "AL", "AK", "AZ", "AR", "CA", "CO", "CT", "DE", "FL", "GA",
    "HI", "ID", "IL", "IN", "IA", "KS", "KY", "LA", "ME", "MD",
    "MA", "MI", "MN", "MS", "MO", "MT", "NE", "NV", "NH", "NJ",
    "NM", "NY", "NC", "ND", "OH", "OK", "OR", "PA", "RI", "SC",
    "SD", "TN", "TX", "UT", "VT", "VA", "WA", "WV", "WI", "WY", "DC",
)

STATE_TO_ABBR = {
    "alabama": "al",
    "alaska": "ak",
    "arizona": "az",
    "arkansas": "ar",
    "california": "ca",
    "colorado": "co",
    "connecticut": "ct",
    "delaware": "de",
    "florida": "fl",
    "georgia": "ga",
    "hawaii": "hi",
    "idaho": "id",
    "illinois": "il",
    "indiana": "in",
    "iowa": "ia",
    "kansas": "ks",
    "kentucky": "ky",
    "louisiana": "la",
    "maine": "me",
    "maryland": "md",
    "massachusetts": "ma",
    "michigan": "mi",
    "minnesota": "mn",
    "mississippi": "ms",
    "missouri": "mo",
    "montana": "mt",
    "nebraska": "ne",
    "nevada": "nv",
    "new hampshire": "nh",
    "new jersey": "nj",
    "new mexico": "nm",
    "new york": "ny",
    "north carolina": "nc",
    "north dakota": "nd",
    "ohio": "oh",
    "oklahoma": "ok",
    "oregon": "or",
    "pennsylvania": "pa",
    "rhode island": "ri",
    "south carolina": "sc",
    "south dakota": "sd",
    "tennessee": "tn",
    "texas": "tx",
    "utah": "ut",
    "vermont": "vt",
    "virginia": "va",
    "washington": "wa",
    "west virginia": "wv",
    "wisconsin": "wi",
    "wyoming": "wy",
    "district of columbia": "dc",
    "washington dc": "dc",
}


def state_abbr(state) -> str:
    """
    Two-letter input is returned lowercased as-is; full state names go
    through STATE_TO_ABBR. Anything else falls through lowercased, which
    callers reject by length.
    """
    if not state or not isinstance(state, str):
        return ""
    s = state.strip()
    if len(s) == 2:
        return s.lower()
    return STATE_TO_ABBR.get(s.lower(), s.lower())


def is_known_state(state) -> bool:
    return state_abbr(state).upper() in US_STATE_ABBREVS


# -----------------------
# Autocomplete
# -----------------------
# The free lookup API misses common local searches, so the home region
# gets a fixed list of major cities.
FALLBACK_CITIES = tuple(
    CitySuggestion(city, st)
    for city, st in (
        ("Alton", "IL"),
        ("Ballwin", "MO"),
        ("Barnhart", "MO"),
        ("Bella Villa", "MO"),
        ("Belleville", "IL"),
        ("Bellefontaine Neighbors", "MO"),
        ("Berkeley", "MO"),
        ("Black Jack", "MO"),
        ("Breckenridge Hills", "MO"),
        ("Brentwood", "MO"),
        ("Bridgeton", "MO"),
        ("Carbondale", "IL"),
        ("Chesterfield", "MO"),
        ("Clayton", "MO"),
        ("Columbia", "MO"),
        ("Concord", "MO"),
        ("Crestwood", "MO"),
        ("Creve Coeur", "MO"),
        ("Crystal City", "MO"),
        ("DeSoto", "MO"),
        ("Des Peres", "MO"),
        ("Edwardsville", "IL"),
        ("Ellisville", "MO"),
        ("Eureka", "MO"),
        ("Fenton", "MO"),
        ("Ferguson", "MO"),
        ("Festus", "MO"),
        ("Florissant", "MO"),
        ("Frontenac", "MO"),
        ("Glendale", "MO"),
        ("Granite City", "MO"),
        ("Hanley Hills", "MO"),
        ("Hazelwood", "MO"),
        ("Herald", "MO"),
        ("High Ridge", "MO"),
        ("Hillsdale", "MO"),
        ("House Springs", "MO"),
        ("Imperial", "MO"),
        ("Independence", "MO"),
        ("Jennings", "MO"),
        ("Jefferson City", "MO"),
        ("Kansas City", "MO"),
        ("Kirkwood", "MO"),
        ("Ladue", "MO"),
        ("Lake Saint Louis", "MO"),
        ("Lemay", "MO"),
        ("Lindbergh", "MO"),
        ("Manchester", "MO"),
        ("Maplewood", "MO"),
        ("Maryland Heights", "MO"),
        ("Mehlville", "MO"),
        ("Moline Acres", "MO"),
        ("Normandy", "MO"),
        ("Oakville", "MO"),
        ("O'Fallon", "MO"),
        ("Olivette", "MO"),
        ("Overland", "MO"),
        ("Pacific", "MO"),
        ("Pagedale", "MO"),
        ("Pevely", "MO"),
        ("Pinelawn", "MO"),
        ("Richmond Heights", "MO"),
        ("Riverview", "MO"),
        ("Rock Hill", "MO"),
        ("Saint Ann", "MO"),
        ("Saint Charles", "MO"),
        ("Saint James", "MO"),
        ("Saint John", "MO"),
        ("Saint Joseph", "MO"),
        ("Saint Louis", "MO"),
        ("Saint Peters", "MO"),
        ("Shrewsbury", "MO"),
        ("Spanish Lake", "MO"),
        ("Springfield", "MO"),
        ("Sunset Hills", "MO"),
        ("Sycamore Hills", "MO"),
        ("Town and Country", "MO"),
        ("Troy", "MO"),
        ("University City", "MO"),
        ("Valley Park", "MO"),
        ("Velda City", "MO"),
        ("Velda Village Hills", "MO"),
        ("Vinita Park", "MO"),
        ("Warson Woods", "MO"),
        ("Webster Groves", "MO"),
        ("Wentzville", "MO"),
        ("Wildwood", "MO"),
        ("Winchester", "MO"),
        ("Wood River", "MO"),
        ("Woodson Terrace", "MO"),
    )
)

_EXPAND = {
    "st": "saint", "st.": "saint",
    "ft": "fort", "ft.": "fort",
    "mt": "mount", "mt.": "mount",
    "n": "north", "n.": "north",
    "s": "south", "s.": "south",
    "e": "east", "e.": "east",
    "w": "west", "w.": "west",
}

_ABBREVIATE = {
    "saint": "st",
    "fort": "ft",
    "mount": "mt",
    "north": "n",
    "south": "s",
    "east": "e",
    "west": "w",
}


def search_variations(partial) -> list[str]:
    """Search terms to try against the lookup API for one partial city name."""
    p = (partial or "").strip().lower()
    if not p:
        return []

    variations = [p]

    def add(term):
        if term not in variations:
            variations.append(term)

    if p in _EXPAND:
        add(_EXPAND[p])
    if p in _ABBREVIATE:
        add(_ABBREVIATE[p])
    if p == "fallon":
        add("ofallon")
    if p in ("ofallon", "o'fallon"):
        add("fallon")
    if p.startswith("spring") and len(p) < 10:
        add("springfield")
    if p.startswith("columb") and len(p) < 8:
        add("columbia")
    if p.startswith("jefferson") and len(p) < 12:
        add("jefferson city")
    if p.startswith("kansas") and len(p) < 10:
        add("kansas city")
    return variations


def fallback_suggestions(state: str, partial: str) -> list[CitySuggestion]:
    state_upper = state_abbr(state).upper()
    return [
        c for c in FALLBACK_CITIES
        if c.state_abbr == state_upper and cities_match(c.city, partial)
    ]
