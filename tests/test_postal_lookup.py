from unittest.mock import MagicMock

import requests

from geo import CitySuggestion, Coordinates
from postal_lookup import PostalLookup, clean_postal_code


def _response(status=200, payload=None):
    resp = MagicMock()
    resp.status_code = status
    resp.json.return_value = payload or {}
    return resp


def _lookup(session):
    return PostalLookup(base_url="https://zip.test/", timeout=3, session=session, max_workers=2)


def test_clean_postal_code():
    assert clean_postal_code("63101-1234") == "63101"
    assert clean_postal_code(" 63101 ") == "63101"
    assert clean_postal_code("631") is None
    assert clean_postal_code(None) is None


def test_resolve_postal_code_reads_first_place():
    session = MagicMock()
    session.get.return_value = _response(payload={
        "places": [{"latitude": "38.6270", "longitude": "-90.1994"}, {"latitude": "1", "longitude": "1"}],
    })

    coords = _lookup(session).resolve_postal_code("63101")

    assert coords == Coordinates(38.627, -90.1994)
    session.get.assert_called_once_with("https://zip.test/us/63101", timeout=3)


def test_resolve_postal_code_short_code_skips_network():
    session = MagicMock()
    assert _lookup(session).resolve_postal_code("123") is None
    session.get.assert_not_called()


def test_resolve_postal_code_failures_are_none():
    session = MagicMock()
    session.get.return_value = _response(status=404)
    assert _lookup(session).resolve_postal_code("99999") is None

    session.get.side_effect = requests.ConnectionError("offline")
    assert _lookup(session).resolve_postal_code("63101") is None


def test_resolve_postal_code_without_places():
    session = MagicMock()
    session.get.return_value = _response(payload={"places": []})
    assert _lookup(session).resolve_postal_code("63101") is None


def test_resolve_city_uses_state_abbreviation():
    session = MagicMock()
    session.get.return_value = _response(payload={
        "places": [{"latitude": "38.5834", "longitude": "-90.4068"}],
    })

    coords = _lookup(session).resolve_city("Kirkwood", "Missouri")

    assert coords == Coordinates(38.5834, -90.4068)
    session.get.assert_called_once_with("https://zip.test/us/mo/Kirkwood", timeout=3)


def test_resolve_city_needs_city_and_state():
    session = MagicMock()
    assert _lookup(session).resolve_city("", "MO") is None
    assert _lookup(session).resolve_city("Kirkwood", "") is None
    session.get.assert_not_called()


def test_suggest_cities_merges_fallback_and_api():
    session = MagicMock()

    def fake_get(url, timeout):
        if url.endswith("/mo/kirk"):
            return _response(payload={
                "state abbreviation": "MO",
                "places": [{"place name": "Kirkwood"}, {"place name": "Kirksville"}],
            })
        return _response(status=404)

    session.get.side_effect = fake_get

    found = _lookup(session).suggest_cities("MO", "kirk")

    assert found == [CitySuggestion("Kirksville", "MO"), CitySuggestion("Kirkwood", "MO")]


def test_suggest_cities_dedupes_fallback_and_sorts():
    session = MagicMock()
    session.get.return_value = _response(payload={
        "state abbreviation": "MO",
        "places": [{"place name": "Saint Louis"}, {"place name": "saint louis"}],
    })

    found = _lookup(session).suggest_cities("MO", "st louis")

    names = [s.city for s in found]
    assert names.count("Saint Louis") == 1
    assert "saint louis" not in names
    assert names == sorted(names, key=str.casefold)


def test_suggest_cities_drops_other_states():
    session = MagicMock()
    session.get.return_value = _response(payload={
        "state abbreviation": "IL",
        "places": [{"place name": "Belleville"}],
    })
    found = _lookup(session).suggest_cities("MO", "belle")
    assert found == [CitySuggestion("Bellefontaine Neighbors", "MO")]


def test_suggest_cities_needs_state_and_two_chars():
    session = MagicMock()
    assert _lookup(session).suggest_cities("", "kirkwood") == []
    assert _lookup(session).suggest_cities("MO", "k") == []
    session.get.assert_not_called()


def test_suggest_cities_survives_failing_variation():
    session = MagicMock()
    session.get.side_effect = requests.Timeout("slow")
    found = _lookup(session).suggest_cities("MO", "st")
    # fallback list still answers
    assert CitySuggestion("Saint Louis", "MO") in found
