"""
Geocoding Tests
===============

Result selection, field extraction and the provider fallback chain.
"""

import asyncio

import pytest
import requests

from conftest import GOOGLE_GEOCODE, NOMINATIM, FakeHttpSession, FakeResponse
from geo_stamp.geocoding import (
    GeocodeError,
    GoogleGeocodeProvider,
    NominatimProvider,
    PlaceResolver,
    build_providers,
    first_successful,
    select_best_result,
)
from geo_stamp.geocoding.providers import place_from_nominatim
from geo_stamp.models.place import PlaceInfo
from geo_stamp.models.providers import GoogleGeocodeResult, NominatimResponse


class TestSelectBestResult:
    """POI-preferring selection."""

    @pytest.mark.parametrize("poi_first", [True, False])
    def test_establishment_wins_regardless_of_order(self, poi_first):
        poi = GoogleGeocodeResult(formatted_address="Cafe, 1 Road", types=["establishment"])
        plain = GoogleGeocodeResult(formatted_address="1 Road, Town", types=["street_address"])
        results = [poi, plain] if poi_first else [plain, poi]
        assert select_best_result(results) is poi

    def test_point_of_interest_type_counts(self):
        plain = GoogleGeocodeResult(formatted_address="1 Road", types=["route"])
        poi = GoogleGeocodeResult(formatted_address="Museum", types=["point_of_interest"])
        assert select_best_result([plain, poi]) is poi

    def test_first_result_without_poi(self):
        a = GoogleGeocodeResult(formatted_address="A", types=["route"])
        b = GoogleGeocodeResult(formatted_address="B", types=["locality"])
        assert select_best_result([a, b]) is a


class TestGoogleProvider:

    def test_uses_poi_result(self, fix, google_payload):
        http = FakeHttpSession({GOOGLE_GEOCODE: FakeResponse(json_data=google_payload)})
        provider = GoogleGeocodeProvider(api_key="k", session=http)

        place = asyncio.run(provider.reverse(fix))

        assert place.landmark == "Googleplex"
        assert place.address_line == "Googleplex, 1600 Amphitheatre Pkwy, Mountain View, CA, USA"
        assert place.full_address == place.address_line
        assert http.calls[0]["params"] == {"latlng": "37.422,-122.084", "key": "k"}

    def test_component_name_when_no_formatted_address(self, fix):
        payload = {
            "status": "OK",
            "results": [{"address_components": [{"long_name": "Shoreline Park"}]}],
        }
        http = FakeHttpSession({GOOGLE_GEOCODE: FakeResponse(json_data=payload)})
        place = asyncio.run(GoogleGeocodeProvider(api_key="k", session=http).reverse(fix))
        assert place.landmark == "Shoreline Park"

    @pytest.mark.parametrize("payload", [
        {"status": "REQUEST_DENIED", "error_message": "bad key", "results": []},
        {"status": "ZERO_RESULTS", "results": []},
        {"results": []},
    ])
    def test_non_ok_status_raises(self, fix, payload):
        http = FakeHttpSession({GOOGLE_GEOCODE: FakeResponse(json_data=payload)})
        with pytest.raises(GeocodeError):
            asyncio.run(GoogleGeocodeProvider(api_key="k", session=http).reverse(fix))

    def test_network_error_raises_geocode_error(self, fix):
        http = FakeHttpSession({GOOGLE_GEOCODE: requests.Timeout("slow")})
        with pytest.raises(GeocodeError):
            asyncio.run(GoogleGeocodeProvider(api_key="k", session=http).reverse(fix))

    def test_requires_key(self):
        with pytest.raises(ValueError):
            GoogleGeocodeProvider(api_key="", session=FakeHttpSession())


class TestNominatimExtraction:
    """Field preference rules for the fallback provider."""

    def test_attraction_beats_city(self, nominatim_payload):
        place = place_from_nominatim(NominatimResponse.model_validate(nominatim_payload))
        assert place.landmark == "Landmark X"

    def test_address_line_order(self, nominatim_payload):
        place = place_from_nominatim(NominatimResponse.model_validate(nominatim_payload))
        assert place.address_line == "Main St, Townsville, Country Y"
        assert place.full_address == "Main St, Townsville, Country Y"

    def test_named_point_first(self):
        response = NominatimResponse(
            name="Shoreline Amphitheatre",
            address={"attraction": "Other", "road": "Amphitheatre Pkwy"},
        )
        assert place_from_nominatim(response).landmark == "Shoreline Amphitheatre"

    @pytest.mark.parametrize("address,expected", [
        ({"building": "B", "leisure": "L", "amenity": "A"}, "B"),
        ({"leisure": "L", "amenity": "A", "town": "T"}, "L"),
        ({"amenity": "A", "village": "V"}, "A"),
        ({"town": "T", "city": "C"}, "T"),
        ({"village": "V", "city": "C", "suburb": "S"}, "V"),
        ({"city": "C", "suburb": "S"}, "C"),
        ({"suburb": "S", "neighbourhood": "N", "road": "R"}, "S"),
        ({"neighbourhood": "N", "road": "R"}, "N"),
        ({"road": "R"}, "R"),
        ({"country": "Z"}, ""),
    ])
    def test_landmark_preference(self, address, expected):
        place = place_from_nominatim(NominatimResponse(address=address))
        assert place.landmark == expected

    def test_full_address_prefers_display_name(self):
        response = NominatimResponse(
            display_name="X, Main St, Townsville",
            address={"road": "Main St", "neighbourhood": "Old Town", "suburb": "South",
                     "town": "Townsville", "state": "S", "postcode": "123", "country": "C"},
        )
        place = place_from_nominatim(response)
        assert place.full_address == "X, Main St, Townsville"
        assert place.address_line == "Main St, Old Town, Townsville, S, 123, C"

    def test_error_payload_raises(self):
        with pytest.raises(GeocodeError):
            place_from_nominatim(NominatimResponse(error="Unable to geocode"))

    def test_request_shape(self, fix, nominatim_payload):
        http = FakeHttpSession({NOMINATIM: FakeResponse(json_data=nominatim_payload)})
        asyncio.run(NominatimProvider(session=http).reverse(fix))
        call = http.calls[0]
        assert call["params"]["format"] == "jsonv2"
        assert call["params"]["addressdetails"] == 1
        assert call["headers"] == {"Accept-Language": "en"}


class _CountingProvider:

    def __init__(self, name, place=None, error=None, delay=0.0):
        self.name = name
        self.place = place
        self.error = error
        self.delay = delay
        self.calls = 0

    async def reverse(self, fix):
        self.calls += 1
        await asyncio.sleep(self.delay)
        if self.error:
            raise self.error
        return self.place


class TestFallbackChain:
    """Sequential fallback and resolver degradation."""

    def test_first_success_short_circuits(self, fix):
        a = _CountingProvider("a", place=PlaceInfo("A", "a", "a"))
        b = _CountingProvider("b", place=PlaceInfo("B", "b", "b"))
        assert asyncio.run(first_successful([a, b], fix)).landmark == "A"
        assert b.calls == 0

    def test_falls_through_on_failure(self, fix):
        a = _CountingProvider("a", error=GeocodeError("down"))
        b = _CountingProvider("b", place=PlaceInfo("B", "b", "b"))
        assert asyncio.run(first_successful([a, b], fix)).landmark == "B"

    def test_all_failed_raises(self, fix):
        a = _CountingProvider("a", error=GeocodeError("down"))
        with pytest.raises(GeocodeError):
            asyncio.run(first_successful([a], fix))

    def test_resolver_degrades_to_placeholder(self, fix):
        resolver = PlaceResolver([_CountingProvider("a", error=GeocodeError("down"))])
        place = asyncio.run(resolver.resolve(fix))
        assert place == PlaceInfo("", "", "Unable to fetch address")

    def test_resolver_is_at_most_one_in_flight(self, fix):
        provider = _CountingProvider("a", place=PlaceInfo("A", "a", "a"), delay=0.02)
        resolver = PlaceResolver([provider])

        async def scenario():
            first, second = await asyncio.gather(resolver.resolve(fix), resolver.resolve(fix))
            third = await resolver.resolve(fix)
            return first, second, third

        results = asyncio.run(scenario())
        assert provider.calls == 1
        assert all(r.landmark == "A" for r in results)

    def test_google_failure_falls_back_to_nominatim(self, fix, make_settings, nominatim_payload):
        http = FakeHttpSession({
            GOOGLE_GEOCODE: FakeResponse(json_data={"status": "OVER_QUERY_LIMIT"}),
            NOMINATIM: FakeResponse(json_data=nominatim_payload),
        })
        resolver = PlaceResolver(build_providers(make_settings(google_api_key="k"), session=http))
        place = asyncio.run(resolver.resolve(fix))
        assert place.landmark == "Landmark X"
        assert http.calls_to(GOOGLE_GEOCODE) == 1
        assert http.calls_to(NOMINATIM) == 1


class TestBuildProviders:

    def test_without_key_only_nominatim(self, make_settings):
        providers = build_providers(make_settings(), session=FakeHttpSession())
        assert [p.name for p in providers] == ["nominatim"]

    def test_with_key_google_first(self, make_settings):
        providers = build_providers(make_settings(google_api_key="k"), session=FakeHttpSession())
        assert [p.name for p in providers] == ["google", "nominatim"]
