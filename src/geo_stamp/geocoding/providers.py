"""
Reverse-Geocoding Providers
===========================

Concrete reverse-geocoding backends behind one protocol.

Providers:
    - GoogleGeocodeProvider: credentialed, prefers establishment/POI results
    - NominatimProvider: free OpenStreetMap fallback, field-preference landmark

Design Rules:
    - Each provider raises GeocodeError on ANY failure
      (network, HTTP status, JSON parse, schema, provider status)
    - Field extraction rules are pure functions, testable without network
    - Providers never return None fields
"""

import logging
from typing import Any, Dict, List, Optional, Protocol, Sequence

import requests
from pydantic import ValidationError

from geo_stamp.errors import GeoStampError
from geo_stamp.models.geo import GeoFix
from geo_stamp.models.place import PlaceInfo
from geo_stamp.models.providers import (
    GoogleGeocodeResponse,
    GoogleGeocodeResult,
    NominatimResponse,
)
from geo_stamp.net import create_session, http_get


logger = logging.getLogger(__name__)


GOOGLE_GEOCODE_URL = "https://maps.googleapis.com/maps/api/geocode/json"
NOMINATIM_REVERSE_URL = "https://nominatim.openstreetmap.org/reverse"

# Landmark preference for Nominatim address fields, highest first.
# The top-level "name" of the reverse result is checked before these.
LANDMARK_FIELDS: Sequence[str] = (
    "attraction",
    "building",
    "leisure",
    "amenity",
    "town",
    "village",
    "city",
    "suburb",
    "neighbourhood",
    "road",
)


class GeocodeError(GeoStampError):
    """Raised when a provider cannot produce a PlaceInfo."""
    pass


class ReverseGeocodeProvider(Protocol):
    """
    Protocol for reverse-geocoding backends.

    All implementations must provide a `name` and an async `reverse`
    method that maps a GeoFix to a PlaceInfo, raising GeocodeError
    on failure.
    """

    name: str

    async def reverse(self, fix: GeoFix) -> PlaceInfo:
        ...


# =============================================================================
# Field Extraction
# =============================================================================

def first_segment(text: str) -> str:
    """First comma-delimited segment of `text`, stripped."""
    return text.split(",")[0].strip() if text else ""


def select_best_result(results: List[GoogleGeocodeResult]) -> GoogleGeocodeResult:
    """
    Pick the result to stamp.

    Prefers the first establishment/point-of-interest result anywhere
    in the list; otherwise the first result.
    """
    if not results:
        raise GeocodeError("No results to select from")
    for result in results:
        if result.is_point_of_interest:
            return result
    return results[0]


def place_from_google(response: GoogleGeocodeResponse) -> PlaceInfo:
    """Normalize a Google Geocoding response."""
    if response.status != "OK" or not response.results:
        detail = f": {response.error_message}" if response.error_message else ""
        raise GeocodeError(f"Google geocoder status {response.status}{detail}")

    best = select_best_result(response.results)
    formatted = best.formatted_address.strip()

    if formatted:
        landmark = first_segment(formatted)
    elif best.address_components:
        landmark = best.address_components[0].long_name.strip()
    else:
        landmark = ""

    address = formatted or landmark
    return PlaceInfo(landmark=landmark, address_line=address, full_address=address)


def _first_present(address: Dict[str, str], *keys: str) -> str:
    for key in keys:
        value = (address.get(key) or "").strip()
        if value:
            return value
    return ""


def nominatim_landmark(name: Optional[str], address: Dict[str, str]) -> str:
    """Landmark by fixed field preference: name, then LANDMARK_FIELDS."""
    if name and name.strip():
        return name.strip()
    return _first_present(address, *LANDMARK_FIELDS)


def nominatim_address_line(address: Dict[str, str]) -> str:
    """Comma-join road, neighbourhood, locality, state, postcode, country."""
    parts = [
        _first_present(address, "road"),
        _first_present(address, "neighbourhood", "suburb"),
        _first_present(address, "city", "town", "village"),
        _first_present(address, "state"),
        _first_present(address, "postcode"),
        _first_present(address, "country"),
    ]
    return ", ".join(p for p in parts if p)


def place_from_nominatim(response: NominatimResponse) -> PlaceInfo:
    """Normalize a Nominatim jsonv2 reverse response."""
    if response.error:
        raise GeocodeError(f"Nominatim error: {response.error}")
    if response.address is None:
        raise GeocodeError("Nominatim response has no address")

    line = nominatim_address_line(response.address)
    full = (response.display_name or "").strip() or line
    return PlaceInfo(
        landmark=nominatim_landmark(response.name, response.address),
        address_line=line,
        full_address=full,
    )


# =============================================================================
# Providers
# =============================================================================

class _HttpProvider:
    """Shared HTTP plumbing for JSON providers."""

    name = "http"

    def __init__(
        self,
        session: Optional[Any] = None,
        timeout: float = 10.0,
        user_agent: Optional[str] = None,
    ) -> None:
        self.timeout = timeout
        self._session = session if session is not None else create_session(user_agent)

    async def _fetch_json(
        self,
        url: str,
        params: Dict[str, Any],
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        try:
            response = await http_get(
                self._session, url, params=params, headers=headers, timeout=self.timeout
            )
            return response.json()
        except requests.RequestException as e:
            raise GeocodeError(f"{self.name} request failed: {e}") from e
        except ValueError as e:
            raise GeocodeError(f"{self.name} returned invalid JSON: {e}") from e


class GoogleGeocodeProvider(_HttpProvider):
    """
    Credentialed Google reverse geocoder.

    Attributes:
        api_key: Google Maps API key
    """

    name = "google"

    def __init__(self, api_key: str, url: str = GOOGLE_GEOCODE_URL, **kwargs: Any) -> None:
        if not api_key:
            raise ValueError("GoogleGeocodeProvider requires an API key")
        super().__init__(**kwargs)
        self.api_key = api_key
        self.url = url

    async def reverse(self, fix: GeoFix) -> PlaceInfo:
        payload = await self._fetch_json(
            self.url, params={"latlng": fix.as_query(), "key": self.api_key}
        )
        try:
            response = GoogleGeocodeResponse.model_validate(payload)
        except ValidationError as e:
            raise GeocodeError(f"Malformed Google response: {e}") from e
        return place_from_google(response)


class NominatimProvider(_HttpProvider):
    """Free OpenStreetMap Nominatim reverse geocoder."""

    name = "nominatim"

    def __init__(self, url: str = NOMINATIM_REVERSE_URL, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        self.url = url

    async def reverse(self, fix: GeoFix) -> PlaceInfo:
        payload = await self._fetch_json(
            self.url,
            params={
                "format": "jsonv2",
                "lat": fix.latitude,
                "lon": fix.longitude,
                "addressdetails": 1,
            },
            headers={"Accept-Language": "en"},
        )
        try:
            response = NominatimResponse.model_validate(payload)
        except ValidationError as e:
            raise GeocodeError(f"Malformed Nominatim response: {e}") from e
        return place_from_nominatim(response)
