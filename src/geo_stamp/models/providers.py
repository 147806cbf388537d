"""
Provider Response Schemas
=========================

Pydantic models for the reverse-geocoding payloads this package consumes.

Only the fields the place resolver reads are declared; everything else
in the provider response is ignored. A payload that does not conform
is rejected before any field extraction happens.

Google Geocoding (abridged):
    {
        "status": "OK",
        "results": [
            {
                "formatted_address": "Googleplex, 1600 Amphitheatre Pkwy, ...",
                "types": ["establishment", "point_of_interest"],
                "address_components": [{"long_name": "Googleplex", ...}]
            }
        ]
    }

Nominatim jsonv2 (abridged):
    {
        "name": "Googleplex",
        "display_name": "Googleplex, 1600, Amphitheatre Parkway, ...",
        "address": {"road": "Amphitheatre Parkway", "city": "Mountain View", ...}
    }
"""

from typing import Dict, List, Optional

from pydantic import BaseModel, Field


POI_TYPES = frozenset({"establishment", "point_of_interest"})


class AddressComponent(BaseModel):
    """One entry of a Google result's address_components."""

    long_name: str = ""
    short_name: str = ""
    types: List[str] = Field(default_factory=list)


class GoogleGeocodeResult(BaseModel):
    """A single Google reverse-geocoding candidate."""

    formatted_address: str = ""
    types: List[str] = Field(default_factory=list)
    address_components: List[AddressComponent] = Field(default_factory=list)

    @property
    def is_point_of_interest(self) -> bool:
        """Whether the result is flagged as an establishment/POI."""
        return any(t in POI_TYPES for t in self.types)


class GoogleGeocodeResponse(BaseModel):
    """Top-level Google Geocoding API response."""

    status: str = Field(..., description="'OK' on success")
    results: List[GoogleGeocodeResult] = Field(default_factory=list)
    error_message: Optional[str] = None


class NominatimResponse(BaseModel):
    """Top-level Nominatim jsonv2 reverse response."""

    name: Optional[str] = None
    display_name: Optional[str] = None
    address: Optional[Dict[str, str]] = None
    error: Optional[str] = None
