"""
Geocoding Module
================

Reverse geocoding with an ordered provider fallback chain.

Components:
    - ReverseGeocodeProvider: Protocol for backends
    - GoogleGeocodeProvider: Credentialed primary provider
    - NominatimProvider: Free fallback provider
    - first_successful: Sequential fallback combinator
    - PlaceResolver: At-most-one-in-flight resolver with degradation
"""

from geo_stamp.geocoding.providers import (
    GeocodeError,
    GoogleGeocodeProvider,
    NominatimProvider,
    ReverseGeocodeProvider,
    select_best_result,
)
from geo_stamp.geocoding.resolver import (
    PlaceResolver,
    build_providers,
    first_successful,
)

__all__ = [
    "GeocodeError",
    "ReverseGeocodeProvider",
    "GoogleGeocodeProvider",
    "NominatimProvider",
    "select_best_result",
    "first_successful",
    "build_providers",
    "PlaceResolver",
]
