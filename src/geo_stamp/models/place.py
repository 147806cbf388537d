"""
Place Models
============

PlaceInfo is the normalized result of reverse geocoding.

Every field is always a string. When resolution fails, or the
position could not be acquired at all, the fields degrade to
explicit placeholder text so the stamp can always be rendered.
"""

from dataclasses import dataclass
from enum import Enum


class AddressStatus(str, Enum):
    """
    Fixed placeholder texts used in place of a resolved address.

    Attributes:
        LOADING: Resolution has not finished yet
        GEOCODE_FAILED: Every provider failed
        UNSUPPORTED: The platform offers no position source
        DENIED: Position permission denied, or acquisition timed out
    """

    LOADING = "Loading address..."
    GEOCODE_FAILED = "Unable to fetch address"
    UNSUPPORTED = "Geolocation not supported"
    DENIED = "Location denied/unavailable"


@dataclass(frozen=True, slots=True)
class PlaceInfo:
    """
    Normalized place metadata for a GeoFix.

    Attributes:
        landmark: Short display name (possibly empty)
        address_line: Single-line address shown under the landmark
        full_address: Provider's complete address string
    """

    landmark: str
    address_line: str
    full_address: str

    @classmethod
    def placeholder(cls, status: AddressStatus) -> "PlaceInfo":
        """Degraded PlaceInfo carrying only a status text."""
        return cls(landmark="", address_line="", full_address=status.value)

    @classmethod
    def loading(cls) -> "PlaceInfo":
        return cls.placeholder(AddressStatus.LOADING)

    @classmethod
    def geocode_failed(cls) -> "PlaceInfo":
        return cls.placeholder(AddressStatus.GEOCODE_FAILED)

    @classmethod
    def unsupported(cls) -> "PlaceInfo":
        return cls.placeholder(AddressStatus.UNSUPPORTED)

    @classmethod
    def denied(cls) -> "PlaceInfo":
        return cls.placeholder(AddressStatus.DENIED)
