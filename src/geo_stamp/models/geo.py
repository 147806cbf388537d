"""
Geographic Models
=================

The GeoFix is the single resolved coordinate pair of a session.

It is immutable once obtained and read by every downstream stage:
the place resolver, the map thumbnail loader and the stamp layout.
"""

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class GeoFix:
    """
    A single resolved geographic coordinate pair.

    Attributes:
        latitude: Degrees north, [-90, 90]
        longitude: Degrees east, [-180, 180]
    """

    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        """Validate invariants."""
        if not -90.0 <= self.latitude <= 90.0:
            raise ValueError(f"latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise ValueError(f"longitude out of range: {self.longitude}")

    def as_query(self) -> str:
        """Render as the `lat,lon` pair used in provider URLs."""
        return f"{self.latitude},{self.longitude}"
