"""
Capture Context
===============

Immutable snapshot of everything the compositor needs for one capture.

Assembled once per capture from the session's resolved state and passed
by value into the layout engine, so a single render never observes a
mix of old and new fields.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from geo_stamp.models.assets import MapAsset, MAP_UNAVAILABLE
from geo_stamp.models.geo import GeoFix
from geo_stamp.models.place import PlaceInfo


@dataclass(frozen=True, slots=True)
class CaptureContext:
    """
    Per-capture stamp data.

    Attributes:
        place: Resolved (or degraded) place metadata
        fix: Coordinates, or None when no position was acquired
        map_asset: Loaded map or MAP_UNAVAILABLE
        timestamp_text: Formatted timestamp frozen at the capture instant
        captured_at: Aware datetime of the capture instant
    """

    place: PlaceInfo
    fix: Optional[GeoFix]
    map_asset: MapAsset
    timestamp_text: str
    captured_at: datetime

    @classmethod
    def without_location(
        cls,
        place: PlaceInfo,
        timestamp_text: str,
        captured_at: datetime,
    ) -> "CaptureContext":
        """Context for a capture with no fix and no map."""
        return cls(
            place=place,
            fix=None,
            map_asset=MAP_UNAVAILABLE,
            timestamp_text=timestamp_text,
            captured_at=captured_at,
        )
