"""
Data Models
===========

Data models for GeoStamp.

This module re-exports all data models for convenient access.

Models:
    Location:
        - GeoFix: Resolved coordinate pair
        - PlaceInfo, AddressStatus: Normalized place metadata
    
    Assets:
        - LoadedMap, MAP_UNAVAILABLE, MapAsset: Map thumbnail result type
    
    Capture:
        - CaptureContext: Immutable per-capture snapshot
    
    Drawing:
        - Rect, FontSpec, DrawOp variants
"""

from geo_stamp.models.geo import GeoFix
from geo_stamp.models.place import AddressStatus, PlaceInfo
from geo_stamp.models.assets import LoadedMap, MapAsset, MAP_UNAVAILABLE, UnavailableMap
from geo_stamp.models.capture import CaptureContext
from geo_stamp.models.draw import (
    CircleOp,
    DrawOp,
    FontFamily,
    FontSpec,
    ImageOp,
    PlaceholderMapOp,
    Rect,
    RoundedRectOp,
    TextAnchor,
    TextOp,
)

__all__ = [
    # Location
    "GeoFix",
    "PlaceInfo",
    "AddressStatus",
    # Assets
    "LoadedMap",
    "UnavailableMap",
    "MapAsset",
    "MAP_UNAVAILABLE",
    # Capture
    "CaptureContext",
    # Drawing
    "Rect",
    "FontFamily",
    "FontSpec",
    "TextAnchor",
    "DrawOp",
    "RoundedRectOp",
    "CircleOp",
    "ImageOp",
    "PlaceholderMapOp",
    "TextOp",
]
