"""
Stamp Module
============

Pure building blocks of the location stamp.

Components:
    - timestamp: Timestamp formatting and the 1 Hz clock ticker
    - orientation: Frame orientation correction
    - layout: Stamp geometry, text wrapping and draw operations
"""

from geo_stamp.stamp.layout import (
    DEFAULT_STYLE,
    StampLayout,
    StampStyle,
    StampText,
    build_stamp,
    compute_layout,
    stamp_text,
    wrap_text,
)
from geo_stamp.stamp.orientation import (
    DrawTransform,
    OrientedFrame,
    correct,
    normalize_angle,
    sample_orientation,
)
from geo_stamp.stamp.timestamp import (
    ClockTicker,
    format_offset,
    format_timestamp,
    to_12_hour,
)

__all__ = [
    "DEFAULT_STYLE",
    "StampLayout",
    "StampStyle",
    "StampText",
    "build_stamp",
    "compute_layout",
    "stamp_text",
    "wrap_text",
    "DrawTransform",
    "OrientedFrame",
    "correct",
    "normalize_angle",
    "sample_orientation",
    "ClockTicker",
    "format_offset",
    "format_timestamp",
    "to_12_hour",
]
