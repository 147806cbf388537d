"""
Maps Module
===========

Static map thumbnail loading with placeholder degradation.
"""

from geo_stamp.maps.thumbnail import (
    MapThumbnailLoader,
    build_map_url,
    decode_map_image,
    render_placeholder,
)

__all__ = [
    "MapThumbnailLoader",
    "build_map_url",
    "decode_map_image",
    "render_placeholder",
]
