"""
Render Module
=============

Compositing and export of the stamped image.
"""

from geo_stamp.render.compositor import StampCompositor
from geo_stamp.render.exporter import (
    ImageEncodeError,
    ImageExporter,
    encode_jpeg,
    export_filename,
)
from geo_stamp.render.fonts import FontBook, load_font

__all__ = [
    "StampCompositor",
    "ImageExporter",
    "ImageEncodeError",
    "encode_jpeg",
    "export_filename",
    "FontBook",
    "load_font",
]
