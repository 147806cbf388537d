"""
GeoStamp
========

Location-stamp camera: captures a frame and burns in the place name,
address, coordinates, time and a map thumbnail.

Components:
    - geocoding: Reverse geocoding with provider fallback
    - maps: Static map thumbnail with placeholder degradation
    - stamp: Timestamp, orientation correction and layout
    - render: Compositing and JPEG export
    - session: Capture session lifecycle

Example:
    from geo_stamp.config import settings
    from geo_stamp.session import CaptureSession

    async with CaptureSession.from_settings(settings) as session:
        await session.wait_until_located()
        result = await session.capture()
"""

__version__ = "0.1.0"

__all__ = [
    "__version__",
]
