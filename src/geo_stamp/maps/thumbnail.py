"""
Map Thumbnail Loader
====================

Best-effort static map thumbnail for the stamp panel.

This loader:
    - Builds a static-map URL centred on the fix with one marker
    - Uses Google Static Maps when a key is configured, else OpenStreetMap
    - Fetches and decodes the raster with OpenCV
    - Converges EVERY failure (network, status, decode) to MAP_UNAVAILABLE

Design Rules:
    - load() never raises
    - At most one fetch per loader; later callers share it
    - wait() is bounded so a hung fetch cannot block a capture
"""

import asyncio
import logging
from typing import Any, Optional
from urllib.parse import urlencode

import cv2
import numpy as np

from geo_stamp.models.assets import LoadedMap, MapAsset, MAP_UNAVAILABLE
from geo_stamp.models.geo import GeoFix
from geo_stamp.net import create_session, http_get


logger = logging.getLogger(__name__)


GOOGLE_STATIC_MAP_URL = "https://maps.googleapis.com/maps/api/staticmap"
OSM_STATIC_MAP_URL = "https://staticmap.openstreetmap.de/staticmap.php"

DEFAULT_ZOOM = 15

# Placeholder colours (BGR)
PLACEHOLDER_FILL = (0x2B, 0x2B, 0x2B)
PLACEHOLDER_MARKER = (0x2B, 0x39, 0xC0)

# Marker geometry at the reference side of 120px
_REFERENCE_SIDE = 120
_MARKER_RADIUS = 8
_MARKER_LIFT = 10


def build_map_url(
    fix: GeoFix,
    size_px: int,
    api_key: Optional[str] = None,
    zoom: int = DEFAULT_ZOOM,
) -> str:
    """
    Build a static-map request URL.

    Args:
        fix: Map centre and marker position
        size_px: Square side in pixels
        api_key: Google key; selects Google Static Maps when set
        zoom: Zoom level

    Returns:
        Fully-encoded request URL
    """
    center = fix.as_query()
    size = f"{size_px}x{size_px}"
    if api_key:
        query = urlencode({
            "center": center,
            "zoom": zoom,
            "size": size,
            "markers": f"color:red|{center}",
            "key": api_key,
        })
        return f"{GOOGLE_STATIC_MAP_URL}?{query}"

    query = urlencode({
        "center": center,
        "zoom": zoom,
        "size": size,
        "markers": f"{center},red-pushpin",
    })
    return f"{OSM_STATIC_MAP_URL}?{query}"


def render_placeholder(size_px: int) -> np.ndarray:
    """
    Render the map placeholder.

    A flat dark square with a red marker dot centred horizontally in
    the upper half, scaled from the 120px reference layout.

    Returns:
        BGR image as np.ndarray (size_px, size_px, 3), dtype=uint8
    """
    side = max(1, int(size_px))
    image = np.empty((side, side, 3), dtype=np.uint8)
    image[:] = PLACEHOLDER_FILL

    scale = side / _REFERENCE_SIDE
    radius = max(1, round(_MARKER_RADIUS * scale))
    center = (side // 2, round(side / 2 - _MARKER_LIFT * scale))
    cv2.circle(image, center, radius, PLACEHOLDER_MARKER, thickness=-1, lineType=cv2.LINE_AA)
    return image


def decode_map_image(content: bytes) -> Optional[np.ndarray]:
    """Decode raster bytes to BGR, or None if not a decodable image."""
    if not content:
        return None
    nparr = np.frombuffer(content, np.uint8)
    image = cv2.imdecode(nparr, cv2.IMREAD_COLOR)
    if image is None or image.ndim != 3 or image.shape[2] != 3:
        return None
    return image


class MapThumbnailLoader:
    """
    Fetches the session's map thumbnail once.

    Attributes:
        api_key: Google key ("" selects OpenStreetMap)
        zoom: Static map zoom level
        timeout: HTTP timeout in seconds
    """

    def __init__(
        self,
        api_key: str = "",
        zoom: int = DEFAULT_ZOOM,
        session: Optional[Any] = None,
        timeout: float = 10.0,
        user_agent: Optional[str] = None,
    ) -> None:
        self.api_key = api_key
        self.zoom = zoom
        self.timeout = timeout
        self._session = session if session is not None else create_session(user_agent)
        self._task: Optional[asyncio.Task] = None
        self._failure_count: int = 0

    @property
    def failure_count(self) -> int:
        """Fetches that ended in MAP_UNAVAILABLE."""
        return self._failure_count

    @property
    def result(self) -> Optional[MapAsset]:
        """Resolved asset, or None while pending or never started."""
        if self._task is None or not self._task.done():
            return None
        return self._task.result()

    def start(self, fix: GeoFix, size_px: int) -> asyncio.Task:
        """Start the fetch unless one already exists; return the shared task."""
        if self._task is None:
            self._task = asyncio.create_task(
                self._fetch(fix, size_px), name="map_thumbnail"
            )
        return self._task

    async def load(self, fix: GeoFix, size_px: int) -> MapAsset:
        """Load the thumbnail for `fix`. Never raises."""
        return await asyncio.shield(self.start(fix, size_px))

    async def wait(self, timeout: float) -> MapAsset:
        """
        Wait up to `timeout` seconds for the in-flight fetch.

        Returns:
            The loaded asset, or MAP_UNAVAILABLE if no fetch was started
            or it has not finished in time (it keeps running)
        """
        if self._task is None:
            return MAP_UNAVAILABLE
        try:
            return await asyncio.wait_for(asyncio.shield(self._task), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Map fetch still pending after {timeout:.1f}s, using placeholder")
            return MAP_UNAVAILABLE

    async def _fetch(self, fix: GeoFix, size_px: int) -> MapAsset:
        url = build_map_url(fix, size_px, api_key=self.api_key, zoom=self.zoom)
        provider = "google" if self.api_key else "osm"
        try:
            response = await http_get(self._session, url, timeout=self.timeout)
            image = decode_map_image(response.content)
        except Exception as e:
            self._failure_count += 1
            logger.warning(f"Map fetch from {provider} failed: {e}")
            return MAP_UNAVAILABLE

        if image is None:
            self._failure_count += 1
            logger.warning(f"Map from {provider} could not be decoded")
            return MAP_UNAVAILABLE

        logger.info(f"Loaded {image.shape[1]}x{image.shape[0]} map from {provider}")
        return LoadedMap(image=image)
