"""
Test Configuration
==================

Pytest fixtures and test doubles for GeoStamp.

HTTP is faked with FakeHttpSession, which routes requests by URL
substring to canned responses or exceptions.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import cv2
import numpy as np
import pytest
import requests

from geo_stamp.config import ExportConfig, ProvidersConfig, Settings
from geo_stamp.errors import FrameSourceError
from geo_stamp.models.capture import CaptureContext
from geo_stamp.models.geo import GeoFix
from geo_stamp.models.place import PlaceInfo
from geo_stamp.models.assets import MAP_UNAVAILABLE


GOOGLE_GEOCODE = "geocode/json"
GOOGLE_STATIC = "maps/api/staticmap"
NOMINATIM = "nominatim.openstreetmap.org"
OSM_STATIC = "staticmap.openstreetmap.de"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(
        self,
        status_code: int = 200,
        json_data: Any = None,
        content: bytes = b"",
    ) -> None:
        self.status_code = status_code
        self._json = json_data
        self.content = content

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> Any:
        if self._json is None:
            raise ValueError("No JSON body")
        return self._json


class FakeHttpSession:
    """
    Routes GETs by URL substring.

    A route value may be a FakeResponse, an exception instance
    (raised), or a callable returning either.
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None) -> None:
        self.routes = dict(routes or {})
        self.calls: List[Dict[str, Any]] = []

    def calls_to(self, fragment: str) -> int:
        return sum(1 for c in self.calls if fragment in c["url"])

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": params, "headers": headers, "timeout": timeout})
        for fragment, route in self.routes.items():
            if fragment in url:
                result = route() if callable(route) else route
                if isinstance(result, Exception):
                    raise result
                return result
        raise requests.ConnectionError(f"No route for {url}")


class FakeFrameSource:
    """Frame source yielding a fixed frame."""

    def __init__(self, frame: Optional[np.ndarray], refuse: bool = False) -> None:
        self.frame = frame
        self.refuse = refuse
        self.opened = False
        self.released = False

    def open(self) -> None:
        if self.refuse:
            raise FrameSourceError("permission denied")
        self.opened = True

    def read(self) -> Optional[np.ndarray]:
        return None if self.frame is None else self.frame.copy()

    def release(self) -> None:
        self.released = True


def png_bytes(image: np.ndarray) -> bytes:
    ok, buffer = cv2.imencode(".png", image)
    assert ok
    return buffer.tobytes()


@pytest.fixture
def fix():
    """The reference fix used across tests."""
    return GeoFix(latitude=37.422, longitude=-122.084)


@pytest.fixture
def nominatim_payload():
    """Nominatim address with an attraction and a city."""
    return {
        "address": {
            "attraction": "Landmark X",
            "road": "Main St",
            "city": "Townsville",
            "country": "Country Y",
        }
    }


@pytest.fixture
def google_payload():
    """Google response whose POI result is NOT first."""
    return {
        "status": "OK",
        "results": [
            {
                "formatted_address": "1600 Amphitheatre Pkwy, Mountain View, CA 94043, USA",
                "types": ["street_address"],
            },
            {
                "formatted_address": "Googleplex, 1600 Amphitheatre Pkwy, Mountain View, CA, USA",
                "types": ["establishment", "point_of_interest"],
            },
        ],
    }


@pytest.fixture
def map_png():
    """A solid green 64x64 PNG as bytes."""
    image = np.zeros((64, 64, 3), dtype=np.uint8)
    image[:] = (0, 255, 0)
    return png_bytes(image)


@pytest.fixture
def white_frame():
    """A 640x480 white BGR frame."""
    return np.full((480, 640, 3), 255, dtype=np.uint8)


@pytest.fixture
def captured_at():
    return datetime(2024, 3, 5, 21, 7, 2, tzinfo=timezone(timedelta(hours=5, minutes=30)))


@pytest.fixture
def sample_context(fix, captured_at):
    """Context with a resolved place and no map."""
    return CaptureContext(
        place=PlaceInfo(
            landmark="Landmark X",
            address_line="Main St, Townsville, Country Y",
            full_address="Landmark X, Main St, Townsville, Country Y",
        ),
        fix=fix,
        map_asset=MAP_UNAVAILABLE,
        timestamp_text="05/03/2024 09:07:02 PM GMT +05:30",
        captured_at=captured_at,
    )


@pytest.fixture
def make_settings(tmp_path):
    """Factory for settings exporting into tmp_path."""

    def _make(google_api_key: str = "", **overrides) -> Settings:
        return Settings(
            providers=ProvidersConfig(google_api_key=google_api_key),
            export=ExportConfig(output_dir=str(tmp_path / "captures")),
            **overrides,
        )

    return _make
