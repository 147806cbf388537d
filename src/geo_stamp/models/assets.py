"""
Map Asset Result Type
=====================

The map thumbnail is a best-effort resource: either a decoded bitmap
(`LoadedMap`) or the `MAP_UNAVAILABLE` sentinel. Every failure path of
the loader converges to the sentinel, so the compositor never sees an
error channel for the map layer.
"""

from dataclasses import dataclass
from typing import Union

import numpy as np


@dataclass(frozen=True, slots=True, eq=False)
class LoadedMap:
    """
    A decoded static-map image.

    Attributes:
        image: BGR image as np.ndarray (H, W, 3), dtype=uint8
    """

    image: np.ndarray

    def __repr__(self) -> str:
        """Compact repr that doesn't dump the pixels."""
        h, w = self.image.shape[:2]
        return f"LoadedMap({w}x{h})"


class UnavailableMap:
    """Sentinel for a map that could not be fetched or decoded."""

    _instance = None

    def __new__(cls) -> "UnavailableMap":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "MAP_UNAVAILABLE"

    def __bool__(self) -> bool:
        return False


MAP_UNAVAILABLE = UnavailableMap()

MapAsset = Union[LoadedMap, UnavailableMap]
