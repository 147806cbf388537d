"""
Draw Operations
===============

Typed draw operations emitted by the stamp layout engine.

The layout engine never touches pixels. It emits an ordered list of
these operations, which the compositor executes onto the canvas.

Colours are RGBA tuples with components in [0, 255].
"""

from dataclasses import dataclass
from enum import Enum
from typing import Tuple, Union

import numpy as np


RGBA = Tuple[int, int, int, int]


@dataclass(frozen=True, slots=True)
class Rect:
    """Axis-aligned rectangle in canvas pixels (origin top-left)."""

    x: int
    y: int
    width: int
    height: int

    @property
    def right(self) -> int:
        return self.x + self.width

    @property
    def bottom(self) -> int:
        return self.y + self.height

    def contains(self, other: "Rect") -> bool:
        """Whether `other` lies entirely inside this rectangle."""
        return (
            other.x >= self.x
            and other.y >= self.y
            and other.right <= self.right
            and other.bottom <= self.bottom
        )


class FontFamily(str, Enum):
    """Font families used by the stamp."""

    SANS = "sans"
    SANS_BOLD = "sans-bold"
    MONO = "mono"


@dataclass(frozen=True, slots=True)
class FontSpec:
    """Font family plus pixel size."""

    family: FontFamily
    size: int


class TextAnchor(str, Enum):
    """Vertical anchoring of a text op's y coordinate."""

    TOP = "top"
    MIDDLE = "middle"


@dataclass(frozen=True, slots=True)
class RoundedRectOp:
    bounds: Rect
    radius: int
    fill: RGBA


@dataclass(frozen=True, slots=True)
class CircleOp:
    cx: float
    cy: float
    radius: float
    fill: RGBA


@dataclass(frozen=True, slots=True, eq=False)
class ImageOp:
    """Draw a BGR image scaled into `bounds`."""

    bounds: Rect
    image: np.ndarray


@dataclass(frozen=True, slots=True)
class PlaceholderMapOp:
    """Draw the map placeholder into `bounds`."""

    bounds: Rect


@dataclass(frozen=True, slots=True)
class TextOp:
    text: str
    x: int
    y: int
    font: FontSpec
    fill: RGBA
    anchor: TextAnchor = TextAnchor.TOP


DrawOp = Union[RoundedRectOp, CircleOp, ImageOp, PlaceholderMapOp, TextOp]
