"""
Stamp Compositor
================

Draws the corrected frame and the stamp into one raster image.

Pipeline:
    1. Orientation correction (upright canvas)
    2. Layout (ordered draw operations)
    3. Painting with Pillow (translucent fills are alpha-blended)

Design Rules:
    - A failure drawing the map layer falls back to the placeholder
    - A failure in any other single op is logged and skipped
    - compose() always returns a complete image once a frame exists
"""

import logging
from typing import List, Optional, Sequence

import cv2
import numpy as np
from PIL import Image, ImageDraw

from geo_stamp.maps.thumbnail import render_placeholder
from geo_stamp.models.capture import CaptureContext
from geo_stamp.models.draw import (
    CircleOp,
    DrawOp,
    ImageOp,
    PlaceholderMapOp,
    Rect,
    RoundedRectOp,
    TextAnchor,
    TextOp,
)
from geo_stamp.render.fonts import FontBook
from geo_stamp.stamp.layout import DEFAULT_STYLE, StampStyle, build_stamp
from geo_stamp.stamp.orientation import correct


logger = logging.getLogger(__name__)


_ANCHORS = {
    TextAnchor.TOP: "la",
    TextAnchor.MIDDLE: "lm",
}


def _bgr_to_pil(image: np.ndarray) -> Image.Image:
    return Image.fromarray(cv2.cvtColor(image, cv2.COLOR_BGR2RGB))


def _box(rect: Rect) -> List[int]:
    return [rect.x, rect.y, rect.right - 1, rect.bottom - 1]


class StampCompositor:
    """
    Composites a frame and its stamp.

    Attributes:
        style: Stamp proportionality constants
        fonts: Font lookup and measurement
    """

    def __init__(
        self,
        style: StampStyle = DEFAULT_STYLE,
        fonts: Optional[FontBook] = None,
    ) -> None:
        self.style = style
        self.fonts = fonts if fonts is not None else FontBook()
        self.failed_ops: int = 0

    def compose(self, frame: np.ndarray, angle_deg: int, context: CaptureContext) -> np.ndarray:
        """
        Produce the final stamped image.

        Args:
            frame: Raw BGR frame (H, W, 3)
            angle_deg: Device orientation sampled at capture
            context: Immutable capture snapshot

        Returns:
            Stamped BGR image, upright
        """
        oriented = correct(frame, angle_deg)
        canvas = oriented.transform.apply(frame)
        ops = build_stamp(
            oriented.width,
            oriented.height,
            context,
            self.fonts.measure,
            self.style,
        )
        return self.render(canvas, ops)

    def render(self, canvas: np.ndarray, ops: Sequence[DrawOp]) -> np.ndarray:
        """Paint `ops` over a BGR canvas and return the result as BGR."""
        image = _bgr_to_pil(canvas)
        draw = ImageDraw.Draw(image, "RGBA")

        for op in ops:
            try:
                self._draw(image, draw, op)
            except Exception as e:
                self.failed_ops += 1
                if isinstance(op, ImageOp):
                    logger.warning(f"Map layer failed, drawing placeholder: {e}")
                    self._paste(image, op.bounds, render_placeholder(op.bounds.width))
                else:
                    logger.error(f"Skipping {type(op).__name__}: {e}")

        return cv2.cvtColor(np.asarray(image), cv2.COLOR_RGB2BGR)

    def _draw(self, image: Image.Image, draw: ImageDraw.ImageDraw, op: DrawOp) -> None:
        if isinstance(op, RoundedRectOp):
            if op.bounds.width > 0 and op.bounds.height > 0:
                draw.rounded_rectangle(_box(op.bounds), radius=op.radius, fill=op.fill)
        elif isinstance(op, CircleOp):
            r = op.radius
            draw.ellipse([op.cx - r, op.cy - r, op.cx + r, op.cy + r], fill=op.fill)
        elif isinstance(op, ImageOp):
            side = op.bounds
            if side.width > 0 and side.height > 0:
                resized = cv2.resize(op.image, (side.width, side.height), interpolation=cv2.INTER_AREA)
                self._paste(image, side, resized)
        elif isinstance(op, PlaceholderMapOp):
            self._paste(image, op.bounds, render_placeholder(op.bounds.width))
        elif isinstance(op, TextOp):
            draw.text(
                (op.x, op.y),
                op.text,
                font=self.fonts.font(op.font),
                fill=op.fill,
                anchor=_ANCHORS[op.anchor],
            )
        else:
            raise TypeError(f"Unknown draw op: {op!r}")

    @staticmethod
    def _paste(image: Image.Image, bounds: Rect, bgr: np.ndarray) -> None:
        if bounds.width <= 0 or bounds.height <= 0:
            return
        image.paste(_bgr_to_pil(bgr), (bounds.x, bounds.y))
