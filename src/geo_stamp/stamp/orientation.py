"""
Frame Orientation Corrector
===========================

Produces an upright canvas from a raw frame and the device angle.

Rules:
    - 90 / 270: canvas swaps width and height; the frame is rotated
      about the canvas centre by the angle (clockwise, y-down)
    - 180: native dimensions, rotated about the centre
    - 0: native dimensions, identity. Never mirrored, even for a
      front-facing camera; the output shows the real scene.

The angle is an explicit input, sampled once at capture time by
sample_orientation(), which defaults to 0 when no signal exists.
"""

import logging
import math
from dataclasses import dataclass
from typing import Callable, Optional, Tuple, Union

import cv2
import numpy as np


logger = logging.getLogger(__name__)


Number = Union[int, float]
OrientationSignal = Callable[[], Optional[Number]]

VALID_ANGLES = (0, 90, 180, 270)

_ROTATE_CODES = {
    90: cv2.ROTATE_90_CLOCKWISE,
    180: cv2.ROTATE_180,
    270: cv2.ROTATE_90_COUNTERCLOCKWISE,
}

# Exact (cos, sin) for quarter turns
_TRIG = {0: (1, 0), 90: (0, 1), 180: (-1, 0), 270: (0, -1)}


def normalize_angle(raw: Number) -> int:
    """
    Normalize any angle in degrees to one of 0, 90, 180, 270.

    Negative angles wrap (-90 -> 270); others snap to the nearest
    quarter turn.
    """
    wrapped = ((raw % 360) + 360) % 360
    return int(round(wrapped / 90.0)) % 4 * 90


def sample_orientation(*signals: OrientationSignal) -> int:
    """
    Read the first usable orientation signal.

    Signals are tried in order; a signal that returns None, a
    non-number, or raises is skipped.

    Returns:
        Normalized angle, 0 when no signal is usable
    """
    for signal in signals:
        try:
            value = signal()
        except Exception as e:
            logger.debug(f"Orientation signal failed: {e}")
            continue
        if isinstance(value, (int, float)) and not isinstance(value, bool) and math.isfinite(value):
            return normalize_angle(value)
    return 0


@dataclass(frozen=True, slots=True)
class DrawTransform:
    """
    Placement of the raw frame on the output canvas.

    Attributes:
        angle_deg: Rotation applied, one of 0/90/180/270
        source_width, source_height: Raw frame size
        canvas_width, canvas_height: Output canvas size
    """

    angle_deg: int
    source_width: int
    source_height: int
    canvas_width: int
    canvas_height: int

    @property
    def is_identity(self) -> bool:
        return self.angle_deg == 0

    @property
    def matrix(self) -> np.ndarray:
        """
        2x3 affine mapping source pixel centres to canvas pixel centres.

        Rotation is about the frame centre, then translated to the
        canvas centre.
        """
        cos, sin = _TRIG[self.angle_deg]
        sx = (self.source_width - 1) / 2.0
        sy = (self.source_height - 1) / 2.0
        cx = (self.canvas_width - 1) / 2.0
        cy = (self.canvas_height - 1) / 2.0
        return np.array(
            [
                [cos, -sin, cx - cos * sx + sin * sy],
                [sin, cos, cy - sin * sx - cos * sy],
            ],
            dtype=np.float64,
        )

    def map_point(self, x: float, y: float) -> Tuple[float, float]:
        """Canvas position of source pixel (x, y)."""
        m = self.matrix
        return (
            float(m[0, 0] * x + m[0, 1] * y + m[0, 2]),
            float(m[1, 0] * x + m[1, 1] * y + m[1, 2]),
        )

    def apply(self, frame: np.ndarray) -> np.ndarray:
        """Render `frame` onto a new canvas (pixel-exact for quarter turns)."""
        if frame.shape[1] != self.source_width or frame.shape[0] != self.source_height:
            raise ValueError(
                f"Frame is {frame.shape[1]}x{frame.shape[0]}, "
                f"transform expects {self.source_width}x{self.source_height}"
            )
        if self.is_identity:
            return frame.copy()
        return cv2.rotate(frame, _ROTATE_CODES[self.angle_deg])


@dataclass(frozen=True, slots=True)
class OrientedFrame:
    """Canvas size plus the transform that fills it."""

    width: int
    height: int
    transform: DrawTransform


def correct(frame: np.ndarray, angle_deg: Number) -> OrientedFrame:
    """
    Compute the upright canvas for `frame` at `angle_deg`.

    Args:
        frame: Raw frame (H, W[, C])
        angle_deg: Device orientation; normalized to a quarter turn

    Returns:
        OrientedFrame with canvas size and draw transform
    """
    if frame.ndim < 2 or frame.shape[0] == 0 or frame.shape[1] == 0:
        raise ValueError(f"Invalid frame shape: {frame.shape}")

    angle = normalize_angle(angle_deg)
    height, width = frame.shape[:2]

    if angle in (90, 270):
        canvas_w, canvas_h = height, width
    else:
        canvas_w, canvas_h = width, height

    transform = DrawTransform(
        angle_deg=angle,
        source_width=width,
        source_height=height,
        canvas_width=canvas_w,
        canvas_height=canvas_h,
    )
    return OrientedFrame(width=canvas_w, height=canvas_h, transform=transform)
