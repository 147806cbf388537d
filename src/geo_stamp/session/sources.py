"""
Frame and Position Sources
==========================

Adapters for the session's external collaborators.

Frame Source:
    Yields "the current frame" on demand once opened. The OpenCV
    adapter wraps cv2.VideoCapture; release() stops the device so the
    camera lock is not leaked.

Position Source:
    Yields one GeoFix on request, or raises PositionUnsupportedError /
    PositionUnavailableError (permission denied or timeout).
"""

import asyncio
import logging
from typing import Optional, Protocol

import cv2
import numpy as np

from geo_stamp.config import Settings
from geo_stamp.errors import (
    FrameSourceError,
    PositionUnavailableError,
    PositionUnsupportedError,
)
from geo_stamp.models.geo import GeoFix


logger = logging.getLogger(__name__)


# =============================================================================
# Frame Sources
# =============================================================================

class FrameSource(Protocol):
    """Protocol for live frame sources."""

    def open(self) -> None:
        """Acquire the device. Raises FrameSourceError if refused."""
        ...

    def read(self) -> Optional[np.ndarray]:
        """Current BGR frame, or None if no frame is available yet."""
        ...

    def release(self) -> None:
        """Stop all capture and free the device."""
        ...


class OpenCVFrameSource:
    """
    Camera frame source backed by cv2.VideoCapture.

    Attributes:
        device: Capture device index
        width, height: Requested resolution (the driver may differ)
    """

    def __init__(self, device: int = 0, width: int = 1920, height: int = 1080) -> None:
        self.device = device
        self.width = width
        self.height = height
        self._capture: Optional[cv2.VideoCapture] = None

    @property
    def is_open(self) -> bool:
        return self._capture is not None and self._capture.isOpened()

    def open(self) -> None:
        if self.is_open:
            return
        capture = cv2.VideoCapture(self.device)
        if not capture.isOpened():
            capture.release()
            raise FrameSourceError(f"Camera {self.device} could not be opened")
        capture.set(cv2.CAP_PROP_FRAME_WIDTH, self.width)
        capture.set(cv2.CAP_PROP_FRAME_HEIGHT, self.height)
        self._capture = capture
        logger.info(
            f"Camera {self.device} opened at "
            f"{int(capture.get(cv2.CAP_PROP_FRAME_WIDTH))}x"
            f"{int(capture.get(cv2.CAP_PROP_FRAME_HEIGHT))}"
        )

    def read(self) -> Optional[np.ndarray]:
        if not self.is_open:
            return None
        ok, frame = self._capture.read()
        return frame if ok else None

    def release(self) -> None:
        if self._capture is not None:
            self._capture.release()
            self._capture = None
            logger.info(f"Camera {self.device} released")


def is_valid_frame(frame: Optional[np.ndarray]) -> bool:
    """Whether `frame` is a non-empty BGR image."""
    return (
        frame is not None
        and frame.ndim == 3
        and frame.shape[2] == 3
        and frame.shape[0] > 0
        and frame.shape[1] > 0
    )


# =============================================================================
# Position Sources
# =============================================================================

class PositionSource(Protocol):
    """Protocol for one-shot position acquisition."""

    async def get_position(self, timeout: float) -> GeoFix:
        ...


class FixedPositionSource:
    """Position source returning a configured fix."""

    def __init__(self, fix: GeoFix) -> None:
        self.fix = fix

    async def get_position(self, timeout: float) -> GeoFix:
        return self.fix


class UnsupportedPositionSource:
    """Position source for platforms with no location capability."""

    async def get_position(self, timeout: float) -> GeoFix:
        raise PositionUnsupportedError("No position source available")


class DeniedPositionSource:
    """Position source whose permission was refused."""

    async def get_position(self, timeout: float) -> GeoFix:
        raise PositionUnavailableError("Position permission denied")


async def acquire_position(source: PositionSource, timeout: float) -> GeoFix:
    """
    Request one fix, bounded by `timeout`.

    Raises:
        PositionUnsupportedError: Platform has no position source
        PositionUnavailableError: Permission denied or timed out
    """
    try:
        return await asyncio.wait_for(source.get_position(timeout), timeout=timeout)
    except asyncio.TimeoutError:
        raise PositionUnavailableError(f"No position within {timeout:.0f}s")


def position_source_from_settings(settings: Settings) -> PositionSource:
    """Fixed source when coordinates are configured, else unsupported."""
    loc = settings.location
    if loc.latitude is not None and loc.longitude is not None:
        return FixedPositionSource(GeoFix(loc.latitude, loc.longitude))
    logger.info("No coordinates configured; location is unsupported")
    return UnsupportedPositionSource()
