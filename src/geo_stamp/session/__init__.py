"""
Session Module
==============

Capture session orchestration and its external collaborators.

Components:
    - CaptureSession: start / capture / close lifecycle
    - FrameSource, OpenCVFrameSource: live camera frames
    - PositionSource and adapters: one-shot position acquisition
"""

from geo_stamp.session.capture import CaptureResult, CaptureSession
from geo_stamp.session.sources import (
    DeniedPositionSource,
    FixedPositionSource,
    FrameSource,
    OpenCVFrameSource,
    PositionSource,
    UnsupportedPositionSource,
    acquire_position,
    position_source_from_settings,
)

__all__ = [
    "CaptureSession",
    "CaptureResult",
    "FrameSource",
    "OpenCVFrameSource",
    "PositionSource",
    "FixedPositionSource",
    "UnsupportedPositionSource",
    "DeniedPositionSource",
    "acquire_position",
    "position_source_from_settings",
]
