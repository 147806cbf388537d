"""
Errors
======

Exception hierarchy for GeoStamp.

Three families, handled at different layers:
    - Device/permission: FrameSourceError, PositionError subclasses.
      Surfaced as a session status message; the pipeline degrades.
    - Network/provider: GeocodeError (in geo_stamp.geocoding).
      Recovered by provider fallback or placeholder values.
    - Precondition: FrameNotReadyError. Retryable; nothing is exported.
"""


class GeoStampError(Exception):
    """Base class for all GeoStamp errors."""
    pass


class FrameSourceError(GeoStampError):
    """Raised when the frame source cannot be opened."""
    pass


class FrameNotReadyError(GeoStampError):
    """Raised when a capture is requested before a valid frame exists."""
    pass


class PositionError(GeoStampError):
    """Raised when no position fix can be acquired."""
    pass


class PositionUnsupportedError(PositionError):
    """The platform offers no position source at all."""
    pass


class PositionUnavailableError(PositionError):
    """Position permission was denied or acquisition timed out."""
    pass
