"""
Capture Session
===============

Orchestrates one client session of the stamp camera.

Lifecycle:
    start()   - open the frame source, start the clock, request a position
    (fix)     - place resolution and map loading start concurrently, once
    capture() - sample orientation, freeze the time, snapshot a
                CaptureContext, composite and export
    close()   - stop the clock, release the frame source

Design Rules:
    - A refused device disables that capability only; the session
      records a status message and keeps going
    - Network failures never surface; place and map degrade
    - capture() without a valid frame raises FrameNotReadyError and
      writes nothing
    - GeoFix, PlaceInfo and MapAsset are each written once per session

Example:
    async with CaptureSession.from_settings(settings) as session:
        await session.wait_until_located()
        result = await session.capture()
        print(result.path)
"""

import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Sequence

from geo_stamp.config import Settings
from geo_stamp.errors import (
    FrameNotReadyError,
    FrameSourceError,
    PositionUnavailableError,
    PositionUnsupportedError,
)
from geo_stamp.geocoding.resolver import PlaceResolver, build_providers
from geo_stamp.maps.thumbnail import MapThumbnailLoader
from geo_stamp.models.assets import MapAsset, MAP_UNAVAILABLE
from geo_stamp.models.capture import CaptureContext
from geo_stamp.models.geo import GeoFix
from geo_stamp.models.place import PlaceInfo
from geo_stamp.render.compositor import StampCompositor
from geo_stamp.render.exporter import ImageExporter
from geo_stamp.session.sources import (
    FrameSource,
    OpenCVFrameSource,
    PositionSource,
    acquire_position,
    is_valid_frame,
    position_source_from_settings,
)
from geo_stamp.stamp.layout import StampStyle, StampText, stamp_text
from geo_stamp.stamp.orientation import OrientationSignal, normalize_angle, sample_orientation
from geo_stamp.stamp.timestamp import ClockTicker


logger = logging.getLogger(__name__)


FRAME_NOT_READY = "Video not ready yet — try again in a second"


@dataclass(frozen=True, slots=True)
class CaptureResult:
    """
    Outcome of one capture.

    Attributes:
        path: Exported image file
        context: Snapshot the stamp was rendered from
        text: Display text burned into the stamp
        angle_deg: Orientation applied
        width, height: Exported image size
    """

    path: Path
    context: CaptureContext
    text: StampText
    angle_deg: int
    width: int
    height: int


class CaptureSession:
    """
    Single-session stamp camera.

    Attributes:
        status_message: User-facing status ("" when all is well)
        fix: Acquired GeoFix, or None
    """

    def __init__(
        self,
        frame_source: FrameSource,
        position_source: PositionSource,
        resolver: PlaceResolver,
        map_loader: MapThumbnailLoader,
        compositor: StampCompositor,
        exporter: ImageExporter,
        clock: Optional[ClockTicker] = None,
        orientation_signals: Sequence[OrientationSignal] = (),
        map_size_px: int = 300,
        location_timeout: float = 20.0,
        map_wait_timeout: float = 5.0,
    ) -> None:
        self.frame_source = frame_source
        self.position_source = position_source
        self.resolver = resolver
        self.map_loader = map_loader
        self.compositor = compositor
        self.exporter = exporter
        self.clock = clock if clock is not None else ClockTicker()
        self.orientation_signals = list(orientation_signals)
        self.map_size_px = map_size_px
        self.location_timeout = location_timeout
        self.map_wait_timeout = map_wait_timeout

        self.status_message: str = ""
        self.fix: Optional[GeoFix] = None
        self.capture_count: int = 0

        self._camera_ready: bool = False
        self._location_failure: Optional[PlaceInfo] = None
        self._location_task: Optional[asyncio.Task] = None
        self._started: bool = False
        self._closed: bool = False

    # =========================================================================
    # Construction
    # =========================================================================

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        frame_source: Optional[FrameSource] = None,
        position_source: Optional[PositionSource] = None,
        http_session: Optional[Any] = None,
        orientation_signals: Sequence[OrientationSignal] = (),
    ) -> "CaptureSession":
        """Build a session with every collaborator configured from settings."""
        stamp = StampStyle(
            panel_height_cap=settings.stamp.panel_height_cap,
            panel_opacity=settings.stamp.panel_opacity,
            badge_label=settings.stamp.badge_label,
        )
        return cls(
            frame_source=frame_source or OpenCVFrameSource(
                device=settings.camera.device,
                width=settings.camera.width,
                height=settings.camera.height,
            ),
            position_source=position_source or position_source_from_settings(settings),
            resolver=PlaceResolver(build_providers(settings, session=http_session)),
            map_loader=MapThumbnailLoader(
                api_key=settings.providers.google_api_key,
                zoom=settings.map.zoom,
                session=http_session,
                timeout=settings.providers.request_timeout_seconds,
                user_agent=settings.providers.user_agent,
            ),
            compositor=StampCompositor(style=stamp),
            exporter=ImageExporter(
                output_dir=settings.export.output_dir,
                prefix=settings.export.filename_prefix,
                quality=settings.export.jpeg_quality,
            ),
            orientation_signals=orientation_signals,
            map_size_px=settings.map.size_px,
            location_timeout=settings.location.timeout_seconds,
            map_wait_timeout=settings.map.wait_timeout_seconds,
        )

    # =========================================================================
    # Lifecycle
    # =========================================================================

    async def start(self) -> None:
        """Open the camera, start the clock and request a position."""
        if self._started:
            return
        self._started = True

        try:
            await asyncio.to_thread(self.frame_source.open)
            self._camera_ready = True
        except FrameSourceError as e:
            self.status_message = f"Camera access denied or not available: {e}"
            logger.error(self.status_message)

        await self.clock.start()
        self._location_task = asyncio.create_task(self._locate(), name="locate")
        logger.info("Capture session started")

    async def close(self) -> None:
        """Stop the clock and release the frame source. Idempotent."""
        if self._closed:
            return
        self._closed = True
        await self.clock.stop()
        self.frame_source.release()
        self._camera_ready = False
        logger.info(f"Capture session closed after {self.capture_count} captures")

    async def __aenter__(self) -> "CaptureSession":
        await self.start()
        return self

    async def __aexit__(self, *args) -> None:
        await self.close()

    # =========================================================================
    # Location
    # =========================================================================

    async def _locate(self) -> None:
        try:
            fix = await acquire_position(self.position_source, self.location_timeout)
        except PositionUnsupportedError as e:
            self._location_failure = PlaceInfo.unsupported()
            self.status_message = self._location_failure.full_address
            logger.warning(f"Position unsupported: {e}")
            return
        except PositionUnavailableError as e:
            self._location_failure = PlaceInfo.denied()
            self.status_message = self._location_failure.full_address
            logger.warning(f"Position unavailable: {e}")
            return

        self.fix = fix
        logger.info(f"Position acquired: {fix.as_query()}")
        self.resolver.start(fix)
        self.map_loader.start(fix, self.map_size_px)

    async def wait_until_located(self, timeout: Optional[float] = None) -> Optional[GeoFix]:
        """
        Wait for position acquisition and place resolution to finish.

        Args:
            timeout: Total seconds for both stages together (None waits
                indefinitely)

        Returns:
            The fix, or None if location failed or the wait timed out
        """
        if self._location_task is None:
            return None
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        try:
            await asyncio.wait_for(asyncio.shield(self._location_task), timeout=timeout)
            if self.fix is not None:
                remaining = None if deadline is None else max(0.0, deadline - loop.time())
                await asyncio.wait_for(self.resolver.resolve(self.fix), timeout=remaining)
        except asyncio.TimeoutError:
            logger.warning("Location still pending")
        return self.fix

    @property
    def place(self) -> PlaceInfo:
        """Current PlaceInfo; never None."""
        if self._location_failure is not None:
            return self._location_failure
        resolved = self.resolver.result
        return resolved if resolved is not None else PlaceInfo.loading()

    async def _map_asset(self) -> MapAsset:
        if self.fix is None:
            return MAP_UNAVAILABLE
        return await self.map_loader.wait(self.map_wait_timeout)

    async def _place_snapshot(self) -> PlaceInfo:
        if self.fix is not None:
            try:
                await asyncio.wait_for(self.resolver.resolve(self.fix), timeout=self.map_wait_timeout)
            except asyncio.TimeoutError:
                logger.warning("Place still resolving, stamping placeholder")
        return self.place

    # =========================================================================
    # Capture
    # =========================================================================

    async def capture(self, angle_deg: Optional[int] = None) -> CaptureResult:
        """
        Capture, stamp and export the current frame.

        Args:
            angle_deg: Explicit orientation; sampled from the orientation
                signals when None (0 if none is usable)

        Returns:
            CaptureResult for the exported file

        Raises:
            FrameNotReadyError: No valid frame yet (retry later)
        """
        if self._closed:
            raise FrameNotReadyError("Session is closed")

        frame = await asyncio.to_thread(self.frame_source.read) if self._camera_ready else None
        if not is_valid_frame(frame):
            logger.warning(FRAME_NOT_READY)
            raise FrameNotReadyError(FRAME_NOT_READY)

        if angle_deg is None:
            angle = sample_orientation(*self.orientation_signals)
        else:
            angle = normalize_angle(angle_deg)

        captured_at, timestamp_text = self.clock.freeze()
        place, map_asset = await asyncio.gather(self._place_snapshot(), self._map_asset())

        context = CaptureContext(
            place=place,
            fix=self.fix,
            map_asset=map_asset,
            timestamp_text=timestamp_text,
            captured_at=captured_at,
        )

        image = self.compositor.compose(frame, angle, context)
        path = self.exporter.export(image, captured_at)
        self.capture_count += 1

        return CaptureResult(
            path=path,
            context=context,
            text=stamp_text(context),
            angle_deg=angle,
            width=image.shape[1],
            height=image.shape[0],
        )
