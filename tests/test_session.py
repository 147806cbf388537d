"""
Capture Session Tests
=====================

End-to-end captures against fake camera, position and HTTP backends.
"""

import asyncio
import time
from pathlib import Path

import cv2
import numpy as np
import pytest
import requests

from conftest import (
    GOOGLE_GEOCODE,
    GOOGLE_STATIC,
    NOMINATIM,
    FakeFrameSource,
    FakeHttpSession,
    FakeResponse,
)
from geo_stamp.errors import FrameNotReadyError
from geo_stamp.models.assets import LoadedMap, MAP_UNAVAILABLE
from geo_stamp.session import (
    CaptureSession,
    DeniedPositionSource,
    FixedPositionSource,
    UnsupportedPositionSource,
)


@pytest.fixture
def http(nominatim_payload, map_png):
    """Google geocoding down, Nominatim and Google static maps up."""
    return FakeHttpSession({
        GOOGLE_GEOCODE: requests.ConnectionError("geocoder offline"),
        GOOGLE_STATIC: FakeResponse(content=map_png),
        NOMINATIM: FakeResponse(json_data=nominatim_payload),
    })


def _session(settings, frame_source, position_source, http):
    return CaptureSession.from_settings(
        settings,
        frame_source=frame_source,
        position_source=position_source,
        http_session=http,
    )


class TestCaptureFlow:
    """Full capture with provider fallback."""

    def test_capture_with_fallback_geocoder(self, make_settings, white_frame, fix, http):
        settings = make_settings(google_api_key="k")
        source = FakeFrameSource(white_frame)

        async def scenario():
            async with _session(settings, source, FixedPositionSource(fix), http) as session:
                await session.wait_until_located(timeout=2)
                return await session.capture(angle_deg=0)

        result = asyncio.run(scenario())

        assert result.text.landmark == "Landmark X"
        assert result.text.address == "Main St, Townsville, Country Y"
        assert result.text.coordinates == "Lat 37.422000 Long -122.084000"
        assert isinstance(result.context.map_asset, LoadedMap)
        assert result.path.exists()
        assert result.path.parent == Path(settings.export.output_dir)
        assert (result.width, result.height) == (640, 480)
        assert source.released
        assert http.calls_to(GOOGLE_GEOCODE) == 1
        assert http.calls_to(NOMINATIM) == 1
        assert http.calls_to(GOOGLE_STATIC) == 1

    def test_exported_image_decodes(self, make_settings, white_frame, fix, http):
        async def scenario():
            async with _session(
                make_settings(), FakeFrameSource(white_frame), FixedPositionSource(fix), http
            ) as session:
                await session.wait_until_located(timeout=2)
                return await session.capture(angle_deg=0)

        result = asyncio.run(scenario())
        image = cv2.imread(str(result.path))
        assert image.shape == (480, 640, 3)

    def test_portrait_capture_swaps_dimensions(self, make_settings, white_frame, fix, http):
        async def scenario():
            async with _session(
                make_settings(), FakeFrameSource(white_frame), FixedPositionSource(fix), http
            ) as session:
                return await session.capture(angle_deg=90)

        result = asyncio.run(scenario())
        assert result.angle_deg == 90
        assert (result.width, result.height) == (480, 640)

    def test_orientation_signal_sampled_when_no_angle(self, make_settings, white_frame, fix, http):
        session = CaptureSession.from_settings(
            make_settings(),
            frame_source=FakeFrameSource(white_frame),
            position_source=FixedPositionSource(fix),
            http_session=http,
            orientation_signals=[lambda: None, lambda: -90],
        )

        async def scenario():
            async with session:
                return await session.capture()

        assert asyncio.run(scenario()).angle_deg == 270

    def test_repeated_captures_keep_both_files(self, make_settings, white_frame, fix, http):
        async def scenario():
            async with _session(
                make_settings(), FakeFrameSource(white_frame), FixedPositionSource(fix), http
            ) as session:
                await session.wait_until_located(timeout=2)
                first = await session.capture(angle_deg=0)
                second = await session.capture(angle_deg=0)
                return first, second

        first, second = asyncio.run(scenario())
        assert first.path != second.path
        assert first.path.exists() and second.path.exists()
        # place and map are resolved once per session
        assert http.calls_to(NOMINATIM) == 1


class TestDegradation:
    """Refused devices and missing frames."""

    def test_no_frame_raises_and_writes_nothing(self, make_settings, fix, http):
        settings = make_settings()

        async def scenario():
            async with _session(settings, FakeFrameSource(None), FixedPositionSource(fix), http) as session:
                with pytest.raises(FrameNotReadyError):
                    await session.capture()

        asyncio.run(scenario())
        assert not Path(settings.export.output_dir).exists()

    def test_empty_frame_is_not_ready(self, make_settings, fix, http):
        empty = np.zeros((0, 0, 3), dtype=np.uint8)

        async def scenario():
            async with _session(make_settings(), FakeFrameSource(empty), FixedPositionSource(fix), http) as session:
                with pytest.raises(FrameNotReadyError):
                    await session.capture()

        asyncio.run(scenario())

    def test_refused_camera_keeps_session_alive(self, make_settings, fix, http):
        async def scenario():
            async with _session(
                make_settings(), FakeFrameSource(None, refuse=True), FixedPositionSource(fix), http
            ) as session:
                status = session.status_message
                located = await session.wait_until_located(timeout=2)
                with pytest.raises(FrameNotReadyError):
                    await session.capture()
                return status, located, session.place

        status, located, place = asyncio.run(scenario())
        assert status.startswith("Camera access denied or not available")
        assert located == fix
        assert place.landmark == "Landmark X"

    def test_denied_location_stamps_placeholders(self, make_settings, white_frame, http):
        async def scenario():
            async with _session(
                make_settings(), FakeFrameSource(white_frame), DeniedPositionSource(), http
            ) as session:
                await session.wait_until_located(timeout=2)
                return session.status_message, await session.capture(angle_deg=0)

        status, result = asyncio.run(scenario())
        assert status == "Location denied/unavailable"
        assert result.context.fix is None
        assert result.context.map_asset is MAP_UNAVAILABLE
        assert result.text.coordinates == "Lat — Long —"
        assert result.path.exists()
        assert http.calls == []

    def test_unsupported_location(self, make_settings, white_frame, http):
        async def scenario():
            async with _session(
                make_settings(), FakeFrameSource(white_frame), UnsupportedPositionSource(), http
            ) as session:
                await session.wait_until_located(timeout=2)
                return session.place

        assert asyncio.run(scenario()).full_address == "Geolocation not supported"

    def test_all_providers_down(self, make_settings, white_frame, fix):
        offline = FakeHttpSession()

        async def scenario():
            async with _session(
                make_settings(google_api_key="k"), FakeFrameSource(white_frame),
                FixedPositionSource(fix), offline,
            ) as session:
                await session.wait_until_located(timeout=2)
                return await session.capture(angle_deg=0)

        result = asyncio.run(scenario())
        assert result.context.place.full_address == "Unable to fetch address"
        assert result.context.map_asset is MAP_UNAVAILABLE
        assert result.text.coordinates == "Lat 37.422000 Long -122.084000"
        assert result.path.exists()


class TestLifecycle:

    def test_close_stops_clock_and_releases(self, make_settings, white_frame, fix, http):
        source = FakeFrameSource(white_frame)
        session = _session(make_settings(), source, FixedPositionSource(fix), http)

        async def scenario():
            await session.start()
            running = session.clock.running
            await session.close()
            await session.close()
            return running

        assert asyncio.run(scenario()) is True
        assert not session.clock.running
        assert source.released

    def test_capture_after_close_raises(self, make_settings, white_frame, fix, http):
        session = _session(make_settings(), FakeFrameSource(white_frame), FixedPositionSource(fix), http)

        async def scenario():
            await session.start()
            await session.close()
            with pytest.raises(FrameNotReadyError):
                await session.capture()

        asyncio.run(scenario())


class _SlowPositionSource:

    def __init__(self, fix, delay):
        self.fix = fix
        self.delay = delay

    async def get_position(self, timeout):
        await asyncio.sleep(self.delay)
        return self.fix


class TestWaitUntilLocated:

    def test_timeout_covers_locating_and_resolving(self, make_settings, white_frame, fix, nominatim_payload):
        """A slow position plus a slow geocoder share one timeout."""
        def slow_geocoder():
            time.sleep(0.6)
            return FakeResponse(json_data=nominatim_payload)

        http = FakeHttpSession({NOMINATIM: slow_geocoder})

        async def scenario():
            async with _session(
                make_settings(), FakeFrameSource(white_frame), _SlowPositionSource(fix, 0.1), http
            ) as session:
                started = time.monotonic()
                located = await session.wait_until_located(timeout=0.25)
                return located, time.monotonic() - started, session.place

        located, elapsed, place = asyncio.run(scenario())
        assert located == fix
        assert 0.2 <= elapsed < 0.33
        assert place.full_address == "Loading address..."
