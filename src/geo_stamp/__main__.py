#!/usr/bin/env python3
"""
GeoStamp Entry Point
====================

Opens a capture session and exports stamped images.

Usage:
    python -m geo_stamp capture
    python -m geo_stamp capture --count 3 --interval 2 --angle 90
    python -m geo_stamp capture --config ./config.yaml --output ./out
"""

import argparse
import asyncio
import logging
import sys
from typing import List, Optional

from geo_stamp import config
from geo_stamp.config import Settings, load_config, setup_logging
from geo_stamp.errors import FrameNotReadyError
from geo_stamp.session import CaptureSession


logger = logging.getLogger("geo_stamp")


async def run_capture(
    settings: Settings,
    count: int,
    interval: float,
    angle: Optional[int],
    retries: int = 5,
) -> List[str]:
    """
    Capture `count` stamped images.

    Returns:
        Paths of the exported files
    """
    signals = [lambda: angle] if angle is not None else []
    paths: List[str] = []

    async with CaptureSession.from_settings(settings, orientation_signals=signals) as session:
        fix = await session.wait_until_located(timeout=settings.location.timeout_seconds)
        if fix is None and session.status_message:
            logger.warning(session.status_message)

        for i in range(count):
            for attempt in range(retries):
                try:
                    result = await session.capture()
                    break
                except FrameNotReadyError as e:
                    logger.warning(f"{e} (attempt {attempt + 1}/{retries})")
                    await asyncio.sleep(1.0)
            else:
                logger.error("No frame from camera, giving up")
                return paths

            logger.info(f"[{i + 1}/{count}] {result.text.landmark} -> {result.path}")
            paths.append(str(result.path))
            if i < count - 1:
                await asyncio.sleep(interval)

    return paths


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="geo_stamp", description="Location stamp camera")
    sub = parser.add_subparsers(dest="command", required=True)

    cap = sub.add_parser("capture", help="Capture stamped images")
    cap.add_argument("--config", default=None, help="Path to config.yaml")
    cap.add_argument("--count", type=int, default=1, help="Number of captures")
    cap.add_argument("--interval", type=float, default=1.0, help="Seconds between captures")
    cap.add_argument("--angle", type=int, default=None, help="Device orientation in degrees")
    cap.add_argument("--output", default=None, help="Output directory")

    args = parser.parse_args(argv)

    settings = load_config(args.config) if args.config else config.settings
    if args.output:
        settings.export.output_dir = args.output
    setup_logging(settings)

    paths = asyncio.run(run_capture(settings, args.count, args.interval, args.angle))
    for path in paths:
        print(path)
    return 0 if len(paths) == args.count else 1


if __name__ == "__main__":
    sys.exit(main())
