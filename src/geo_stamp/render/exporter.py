"""
Image Exporter
==============

Serializes the composited image and delivers it as a file.

The filename embeds the capture instant in epoch milliseconds so
repeated captures in one session never overwrite each other.
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import Union

import cv2
import numpy as np

from geo_stamp.errors import GeoStampError


logger = logging.getLogger(__name__)


DEFAULT_QUALITY = 92
DEFAULT_PREFIX = "geo-stamped"


class ImageEncodeError(GeoStampError):
    """Raised when the image cannot be encoded."""
    pass


def encode_jpeg(image: np.ndarray, quality: int = DEFAULT_QUALITY) -> bytes:
    """
    Encode a BGR image as JPEG.

    Args:
        image: BGR image (H, W, 3), dtype=uint8
        quality: JPEG quality 1-100

    Raises:
        ImageEncodeError: If OpenCV cannot encode the image
    """
    ok, buffer = cv2.imencode(".jpg", image, [cv2.IMWRITE_JPEG_QUALITY, int(quality)])
    if not ok:
        raise ImageEncodeError(f"cv2.imencode failed for image of shape {image.shape}")
    return buffer.tobytes()


def export_filename(captured_at: datetime, prefix: str = DEFAULT_PREFIX) -> str:
    """`<prefix>-<epoch ms>.jpg` for the capture instant."""
    return f"{prefix}-{int(captured_at.timestamp() * 1000)}.jpg"


class ImageExporter:
    """
    Writes stamped captures into the download directory.

    Attributes:
        output_dir: Destination directory (created on first export)
        prefix: Filename prefix
        quality: JPEG quality
    """

    def __init__(
        self,
        output_dir: Union[str, Path],
        prefix: str = DEFAULT_PREFIX,
        quality: int = DEFAULT_QUALITY,
    ) -> None:
        self.output_dir = Path(output_dir)
        self.prefix = prefix
        self.quality = quality

    def export(self, image: np.ndarray, captured_at: datetime) -> Path:
        """
        Encode and write `image`.

        Returns:
            Path of the written file
        """
        data = encode_jpeg(image, self.quality)
        self.output_dir.mkdir(parents=True, exist_ok=True)

        path = self.output_dir / export_filename(captured_at, self.prefix)
        stem = path.stem
        counter = 0
        while path.exists():
            counter += 1
            path = path.with_name(f"{stem}_{counter}.jpg")

        path.write_bytes(data)
        logger.info(f"Exported {len(data)} bytes to {path}")
        return path
