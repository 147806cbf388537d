"""
Fonts
=====

Font lookup and text measurement for the stamp renderer.

TrueType faces are searched by common file name; when none is found
Pillow's bundled default font is used at the requested size. The same
FontBook both measures (for layout) and draws (for compositing), so
wrapped lines are measured with the face they are rendered in.
"""

import logging
from functools import lru_cache
from typing import Dict, Sequence

from PIL import ImageFont

from geo_stamp.models.draw import FontFamily, FontSpec


logger = logging.getLogger(__name__)


FONT_CANDIDATES: Dict[FontFamily, Sequence[str]] = {
    FontFamily.SANS: (
        "DejaVuSans.ttf",
        "LiberationSans-Regular.ttf",
        "Arial.ttf",
        "Helvetica.ttc",
    ),
    FontFamily.SANS_BOLD: (
        "DejaVuSans-Bold.ttf",
        "LiberationSans-Bold.ttf",
        "Arial Bold.ttf",
        "arialbd.ttf",
    ),
    FontFamily.MONO: (
        "DejaVuSansMono.ttf",
        "LiberationMono-Regular.ttf",
        "Courier New.ttf",
        "cour.ttf",
    ),
}


@lru_cache(maxsize=64)
def load_font(family: FontFamily, size: int) -> ImageFont.FreeTypeFont:
    """Load the first available face for `family` at `size` pixels."""
    for name in FONT_CANDIDATES[family]:
        try:
            return ImageFont.truetype(name, size)
        except OSError:
            continue
    logger.warning(f"No TrueType face for {family.value}, using Pillow default font")
    return ImageFont.load_default(size=size)


class FontBook:
    """Resolves FontSpecs to Pillow fonts and measures text."""

    def font(self, spec: FontSpec) -> ImageFont.FreeTypeFont:
        return load_font(spec.family, spec.size)

    def measure(self, text: str, spec: FontSpec) -> float:
        """Advance width of `text` in pixels."""
        return float(self.font(spec).getlength(text))
