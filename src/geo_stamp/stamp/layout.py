"""
Stamp Layout Engine
===================

Deterministic geometry and text wrapping for the stamp panel.

Everything here is a pure function of the canvas size, the capture
context and a text measurer. No layout state is carried between
captures, so the same inputs always give the same draw operations.

Geometry (proportional to the canvas):
    margin       = 3% of the shorter side
    panel height = min(22% of height, cap), floored
    panel width  = min(width - 2*margin, 86% of width)
    panel        = bottom-left, translucent rounded rectangle
    map          = square at the panel's inner top-left, side <= 120px
    text column  = panel width right of the map
    badge        = fixed-size white rounded rectangle, bottom-right

The coordinate and time lines never run under the badge: when they
share its rows their monospace font shrinks until they end before it.

Draw Order:
    panel -> map -> landmark -> address -> coordinates -> timestamp -> badge
"""

import math
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

from geo_stamp.models.assets import LoadedMap
from geo_stamp.models.capture import CaptureContext
from geo_stamp.models.draw import (
    RGBA,
    CircleOp,
    DrawOp,
    FontFamily,
    FontSpec,
    ImageOp,
    PlaceholderMapOp,
    Rect,
    RoundedRectOp,
    TextAnchor,
    TextOp,
)
from geo_stamp.models.geo import GeoFix
from geo_stamp.models.place import PlaceInfo


TextMeasurer = Callable[[str, FontSpec], float]

UNKNOWN_LOCATION = "Unknown location"
COORDINATE_PLACEHOLDER = "Lat — Long —"

WHITE: RGBA = (255, 255, 255, 255)
BLACK: RGBA = (0, 0, 0, 255)


def _round(value: float) -> int:
    """Round half up."""
    return int(math.floor(value + 0.5))


@dataclass(frozen=True)
class StampStyle:
    """
    Proportionality constants and presentation settings.

    Ratios are fractions of the canvas or panel; sizes are pixels.
    """

    margin_ratio: float = 0.03
    panel_height_ratio: float = 0.22
    panel_height_cap: int = 220
    panel_width_ratio: float = 0.86
    panel_opacity: float = 0.6
    padding_ratio: float = 0.12
    map_max_side: int = 120

    landmark_font_ratio: float = 0.14
    landmark_font_min: int = 18
    landmark_leading: int = 6
    address_font_ratio: float = 0.10
    address_font_min: int = 12
    address_leading: int = 4
    mono_font_ratio: float = 0.095
    mono_font_min: int = 12
    mono_leading: int = 6
    mono_font_fit_min: int = 5

    badge_width: int = 140
    badge_height: int = 32
    badge_radius: int = 8
    badge_font_size: int = 12
    badge_label: str = "GPS Map Camera"
    badge_dot_radius: int = 6
    badge_dot_inset: int = 18

    text_color: RGBA = WHITE

    @property
    def panel_fill(self) -> RGBA:
        return (0, 0, 0, _round(255 * self.panel_opacity))


DEFAULT_STYLE = StampStyle()


@dataclass(frozen=True, slots=True)
class StampLayout:
    """
    Computed geometry of the stamp for one canvas size.

    Attributes:
        margin: Outer margin
        padding: Inner panel padding
        radius: Panel corner radius
        panel, map, text, badge: Element bounds
        landmark_font, address_font, mono_font: Font specs
        landmark_line_height, address_line_height, mono_line_height: Leading
    """

    margin: int
    padding: int
    radius: int
    panel: Rect
    map: Rect
    text: Rect
    badge: Rect
    landmark_font: FontSpec
    address_font: FontSpec
    mono_font: FontSpec
    landmark_line_height: int
    address_line_height: int
    mono_line_height: int


def compute_layout(
    canvas_width: int,
    canvas_height: int,
    style: StampStyle = DEFAULT_STYLE,
) -> StampLayout:
    """
    Compute the stamp geometry for a canvas.

    Args:
        canvas_width: Canvas width in pixels
        canvas_height: Canvas height in pixels
        style: Proportionality constants

    Returns:
        StampLayout (identical for identical inputs)
    """
    if canvas_width <= 0 or canvas_height <= 0:
        raise ValueError(f"Invalid canvas size: {canvas_width}x{canvas_height}")

    margin = _round(min(canvas_width, canvas_height) * style.margin_ratio)
    panel_h = int(math.floor(min(canvas_height * style.panel_height_ratio, style.panel_height_cap)))
    panel_w = max(0, min(canvas_width - margin * 2, _round(canvas_width * style.panel_width_ratio)))
    panel = Rect(margin, canvas_height - panel_h - margin, panel_w, panel_h)

    padding = _round(panel_h * style.padding_ratio)
    map_side = max(0, min(style.map_max_side, panel_h - padding * 2))
    map_rect = Rect(panel.x + padding, panel.y + padding, map_side, map_side)

    text_x = map_rect.right + padding
    text_w = max(0, panel_w - (map_side + padding * 4))
    text_rect = Rect(text_x, panel.y + padding, text_w, max(0, panel_h - padding * 2))

    badge = Rect(
        panel.right - style.badge_width - padding,
        panel.bottom - style.badge_height - padding // 2,
        style.badge_width,
        style.badge_height,
    )

    landmark_font = FontSpec(
        FontFamily.SANS, max(style.landmark_font_min, _round(panel_h * style.landmark_font_ratio))
    )
    address_font = FontSpec(
        FontFamily.SANS, max(style.address_font_min, _round(panel_h * style.address_font_ratio))
    )
    mono_font = FontSpec(
        FontFamily.MONO, max(style.mono_font_min, _round(panel_h * style.mono_font_ratio))
    )

    return StampLayout(
        margin=margin,
        padding=padding,
        radius=_round(margin * 0.5),
        panel=panel,
        map=map_rect,
        text=text_rect,
        badge=badge,
        landmark_font=landmark_font,
        address_font=address_font,
        mono_font=mono_font,
        landmark_line_height=landmark_font.size + style.landmark_leading,
        address_line_height=address_font.size + style.address_leading,
        mono_line_height=mono_font.size + style.mono_leading,
    )


# =============================================================================
# Text
# =============================================================================

def wrap_text(text: str, max_width: float, measure: Callable[[str], float]) -> List[str]:
    """
    Greedy word wrap.

    Words are accumulated while the measured line fits `max_width`.
    On overflow the current line is flushed and the word starts the
    next one. A single word wider than `max_width` stays unsplit on
    its own line.

    Args:
        text: Text to wrap (any whitespace separates words)
        max_width: Available width
        measure: Width of a string in the target font

    Returns:
        Lines in order; empty for blank text
    """
    lines: List[str] = []
    line = ""
    for word in str(text or "").split():
        candidate = f"{line} {word}" if line else word
        if line and measure(candidate) > max_width:
            lines.append(line)
            line = word
        else:
            line = candidate
    if line:
        lines.append(line)
    return lines


def landmark_text(place: PlaceInfo) -> str:
    """Landmark, else first segment of the full address, else a fixed label."""
    if place.landmark.strip():
        return place.landmark.strip()
    segment = place.full_address.split(",")[0].strip()
    return segment or UNKNOWN_LOCATION


def address_text(place: PlaceInfo) -> str:
    """Address line, else the full address."""
    return place.address_line.strip() or place.full_address.strip()


def coordinates_text(fix: Optional[GeoFix]) -> str:
    """`Lat <lat> Long <lon>` at 6 decimals, or the em-dash placeholder."""
    if fix is None:
        return COORDINATE_PLACEHOLDER
    return f"Lat {fix.latitude:.6f} Long {fix.longitude:.6f}"


@dataclass(frozen=True, slots=True)
class StampText:
    """The four text fields burned into the stamp."""

    landmark: str
    address: str
    coordinates: str
    timestamp: str


def stamp_text(context: CaptureContext) -> StampText:
    """Derive the stamp's display text from a capture context."""
    landmark = landmark_text(context.place)
    address = address_text(context.place)
    if address == landmark:
        address = ""
    return StampText(
        landmark=landmark,
        address=address,
        coordinates=coordinates_text(context.fix),
        timestamp=context.timestamp_text,
    )


def _text_ops(
    lines: Sequence[str],
    x: int,
    y: int,
    line_height: int,
    font: FontSpec,
    color: RGBA,
) -> List[TextOp]:
    return [
        TextOp(text=line, x=x, y=y + i * line_height, font=font, fill=color)
        for i, line in enumerate(lines)
    ]


def _fit_lines(lines: List[str], top: int, line_height: int, font_size: int, limit: int) -> List[str]:
    """Keep lines whose bottom stays above `limit`."""
    kept = []
    for i, line in enumerate(lines):
        if top + i * line_height + font_size > limit:
            break
        kept.append(line)
    return kept


def _fit_beside_badge(
    layout: StampLayout,
    lines: Sequence[str],
    tops: Sequence[int],
    measure: TextMeasurer,
    min_size: int,
) -> FontSpec:
    """
    Monospace font for the bottom lines.

    A line sharing rows with the badge must end `padding` before it, so
    the font shrinks (not below `min_size`) until the widest line fits.
    Line positions are unchanged.
    """
    font = layout.mono_font
    if all(top + font.size <= layout.badge.y for top in tops):
        return font

    max_width = layout.badge.x - layout.padding - layout.text.x
    size = font.size
    while size > min_size and max(measure(line, FontSpec(font.family, size)) for line in lines) > max_width:
        size -= 1
    return FontSpec(font.family, size)


# =============================================================================
# Draw Operations
# =============================================================================

def build_stamp(
    canvas_width: int,
    canvas_height: int,
    context: CaptureContext,
    measure: TextMeasurer,
    style: StampStyle = DEFAULT_STYLE,
) -> List[DrawOp]:
    """
    Lay out the stamp as an ordered list of draw operations.

    Args:
        canvas_width, canvas_height: Output canvas size
        context: Immutable capture snapshot
        measure: Text width in a given font
        style: Proportionality constants

    Returns:
        Draw operations in paint order
    """
    layout = compute_layout(canvas_width, canvas_height, style)
    text = stamp_text(context)
    color = style.text_color
    ops: List[DrawOp] = [RoundedRectOp(layout.panel, layout.radius, style.panel_fill)]

    if isinstance(context.map_asset, LoadedMap):
        ops.append(ImageOp(layout.map, context.map_asset.image))
    else:
        ops.append(PlaceholderMapOp(layout.map))

    # Coordinates and time sit at the bottom of the text column
    mono = layout.mono_font
    time_y = layout.text.bottom - mono.size
    coords_y = time_y - layout.mono_line_height

    text_x = layout.text.x
    max_w = layout.text.width

    landmark_top = layout.text.y - 2
    landmark_lines = wrap_text(text.landmark, max_w, lambda s: measure(s, layout.landmark_font))
    landmark_lines = _fit_lines(
        landmark_lines, landmark_top, layout.landmark_line_height,
        layout.landmark_font.size, coords_y,
    ) or landmark_lines[:1]
    ops.extend(_text_ops(
        landmark_lines, text_x, landmark_top,
        layout.landmark_line_height, layout.landmark_font, color,
    ))

    address_top = layout.text.y + len(landmark_lines) * layout.landmark_line_height
    address_lines = wrap_text(text.address, max_w, lambda s: measure(s, layout.address_font))
    address_lines = _fit_lines(
        address_lines, address_top, layout.address_line_height,
        layout.address_font.size, coords_y,
    )
    ops.extend(_text_ops(
        address_lines, text_x, address_top,
        layout.address_line_height, layout.address_font, color,
    ))

    mono_fitted = _fit_beside_badge(
        layout, (text.coordinates, text.timestamp), (coords_y, time_y),
        measure, style.mono_font_fit_min,
    )
    ops.append(TextOp(text=text.coordinates, x=text_x, y=coords_y, font=mono_fitted, fill=color))
    ops.append(TextOp(text=text.timestamp, x=text_x, y=time_y, font=mono_fitted, fill=color))

    badge = layout.badge
    badge_mid = badge.y + badge.height / 2
    ops.append(RoundedRectOp(badge, style.badge_radius, WHITE))
    ops.append(TextOp(
        text=style.badge_label,
        x=badge.x + 10,
        y=int(badge_mid),
        font=FontSpec(FontFamily.SANS_BOLD, style.badge_font_size),
        fill=BLACK,
        anchor=TextAnchor.MIDDLE,
    ))
    ops.append(CircleOp(
        cx=badge.right - style.badge_dot_inset,
        cy=badge_mid,
        radius=style.badge_dot_radius,
        fill=BLACK,
    ))
    return ops
