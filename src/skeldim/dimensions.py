"""
Dimension Records and SVG Rendering

This module holds the value type every computation stage produces and the
SVG rendering of a single linear dimension:

- DimensionRecord: one linear dimension (two measured points + offset)
- DimensionStyle: line, arrow and text styling for SVG output
- render_dimension_svg: extension lines, dimension line, arrows and text

Dimension types:
- "cumulative": positioning distance from the origin to a beam's far edge
- "beam_length": a single beam's own length
- "frame_diagonal": corner-to-corner diagonal of the whole assembly
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Literal, TypeAlias

import numpy as np

from .classify import BeamAxis
from .constants import DIMENSION_COLOR
from .geometry import distance

DimensionType: TypeAlias = Literal["cumulative", "beam_length", "frame_diagonal"]
CumulativeBucket: TypeAlias = Literal["below", "above"]


# =============================================================================
# DIMENSION STYLING CONSTANTS
# =============================================================================

DIMENSION_LINE_WIDTH = 0.25        # mm - dimension and extension line stroke
EXTENSION_LINE_GAP = 1.0           # mm - gap between geometry and extension line start
EXTENSION_LINE_OVERSHOOT = 1.5     # mm - overshoot past dimension line
ARROW_LENGTH = 2.0                 # mm - arrowhead length
ARROW_WIDTH = 0.8                  # mm - arrowhead width at base
DIMENSION_FONT_SIZE = 2.5          # mm - dimension value text size
DIMENSION_TEXT_OFFSET = 0.8        # mm - gap between dimension line and text


# =============================================================================
# DATA CLASSES
# =============================================================================


@dataclass(eq=False)
class DimensionRecord:
    """
    A single linear dimension, in world coordinates.

    Attributes:
        dimension_type: What the dimension measures (see module docstring)
        start: First measured point
        end: Second measured point
        offset: Displacement of the dimension line from the measured points
        axis: Axis label of the measured beam (beam_length only)
        bucket: "below" or "above" (cumulative only)
        source: Human-readable origin, e.g. the beam name
    """

    dimension_type: DimensionType
    start: np.ndarray
    end: np.ndarray
    offset: np.ndarray
    axis: BeamAxis | None = None
    bucket: CumulativeBucket | None = None
    source: str = ""

    @property
    def length(self) -> float:
        """Measured distance in millimetres."""
        return distance(self.start, self.end)

    @property
    def display_value(self) -> str:
        return format_length_mm(self.length)

    def shifted(self, delta: np.ndarray) -> "DimensionRecord":
        """Copy with both measured points translated by ``delta``."""
        return DimensionRecord(
            dimension_type=self.dimension_type,
            start=self.start + delta,
            end=self.end + delta,
            offset=self.offset.copy(),
            axis=self.axis,
            bucket=self.bucket,
            source=self.source,
        )


def format_length_mm(value_mm: float, precision: int = 0) -> str:
    """Format a length in millimetres (no unit suffix, as on shop drawings)."""
    if precision <= 0:
        return f"{int(round(value_mm))}"
    return f"{value_mm:.{precision}f}"


@dataclass
class DimensionStyle:
    """Styling for SVG dimensions. Sizes are in sheet millimetres."""

    line_stroke_width: float = DIMENSION_LINE_WIDTH
    line_color: str = DIMENSION_COLOR
    extension_line_gap: float = EXTENSION_LINE_GAP
    extension_line_overshoot: float = EXTENSION_LINE_OVERSHOOT

    arrow_length: float = ARROW_LENGTH
    arrow_width: float = ARROW_WIDTH
    arrow_style: str = "filled"  # "filled", "open", "tick"

    font_family: str = "Arial, sans-serif"
    font_size: float = DIMENSION_FONT_SIZE
    font_weight: str = "normal"
    text_offset: float = DIMENSION_TEXT_OFFSET


# =============================================================================
# SVG RENDERING
# =============================================================================


def render_dimension_svg(
    svg_start: tuple[float, float],
    svg_end: tuple[float, float],
    svg_line_start: tuple[float, float],
    svg_line_end: tuple[float, float],
    text: str,
    style: DimensionStyle | None = None,
) -> str:
    """
    Render one linear dimension as SVG.

    Generates:
    1. Extension lines from the measured points to the dimension line
    2. Dimension line with arrows at each end
    3. Dimension value text above the line, rotated to stay readable

    Args:
        svg_start, svg_end: Measured points in sheet coordinates
        svg_line_start, svg_line_end: Dimension line endpoints in sheet coordinates
        text: Dimension value text
        style: DimensionStyle configuration

    Returns:
        SVG fragment, or "" when the dimension line is degenerate
    """
    if style is None:
        style = DimensionStyle()

    x1, y1 = svg_line_start
    x2, y2 = svg_line_end
    dx = x2 - x1
    dy = y2 - y1
    length = math.sqrt(dx * dx + dy * dy)
    if length < 0.001:
        return ""

    parts: list[str] = []
    stroke = f'stroke="{style.line_color}" stroke-width="{style.line_stroke_width}"'

    # Extension lines: from geometry (with gap) to past the dimension line
    for (gx, gy), (lx, ly) in ((svg_start, svg_line_start), (svg_end, svg_line_end)):
        ex, ey = lx - gx, ly - gy
        ext_len = math.sqrt(ex * ex + ey * ey)
        if ext_len < 0.001:
            continue
        ux, uy = ex / ext_len, ey / ext_len
        gap = min(style.extension_line_gap, ext_len)
        parts.append(
            f'<line x1="{gx + ux * gap:.2f}" y1="{gy + uy * gap:.2f}" '
            f'x2="{lx + ux * style.extension_line_overshoot:.2f}" '
            f'y2="{ly + uy * style.extension_line_overshoot:.2f}" {stroke}/>'
        )

    # Dimension line
    parts.append(f'<line x1="{x1:.2f}" y1="{y1:.2f}" x2="{x2:.2f}" y2="{y2:.2f}" {stroke}/>')

    # Arrows pointing outward to the extension lines
    angle = math.degrees(math.atan2(dy, dx))
    parts.append(_render_arrow_svg(x1, y1, angle + 180, style))
    parts.append(_render_arrow_svg(x2, y2, angle, style))

    # Text above the line, never upside down
    text_angle = angle
    if text_angle > 90:
        text_angle -= 180
    elif text_angle < -90:
        text_angle += 180
    rad = math.radians(text_angle)
    # "Above" is screen-up relative to the rotated text baseline
    nx, ny = math.sin(rad), -math.cos(rad)
    text_x = (x1 + x2) / 2 + nx * style.text_offset
    text_y = (y1 + y2) / 2 + ny * style.text_offset
    parts.append(
        f'<text x="{text_x:.2f}" y="{text_y:.2f}" '
        f'text-anchor="middle" '
        f'font-family="{style.font_family}" '
        f'font-size="{style.font_size}" '
        f'font-weight="{style.font_weight}" '
        f'fill="{style.line_color}" '
        f'transform="rotate({text_angle:.1f}, {text_x:.2f}, {text_y:.2f})">'
        f'{text}</text>'
    )

    return "\n".join(parts)


def _render_arrow_svg(
    x: float,
    y: float,
    angle_deg: float,
    style: DimensionStyle,
) -> str:
    """
    Render an arrowhead with its tip at (x, y) pointing along ``angle_deg``.
    """
    al = style.arrow_length
    aw = style.arrow_width / 2

    angle_rad = math.radians(angle_deg)
    dx = math.cos(angle_rad)
    dy = math.sin(angle_rad)
    px, py = -dy, dx

    base_x = x - dx * al
    base_y = y - dy * al
    b1_x = base_x + px * aw
    b1_y = base_y + py * aw
    b2_x = base_x - px * aw
    b2_y = base_y - py * aw

    if style.arrow_style == "filled":
        return (
            f'<polygon points="{x:.2f},{y:.2f} {b1_x:.2f},{b1_y:.2f} {b2_x:.2f},{b2_y:.2f}" '
            f'fill="{style.line_color}" stroke="none"/>'
        )
    elif style.arrow_style == "tick":
        # 45-degree tick mark (architectural style)
        tick_len = al * 0.7
        return (
            f'<line x1="{x - tick_len:.2f}" y1="{y - tick_len:.2f}" '
            f'x2="{x + tick_len:.2f}" y2="{y + tick_len:.2f}" '
            f'stroke="{style.line_color}" stroke-width="{style.line_stroke_width}"/>'
        )
    else:  # open
        return (
            f'<polyline points="{b1_x:.2f},{b1_y:.2f} {x:.2f},{y:.2f} {b2_x:.2f},{b2_y:.2f}" '
            f'fill="none" stroke="{style.line_color}" stroke-width="{style.line_stroke_width}"/>'
        )
