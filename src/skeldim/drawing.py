"""
SVG drawing of a dimensioned frame.

Projects every beam and every planned dimension onto the view plane and fits
the result onto an 11x17 sheet:

    ┌─────────────────────────────────────────────┐
    │ title                                        │
    │      |<-------- 2000 -------->|              │
    │      ┌────────────────────────┐              │
    │      │                        │              │
    │      │ beams (hull outlines)  │   dims       │
    │      │                        │              │
    │      └────────────────────────┘              │
    └─────────────────────────────────────────────┘

Sheet coordinates are millimetres with y pointing down.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from .classify import Beam
from .constants import (
    BEAM_COLOR,
    BEAM_STROKE_WIDTH,
    MARGIN,
    SHEET_HEIGHT_MM,
    SHEET_WIDTH_MM,
)
from .dimensions import DimensionRecord, DimensionStyle, render_dimension_svg
from .geometry import convex_hull_2d
from .view import ViewBasis

TITLE_FONT_SIZE = 5.0  # mm
TITLE_HEIGHT = 12.0    # mm reserved above the model area


@dataclass
class SheetFit:
    """
    Mapping from view-plane (u, v) millimetres to sheet millimetres.

    Attributes:
        scale: Sheet mm per model mm
        u_center, v_center: Model point placed at the sheet centre
        x_center, y_center: Sheet centre of the model area
    """

    scale: float
    u_center: float
    v_center: float
    x_center: float
    y_center: float

    @classmethod
    def for_points(
        cls,
        uv: Sequence[tuple[float, float]],
        x: float,
        y: float,
        width: float,
        height: float,
    ) -> "SheetFit":
        """Largest scale showing every (u, v) point in the given sheet area."""
        x_center = x + width / 2
        y_center = y + height / 2
        if not uv:
            return cls(1.0, 0.0, 0.0, x_center, y_center)
        us = [p[0] for p in uv]
        vs = [p[1] for p in uv]
        span_u = max(us) - min(us)
        span_v = max(vs) - min(vs)
        scales = []
        if span_u > 1e-9:
            scales.append(width / span_u)
        if span_v > 1e-9:
            scales.append(height / span_v)
        scale = min(scales) if scales else 1.0
        return cls(
            scale=scale,
            u_center=(max(us) + min(us)) / 2,
            v_center=(max(vs) + min(vs)) / 2,
            x_center=x_center,
            y_center=y_center,
        )

    def to_sheet(self, u: float, v: float) -> tuple[float, float]:
        return (
            self.x_center + (u - self.u_center) * self.scale,
            self.y_center - (v - self.v_center) * self.scale,
        )


@dataclass
class SkeletonDrawing:
    """
    Sheet with beam outlines and dimensions.

    Attributes:
        view: View basis everything is projected onto
        beams: Beams to outline
        dimensions: Dimensions to draw
        title: Text in the top-left corner
        style: Dimension styling
    """

    view: ViewBasis
    beams: list[Beam] = field(default_factory=list)
    dimensions: list[DimensionRecord] = field(default_factory=list)
    title: str = ""
    style: DimensionStyle = field(default_factory=DimensionStyle)

    _svg_content: str = field(default="", init=False, repr=False)

    def _fit(self) -> SheetFit:
        uv: list[tuple[float, float]] = []
        for beam in self.beams:
            uv.extend(self.view.project(p) for p in beam.points)
        for record in self.dimensions:
            for p in (record.start, record.end, record.start + record.offset, record.end + record.offset):
                uv.append(self.view.project(p))
        inner = 3 * MARGIN
        return SheetFit.for_points(
            uv,
            x=inner,
            y=inner + TITLE_HEIGHT,
            width=SHEET_WIDTH_MM - 2 * inner,
            height=SHEET_HEIGHT_MM - 2 * inner - TITLE_HEIGHT,
        )

    def _create_beam_outlines(self, fit: SheetFit) -> str:
        outlines = []
        for beam in self.beams:
            uv = [self.view.project(p) for p in beam.points]
            hull = convex_hull_2d(uv)
            if len(hull) < 2:
                continue
            points = " ".join(
                f"{x:.2f},{y:.2f}" for x, y in (fit.to_sheet(*uv[i]) for i in hull)
            )
            outlines.append(f'<polygon class="beam" points="{points}"/>')
        return '<g id="beams">\n' + "\n".join(outlines) + "\n</g>"

    def _create_dimensions(self, fit: SheetFit) -> str:
        parts = []
        for record in self.dimensions:
            start = fit.to_sheet(*self.view.project(record.start))
            end = fit.to_sheet(*self.view.project(record.end))
            line_start = fit.to_sheet(*self.view.project(record.start + record.offset))
            line_end = fit.to_sheet(*self.view.project(record.end + record.offset))
            fragment = render_dimension_svg(start, end, line_start, line_end, record.display_value, self.style)
            if fragment:
                parts.append(f'<g class="dimension {record.dimension_type}">\n{fragment}\n</g>')
        return '<g id="dimensions">\n' + "\n".join(parts) + "\n</g>"

    def _create_border(self) -> str:
        return (
            f'<rect x="{MARGIN}" y="{MARGIN}" '
            f'width="{SHEET_WIDTH_MM - 2 * MARGIN}" height="{SHEET_HEIGHT_MM - 2 * MARGIN}" '
            f'fill="none" stroke="#000000" stroke-width="0.5"/>'
        )

    def _create_title(self) -> str:
        if not self.title:
            return ""
        return (
            f'<text x="{2 * MARGIN}" y="{2 * MARGIN + TITLE_FONT_SIZE}" '
            f'font-family="Arial, sans-serif" font-size="{TITLE_FONT_SIZE}" '
            f'font-weight="bold">{_escape(self.title)}</text>'
        )

    def generate(self) -> str:
        """Generate the complete drawing as SVG."""
        fit = self._fit()

        svg_header = f'''<?xml version="1.0" encoding="UTF-8"?>
<svg xmlns="http://www.w3.org/2000/svg"
     width="{SHEET_WIDTH_MM}mm" height="{SHEET_HEIGHT_MM}mm"
     viewBox="0 0 {SHEET_WIDTH_MM} {SHEET_HEIGHT_MM}">

    <defs>
        <style>
            .beam {{ stroke: {BEAM_COLOR}; stroke-width: {BEAM_STROKE_WIDTH}; fill: none; }}
        </style>
    </defs>

    <!-- Background -->
    <rect x="0" y="0" width="{SHEET_WIDTH_MM}" height="{SHEET_HEIGHT_MM}" fill="white"/>
'''
        svg_content = [
            self._create_border(),
            self._create_title(),
            self._create_beam_outlines(fit),
            # Dimensions after geometry to render on top
            self._create_dimensions(fit),
        ]
        svg_footer = '''
</svg>'''

        self._svg_content = svg_header + "\n".join(svg_content) + svg_footer
        return self._svg_content

    def export_svg(self, filepath: str) -> None:
        """Export the drawing as SVG file."""
        if not self._svg_content:
            self.generate()
        with open(filepath, "w", encoding="utf-8") as f:
            f.write(self._svg_content)


def _escape(text: str) -> str:
    return text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
