"""
View-relative beam classification.

A Beam is a read-only snapshot of one leaf part, taken in world space and
projected onto the view basis. Classification labels it:

- "diagonal"   - at least one local axis is not parallel to any view axis
- "horizontal" - axis-aligned and at least as wide as it is tall on screen
- "vertical"   - axis-aligned and taller than it is wide on screen

Parts whose longest projected extent is below the minimum beam span
(fasteners, connectors) are not structural and are never classified.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Literal, TypeAlias

import numpy as np

from .constants import AXIS_ALIGN_TOL
from .geometry import local_axes, transform_points
from .scene import InstancedEntity
from .view import ViewBasis

if TYPE_CHECKING:
    from .config import DimensionSettings


BeamAxis: TypeAlias = Literal["vertical", "horizontal", "diagonal"]


# =============================================================================
# BEAM SNAPSHOT
# =============================================================================


@dataclass(eq=False)
class Beam:
    """
    World-space snapshot of a leaf part.

    Attributes:
        entity: The leaf instance
        parent_transform: World transform of the instance's parent space
        view: View basis the projections refer to
        corners: (8, 3) world corners of the instance's parent-space bounds
        points: (N, 3) world mesh vertices, or the corners when the part has
            no mesh
        hs, vs, ds: Horizontal, vertical and depth coordinates of the corners
    """

    entity: InstancedEntity
    parent_transform: np.ndarray
    view: ViewBasis
    corners: np.ndarray = field(repr=False)
    points: np.ndarray = field(repr=False)
    hs: np.ndarray = field(repr=False)
    vs: np.ndarray = field(repr=False)
    ds: np.ndarray = field(repr=False)

    @classmethod
    def from_instance(
        cls,
        entity: InstancedEntity,
        parent_transform: np.ndarray,
        view: ViewBasis,
    ) -> "Beam":
        """Snapshot ``entity`` placed by ``parent_transform``."""
        assert entity.definition is not None
        corners = transform_points(parent_transform, entity.bounds_corners())
        if entity.definition.has_vertices:
            full_t = parent_transform @ entity.transformation
            points = transform_points(full_t, entity.definition.vertices)
        else:
            points = corners
        return cls(
            entity=entity,
            parent_transform=parent_transform,
            view=view,
            corners=corners,
            points=points,
            hs=corners @ view.horizontal,
            vs=corners @ view.vertical,
            ds=corners @ view.depth,
        )

    @property
    def full_transform(self) -> np.ndarray:
        """Local-to-world transform of the part's own definition space."""
        return self.parent_transform @ self.entity.transformation

    @property
    def name(self) -> str:
        entity = self.entity
        if entity.name:
            return entity.name
        if entity.definition is not None and entity.definition.name:
            return entity.definition.name
        return f"#{entity.persistent_id}"

    @property
    def h_min(self) -> float:
        return float(self.hs.min())

    @property
    def h_max(self) -> float:
        return float(self.hs.max())

    @property
    def v_min(self) -> float:
        return float(self.vs.min())

    @property
    def v_max(self) -> float:
        return float(self.vs.max())

    @property
    def h_extent(self) -> float:
        """Projected width on screen (>= 0)."""
        return self.h_max - self.h_min

    @property
    def v_extent(self) -> float:
        """Projected height on screen (>= 0)."""
        return self.v_max - self.v_min

    @property
    def span(self) -> float:
        """Longest projected extent."""
        return max(self.h_extent, self.v_extent)


def build_beams(
    pairs: Iterable[tuple[InstancedEntity, np.ndarray]],
    view: ViewBasis,
) -> list[Beam]:
    """Snapshot every (instance, parent transform) pair from discovery."""
    return [Beam.from_instance(entity, parent_t, view) for entity, parent_t in pairs]


# =============================================================================
# CLASSIFICATION
# =============================================================================


def is_structural(beam: Beam, min_span: float) -> bool:
    """True when the beam is large enough to be dimensioned."""
    return beam.span >= min_span


def is_axis_aligned(beam: Beam, view: ViewBasis, tol: float = AXIS_ALIGN_TOL) -> bool:
    """
    True when every local axis of the part is parallel to a view axis.

    Zero-length axes (degenerate scaling) carry no direction and are ignored.
    """
    for axis in local_axes(beam.full_transform):
        length = float(np.linalg.norm(axis))
        if length < 1e-12:
            continue
        n = axis / length
        if not any(abs(float(np.dot(n, ref))) > 1.0 - tol for ref in view.axes):
            return False
    return True


def classify_beam(beam: Beam, view: ViewBasis, tol: float = AXIS_ALIGN_TOL) -> BeamAxis:
    """Label a beam vertical, horizontal or diagonal relative to the view."""
    if not is_axis_aligned(beam, view, tol):
        return "diagonal"
    return "horizontal" if beam.h_extent >= beam.v_extent else "vertical"


@dataclass(eq=False)
class ClassifiedBeam:
    """A structural beam tagged with its view-relative axis label."""

    beam: Beam
    axis: BeamAxis

    @property
    def h_extent(self) -> float:
        return self.beam.h_extent

    @property
    def v_extent(self) -> float:
        return self.beam.v_extent


def classify_beams(
    beams: Iterable[Beam],
    view: ViewBasis,
    settings: "DimensionSettings",
) -> list[ClassifiedBeam]:
    """Drop non-structural beams and classify the rest, keeping order."""
    return [
        ClassifiedBeam(beam=beam, axis=classify_beam(beam, view, settings.axis_align_tol))
        for beam in beams
        if is_structural(beam, settings.min_beam_span)
    ]
