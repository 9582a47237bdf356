"""
Per-beam length anchors.

For every structural beam this module finds the two points spanning its
measured length and the offset that places the dimension line clear of the
beam:

- vertical beams are measured from their top left point straight down; the line
  sits beside the beam, on the side away from the half with the taller
  geometry
- horizontal beams are measured from their left top point straight
  across; the line sits on the side (top or bottom) whose edge is longer
- diagonal beams are measured centre to centre between the end faces of
  their longest local axis, so rotated braces and rafters read their true
  length

Repeated identical members (stud arrays, doubled plates) collapse to one
dimension through their dedup key.
"""

from __future__ import annotations

from collections.abc import Hashable, Iterable, Sequence
from typing import TYPE_CHECKING

import numpy as np

from .classify import Beam, ClassifiedBeam
from .dimensions import DimensionRecord
from .geometry import distance, scale_vec, transform_point, view_perpendicular
from .view import ViewBasis

if TYPE_CHECKING:
    from .config import DimensionSettings


def _pick(
    indices: Sequence[int],
    primary: np.ndarray,
    secondary: np.ndarray,
    eps: float,
) -> int:
    """
    Index with the smallest primary value.

    Values within ``eps`` of the smallest are ties; they are broken by the
    smallest secondary value, then by the primary value itself.
    """
    best = min(float(primary[i]) for i in indices)
    tied = [i for i in indices if float(primary[i]) - best <= eps]
    return min(tied, key=lambda i: (float(secondary[i]), float(primary[i])))


def _span(values: np.ndarray) -> float:
    return float(np.ptp(values)) if len(values) else 0.0


def diagonal_beam_endpoints(beam: Beam) -> tuple[np.ndarray, np.ndarray]:
    """
    Centres of the two end faces along the longest local bounds axis.

    The axis comes from the part's own definition bounds (not its world
    bounding box). On equal extents the first axis (X, then Y, then Z) wins.
    """
    definition = beam.entity.definition
    assert definition is not None
    db_min, db_max = definition.bounds
    axis_i = int(np.argmax(db_max - db_min))

    mid = (db_min + db_max) / 2.0
    coords_a = mid.copy()
    coords_b = mid.copy()
    coords_a[axis_i] = db_min[axis_i]
    coords_b[axis_i] = db_max[axis_i]

    full_t = beam.full_transform
    return transform_point(full_t, coords_a), transform_point(full_t, coords_b)


def beam_length_anchors(
    classified: ClassifiedBeam,
    view: ViewBasis,
    settings: "DimensionSettings",
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Measured points and offset vector for one beam's length dimension.

    Returns:
        (start_pt, end_pt, offset_vector)
    """
    beam = classified.beam
    eps = settings.dedup_epsilon
    pts = beam.points
    hs = pts @ view.horizontal
    vs = pts @ view.vertical
    ds = pts @ view.depth
    everything = range(len(pts))

    if classified.axis == "vertical":
        top = [i for i in everything if abs(vs[i] - vs.max()) <= eps] or list(everything)
        bottom = [i for i in everything if abs(vs[i] - vs.min()) <= eps] or list(everything)
        top_i = _pick(top, hs, ds, eps)
        # Bottom point under the top one
        end_i = _pick(bottom, np.abs(hs - hs[top_i]), ds, eps)
        start_pt, end_pt = pts[top_i], pts[end_i]

        h_mid = (hs.min() + hs.max()) / 2.0
        left_span = _span(vs[hs <= h_mid])
        right_span = _span(vs[hs >= h_mid])
        direction = view.horizontal if left_span > right_span + eps else -view.horizontal
        return start_pt.copy(), end_pt.copy(), scale_vec(direction, settings.beam_length_offset)

    if classified.axis == "horizontal":
        left = [i for i in everything if abs(hs[i] - hs.min()) <= eps] or list(everything)
        right = [i for i in everything if abs(hs[i] - hs.max()) <= eps] or list(everything)
        left_i = _pick(left, -vs, ds, eps)
        end_i = _pick(right, np.abs(vs - vs[left_i]), ds, eps)
        start_pt, end_pt = pts[left_i], pts[end_i]

        v_mid = (vs.min() + vs.max()) / 2.0
        bottom_span = _span(hs[vs <= v_mid])
        top_span = _span(hs[vs >= v_mid])
        direction = -view.vertical if bottom_span > top_span + eps else view.vertical
        return start_pt.copy(), end_pt.copy(), scale_vec(direction, settings.beam_length_offset)

    start_pt, end_pt = diagonal_beam_endpoints(beam)
    perp, _len_2d = view_perpendicular(start_pt, end_pt, view.horizontal, view.vertical)
    if perp is None:
        perp = view.vertical
    return start_pt, end_pt, scale_vec(perp, settings.beam_length_offset)


def length_dedup_key(record: DimensionRecord, view: ViewBasis, eps: float) -> Hashable:
    """
    Key under which repeated beam length dimensions collapse.

    - vertical: (label, length bucket, horizontal position of the start)
    - horizontal: (label, length bucket, vertical position of the start)
    - diagonal: (label, both endpoints' rounded view coordinates, sorted), so
      A→B and B→A match but distinct diagonal members never do
    """
    if record.axis == "diagonal":
        a = (round(view.h(record.start) / eps), round(view.v(record.start) / eps))
        b = (round(view.h(record.end) / eps), round(view.v(record.end) / eps))
        return ("diagonal",) + tuple(sorted([a, b]))
    axis_val = view.h(record.start) if record.axis == "vertical" else view.v(record.start)
    return (record.axis, round(record.length / eps), round(axis_val / eps))


def dedup_length_dimensions(
    records: Iterable[DimensionRecord],
    view: ViewBasis,
    eps: float,
) -> list[DimensionRecord]:
    """Keep the first record for every dedup key, preserving order."""
    seen: set[Hashable] = set()
    unique: list[DimensionRecord] = []
    for record in records:
        key = length_dedup_key(record, view, eps)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)
    return unique


def collect_length_dimensions(
    classified: Iterable[ClassifiedBeam],
    view: ViewBasis,
    settings: "DimensionSettings",
) -> list[DimensionRecord]:
    """
    One length dimension per distinct structural beam.

    Beams whose measured span is shorter than the minimum dimension gap are
    skipped.
    """
    records: list[DimensionRecord] = []
    for cb in classified:
        start_pt, end_pt, offset = beam_length_anchors(cb, view, settings)
        if distance(start_pt, end_pt) < settings.min_dimension_gap:
            continue
        records.append(DimensionRecord(
            dimension_type="beam_length",
            start=start_pt,
            end=end_pt,
            offset=offset,
            axis=cb.axis,
            source=cb.beam.name,
        ))
    return dedup_length_dimensions(records, view, settings.dedup_epsilon)
