"""
Cumulative positioning dimensions.

Vertical members are located along a baseline by measuring from a common
origin (the top-left corner of the frame) to the far, view-rightmost edge of
each member:

    origin ┌──────────────────────────────┐
           │        │           │         │
           │        │           │         │
           └────────┴───────────┴─────────┘
           |<------>|                          offset 0: padding
           |<------------------>|              offset 1: padding + step
           |<---------------------------->|    offset 2: padding + 2 * step

Members standing entirely in the upper half of the frame (top-only) are
dimensioned above the frame, every other vertical member below it. Each
bucket gets one dimension per distinct far-edge position, staggered outward
so the dimension lines never overlap.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .classify import ClassifiedBeam
from .dimensions import CumulativeBucket, DimensionRecord
from .geometry import scale_vec
from .view import ViewBasis

if TYPE_CHECKING:
    from .config import DimensionSettings


@dataclass(eq=False)
class CumulativePosition:
    """
    A far-edge position.

    Attributes:
        position: Horizontal view coordinate of the far edge
        anchor: Corner of the member at that edge (bottom-right for the
            below bucket, top-right for the above bucket)
    """

    position: float
    anchor: np.ndarray


def frame_origin(corners: np.ndarray, view: ViewBasis) -> np.ndarray:
    """Top-left structural corner: smallest horizontal, then largest vertical."""
    pts = np.asarray(corners, dtype=float).reshape(-1, 3)
    if len(pts) == 0:
        raise ValueError("Cannot find the origin of an empty frame")
    best = min(range(len(pts)), key=lambda i: (view.h(pts[i]), -view.v(pts[i])))
    return pts[best].copy()


def far_edge_positions(
    classified: Iterable[ClassifiedBeam],
    view: ViewBasis,
    mid_v: float,
) -> tuple[list[CumulativePosition], list[CumulativePosition]]:
    """
    Far-edge positions of the vertical beams, split into buckets.

    Args:
        classified: Structural beams (non-vertical ones are ignored)
        view: View basis
        mid_v: Vertical midpoint of all structural beams

    Returns:
        (below, above) in input order, unsorted
    """
    below: list[CumulativePosition] = []
    above: list[CumulativePosition] = []
    for cb in classified:
        if cb.axis != "vertical":
            continue
        beam = cb.beam
        h_far = beam.h_max
        top_only = beam.v_min > mid_v
        v_sign = -1.0 if top_only else 1.0
        best = min(
            range(len(beam.corners)),
            key=lambda i: (abs(float(beam.hs[i]) - h_far), v_sign * float(beam.vs[i])),
        )
        entry = CumulativePosition(position=h_far, anchor=beam.corners[best].copy())
        (above if top_only else below).append(entry)
    return below, above


def dedup_sorted(
    entries: Iterable[CumulativePosition],
    eps: float,
) -> list[CumulativePosition]:
    """
    Sort by position and drop near-duplicates.

    An entry is kept only when it differs from the last kept entry by more
    than ``eps``; the first of a run of close positions wins. The sort is
    stable, so equal positions keep their input order.
    """
    unique: list[CumulativePosition] = []
    for entry in sorted(entries, key=lambda e: e.position):
        if not unique or abs(entry.position - unique[-1].position) > eps:
            unique.append(entry)
    return unique


def _bucket_dimensions(
    positions: Sequence[CumulativePosition],
    bucket: CumulativeBucket,
    origin: np.ndarray,
    view: ViewBasis,
    baseline_v: float,
    settings: "DimensionSettings",
    max_count: int | None,
) -> list[DimensionRecord]:
    origin_h = view.h(origin)
    origin_v = view.v(origin)
    direction = -view.vertical if bucket == "below" else view.vertical

    records: list[DimensionRecord] = []
    stagger_i = 0
    for entry in positions:
        if max_count is not None and len(records) >= max_count:
            break
        if abs(entry.position - origin_h) < settings.min_dimension_gap:
            continue

        anchor_v = view.v(entry.anchor)
        base_pt = origin + view.vertical * (anchor_v - origin_v)
        far_pt = base_pt + view.horizontal * (entry.position - origin_h)

        gap = anchor_v - baseline_v if bucket == "below" else baseline_v - anchor_v
        distance = gap + settings.outer_padding + stagger_i * settings.stagger_step
        records.append(DimensionRecord(
            dimension_type="cumulative",
            start=base_pt,
            end=far_pt,
            offset=scale_vec(direction, distance),
            bucket=bucket,
            source=f"{bucket} {entry.position:.1f}",
        ))
        stagger_i += 1
    return records


def cumulative_dimensions(
    classified: Sequence[ClassifiedBeam],
    origin: np.ndarray,
    all_corners: np.ndarray,
    view: ViewBasis,
    settings: "DimensionSettings",
    max_count: int | None = None,
) -> list[DimensionRecord]:
    """
    Staggered cumulative dimensions for every distinct far-edge position.

    Args:
        classified: All structural beams
        origin: Frame origin (see frame_origin)
        all_corners: (N, 3) world corners of every structural beam
        view: View basis
        settings: Layout rules
        max_count: Optional limit on the number of records

    Returns:
        The below bucket in ascending position, then the above bucket.
    """
    vs = np.asarray(all_corners, dtype=float).reshape(-1, 3) @ view.vertical
    if len(vs) == 0:
        return []
    v_min = float(vs.min())
    v_max = float(vs.max())
    mid_v = (v_min + v_max) / 2.0

    below, above = far_edge_positions(classified, view, mid_v)
    unique_below = dedup_sorted(below, settings.dedup_epsilon)
    unique_above = dedup_sorted(above, settings.dedup_epsilon)

    records = _bucket_dimensions(
        unique_below, "below", origin, view, v_min, settings, max_count
    )
    remaining = None if max_count is None else max_count - len(records)
    if remaining is None or remaining > 0:
        records += _bucket_dimensions(
            unique_above, "above", origin, view, v_max, settings, remaining
        )
    return records
