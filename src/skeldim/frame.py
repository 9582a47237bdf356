"""
Overall frame diagonals.

The frame's four view-plane corners are taken from the convex hull of every
structural corner, so frames with sloped or stepped outlines still get
diagonals between corners that actually exist:

    TL ●─────────────● TR
       │ ╲         ╱ │
       │   ╲     ╱   │
       │     ╳       │
       │   ╱     ╲   │
    BL ●─────────────● BR

TL→BR is emitted first, then BL→TR. Both are placed at the depth of the
face nearest the camera and offset outward, clear of the silhouette.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

import numpy as np

from .dimensions import DimensionRecord
from .geometry import convex_hull_2d, distance, dot, midpoint, view_perpendicular
from .view import ViewBasis

if TYPE_CHECKING:
    from .config import DimensionSettings


def _nearest(hull_uv: Sequence[tuple[float, float]], target: tuple[float, float]) -> int:
    """Position in hull order of the vertex nearest target; first wins ties."""
    best_i = 0
    best_d = float("inf")
    for i, (u, v) in enumerate(hull_uv):
        d = (u - target[0]) ** 2 + (v - target[1]) ** 2
        if d < best_d:
            best_d = d
            best_i = i
    return best_i


def frame_corners(
    all_corners: np.ndarray,
    view: ViewBasis,
) -> tuple[dict[str, np.ndarray], list[np.ndarray], np.ndarray] | None:
    """
    Bottom-left, top-left, top-right and bottom-right frame corners.

    Each is the hull vertex nearest the matching bounding-box extreme of the
    projected corners, composed back to 3D at the smallest depth.

    Returns:
        ({"bl", "tl", "tr", "br"} -> point, hull points, bounding-box centre),
        all at that depth, or None when the hull has fewer than two distinct
        vertices
    """
    pts = np.asarray(all_corners, dtype=float).reshape(-1, 3)
    if len(pts) == 0:
        return None
    uv = [view.project(p) for p in pts]
    hull = convex_hull_2d(uv)
    if len(hull) < 2:
        return None

    depth = float((pts @ view.depth).min())
    hull_uv = [uv[i] for i in hull]
    us = [u for u, _ in uv]
    vs = [v for _, v in uv]
    u_min, u_max, v_min, v_max = min(us), max(us), min(vs), max(vs)

    extremes = {
        "bl": (u_min, v_min),
        "tl": (u_min, v_max),
        "tr": (u_max, v_max),
        "br": (u_max, v_min),
    }
    corners = {}
    for key, target in extremes.items():
        u, v = hull_uv[_nearest(hull_uv, target)]
        corners[key] = view.compose(u, v, depth)
    hull_points = [view.compose(u, v, depth) for u, v in hull_uv]
    center = view.compose((u_min + u_max) / 2.0, (v_min + v_max) / 2.0, depth)
    return corners, hull_points, center


def diagonal_offset_outside(
    start: np.ndarray,
    end: np.ndarray,
    center: np.ndarray,
    tiebreaker: np.ndarray,
    hull_points: Sequence[np.ndarray],
    view: ViewBasis,
    padding: float,
) -> np.ndarray | None:
    """
    Offset vector placing a frame diagonal outside the silhouette.

    The direction is the segment's counter-clockwise view perpendicular,
    flipped to point away from ``center``; when the centre lies on the
    segment, the side of ``tiebreaker`` is used. The magnitude clears the
    farthest hull point on that side by ``padding``.

    Returns:
        The offset vector, or None for a degenerate segment
    """
    perp, _len_2d = view_perpendicular(start, end, view.horizontal, view.vertical)
    if perp is None:
        return None
    mid = midpoint(start, end)

    out_sign = dot(center - mid, perp)
    if out_sign > 0:
        sign = -1.0
    elif out_sign < 0:
        sign = 1.0
    else:
        sign = 1.0 if dot(tiebreaker - mid, perp) > 0 else -1.0

    reach = max(sign * dot(p - mid, perp) for p in hull_points)
    return perp * sign * (reach + padding)


def frame_diagonals(
    all_corners: np.ndarray,
    view: ViewBasis,
    settings: "DimensionSettings",
) -> list[DimensionRecord]:
    """
    Up to two overall diagonals of the frame silhouette.

    Args:
        all_corners: (N, 3) world corners of every structural beam
        view: View basis
        settings: Layout rules

    Returns:
        TL→BR then BL→TR, each only when at least the minimum dimension gap
        long
    """
    found = frame_corners(all_corners, view)
    if found is None:
        return []
    corners, hull_points, center = found

    records: list[DimensionRecord] = []
    for start_key, end_key, tie_key in (("tl", "br", "tr"), ("bl", "tr", "tl")):
        start, end = corners[start_key], corners[end_key]
        if distance(start, end) < settings.min_dimension_gap:
            continue
        offset = diagonal_offset_outside(
            start, end, center, corners[tie_key], hull_points, view,
            settings.diag_offset_padding,
        )
        if offset is None:
            continue
        records.append(DimensionRecord(
            dimension_type="frame_diagonal",
            start=start,
            end=end,
            offset=offset,
            source=f"{start_key}-{end_key}",
        ))
    return records
