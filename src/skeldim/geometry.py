"""
Geometry primitives for view-relative dimensioning.

Points and vectors are numpy arrays of shape (3,). Transforms are 4x4
homogeneous matrices (column vectors, ``world = T @ local``), composed the
same way a scene graph nests instances: ``parent_t @ child_t``.

Functions:
- transform construction (translation, rotation about X/Y/Z or an axis)
- applying transforms to points and vectors, extracting local axes
- dot product along a view axis, scaling, distance, midpoint
- the counter-clockwise view-plane perpendicular used for dimension offsets
- axis-aligned box corners and bounds
- 2D convex hull (Andrew's monotone chain)
- principal frame of a point cloud
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

import numpy as np

from .constants import DEGENERATE_LENGTH


# =============================================================================
# TRANSFORMATION MATRIX UTILITIES
# =============================================================================

def identity_matrix() -> np.ndarray:
    """Return 4x4 identity matrix."""
    return np.eye(4)


def translation_matrix(x: float, y: float, z: float) -> np.ndarray:
    """Create 4x4 translation matrix."""
    T = np.eye(4)
    T[0, 3] = x
    T[1, 3] = y
    T[2, 3] = z
    return T


def rotation_matrix_x(angle_deg: float) -> np.ndarray:
    """Create 4x4 rotation matrix around X axis."""
    angle = math.radians(angle_deg)
    c, s = math.cos(angle), math.sin(angle)
    R = np.eye(4)
    R[1, 1] = c
    R[1, 2] = -s
    R[2, 1] = s
    R[2, 2] = c
    return R


def rotation_matrix_y(angle_deg: float) -> np.ndarray:
    """Create 4x4 rotation matrix around Y axis."""
    angle = math.radians(angle_deg)
    c, s = math.cos(angle), math.sin(angle)
    R = np.eye(4)
    R[0, 0] = c
    R[0, 2] = s
    R[2, 0] = -s
    R[2, 2] = c
    return R


def rotation_matrix_z(angle_deg: float) -> np.ndarray:
    """Create 4x4 rotation matrix around Z axis."""
    angle = math.radians(angle_deg)
    c, s = math.cos(angle), math.sin(angle)
    R = np.eye(4)
    R[0, 0] = c
    R[0, 1] = -s
    R[1, 0] = s
    R[1, 1] = c
    return R


def rotation_from_axis_angle(axis: Sequence[float], angle_deg: float) -> np.ndarray:
    """Create 4x4 rotation matrix from axis-angle representation."""
    angle = math.radians(angle_deg)
    x, y, z = (float(a) for a in axis)
    norm = math.sqrt(x*x + y*y + z*z)
    if norm < 1e-10:
        return np.eye(4)
    x, y, z = x/norm, y/norm, z/norm

    c, s = math.cos(angle), math.sin(angle)
    t = 1 - c

    R = np.eye(4)
    R[0, 0] = t*x*x + c
    R[0, 1] = t*x*y - z*s
    R[0, 2] = t*x*z + y*s
    R[1, 0] = t*x*y + z*s
    R[1, 1] = t*y*y + c
    R[1, 2] = t*y*z - x*s
    R[2, 0] = t*x*z - y*s
    R[2, 1] = t*y*z + x*s
    R[2, 2] = t*z*z + c
    return R


def as_point(value: Sequence[float] | np.ndarray) -> np.ndarray:
    """Coerce a 3-sequence to a float numpy point."""
    point = np.asarray(value, dtype=float).reshape(-1)
    if point.shape != (3,):
        raise ValueError(f"Expected 3 coordinates, got {point.shape[0]}")
    return point


def as_matrix(value: Sequence[Sequence[float]] | np.ndarray | None) -> np.ndarray:
    """Coerce a 4x4 (or 3x4) nested sequence to a homogeneous matrix."""
    if value is None:
        return np.eye(4)
    M = np.asarray(value, dtype=float)
    if M.shape == (3, 4):
        M = np.vstack([M, [0.0, 0.0, 0.0, 1.0]])
    if M.shape != (4, 4):
        raise ValueError(f"Expected a 4x4 transformation matrix, got shape {M.shape}")
    return M


def transform_point(T: np.ndarray, point: Sequence[float] | np.ndarray) -> np.ndarray:
    """Apply a homogeneous transform to a single point."""
    p = as_point(point)
    return T[0:3, 0:3] @ p + T[0:3, 3]


def transform_points(T: np.ndarray, points: np.ndarray) -> np.ndarray:
    """Apply a homogeneous transform to an (N, 3) array of points."""
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    return pts @ T[0:3, 0:3].T + T[0:3, 3]


def transform_vector(T: np.ndarray, vector: Sequence[float] | np.ndarray) -> np.ndarray:
    """Apply only the linear part of a transform to a direction vector."""
    return T[0:3, 0:3] @ as_point(vector)


def local_axes(T: np.ndarray) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Extract the (x, y, z) local axes of a transform as world vectors."""
    return (T[0:3, 0].copy(), T[0:3, 1].copy(), T[0:3, 2].copy())


# =============================================================================
# VECTOR OPERATIONS
# =============================================================================

def normalize(v: Sequence[float] | np.ndarray) -> np.ndarray:
    """Return v scaled to unit length. Raises ValueError for a zero vector."""
    vec = as_point(v)
    length = float(np.linalg.norm(vec))
    if length < 1e-12:
        raise ValueError("Cannot normalize a zero-length vector")
    return vec / length


def dot(point: np.ndarray, axis: np.ndarray) -> float:
    """Scalar coordinate of a point (or vector) along an axis."""
    return float(point[0] * axis[0] + point[1] * axis[1] + point[2] * axis[2])


def scale_vec(vec: np.ndarray, scalar: float) -> np.ndarray:
    """Scale a vector by a scalar."""
    return np.asarray(vec, dtype=float) * float(scalar)


def distance(a: np.ndarray, b: np.ndarray) -> float:
    """Euclidean distance between two points."""
    return float(np.linalg.norm(np.asarray(a, dtype=float) - np.asarray(b, dtype=float)))


def midpoint(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Point halfway between a and b."""
    return (np.asarray(a, dtype=float) + np.asarray(b, dtype=float)) * 0.5


def view_perpendicular(
    start: np.ndarray,
    end: np.ndarray,
    view_h: np.ndarray,
    view_v: np.ndarray,
) -> tuple[np.ndarray | None, float]:
    """
    Perpendicular to the projected segment start→end, in view space.

    The segment direction is rotated 90° counter-clockwise on screen:
    ``perp = (-H·dv + V·dh) / len2d``, where ``dh``/``dv`` are the view-space
    deltas. A segment running left to right therefore gets an upward
    perpendicular.

    Returns:
        (perp, len2d). perp is None when the projected length is degenerate.
    """
    dh = dot(end, view_h) - dot(start, view_h)
    dv = dot(end, view_v) - dot(start, view_v)
    len_2d = math.sqrt(dh * dh + dv * dv)
    if len_2d <= DEGENERATE_LENGTH:
        return None, len_2d
    perp = (-view_h * dv + view_v * dh) / len_2d
    return perp, len_2d


# =============================================================================
# BOXES
# =============================================================================

def box_corners(bmin: Sequence[float], bmax: Sequence[float]) -> np.ndarray:
    """
    Eight corners of an axis-aligned box as an (8, 3) array.

    Corner i takes the max coordinate on X when bit 0 is set, on Y for bit 1
    and on Z for bit 2 (corner 0 = min corner, corner 7 = max corner).
    """
    lo = as_point(bmin)
    hi = as_point(bmax)
    corners = np.empty((8, 3))
    for i in range(8):
        corners[i] = (
            hi[0] if i & 1 else lo[0],
            hi[1] if i & 2 else lo[1],
            hi[2] if i & 4 else lo[2],
        )
    return corners


def bounds_of(points: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    """Axis-aligned (min, max) bounds of an (N, 3) array."""
    pts = np.asarray(points, dtype=float).reshape(-1, 3)
    if len(pts) == 0:
        raise ValueError("Cannot compute bounds of an empty point set")
    return pts.min(axis=0), pts.max(axis=0)


# =============================================================================
# CONVEX HULL
# =============================================================================

def cross_2d(
    o: Sequence[float],
    a: Sequence[float],
    b: Sequence[float],
) -> float:
    """Z component of (a - o) × (b - o). Positive for a left turn."""
    return (a[0] - o[0]) * (b[1] - o[1]) - (a[1] - o[1]) * (b[0] - o[0])


def convex_hull_2d(points: Sequence[Sequence[float]]) -> list[int]:
    """
    Convex hull of 2D points by Andrew's monotone chain.

    Points are sorted by (u, v); exact duplicates keep their first occurrence
    and collinear points are dropped (non-positive cross product pops).

    Returns:
        Indices into ``points`` of the hull vertices in counter-clockwise
        order, starting at the lowest (u, v) point. Fewer than three distinct
        points are returned sorted, without a hull pass.
    """
    order = sorted(range(len(points)), key=lambda i: (points[i][0], points[i][1]))

    unique: list[int] = []
    for i in order:
        if unique:
            last = points[unique[-1]]
            if last[0] == points[i][0] and last[1] == points[i][1]:
                continue
        unique.append(i)

    if len(unique) < 3:
        return unique

    lower: list[int] = []
    for i in unique:
        while len(lower) >= 2 and cross_2d(points[lower[-2]], points[lower[-1]], points[i]) <= 0:
            lower.pop()
        lower.append(i)

    upper: list[int] = []
    for i in reversed(unique):
        while len(upper) >= 2 and cross_2d(points[upper[-2]], points[upper[-1]], points[i]) <= 0:
            upper.pop()
        upper.append(i)

    return lower[:-1] + upper[:-1]


# =============================================================================
# PRINCIPAL FRAME
# =============================================================================

_SNAP_TOL = 1.0e-6


def _snap_to_world(axis: np.ndarray) -> np.ndarray:
    """Replace an almost world-aligned unit vector by the exact world axis."""
    i = int(np.argmax(np.abs(axis)))
    if abs(axis[i]) > 1.0 - _SNAP_TOL:
        snapped = np.zeros(3)
        snapped[i] = math.copysign(1.0, axis[i])
        return snapped
    return axis


def principal_frame(points: Iterable[Sequence[float]]) -> np.ndarray:
    """
    Right-handed frame aligned with the principal directions of a point cloud.

    The origin is the centroid. The X column is the direction of largest
    spread; the Y column is a world axis perpendicular to it when one exists
    (the one with the larger spread), otherwise the second principal
    direction. Directions within a tight tolerance of a world axis snap to it,
    so axis-aligned boxes keep exact world axes even when two extents are
    equal.
    """
    pts = np.asarray(list(points), dtype=float).reshape(-1, 3)
    if len(pts) < 2:
        frame = np.eye(4)
        if len(pts) == 1:
            frame[0:3, 3] = pts[0]
        return frame

    centroid = pts.mean(axis=0)
    centered = pts - centroid
    cov = centered.T @ centered / len(pts)
    _eigvals, eigvecs = np.linalg.eigh(cov)

    long_axis = _snap_to_world(eigvecs[:, 2] / np.linalg.norm(eigvecs[:, 2]))

    second = None
    best_spread = -1.0
    for world in np.eye(3):
        if abs(float(np.dot(world, long_axis))) < 1e-9:
            spread = float(np.ptp(centered @ world))
            if spread > best_spread:
                best_spread = spread
                second = world
    if second is None:
        candidate = eigvecs[:, 1] - np.dot(eigvecs[:, 1], long_axis) * long_axis
        second = _snap_to_world(candidate / np.linalg.norm(candidate))

    third = np.cross(long_axis, second)
    third = third / np.linalg.norm(third)

    frame = np.eye(4)
    frame[0:3, 0] = long_axis
    frame[0:3, 1] = second
    frame[0:3, 2] = third
    frame[0:3, 3] = centroid
    return frame
