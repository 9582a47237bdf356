"""
View basis for view-relative dimensioning.

A ViewBasis is the orthonormal (horizontal, vertical, depth) frame of the
camera at the moment a run starts. Every measurement is projected onto it:
``u`` along the horizontal axis (screen right), ``v`` along the vertical
axis (screen up) and ``depth`` along the viewing direction (away from the
camera).
"""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING

import numpy as np

from .constants import VIEW_DIRECTIONS, VIEW_UP_VECTORS
from .geometry import as_point, dot

if TYPE_CHECKING:
    from .document import Camera


@dataclass(frozen=True, eq=False)
class ViewBasis:
    """
    Orthonormal view frame.

    Attributes:
        horizontal: Unit vector pointing right on screen
        vertical: Unit vector pointing up on screen
        depth: Unit viewing direction (from the eye into the scene)
    """

    horizontal: np.ndarray
    vertical: np.ndarray
    depth: np.ndarray

    @classmethod
    def from_direction(
        cls,
        direction: Sequence[float],
        up: Sequence[float] = (0.0, 0.0, 1.0),
    ) -> "ViewBasis":
        """
        Compute the basis for a camera looking along ``direction``.

        For viewing direction D with up hint U:
        - Horizontal = normalize(D × U)
        - Vertical = normalize(Horizontal × D)

        When D is parallel to U a fallback up hint is used.
        """
        dx, dy, dz = as_point(direction)
        ux, uy, uz = as_point(up)

        d_len = math.sqrt(dx * dx + dy * dy + dz * dz)
        if d_len < 1e-10:
            raise ValueError("View direction must be non-zero")
        dx, dy, dz = dx / d_len, dy / d_len, dz / d_len

        # Horizontal = D × U
        rx = dy * uz - dz * uy
        ry = dz * ux - dx * uz
        rz = dx * uy - dy * ux

        r_len = math.sqrt(rx * rx + ry * ry + rz * rz)
        if r_len < 1e-10:
            # Direction parallel to up, use fallback
            if abs(dz) > 0.9:
                ux, uy, uz = 0.0, 1.0, 0.0
            else:
                ux, uy, uz = 0.0, 0.0, 1.0
            rx = dy * uz - dz * uy
            ry = dz * ux - dx * uz
            rz = dx * uy - dy * ux
            r_len = math.sqrt(rx * rx + ry * ry + rz * rz)

        rx, ry, rz = rx / r_len, ry / r_len, rz / r_len

        # Vertical = Horizontal × D (ensures orthogonal)
        vx = ry * dz - rz * dy
        vy = rz * dx - rx * dz
        vz = rx * dy - ry * dx

        v_len = math.sqrt(vx * vx + vy * vy + vz * vz)
        vx, vy, vz = vx / v_len, vy / v_len, vz / v_len

        return cls(
            horizontal=np.array([rx, ry, rz]),
            vertical=np.array([vx, vy, vz]),
            depth=np.array([dx, dy, dz]),
        )

    @classmethod
    def from_camera(cls, camera: "Camera") -> "ViewBasis":
        """Basis of a host camera (its direction and up vector)."""
        return cls.from_direction(camera.direction, camera.up)

    @classmethod
    def from_name(cls, name: str) -> "ViewBasis":
        """
        Create a ViewBasis from a standard view name.

        Args:
            name: One of "front", "back", "left", "right", "top", "bottom", "iso"
        """
        if name not in VIEW_DIRECTIONS:
            raise ValueError(
                f"Unknown view name: {name}. "
                f"Valid names: {list(VIEW_DIRECTIONS.keys())}"
            )
        return cls.from_direction(VIEW_DIRECTIONS[name], VIEW_UP_VECTORS[name])

    @property
    def axes(self) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
        """(horizontal, vertical, depth)."""
        return (self.horizontal, self.vertical, self.depth)

    def h(self, point: np.ndarray) -> float:
        """Horizontal screen coordinate of a point."""
        return dot(point, self.horizontal)

    def v(self, point: np.ndarray) -> float:
        """Vertical screen coordinate of a point."""
        return dot(point, self.vertical)

    def d(self, point: np.ndarray) -> float:
        """Depth of a point along the viewing direction."""
        return dot(point, self.depth)

    def project(self, point: np.ndarray) -> tuple[float, float]:
        """Project a 3D point to (u, v) view coordinates."""
        return (self.h(point), self.v(point))

    def compose(self, u: float, v: float, depth: float) -> np.ndarray:
        """World point with the given view coordinates."""
        return self.horizontal * u + self.vertical * v + self.depth * depth
