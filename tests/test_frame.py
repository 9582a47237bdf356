#!/usr/bin/env python3
"""
Tests for overall frame diagonals.

Tests cover:
- Corner selection on a rectangular silhouette
- Offsets clear of the silhouette on the outer side
- Placement at the depth nearest the camera
- Degenerate silhouettes
"""

import math

import numpy as np
import pytest

from conftest import frame_document, rectangular_frame
from skeldim.classify import build_beams, classify_beams
from skeldim.discovery import collect_beams
from skeldim.frame import diagonal_offset_outside, frame_corners, frame_diagonals
from skeldim.geometry import box_corners


def corners_of(instance, view, settings):
    pairs = collect_beams(instance.definition.entities, instance.transformation)
    classified = classify_beams(build_beams(pairs, view), view, settings)
    return np.vstack([cb.beam.corners for cb in classified])


class TestFrameCorners:
    """Test hull corner selection."""

    def test_rectangle(self, front_view, settings):
        _doc, inst = rectangular_frame()
        corners, hull_points, center = frame_corners(corners_of(inst, front_view, settings), front_view)

        np.testing.assert_allclose(corners["bl"], [0, 0, 0], atol=1e-9)
        np.testing.assert_allclose(corners["tl"], [0, 0, 2400], atol=1e-9)
        np.testing.assert_allclose(corners["tr"], [2000, 0, 2400], atol=1e-9)
        np.testing.assert_allclose(corners["br"], [2000, 0, 0], atol=1e-9)
        np.testing.assert_allclose(center, [1000, 0, 1200], atol=1e-9)
        assert len(hull_points) == 4

    def test_sloped_top_uses_existing_corner(self, front_view):
        """A lean-to outline has no vertex at the bounding-box top left."""
        pts = np.array([
            [0, 0, 0], [3000, 0, 0], [3000, 0, 2400], [0, 0, 1800],
            [1500, 0, 1000],
        ], dtype=float)
        corners, _hull, _center = frame_corners(pts, front_view)
        np.testing.assert_allclose(corners["tl"], [0, 0, 1800])
        np.testing.assert_allclose(corners["tr"], [3000, 0, 2400])

    def test_nearest_depth(self, front_view):
        pts = np.vstack([
            box_corners((0, 0, 0), (10, 45, 1000)),
            box_corners((990, -60, 0), (1000, 45, 1000)),
        ])
        corners, hull_points, _center = frame_corners(pts, front_view)
        for point in list(corners.values()) + hull_points:
            assert point[1] == pytest.approx(-60)

    def test_single_point_silhouette(self, front_view):
        pts = np.tile([5.0, 0.0, 5.0], (8, 1))
        assert frame_corners(pts, front_view) is None

    def test_depth_only_silhouette(self, front_view):
        """Points stacked along the viewing direction project to one vertex."""
        pts = np.array([[5.0, y, 5.0] for y in range(10)])
        assert frame_corners(pts, front_view) is None


class TestDiagonalOffset:
    """Test placement of diagonals outside the silhouette."""

    def test_centre_off_segment(self, front_view):
        hull = [np.array(p, dtype=float) for p in ((0, 0, 0), (1000, 0, 0), (1000, 0, 1000), (0, 0, 1000))]
        start, end = hull[0], hull[2]
        center = np.array([800.0, 0.0, 200.0])
        offset = diagonal_offset_outside(start, end, center, hull[3], hull, front_view, 100.0)

        # The centre is below-right of the segment, so the line goes above-left
        assert offset[0] < 0
        assert offset[2] > 0
        assert np.linalg.norm(offset) == pytest.approx(1000 / math.sqrt(2) + 100)

    def test_tiebreaker_decides_when_centred(self, front_view):
        hull = [np.array(p, dtype=float) for p in ((0, 0, 0), (1000, 0, 0), (1000, 0, 1000), (0, 0, 1000))]
        start, end = hull[0], hull[2]
        center = np.array([500.0, 0.0, 500.0])

        toward_br = diagonal_offset_outside(start, end, center, hull[1], hull, front_view, 0.0)
        toward_tl = diagonal_offset_outside(start, end, center, hull[3], hull, front_view, 0.0)
        np.testing.assert_allclose(toward_br, -toward_tl)
        assert toward_br[0] > 0

    def test_degenerate_segment(self, front_view):
        p = np.array([1.0, 0.0, 1.0])
        q = np.array([1.0, 500.0, 1.0])
        assert diagonal_offset_outside(p, q, p, p, [p, q], front_view, 100.0) is None


class TestFrameDiagonals:
    """Test the two overall diagonals."""

    def test_rectangular_frame(self, front_view, settings):
        _doc, inst = rectangular_frame()
        records = frame_diagonals(corners_of(inst, front_view, settings), front_view, settings)

        assert [r.source for r in records] == ["tl-br", "bl-tr"]
        expected = math.hypot(2000, 2400)
        for r in records:
            assert r.dimension_type == "frame_diagonal"
            assert r.length == pytest.approx(expected)

        reach = (1000 * 2400 + 1200 * 2000) / expected
        tl_br, bl_tr = records
        assert np.linalg.norm(tl_br.offset) == pytest.approx(reach + settings.diag_offset_padding)
        # TL→BR is pushed toward the top-right corner, BL→TR toward the top-left
        assert tl_br.offset[0] > 0 and tl_br.offset[2] > 0
        assert bl_tr.offset[0] < 0 and bl_tr.offset[2] > 0

    def test_offsets_clear_silhouette(self, front_view, settings):
        _doc, inst = frame_document([
            ("post", (45.0, 70.0, 1800.0), (0.0, 0.0, 0.0)),
            ("tall post", (45.0, 70.0, 2400.0), (2955.0, 0.0, 0.0)),
            ("sill", (3000.0, 70.0, 45.0), (0.0, 0.0, 0.0)),
        ])
        all_corners = corners_of(inst, front_view, settings)
        for r in frame_diagonals(all_corners, front_view, settings):
            unit = r.offset / np.linalg.norm(r.offset)
            mid = (r.start + r.end) / 2
            clearance = np.linalg.norm(r.offset)
            for p in all_corners:
                p_view = p.copy()
                p_view[1] = mid[1]
                assert np.dot(p_view - mid, unit) <= clearance - settings.diag_offset_padding + 1e-6

    def test_tiny_frame_has_no_diagonals(self, front_view, settings):
        pts = box_corners((0, 0, 0), (0.4, 10, 0.4))
        assert frame_diagonals(pts, front_view, settings) == []
