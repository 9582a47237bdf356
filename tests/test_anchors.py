#!/usr/bin/env python3
"""
Tests for per-beam length anchors.

Tests cover:
- Vertical beams measured along their left edge, offset beside the beam
- Horizontal beams measured along their top edge, offset above or below
- Offset side follows the taller / wider half of irregular profiles
- Diagonal beams measured between end face centres
- Deduplication of repeated members
"""

import math

import numpy as np
import pytest

from skeldim.anchors import (
    beam_length_anchors,
    collect_length_dimensions,
    diagonal_beam_endpoints,
    length_dedup_key,
)
from skeldim.classify import Beam, ClassifiedBeam, classify_beam
from skeldim.geometry import rotation_matrix_y, rotation_matrix_z, translation_matrix
from skeldim.scene import ComponentDefinition, box_definition, mesh_definition


def classified(definition, transformation=None, view=None, axis=None) -> ClassifiedBeam:
    """Wrap one placed definition as a classified beam (label forced when given)."""
    frame = ComponentDefinition(name="frame")
    inst = frame.entities.add_instance(definition, transformation, name=definition.name)
    beam = Beam.from_instance(inst, np.eye(4), view)
    return ClassifiedBeam(beam=beam, axis=axis or classify_beam(beam, view))


BRACE_T = translation_matrix(1000, 0, 1000) @ rotation_matrix_y(-30)


def brace(transformation=BRACE_T):
    return box_definition("brace", (1000, 45, 45), (-500, -22.5, -22.5)), transformation


# =============================================================================
# AXIS-ALIGNED BEAMS
# =============================================================================


class TestVerticalAnchors:
    """Test anchors of vertical beams."""

    def test_left_edge_top_to_bottom(self, front_view, settings):
        cb = classified(box_definition("stud", (45, 70, 2400)), translation_matrix(600, 0, 0), front_view)
        start, end, offset = beam_length_anchors(cb, front_view, settings)

        np.testing.assert_allclose(start, [600, 0, 2400])
        np.testing.assert_allclose(end, [600, 0, 0])
        np.testing.assert_allclose(offset, [-settings.beam_length_offset, 0, 0])

    def test_taller_left_half_pushes_offset_right(self, front_view, settings):
        """Left half spans 1000, right half 500: the line goes to the right."""
        post = mesh_definition("stepped post", [
            (0, 0, 0), (0, 0, 1000), (10, 0, 0), (10, 0, 500),
        ])
        cb = classified(post, view=front_view, axis="vertical")
        start, end, offset = beam_length_anchors(cb, front_view, settings)

        np.testing.assert_allclose(start, [0, 0, 1000])
        np.testing.assert_allclose(end, [0, 0, 0])
        np.testing.assert_allclose(offset, [settings.beam_length_offset, 0, 0])

    @pytest.mark.parametrize("transformation", [
        np.eye(4),
        translation_matrix(45, 45, 0) @ rotation_matrix_z(180),
    ])
    def test_cut_top_measured_straight_down(self, front_view, settings, transformation):
        """A post cut 2400 high on one side and 2300 on the other reads 2400 either way round."""
        post = mesh_definition("cut post", [
            (x, y, z)
            for y in (0, 45)
            for x, z in ((0, 0), (45, 0), (0, 2400), (45, 2300))
        ])
        cb = classified(post, transformation, front_view, axis="vertical")
        start, end, _offset = beam_length_anchors(cb, front_view, settings)

        assert start[2] == pytest.approx(2400)
        assert end[2] == pytest.approx(0)
        assert np.linalg.norm(end - start) == pytest.approx(2400)

    def test_depth_breaks_ties(self, front_view, settings):
        """Of two equally left top points the one nearest the camera wins."""
        cb = classified(box_definition("stud", (45, 70, 2400)), translation_matrix(0, 30, 0), front_view)
        start, _end, _offset = beam_length_anchors(cb, front_view, settings)
        assert start[1] == pytest.approx(30)


class TestHorizontalAnchors:
    """Test anchors of horizontal beams."""

    def test_top_edge_left_to_right(self, front_view, settings):
        cb = classified(box_definition("plate", (2000, 70, 45)), translation_matrix(0, 0, 2400), front_view)
        start, end, offset = beam_length_anchors(cb, front_view, settings)

        np.testing.assert_allclose(start, [0, 0, 2445])
        np.testing.assert_allclose(end, [2000, 0, 2445])
        np.testing.assert_allclose(offset, [0, 0, settings.beam_length_offset])

    def test_longer_bottom_edge_pushes_offset_down(self, front_view, settings):
        sill = mesh_definition("stepped sill", [
            (0, 0, 0), (1000, 0, 0), (0, 0, 10), (500, 0, 10),
        ])
        cb = classified(sill, view=front_view, axis="horizontal")
        start, end, offset = beam_length_anchors(cb, front_view, settings)

        np.testing.assert_allclose(start, [0, 0, 10])
        np.testing.assert_allclose(end, [1000, 0, 0])
        np.testing.assert_allclose(offset, [0, 0, -settings.beam_length_offset])


# =============================================================================
# DIAGONAL BEAMS
# =============================================================================


class TestDiagonalAnchors:
    """Test end-face anchors of rotated members."""

    def test_true_length(self, front_view, settings):
        definition, T = brace()
        cb = classified(definition, T, front_view)
        assert cb.axis == "diagonal"

        start, end, offset = beam_length_anchors(cb, front_view, settings)
        assert np.linalg.norm(end - start) == pytest.approx(1000)
        np.testing.assert_allclose(start + end, [2000, 0, 2000], atol=1e-9)
        assert np.linalg.norm(offset) == pytest.approx(settings.beam_length_offset)

    def test_offset_perpendicular_in_view(self, front_view, settings):
        definition, T = brace()
        start, end, offset = beam_length_anchors(classified(definition, T, front_view), front_view, settings)
        seg = end - start
        seg_2d = np.array([seg[0], 0, seg[2]])
        assert np.dot(offset, seg_2d) == pytest.approx(0.0, abs=1e-9)
        assert offset[1] == pytest.approx(0.0, abs=1e-12)

    def test_longest_local_axis(self, front_view):
        """End faces follow the definition's longest axis, not the world box."""
        definition = box_definition("rafter", (45, 3000, 200), (-22.5, -1500, -100))
        T = rotation_matrix_z(90) @ rotation_matrix_y(-35)
        frame = ComponentDefinition()
        inst = frame.entities.add_instance(definition, T)
        a, b = diagonal_beam_endpoints(Beam.from_instance(inst, np.eye(4), front_view))
        assert np.linalg.norm(b - a) == pytest.approx(3000)

    def test_flipped_brace_has_same_key(self, front_view, settings):
        """A brace placed end-for-end collapses with the original."""
        definition, T = brace()
        flipped = T @ rotation_matrix_z(180)
        records = collect_length_dimensions(
            [classified(definition, T, front_view), classified(definition, flipped, front_view)],
            front_view,
            settings,
        )
        assert len(records) == 1

    def test_distinct_braces_kept(self, front_view, settings):
        definition, T = brace()
        other = translation_matrix(2500, 0, 0) @ T
        records = collect_length_dimensions(
            [classified(definition, T, front_view), classified(definition, other, front_view)],
            front_view,
            settings,
        )
        assert len(records) == 2
        assert records[0].length == pytest.approx(records[1].length)
        assert length_dedup_key(records[0], front_view, settings.dedup_epsilon) != \
            length_dedup_key(records[1], front_view, settings.dedup_epsilon)


# =============================================================================
# COLLECTION
# =============================================================================


class TestCollectLengthDimensions:
    """Test one-record-per-distinct-member collection."""

    def test_stacked_duplicates_collapse(self, front_view, settings):
        stud = box_definition("stud", (45, 70, 2400))
        beams = [classified(stud, translation_matrix(0, 0, 0), front_view) for _ in range(3)]
        records = collect_length_dimensions(beams, front_view, settings)

        assert len(records) == 1
        assert records[0].dimension_type == "beam_length"
        assert records[0].axis == "vertical"
        assert records[0].length == pytest.approx(2400)

    def test_spaced_studs_each_dimensioned(self, front_view, settings):
        stud = box_definition("stud", (45, 70, 2400))
        beams = [classified(stud, translation_matrix(x, 0, 0), front_view) for x in (0, 600, 1200)]
        records = collect_length_dimensions(beams, front_view, settings)
        assert [r.source for r in records] == ["stud", "stud", "stud"]
        assert len(records) == 3

    def test_near_positions_within_epsilon_collapse(self, front_view, settings):
        stud = box_definition("stud", (45, 70, 2400))
        beams = [
            classified(stud, translation_matrix(0, 0, 0), front_view),
            classified(stud, translation_matrix(settings.dedup_epsilon / 10, 0, 0), front_view),
        ]
        assert len(collect_length_dimensions(beams, front_view, settings)) == 1

    def test_order_preserved(self, front_view, settings):
        plate = box_definition("plate", (2000, 70, 45))
        stud = box_definition("stud", (45, 70, 2400))
        beams = [
            classified(stud, translation_matrix(0, 0, 0), front_view),
            classified(plate, translation_matrix(0, 0, 2400), front_view),
        ]
        records = collect_length_dimensions(beams, front_view, settings)
        assert [r.axis for r in records] == ["vertical", "horizontal"]
        assert records[1].length == pytest.approx(2000)

    def test_diagonal_length_matches_geometry(self, front_view, settings):
        definition, _ = brace()
        T = rotation_matrix_y(-45)
        (record,) = collect_length_dimensions([classified(definition, T, front_view)], front_view, settings)
        assert record.axis == "diagonal"
        assert record.length == pytest.approx(1000)
        assert abs(record.end[0] - record.start[0]) == pytest.approx(1000 * math.cos(math.radians(45)))
