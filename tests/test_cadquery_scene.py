#!/usr/bin/env python3
"""
Tests for importing CadQuery assemblies and STEP files.

Tests cover:
- Location to matrix conversion
- Shape vertices and edges
- Assemblies mapped onto the instance tree
- STEP solids placed in their principal frames
"""

import cadquery as cq
import numpy as np
import pytest

from skeldim.cadquery_scene import (
    document_from_assembly,
    document_from_step,
    load_step_solids,
    location_matrix,
    shape_mesh,
)
from skeldim.engine import SkeletonDimensioner
from skeldim.scene import ComponentInstance


def wall_assembly() -> cq.Assembly:
    assy = cq.Assembly(name="wall")
    assy.add(cq.Workplane().box(45, 70, 2400, centered=False), name="left stud")
    assy.add(
        cq.Workplane().box(45, 70, 2400, centered=False),
        name="right stud",
        loc=cq.Location(cq.Vector(1955, 0, 0)),
    )
    assy.add(
        cq.Workplane().box(2000, 70, 45, centered=False),
        name="top plate",
        loc=cq.Location(cq.Vector(0, 0, 2400)),
    )
    return assy


class TestLocationMatrix:
    def test_translation(self):
        M = location_matrix(cq.Location(cq.Vector(10, 20, 30)))
        np.testing.assert_allclose(M[0:3, 3], [10, 20, 30])
        np.testing.assert_allclose(M[0:3, 0:3], np.eye(3), atol=1e-12)
        np.testing.assert_allclose(M[3], [0, 0, 0, 1])

    def test_rotation(self):
        M = location_matrix(cq.Location(cq.Vector(0, 0, 0), cq.Vector(0, 0, 1), 90))
        np.testing.assert_allclose(M[0:3, 0], [0, 1, 0], atol=1e-12)

    def test_none_is_identity(self):
        np.testing.assert_allclose(location_matrix(None), np.eye(4))


class TestShapeMesh:
    def test_box(self):
        vertices, edges = shape_mesh([cq.Solid.makeBox(45, 70, 2400)])
        assert vertices.shape == (8, 3)
        assert len(edges) == 12
        np.testing.assert_allclose(vertices.max(axis=0), [45, 70, 2400])

    def test_closed_edges_dropped(self):
        _vertices, edges = shape_mesh([cq.Solid.makeCylinder(10, 100)])
        assert all(a != b for a, b in edges)


class TestDocumentFromAssembly:
    """Test assembly import."""

    def test_tree(self):
        doc = document_from_assembly(wall_assembly())
        (root,) = doc.selection
        assert isinstance(root, ComponentInstance)
        assert root.name == "wall"
        names = [e.name for e in root.definition.entities]
        assert names == ["left stud", "right stud", "top plate"]
        right = root.definition.entities[1]
        np.testing.assert_allclose(right.transformation[0:3, 3], [1955, 0, 0])
        assert len(right.definition.vertices) == 8

    def test_dimensions(self):
        doc = document_from_assembly(wall_assembly())
        dimensioner = SkeletonDimensioner(doc)
        dimensioner.generate()
        plan = dimensioner.last_plan

        assert len(plan.of_type("cumulative")) == 2
        assert len(plan.of_type("beam_length")) == 3
        assert len(plan.of_type("frame_diagonal")) == 2
        assert sorted(cb.axis for cb in plan.classified) == ["horizontal", "vertical", "vertical"]

    def test_lone_part_wrapped(self):
        assy = cq.Assembly(cq.Workplane().box(45, 70, 2400), name="post")
        doc = document_from_assembly(assy)
        (root,) = doc.selection
        assert root.definition.name == "post assembly"
        assert SkeletonDimensioner(doc).generate() > 0

    def test_view(self):
        doc = document_from_assembly(wall_assembly(), view="right")
        assert doc.camera.direction == (-1.0, 0.0, 0.0)

    def test_unknown_view(self):
        with pytest.raises(ValueError):
            document_from_assembly(wall_assembly(), view="sideways")


class TestDocumentFromStep:
    """Test STEP import through a round trip."""

    @pytest.fixture
    def frame_step(self, tmp_path):
        stud = cq.Solid.makeBox(45, 70, 2400)
        brace = (
            cq.Solid.makeBox(1000, 45, 45)
            .rotate(cq.Vector(0, 0, 0), cq.Vector(0, 1, 0), -30)
            .translate(cq.Vector(500, 0, 500))
        )
        path = tmp_path / "frame.step"
        cq.Compound.makeCompound([stud, brace]).exportStep(str(path))
        return path

    def test_solids(self, frame_step):
        assert len(load_step_solids(frame_step)) == 2

    def test_principal_frames(self, frame_step):
        doc = document_from_step(frame_step)
        (root,) = doc.selection
        assert root.name == "frame"
        assert [e.name for e in root.definition.entities] == ["frame solid 1", "frame solid 2"]

        dimensioner = SkeletonDimensioner(doc)
        dimensioner.generate()
        plan = dimensioner.last_plan
        assert sorted(cb.axis for cb in plan.classified) == ["diagonal", "vertical"]

        (brace,) = [r for r in plan.of_type("beam_length") if r.axis == "diagonal"]
        assert brace.length == pytest.approx(1000, rel=1e-6)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            document_from_step(tmp_path / "missing.step")
