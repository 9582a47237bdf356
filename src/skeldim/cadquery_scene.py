"""
CadQuery model import.

Turns CadQuery models into documents the engine can dimension:

- document_from_assembly: a cq.Assembly maps one to one onto the instance
  tree. Assemblies with children become container definitions, assemblies
  without children become leaf parts carrying their shape's vertices and
  edges, and every location becomes a 4x4 matrix.
- document_from_step: a STEP file holds placed solids without any local
  frame. Each solid becomes a leaf part whose local frame is its principal
  frame (centroid + principal directions), so square-cut members along the
  world axes stay axis aligned while rotated braces become diagonal beams
  measured along their true long axis.

In both cases the top-level component is selected and the camera is set
from a standard view name.
"""

from __future__ import annotations

import warnings
from pathlib import Path

import cadquery as cq
import numpy as np

from .constants import VIEW_DIRECTIONS, VIEW_UP_VECTORS
from .document import Camera, Document
from .geometry import principal_frame
from .scene import ComponentDefinition, ComponentInstance, mesh_definition
from .view import ViewBasis

_VERTEX_KEY_DIGITS = 6


def _camera_for(view: str) -> Camera:
    # Validates the name
    ViewBasis.from_name(view)
    return Camera(direction=VIEW_DIRECTIONS[view], up=VIEW_UP_VECTORS[view])


def location_matrix(loc: cq.Location | None) -> np.ndarray:
    """4x4 homogeneous matrix of a CadQuery location."""
    M = np.eye(4)
    if loc is None:
        return M
    trsf = loc.wrapped.Transformation()
    for row in range(3):
        for col in range(4):
            M[row, col] = trsf.Value(row + 1, col + 1)
    return M


def _shapes_of(obj: object) -> list[cq.Shape]:
    if obj is None:
        return []
    if isinstance(obj, cq.Shape):
        return [obj]
    if isinstance(obj, cq.Workplane):
        return [v for v in obj.vals() if isinstance(v, cq.Shape)]
    raise TypeError(f"Unsupported assembly object: {type(obj).__name__}")


def _key(point: tuple[float, float, float]) -> tuple[float, float, float]:
    n = _VERTEX_KEY_DIGITS
    return (round(point[0], n), round(point[1], n), round(point[2], n))


def shape_mesh(shapes: list[cq.Shape]) -> tuple[np.ndarray, list[tuple[int, int]]]:
    """
    Vertices and straight vertex-to-vertex edges of one or more shapes.

    Edges are matched to vertices by their end points; closed edges (circles)
    and edges ending off the vertex list are left out.
    """
    vertices: list[tuple[float, float, float]] = []
    index: dict[tuple[float, float, float], int] = {}
    for shape in shapes:
        for vertex in shape.Vertices():
            point = vertex.toTuple()
            key = _key(point)
            if key not in index:
                index[key] = len(vertices)
                vertices.append(point)

    edges: list[tuple[int, int]] = []
    for shape in shapes:
        for edge in shape.Edges():
            a = index.get(_key(edge.startPoint().toTuple()))
            b = index.get(_key(edge.endPoint().toTuple()))
            if a is not None and b is not None and a != b:
                edges.append((a, b))

    return np.asarray(vertices, dtype=float).reshape(-1, 3), edges


# =============================================================================
# ASSEMBLIES
# =============================================================================


def _leaf_definition(name: str, shapes: list[cq.Shape]) -> ComponentDefinition:
    vertices, edges = shape_mesh(shapes)
    if len(vertices) == 0:
        warnings.warn(f"Part '{name}' has no vertices and cannot be measured", stacklevel=3)
    return mesh_definition(name, vertices, edges)


def _assembly_definition(doc: Document, assy: cq.Assembly) -> ComponentDefinition:
    shapes = _shapes_of(assy.obj)
    if not assy.children:
        return doc.add_definition(_leaf_definition(assy.name, shapes))

    definition = doc.add_definition(ComponentDefinition(name=assy.name))
    if shapes:
        # The container's own shape is a part of its own
        body = doc.add_definition(_leaf_definition(f"{assy.name} body", shapes))
        definition.entities.add_instance(body, name=body.name)
    for child in assy.children:
        definition.entities.add_instance(
            _assembly_definition(doc, child),
            location_matrix(child.loc),
            name=child.name,
        )
    return definition


def document_from_assembly(assy: cq.Assembly, view: str = "front") -> Document:
    """
    Document holding ``assy`` as its single, selected component.

    Args:
        assy: The assembly; its own location places the root instance
        view: Standard view name for the camera
    """
    doc = Document(camera=_camera_for(view))
    definition = _assembly_definition(doc, assy)
    if not assy.children:
        # A lone part still needs a container to be dimensioned
        wrapper = doc.add_definition(ComponentDefinition(name=f"{assy.name} assembly"))
        wrapper.entities.add_instance(definition, name=assy.name)
        definition = wrapper
    root = doc.entities.add_instance(definition, location_matrix(assy.loc), name=assy.name)
    doc.select(root)
    return doc


# =============================================================================
# STEP FILES
# =============================================================================


def load_step_solids(filepath: str | Path) -> list[cq.Solid]:
    """Load a STEP file and return its solids."""
    path = Path(filepath)
    if not path.exists():
        raise FileNotFoundError(f"STEP file not found: {path}")
    result = cq.importers.importStep(str(path))
    solids: list[cq.Solid] = []
    for shape in result.vals():
        if isinstance(shape, cq.Shape):
            solids.extend(shape.Solids())
    return solids


def solid_instance(
    container: ComponentDefinition,
    solid: cq.Shape,
    name: str,
) -> ComponentInstance | None:
    """
    Place ``solid`` in ``container`` as a leaf part in its principal frame.

    Returns:
        The new instance, or None (with a warning) for a solid without vertices
    """
    world_vertices, edges = shape_mesh([solid])
    if len(world_vertices) == 0:
        warnings.warn(f"Solid '{name}' has no vertices and is skipped", stacklevel=2)
        return None
    frame = principal_frame(world_vertices)
    rotation = frame[0:3, 0:3]
    local_vertices = (world_vertices - frame[0:3, 3]) @ rotation
    definition = mesh_definition(name, local_vertices, edges)
    return container.entities.add_instance(definition, frame, name=name)


def document_from_step(filepath: str | Path, view: str = "front") -> Document:
    """
    Document holding every solid of a STEP file in one selected component.

    Args:
        filepath: STEP file path
        view: Standard view name for the camera
    """
    path = Path(filepath)
    doc = Document(camera=_camera_for(view))
    container = doc.add_definition(ComponentDefinition(name=path.stem))
    for i, solid in enumerate(load_step_solids(path)):
        instance = solid_instance(container, solid, f"{path.stem} solid {i + 1}")
        if instance is not None and instance.definition is not None:
            doc.add_definition(instance.definition)
    root = doc.entities.add_instance(container, name=path.stem)
    doc.select(root)
    return doc
