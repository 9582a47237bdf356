"""
YAML scene files.

A scene file describes a document: its view, its definitions, the top-level
model entities and the selection. Example:

    view: front                      # or: camera: {direction: [0, 1, 0], up: [0, 0, 1]}
    definitions:
      stud:
        box: [45, 70, 2400]          # size; optional "origin: [x, y, z]"
      plate:
        box: [2000, 70, 45]
      brace:
        vertices: [[0, 0, 0], [100, 0, 0]]
        edges: [[0, 1]]
      wall:
        entities:
          - definition: stud
            name: left stud
            position: [0, 0, 0]
          - definition: stud
            position: [1955, 0, 0]
            rotation: {axis: [0, 0, 1], angle: 180}
          - definition: plate
            kind: group
            matrix: [[1, 0, 0, 0], [0, 1, 0, 0], [0, 0, 1, 2400], [0, 0, 0, 1]]
          - edge: [[0, 0, 0], [0, 0, 100]]
    model:
      - definition: wall
        name: Wall A
        layer: walls
    selection: [Wall A]

Placements take either ``matrix`` (4x4 or 3x4) or ``position`` and an
optional ``rotation`` (one ``{axis, angle}`` mapping, or a list applied in
order). Angles are in degrees.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

import numpy as np
import yaml

from .constants import VIEW_DIRECTIONS, VIEW_UP_VECTORS
from .document import Camera, Document
from .errors import SceneFormatError
from .geometry import as_matrix, as_point, rotation_from_axis_angle, translation_matrix
from .scene import ComponentDefinition, Entities, Entity, InstancedEntity, box_definition, mesh_definition

_ENTITY_KINDS = ("component", "group")


def load_scene(path: str | Path) -> Document:
    """
    Load a document from a YAML scene file.

    Raises:
        SceneFormatError: If the file is not a valid scene
    """
    try:
        with open(path) as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise SceneFormatError(f"{path}: invalid YAML: {e}") from e
    try:
        return scene_from_dict(data)
    except SceneFormatError as e:
        raise SceneFormatError(f"{path}: {e}") from e


def scene_from_dict(data: Any) -> Document:
    """Build a document from a parsed scene mapping."""
    if not isinstance(data, dict):
        raise SceneFormatError("scene must be a mapping")
    unknown = sorted(set(data) - {"view", "camera", "definitions", "model", "selection"})
    if unknown:
        raise SceneFormatError(f"unknown scene keys: {unknown}")

    doc = Document(camera=_parse_camera(data))

    raw_definitions = data.get("definitions") or {}
    if not isinstance(raw_definitions, dict):
        raise SceneFormatError("'definitions' must be a mapping of name to definition")

    # Create every definition first so placements may reference any of them
    for name, raw in raw_definitions.items():
        doc.add_definition(_parse_definition(str(name), raw or {}))
    for name, raw in raw_definitions.items():
        definition = doc.find_definition(str(name))
        assert definition is not None
        for entry in (raw or {}).get("entities") or []:
            _add_entity(doc, definition.entities, entry, where=f"definition '{name}'")
    _check_acyclic(doc)

    for entry in data.get("model") or []:
        _add_entity(doc, doc.entities, entry, where="model")

    doc.select(*_parse_selection(doc, data.get("selection") or []))
    return doc


# =============================================================================
# PARSING HELPERS
# =============================================================================


def _parse_camera(data: dict[str, Any]) -> Camera:
    if "camera" in data and "view" in data:
        raise SceneFormatError("give either 'view' or 'camera', not both")
    if "camera" in data:
        camera = data["camera"] or {}
        try:
            direction = tuple(as_point(camera["direction"]))
            up = tuple(as_point(camera.get("up", (0.0, 0.0, 1.0))))
        except (KeyError, TypeError, ValueError) as e:
            raise SceneFormatError(f"invalid camera: {e}") from e
        if np.linalg.norm(direction) < 1e-10:
            raise SceneFormatError("camera direction must be non-zero")
        return Camera(direction=direction, up=up)

    name = data.get("view", "front")
    if name not in VIEW_DIRECTIONS:
        raise SceneFormatError(f"unknown view '{name}', expected one of {list(VIEW_DIRECTIONS)}")
    return Camera(direction=VIEW_DIRECTIONS[name], up=VIEW_UP_VECTORS[name])


def _parse_definition(name: str, raw: dict[str, Any]) -> ComponentDefinition:
    if not isinstance(raw, dict):
        raise SceneFormatError(f"definition '{name}' must be a mapping")
    if "box" in raw and "vertices" in raw:
        raise SceneFormatError(f"definition '{name}': give either 'box' or 'vertices', not both")
    try:
        if "box" in raw:
            return box_definition(name, as_point(raw["box"]), as_point(raw.get("origin", (0, 0, 0))))
        if "vertices" in raw:
            return mesh_definition(name, raw["vertices"], raw.get("edges"))
    except (TypeError, ValueError) as e:
        raise SceneFormatError(f"definition '{name}': {e}") from e
    return ComponentDefinition(name=name)


def _placement(entry: dict[str, Any]) -> np.ndarray:
    if "matrix" in entry:
        if "position" in entry or "rotation" in entry:
            raise SceneFormatError("give either 'matrix' or 'position'/'rotation', not both")
        return as_matrix(entry["matrix"])

    x, y, z = as_point(entry.get("position", (0.0, 0.0, 0.0)))
    T = translation_matrix(x, y, z)
    rotations = entry.get("rotation") or []
    if isinstance(rotations, dict):
        rotations = [rotations]
    R = np.eye(4)
    for rotation in rotations:
        R = rotation_from_axis_angle(as_point(rotation["axis"]), float(rotation["angle"])) @ R
    return T @ R


def _add_entity(doc: Document, entities: Entities, entry: Any, where: str) -> None:
    if not isinstance(entry, dict):
        raise SceneFormatError(f"{where}: entity must be a mapping, got {entry!r}")

    if "edge" in entry:
        try:
            start, end = entry["edge"]
            entities.add_edge(start, end)
        except (TypeError, ValueError) as e:
            raise SceneFormatError(f"{where}: invalid edge: {e}") from e
        return

    def_name = entry.get("definition")
    definition = doc.find_definition(str(def_name)) if def_name is not None else None
    if definition is None:
        raise SceneFormatError(f"{where}: unknown definition {def_name!r}")

    kind = entry.get("kind", "component")
    if kind not in _ENTITY_KINDS:
        raise SceneFormatError(f"{where}: kind must be one of {_ENTITY_KINDS}, got {kind!r}")

    try:
        transformation = _placement(entry)
    except (KeyError, TypeError, ValueError) as e:
        raise SceneFormatError(f"{where}: invalid placement of '{def_name}': {e}") from e

    layer = doc.layers.add(str(entry["layer"])) if entry.get("layer") else None
    name = str(entry.get("name", ""))
    if kind == "group":
        entities.add_group(definition, transformation, name=name, layer=layer)
    else:
        entities.add_instance(definition, transformation, name=name, layer=layer)


def _check_acyclic(doc: Document) -> None:
    """Reject definitions that (indirectly) contain themselves."""
    state: dict[int, str] = {}

    def visit(definition: ComponentDefinition) -> None:
        key = id(definition)
        if state.get(key) == "done":
            return
        if state.get(key) == "active":
            raise SceneFormatError(f"definition '{definition.name}' contains itself")
        state[key] = "active"
        for entity in definition.entities:
            if isinstance(entity, InstancedEntity) and entity.definition is not None:
                visit(entity.definition)
        state[key] = "done"

    for definition in doc.definitions:
        visit(definition)


def _parse_selection(doc: Document, names: Any) -> list[Entity]:
    if isinstance(names, str):
        names = [names]
    selected: list[Entity] = []
    for name in names:
        matches = [e for e in doc.entities.grep(InstancedEntity) if e.name == str(name)]
        if not matches:
            raise SceneFormatError(f"selection: no top-level entity named {name!r}")
        selected.extend(matches)
    return selected
