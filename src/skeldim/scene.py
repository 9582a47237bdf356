#!/usr/bin/env python3
"""
Scene Graph Entities

This module defines the in-memory scene graph the dimensioning engine reads
and writes. It mirrors the entity model of a component-based modeller:

    Document.entities
        └── ComponentInstance "Wall A"  (definition: "wall")
                └── Group (definition: "studs")          <- container
                        ├── ComponentInstance "stud"    <- leaf beam
                        └── ComponentInstance "stud"    <- leaf beam

- ComponentDefinition: reusable geometry (vertices, edges) plus nested entities
- InstancedEntity: a placement of a definition with a local-to-parent transform
  (ComponentInstance and Group are the two concrete kinds)
- Edge: raw geometry, never a beam
- LinearDimension / TextLabel: annotations created by the engine
- Entities: the ordered collection each definition (and the document) owns

Definitions may be instanced many times; every instance is a distinct
physical part.
"""

from __future__ import annotations

import itertools
from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

import numpy as np

from .geometry import (
    as_matrix,
    as_point,
    bounds_of,
    box_corners,
    distance,
    identity_matrix,
    transform_points,
)

_persistent_ids = itertools.count(1)

# Text position of aligned dimension labels
ALIGNED_TEXT_CENTER = "center"
ALIGNED_TEXT_ABOVE = "above"
ALIGNED_TEXT_OUTSIDE = "outside"

E = TypeVar("E", bound="Entity")


def _next_persistent_id() -> int:
    return next(_persistent_ids)


# =============================================================================
# LAYERS
# =============================================================================


@dataclass(eq=False)
class LayerFolder:
    """Folder grouping layers (tags) in the layer panel."""

    name: str


@dataclass(eq=False)
class Layer:
    """
    A layer (tag) entities can be assigned to.

    Attributes:
        name: Unique layer name
        visible: Whether entities on this layer are displayed
        folder: Optional folder the layer is filed under
    """

    name: str
    visible: bool = True
    folder: LayerFolder | None = None


# =============================================================================
# ENTITIES
# =============================================================================


@dataclass(eq=False)
class Entity:
    """
    Base class for everything stored in an Entities collection.

    Attributes:
        layer: Assigned layer, or None for the default layer
        persistent_id: Stable identifier, unique within the process
        parent: Collection currently holding the entity (set on add)
    """

    layer: Layer | None = None
    persistent_id: int = field(default_factory=_next_persistent_id)
    parent: Entities | None = field(default=None, repr=False)


@dataclass(eq=False)
class InstancedEntity(Entity):
    """
    Placement of a ComponentDefinition.

    Attributes:
        definition: The placed definition
        transformation: 4x4 local-to-parent transform
        name: Instance name (may be empty)
    """

    definition: ComponentDefinition | None = None
    transformation: np.ndarray = field(default_factory=identity_matrix)
    name: str = ""

    def __post_init__(self) -> None:
        if self.definition is None:
            raise ValueError(f"{self.__class__.__name__} requires a definition")
        self.transformation = as_matrix(self.transformation)

    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Axis-aligned bounds in the parent coordinate system."""
        assert self.definition is not None
        return bounds_of(transform_points(self.transformation, self.definition.local_points()))

    def bounds_corners(self) -> np.ndarray:
        """The 8 corners of bounds() as an (8, 3) array, parent space."""
        return box_corners(*self.bounds())


@dataclass(eq=False)
class ComponentInstance(InstancedEntity):
    """A component instance: the only entity kind that can be a run's root."""


@dataclass(eq=False)
class Group(InstancedEntity):
    """A group: an instance of a definition private to it."""


@dataclass(eq=False)
class Edge(Entity):
    """Raw edge geometry."""

    start: np.ndarray = field(default_factory=lambda: np.zeros(3))
    end: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.start = as_point(self.start)
        self.end = as_point(self.end)

    @property
    def length(self) -> float:
        return distance(self.start, self.end)


@dataclass(eq=False)
class LinearDimension(Entity):
    """
    A linear dimension annotation.

    The measured points are ``start`` and ``end``; the dimension line is drawn
    parallel to them, displaced by ``offset``.
    """

    start: np.ndarray = field(default_factory=lambda: np.zeros(3))
    end: np.ndarray = field(default_factory=lambda: np.zeros(3))
    offset: np.ndarray = field(default_factory=lambda: np.zeros(3))
    has_aligned_text: bool = False
    aligned_text_position: str = ALIGNED_TEXT_CENTER
    text: str = ""

    def __post_init__(self) -> None:
        self.start = as_point(self.start)
        self.end = as_point(self.end)
        self.offset = as_point(self.offset)

    @property
    def length(self) -> float:
        """Measured distance between start and end."""
        return distance(self.start, self.end)


@dataclass(eq=False)
class TextLabel(Entity):
    """A text annotation attached to a point, with a leader direction."""

    text: str = ""
    point: np.ndarray = field(default_factory=lambda: np.zeros(3))
    vector: np.ndarray = field(default_factory=lambda: np.zeros(3))

    def __post_init__(self) -> None:
        self.point = as_point(self.point)
        self.vector = as_point(self.vector)


# =============================================================================
# COLLECTIONS AND DEFINITIONS
# =============================================================================


class Entities:
    """
    Ordered entity collection owned by a definition or a document.

    All annotation creation goes through a collection so every created
    entity knows its container.
    """

    def __init__(self, owner: Any = None) -> None:
        self.owner = owner
        self._items: list[Entity] = []

    def __iter__(self) -> Iterator[Entity]:
        return iter(list(self._items))

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, entity: object) -> bool:
        return any(e is entity for e in self._items)

    def __getitem__(self, index: int) -> Entity:
        return self._items[index]

    def grep(self, entity_type: type[E]) -> list[E]:
        """All entities of the given type, in insertion order."""
        return [e for e in self._items if isinstance(e, entity_type)]

    def add(self, entity: E) -> E:
        """Append an entity and record this collection as its parent."""
        entity.parent = self
        self._items.append(entity)
        return entity

    def add_instance(
        self,
        definition: ComponentDefinition,
        transformation: np.ndarray | Sequence[Sequence[float]] | None = None,
        name: str = "",
        layer: Layer | None = None,
    ) -> ComponentInstance:
        """Place a component instance of ``definition``."""
        return self.add(ComponentInstance(
            definition=definition,
            transformation=as_matrix(transformation),
            name=name,
            layer=layer,
        ))

    def add_group(
        self,
        definition: ComponentDefinition,
        transformation: np.ndarray | Sequence[Sequence[float]] | None = None,
        name: str = "",
        layer: Layer | None = None,
    ) -> Group:
        """Place a group of ``definition``."""
        return self.add(Group(
            definition=definition,
            transformation=as_matrix(transformation),
            name=name,
            layer=layer,
        ))

    def add_edge(self, start: Sequence[float], end: Sequence[float]) -> Edge:
        """Add a raw edge."""
        return self.add(Edge(start=as_point(start), end=as_point(end)))

    def add_dimension_linear(
        self,
        start: Sequence[float] | np.ndarray,
        end: Sequence[float] | np.ndarray,
        offset: Sequence[float] | np.ndarray,
    ) -> LinearDimension:
        """Add a linear dimension measuring start→end, displaced by offset."""
        return self.add(LinearDimension(
            start=as_point(start),
            end=as_point(end),
            offset=as_point(offset),
        ))

    def add_text(
        self,
        text: str,
        point: Sequence[float] | np.ndarray,
        vector: Sequence[float] | np.ndarray | None = None,
    ) -> TextLabel:
        """Add a text label at ``point`` with an optional leader vector."""
        return self.add(TextLabel(
            text=text,
            point=as_point(point),
            vector=as_point(vector if vector is not None else (0.0, 0.0, 0.0)),
        ))

    def erase_entities(self, entities: Iterable[Entity]) -> int:
        """
        Remove entities from this collection.

        Raises:
            ValueError: If an entity is not held by this collection
        """
        doomed = list(entities)
        for entity in doomed:
            if entity not in self:
                raise ValueError(f"{entity.__class__.__name__} {entity.persistent_id} is not in this collection")
        doomed_ids = {id(e) for e in doomed}
        self._items = [e for e in self._items if id(e) not in doomed_ids]
        for entity in doomed:
            entity.parent = None
        return len(doomed)

    def snapshot(self) -> list[Entity]:
        """Copy of the current item list."""
        return list(self._items)

    def restore(self, items: list[Entity]) -> None:
        """Restore a snapshot taken with snapshot()."""
        self._items = list(items)
        for entity in self._items:
            entity.parent = self


@dataclass(eq=False)
class ComponentDefinition:
    """
    Reusable geometry.

    Attributes:
        name: Definition name (may be empty)
        vertices: (N, 3) mesh vertices in local coordinates, if any
        edges: Vertex index pairs forming the mesh edges
        box: Optional explicit local (min, max) bounds
        entities: Nested entities (instances, groups, raw geometry)
    """

    name: str = ""
    vertices: np.ndarray | None = None
    edges: list[tuple[int, int]] = field(default_factory=list)
    box: tuple[np.ndarray, np.ndarray] | None = None
    entities: Entities = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self.entities = Entities(owner=self)
        if self.vertices is not None:
            self.vertices = np.asarray(self.vertices, dtype=float).reshape(-1, 3)
        if self.box is not None:
            self.box = (as_point(self.box[0]), as_point(self.box[1]))

    @property
    def has_vertices(self) -> bool:
        return self.vertices is not None and len(self.vertices) > 0

    def has_nested_instances(self) -> bool:
        """True when any nested entity is itself an instance (container)."""
        return any(isinstance(e, InstancedEntity) for e in self.entities)

    def local_points(self) -> np.ndarray:
        """
        Points spanning the definition's geometry in local coordinates.

        Mesh vertices, raw edge endpoints, explicit box corners and the
        bounds corners of nested instances. An empty definition yields the
        local origin.
        """
        chunks: list[np.ndarray] = []
        if self.has_vertices:
            assert self.vertices is not None
            chunks.append(self.vertices)
        if self.box is not None:
            chunks.append(box_corners(*self.box))
        for entity in self.entities:
            if isinstance(entity, InstancedEntity):
                chunks.append(entity.bounds_corners())
            elif isinstance(entity, Edge):
                chunks.append(np.vstack([entity.start, entity.end]))
        if not chunks:
            return np.zeros((1, 3))
        return np.vstack(chunks)

    @property
    def bounds(self) -> tuple[np.ndarray, np.ndarray]:
        """Local axis-aligned (min, max) bounds."""
        return bounds_of(self.local_points())


def box_definition(
    name: str,
    size: Sequence[float],
    origin: Sequence[float] = (0.0, 0.0, 0.0),
) -> ComponentDefinition:
    """
    Rectangular beam definition with its 8 vertices and 12 edges.

    Args:
        name: Definition name
        size: (dx, dy, dz) extents
        origin: Local min corner
    """
    lo = as_point(origin)
    hi = lo + as_point(size)
    vertices = box_corners(lo, hi)
    edges = [(i, i | bit) for i in range(8) for bit in (1, 2, 4) if not i & bit]
    return ComponentDefinition(name=name, vertices=vertices, edges=edges)


def mesh_definition(
    name: str,
    vertices: Sequence[Sequence[float]],
    edges: Sequence[Sequence[int]] | None = None,
) -> ComponentDefinition:
    """Definition from explicit mesh vertices and optional edges."""
    pairs = [(int(a), int(b)) for a, b in (edges or [])]
    return ComponentDefinition(name=name, vertices=np.asarray(vertices, dtype=float), edges=pairs)
