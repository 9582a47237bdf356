"""
In-memory host document.

The Document plays the part of the host modelling application: it owns the
top-level entities, the definitions, the layer table, the current selection
and the active camera, and it wraps mutations in operations (transactions).

Transactions snapshot every entity collection and the layer table when an
operation starts; abort_operation() restores the snapshot, so a failed run
leaves the document exactly as it was.
"""

from __future__ import annotations

from collections.abc import Iterator
from dataclasses import dataclass, field

import numpy as np

from .scene import (
    ComponentDefinition,
    Entities,
    Entity,
    InstancedEntity,
    Layer,
    LayerFolder,
)
from .view import ViewBasis

DEFAULT_LAYER_NAME = "Untagged"


@dataclass
class Camera:
    """
    Camera orientation.

    Attributes:
        direction: Viewing direction (from the eye toward the target)
        up: Up hint
    """

    direction: tuple[float, float, float] = (0.0, 1.0, 0.0)
    up: tuple[float, float, float] = (0.0, 0.0, 1.0)

    @property
    def xaxis(self) -> np.ndarray:
        """Screen-right unit vector."""
        return ViewBasis.from_camera(self).horizontal

    @property
    def yaxis(self) -> np.ndarray:
        """Screen-up unit vector."""
        return ViewBasis.from_camera(self).vertical


class LayerTable:
    """Named layers and layer folders of a document."""

    def __init__(self) -> None:
        self._layers: list[Layer] = [Layer(DEFAULT_LAYER_NAME)]
        self._folders: list[LayerFolder] = []

    def __iter__(self) -> Iterator[Layer]:
        return iter(list(self._layers))

    def __len__(self) -> int:
        return len(self._layers)

    @property
    def default(self) -> Layer:
        """The untagged default layer."""
        return self._layers[0]

    @property
    def folders(self) -> list[LayerFolder]:
        return list(self._folders)

    def find(self, name: str) -> Layer | None:
        """Layer with the given name, or None."""
        for layer in self._layers:
            if layer.name == name:
                return layer
        return None

    def add(self, name: str) -> Layer:
        """Return the layer named ``name``, creating it when missing."""
        existing = self.find(name)
        if existing is not None:
            return existing
        layer = Layer(name)
        self._layers.append(layer)
        return layer

    def find_folder(self, name: str) -> LayerFolder | None:
        """Folder with the given name, or None."""
        for folder in self._folders:
            if folder.name == name:
                return folder
        return None

    def add_folder(self, name: str) -> LayerFolder:
        """Return the folder named ``name``, creating it when missing."""
        existing = self.find_folder(name)
        if existing is not None:
            return existing
        folder = LayerFolder(name)
        self._folders.append(folder)
        return folder

    def snapshot(self) -> tuple[list[Layer], list[LayerFolder], list[tuple[Layer, bool, LayerFolder | None]]]:
        states = [(layer, layer.visible, layer.folder) for layer in self._layers]
        return (list(self._layers), list(self._folders), states)

    def restore(self, snapshot: tuple[list[Layer], list[LayerFolder], list[tuple[Layer, bool, LayerFolder | None]]]) -> None:
        layers, folders, states = snapshot
        self._layers = list(layers)
        self._folders = list(folders)
        for layer, visible, folder in states:
            layer.visible = visible
            layer.folder = folder


@dataclass
class _OperationState:
    name: str
    transparent: bool
    collections: list[tuple[Entities, list[Entity]]]
    layers: tuple = field(repr=False)


class Document:
    """
    A model: entities, definitions, layers, selection and camera.

    Usage:
        doc = Document()
        frame = doc.add_definition(ComponentDefinition(name="frame"))
        frame.entities.add_instance(box_definition("stud", (45, 70, 2400)))
        inst = doc.entities.add_instance(frame, name="Wall A")
        doc.select(inst)
    """

    def __init__(self, camera: Camera | None = None) -> None:
        self.entities = Entities(owner=self)
        self.layers = LayerTable()
        self.definitions: list[ComponentDefinition] = []
        self.selection: list[Entity] = []
        self.camera = camera or Camera()
        self.operation_log: list[str] = []
        self._operation: _OperationState | None = None

    # ------------------------------------------------------------------
    # Definitions and selection
    # ------------------------------------------------------------------

    def add_definition(self, definition: ComponentDefinition) -> ComponentDefinition:
        """Register a definition with the document."""
        if not any(d is definition for d in self.definitions):
            self.definitions.append(definition)
        return definition

    def find_definition(self, name: str) -> ComponentDefinition | None:
        for definition in self.definitions:
            if definition.name == name:
                return definition
        return None

    def select(self, *entities: Entity) -> None:
        """Replace the selection."""
        self.selection = list(entities)

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    @property
    def active_operation(self) -> str | None:
        """Name of the running operation, if any."""
        return self._operation.name if self._operation else None

    def start_operation(self, name: str, transparent: bool = False) -> None:
        """
        Begin an undoable operation.

        Raises:
            RuntimeError: If another operation is already running
        """
        if self._operation is not None:
            raise RuntimeError(
                f"Cannot start '{name}': operation '{self._operation.name}' is still active"
            )
        self._operation = _OperationState(
            name=name,
            transparent=transparent,
            collections=[(c, c.snapshot()) for c in self._collections()],
            layers=self.layers.snapshot(),
        )

    def commit_operation(self) -> None:
        """Finish the running operation, keeping its changes."""
        if self._operation is None:
            raise RuntimeError("No operation to commit")
        self.operation_log.append(self._operation.name)
        self._operation = None

    def abort_operation(self) -> None:
        """Roll back every change made since start_operation()."""
        if self._operation is None:
            raise RuntimeError("No operation to abort")
        for collection, items in self._operation.collections:
            collection.restore(items)
        self.layers.restore(self._operation.layers)
        self._operation = None

    def _collections(self) -> list[Entities]:
        """Every entity collection reachable from the document."""
        seen: dict[int, Entities] = {}
        pending = [self.entities] + [d.entities for d in self.definitions]
        while pending:
            collection = pending.pop()
            if id(collection) in seen:
                continue
            seen[id(collection)] = collection
            for entity in collection:
                if isinstance(entity, InstancedEntity) and entity.definition is not None:
                    pending.append(entity.definition.entities)
        return list(seen.values())
