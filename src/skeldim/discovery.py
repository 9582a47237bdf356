"""
Beam discovery.

Flattens a nested instance tree into the leaf parts (beams) it contains.
An instance whose definition holds further instances is a container: the
traversal steps inside it, accumulating its transform, but never emits it.
Every other instance is a leaf beam.

    frame (ComponentInstance)             <- root, transform T0
        ├── studs (Group, T1)             <- container, recursed with T0 @ T1
        │     ├── stud (T2)               -> (stud, T0 @ T1)
        │     └── stud (T3)               -> (stud, T0 @ T1)
        └── plate (T4)                    -> (plate, T0)

Each beam is paired with its PARENT's accumulated world transform: the
beam's bounds are already expressed in parent coordinates, so
``parent_t @ corner`` gives world corners.
"""

from __future__ import annotations

from collections.abc import Iterable

import numpy as np

from .scene import Entity, InstancedEntity


def collect_beams(
    entities: Iterable[Entity],
    accumulated_transform: np.ndarray,
) -> list[tuple[InstancedEntity, np.ndarray]]:
    """
    Collect all leaf instances below ``entities``.

    Args:
        entities: Entities of the definition being walked
        accumulated_transform: World transform of that definition's space

    Returns:
        (leaf instance, parent world transform) pairs in traversal order.
        Shared definitions are visited once per instance.
    """
    result: list[tuple[InstancedEntity, np.ndarray]] = []
    for entity in entities:
        if not isinstance(entity, InstancedEntity):
            continue
        assert entity.definition is not None
        into_child_t = accumulated_transform @ entity.transformation
        if entity.definition.has_nested_instances():
            result.extend(collect_beams(entity.definition.entities, into_child_t))
        else:
            result.append((entity, accumulated_transform))
    return result
