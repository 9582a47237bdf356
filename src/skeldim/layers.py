"""
Output sublayers, scopes and selection.

Every selected component gets its own sublayer for its dimensions, filed
under one folder:

    maten/                 <- folder
        maten Wall A       <- sublayer of the instance named "Wall A"
        maten roof truss   <- sublayer of an unnamed "roof truss" instance

A run only sees annotations on its sublayer inside the collection holding
the selected instance, so dimensioning one selection never touches the
output of another.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from .constants import DEFAULT_LAYER_NAMES
from .errors import (
    MultipleComponentsError,
    NotAComponentError,
    NothingSelectedError,
)
from .scene import ComponentInstance, Entities, Entity, Layer, LinearDimension, TextLabel

if TYPE_CHECKING:
    from .config import DimensionSettings
    from .document import Document


def selected_component_instance(selection: Sequence[Entity]) -> ComponentInstance:
    """
    The single selected component instance.

    Raises:
        NothingSelectedError: The selection is empty
        NotAComponentError: Nothing selected is a component instance
        MultipleComponentsError: More than one component instance is selected
    """
    if not selection:
        raise NothingSelectedError()
    candidates = [e for e in selection if isinstance(e, ComponentInstance)]
    if not candidates:
        raise NotAComponentError()
    if len(candidates) > 1:
        raise MultipleComponentsError(len(candidates))
    return candidates[0]


def sublayer_name_for(instance: ComponentInstance, prefix: str) -> str:
    """
    Name of the sublayer holding an instance's dimensions.

    The instance's own tag wins unless it is a default tag, then the
    instance name, the definition name and finally the persistent id.
    """
    tag = instance.layer
    if tag is not None and tag.name not in DEFAULT_LAYER_NAMES:
        return f"{prefix}{tag.name}"
    name = instance.name.strip()
    if name:
        return f"{prefix}{name}"
    definition_name = instance.definition.name.strip() if instance.definition else ""
    if definition_name:
        return f"{prefix}{definition_name}"
    return f"{prefix}{instance.persistent_id}"


def find_sublayer(
    document: "Document",
    instance: ComponentInstance,
    settings: "DimensionSettings",
) -> Layer | None:
    """Existing sublayer of ``instance``, or None."""
    return document.layers.find(sublayer_name_for(instance, settings.layer_prefix))


def find_or_create_sublayer(
    document: "Document",
    instance: ComponentInstance,
    settings: "DimensionSettings",
) -> Layer:
    """Sublayer of ``instance`` inside the dimension folder, made visible."""
    folder = document.layers.add_folder(settings.folder_name)
    name = sublayer_name_for(instance, settings.layer_prefix)
    layer = document.layers.find(name)
    if layer is None:
        layer = document.layers.add(name)
        layer.folder = folder
    layer.visible = True
    return layer


def entities_containing_instance(document: "Document", instance: Entity) -> Entities:
    """Collection holding ``instance``; the document's entities when detached."""
    if instance.parent is not None:
        return instance.parent
    return document.entities


def annotations_on_layer(entities: Entities, layer: Layer) -> list[Entity]:
    """Dimensions and labels on ``layer`` in ``entities``."""
    found: list[Entity] = [d for d in entities.grep(LinearDimension) if d.layer is layer]
    found.extend(label for label in entities.grep(TextLabel) if label.layer is layer)
    return found
