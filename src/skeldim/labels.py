"""Summary label recording when and by which version dimensions were made."""

from __future__ import annotations

from datetime import datetime

import numpy as np

from .geometry import normalize
from .scene import Entities, Layer, TextLabel
from .view import ViewBasis


def label_text(prefix: str, version: str, when: datetime) -> str:
    """e.g. ``"Dimensions: v0.3.0\\n2026-10-19 14:05"``."""
    return f"{prefix} v{version}\n{when:%Y-%m-%d %H:%M}"


def label_direction(view: ViewBasis) -> np.ndarray:
    """Leader direction pointing right and down on screen."""
    return normalize(view.horizontal - view.vertical)


def replace_summary_label(
    entities: Entities,
    layer: Layer,
    point: np.ndarray,
    view: ViewBasis,
    text: str,
    prefix: str,
) -> TextLabel:
    """Erase earlier summary labels on ``layer`` and add a new one at ``point``."""
    stale = [t for t in entities.grep(TextLabel) if t.layer is layer and t.text.startswith(prefix)]
    if stale:
        entities.erase_entities(stale)
    label = entities.add_text(text, point, label_direction(view))
    label.layer = layer
    return label
