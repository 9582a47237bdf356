"""Shared scene builders for the skeldim tests."""

from datetime import datetime

import numpy as np
import pytest

from skeldim.config import DimensionSettings
from skeldim.document import Camera, Document
from skeldim.geometry import translation_matrix
from skeldim.scene import ComponentDefinition, ComponentInstance, box_definition
from skeldim.view import ViewBasis

FIXED_TIME = datetime(2026, 1, 2, 3, 4)


def add_beam(
    frame: ComponentDefinition,
    name: str,
    size: tuple[float, float, float],
    position: tuple[float, float, float],
    rotation: np.ndarray | None = None,
    origin: tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> ComponentInstance:
    """Place a box beam of ``size`` in ``frame``."""
    T = translation_matrix(*position)
    if rotation is not None:
        T = T @ rotation
    return frame.entities.add_instance(box_definition(name, size, origin), T, name=name)


def frame_document(
    beams: list[tuple[str, tuple[float, float, float], tuple[float, float, float]]],
    name: str = "Wall A",
) -> tuple[Document, ComponentInstance]:
    """Document with one selected frame component built from (name, size, position) beams."""
    doc = Document(camera=Camera(direction=(0.0, 1.0, 0.0), up=(0.0, 0.0, 1.0)))
    frame = doc.add_definition(ComponentDefinition(name="frame"))
    for beam_name, size, position in beams:
        add_beam(frame, beam_name, size, position)
    instance = doc.entities.add_instance(frame, name=name)
    doc.select(instance)
    return doc, instance


def rectangular_frame() -> tuple[Document, ComponentInstance]:
    """Two posts at x=0 and x=2000 (0..2400 high) and a top beam at 2400."""
    return frame_document([
        ("left post", (0.5, 45.0, 2400.0), (0.0, 0.0, 0.0)),
        ("right post", (0.5, 45.0, 2400.0), (1999.5, 0.0, 0.0)),
        ("top beam", (2000.0, 45.0, 0.5), (0.0, 0.0, 2399.5)),
    ])


def stud_wall(count: int, spacing: float = 500.0) -> tuple[Document, ComponentInstance]:
    """``count`` 45x70x2400 studs, ``spacing`` apart."""
    return frame_document([
        (f"stud {i + 1}", (45.0, 70.0, 2400.0), (i * spacing, 0.0, 0.0))
        for i in range(count)
    ])


@pytest.fixture
def front_view() -> ViewBasis:
    return ViewBasis.from_name("front")


@pytest.fixture
def settings() -> DimensionSettings:
    return DimensionSettings()


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_TIME
