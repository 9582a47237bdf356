"""
Skeleton Dimensions

Generates construction dimensions for timber frame (skeleton) models. For
the selected component and the current view it adds:

- cumulative positioning dimensions locating the vertical members
- a length dimension for every structural beam
- the two overall diagonals of the frame

Usage:
    from skeldim import SkeletonDimensioner, load_scene

    doc = load_scene("wall.yaml")
    count = SkeletonDimensioner(doc).generate()

CadQuery models are imported with ``skeldim.cadquery_scene``.
"""

from .config import DimensionSettings
from .constants import VERSION
from .dimensions import DimensionRecord
from .document import Camera, Document
from .drawing import SkeletonDrawing
from .engine import DimensionPlan, DimensionPlanner, SkeletonDimensioner
from .errors import (
    DimensioningError,
    MultipleComponentsError,
    NotAComponentError,
    NothingSelectedError,
    SceneFormatError,
    SelectionError,
    SkeletonDimensionsError,
)
from .scene import (
    ComponentDefinition,
    ComponentInstance,
    Group,
    LinearDimension,
    TextLabel,
    box_definition,
    mesh_definition,
)
from .scene_io import load_scene, scene_from_dict
from .view import ViewBasis

__version__ = VERSION

__all__ = [
    # Main classes
    'SkeletonDimensioner',
    'DimensionPlanner',
    'DimensionPlan',
    'DimensionRecord',
    'DimensionSettings',
    'SkeletonDrawing',
    'ViewBasis',
    # Host model
    'Document',
    'Camera',
    'ComponentDefinition',
    'ComponentInstance',
    'Group',
    'LinearDimension',
    'TextLabel',
    'box_definition',
    'mesh_definition',
    # Scene files
    'load_scene',
    'scene_from_dict',
    # Errors
    'SkeletonDimensionsError',
    'SelectionError',
    'NothingSelectedError',
    'NotAComponentError',
    'MultipleComponentsError',
    'DimensioningError',
    'SceneFormatError',
]
