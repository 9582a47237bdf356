"""
Dimensioning settings.

DimensionSettings holds every tunable distance, tolerance and name the
engine uses, defaulting to the values in ``skeldim.constants``. Settings can
be written to and read from YAML so a project can keep its own layout rules:

    outer_padding: 200.0
    stagger_step: 150.0
    max_dimensions: 500
    debug: false
"""

from dataclasses import asdict, dataclass, fields
from pathlib import Path
from typing import Any

import yaml

from .constants import (
    AXIS_ALIGN_TOL,
    BEAM_LENGTH_OFFSET,
    DEDUP_EPSILON,
    DIAG_OFFSET_PADDING,
    DIM_FOLDER,
    DIM_LAYER_PREFIX,
    DIMENSIONS_LABEL_PREFIX,
    MAX_DIMENSIONS,
    MIN_BEAM_SPAN,
    MIN_DIMENSION_GAP,
    OUTER_PADDING,
    STAGGER_STEP,
)

_POSITIVE_FIELDS = (
    "outer_padding",
    "stagger_step",
    "beam_length_offset",
    "diag_offset_padding",
    "dedup_epsilon",
    "min_dimension_gap",
    "min_beam_span",
    "axis_align_tol",
)


@dataclass
class DimensionSettings:
    """
    Layout rules and options for one dimensioning engine.

    Attributes:
        outer_padding: Gap from geometry to the first cumulative line (mm)
        stagger_step: Extra distance per successive cumulative line (mm)
        beam_length_offset: Distance of a per-beam length line from its beam (mm)
        diag_offset_padding: Clearance of frame diagonals beyond the silhouette (mm)
        dedup_epsilon: Positions closer than this are identical (mm)
        min_dimension_gap: Shortest dimension worth emitting (mm)
        min_beam_span: Longest projected extent a structural beam needs (mm)
        axis_align_tol: Allowed 1 - |cos| between a local axis and a view axis
        max_dimensions: Cap on dimensions emitted by one run
        folder_name: Layer folder grouping the dimension sublayers
        layer_prefix: Prefix of every dimension sublayer name
        label_prefix: Prefix of the summary label text
        debug: Print diagnostic output
    """

    outer_padding: float = OUTER_PADDING
    stagger_step: float = STAGGER_STEP
    beam_length_offset: float = BEAM_LENGTH_OFFSET
    diag_offset_padding: float = DIAG_OFFSET_PADDING
    dedup_epsilon: float = DEDUP_EPSILON
    min_dimension_gap: float = MIN_DIMENSION_GAP
    min_beam_span: float = MIN_BEAM_SPAN
    axis_align_tol: float = AXIS_ALIGN_TOL
    max_dimensions: int = MAX_DIMENSIONS
    folder_name: str = DIM_FOLDER
    layer_prefix: str = DIM_LAYER_PREFIX
    label_prefix: str = DIMENSIONS_LABEL_PREFIX
    debug: bool = False

    def __post_init__(self):
        for name in _POSITIVE_FIELDS:
            value = float(getattr(self, name))
            if value <= 0:
                raise ValueError(f"{name} must be positive, got {value}")
            setattr(self, name, value)
        self.max_dimensions = int(self.max_dimensions)
        if self.max_dimensions < 1:
            raise ValueError(f"max_dimensions must be at least 1, got {self.max_dimensions}")
        if not self.folder_name.strip():
            raise ValueError("folder_name must not be empty")

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DimensionSettings":
        """Build settings from a mapping, rejecting unknown keys."""
        data = dict(data or {})
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise ValueError(f"Unknown settings: {unknown}. Valid settings: {sorted(known)}")
        return cls(**data)

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "DimensionSettings":
        """Load settings from a YAML file."""
        with open(yaml_path) as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data)

    def to_yaml(self, yaml_path: str | Path) -> None:
        """Save settings to a YAML file."""
        with open(yaml_path, "w") as f:
            yaml.dump(self._to_dict(), f, default_flow_style=False, sort_keys=False)

    def _to_dict(self) -> dict[str, Any]:
        """Convert to a dictionary suitable for YAML serialization."""
        return asdict(self)
