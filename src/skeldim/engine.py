"""
Skeleton Dimensions Engine

Ties discovery, classification and the three dimension calculators into the
two public operations:

    dimensioner = SkeletonDimensioner(document, DimensionSettings(debug=True))
    created = dimensioner.generate()   # dimension the selected component
    removed = dimensioner.clear()      # remove what generate() made

Planning is pure: DimensionPlanner reads the selected instance and returns a
DimensionPlan without touching the document. SkeletonDimensioner wraps the
plan in one transaction:

    validate selection          (errors raised before any change)
    start "Add Skeleton Dimensions"
      sublayer in "maten" folder, visible
      erase previous output in scope
      plan: cumulative -> beam lengths -> frame diagonals (capped)
      add dimensions + summary label
    commit                      (abort + DimensioningError on failure)
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

import numpy as np

from .anchors import collect_length_dimensions
from .classify import Beam, ClassifiedBeam, build_beams, classify_beams
from .config import DimensionSettings
from .constants import DEBUG_PREFIX, OPERATION_CLEAR, OPERATION_GENERATE, VERSION
from .cumulative import cumulative_dimensions, frame_origin
from .dimensions import DimensionRecord, DimensionType
from .discovery import collect_beams
from .document import Document
from .errors import DimensioningError
from .frame import frame_diagonals
from .geometry import scale_vec
from .labels import label_text, replace_summary_label
from .layers import (
    annotations_on_layer,
    entities_containing_instance,
    find_or_create_sublayer,
    find_sublayer,
    selected_component_instance,
)
from .scene import ALIGNED_TEXT_ABOVE, ComponentInstance, Entities, Layer, LinearDimension
from .view import ViewBasis


def _debug(settings: DimensionSettings, msg: str) -> None:
    if settings.debug:
        print(f"{DEBUG_PREFIX} {msg}")


# =============================================================================
# PLANNING
# =============================================================================


@dataclass(eq=False)
class DimensionPlan:
    """
    Everything one run would create.

    Attributes:
        view: View basis the plan was computed for
        beams: Every discovered leaf part
        classified: The structural beams, with axis labels
        records: Dimensions in emission order, already moved toward the camera
        origin: Frame origin moved toward the camera (None without beams)
        capped: True when the dimension cap stopped emission early
    """

    view: ViewBasis
    beams: list[Beam] = field(default_factory=list)
    classified: list[ClassifiedBeam] = field(default_factory=list)
    records: list[DimensionRecord] = field(default_factory=list)
    origin: np.ndarray | None = None
    capped: bool = False

    @property
    def count(self) -> int:
        return len(self.records)

    def of_type(self, dimension_type: DimensionType) -> list[DimensionRecord]:
        """Records of one dimension type, in emission order."""
        return [r for r in self.records if r.dimension_type == dimension_type]


class DimensionPlanner:
    """
    Computes the dimensions of one component instance for one view.

    Steps run in a fixed order and share one cap (settings.max_dimensions):
    cumulative positions, then beam lengths, then frame diagonals. Once the
    cap is reached the remaining steps are skipped.
    """

    def __init__(self, view: ViewBasis, settings: DimensionSettings | None = None):
        self.view = view
        self.settings = settings or DimensionSettings()

    def plan(self, instance: ComponentInstance) -> DimensionPlan:
        """Plan the dimensions of ``instance``."""
        settings = self.settings
        view = self.view
        plan = DimensionPlan(view=view)

        assert instance.definition is not None
        pairs = collect_beams(instance.definition.entities, instance.transformation)
        plan.beams = build_beams(pairs, view)
        _debug(settings, f"beams found: {len(plan.beams)}")
        if not plan.beams:
            return plan

        plan.classified = classify_beams(plan.beams, view, settings)
        _debug(
            settings,
            f"structural beams (>= {settings.min_beam_span:g}mm span): "
            f"{len(plan.classified)} of {len(plan.beams)}",
        )
        if not plan.classified:
            return plan
        for i, cb in enumerate(plan.classified):
            _debug(
                settings,
                f"beam {i} '{cb.beam.name}': h={cb.h_extent:.2f} v={cb.v_extent:.2f} -> {cb.axis.upper()}",
            )

        all_corners = np.vstack([cb.beam.corners for cb in plan.classified])
        depths = all_corners @ view.depth
        # Dimensions render in front of the geometry
        nudge = scale_vec(-view.depth, float(depths.max() - depths.min()))

        origin = frame_origin(all_corners, view)
        plan.origin = origin + nudge
        _debug(settings, f"origin: {np.round(origin, 3).tolist()}, h={view.h(origin):.3f}, v={view.v(origin):.3f}")

        cap = settings.max_dimensions
        records = cumulative_dimensions(plan.classified, origin, all_corners, view, settings, max_count=cap)
        below = sum(1 for r in records if r.bucket == "below")
        _debug(settings, f"cumulative dims: {below} below, {len(records) - below} above")

        if len(records) < cap:
            lengths = collect_length_dimensions(plan.classified, view, settings)
            records += lengths[:cap - len(records)]
            _debug(settings, f"beam length dims: {len(lengths)} unique")

        if len(records) < cap:
            diagonals = frame_diagonals(all_corners, view, settings)
            room = cap - len(records)
            records += diagonals[:room]
            _debug(settings, f"frame diagonals: {len(diagonals)}")
            plan.capped = len(diagonals) > room
        else:
            plan.capped = True

        if plan.capped:
            _debug(settings, f"dimension cap ({cap}) reached, remaining steps skipped")

        plan.records = [r.shifted(nudge) for r in records]
        return plan


# =============================================================================
# ORCHESTRATION
# =============================================================================


class SkeletonDimensioner:
    """
    Generates and clears skeleton dimensions on a document.

    Args:
        document: Document whose selection and camera drive the run
        settings: Layout rules and options
        version: Version shown on the summary label
        clock: Returns the time shown on the summary label
    """

    def __init__(
        self,
        document: Document,
        settings: DimensionSettings | None = None,
        version: str = VERSION,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.document = document
        self.settings = settings or DimensionSettings()
        self.version = version
        self.clock = clock
        self.last_plan: DimensionPlan | None = None

    def generate(self) -> int:
        """
        Dimension the selected component instance.

        Returns:
            Number of dimensions created

        Raises:
            SelectionError: The selection is not exactly one component
            DimensioningError: The run failed and was rolled back
        """
        doc = self.document
        instance = selected_component_instance(doc.selection)
        view = ViewBasis.from_camera(doc.camera)

        doc.start_operation(OPERATION_GENERATE, True)
        try:
            layer = find_or_create_sublayer(doc, instance, self.settings)
            folder = layer.folder.name if layer.folder else "none"
            _debug(self.settings, f"Dimension sublayer: '{layer.name}' (folder: '{folder}')")

            entities = entities_containing_instance(doc, instance)
            stale = annotations_on_layer(entities, layer)
            if stale:
                entities.erase_entities(stale)
                _debug(self.settings, f"removed {len(stale)} previous annotation(s)")

            plan = DimensionPlanner(view, self.settings).plan(instance)
            for record in plan.records:
                self._add_dimension(entities, record, layer)

            if plan.count and plan.origin is not None:
                text = label_text(self.settings.label_prefix, self.version, self.clock())
                replace_summary_label(entities, layer, plan.origin, view, text, self.settings.label_prefix)
        except Exception as e:
            doc.abort_operation()
            raise DimensioningError(f"Skeleton Dimensions failed:\n{e}") from e
        doc.commit_operation()

        self.last_plan = plan
        _debug(self.settings, f"Done. Added {plan.count} dimension(s).")
        return plan.count

    def clear(self) -> int:
        """
        Remove the selected component's dimensions and summary label.

        Returns:
            Number of annotations removed (0 when there was nothing to clear)

        Raises:
            SelectionError: The selection is not exactly one component
            DimensioningError: Erasing failed and was rolled back
        """
        doc = self.document
        instance = selected_component_instance(doc.selection)

        layer = find_sublayer(doc, instance, self.settings)
        entities = entities_containing_instance(doc, instance)
        doomed = annotations_on_layer(entities, layer) if layer is not None else []
        if not doomed:
            _debug(self.settings, "No dimensions found to clear.")
            return 0

        doc.start_operation(OPERATION_CLEAR, True)
        try:
            removed = entities.erase_entities(doomed)
        except Exception as e:
            doc.abort_operation()
            raise DimensioningError(f"Clear Dimensions failed:\n{e}") from e
        doc.commit_operation()

        _debug(self.settings, f"Cleared {removed} annotation(s).")
        return removed

    @staticmethod
    def _add_dimension(entities: Entities, record: DimensionRecord, layer: Layer) -> LinearDimension:
        dim = entities.add_dimension_linear(record.start, record.end, record.offset)
        dim.has_aligned_text = True
        dim.aligned_text_position = ALIGNED_TEXT_ABOVE
        dim.layer = layer
        return dim
