"""
Exceptions raised by the dimensioning engine.

Selection errors are raised before any document change and carry a message
meant for the user. Everything that fails once a run has started is
reported as a DimensioningError after the document has been rolled back.
"""


class SkeletonDimensionsError(Exception):
    """Base class for all skeldim errors."""


class SelectionError(SkeletonDimensionsError, ValueError):
    """The selection does not hold exactly one component instance."""


class NothingSelectedError(SelectionError):
    def __init__(self) -> None:
        super().__init__(
            "Nothing selected.\n\nSelect exactly one component instance, then run again."
        )


class NotAComponentError(SelectionError):
    def __init__(self) -> None:
        super().__init__(
            "Selection is not a component.\n\nSelect exactly one component instance "
            "(not a group or raw geometry), then run again."
        )


class MultipleComponentsError(SelectionError):
    def __init__(self, count: int) -> None:
        self.count = count
        super().__init__(
            f"Too many components selected ({count}).\n\n"
            "Select exactly one component, then run again."
        )


class DimensioningError(SkeletonDimensionsError, RuntimeError):
    """A run failed after it started; the document was rolled back."""


class SceneFormatError(SkeletonDimensionsError, ValueError):
    """A scene description could not be turned into a document."""
