"""
Skeleton dimensioning constants.

Layout distances, tolerances, naming and standard views used by the
dimensioning engine. All lengths are in millimetres.
"""

# =============================================================================
# LAYOUT CONSTANTS
# =============================================================================

# Gap between the beam geometry edge and the first cumulative dim line
OUTER_PADDING = 200.0

# How much further out each successive cumulative dim line is placed
STAGGER_STEP = 150.0

# How far alongside a beam its own length dimension is placed
BEAM_LENGTH_OFFSET = 80.0

# Clearance added beyond the silhouette for the overall frame diagonals
DIAG_OFFSET_PADDING = 100.0


# =============================================================================
# TOLERANCES
# =============================================================================

# Positions within this distance are treated as identical during deduplication
DEDUP_EPSILON = 0.1

# Minimum distance to bother adding a dimension at all
MIN_DIMENSION_GAP = 1.0

# Longest projected extent a part needs to count as a structural beam.
# Filters out fasteners, connectors and other small hardware.
MIN_BEAM_SPAN = 10.0

# A local axis is aligned with a view axis when 1 - |cos| is below this
AXIS_ALIGN_TOL = 1.0e-3

# Projected lengths below this are degenerate (no usable direction)
DEGENERATE_LENGTH = 0.001


# =============================================================================
# LIMITS
# =============================================================================

# Hard cap on dimensions emitted by one run
MAX_DIMENSIONS = 500


# =============================================================================
# NAMING
# =============================================================================

# Tag folder that groups all dimension sublayers
DIM_FOLDER = "maten"

# Prefix applied to every dimension sublayer name
DIM_LAYER_PREFIX = "maten "

# Tag names that mean "no tag assigned"
DEFAULT_LAYER_NAMES = ("Layer0", "Untagged")

# Summary label text starts with this prefix
DIMENSIONS_LABEL_PREFIX = "Dimensions:"

# Transaction names
OPERATION_GENERATE = "Add Skeleton Dimensions"
OPERATION_CLEAR = "Clear Skeleton Dimensions"

# Prefix for diagnostic output
DEBUG_PREFIX = "[SkeletonDimensions]"


# =============================================================================
# STANDARD VIEWS
# =============================================================================

# Coordinate system: X=East, Y=North, Z=Up.
# Directions are where the camera LOOKS (from the eye toward the model).
VIEW_DIRECTIONS: dict[str, tuple[float, float, float]] = {
    "front": (0.0, 1.0, 0.0),
    "back": (0.0, -1.0, 0.0),
    "right": (-1.0, 0.0, 0.0),
    "left": (1.0, 0.0, 0.0),
    "top": (0.0, 0.0, -1.0),
    "bottom": (0.0, 0.0, 1.0),
    "iso": (-1.0, 1.0, -1.0),
}

VIEW_UP_VECTORS: dict[str, tuple[float, float, float]] = {
    "front": (0.0, 0.0, 1.0),
    "back": (0.0, 0.0, 1.0),
    "right": (0.0, 0.0, 1.0),
    "left": (0.0, 0.0, 1.0),
    "top": (0.0, 1.0, 0.0),
    "bottom": (0.0, 1.0, 0.0),
    "iso": (0.0, 0.0, 1.0),
}


# =============================================================================
# SVG DRAWING
# =============================================================================

# 11x17 inch sheet in mm (landscape orientation)
SHEET_WIDTH_MM = 431.8
SHEET_HEIGHT_MM = 279.4
MARGIN = 10

BEAM_STROKE_WIDTH = 0.35
BEAM_COLOR = "#000000"
DIMENSION_COLOR = "#1f4e9c"


# =============================================================================
# VERSION
# =============================================================================

# Package version, shown on the summary label
VERSION = "0.1.0"
