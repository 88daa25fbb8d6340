"""Geometric data model, primitives and result validation."""

from .geometry import (
    boxes_overlap,
    fill_rank,
    fill_ratio,
    fits_in_container,
    intervals_overlap,
    total_volume,
    units_overlap,
)
from .models import (
    AlgorithmType,
    Axis,
    Container,
    Item,
    Orientation,
    PackedUnit,
    PlacementResult,
    expand_units,
)
from .validator import (
    ConservationError,
    OrientationError,
    OutOfBoundsError,
    OverlapError,
    PlacementError,
    validate_result,
)

__all__ = [
    # Models
    "AlgorithmType",
    "Axis",
    "Container",
    "Item",
    "Orientation",
    "PackedUnit",
    "PlacementResult",
    "expand_units",
    # Geometry
    "boxes_overlap",
    "fill_rank",
    "fill_ratio",
    "fits_in_container",
    "intervals_overlap",
    "total_volume",
    "units_overlap",
    # Validation
    "ConservationError",
    "OrientationError",
    "OutOfBoundsError",
    "OverlapError",
    "PlacementError",
    "validate_result",
]
