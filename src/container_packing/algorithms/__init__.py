"""
Packing algorithms.

Importing this package registers every algorithm in ``ALGORITHM_REGISTRY``.
"""

from .base import (
    ALGORITHM_REGISTRY,
    PackingAlgorithm,
    PackOutcome,
    get_algorithm,
    register_algorithm,
)
from .layer_heuristic import VARIANTS, AxisVariant, LayerHeuristicPacker
from .orientation_search import OrientationSearchPacker
from .skyline import GapNode, Skyline

__all__ = [
    "ALGORITHM_REGISTRY",
    "AxisVariant",
    "GapNode",
    "LayerHeuristicPacker",
    "OrientationSearchPacker",
    "PackOutcome",
    "PackingAlgorithm",
    "Skyline",
    "VARIANTS",
    "get_algorithm",
    "register_algorithm",
]
