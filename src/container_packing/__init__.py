"""
container_packing — single-container 3D packing heuristics.

Quick start::

    from container_packing import Container, Item, get_algorithm

    packer = get_algorithm("layer_heuristic")
    result = packer.run(Container(10, 10, 10), [Item(id=1, length=5, width=5, height=5, quantity=8)])
    result.is_complete_pack  # True
"""

from .algorithms import (
    ALGORITHM_REGISTRY,
    LayerHeuristicPacker,
    OrientationSearchPacker,
    PackingAlgorithm,
    get_algorithm,
)
from .config import PackerSettings, RunnerSettings, load_settings
from .core import (
    AlgorithmType,
    Container,
    Item,
    PackedUnit,
    PlacementError,
    PlacementResult,
    validate_result,
)
from .runner.service import AlgorithmRun, ContainerPackingResult, pack

__version__ = "0.1.0"

__all__ = [
    "ALGORITHM_REGISTRY",
    "AlgorithmRun",
    "AlgorithmType",
    "Container",
    "ContainerPackingResult",
    "Item",
    "LayerHeuristicPacker",
    "OrientationSearchPacker",
    "PackedUnit",
    "PackerSettings",
    "PackingAlgorithm",
    "PlacementError",
    "PlacementResult",
    "RunnerSettings",
    "get_algorithm",
    "load_settings",
    "pack",
    "validate_result",
]
