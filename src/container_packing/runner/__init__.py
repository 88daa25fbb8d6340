"""Packing service, problem files and the experiment runner."""

from .dataset import ORDERING_STRATEGIES, generate_items, get_ordering_strategy
from .problems import Problem, load_problems
from .service import AlgorithmRun, ContainerPackingResult, pack

__all__ = [
    "AlgorithmRun",
    "ContainerPackingResult",
    "ORDERING_STRATEGIES",
    "Problem",
    "generate_items",
    "get_ordering_strategy",
    "load_problems",
    "pack",
]
