"""Packing service: run several algorithms against one container."""

from __future__ import annotations

import logging
import threading
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Union

from container_packing.algorithms import get_algorithm
from container_packing.config import DEFAULT_ALGORITHMS, PackerSettings
from container_packing.core.models import Container, Item, PlacementResult

logger = logging.getLogger(__name__)


@dataclass
class AlgorithmRun:
    """One algorithm's result plus how long it took."""
    result: PlacementResult
    elapsed_ms: float

    def to_dict(self) -> dict:
        d = self.result.to_dict()
        d["elapsed_ms"] = self.elapsed_ms
        return d


@dataclass
class ContainerPackingResult:
    """Every requested algorithm's run for a single container."""
    container_id: int
    runs: List[AlgorithmRun] = field(default_factory=list)

    def best(self) -> Optional[AlgorithmRun]:
        """The run with the most packed volume; earlier runs win ties."""
        best: Optional[AlgorithmRun] = None
        for run in self.runs:
            if best is None or run.result.packed_volume > best.result.packed_volume:
                best = run
        return best

    def to_dict(self) -> dict:
        return {
            "container_id": self.container_id,
            "runs": [r.to_dict() for r in self.runs],
        }


def pack(
    container: Container,
    items: Sequence[Item],
    algorithms: Optional[Sequence[Union[str, int]]] = None,
    settings: Optional[PackerSettings] = None,
    cancel_event: Optional[threading.Event] = None,
) -> ContainerPackingResult:
    """
    Pack *items* into *container* with each algorithm in turn.

    Args:
        container:    The container.
        items:        Item types to pack.
        algorithms:   Registry names or ids (default: every default algorithm).
        settings:     Packer settings handed to each algorithm.
        cancel_event: Forwarded to every ``run()``.

    Returns:
        ContainerPackingResult with one AlgorithmRun per algorithm, in order.

    Raises:
        ValueError: an algorithm name or id is not registered.
    """
    keys = list(algorithms) if algorithms is not None else list(DEFAULT_ALGORITHMS)
    # resolve up front so a typo fails before any packing starts
    packers = [get_algorithm(key, settings) for key in keys]

    outcome = ContainerPackingResult(container_id=container.id)
    for packer in packers:
        start = time.perf_counter()
        result = packer.run(container, items, cancel_event=cancel_event)
        elapsed_ms = (time.perf_counter() - start) * 1000
        logger.info("container %s: %s packed %d/%d units (%.2f%%) in %.1f ms",
                    container.id, packer.name, len(result.packed_units),
                    result.unit_count, result.percent_container_used, elapsed_ms)
        outcome.runs.append(AlgorithmRun(result=result, elapsed_ms=elapsed_ms))
    return outcome
