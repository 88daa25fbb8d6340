"""
Algorithm contract — abstract base class for every packing algorithm.

Every algorithm exposes the same operation::

    result = algorithm.run(container, items, cancel_event=None)

``run()`` is the only public entry point. It expands item quantities into
fresh units, sends degenerate input straight to the unpacked list, hands the
rest to the subclass's ``_pack()``, then assembles (and optionally validates)
the ``PlacementResult``.

Creating an algorithm
~~~~~~~~~~~~~~~~~~~~~
1. Subclass ``PackingAlgorithm``, set ``name`` and ``algorithm_id``.
2. Implement ``_pack()``; keep all mutable search state local to the call.
3. Decorate with ``@register_algorithm``.
4. Import the module in ``algorithms/__init__.py``.
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Type, Union

from container_packing.config import PackerSettings
from container_packing.core.models import Container, Item, PackedUnit, PlacementResult, expand_units
from container_packing.core.validator import validate_result

logger = logging.getLogger(__name__)


@dataclass
class PackOutcome:
    """What ``_pack()`` hands back to ``run()``."""
    packed: List[PackedUnit] = field(default_factory=list)
    unpacked: List[PackedUnit] = field(default_factory=list)
    diagnostics: dict = field(default_factory=dict)


class PackingAlgorithm(ABC):
    """
    Abstract base for single-container packing algorithms.

    Instances hold only immutable settings, so one instance may serve
    concurrent ``run()`` calls on disjoint inputs.
    """

    name: str = "unnamed"
    algorithm_id: int = 0

    def __init__(self, settings: Optional[PackerSettings] = None) -> None:
        self.settings = settings or PackerSettings()

    def run(
        self,
        container: Container,
        items: Sequence[Item],
        cancel_event: Optional[threading.Event] = None,
    ) -> PlacementResult:
        """
        Pack *items* into *container*.

        Args:
            container:    The container to fill.
            items:        Item types; quantities <= 0 are ignored.
            cancel_event: Optional event; when set, the search stops at the
                          next check point and returns what it has.

        Returns:
            A ``PlacementResult`` in which every expanded unit appears exactly
            once, packed or unpacked.

        Raises:
            PlacementError: the result breaks an invariant (only when
                            ``settings.validate_results`` is on).
        """
        units = expand_units(items)
        packable = [u for u in units if not u.item.is_degenerate]
        degenerate = [u for u in units if u.item.is_degenerate]
        if degenerate:
            logger.debug("%s: %d unit(s) with non-positive dimensions left unpacked",
                         self.name, len(degenerate))

        if container.is_degenerate or not packable:
            outcome = PackOutcome(unpacked=list(packable))
        else:
            outcome = self._pack(container, packable, cancel_event)

        result = PlacementResult(
            container=container,
            algorithm_id=int(self.algorithm_id),
            algorithm_name=self.name,
            packed_units=outcome.packed,
            unpacked_units=outcome.unpacked + degenerate,
            diagnostics=outcome.diagnostics,
        )

        if self.settings.validate_results:
            validate_result(result, container, expected_units=len(units),
                            eps=self.settings.validation_tolerance)

        logger.debug(
            "%s: packed %d/%d units, %.2f%% of container volume",
            self.name, len(result.packed_units), result.unit_count,
            result.percent_container_used,
        )
        return result

    @abstractmethod
    def _pack(
        self,
        container: Container,
        units: List[PackedUnit],
        cancel_event: Optional[threading.Event],
    ) -> PackOutcome:
        """
        Place *units* (all with positive dimensions) into a non-degenerate
        *container*. Must report each unit exactly once.
        """
        ...


# ─────────────────────────────────────────────────────────────────────────────
# Algorithm registry
# ─────────────────────────────────────────────────────────────────────────────

ALGORITHM_REGISTRY: Dict[str, Type[PackingAlgorithm]] = {}


def register_algorithm(cls: Type[PackingAlgorithm]) -> Type[PackingAlgorithm]:
    """Class decorator — registers an algorithm under its ``name``."""
    ALGORITHM_REGISTRY[cls.name] = cls
    return cls


def get_algorithm(
    key: Union[str, int],
    settings: Optional[PackerSettings] = None,
) -> PackingAlgorithm:
    """Look up an algorithm by name or integer id and return a new instance."""
    if isinstance(key, str) and key in ALGORITHM_REGISTRY:
        return ALGORITHM_REGISTRY[key](settings)
    if not isinstance(key, str):
        for cls in ALGORITHM_REGISTRY.values():
            if int(cls.algorithm_id) == int(key):
                return cls(settings)
    available = ", ".join(sorted(ALGORITHM_REGISTRY.keys()))
    raise ValueError(f"Unknown algorithm '{key}'.  Available: [{available}]")
