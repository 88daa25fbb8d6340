"""
Orientation search — brute-force recursive packing, largest volume first.

Algorithm overview
~~~~~~~~~~~~~~~~~~
Units are sorted by descending volume (stable, so ties keep input order)
and placed one at a time. For the unit at the head of the queue, every
axis orientation is tried; each one is placed by a first-fit scan and the
rest of the queue is then packed the same way. The branch whose terminal
state has the highest fill rank wins; the first branch wins ties.

This is a one-level greedy lookahead, not backtracking: once a unit's
orientation is chosen it is never revisited. The worst case is 6^N
placements, so it is only practical for modest N.

First-fit scan:
  Candidate origins are integer offsets, height outermost, then width,
  then length. At an obstructed origin the scan jumps along the length
  axis to just past the obstructing box's far face.

Two prunings leave the result identical to the exhaustive search:
  * orientations with the same packed triple are tried once (their
    subtrees are identical and the first one would win the tie anyway);
  * a branch that packs every unit has the highest rank reachable at
    this step, so later orientations can only tie and are skipped.
"""

from __future__ import annotations

import logging
import math
import threading
from typing import List, Optional

from container_packing.algorithms.base import PackingAlgorithm, PackOutcome, register_algorithm
from container_packing.core.geometry import boxes_overlap, fill_rank, intervals_overlap
from container_packing.core.models import AlgorithmType, Container, Orientation, PackedUnit

logger = logging.getLogger(__name__)


class _Level:
    """One open queue position: the orientations left to try and the best branch so far."""

    __slots__ = ("committed", "orientations", "next_index", "best", "best_rank", "settled")

    def __init__(self, committed: List[PackedUnit], orientations: List[Orientation]) -> None:
        self.committed = committed
        self.orientations = orientations
        self.next_index = 0
        self.best: Optional[List[PackedUnit]] = None
        self.best_rank = -1
        self.settled = False

    def offer(self, outcome: List[PackedUnit], rank: int) -> None:
        if self.best is None or rank > self.best_rank:
            self.best, self.best_rank = outcome, rank
        if all(u.is_packed for u in outcome):
            self.settled = True

    @property
    def exhausted(self) -> bool:
        return self.settled or self.next_index == len(self.orientations)


class _SearchContext:
    """Mutable state for one ``run()``; never shared between calls."""

    def __init__(
        self,
        container: Container,
        cancel_event: Optional[threading.Event],
        log_placements: bool,
    ) -> None:
        self.container = container
        self.cancel_event = cancel_event
        self.log_placements = log_placements
        self.branches_explored = 0
        self.cancelled = False

    def is_cancelled(self) -> bool:
        if not self.cancelled and self.cancel_event is not None and self.cancel_event.is_set():
            self.cancelled = True
        return self.cancelled

    # ── Search ────────────────────────────────────────────────────────────

    def fill(self, queue: List[PackedUnit]) -> List[PackedUnit]:
        """
        Pack *queue* in order and return the best terminal state: every
        unit, placed or not.

        Each queue position is a ``_Level`` on an explicit stack, so the
        depth of the search is not bounded by the interpreter's call stack.
        """
        levels: List[_Level] = []
        committed: List[PackedUnit] = []
        while True:
            depth = len(levels)
            if depth == len(queue):
                outcome = committed
            elif self.is_cancelled():
                outcome = committed + [u.fresh_copy() for u in queue[depth:]]
            else:
                level = _Level(committed, list(Orientation.unique(*queue[depth].raw_dims)))
                levels.append(level)
                committed = self._branch(level, queue[depth])
                continue

            # hand the terminal state back up until a level has orientations left
            while levels:
                level = levels[-1]
                level.offer(outcome, fill_rank(outcome, self.container))
                if not level.exhausted:
                    committed = self._branch(level, queue[len(levels) - 1])
                    break
                levels.pop()
                outcome = level.best
            else:
                return outcome

    def _branch(self, level: _Level, head: PackedUnit) -> List[PackedUnit]:
        """Place *head* in the level's next orientation and return the extended state."""
        orientation = level.orientations[level.next_index]
        level.next_index += 1
        self.branches_explored += 1
        candidate = head.fresh_copy().orient(orientation)
        self.place(candidate, level.committed)
        return level.committed + [candidate]

    # ── First-fit placement ───────────────────────────────────────────────

    def place(self, unit: PackedUnit, committed: List[PackedUnit]) -> None:
        """Commit *unit* at the first free origin, or leave it unpacked."""
        length, width, height = self.container.dims
        ol, ow, oh = unit.packed_dims
        last_x = math.floor(length - ol)
        last_y = math.floor(width - ow)
        last_z = math.floor(height - oh)
        blockers = [u for u in committed if u.is_packed]

        for z in range(0, last_z + 1):
            layer = [u for u in blockers if intervals_overlap(z, oh, u.z, u.packed_dims[2])]
            for y in range(0, last_y + 1):
                row = [u for u in layer if intervals_overlap(y, ow, u.y, u.packed_dims[1])]
                x = 0
                while x <= last_x:
                    obstacle = self._first_obstacle(row, (x, y, z), unit.packed_dims)
                    if obstacle is None:
                        unit.x, unit.y, unit.z = float(x), float(y), float(z)
                        unit.is_packed = True
                        if self.log_placements:
                            logger.debug("placed item %s as %s at %s",
                                         unit.item_id, unit.packed_dims, unit.origin)
                        return
                    # everything short of the obstacle's far face still hits it
                    x = max(x + 1, math.ceil(obstacle.x_max))

    @staticmethod
    def _first_obstacle(blockers, origin, dims) -> Optional[PackedUnit]:
        for other in blockers:
            if boxes_overlap(origin, dims, other.origin, other.packed_dims):
                return other
        return None


@register_algorithm
class OrientationSearchPacker(PackingAlgorithm):
    """
    Brute-force recursive packer.

    Places units largest first, choosing each unit's orientation by packing
    the rest of the queue under all six orientations and keeping the branch
    with the best fill rank.
    """

    name = "orientation_search"
    algorithm_id = AlgorithmType.ORIENTATION_SEARCH

    def _pack(
        self,
        container: Container,
        units: List[PackedUnit],
        cancel_event: Optional[threading.Event],
    ) -> PackOutcome:
        queue = sorted(units, key=lambda u: u.volume, reverse=True)
        search = _SearchContext(container, cancel_event, self.settings.log_placements)
        final = search.fill(queue)

        logger.debug("%s: %d branches explored for %d units",
                     self.name, search.branches_explored, len(queue))
        return PackOutcome(
            packed=[u for u in final if u.is_packed],
            unpacked=[u for u in final if not u.is_packed],
            diagnostics={
                "branches_explored": search.branches_explored,
                "cancelled": search.cancelled,
            },
        )
