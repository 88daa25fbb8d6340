"""
Skyline gap list for the layer heuristic.

Within the layer being packed, the footprint (x across, z in depth) is
described by a sequence of gaps. Each node stores the right edge of its
gap (``cum_x``) and the depth already filled there (``cum_z``); a gap
spans from its predecessor's ``cum_x`` (or 0) to its own ``cum_x``.

Nodes live in a growable arena and link to each other by index. Removed
nodes stay in the arena unlinked, so indices handed out remain valid for
the lifetime of the skyline.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional, Tuple


@dataclass
class GapNode:
    """One gap on the skyline."""
    cum_x: float
    cum_z: float
    prev: Optional[int] = None
    next: Optional[int] = None
    alive: bool = True


class Skyline:
    """Doubly linked gap list stored in an index arena."""

    def __init__(self, width: float) -> None:
        self.nodes: List[GapNode] = [GapNode(cum_x=width, cum_z=0.0)]
        self.head = 0

    def __getitem__(self, index: int) -> GapNode:
        return self.nodes[index]

    def __len__(self) -> int:
        """Number of linked nodes."""
        return sum(1 for _ in self._walk())

    def _walk(self):
        index: Optional[int] = self.head
        while index is not None:
            yield index
            index = self.nodes[index].next

    # ── Queries ───────────────────────────────────────────────────────────

    def smallest_z(self) -> int:
        """Index of the shallowest gap; the leftmost one wins ties."""
        best = self.head
        for index in self._walk():
            if self.nodes[index].cum_z < self.nodes[best].cum_z:
                best = index
        return best

    def prev_of(self, index: int) -> Optional[GapNode]:
        p = self.nodes[index].prev
        return None if p is None else self.nodes[p]

    def next_of(self, index: int) -> Optional[GapNode]:
        n = self.nodes[index].next
        return None if n is None else self.nodes[n]

    def is_alone(self, index: int) -> bool:
        node = self.nodes[index]
        return node.prev is None and node.next is None

    def gap_start(self, index: int) -> float:
        prev = self.prev_of(index)
        return 0.0 if prev is None else prev.cum_x

    def segments(self) -> List[Tuple[float, float, float]]:
        """``(x_start, x_end, depth)`` for every gap, left to right."""
        result = []
        start = 0.0
        for index in self._walk():
            node = self.nodes[index]
            result.append((start, node.cum_x, node.cum_z))
            start = node.cum_x
        return result

    # ── Mutation ──────────────────────────────────────────────────────────

    def insert_after(self, index: int, cum_x: float, cum_z: float) -> int:
        """Link a new node right after *index*; returns the new index."""
        node = self.nodes[index]
        new_index = len(self.nodes)
        self.nodes.append(GapNode(cum_x=cum_x, cum_z=cum_z, prev=index, next=node.next))
        if node.next is not None:
            self.nodes[node.next].prev = new_index
        node.next = new_index
        return new_index

    def insert_before(self, index: int, cum_x: float, cum_z: float) -> int:
        """Link a new node right before *index*; returns the new index."""
        node = self.nodes[index]
        if node.prev is None:
            new_index = len(self.nodes)
            self.nodes.append(GapNode(cum_x=cum_x, cum_z=cum_z, prev=None, next=index))
            node.prev = new_index
            self.head = new_index
            return new_index
        return self.insert_after(node.prev, cum_x, cum_z)

    def unlink(self, index: int) -> None:
        """Remove *index* from the list, joining its neighbours."""
        node = self.nodes[index]
        if node.prev is not None:
            self.nodes[node.prev].next = node.next
        else:
            self.head = node.next
        if node.next is not None:
            self.nodes[node.next].prev = node.prev
        node.prev = node.next = None
        node.alive = False

    def flatten(self, index: int) -> None:
        """
        Raise a gap no box fits into up to its shallower neighbour.

        The gap merges into that neighbour; when both neighbours sit at
        the same depth all three collapse into one. The gap must have at
        least one neighbour.
        """
        node = self.nodes[index]
        prev = self.prev_of(index)
        nxt = self.next_of(index)

        if prev is None:
            node.cum_x = nxt.cum_x
            node.cum_z = nxt.cum_z
            self.unlink(node.next)
        elif nxt is None:
            prev.cum_x = node.cum_x
            self.unlink(index)
        elif prev.cum_z == nxt.cum_z:
            prev.cum_x = nxt.cum_x
            self.unlink(node.next)
            self.unlink(index)
        else:
            if prev.cum_z < nxt.cum_z:
                prev.cum_x = node.cum_x
            self.unlink(index)
