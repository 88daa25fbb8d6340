"""
Core data model shared by every packing algorithm.

Classes:
    Item            — an item type with raw dimensions and a requested quantity
    Container       — the fixed rectangular space being packed
    Axis            — container axis labels (length / width / height)
    Orientation     — the 6 axis-aligned assignments of raw dims to container axes
    PackedUnit      — one physical instance of an item, mutated as it is placed
    AlgorithmType   — stable integer identifiers for the registered algorithms
    PlacementResult — what ``PackingAlgorithm.run()`` returns
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any, Iterable, List, Tuple


Dims = Tuple[float, float, float]


# ─────────────────────────────────────────────────────────────────────────────
# Item & Container
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class Item:
    """
    An item type to be packed.

    The three magnitudes carry no axis meaning until an orientation is
    chosen; ``length``/``width``/``height`` are only labels.

    Attributes:
        id:       Caller-supplied identifier.
        length:   First raw dimension.
        width:    Second raw dimension.
        height:   Third raw dimension.
        quantity: Number of physical units requested (<= 0 means none).
    """
    id: int
    length: float
    width: float
    height: float
    quantity: int = 1

    @property
    def volume(self) -> float:
        """Volume of a single unit."""
        return self.length * self.width * self.height

    @property
    def dims(self) -> Dims:
        return (self.length, self.width, self.height)

    @property
    def is_degenerate(self) -> bool:
        """True when any dimension is zero or negative."""
        return min(self.dims) <= 0

    def to_dict(self) -> dict:
        return {"id": self.id, "length": self.length, "width": self.width,
                "height": self.height, "quantity": self.quantity}

    @classmethod
    def from_dict(cls, d: dict) -> "Item":
        return cls(id=d["id"], length=d["length"], width=d["width"],
                   height=d["height"], quantity=d.get("quantity", 1))


@dataclass(frozen=True)
class Container:
    """
    The container being packed. Axis-labelled and fixed for a run.

    Attributes:
        length: Extent along the length axis.
        width:  Extent along the width axis.
        height: Extent along the height axis.
        id:     Optional identifier, echoed in service-level results.
    """
    length: float
    width: float
    height: float
    id: int = 0

    @property
    def volume(self) -> float:
        """Total container volume."""
        return self.length * self.width * self.height

    @property
    def dims(self) -> Dims:
        return (self.length, self.width, self.height)

    @property
    def is_degenerate(self) -> bool:
        return min(self.dims) <= 0

    @property
    def is_cube(self) -> bool:
        return self.length == self.width == self.height

    def to_dict(self) -> dict:
        return {"id": self.id, "length": self.length, "width": self.width,
                "height": self.height}

    @classmethod
    def from_dict(cls, d: dict) -> "Container":
        return cls(length=d["length"], width=d["width"], height=d["height"],
                   id=d.get("id", 0))


# ─────────────────────────────────────────────────────────────────────────────
# Axes & Orientation
# ─────────────────────────────────────────────────────────────────────────────

class Axis(IntEnum):
    """Index of a container axis inside a ``(length, width, height)`` triple."""
    LENGTH = 0
    WIDTH = 1
    HEIGHT = 2


class Orientation(IntEnum):
    """
    Maps an orientation to the raw dimensions placed on each container axis.

    The member name reads as (packed-length, packed-width, packed-height),
    e.g. ``HLW`` puts the raw height on the length axis, the raw length on
    the width axis and the raw width on the height axis. Member order is
    the search order used by the orientation search packer.
    """
    LWH = 0
    LHW = 1
    WLH = 2
    WHL = 3
    HLW = 4
    HWL = 5

    def apply(self, length: float, width: float, height: float) -> Dims:
        """Return the (packed_length, packed_width, packed_height) triple."""
        raw = {"L": length, "W": width, "H": height}
        a, b, c = self.name
        return (raw[a], raw[b], raw[c])

    @staticmethod
    def unique(length: float, width: float, height: float) -> List["Orientation"]:
        """
        Orientations producing distinct packed triples, in search order.

        Equal raw magnitudes collapse orientations (a cube has just one).
        """
        seen: set = set()
        result: List[Orientation] = []
        for orientation in Orientation:
            dims = orientation.apply(length, width, height)
            if dims not in seen:
                seen.add(dims)
                result.append(orientation)
        return result


# ─────────────────────────────────────────────────────────────────────────────
# PackedUnit (one physical instance, mutated in place during a run)
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class PackedUnit:
    """
    One physical unit expanded from an ``Item``'s quantity.

    Orientation and coordinates are only meaningful when ``is_packed``.
    The origin ``(x, y, z)`` is the minimum corner of the unit's box along
    the container's (length, width, height) axes.

    Attributes:
        item:       The item type this unit was expanded from.
        oriented_l: Extent along the container length axis.
        oriented_w: Extent along the container width axis.
        oriented_h: Extent along the container height axis.
        x, y, z:    Origin along length / width / height.
        is_packed:  Whether the unit was placed.
    """
    item: Item
    oriented_l: float = 0.0
    oriented_w: float = 0.0
    oriented_h: float = 0.0
    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    is_packed: bool = False

    @property
    def item_id(self) -> int:
        return self.item.id

    @property
    def raw_dims(self) -> Dims:
        return self.item.dims

    @property
    def volume(self) -> float:
        """Raw volume (independent of orientation)."""
        return self.item.volume

    @property
    def packed_dims(self) -> Dims:
        return (self.oriented_l, self.oriented_w, self.oriented_h)

    @property
    def origin(self) -> Dims:
        return (self.x, self.y, self.z)

    @property
    def x_max(self) -> float:
        return self.x + self.oriented_l

    @property
    def y_max(self) -> float:
        return self.y + self.oriented_w

    @property
    def z_max(self) -> float:
        return self.z + self.oriented_h

    def orient(self, orientation: Orientation) -> "PackedUnit":
        """Set the packed dimensions from *orientation*; returns self."""
        self.oriented_l, self.oriented_w, self.oriented_h = orientation.apply(
            *self.item.dims
        )
        return self

    def fresh_copy(self) -> "PackedUnit":
        """An unplaced, unoriented unit of the same item."""
        return PackedUnit(item=self.item)

    def to_dict(self) -> dict:
        d: dict = {"item_id": self.item.id, "is_packed": self.is_packed,
                   "dims": list(self.item.dims)}
        if self.is_packed:
            d["packed_dims"] = list(self.packed_dims)
            d["position"] = list(self.origin)
        return d


def expand_units(items: Iterable[Item]) -> List[PackedUnit]:
    """
    Expand item quantities into individual units, preserving input order.

    Items with a non-positive quantity contribute nothing.
    """
    units: List[PackedUnit] = []
    for item in items:
        for _ in range(max(item.quantity, 0)):
            units.append(PackedUnit(item=item))
    return units


# ─────────────────────────────────────────────────────────────────────────────
# Algorithm identifiers & result
# ─────────────────────────────────────────────────────────────────────────────

class AlgorithmType(IntEnum):
    """Stable integer identifiers for the registered algorithms."""
    LAYER_HEURISTIC = 1
    ORIENTATION_SEARCH = 2


@dataclass
class PlacementResult:
    """
    Outcome of one ``PackingAlgorithm.run()`` call.

    Every unit expanded from the input appears exactly once, either in
    ``packed_units`` or in ``unpacked_units``.
    """
    container: Container
    algorithm_id: int
    algorithm_name: str
    packed_units: List[PackedUnit] = field(default_factory=list)
    unpacked_units: List[PackedUnit] = field(default_factory=list)
    diagnostics: dict = field(default_factory=dict)

    @property
    def is_complete_pack(self) -> bool:
        return not self.unpacked_units

    @property
    def unit_count(self) -> int:
        return len(self.packed_units) + len(self.unpacked_units)

    @property
    def packed_volume(self) -> float:
        return sum(u.volume for u in self.packed_units)

    @property
    def item_volume(self) -> float:
        """Total volume of every unit, packed or not."""
        return self.packed_volume + sum(u.volume for u in self.unpacked_units)

    @property
    def percent_container_used(self) -> float:
        if self.container.volume <= 0:
            return 0.0
        return self.packed_volume * 100 / self.container.volume

    @property
    def percent_item_volume_packed(self) -> float:
        total = self.item_volume
        if total <= 0:
            return 0.0
        return self.packed_volume * 100 / total

    def to_dict(self) -> dict[str, Any]:
        return {
            "container": self.container.to_dict(),
            "algorithm_id": self.algorithm_id,
            "algorithm_name": self.algorithm_name,
            "is_complete_pack": self.is_complete_pack,
            "packed_volume": self.packed_volume,
            "percent_container_used": self.percent_container_used,
            "percent_item_volume_packed": self.percent_item_volume_packed,
            "packed_units": [u.to_dict() for u in self.packed_units],
            "unpacked_units": [u.to_dict() for u in self.unpacked_units],
            "diagnostics": dict(self.diagnostics),
        }
