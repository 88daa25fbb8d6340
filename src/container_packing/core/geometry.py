"""Axis-aligned box primitives shared by the packers."""

from __future__ import annotations

import math
from typing import Iterable, Sequence

from container_packing.core.models import Container, Dims, PackedUnit


def intervals_overlap(start_a: float, size_a: float, start_b: float, size_b: float) -> bool:
    """Whether two half-open intervals share positive length."""
    return start_a < start_b + size_b and start_b < start_a + size_a


def boxes_overlap(
    origin_a: Sequence[float],
    dims_a: Sequence[float],
    origin_b: Sequence[float],
    dims_b: Sequence[float],
) -> bool:
    """
    Separating-axis test for two axis-aligned boxes.

    Boxes are disjoint iff they are separated on at least one axis.
    Shared faces count as separated, so touching boxes do not overlap.
    """
    return all(
        intervals_overlap(origin_a[axis], dims_a[axis], origin_b[axis], dims_b[axis])
        for axis in range(3)
    )


def units_overlap(a: PackedUnit, b: PackedUnit) -> bool:
    """Whether two placed units share positive volume."""
    return boxes_overlap(a.origin, a.packed_dims, b.origin, b.packed_dims)


def fits_in_container(
    origin: Sequence[float],
    dims: Sequence[float],
    container: Container,
) -> bool:
    """Full containment: ``0 <= origin`` and ``origin + dims <= container``."""
    bounds: Dims = container.dims
    for axis in range(3):
        if origin[axis] < 0 or origin[axis] + dims[axis] > bounds[axis]:
            return False
    return True


def total_volume(units: Iterable[PackedUnit], packed_only: bool = True) -> float:
    return sum(u.volume for u in units if u.is_packed or not packed_only)


def fill_ratio(packed_volume: float, container: Container) -> float:
    """Fraction of the container occupied; 0.0 for a degenerate container."""
    if container.volume <= 0:
        return 0.0
    return packed_volume / container.volume


def fill_rank(units: Sequence[PackedUnit], container: Container) -> int:
    """
    Score a search branch on a 0-200 scale.

        +100      if every unit in the branch is packed
        +ceil(p)  where p is the percentage of container volume occupied

    A degenerate container ranks every branch 0.
    """
    if container.volume <= 0:
        return 0
    packed_volume = total_volume(units)
    # rounding first keeps float noise (60.000000000001) from bumping the ceiling
    percentage = round(packed_volume * 100 / container.volume, 9)
    bonus = 100 if all(u.is_packed for u in units) else 0
    return bonus + math.ceil(percentage)
