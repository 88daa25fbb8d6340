"""
Layer heuristic — layer-by-layer packing over a skyline of gaps.

Algorithm overview
~~~~~~~~~~~~~~~~~~
The container is packed in horizontal layers. Internally the algorithm
works on abstract axes: ``px`` (across the layer), ``py`` (the stacking
direction) and ``pz`` (depth into the layer). Each of the six ways of
assigning the container's length/width/height to these axes is a
*variant*.

For every variant:
  1. List candidate layer thicknesses: every unit dimension that fits the
     stacking height and leaves a footprint that fits the layer, scored by
     how closely all other units match it (lower = more units share it).
     Duplicates are dropped; candidates are tried best score first.
  2. For every candidate (an *iteration*), pack from scratch:
       - fill the layer gap by gap, always the shallowest gap on the
         skyline, choosing the box and orientation that leave the least
         slack in height, then width, then depth;
       - a box taller than the layer may still be used when nothing else
         fits; the layer grows, and the space it opens above the earlier
         boxes is packed as a sub-layer (layer-in-layer);
       - when the layer is exhausted, pick the next thickness from the
         unpacked units and repeat until nothing fits.
  3. Keep the (variant, iteration) pair with the most packed volume; a
     perfect pack stops the whole search.

Only volumes are compared during the search. The winning pair is then
replayed once to materialise orientations and coordinates, which are
mapped back from the abstract axes to the container's axes.

A cubic container has only one distinct variant.
"""

from __future__ import annotations

import logging
import math
import threading
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from container_packing.algorithms.base import PackingAlgorithm, PackOutcome, register_algorithm
from container_packing.algorithms.skyline import Skyline
from container_packing.core.models import (
    AlgorithmType,
    Axis,
    Container,
    Dims,
    Orientation,
    PackedUnit,
)

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Axis variants
# ─────────────────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class AxisVariant:
    """
    Assignment of container axes to the algorithm's abstract axes.

    Attributes:
        index:  1-based variant number, in search order.
        x_axis: Container axis running across the layer (px).
        y_axis: Container axis layers are stacked along (py).
        z_axis: Container axis running into the layer's depth (pz).
    """
    index: int
    x_axis: Axis
    y_axis: Axis
    z_axis: Axis

    def extents(self, container: Container) -> Dims:
        """Return (px, py, pz) for *container*."""
        dims = container.dims
        return (dims[self.x_axis], dims[self.y_axis], dims[self.z_axis])

    def to_container(self, x: float, y: float, z: float) -> Dims:
        """Map an abstract (x, y, z) triple to (length, width, height)."""
        out = [0.0, 0.0, 0.0]
        out[self.x_axis] = x
        out[self.y_axis] = y
        out[self.z_axis] = z
        return (out[0], out[1], out[2])


VARIANTS: Tuple[AxisVariant, ...] = (
    AxisVariant(1, Axis.LENGTH, Axis.HEIGHT, Axis.WIDTH),
    AxisVariant(2, Axis.WIDTH, Axis.HEIGHT, Axis.LENGTH),
    AxisVariant(3, Axis.WIDTH, Axis.LENGTH, Axis.HEIGHT),
    AxisVariant(4, Axis.HEIGHT, Axis.LENGTH, Axis.WIDTH),
    AxisVariant(5, Axis.LENGTH, Axis.WIDTH, Axis.HEIGHT),
    AxisVariant(6, Axis.HEIGHT, Axis.WIDTH, Axis.LENGTH),
)

# (thickness, footprint a, footprint b) role assignments of (l, w, h)
LAYER_ROLES: Tuple[Tuple[int, int, int], ...] = ((0, 1, 2), (1, 0, 2), (2, 0, 1))


# ─────────────────────────────────────────────────────────────────────────────
# Search records
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class LayerCandidate:
    """A starting layer thickness and its compatibility score."""
    thickness: float
    evaluation: float


@dataclass
class BoxChoice:
    """Best box found so far for a gap, with its slack (y, x, z)."""
    unit_index: Optional[int] = None
    dims: Dims = (0.0, 0.0, 0.0)
    slack: Tuple[float, float, float] = (math.inf, math.inf, math.inf)

    @property
    def found(self) -> bool:
        return self.unit_index is not None

    def offer(self, unit_index: int, dims: Dims, slack: Tuple[float, float, float]) -> None:
        if slack < self.slack:
            self.unit_index = unit_index
            self.dims = dims
            self.slack = slack


@dataclass
class _Placement:
    unit_index: int
    origin: Dims
    dims: Dims


@dataclass
class _LayerSearch:
    """Every piece of mutable state for one ``run()``."""
    container: Container
    units: List[PackedUnit]
    cancel_event: Optional[threading.Event] = None
    log_placements: bool = False

    # Derived from the units in __post_init__
    dims: List[Dims] = field(init=False)
    dim_array: np.ndarray = field(init=False, repr=False, compare=False)
    total_container_volume: float = field(init=False)
    total_item_volume: float = field(init=False)
    groups: List[List[int]] = field(init=False)

    # Current variant
    variant: AxisVariant = VARIANTS[0]
    px: float = 0.0
    py: float = 0.0
    pz: float = 0.0

    # Current iteration
    packed: List[bool] = field(default_factory=list)
    packed_volume: float = 0.0
    packed_count: int = 0
    packed_y: float = 0.0
    remain_py: float = 0.0
    remain_pz: float = 0.0
    layer_thickness: float = 0.0
    layer_in_layer: float = 0.0
    pre_layer: float = 0.0
    lil_z: float = 0.0
    packing: bool = True
    layer_done: bool = False
    hundred_percent: bool = False
    recording: bool = False
    placements: List[_Placement] = field(default_factory=list)

    # Best so far
    best_volume: float = 0.0
    best_variant: Optional[AxisVariant] = None
    best_iteration: Optional[int] = None
    best_packed_count: int = 0
    iterations: int = 0
    cancelled: bool = False

    def __post_init__(self) -> None:
        self.dims = [u.raw_dims for u in self.units]
        self.dim_array = np.array(self.dims, dtype=float).reshape(-1, 3)
        self.total_container_volume = self.container.volume
        self.total_item_volume = sum(u.volume for u in self.units)
        self.packed = [False] * len(self.units)

        # consecutive units of one item type share a group
        self.groups = []
        for index, unit in enumerate(self.units):
            if self.groups and self.units[self.groups[-1][0]].item is unit.item:
                self.groups[-1].append(index)
            else:
                self.groups.append([index])

    def is_cancelled(self) -> bool:
        if self.cancel_event is not None and self.cancel_event.is_set():
            self.cancelled = True
            return True
        return False

    # ── Variants & layer candidates ───────────────────────────────────────

    def set_variant(self, variant: AxisVariant) -> None:
        self.variant = variant
        self.px, self.py, self.pz = variant.extents(self.container)

    def _footprint_fits(self, a: float, b: float) -> bool:
        return (a <= self.px and b <= self.pz) or (b <= self.px and a <= self.pz)

    def _mismatch(self, thickness: float, exclude: int, unpacked_only: bool) -> float:
        """Sum over other units of the closest distance between *thickness* and any of their dims."""
        closest = np.abs(self.dim_array - thickness).min(axis=1)
        mask = np.ones(len(self.units), dtype=bool)
        mask[exclude] = False
        if unpacked_only:
            mask &= ~np.array(self.packed, dtype=bool)
        return float(closest[mask].sum())

    def candidate_layers(self) -> List[LayerCandidate]:
        """Distinct starting thicknesses for the current variant, best first."""
        candidates: List[LayerCandidate] = []
        seen: set = set()
        for index, dims in enumerate(self.dims):
            for t, a, b in LAYER_ROLES:
                thickness = dims[t]
                if thickness > self.py or not self._footprint_fits(dims[a], dims[b]):
                    continue
                if thickness in seen:
                    continue
                seen.add(thickness)
                candidates.append(LayerCandidate(
                    thickness=thickness,
                    evaluation=self._mismatch(thickness, index, unpacked_only=False),
                ))
        candidates.sort(key=lambda c: c.evaluation)
        return candidates

    def find_layer(self, limit: float) -> None:
        """Pick the next layer thickness from the unpacked units, or stop packing."""
        best_eval = math.inf
        self.layer_thickness = 0.0
        for index, dims in enumerate(self.dims):
            if self.packed[index]:
                continue
            for t, a, b in LAYER_ROLES:
                thickness = dims[t]
                if thickness > limit or not self._footprint_fits(dims[a], dims[b]):
                    continue
                evaluation = self._mismatch(thickness, index, unpacked_only=True)
                if evaluation < best_eval:
                    best_eval = evaluation
                    self.layer_thickness = thickness
        if self.layer_thickness == 0 or self.layer_thickness > self.remain_py:
            self.packing = False

    # ── Iterations ────────────────────────────────────────────────────────

    def search(self) -> None:
        """Try every variant × candidate thickness, tracking the best volume."""
        for variant in VARIANTS:
            if self.is_cancelled():
                break
            self.set_variant(variant)
            for iteration, candidate in enumerate(self.candidate_layers()):
                if self.is_cancelled():
                    break
                self.iterations += 1
                self.run_iteration(candidate.thickness)
                logger.debug(
                    "variant %d iteration %d (thickness %s): packed volume %s",
                    variant.index, iteration, candidate.thickness, self.packed_volume,
                )
                if self.packed_volume > self.best_volume and not self.cancelled:
                    self.best_volume = self.packed_volume
                    self.best_variant = variant
                    self.best_iteration = iteration
                    self.best_packed_count = self.packed_count
                if self.hundred_percent:
                    break
            if self.hundred_percent or self.container.is_cube:
                break

    def run_iteration(self, thickness: float) -> None:
        """Pack from scratch starting with a layer of *thickness*."""
        self.packed = [False] * len(self.units)
        self.packed_volume = 0.0
        self.packed_count = 0
        self.packed_y = 0.0
        self.packing = True
        self.layer_thickness = thickness
        self.remain_py = self.py
        self.remain_pz = self.pz
        self.placements = []

        while self.packing and not self.is_cancelled():
            self.layer_in_layer = 0.0
            self.layer_done = False
            self.pack_layer()

            self.packed_y += self.layer_thickness
            self.remain_py = self.py - self.packed_y

            if self.layer_in_layer != 0 and not self.hundred_percent and not self.is_cancelled():
                self.pack_sub_layer()

            self.find_layer(self.remain_py)

    def pack_sub_layer(self) -> None:
        """Pack the space a grown layer opened above its earlier, shorter boxes."""
        saved_packed_y, saved_remain_py = self.packed_y, self.remain_py
        self.remain_py = self.layer_thickness - self.pre_layer
        self.packed_y = self.packed_y - self.layer_thickness + self.pre_layer
        self.remain_pz = self.lil_z
        self.layer_thickness = self.layer_in_layer
        self.layer_done = False

        self.pack_layer()

        self.packed_y, self.remain_py = saved_packed_y, saved_remain_py
        self.remain_pz = self.pz

    # ── Layer filling ─────────────────────────────────────────────────────

    def pack_layer(self) -> None:
        """Fill the current layer gap by gap until no box fits."""
        if self.layer_thickness == 0:
            self.packing = False
            return

        skyline = Skyline(self.px)
        while not self.hundred_percent and not self.is_cancelled():
            gap = skyline.smallest_z()
            node = skyline[gap]
            prev, nxt = skyline.prev_of(gap), skyline.next_of(gap)

            depth_left = self.remain_pz - node.cum_z
            if prev is None and nxt is None:
                width, step = node.cum_x, depth_left
            elif prev is None:
                width, step = node.cum_x, nxt.cum_z - node.cum_z
            else:
                width, step = node.cum_x - prev.cum_x, prev.cum_z - node.cum_z

            best, overflow = self.find_box(width, self.layer_thickness, self.remain_py, step, depth_left)
            choice = self.check_found(skyline, gap, best, overflow)
            if self.layer_done:
                break
            if choice is None:
                continue

            z = node.cum_z
            x = self.place_on_skyline(skyline, gap, choice.dims[0], choice.dims[2])
            self.commit(choice, (x, self.packed_y, z))

    def find_box(
        self,
        max_x: float,
        layer_y: float,
        max_y: float,
        step_z: float,
        max_z: float,
    ) -> Tuple[BoxChoice, BoxChoice]:
        """
        Best in-layer box and best layer-overflowing box for a gap.

        One representative (the first unpacked unit) is tried per item
        type, in every distinct orientation. Boxes must fit ``max_x``,
        ``max_y`` and ``max_z``; those no taller than ``layer_y`` compete
        for the in-layer slot, the rest for the overflow slot.
        """
        best = BoxChoice()
        overflow = BoxChoice()
        for group in self.groups:
            index = next((i for i in group if not self.packed[i]), None)
            if index is None:
                continue
            for orientation in Orientation.unique(*self.dims[index]):
                dx, dy, dz = orientation.apply(*self.dims[index])
                if dx > max_x or dy > max_y or dz > max_z:
                    continue
                if dy <= layer_y:
                    best.offer(index, (dx, dy, dz), (layer_y - dy, max_x - dx, abs(step_z - dz)))
                else:
                    overflow.offer(index, (dx, dy, dz), (dy - layer_y, max_x - dx, abs(step_z - dz)))
        return best, overflow

    def check_found(
        self,
        skyline: Skyline,
        gap: int,
        best: BoxChoice,
        overflow: BoxChoice,
    ) -> Optional[BoxChoice]:
        """
        Decide what to do with a gap: use a box, grow the layer, flatten
        the gap into its neighbours, or declare the layer done.
        """
        if best.found:
            return best

        alone = skyline.is_alone(gap)
        if overflow.found and (self.layer_in_layer != 0 or alone):
            if self.layer_in_layer == 0:
                self.pre_layer = self.layer_thickness
                self.lil_z = skyline[gap].cum_z
            self.layer_in_layer += overflow.dims[1] - self.layer_thickness
            self.layer_thickness = overflow.dims[1]
            return overflow

        if alone:
            self.layer_done = True
        else:
            skyline.flatten(gap)
        return None

    def place_on_skyline(self, skyline: Skyline, gap: int, bx: float, bz: float) -> float:
        """
        Update the skyline for a box of width *bx* and depth *bz* dropped
        into *gap*; returns the box's x coordinate.

        A box narrower than its gap is pushed against the side where it
        keeps the skyline most even.
        """
        node = skyline[gap]
        prev, nxt = skyline.prev_of(gap), skyline.next_of(gap)
        top = node.cum_z + bz

        if prev is None and nxt is None:
            x = 0.0
            if bx == node.cum_x:
                node.cum_z = top
            else:
                skyline.insert_after(gap, node.cum_x, node.cum_z)
                node.cum_x = bx
                node.cum_z = top

        elif prev is None:
            if bx == node.cum_x:
                x = 0.0
                if top == nxt.cum_z:
                    node.cum_x, node.cum_z = nxt.cum_x, nxt.cum_z
                    skyline.unlink(node.next)
                else:
                    node.cum_z = top
            else:
                x = node.cum_x - bx
                if top == nxt.cum_z:
                    node.cum_x -= bx
                else:
                    skyline.insert_after(gap, node.cum_x, top)
                    node.cum_x -= bx

        elif nxt is None:
            x = prev.cum_x
            if bx == node.cum_x - prev.cum_x:
                if top == prev.cum_z:
                    prev.cum_x = node.cum_x
                    skyline.unlink(gap)
                else:
                    node.cum_z = top
            elif top == prev.cum_z:
                prev.cum_x += bx
            else:
                skyline.insert_before(gap, prev.cum_x + bx, top)

        elif prev.cum_z == nxt.cum_z:
            if bx == node.cum_x - prev.cum_x:
                x = prev.cum_x
                if top == nxt.cum_z:
                    prev.cum_x = nxt.cum_x
                    skyline.unlink(node.next)
                    skyline.unlink(gap)
                else:
                    node.cum_z = top
            elif prev.cum_x < self.px - node.cum_x:
                if top == prev.cum_z:
                    node.cum_x -= bx
                    x = node.cum_x
                else:
                    x = prev.cum_x
                    skyline.insert_before(gap, prev.cum_x + bx, top)
            else:
                if top == prev.cum_z:
                    x = prev.cum_x
                    prev.cum_x += bx
                else:
                    x = node.cum_x - bx
                    skyline.insert_after(gap, node.cum_x, top)
                    node.cum_x -= bx

        else:
            x = prev.cum_x
            if bx == node.cum_x - prev.cum_x:
                if top == prev.cum_z:
                    prev.cum_x = node.cum_x
                    skyline.unlink(gap)
                else:
                    node.cum_z = top
            elif top == prev.cum_z:
                prev.cum_x += bx
            elif top == nxt.cum_z:
                x = node.cum_x - bx
                node.cum_x -= bx
            else:
                skyline.insert_before(gap, prev.cum_x + bx, top)

        return x

    def commit(self, choice: BoxChoice, origin: Dims) -> None:
        index = choice.unit_index
        self.packed[index] = True
        self.packed_volume += self.units[index].volume
        self.packed_count += 1
        if self.recording:
            self.placements.append(_Placement(index, origin, choice.dims))

        if (math.isclose(self.packed_volume, self.total_container_volume)
                or math.isclose(self.packed_volume, self.total_item_volume)):
            self.packing = False
            self.hundred_percent = True

    # ── Replay ────────────────────────────────────────────────────────────

    def replay(self) -> List[PackedUnit]:
        """
        Re-run the winning (variant, iteration) and write orientation and
        coordinates onto the units; returns them in packing order.
        """
        if self.best_variant is None:
            return []

        # the replay is a single bounded iteration and always runs to completion
        self.cancel_event = None
        self.hundred_percent = False
        self.recording = True
        self.set_variant(self.best_variant)
        candidate = self.candidate_layers()[self.best_iteration]
        self.run_iteration(candidate.thickness)
        assert math.isclose(self.packed_volume, self.best_volume), (
            f"replay packed {self.packed_volume}, search found {self.best_volume}"
        )

        packed: List[PackedUnit] = []
        for placement in self.placements:
            unit = self.units[placement.unit_index]
            unit.x, unit.y, unit.z = self.variant.to_container(*placement.origin)
            unit.oriented_l, unit.oriented_w, unit.oriented_h = self.variant.to_container(*placement.dims)
            unit.is_packed = True
            packed.append(unit)
            if self.log_placements:
                logger.debug("placed item %s as %s at %s",
                             unit.item_id, unit.packed_dims, unit.origin)
        return packed


# ─────────────────────────────────────────────────────────────────────────────
# Algorithm
# ─────────────────────────────────────────────────────────────────────────────

@register_algorithm
class LayerHeuristicPacker(PackingAlgorithm):
    """
    Layer/skyline packer.

    Searches six axis variants × candidate starting thicknesses, keeps the
    one packing the most volume, and replays it to produce placements.
    """

    name = "layer_heuristic"
    algorithm_id = AlgorithmType.LAYER_HEURISTIC

    def _pack(
        self,
        container: Container,
        units: List[PackedUnit],
        cancel_event: Optional[threading.Event],
    ) -> PackOutcome:
        search = _LayerSearch(
            container=container,
            units=units,
            cancel_event=cancel_event,
            log_placements=self.settings.log_placements,
        )
        search.search()
        packed = search.replay()
        packed_ids = {id(u) for u in packed}
        unpacked = [u for u in units if id(u) not in packed_ids]

        self._report(search, container, len(units))
        return PackOutcome(
            packed=packed,
            unpacked=unpacked,
            diagnostics={
                "iterations": search.iterations,
                "best_variant": search.best_variant.index if search.best_variant else None,
                "best_iteration": search.best_iteration,
                "best_packed_count": search.best_packed_count,
                "cancelled": search.cancelled,
            },
        )

    def _report(self, search: _LayerSearch, container: Container, unit_count: int) -> None:
        item_pct = (search.best_volume * 100 / search.total_item_volume
                    if search.total_item_volume > 0 else 0.0)
        container_pct = search.best_volume * 100 / container.volume
        logger.info(
            "%s: %d iterations, best at iteration %s of variant %s; packed %d/%d units, "
            "volume %s of %s (items %s); container used %.2f%%, item volume packed %.2f%%",
            self.name, search.iterations, search.best_iteration,
            search.best_variant.index if search.best_variant else None,
            search.best_packed_count, unit_count, search.best_volume,
            container.volume, search.total_item_volume, container_pct, item_pct,
        )
