"""
Result validator — vectorised checks of the placement invariants.

Every packed unit in a ``PlacementResult`` must satisfy:

  1. Orientation — packed dims are a permutation of the item's raw dims
  2. Bounds      — origin >= 0 and origin + extent <= container on every axis
  3. Overlap     — no two packed boxes share positive volume (touching is fine)
  4. Conservation— every expanded unit reported exactly once, packed volume
                   within container volume

``validate_result`` returns True or raises the matching ``PlacementError``.
"""

from typing import Optional

import numpy as np

from container_packing.core.models import Container, PlacementResult


# ─────────────────────────────────────────────────────────────────────────────
# Errors
# ─────────────────────────────────────────────────────────────────────────────

class PlacementError(Exception):
    """Base class for placement invariant violations."""


class OutOfBoundsError(PlacementError):
    """A packed unit extends outside the container."""


class OverlapError(PlacementError):
    """Two packed units share positive volume."""


class OrientationError(PlacementError):
    """Packed dimensions are not a permutation of the raw dimensions."""


class ConservationError(PlacementError):
    """Units were lost, duplicated, or more volume was packed than fits."""


# ─────────────────────────────────────────────────────────────────────────────
# Vectorised helpers
# ─────────────────────────────────────────────────────────────────────────────

def box_arrays(result: PlacementResult) -> tuple[np.ndarray, np.ndarray]:
    """Return (origins, extents) as ``(n, 3)`` float arrays of packed units."""
    packed = result.packed_units
    if not packed:
        empty = np.zeros((0, 3), dtype=float)
        return empty, empty.copy()
    origins = np.array([u.origin for u in packed], dtype=float)
    extents = np.array([u.packed_dims for u in packed], dtype=float)
    return origins, extents


def overlap_matrix(origins: np.ndarray, extents: np.ndarray, eps: float = 0.0) -> np.ndarray:
    """
    Pairwise overlap mask for ``n`` axis-aligned boxes.

    ``mask[i, j]`` is True when boxes i and j intersect with positive volume
    by more than *eps* on every axis. The diagonal is always False.
    """
    lo = origins[:, None, :]
    hi = (origins + extents)[:, None, :]
    other_lo = origins[None, :, :]
    other_hi = (origins + extents)[None, :, :]
    penetration = np.minimum(hi, other_hi) - np.maximum(lo, other_lo)
    mask = np.all(penetration > eps, axis=2)
    np.fill_diagonal(mask, False)
    return mask


# ─────────────────────────────────────────────────────────────────────────────
# Validator
# ─────────────────────────────────────────────────────────────────────────────

def validate_result(
    result: PlacementResult,
    container: Optional[Container] = None,
    expected_units: Optional[int] = None,
    eps: float = 1e-9,
) -> bool:
    """
    Check a placement result against every invariant.

    Args:
        result:         The result to check.
        container:      Container to check against (defaults to the result's).
        expected_units: Number of units expanded from the input, if known.
        eps:            Absolute tolerance for float comparisons.

    Returns:
        True if all checks pass.

    Raises:
        OrientationError:  packed dims are not a permutation of raw dims.
        OutOfBoundsError:  a unit crosses the container boundary.
        OverlapError:      two units intersect.
        ConservationError: unit count or volume bookkeeping is off.
    """
    container = container or result.container
    packed = result.packed_units

    # ── 0. Conservation ──────────────────────────────────────────────────
    if expected_units is not None and result.unit_count != expected_units:
        raise ConservationError(
            f"{result.unit_count} units reported, expected {expected_units}"
        )
    reported = [id(u) for u in packed] + [id(u) for u in result.unpacked_units]
    if len(set(reported)) != len(reported):
        raise ConservationError("A unit is reported more than once")
    if any(not u.is_packed for u in packed) or any(u.is_packed for u in result.unpacked_units):
        raise ConservationError("Packed flag disagrees with the collection a unit is in")

    if not packed:
        return True

    if container.is_degenerate:
        raise ConservationError("Units reported packed in a degenerate container")

    origins, extents = box_arrays(result)

    # ── 1. Orientation fidelity ──────────────────────────────────────────
    raw = np.sort(np.array([u.raw_dims for u in packed], dtype=float), axis=1)
    if not np.allclose(np.sort(extents, axis=1), raw, rtol=0.0, atol=eps):
        bad = int(np.argmax(np.any(np.abs(np.sort(extents, axis=1) - raw) > eps, axis=1)))
        raise OrientationError(
            f"Unit {bad} (item {packed[bad].item_id}) packed as {packed[bad].packed_dims}, "
            f"raw dims {packed[bad].raw_dims}"
        )
    if np.any(extents <= 0):
        raise OrientationError("A unit with a non-positive dimension is reported packed")

    # ── 2. Bounds ────────────────────────────────────────────────────────
    bounds = np.array(container.dims, dtype=float)
    if np.any(origins < -eps):
        bad = int(np.argmax(np.any(origins < -eps, axis=1)))
        raise OutOfBoundsError(f"Negative coordinate for unit {bad}: {packed[bad].origin}")
    far = origins + extents
    if np.any(far > bounds + eps):
        bad = int(np.argmax(np.any(far > bounds + eps, axis=1)))
        raise OutOfBoundsError(
            f"Unit {bad} overflows: origin {packed[bad].origin} + "
            f"{packed[bad].packed_dims} > {container.dims}"
        )

    # ── 3. Overlap ───────────────────────────────────────────────────────
    mask = overlap_matrix(origins, extents, eps)
    if mask.any():
        i, j = (int(k) for k in np.argwhere(mask)[0])
        raise OverlapError(
            f"Units {i} (item {packed[i].item_id}) and {j} (item {packed[j].item_id}) overlap: "
            f"{packed[i].origin}+{packed[i].packed_dims} vs {packed[j].origin}+{packed[j].packed_dims}"
        )

    # ── 4. Volume ────────────────────────────────────────────────────────
    packed_volume = float(np.prod(extents, axis=1).sum())
    if packed_volume > container.volume * (1 + 1e-9) + eps:
        raise ConservationError(
            f"Packed volume {packed_volume} exceeds container volume {container.volume}"
        )

    return True
