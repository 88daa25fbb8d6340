"""Tests for the placement validator and its error hierarchy."""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from container_packing.core.models import Container, Item, PackedUnit, PlacementResult
from container_packing.core.validator import (
    ConservationError,
    OrientationError,
    OutOfBoundsError,
    OverlapError,
    PlacementError,
    overlap_matrix,
    validate_result,
)

import numpy as np


CONTAINER = Container(10, 10, 10)


def placed(raw, packed_dims, origin, item_id=1):
    return PackedUnit(item=Item(item_id, *raw), oriented_l=packed_dims[0],
                      oriented_w=packed_dims[1], oriented_h=packed_dims[2],
                      x=origin[0], y=origin[1], z=origin[2], is_packed=True)


def result_of(packed, unpacked=(), container=CONTAINER):
    return PlacementResult(container=container, algorithm_id=1, algorithm_name="test",
                           packed_units=list(packed), unpacked_units=list(unpacked))


class TestValidResults:
    def test_touching_boxes_pass(self):
        r = result_of([
            placed((5, 10, 10), (5, 10, 10), (0, 0, 0)),
            placed((5, 10, 10), (5, 10, 10), (5, 0, 0), item_id=2),
        ])
        assert validate_result(r, expected_units=2)

    def test_rotated_unit_passes(self):
        r = result_of([placed((1, 2, 3), (3, 1, 2), (7, 9, 8))])
        assert validate_result(r)

    def test_empty_result_passes(self):
        r = result_of([], [PackedUnit(item=Item(1, 11, 11, 11))])
        assert validate_result(r, expected_units=1)

    def test_float_noise_within_tolerance(self):
        r = result_of([placed((1, 1, 1), (1, 1, 1), (9.0000000000001, 0, 0))])
        assert validate_result(r, eps=1e-9)


class TestViolations:
    def test_out_of_bounds(self):
        r = result_of([placed((5, 5, 5), (5, 5, 5), (6, 0, 0))])
        with pytest.raises(OutOfBoundsError):
            validate_result(r)

    def test_negative_origin(self):
        r = result_of([placed((5, 5, 5), (5, 5, 5), (0, -1, 0))])
        with pytest.raises(OutOfBoundsError):
            validate_result(r)

    def test_overlap(self):
        r = result_of([
            placed((5, 5, 5), (5, 5, 5), (0, 0, 0)),
            placed((5, 5, 5), (5, 5, 5), (4, 4, 4), item_id=2),
        ])
        with pytest.raises(OverlapError):
            validate_result(r)

    def test_scaled_dims(self):
        r = result_of([placed((1, 2, 3), (1, 2, 4), (0, 0, 0))])
        with pytest.raises(OrientationError):
            validate_result(r)

    def test_lost_unit(self):
        r = result_of([placed((1, 1, 1), (1, 1, 1), (0, 0, 0))])
        with pytest.raises(ConservationError):
            validate_result(r, expected_units=2)

    def test_duplicate_unit(self):
        unit = placed((1, 1, 1), (1, 1, 1), (0, 0, 0))
        with pytest.raises(ConservationError):
            validate_result(result_of([unit], [unit]))

    def test_packed_flag_mismatch(self):
        unit = PackedUnit(item=Item(1, 1, 1, 1))
        with pytest.raises(ConservationError):
            validate_result(result_of([unit]))

    def test_packed_in_degenerate_container(self):
        r = result_of([placed((1, 1, 1), (1, 1, 1), (0, 0, 0))], container=Container(0, 1, 1))
        with pytest.raises(ConservationError):
            validate_result(r)

    def test_all_errors_are_placement_errors(self):
        for cls in (OutOfBoundsError, OverlapError, OrientationError, ConservationError):
            assert issubclass(cls, PlacementError)


class TestOverlapMatrix:
    def test_symmetric_with_empty_diagonal(self):
        origins = np.array([[0, 0, 0], [1, 1, 1], [5, 5, 5]], dtype=float)
        extents = np.full((3, 3), 2.0)
        mask = overlap_matrix(origins, extents)
        assert mask[0, 1] and mask[1, 0]
        assert not mask[0, 2] and not mask[1, 2]
        assert not mask.diagonal().any()
