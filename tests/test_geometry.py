"""Tests for the axis-aligned box primitives."""

import sys
import os
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from container_packing.core.geometry import (
    boxes_overlap,
    fill_rank,
    fill_ratio,
    fits_in_container,
    intervals_overlap,
    total_volume,
    units_overlap,
)
from container_packing.core.models import Container, Item, PackedUnit


def placed(dims, origin, item_id=1):
    return PackedUnit(item=Item(item_id, *dims), oriented_l=dims[0], oriented_w=dims[1],
                      oriented_h=dims[2], x=origin[0], y=origin[1], z=origin[2],
                      is_packed=True)


class TestIntervalsOverlap:
    @pytest.mark.parametrize("a, b, expected", [
        ((0, 2), (1, 2), True),
        ((0, 2), (2, 2), False),
        ((2, 2), (0, 2), False),
        ((0, 10), (4, 1), True),
        ((0, 1.5), (1.5, 1), False),
    ])
    def test_half_open(self, a, b, expected):
        assert intervals_overlap(*a, *b) is expected


class TestBoxesOverlap:
    def test_intersecting(self):
        assert boxes_overlap((0, 0, 0), (2, 2, 2), (1, 1, 1), (2, 2, 2))

    @pytest.mark.parametrize("axis", [0, 1, 2])
    def test_shared_face_is_not_overlap(self, axis):
        origin = [0, 0, 0]
        origin[axis] = 2
        assert not boxes_overlap((0, 0, 0), (2, 2, 2), origin, (2, 2, 2))

    def test_separated_on_one_axis_only(self):
        assert not boxes_overlap((0, 0, 0), (5, 5, 1), (0, 0, 3), (5, 5, 1))

    def test_contained_box(self):
        assert boxes_overlap((0, 0, 0), (10, 10, 10), (4, 4, 4), (1, 1, 1))

    def test_units_overlap(self):
        assert units_overlap(placed((2, 2, 2), (0, 0, 0)), placed((2, 2, 2), (1, 0, 0)))
        assert not units_overlap(placed((2, 2, 2), (0, 0, 0)), placed((2, 2, 2), (2, 0, 0)))


class TestFitsInContainer:
    def test_exact_fit(self):
        assert fits_in_container((0, 0, 0), (10, 10, 10), Container(10, 10, 10))

    def test_overflow(self):
        assert not fits_in_container((1, 0, 0), (10, 10, 10), Container(10, 10, 10))

    def test_negative_origin(self):
        assert not fits_in_container((0, -1, 0), (1, 1, 1), Container(10, 10, 10))


class TestScores:
    @pytest.fixture
    def container(self):
        return Container(10, 10, 10)

    def test_total_volume_counts_packed_only(self):
        units = [placed((2, 2, 2), (0, 0, 0)), PackedUnit(item=Item(2, 3, 3, 3))]
        assert total_volume(units) == 8
        assert total_volume(units, packed_only=False) == 35

    def test_fill_ratio(self, container):
        assert fill_ratio(250, container) == pytest.approx(0.25)
        assert fill_ratio(250, Container(0, 1, 1)) == 0.0

    def test_fill_rank_complete_bonus(self, container):
        assert fill_rank([placed((10, 10, 6), (0, 0, 0))], container) == 160

    def test_fill_rank_without_bonus(self, container):
        units = [placed((10, 10, 6), (0, 0, 0)), PackedUnit(item=Item(2, 10, 10, 6))]
        assert fill_rank(units, container) == 60

    def test_fill_rank_rounds_up(self, container):
        assert fill_rank([placed((1, 1, 1), (0, 0, 0))], container) == 101

    def test_fill_rank_nothing_packed(self, container):
        assert fill_rank([PackedUnit(item=Item(1, 11, 1, 1))], container) == 0

    def test_fill_rank_degenerate_container(self):
        assert fill_rank([placed((1, 1, 1), (0, 0, 0))], Container(0, 10, 10)) == 0
