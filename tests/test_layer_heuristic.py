"""
Tests for the layer heuristic packer.

Tie-break expectations below reproduce the documented choices of the
heuristic; they are not claims that the choice is optimal.
"""

import sys
import os
import dataclasses
import threading
import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "src"))

from container_packing.algorithms.layer_heuristic import (
    VARIANTS,
    BoxChoice,
    LayerHeuristicPacker,
    _LayerSearch,
)
from container_packing.algorithms.skyline import Skyline
from container_packing.core.models import Axis, Container, Item, expand_units


def make_search(container, items):
    search = _LayerSearch(container=container, units=expand_units(items))
    search.set_variant(VARIANTS[0])
    return search


@pytest.fixture
def packer():
    return LayerHeuristicPacker()


# ---------------------------------------------------------------------------
# Axis variants
# ---------------------------------------------------------------------------

class TestVariants:
    def test_six_distinct_permutations(self):
        assignments = {(v.x_axis, v.y_axis, v.z_axis) for v in VARIANTS}
        assert len(assignments) == 6
        for x, y, z in assignments:
            assert {x, y, z} == {Axis.LENGTH, Axis.WIDTH, Axis.HEIGHT}

    def test_first_variant_stacks_along_height(self):
        assert VARIANTS[0].extents(Container(1, 2, 3)) == (1, 3, 2)

    @pytest.mark.parametrize("index, expected", [
        (0, (7, 9, 8)),
        (2, (8, 7, 9)),
        (4, (7, 8, 9)),
    ])
    def test_to_container_mapping(self, index, expected):
        assert VARIANTS[index].to_container(7, 8, 9) == expected


# ---------------------------------------------------------------------------
# Search state
# ---------------------------------------------------------------------------

class TestSearchState:
    def test_derived_state(self):
        search = make_search(Container(10, 10, 10), [Item(1, 2, 3, 4, quantity=2), Item(2, 1, 1, 1)])
        assert search.groups == [[0, 1], [2]]
        assert search.dims == [(2, 3, 4), (2, 3, 4), (1, 1, 1)]
        assert search.dim_array.shape == (3, 3)
        assert search.total_item_volume == 49
        assert search.total_container_volume == 1000

    def test_every_attribute_is_a_declared_field(self):
        search = make_search(Container(10, 8, 6), [Item(1, 2, 3, 4, quantity=5), Item(2, 1, 1, 3, quantity=4)])
        search.search()
        search.replay()
        declared = {f.name for f in dataclasses.fields(_LayerSearch)}
        assert set(vars(search)) <= declared


# ---------------------------------------------------------------------------
# Candidate layers
# ---------------------------------------------------------------------------

class TestCandidateLayers:
    def test_sorted_by_score_and_deduplicated(self):
        search = make_search(Container(10, 10, 10), [Item(1, 2, 3, 4), Item(2, 2, 5, 6)])
        candidates = search.candidate_layers()
        assert [c.thickness for c in candidates] == [2, 3, 4, 5, 6]
        assert [c.evaluation for c in candidates] == [0, 1, 1, 1, 2]

    def test_thickness_limited_by_stacking_height(self):
        search = make_search(Container(10, 10, 5), [Item(1, 2, 3, 4), Item(2, 2, 5, 6)])
        assert [c.thickness for c in search.candidate_layers()] == [2, 3, 4, 5]

    def test_footprint_must_fit(self):
        # 12 is taller than the layer stack; 1 leaves a 12 x 1 footprint in a 10 x 10 layer
        search = make_search(Container(10, 10, 5), [Item(1, 12, 1, 1)])
        assert search.candidate_layers() == []

    def test_find_layer_stops_when_nothing_fits(self):
        search = make_search(Container(10, 10, 10), [Item(1, 6, 6, 6)])
        search.remain_py = 4
        search.packing = True
        search.find_layer(4)
        assert search.layer_thickness == 0
        assert not search.packing


# ---------------------------------------------------------------------------
# Box selection
# ---------------------------------------------------------------------------

class TestFindBox:
    def test_in_layer_and_overflow_choices(self):
        search = make_search(Container(10, 10, 10), [Item(1, 2, 3, 4)])
        best, overflow = search.find_box(max_x=10, layer_y=3, max_y=10, step_z=4, max_z=10)
        # least height slack first, then least width slack: the widest in-layer box
        assert best.dims == (4, 3, 2)
        assert overflow.dims == (3, 4, 2)

    def test_nothing_fits(self):
        search = make_search(Container(10, 10, 10), [Item(1, 2, 3, 4)])
        best, overflow = search.find_box(max_x=1, layer_y=3, max_y=10, step_z=4, max_z=10)
        assert not best.found and not overflow.found

    def test_one_representative_per_item_type(self):
        search = make_search(Container(10, 10, 10), [Item(1, 1, 1, 1, quantity=3)])
        search.packed[0] = True
        best, _ = search.find_box(10, 1, 10, 10, 10)
        assert best.unit_index == 1


class TestCheckFound:
    def test_overflow_box_grows_layer(self):
        search = make_search(Container(10, 10, 10), [Item(1, 1, 1, 1)])
        search.layer_thickness = 2
        overflow = BoxChoice(unit_index=0, dims=(3, 5, 3), slack=(3, 7, 0))
        chosen = search.check_found(Skyline(10), 0, BoxChoice(), overflow)
        assert chosen is overflow
        assert search.pre_layer == 2
        assert search.layer_in_layer == 3
        assert search.layer_thickness == 5

    def test_grown_layer_keeps_growing_on_any_gap(self):
        search = make_search(Container(10, 10, 10), [Item(1, 1, 1, 1)])
        search.layer_thickness = 5
        search.layer_in_layer = 3
        search.pre_layer = 2
        sky = Skyline(10)
        sky.insert_after(0, 10, 4)
        sky[0].cum_x = 5
        overflow = BoxChoice(unit_index=0, dims=(1, 6, 1), slack=(1, 4, 0))
        search.check_found(sky, 0, BoxChoice(), overflow)
        assert search.layer_in_layer == 4
        assert search.layer_thickness == 6
        assert search.pre_layer == 2

    def test_empty_gap_with_neighbours_is_flattened(self):
        search = make_search(Container(10, 10, 10), [Item(1, 1, 1, 1)])
        sky = Skyline(10)
        sky.insert_after(0, 10, 4)
        sky[0].cum_x = 5
        assert search.check_found(sky, 0, BoxChoice(), BoxChoice()) is None
        assert not search.layer_done
        assert sky.segments() == [(0.0, 10, 4)]

    def test_lone_empty_gap_ends_layer(self):
        search = make_search(Container(10, 10, 10), [Item(1, 1, 1, 1)])
        assert search.check_found(Skyline(10), 0, BoxChoice(), BoxChoice()) is None
        assert search.layer_done


# ---------------------------------------------------------------------------
# Skyline updates
# ---------------------------------------------------------------------------

class TestPlaceOnSkyline:
    @pytest.fixture
    def search(self):
        return make_search(Container(10, 10, 10), [Item(1, 1, 1, 1)])

    def test_row_fills_left_to_right(self, search):
        sky = Skyline(10)
        assert search.place_on_skyline(sky, 0, 4, 3) == 0
        assert sky.segments() == [(0.0, 4, 3), (4, 10, 0.0)]
        assert search.place_on_skyline(sky, 1, 2, 3) == 4
        assert sky.segments() == [(0.0, 6, 3), (6, 10, 0.0)]
        assert search.place_on_skyline(sky, 1, 4, 3) == 6
        assert sky.segments() == [(0.0, 10, 3)]

    def test_equal_neighbours_box_against_right_side(self, search):
        sky = Skyline(3)
        sky[0].cum_z = 5
        mid = sky.insert_after(0, 6, 0)
        sky.insert_after(mid, 10, 5)
        x = search.place_on_skyline(sky, mid, 1, 5)
        assert x == 5
        assert sky.segments() == [(0.0, 3, 5), (3, 5, 0), (5, 10, 5)]

    def test_equal_neighbours_box_against_left_side(self, search):
        sky = Skyline(5)
        sky[0].cum_z = 5
        mid = sky.insert_after(0, 8, 0)
        sky.insert_after(mid, 10, 5)
        x = search.place_on_skyline(sky, mid, 1, 5)
        assert x == 5
        assert sky.segments() == [(0.0, 6, 5), (6, 8, 0), (8, 10, 5)]

    def test_first_gap_box_against_next_step(self, search):
        sky = Skyline(6)
        sky.insert_after(0, 10, 2)
        x = search.place_on_skyline(sky, 0, 2, 1)
        assert x == 4
        assert sky.segments() == [(0.0, 4, 0.0), (4, 6, 1), (6, 10, 2)]

    def test_lone_gap_filled_across(self, search):
        sky = Skyline(10)
        assert search.place_on_skyline(sky, 0, 10, 3) == 0
        assert sky.segments() == [(0.0, 10, 3)]

    # first gap, deeper step to the right

    @pytest.fixture
    def first_gap(self):
        sky = Skyline(4)
        sky.insert_after(0, 10, 2)
        return sky

    def test_first_gap_full_width_reaches_next_step(self, search, first_gap):
        assert search.place_on_skyline(first_gap, 0, 4, 2) == 0
        assert first_gap.segments() == [(0.0, 10, 2)]

    def test_first_gap_full_width_below_next_step(self, search, first_gap):
        assert search.place_on_skyline(first_gap, 0, 4, 1) == 0
        assert first_gap.segments() == [(0.0, 4, 1), (4, 10, 2)]

    def test_first_gap_narrow_box_reaches_next_step(self, search, first_gap):
        assert search.place_on_skyline(first_gap, 0, 1, 2) == 3
        assert first_gap.segments() == [(0.0, 3, 0.0), (3, 10, 2)]

    # last gap, deeper step to the left

    @pytest.fixture
    def last_gap(self):
        sky = Skyline(4)
        sky[0].cum_z = 3
        return sky, sky.insert_after(0, 10, 0)

    def test_last_gap_full_width_below_previous_step(self, search, last_gap):
        sky, gap = last_gap
        assert search.place_on_skyline(sky, gap, 6, 1) == 4
        assert sky.segments() == [(0.0, 4, 3), (4, 10, 1)]

    def test_last_gap_narrow_box_below_previous_step(self, search, last_gap):
        sky, gap = last_gap
        assert search.place_on_skyline(sky, gap, 2, 1) == 4
        assert sky.segments() == [(0.0, 4, 3), (4, 6, 1), (6, 10, 0)]

    # gap between two steps of equal depth

    @pytest.fixture
    def pit(self):
        sky = Skyline(3)
        sky[0].cum_z = 5
        gap = sky.insert_after(0, 6, 0)
        sky.insert_after(gap, 10, 5)
        return sky, gap

    def test_pit_filled_to_the_brim(self, search, pit):
        sky, gap = pit
        assert search.place_on_skyline(sky, gap, 3, 5) == 3
        assert sky.segments() == [(0.0, 10, 5)]

    def test_pit_full_width_below_the_brim(self, search, pit):
        sky, gap = pit
        assert search.place_on_skyline(sky, gap, 3, 2) == 3
        assert sky.segments() == [(0.0, 3, 5), (3, 6, 2), (6, 10, 5)]

    def test_pit_near_left_wall_narrow_box_below_the_brim(self, search, pit):
        sky, gap = pit
        assert search.place_on_skyline(sky, gap, 1, 2) == 3
        assert sky.segments() == [(0.0, 3, 5), (3, 4, 2), (4, 6, 0), (6, 10, 5)]

    def test_pit_near_right_wall_narrow_box_below_the_brim(self, search):
        sky = Skyline(5)
        sky[0].cum_z = 5
        gap = sky.insert_after(0, 8, 0)
        sky.insert_after(gap, 10, 5)
        assert search.place_on_skyline(sky, gap, 1, 2) == 7
        assert sky.segments() == [(0.0, 5, 5), (5, 7, 0), (7, 8, 2), (8, 10, 5)]

    # gap between steps of different depth

    @pytest.fixture
    def stair(self):
        sky = Skyline(3)
        sky[0].cum_z = 5
        gap = sky.insert_after(0, 6, 0)
        sky.insert_after(gap, 10, 2)
        return sky, gap

    def test_stair_full_width_reaches_previous_step(self, search, stair):
        sky, gap = stair
        assert search.place_on_skyline(sky, gap, 3, 5) == 3
        assert sky.segments() == [(0.0, 6, 5), (6, 10, 2)]

    def test_stair_full_width_reaches_neither_step(self, search, stair):
        sky, gap = stair
        assert search.place_on_skyline(sky, gap, 3, 1) == 3
        assert sky.segments() == [(0.0, 3, 5), (3, 6, 1), (6, 10, 2)]

    def test_stair_narrow_box_level_with_previous_step(self, search, stair):
        sky, gap = stair
        assert search.place_on_skyline(sky, gap, 1, 5) == 3
        assert sky.segments() == [(0.0, 4, 5), (4, 6, 0), (6, 10, 2)]

    def test_stair_narrow_box_level_with_next_step(self, search, stair):
        sky, gap = stair
        assert search.place_on_skyline(sky, gap, 1, 2) == 5
        assert sky.segments() == [(0.0, 3, 5), (3, 5, 0), (5, 10, 2)]

    def test_stair_narrow_box_level_with_neither_step(self, search, stair):
        sky, gap = stair
        assert search.place_on_skyline(sky, gap, 1, 1) == 3
        assert sky.segments() == [(0.0, 3, 5), (3, 4, 1), (4, 6, 0), (6, 10, 2)]


# ---------------------------------------------------------------------------
# Whole runs
# ---------------------------------------------------------------------------

class TestRuns:
    def test_exact_fit(self, packer):
        result = packer.run(Container(10, 10, 10), [Item(1, 10, 10, 10)])
        assert result.is_complete_pack
        unit = result.packed_units[0]
        assert unit.origin == (0, 0, 0)
        assert result.diagnostics["iterations"] == 1
        assert result.diagnostics["best_variant"] == 1
        assert result.diagnostics["best_iteration"] == 0

    def test_orientation_mapped_back_to_container_axes(self, packer):
        result = packer.run(Container(10, 10, 4), [Item(1, 10, 10, 4)])
        assert result.is_complete_pack
        assert result.packed_units[0].packed_dims == (10, 10, 4)

    def test_layers_stack(self, packer):
        result = packer.run(Container(10, 10, 10), [Item(1, 5, 5, 5, quantity=8)])
        assert result.is_complete_pack
        origins = sorted(u.origin for u in result.packed_units)
        assert origins[0] == (0, 0, 0)
        assert origins[-1] == (5, 5, 5)

    def test_cube_container_searches_one_variant(self, packer):
        result = packer.run(Container(10, 10, 10), [Item(1, 7, 4, 3, quantity=5)])
        assert result.diagnostics["best_variant"] == 1

    def test_nothing_fits(self, packer):
        result = packer.run(Container(5, 5, 5), [Item(1, 6, 5, 5)])
        assert not result.packed_units
        assert result.diagnostics["iterations"] == 0
        assert result.diagnostics["best_variant"] is None

    def test_packed_order_is_commit_order(self, packer):
        result = packer.run(Container(3, 1, 1), [Item(1, 1, 1, 1, quantity=3)])
        assert [u.x for u in result.packed_units] == sorted(u.x for u in result.packed_units)

    def test_unpacked_in_input_order(self, packer):
        items = [Item(1, 10, 10, 6), Item(2, 10, 10, 6), Item(3, 10, 10, 6)]
        result = packer.run(Container(10, 10, 10), items)
        assert [u.item_id for u in result.unpacked_units] == [2, 3]

    def test_cancelled_before_start(self, packer):
        event = threading.Event()
        event.set()
        result = packer.run(Container(10, 10, 10), [Item(1, 1, 1, 1, quantity=5)], cancel_event=event)
        assert result.diagnostics["cancelled"]
        assert len(result.unpacked_units) == 5

    def test_logs_report(self, packer, caplog):
        with caplog.at_level("INFO", logger="container_packing.algorithms.layer_heuristic"):
            packer.run(Container(10, 10, 10), [Item(1, 10, 10, 10)])
        assert "iterations" in caplog.text
        assert "container used 100.00%" in caplog.text
