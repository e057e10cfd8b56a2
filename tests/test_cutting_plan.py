"""Tests for cutting plan generation."""
import json

import numpy as np
import pytest

from mosaic_nesting.cutting_plan import generate_cutting_plan
from mosaic_nesting.geometry import hole_mask, outline_metrics
from mosaic_nesting.sheets import Sheet

from conftest import make_piece


@pytest.fixture
def two_sheets():
    first = Sheet(4, 4, color="#112233")
    first.place(make_piece(0, ["##", "##"], color="#112233"), 0, 0)
    second = Sheet(4, 4, color="#112233")
    second.place(make_piece(1, ["####", "#..."], color="#112233", is_cut=True, parent_id=5), 0, 0, rotated=True)
    second.place(make_piece(2, ["###", "#.#", "###"], color="#112233"), 1, 0)
    return [first, second]


class TestOutlineMetrics:
    """Cut length and holes from Shapely outlines."""

    def test_square(self):
        assert outline_metrics(np.ones((2, 3), dtype=bool)) == (10.0, 0)

    def test_ring_counts_inner_boundary(self):
        ring = make_piece(0, ["###", "#.#", "###"])
        length, holes = outline_metrics(ring.mask)
        assert length == pytest.approx(16.0)
        assert holes == 1

    def test_hole_mask_ignores_open_pockets(self):
        cup = make_piece(0, ["#.#", "###"])
        assert not hole_mask(cup.mask).any()
        ring = make_piece(1, ["###", "#.#", "###"])
        assert hole_mask(ring.mask)[1, 1]


class TestGenerateCuttingPlan:
    """Projection of packed sheets into cutting instructions."""

    def test_sheets_are_numbered_from_one(self, two_sheets):
        plan = generate_cutting_plan(two_sheets)
        assert [s.sheet_number for s in plan.sheets] == [1, 2]
        assert plan.piece_count == 3

    def test_entries_follow_placement_order(self, two_sheets):
        plan = generate_cutting_plan(two_sheets)
        assert [e.piece_id for e in plan.sheets[1].entries] == [1, 2]

    def test_rotated_dimensions(self, two_sheets):
        entry = generate_cutting_plan(two_sheets).sheets[1].entries[0]
        assert entry.rotated is True
        assert (entry.width, entry.height) == (2, 4)
        assert entry.position == (0, 0)
        assert entry.is_cut is True
        assert entry.parent_id == 5

    def test_entry_outline(self, two_sheets):
        ring = generate_cutting_plan(two_sheets).sheets[1].entries[1]
        assert ring.area == 8
        assert ring.cut_length == pytest.approx(16.0)
        assert ring.hole_count == 1

    def test_statistics(self, two_sheets):
        plan = generate_cutting_plan(two_sheets)
        assert plan.total_sheets == 2
        assert plan.used_area == 4 + 5 + 8
        assert plan.total_sheet_area == 32
        assert plan.wasted_area == 32 - 17
        assert plan.efficiency == pytest.approx(17 / 32 * 100)
        assert plan.waste_percentage == pytest.approx(100.0 - plan.efficiency)

    def test_material_cost(self, two_sheets):
        assert generate_cutting_plan(two_sheets).material_cost(12.5) == pytest.approx(25.0)

    def test_input_sheets_are_untouched(self, two_sheets):
        before = [len(s.placements) for s in two_sheets]
        generate_cutting_plan(two_sheets)
        assert [len(s.placements) for s in two_sheets] == before

    def test_to_dict_is_json_ready(self, two_sheets):
        payload = generate_cutting_plan(two_sheets).to_dict()
        text = json.dumps(payload)
        assert json.loads(text) == payload
        assert payload["statistics"]["totalSheets"] == 2
        sheet = payload["cuttingPlan"][1]
        assert sheet["sheetNumber"] == 2
        assert sheet["pieces"][0]["dimensions"] == {"width": 2, "height": 4}
        assert sheet["pieces"][0]["rotated"] is True
        assert sheet["pieces"][1]["holeCount"] == 1

    def test_tuple_colors_become_lists(self):
        color = (255, 0, 0)
        sheet = Sheet(2, 2, color=color)
        sheet.place(make_piece(0, ["#"], color=color), 0, 0)
        payload = generate_cutting_plan([sheet]).to_dict()
        assert payload["cuttingPlan"][0]["color"] == [255, 0, 0]
        assert payload["cuttingPlan"][0]["pieces"][0]["color"] == [255, 0, 0]

    def test_non_json_colors_are_stringified(self):
        color = frozenset({"r"})
        sheet = Sheet(2, 2, color=color)
        sheet.place(make_piece(0, ["#"], color=color), 0, 0)
        payload = generate_cutting_plan([sheet]).to_dict()
        assert payload["cuttingPlan"][0]["color"] == str(color)

    def test_empty_plan(self):
        plan = generate_cutting_plan([])
        assert plan.total_sheets == 0
        assert plan.efficiency == 0.0
