"""Tests for swappable sheet packing strategies."""
import pytest

from mosaic_nesting.contracts import (
    NestingCancelled,
    NestingOptions,
    UnplaceablePieceError,
    ValidationError,
)
from mosaic_nesting.strategies import (
    STRATEGIES,
    BoundingBoxStrategy,
    ShapeNestingStrategy,
    get_strategy,
)

from conftest import assert_in_bounds, assert_no_overlap, make_piece


def test_registry_names():
    assert set(STRATEGIES) == {"shape", "bbox"}
    assert isinstance(get_strategy("shape"), ShapeNestingStrategy)
    assert isinstance(get_strategy("bbox"), BoundingBoxStrategy)


def test_unknown_strategy():
    with pytest.raises(ValidationError, match="Unknown packing strategy"):
        get_strategy("genetic")


def test_bbox_cannot_use_cavities(donut_piece):
    inner = make_piece(1, ["###", "###", "###"])

    shape = get_strategy("shape").pack([donut_piece, inner], 5, 5)
    bbox = get_strategy("bbox").pack([donut_piece, inner], 5, 5)

    assert shape.total_sheets == 1
    assert bbox.total_sheets == 2
    assert bbox.strategy == "bbox"
    assert bbox.efficiency < shape.efficiency


def test_bbox_placements_claim_whole_box():
    piece = make_piece(0, ["###", "#.."])
    result = get_strategy("bbox").pack([piece], 4, 4, color="red")
    sheet = result.sheets[0]
    placement = sheet.placements[0]
    assert placement.solid is True
    assert sheet.occupancy.occupied_count == 6
    assert sheet.used_area == 4
    assert sheet.color == "red"
    assert sheet.occupancy.frozen


def test_bbox_respects_rotation_option():
    tall = make_piece(0, ["#", "#", "#"])
    result = get_strategy("bbox").pack([tall], 3, 1)
    assert result.sheets[0].placements[0].rotated is True

    strategy = get_strategy("bbox", options=NestingOptions(allow_rotation=False))
    with pytest.raises(UnplaceablePieceError):
        strategy.pack([tall], 3, 1)


def test_bbox_cancellation():
    strategy = get_strategy("bbox", cancel_check=lambda: True)
    with pytest.raises(NestingCancelled):
        strategy.pack([make_piece(0, ["#"])], 2, 2)


@pytest.mark.parametrize("name", sorted(STRATEGIES))
def test_strategies_place_every_piece_once(name):
    pieces = [
        make_piece(0, ["###", "#.#", "###"]),
        make_piece(1, ["##", "#."]),
        make_piece(2, ["####"]),
        make_piece(3, ["#", "#"]),
        make_piece(4, ["#"]),
    ]
    result = get_strategy(name).pack(pieces, 4, 4)
    assert sorted(p.piece.id for p in result.placements) == [0, 1, 2, 3, 4]
    for sheet in result.sheets:
        assert_no_overlap(sheet)
        assert_in_bounds(sheet)


def test_bbox_orders_by_bounding_box(donut_piece):
    solid = make_piece(1, ["#####", "#####", "#####", "#####"])
    result = get_strategy("bbox").pack([solid, donut_piece], 5, 5)
    assert result.sheets[0].placements[0].piece.id == 0
    assert result.sheets[1].placements[0].piece.id == 1
