"""
Shared test fixtures for the mosaic nesting engine.
"""
import sys
from pathlib import Path

import numpy as np
import pytest

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mosaic_nesting.contracts import Piece


def make_piece(piece_id, rows, color="#000000", **kwargs):
    """Piece from rows of '#' (filled) and '.' (empty) characters."""
    mask = np.array([[ch == "#" for ch in row] for row in rows], dtype=bool)
    return Piece.from_mask(piece_id, color, mask, **kwargs)


def assert_no_overlap(sheet):
    seen = set()
    for placement in sheet.placements:
        for cell in placement.cells():
            assert cell not in seen, f"cell {cell} covered twice"
            seen.add(cell)


def assert_in_bounds(sheet):
    for placement in sheet.placements:
        for x, y in placement.cells():
            assert 0 <= x < sheet.width
            assert 0 <= y < sheet.height


@pytest.fixture
def two_color_grid():
    """5x4 grid: a red L, a blue block, and an isolated red corner."""
    R, B = "#ff0000", "#0000ff"
    return [
        [R, R, B, B, R],
        [R, B, B, B, B],
        [R, R, R, B, B],
        [B, B, B, B, B],
    ]


@pytest.fixture
def donut_piece():
    """5x5 ring with a 3x3 hole."""
    return make_piece(
        0,
        [
            "#####",
            "#...#",
            "#...#",
            "#...#",
            "#####",
        ],
    )


@pytest.fixture
def checker_grid():
    """6x6 grid of 2x2 blocks in alternating colors."""
    grid = []
    for y in range(6):
        row = []
        for x in range(6):
            row.append("a" if ((x // 2) + (y // 2)) % 2 == 0 else "b")
        grid.append(row)
    return grid
