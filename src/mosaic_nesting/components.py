"""
Connected-component segmentation of a color grid.

Every maximal 4-connected run of identical color tokens becomes a Component
with its bounding box and a local boolean shape mask. Flood fill uses an
explicit stack so very large regions never hit the recursion limit.
"""

import logging
from typing import Hashable, List, Optional, Tuple

import numpy as np

from mosaic_nesting.contracts import (
    Cell,
    ColorGrid,
    Component,
    ValidationError,
    bounding_box,
    build_mask,
)

logger = logging.getLogger(__name__)


def validate_color_grid(grid: ColorGrid) -> Tuple[int, int]:
    """Check the grid is present, non-empty and rectangular.

    Returns:
        (width, height) of the grid.
    """
    if grid is None:
        raise ValidationError("Color grid is missing")
    if isinstance(grid, (str, bytes)):
        raise ValidationError("Color grid must be a sequence of rows, not a string")
    try:
        height = len(grid)
    except TypeError as exc:
        raise ValidationError(f"Color grid is not a sequence: {type(grid).__name__}") from exc
    if height == 0:
        raise ValidationError("Color grid has no rows")

    width = None
    for y in range(height):
        row = grid[y]
        if isinstance(row, (str, bytes)) or not hasattr(row, "__len__"):
            raise ValidationError(f"Row {y} is not a sequence of colors")
        if width is None:
            width = len(row)
            if width == 0:
                raise ValidationError("Color grid rows are empty")
        elif len(row) != width:
            raise ValidationError(
                f"Color grid is not rectangular: row {y} has {len(row)} cells, expected {width}"
            )
    return width, height


def normalize_color_grid(grid: ColorGrid) -> List[List[Hashable]]:
    """Validated copy of ``grid`` whose color tokens are all hashable.

    List and array tokens, such as ``[r, g, b]`` triplets read from JSON,
    become tuples. Any other unhashable token is rejected.
    """
    width, height = validate_color_grid(grid)
    rows: List[List[Hashable]] = []
    for y in range(height):
        row = []
        for x in range(width):
            token = grid[y][x]
            if isinstance(token, np.ndarray):
                token = tuple(token.tolist())
            elif isinstance(token, list):
                token = tuple(token)
            try:
                hash(token)
            except TypeError as exc:
                raise ValidationError(
                    f"Color at ({x}, {y}) is not hashable: {token!r}"
                ) from exc
            row.append(token)
        rows.append(row)
    return rows


def flood_fill(
    grid,
    start_x: int,
    start_y: int,
    visited: np.ndarray,
    target: Optional[Hashable] = None,
) -> List[Cell]:
    """Collect the 4-connected cells equal to ``target`` reachable from a seed.

    ``target`` defaults to the seed's own value. Works on nested lists and on
    2D numpy arrays alike. ``visited`` is updated in place.
    """
    height = len(grid)
    width = len(grid[0])
    if not (0 <= start_x < width and 0 <= start_y < height):
        return []
    if target is None:
        target = grid[start_y][start_x]

    cells: List[Cell] = []
    stack = [(start_x, start_y)]
    while stack:
        x, y = stack.pop()
        if x < 0 or x >= width or y < 0 or y >= height:
            continue
        if visited[y, x] or grid[y][x] != target:
            continue
        visited[y, x] = True
        cells.append((x, y))
        stack.append((x + 1, y))
        stack.append((x - 1, y))
        stack.append((x, y + 1))
        stack.append((x, y - 1))
    return cells


def find_connected_components(grid: ColorGrid) -> List[Component]:
    """Segment a color grid into components in row-major discovery order."""
    grid = normalize_color_grid(grid)
    width, height = len(grid[0]), len(grid)
    visited = np.zeros((height, width), dtype=bool)
    components: List[Component] = []

    for y in range(height):
        for x in range(width):
            if visited[y, x]:
                continue
            color = grid[y][x]
            pixels = flood_fill(grid, x, y, visited, target=color)
            if not pixels:
                continue
            bbox = bounding_box(pixels)
            components.append(
                Component(
                    index=len(components),
                    color=color,
                    pixels=tuple(pixels),
                    bbox=bbox,
                    mask=build_mask(pixels, bbox),
                )
            )

    logger.debug("Found %d components in %dx%d grid", len(components), width, height)
    return components
