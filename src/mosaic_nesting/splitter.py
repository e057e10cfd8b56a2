"""
Oversized-region splitting.

A component whose bounding box exceeds the size ceiling is partitioned by
pixel membership into fragments that each fit. Cuts are evenly spaced along
the offending axis (width first); fragments are re-checked until every one
fits. Fragments are not required to stay 4-connected.
"""

import logging
from bisect import bisect_right
from typing import List, Sequence, Tuple

from mosaic_nesting.contracts import (
    Cell,
    Component,
    Piece,
    ValidationError,
    bounding_box,
    build_mask,
)

logger = logging.getLogger(__name__)


def cut_coordinates(dimension: int, max_dimension: int) -> List[int]:
    """Evenly spaced local cut positions so every slab is <= max_dimension.

    With ``k = ceil(dimension / max_dimension) - 1`` cuts, cut ``i`` sits at
    ``floor(dimension * i / (k + 1))``.
    """
    if max_dimension < 1:
        raise ValidationError(f"Size ceiling must be positive, got {max_dimension}")
    if dimension <= max_dimension:
        return []
    cuts = -(-dimension // max_dimension) - 1
    return [dimension * i // (cuts + 1) for i in range(1, cuts + 1)]


def _partition(
    pixels: Sequence[Cell],
    axis: int,
    origin: int,
    cuts: Sequence[int],
) -> List[Tuple[Cell, ...]]:
    """Split pixels into len(cuts) + 1 slabs along ``axis`` (0 = x, 1 = y)."""
    slabs: List[List[Cell]] = [[] for _ in range(len(cuts) + 1)]
    for cell in pixels:
        slabs[bisect_right(cuts, cell[axis] - origin)].append(cell)
    return [tuple(s) for s in slabs]


def split_component(
    component: Component,
    max_dimension: int,
    first_piece_id: int = 0,
) -> List[Piece]:
    """Return pieces covering ``component`` exactly once, each within bounds.

    Args:
        component: Region to split.
        max_dimension: Size ceiling for both bounding-box dimensions.
        first_piece_id: Id given to the first returned piece; the rest
            follow sequentially.
    """
    if max_dimension < 1:
        raise ValidationError(f"Size ceiling must be positive, got {max_dimension}")

    if component.width <= max_dimension and component.height <= max_dimension:
        return [
            Piece(
                id=first_piece_id,
                color=component.color,
                pixels=component.pixels,
                bbox=component.bbox,
                mask=component.mask,
                is_cut=False,
                source_index=component.index,
            )
        ]

    # Depth-first work stack; slabs pushed in reverse keep left-to-right,
    # top-to-bottom output order.
    pending: List[Tuple[Cell, ...]] = [component.pixels]
    fragments: List[Tuple[Cell, ...]] = []
    while pending:
        pixels = pending.pop()
        if not pixels:
            continue
        bbox = bounding_box(pixels)
        if bbox.width > max_dimension:
            slabs = _partition(pixels, 0, bbox.min_x, cut_coordinates(bbox.width, max_dimension))
        elif bbox.height > max_dimension:
            slabs = _partition(pixels, 1, bbox.min_y, cut_coordinates(bbox.height, max_dimension))
        else:
            fragments.append(pixels)
            continue
        pending.extend(s for s in reversed(slabs) if s)

    pieces = []
    for offset, pixels in enumerate(fragments):
        bbox = bounding_box(pixels)
        pieces.append(
            Piece(
                id=first_piece_id + offset,
                color=component.color,
                pixels=pixels,
                bbox=bbox,
                mask=build_mask(pixels, bbox),
                is_cut=True,
                parent_id=component.index,
                source_index=component.index,
            )
        )

    logger.debug(
        "Split component %d (%dx%d, area %d) into %d pieces at ceiling %d",
        component.index,
        component.width,
        component.height,
        component.area,
        len(pieces),
        max_dimension,
    )
    return pieces


def extract_pieces(components: Sequence[Component], max_dimension: int) -> List[Piece]:
    """Turn components into pieces with sequential ids in discovery order."""
    pieces: List[Piece] = []
    cut_count = 0
    for component in components:
        if component.area < 1:
            continue
        parts = split_component(component, max_dimension, first_piece_id=len(pieces))
        if parts and parts[0].is_cut:
            cut_count += 1
        pieces.extend(parts)

    logger.info(
        "Extracted %d pieces from %d components (%d split at ceiling %d)",
        len(pieces),
        len(components),
        cut_count,
        max_dimension,
    )
    return pieces
