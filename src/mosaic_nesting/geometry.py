"""
Mask geometry helpers.

Converts boolean cell masks into Shapely outlines (for cut lengths and hole
counts) and classifies empty cells that are true holes of a mask.
"""
from typing import List, Tuple

import numpy as np
from scipy.ndimage import binary_fill_holes
from shapely.geometry import MultiPolygon, Polygon, box
from shapely.ops import unary_union


def mask_to_geometry(mask: np.ndarray, origin: Tuple[int, int] = (0, 0)):
    """Union of unit squares for every true cell.

    Returns a Polygon, a MultiPolygon (cells touching only at corners), or an
    empty Polygon for an empty mask.
    """
    ox, oy = origin
    ys, xs = np.nonzero(np.asarray(mask, dtype=bool))
    if len(xs) == 0:
        return Polygon()
    squares = [box(ox + int(x), oy + int(y), ox + int(x) + 1, oy + int(y) + 1) for x, y in zip(xs, ys)]
    return unary_union(squares)


def _polygons(geometry) -> List[Polygon]:
    if geometry.is_empty:
        return []
    if isinstance(geometry, MultiPolygon):
        return list(geometry.geoms)
    return [geometry]


def outline_metrics(mask: np.ndarray) -> Tuple[float, int]:
    """(cut length, hole count) of a mask outline, in cell units.

    Cut length includes the boundaries of interior holes.
    """
    polygons = _polygons(mask_to_geometry(mask))
    length = float(sum(p.length for p in polygons))
    holes = sum(len(p.interiors) for p in polygons)
    return length, holes


def hole_mask(mask: np.ndarray) -> np.ndarray:
    """Empty cells not 4-connected to the mask's bounding-box border."""
    filled = binary_fill_holes(np.asarray(mask, dtype=bool))
    return filled & ~np.asarray(mask, dtype=bool)
