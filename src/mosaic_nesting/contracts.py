"""Contracts for the mosaic sheet nesting engine."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Hashable, Iterable, List, Optional, Sequence, Tuple

import numpy as np

Cell = Tuple[int, int]  # (x, y)
ColorGrid = Sequence[Sequence[Hashable]]


class ValidationError(ValueError):
    """Grid or configuration rejected before any segmentation or packing."""
    pass


class NestingError(Exception):
    """Base exception for failures while packing pieces onto sheets."""
    pass


class UnplaceablePieceError(NestingError):
    """One or more pieces can never fit the selected sheet."""

    def __init__(self, piece_ids: Iterable[int], sheet_width: int, sheet_height: int):
        self.piece_ids = list(piece_ids)
        self.sheet_width = sheet_width
        self.sheet_height = sheet_height
        super().__init__(
            f"{len(self.piece_ids)} piece(s) do not fit a "
            f"{sheet_width}x{sheet_height} sheet: {self.piece_ids}"
        )


class OverlapError(NestingError):
    """A claim touched an occupied, out-of-bounds, or frozen sheet cell."""
    pass


class NestingCancelled(NestingError):
    """The caller's cancel signal fired between piece placements."""
    pass


@dataclass(frozen=True)
class BoundingBox:
    """Axis-aligned cell bounds; max_x / max_y are inclusive."""

    min_x: int
    min_y: int
    width: int
    height: int

    @property
    def max_x(self) -> int:
        return self.min_x + self.width - 1

    @property
    def max_y(self) -> int:
        return self.min_y + self.height - 1

    def translated(self, dx: int, dy: int) -> "BoundingBox":
        return BoundingBox(self.min_x + dx, self.min_y + dy, self.width, self.height)


def bounding_box(pixels: Sequence[Cell]) -> BoundingBox:
    """Bounds of a non-empty pixel collection."""
    if not pixels:
        raise ValueError("Cannot bound an empty pixel set")
    xs = [p[0] for p in pixels]
    ys = [p[1] for p in pixels]
    min_x, min_y = min(xs), min(ys)
    return BoundingBox(min_x, min_y, max(xs) - min_x + 1, max(ys) - min_y + 1)


def build_mask(pixels: Sequence[Cell], bbox: BoundingBox) -> np.ndarray:
    """Read-only (height, width) boolean mask of pixels local to bbox."""
    mask = np.zeros((bbox.height, bbox.width), dtype=bool)
    for x, y in pixels:
        mask[y - bbox.min_y, x - bbox.min_x] = True
    mask.flags.writeable = False
    return mask


def orient_mask(mask: np.ndarray, rotated: bool) -> np.ndarray:
    """Mask as laid on a sheet.

    A quarter turn sends local (px, py) of a W-wide piece to (py, W - 1 - px),
    which is numpy's counter-clockwise ``rot90``.
    """
    if not rotated:
        return mask
    return np.rot90(mask)


@dataclass(frozen=True, eq=False)
class Component:
    """Maximal 4-connected region of one color, in discovery order."""

    index: int
    color: Hashable
    pixels: Tuple[Cell, ...]
    bbox: BoundingBox
    mask: np.ndarray

    @property
    def area(self) -> int:
        return len(self.pixels)

    @property
    def width(self) -> int:
        return self.bbox.width

    @property
    def height(self) -> int:
        return self.bbox.height


@dataclass(frozen=True, eq=False)
class Piece:
    """Unit placed onto sheets: a whole component or a split fragment."""

    id: int
    color: Hashable
    pixels: Tuple[Cell, ...]
    bbox: BoundingBox
    mask: np.ndarray
    is_cut: bool = False
    parent_id: Optional[int] = None
    source_index: int = 0

    @property
    def area(self) -> int:
        return len(self.pixels)

    @property
    def width(self) -> int:
        return self.bbox.width

    @property
    def height(self) -> int:
        return self.bbox.height

    @classmethod
    def from_mask(cls, piece_id: int, color: Hashable, mask, **kwargs) -> "Piece":
        """Build a piece whose pixels sit at the origin of ``mask``."""
        grid = np.asarray(mask, dtype=bool)
        ys, xs = np.nonzero(grid)
        pixels = tuple(
            sorted(((int(x), int(y)) for x, y in zip(xs, ys)), key=lambda c: (c[1], c[0]))
        )
        bbox = bounding_box(pixels)
        return cls(
            id=piece_id,
            color=color,
            pixels=pixels,
            bbox=bbox,
            mask=build_mask(pixels, bbox),
            **kwargs,
        )


@dataclass(frozen=True, eq=False)
class Placement:
    """A piece bound to a sheet offset, optionally turned 90 degrees.

    ``solid`` placements claim their whole bounding box (bounding-box
    packing); otherwise only the true mask cells are claimed.
    """

    piece: Piece
    x: int
    y: int
    rotated: bool = False
    nested_in: Optional[int] = None
    solid: bool = False

    @property
    def width(self) -> int:
        return self.piece.height if self.rotated else self.piece.width

    @property
    def height(self) -> int:
        return self.piece.width if self.rotated else self.piece.height

    @property
    def area(self) -> int:
        return self.piece.area

    def oriented_mask(self) -> np.ndarray:
        return orient_mask(self.piece.mask, self.rotated)

    def footprint(self) -> np.ndarray:
        """Cells this placement claims, local to (x, y)."""
        if self.solid:
            return np.ones((self.height, self.width), dtype=bool)
        return self.oriented_mask()

    def cells(self) -> List[Cell]:
        """Sheet coordinates of every claimed cell."""
        ys, xs = np.nonzero(self.footprint())
        return [(self.x + int(x), self.y + int(y)) for x, y in zip(xs, ys)]


@dataclass(frozen=True)
class Cavity:
    """Empty region inside a placed piece, in sheet coordinates."""

    container_id: int
    pixels: Tuple[Cell, ...]
    bbox: BoundingBox
    enclosed: bool

    @property
    def size(self) -> int:
        return len(self.pixels)


@dataclass(frozen=True)
class NestingOptions:
    """Tuning knobs for the shape-aware nester."""

    allow_rotation: bool = True
    nest_in_cavities: bool = True
    min_cavity_cells: int = 4  # cavities must be strictly larger
    require_enclosed_cavities: bool = False
