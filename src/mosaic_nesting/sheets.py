"""Grid-backed sheets and the per-run nesting result."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Hashable, List, Optional, Tuple

import numpy as np

from mosaic_nesting.contracts import OverlapError, Piece, Placement, orient_mask


class OccupancyGrid:
    """Single-writer occupancy bitmap for one sheet.

    Claims that would touch an occupied or out-of-bounds cell are refused,
    so a grid can never hold overlapping placements. Once frozen the bitmap
    is read-only.
    """

    def __init__(self, width: int, height: int):
        self.width = int(width)
        self.height = int(height)
        self._cells = np.zeros((self.height, self.width), dtype=bool)
        self._frozen = False

    @property
    def cells(self) -> np.ndarray:
        view = self._cells.view()
        view.flags.writeable = False
        return view

    @property
    def frozen(self) -> bool:
        return self._frozen

    @property
    def occupied_count(self) -> int:
        return int(np.count_nonzero(self._cells))

    def is_free(self, x: int, y: int, footprint: np.ndarray) -> bool:
        h, w = footprint.shape
        if x < 0 or y < 0 or x + w > self.width or y + h > self.height:
            return False
        return not np.any(self._cells[y : y + h, x : x + w] & footprint)

    def claim(self, x: int, y: int, footprint: np.ndarray) -> None:
        if self._frozen:
            raise OverlapError("Occupancy grid is frozen")
        if not self.is_free(x, y, footprint):
            h, w = footprint.shape
            raise OverlapError(
                f"Cannot claim {w}x{h} footprint at ({x}, {y}) on "
                f"{self.width}x{self.height} sheet"
            )
        h, w = footprint.shape
        self._cells[y : y + h, x : x + w] |= footprint

    def freeze(self) -> None:
        self._frozen = True
        self._cells.flags.writeable = False


class Sheet:
    """Fixed-size material sheet; placements are append-only."""

    def __init__(self, width: int, height: int, color: Optional[Hashable] = None):
        self.width = int(width)
        self.height = int(height)
        self.color = color
        self.occupancy = OccupancyGrid(self.width, self.height)
        self._placements: List[Placement] = []

    @property
    def placements(self) -> Tuple[Placement, ...]:
        return tuple(self._placements)

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def used_area(self) -> int:
        return sum(p.area for p in self._placements)

    @property
    def efficiency(self) -> float:
        return self.used_area / self.area * 100.0

    def can_place(self, piece: Piece, x: int, y: int, rotated: bool = False) -> bool:
        return self.occupancy.is_free(x, y, orient_mask(piece.mask, rotated))

    def place(
        self,
        piece: Piece,
        x: int,
        y: int,
        rotated: bool = False,
        nested_in: Optional[int] = None,
        solid: bool = False,
    ) -> Placement:
        placement = Placement(
            piece=piece, x=x, y=y, rotated=rotated, nested_in=nested_in, solid=solid
        )
        self.occupancy.claim(x, y, placement.footprint())
        self._placements.append(placement)
        return placement

    def freeze(self) -> None:
        self.occupancy.freeze()

    def __repr__(self) -> str:
        return (
            f"Sheet({self.width}x{self.height}, color={self.color!r}, "
            f"placements={len(self._placements)})"
        )


@dataclass
class NestingResult:
    """Sheets produced by one packing run for one sheet size."""

    sheets: List[Sheet]
    sheet_width: int
    sheet_height: int
    strategy: str
    color: Optional[Hashable] = None
    debug: dict = field(default_factory=dict)

    @property
    def total_sheets(self) -> int:
        return len(self.sheets)

    @property
    def placements(self) -> List[Placement]:
        return [p for sheet in self.sheets for p in sheet.placements]

    @property
    def placed_area(self) -> int:
        return sum(sheet.used_area for sheet in self.sheets)

    @property
    def efficiency(self) -> float:
        total = len(self.sheets) * self.sheet_width * self.sheet_height
        return self.placed_area / total * 100.0 if total > 0 else 0.0

    @property
    def waste_percentage(self) -> float:
        return 100.0 - self.efficiency
