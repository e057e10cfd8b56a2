"""
Shape-aware nesting of pieces onto grid-backed sheets.

Pieces are placed largest-first using an exhaustive first-fit scan (rows top
to bottom, columns left to right) over the true shape mask, trying the
identity orientation before a quarter turn. After every placement the placed
shape is searched for cavities, and each sufficiently large cavity may host
one smaller outstanding piece. A new sheet is opened whenever a pass over the
outstanding pieces ends with pieces left over.
"""

import logging
from typing import Callable, List, Optional, Sequence, Set, Tuple

import numpy as np

from mosaic_nesting.components import flood_fill
from mosaic_nesting.contracts import (
    Cavity,
    NestingCancelled,
    NestingOptions,
    Piece,
    Placement,
    UnplaceablePieceError,
    ValidationError,
    bounding_box,
    orient_mask,
)
from mosaic_nesting.geometry import hole_mask
from mosaic_nesting.sheets import NestingResult, Sheet

logger = logging.getLogger(__name__)

CancelCheck = Callable[[], bool]


class ShapeNester:
    """First-fit true-shape nester for one sheet size."""

    def __init__(
        self,
        sheet_width: int,
        sheet_height: int,
        options: Optional[NestingOptions] = None,
        cancel_check: Optional[CancelCheck] = None,
    ):
        if sheet_width < 1 or sheet_height < 1:
            raise ValidationError(
                f"Sheet must have positive dimensions, got {sheet_width}x{sheet_height}"
            )
        self.sheet_width = int(sheet_width)
        self.sheet_height = int(sheet_height)
        self.options = options or NestingOptions()
        self.cancel_check = cancel_check

    # ─── Public API ──────────────────────────────────────────────────────────

    def nest(self, pieces: Sequence[Piece], color=None) -> NestingResult:
        """Place every piece exactly once across as many sheets as needed."""
        self._reject_oversized(pieces)

        # Stable sort: equal areas keep input order.
        outstanding = sorted(pieces, key=lambda p: p.area, reverse=True)
        sheets: List[Sheet] = []
        nested_count = 0

        while outstanding:
            sheet = Sheet(self.sheet_width, self.sheet_height, color=color)
            placed = self._pack_sheet(sheet, outstanding)
            if not placed:
                raise UnplaceablePieceError(
                    [p.id for p in outstanding], self.sheet_width, self.sheet_height
                )
            sheets.append(sheet)
            nested_count += sum(1 for p in sheet.placements if p.nested_in is not None)
            outstanding = [p for i, p in enumerate(outstanding) if i not in placed]
            logger.debug(
                "Sheet %d: %d placements, %.1f%% used, %d pieces outstanding",
                len(sheets),
                len(sheet.placements),
                sheet.efficiency,
                len(outstanding),
            )

        for sheet in sheets:
            sheet.freeze()

        result = NestingResult(
            sheets=sheets,
            sheet_width=self.sheet_width,
            sheet_height=self.sheet_height,
            strategy="shape",
            color=color,
            debug={"nested_in_cavities": nested_count},
        )
        logger.info(
            "Nested %d pieces onto %d sheet(s) of %dx%d (%.1f%% efficiency, %d in cavities)",
            len(pieces),
            result.total_sheets,
            self.sheet_width,
            self.sheet_height,
            result.efficiency,
            nested_count,
        )
        return result

    def find_best_placement(self, sheet: Sheet, piece: Piece) -> Optional[Tuple[int, int, bool]]:
        """First free (x, y, rotated) in scan order, identity before rotation."""
        rotations = (False, True) if self.options.allow_rotation else (False,)
        for rotated in rotations:
            footprint = orient_mask(piece.mask, rotated)
            h, w = footprint.shape
            if w > sheet.width or h > sheet.height:
                continue
            for y in range(sheet.height - h + 1):
                for x in range(sheet.width - w + 1):
                    if sheet.occupancy.is_free(x, y, footprint):
                        return x, y, rotated
        return None

    def find_cavities(self, placement: Placement) -> List[Cavity]:
        """Empty regions of a placed mask that are large enough to nest into.

        Seeds come only from interior rows and columns of the mask; the fill
        itself may reach the mask border, in which case the cavity is not
        ``enclosed``.
        """
        mask = placement.oriented_mask()
        h, w = mask.shape
        holes = hole_mask(mask)
        visited = np.zeros((h, w), dtype=bool)
        cavities: List[Cavity] = []

        for y in range(1, h - 1):
            for x in range(1, w - 1):
                if mask[y, x] or visited[y, x]:
                    continue
                cells = flood_fill(mask, x, y, visited, target=False)
                if len(cells) <= self.options.min_cavity_cells:
                    continue
                enclosed = all(holes[cy, cx] for cx, cy in cells)
                sheet_cells = tuple((placement.x + cx, placement.y + cy) for cx, cy in cells)
                cavities.append(
                    Cavity(
                        container_id=placement.piece.id,
                        pixels=sheet_cells,
                        bbox=bounding_box(sheet_cells),
                        enclosed=enclosed,
                    )
                )
        return cavities

    # ─── Internals ───────────────────────────────────────────────────────────

    def _reject_oversized(self, pieces: Sequence[Piece]) -> None:
        allow_rotation = self.options.allow_rotation
        too_big = []
        for piece in pieces:
            fits = piece.width <= self.sheet_width and piece.height <= self.sheet_height
            if not fits and allow_rotation:
                fits = piece.height <= self.sheet_width and piece.width <= self.sheet_height
            if not fits:
                too_big.append(piece.id)
        if too_big:
            raise UnplaceablePieceError(too_big, self.sheet_width, self.sheet_height)

    def _check_cancelled(self) -> None:
        if self.cancel_check is not None and self.cancel_check():
            raise NestingCancelled("Nesting cancelled by caller")

    def _pack_sheet(self, sheet: Sheet, outstanding: Sequence[Piece]) -> Set[int]:
        """One pass over outstanding pieces; returns indices placed on sheet."""
        placed: Set[int] = set()
        for i, piece in enumerate(outstanding):
            if i in placed:
                continue
            self._check_cancelled()
            spot = self.find_best_placement(sheet, piece)
            if spot is None:
                continue
            x, y, rotated = spot
            placement = sheet.place(piece, x, y, rotated)
            placed.add(i)
            if self.options.nest_in_cavities:
                self._fill_cavities(sheet, placement, outstanding, placed)
        return placed

    def _fill_cavities(
        self,
        sheet: Sheet,
        container: Placement,
        outstanding: Sequence[Piece],
        placed: Set[int],
    ) -> None:
        for cavity in self.find_cavities(container):
            if self.options.require_enclosed_cavities and not cavity.enclosed:
                continue
            for j, candidate in enumerate(outstanding):
                if j in placed:
                    continue
                if candidate.width > cavity.bbox.width or candidate.height > cavity.bbox.height:
                    continue
                self._check_cancelled()
                spot = self._find_cavity_placement(sheet, candidate, cavity)
                if spot is None:
                    continue
                sheet.place(candidate, spot[0], spot[1], rotated=False, nested_in=container.piece.id)
                placed.add(j)
                logger.debug(
                    "Nested piece %d inside cavity of piece %d at (%d, %d)",
                    candidate.id,
                    container.piece.id,
                    spot[0],
                    spot[1],
                )
                break  # one piece per cavity

    @staticmethod
    def _find_cavity_placement(sheet: Sheet, piece: Piece, cavity: Cavity) -> Optional[Tuple[int, int]]:
        bbox = cavity.bbox
        for y in range(bbox.min_y, bbox.max_y - piece.height + 2):
            for x in range(bbox.min_x, bbox.max_x - piece.width + 2):
                if sheet.occupancy.is_free(x, y, piece.mask):
                    return x, y
        return None


def nest_pieces(
    pieces: Sequence[Piece],
    sheet_width: int,
    sheet_height: int,
    options: Optional[NestingOptions] = None,
    cancel_check: Optional[CancelCheck] = None,
    color=None,
) -> NestingResult:
    """Convenience wrapper around :class:`ShapeNester`."""
    nester = ShapeNester(sheet_width, sheet_height, options=options, cancel_check=cancel_check)
    return nester.nest(pieces, color=color)
