"""
Sheet packing strategies.

Both engines answer the same question (which sheet, where, turned or not)
and return a :class:`NestingResult`, so callers can swap them freely:

- ``shape``: true-shape first-fit nesting with cavity filling (primary).
- ``bbox``: guillotine packing of bounding boxes only (simple fallback).
"""

import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional, Sequence, Type

from mosaic_nesting.contracts import NestingCancelled, NestingOptions, Piece, ValidationError
from mosaic_nesting.rect_packer import RectanglePacker
from mosaic_nesting.shape_nester import CancelCheck, ShapeNester
from mosaic_nesting.sheets import NestingResult, Sheet

logger = logging.getLogger(__name__)


class SheetPackingStrategy(ABC):
    """Packs one group of pieces onto sheets of a single size."""

    name: str = ""

    @abstractmethod
    def pack(
        self,
        pieces: Sequence[Piece],
        sheet_width: int,
        sheet_height: int,
        color=None,
    ) -> NestingResult:
        """Place every piece; raise UnplaceablePieceError if one cannot fit."""
        ...


class ShapeNestingStrategy(SheetPackingStrategy):
    name = "shape"

    def __init__(
        self,
        options: Optional[NestingOptions] = None,
        cancel_check: Optional[CancelCheck] = None,
    ):
        self.options = options or NestingOptions()
        self.cancel_check = cancel_check

    def pack(self, pieces, sheet_width, sheet_height, color=None) -> NestingResult:
        nester = ShapeNester(
            sheet_width,
            sheet_height,
            options=self.options,
            cancel_check=self.cancel_check,
        )
        return nester.nest(pieces, color=color)


class BoundingBoxStrategy(SheetPackingStrategy):
    """Guillotine packing; each placement claims its whole bounding box."""

    name = "bbox"

    def __init__(
        self,
        options: Optional[NestingOptions] = None,
        cancel_check: Optional[CancelCheck] = None,
    ):
        # Cavity options do not apply to bounding boxes.
        self.options = options or NestingOptions()
        self.cancel_check = cancel_check

    def pack(self, pieces, sheet_width, sheet_height, color=None) -> NestingResult:
        if self.cancel_check is not None and self.cancel_check():
            raise NestingCancelled("Nesting cancelled by caller")
        packer = RectanglePacker(
            sheet_width, sheet_height, allow_rotation=self.options.allow_rotation
        )
        packed = packer.pack(pieces)
        sheets = [Sheet(sheet_width, sheet_height, color=color) for _ in packed.bins]
        for item in packed.packed_items:
            sheets[item.bin_index].place(
                item.item, item.x, item.y, rotated=item.rotated, solid=True
            )
        for sheet in sheets:
            sheet.freeze()
        logger.info(
            "Bounding-box packed %d pieces onto %d sheet(s) of %dx%d (%.1f%% efficiency)",
            len(pieces),
            len(sheets),
            sheet_width,
            sheet_height,
            packed.efficiency,
        )
        return NestingResult(
            sheets=sheets,
            sheet_width=sheet_width,
            sheet_height=sheet_height,
            strategy=self.name,
            color=color,
        )


STRATEGIES: Dict[str, Type[SheetPackingStrategy]] = {
    ShapeNestingStrategy.name: ShapeNestingStrategy,
    BoundingBoxStrategy.name: BoundingBoxStrategy,
}


def get_strategy(
    name: str,
    options: Optional[NestingOptions] = None,
    cancel_check: Optional[CancelCheck] = None,
) -> SheetPackingStrategy:
    """Instantiate a strategy by name ("shape" or "bbox")."""
    if name not in STRATEGIES:
        raise ValidationError(
            f"Unknown packing strategy '{name}'. Expected one of: {', '.join(STRATEGIES)}"
        )
    return STRATEGIES[name](options=options, cancel_check=cancel_check)
