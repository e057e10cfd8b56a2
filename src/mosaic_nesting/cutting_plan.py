"""
Cutting plan generation.

Flattens packed sheets into numbered, per-piece cutting instructions and
aggregates sheet count, efficiency and waste. A pure projection: the input
sheets are only read.
"""

from dataclasses import dataclass
from typing import Any, Dict, Hashable, List, Optional, Sequence, Tuple

from mosaic_nesting.geometry import outline_metrics
from mosaic_nesting.sheets import Sheet


def _json_color(color: Hashable) -> Any:
    if color is None or isinstance(color, (str, int, float, bool)):
        return color
    if isinstance(color, tuple):
        return [_json_color(c) for c in color]
    return str(color)


@dataclass(frozen=True)
class CuttingPlanEntry:
    """One piece to cut, with its rotation-adjusted footprint."""

    piece_id: int
    color: Hashable
    x: int
    y: int
    width: int
    height: int
    rotated: bool
    area: int
    is_cut: bool = False
    parent_id: Optional[int] = None
    nested_in: Optional[int] = None
    cut_length: float = 0.0
    hole_count: int = 0

    @property
    def position(self) -> Tuple[int, int]:
        return (self.x, self.y)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "pieceId": self.piece_id,
            "color": _json_color(self.color),
            "position": {"x": self.x, "y": self.y},
            "dimensions": {"width": self.width, "height": self.height},
            "rotated": self.rotated,
            "area": self.area,
            "isCut": self.is_cut,
            "parentId": self.parent_id,
            "nestedIn": self.nested_in,
            "cutLength": round(self.cut_length, 3),
            "holeCount": self.hole_count,
        }


@dataclass(frozen=True)
class SheetPlan:
    """Cutting instructions for one sheet (numbered from 1)."""

    sheet_number: int
    width: int
    height: int
    color: Hashable
    entries: Tuple[CuttingPlanEntry, ...]

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def used_area(self) -> int:
        return sum(e.area for e in self.entries)

    @property
    def efficiency(self) -> float:
        return self.used_area / self.area * 100.0 if self.area else 0.0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "sheetNumber": self.sheet_number,
            "size": {"width": self.width, "height": self.height},
            "color": _json_color(self.color),
            "efficiency": round(self.efficiency, 3),
            "pieces": [e.to_dict() for e in self.entries],
        }


@dataclass(frozen=True)
class CuttingPlan:
    """Immutable cutting plan plus aggregate statistics."""

    sheets: Tuple[SheetPlan, ...]

    @property
    def total_sheets(self) -> int:
        return len(self.sheets)

    @property
    def piece_count(self) -> int:
        return sum(len(s.entries) for s in self.sheets)

    @property
    def used_area(self) -> int:
        return sum(s.used_area for s in self.sheets)

    @property
    def total_sheet_area(self) -> int:
        return sum(s.area for s in self.sheets)

    @property
    def wasted_area(self) -> int:
        return self.total_sheet_area - self.used_area

    @property
    def efficiency(self) -> float:
        total = self.total_sheet_area
        return self.used_area / total * 100.0 if total > 0 else 0.0

    @property
    def waste_percentage(self) -> float:
        return 100.0 - self.efficiency

    def material_cost(self, cost_per_sheet: float) -> float:
        return self.total_sheets * cost_per_sheet

    def statistics(self) -> Dict[str, Any]:
        return {
            "totalSheets": self.total_sheets,
            "pieces": self.piece_count,
            "usedArea": self.used_area,
            "totalSheetArea": self.total_sheet_area,
            "wastedArea": self.wasted_area,
            "efficiency": round(self.efficiency, 3),
            "wastePercentage": round(self.waste_percentage, 3),
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "statistics": self.statistics(),
            "cuttingPlan": [s.to_dict() for s in self.sheets],
        }


def generate_cutting_plan(sheets: Sequence[Sheet]) -> CuttingPlan:
    """Project packed sheets into a cutting plan."""
    plans: List[SheetPlan] = []
    for index, sheet in enumerate(sheets):
        entries = []
        for placement in sheet.placements:
            piece = placement.piece
            cut_length, hole_count = outline_metrics(piece.mask)
            entries.append(
                CuttingPlanEntry(
                    piece_id=piece.id,
                    color=piece.color,
                    x=placement.x,
                    y=placement.y,
                    width=placement.width,
                    height=placement.height,
                    rotated=placement.rotated,
                    area=piece.area,
                    is_cut=piece.is_cut,
                    parent_id=piece.parent_id,
                    nested_in=placement.nested_in,
                    cut_length=cut_length,
                    hole_count=hole_count,
                )
            )
        plans.append(
            SheetPlan(
                sheet_number=index + 1,
                width=sheet.width,
                height=sheet.height,
                color=sheet.color,
                entries=tuple(entries),
            )
        )
    return CuttingPlan(sheets=tuple(plans))
