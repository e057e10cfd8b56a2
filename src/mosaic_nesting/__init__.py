"""Public API for the mosaic sheet nesting engine."""

from mosaic_nesting.components import (
    find_connected_components,
    normalize_color_grid,
    validate_color_grid,
)
from mosaic_nesting.contracts import (
    Cavity,
    Component,
    NestingCancelled,
    NestingError,
    NestingOptions,
    OverlapError,
    Piece,
    Placement,
    UnplaceablePieceError,
    ValidationError,
)
from mosaic_nesting.cutting_plan import CuttingPlan, CuttingPlanEntry, generate_cutting_plan
from mosaic_nesting.planner import PlannerConfig, PlanResult, plan_mosaic
from mosaic_nesting.rect_packer import RectanglePacker
from mosaic_nesting.shape_nester import ShapeNester, nest_pieces
from mosaic_nesting.sheet_catalog import SHEET_SIZES, SheetSize
from mosaic_nesting.sheets import NestingResult, Sheet
from mosaic_nesting.splitter import extract_pieces, split_component
from mosaic_nesting.strategies import BoundingBoxStrategy, ShapeNestingStrategy, get_strategy

__all__ = [
    "BoundingBoxStrategy",
    "Cavity",
    "Component",
    "CuttingPlan",
    "CuttingPlanEntry",
    "NestingCancelled",
    "NestingError",
    "NestingOptions",
    "NestingResult",
    "OverlapError",
    "Piece",
    "Placement",
    "PlanResult",
    "PlannerConfig",
    "RectanglePacker",
    "SHEET_SIZES",
    "ShapeNester",
    "ShapeNestingStrategy",
    "Sheet",
    "SheetSize",
    "UnplaceablePieceError",
    "ValidationError",
    "extract_pieces",
    "find_connected_components",
    "normalize_color_grid",
    "generate_cutting_plan",
    "get_strategy",
    "nest_pieces",
    "plan_mosaic",
    "split_component",
    "validate_color_grid",
]
