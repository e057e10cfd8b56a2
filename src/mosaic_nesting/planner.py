"""Color grid -> pieces -> per-color sheets -> cutting plan."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Hashable, List, Optional, Sequence, Tuple

from mosaic_nesting.components import find_connected_components, normalize_color_grid
from mosaic_nesting.contracts import (
    ColorGrid,
    Component,
    NestingOptions,
    Piece,
    UnplaceablePieceError,
    ValidationError,
)
from mosaic_nesting.cutting_plan import CuttingPlan, generate_cutting_plan
from mosaic_nesting.shape_nester import CancelCheck
from mosaic_nesting.sheet_catalog import SHEET_SIZES, SheetSize, resolve_sheet, size_ceiling
from mosaic_nesting.sheets import NestingResult, Sheet
from mosaic_nesting.splitter import extract_pieces
from mosaic_nesting.strategies import SheetPackingStrategy, get_strategy

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PlannerConfig:
    """Configuration for planning a mosaic onto stock sheets."""

    sheet_catalog: Dict[str, SheetSize] = field(default_factory=lambda: dict(SHEET_SIZES))
    sheet_key: Optional[str] = None  # None = first catalog entry
    strategy: str = "shape"  # "shape" | "bbox"
    # Largest fragment dimension; None = largest dimension in the catalog.
    split_ceiling: Optional[int] = None
    search_best_size: bool = False
    cost_per_sheet: Optional[float] = None
    nesting: NestingOptions = field(default_factory=NestingOptions)


@dataclass
class GridAnalysis:
    """Tile and piece counts by color."""

    width: int
    height: int
    component_count: int
    piece_count: int
    cut_piece_count: int
    tile_counts: Dict[Hashable, int] = field(default_factory=dict)
    piece_counts: Dict[Hashable, int] = field(default_factory=dict)

    @property
    def total_tiles(self) -> int:
        return sum(self.tile_counts.values())

    @property
    def color_count(self) -> int:
        return len(self.tile_counts)


@dataclass
class PlanResult:
    """Everything produced by one planning run."""

    sheet_key: str
    sheet_size: SheetSize
    strategy: str
    split_ceiling: int
    components: List[Component]
    pieces: List[Piece]
    color_layouts: Dict[Hashable, NestingResult]
    sheets: List[Sheet]
    cutting_plan: CuttingPlan
    analysis: GridAnalysis
    efficiency: float
    material_cost: Optional[float] = None
    candidates: Dict[str, float] = field(default_factory=dict)

    @property
    def total_sheets(self) -> int:
        return len(self.sheets)

    @property
    def waste_percentage(self) -> float:
        return 100.0 - self.efficiency


def analyze_grid(
    grid: ColorGrid,
    components: Sequence[Component],
    pieces: Sequence[Piece],
) -> GridAnalysis:
    grid = normalize_color_grid(grid)
    width, height = len(grid[0]), len(grid)
    tile_counts: Dict[Hashable, int] = {}
    for y in range(height):
        for x in range(width):
            color = grid[y][x]
            tile_counts[color] = tile_counts.get(color, 0) + 1
    piece_counts: Dict[Hashable, int] = {}
    for piece in pieces:
        piece_counts[piece.color] = piece_counts.get(piece.color, 0) + 1
    return GridAnalysis(
        width=width,
        height=height,
        component_count=len(components),
        piece_count=len(pieces),
        cut_piece_count=sum(1 for p in pieces if p.is_cut),
        tile_counts=tile_counts,
        piece_counts=piece_counts,
    )


def group_by_color(pieces: Sequence[Piece]) -> Dict[Hashable, List[Piece]]:
    """Pieces keyed by color, in order of first appearance."""
    groups: Dict[Hashable, List[Piece]] = {}
    for piece in pieces:
        groups.setdefault(piece.color, []).append(piece)
    return groups


def nest_by_color(
    pieces: Sequence[Piece],
    sheet_size: SheetSize,
    strategy: SheetPackingStrategy,
) -> Tuple[Dict[Hashable, NestingResult], List[Sheet], float]:
    """Nest each color group on its own sheets.

    Returns:
        (layouts by color, all sheets in color order, overall efficiency)
        where overall efficiency is the sheet-weighted mean of the groups.
    """
    layouts: Dict[Hashable, NestingResult] = {}
    sheets: List[Sheet] = []
    weighted = 0.0
    for color, group in group_by_color(pieces).items():
        logger.debug("Nesting %d pieces of color %r", len(group), color)
        layout = strategy.pack(group, sheet_size.width, sheet_size.height, color=color)
        layouts[color] = layout
        sheets.extend(layout.sheets)
        weighted += layout.efficiency * layout.total_sheets
    efficiency = weighted / len(sheets) if sheets else 0.0
    return layouts, sheets, efficiency


def find_best_sheet_size(
    pieces: Sequence[Piece],
    sheet_catalog: Dict[str, SheetSize],
    strategy: SheetPackingStrategy,
) -> Tuple[Optional[str], Dict[str, float]]:
    """Catalog key with the strictly highest efficiency (earliest wins ties).

    Sizes that cannot hold every piece are skipped. Returns the winning key
    (None when no size works) and the efficiency of every size that worked.
    """
    best_key: Optional[str] = None
    best_efficiency = 0.0
    candidates: Dict[str, float] = {}
    for key, size in sheet_catalog.items():
        try:
            _, _, efficiency = nest_by_color(pieces, size, strategy)
        except UnplaceablePieceError as exc:
            logger.warning("Skipping sheet %s: %s", size.name, exc)
            continue
        candidates[key] = efficiency
        if best_key is None or efficiency > best_efficiency:
            best_key, best_efficiency = key, efficiency
    return best_key, candidates


def plan_mosaic(
    grid: ColorGrid,
    config: Optional[PlannerConfig] = None,
    cancel_check: Optional[CancelCheck] = None,
) -> PlanResult:
    """Segment, split, nest and plan a color grid.

    Raises:
        ValidationError: malformed grid or configuration.
        UnplaceablePieceError: a piece cannot fit the selected sheet.
        NestingCancelled: ``cancel_check`` returned True mid-run.
    """
    if config is None:
        config = PlannerConfig()

    grid = normalize_color_grid(grid)
    sheet_key, sheet_size = resolve_sheet(config.sheet_catalog, config.sheet_key)
    strategy = get_strategy(config.strategy, options=config.nesting, cancel_check=cancel_check)

    ceiling = config.split_ceiling
    if ceiling is None:
        ceiling = size_ceiling(config.sheet_catalog.values())
    elif ceiling < 1:
        raise ValidationError(f"split_ceiling must be positive, got {ceiling}")

    components = find_connected_components(grid)
    pieces = extract_pieces(components, ceiling)
    analysis = analyze_grid(grid, components, pieces)
    logger.info(
        "Grid %dx%d: %d colors, %d components, %d pieces (%d cut)",
        analysis.width,
        analysis.height,
        analysis.color_count,
        analysis.component_count,
        analysis.piece_count,
        analysis.cut_piece_count,
    )

    candidates: Dict[str, float] = {}
    if config.search_best_size:
        best_key, candidates = find_best_sheet_size(pieces, config.sheet_catalog, strategy)
        if best_key is None:
            raise UnplaceablePieceError(
                [p.id for p in pieces], sheet_size.width, sheet_size.height
            )
        sheet_key, sheet_size = best_key, config.sheet_catalog[best_key]
        logger.info("Best sheet size: %s (%.1f%%)", sheet_size.name, candidates[best_key])

    layouts, sheets, efficiency = nest_by_color(pieces, sheet_size, strategy)
    cutting_plan = generate_cutting_plan(sheets)
    material_cost = None
    if config.cost_per_sheet is not None:
        material_cost = cutting_plan.material_cost(config.cost_per_sheet)

    logger.info(
        "Planned %d sheet(s) of %s: %.1f%% efficiency, %.1f%% waste",
        len(sheets),
        sheet_size.name,
        efficiency,
        100.0 - efficiency,
    )
    return PlanResult(
        sheet_key=sheet_key,
        sheet_size=sheet_size,
        strategy=strategy.name,
        split_ceiling=ceiling,
        components=components,
        pieces=pieces,
        color_layouts=layouts,
        sheets=sheets,
        cutting_plan=cutting_plan,
        analysis=analysis,
        efficiency=efficiency,
        material_cost=material_cost,
        candidates=candidates,
    )
