#!/usr/bin/env python3
"""
Plan the cutting of a color-grid mosaic onto stock sheets.

Usage:
    python scripts/plan_mosaic.py --grid mosaic.json
    python scripts/plan_mosaic.py --grid mosaic.json --sheet small_20x20 --strategy bbox
    python scripts/plan_mosaic.py --grid mosaic.json --best-size --cost-per-sheet 12.5
"""

from __future__ import annotations

import argparse
import logging
import sys
import time
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mosaic_nesting import NestingError, NestingOptions, PlannerConfig, ValidationError, plan_mosaic
from mosaic_nesting.planner import PlanResult
from mosaic_nesting.run_protocol import (
    copy_input,
    load_grid_document,
    prepare_run_dir,
    update_latest_pointer,
    write_json,
    write_text,
)
from mosaic_nesting.sheet_catalog import SHEET_SIZES, parse_sheet_size
from mosaic_nesting.strategies import STRATEGIES


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Segment a color grid into pieces and nest them onto sheets"
    )
    parser.add_argument("--grid", required=True, help="Path to grid JSON file")
    parser.add_argument("--name", default="mosaic", help="Design/run name")
    parser.add_argument("--runs-dir", default="runs", help="Runs output root")
    parser.add_argument(
        "--sheet",
        default=None,
        help="Sheet catalog key (default: first catalog entry)",
    )
    parser.add_argument(
        "--sheet-size",
        default=None,
        help="Custom sheet size WxH; replaces the catalog",
    )
    parser.add_argument(
        "--strategy",
        default="shape",
        choices=list(STRATEGIES),
        help="Packing strategy (default: shape)",
    )
    parser.add_argument(
        "--split-ceiling",
        type=int,
        default=None,
        help="Largest piece dimension after splitting (default: catalog maximum)",
    )
    parser.add_argument(
        "--best-size", action="store_true", help="Pick the most efficient catalog size"
    )
    parser.add_argument(
        "--cost-per-sheet", type=float, default=None, help="Material cost per sheet"
    )
    parser.add_argument(
        "--no-rotation", action="store_true", help="Disable 90 degree rotation"
    )
    parser.add_argument(
        "--no-cavities", action="store_true", help="Disable nesting inside cavities"
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true", help="Enable debug logs"
    )
    return parser


def _build_summary(result: PlanResult, run_id: str, elapsed_s: float) -> str:
    plan = result.cutting_plan
    lines = [
        f"# Run {run_id}",
        "",
        f"- Sheet size: {result.sheet_size.name} ({result.sheet_size.width}x{result.sheet_size.height})",
        f"- Strategy: {result.strategy}",
        f"- Duration: {elapsed_s:.2f}s",
        f"- Components: {result.analysis.component_count}",
        f"- Pieces: {result.analysis.piece_count} ({result.analysis.cut_piece_count} cut)",
        f"- Sheets: {result.total_sheets}",
        f"- Used area: {plan.used_area} of {plan.total_sheet_area} tiles",
        f"- Efficiency: {result.efficiency:.1f}%",
        f"- Waste: {result.waste_percentage:.1f}%",
    ]
    if result.material_cost is not None:
        lines.append(f"- Material cost: {result.material_cost:.2f}")
    lines += ["", "## Colors"]
    for color, count in result.analysis.tile_counts.items():
        layout = result.color_layouts.get(color)
        sheets = layout.total_sheets if layout is not None else 0
        pieces = result.analysis.piece_counts.get(color, 0)
        lines.append(f"- {color}: {count} tiles, {pieces} pieces, {sheets} sheet(s)")
    return "\n".join(lines) + "\n"


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if not Path(args.grid).is_file():
        parser.error(f"Grid file not found: {args.grid}")

    started = time.perf_counter()
    try:
        grid, catalog = load_grid_document(args.grid)
        if args.sheet_size:
            custom = parse_sheet_size(args.sheet_size)
            catalog = {"custom": custom}
            args.sheet = "custom"
        config = PlannerConfig(
            sheet_catalog=catalog or dict(SHEET_SIZES),
            sheet_key=args.sheet,
            strategy=args.strategy,
            split_ceiling=args.split_ceiling,
            search_best_size=args.best_size,
            cost_per_sheet=args.cost_per_sheet,
            nesting=NestingOptions(
                allow_rotation=not args.no_rotation,
                nest_in_cavities=not args.no_cavities,
            ),
        )
        result = plan_mosaic(grid, config)
    except ValidationError as exc:
        print(f"Invalid input: {exc}", file=sys.stderr)
        return 1
    except NestingError as exc:
        print(f"Nesting failed: {exc}", file=sys.stderr)
        return 1
    elapsed = time.perf_counter() - started

    run_paths = prepare_run_dir(args.runs_dir, args.name)
    copied_grid = copy_input(args.grid, run_paths.input_dir)

    plan_payload = {
        "timestamp": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "sheetSize": {
            "key": result.sheet_key,
            "name": result.sheet_size.name,
            "width": result.sheet_size.width,
            "height": result.sheet_size.height,
        },
        **result.cutting_plan.to_dict(),
    }
    write_json(run_paths.plan_path, plan_payload)

    metrics_payload = {
        "run_id": run_paths.run_id,
        "elapsed_s": round(elapsed, 3),
        "sheet_key": result.sheet_key,
        "strategy": result.strategy,
        "split_ceiling": result.split_ceiling,
        "efficiency": round(result.efficiency, 3),
        "waste_percentage": round(result.waste_percentage, 3),
        "material_cost": result.material_cost,
        "candidates": {k: round(v, 3) for k, v in result.candidates.items()},
        "counts": {
            "components": result.analysis.component_count,
            "pieces": result.analysis.piece_count,
            "cut_pieces": result.analysis.cut_piece_count,
            "colors": result.analysis.color_count,
            "sheets": result.total_sheets,
        },
        "sheets_by_color": {
            str(color): layout.total_sheets for color, layout in result.color_layouts.items()
        },
    }
    write_json(run_paths.metrics_path, metrics_payload)
    write_text(run_paths.summary_path, _build_summary(result, run_paths.run_id, elapsed))

    manifest = {
        "run_id": run_paths.run_id,
        "design_name": args.name,
        "created_utc": time.strftime("%Y-%m-%dT%H:%M:%SZ", time.gmtime()),
        "input_grid": str(copied_grid),
        "config": {
            "sheet_key": result.sheet_key,
            "strategy": config.strategy,
            "split_ceiling": config.split_ceiling,
            "search_best_size": config.search_best_size,
            "cost_per_sheet": config.cost_per_sheet,
            "allow_rotation": config.nesting.allow_rotation,
            "nest_in_cavities": config.nesting.nest_in_cavities,
        },
        "artifacts": {
            "cutting_plan": str(run_paths.plan_path),
            "metrics": str(run_paths.metrics_path),
            "summary": str(run_paths.summary_path),
        },
    }
    write_json(run_paths.manifest_path, manifest)
    update_latest_pointer(args.runs_dir, run_paths.run_dir)

    print(f"Run ID: {run_paths.run_id}")
    print(f"Run dir: {run_paths.run_dir}")
    print(f"Sheet size: {result.sheet_size.name}")
    print(f"Pieces: {result.analysis.piece_count}")
    print(f"Sheets: {result.total_sheets}")
    print(f"Efficiency: {result.efficiency:.1f}%")
    print(f"Cutting plan: {run_paths.plan_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
