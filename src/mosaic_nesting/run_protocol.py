"""Run-folder protocol and grid document I/O for planning runs."""

from __future__ import annotations

import json
import os
import re
import shutil
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from mosaic_nesting.contracts import ValidationError
from mosaic_nesting.sheet_catalog import SheetSize, catalog_from_entries


@dataclass
class RunPaths:
    run_id: str
    run_dir: Path
    input_dir: Path
    artifacts_dir: Path
    plan_path: Path
    manifest_path: Path
    metrics_path: Path
    summary_path: Path


def slugify(value: str) -> str:
    value = value.strip().lower()
    value = re.sub(r"[^a-z0-9]+", "-", value)
    value = re.sub(r"-+", "-", value)
    return value.strip("-") or "run"


def create_run_id(design_name: str) -> str:
    stamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return f"{stamp}_{slugify(design_name)}"


def prepare_run_dir(runs_root: str, design_name: str) -> RunPaths:
    runs_path = Path(runs_root)
    runs_path.mkdir(parents=True, exist_ok=True)

    run_id = create_run_id(design_name)
    run_dir = runs_path / run_id
    suffix = 1
    while run_dir.exists():
        suffix += 1
        run_dir = runs_path / f"{run_id}_{suffix}"
    run_id = run_dir.name

    input_dir = run_dir / "input"
    artifacts_dir = run_dir / "artifacts"
    input_dir.mkdir(parents=True, exist_ok=True)
    artifacts_dir.mkdir(parents=True, exist_ok=True)

    return RunPaths(
        run_id=run_id,
        run_dir=run_dir,
        input_dir=input_dir,
        artifacts_dir=artifacts_dir,
        plan_path=artifacts_dir / "cutting_plan.json",
        manifest_path=run_dir / "manifest.json",
        metrics_path=run_dir / "metrics.json",
        summary_path=run_dir / "summary.md",
    )


def copy_input(path: str, input_dir: Path) -> Path:
    src = Path(path)
    dst = input_dir / src.name
    if src.resolve() != dst.resolve():
        shutil.copy2(src, dst)
    return dst


def load_grid_document(
    path: str,
) -> Tuple[List[List[Any]], Optional[Dict[str, SheetSize]]]:
    """Read a grid JSON file.

    Accepts either a bare list of rows or an object with a ``grid`` list and
    an optional ``sheet_sizes`` list of ``{"width", "height", "name"}``.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except json.JSONDecodeError as exc:
        raise ValidationError(f"Grid file {path} is not valid JSON: {exc}") from exc

    catalog = None
    if isinstance(payload, dict):
        if "grid" not in payload:
            raise ValidationError(f"Grid file {path} has no 'grid' entry")
        if payload.get("sheet_sizes"):
            catalog = catalog_from_entries(payload["sheet_sizes"])
        payload = payload["grid"]
    if not isinstance(payload, list):
        raise ValidationError(f"Grid file {path} must hold a list of rows")
    return payload, catalog


def write_json(path: Path, payload: Dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)


def write_text(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        f.write(content)


def update_latest_pointer(runs_root: str, run_dir: Path) -> None:
    runs_path = Path(runs_root)
    latest = runs_path / "latest"

    if latest.exists() or latest.is_symlink():
        if latest.is_symlink() or latest.is_file():
            latest.unlink()
        else:
            shutil.rmtree(latest)

    try:
        target = os.path.relpath(run_dir, runs_path)
        latest.symlink_to(target)
    except OSError:
        # Filesystems without symlink support get a marker file instead.
        latest.mkdir(parents=True, exist_ok=True)
        with (latest / "latest_run.txt").open("w", encoding="utf-8") as f:
            f.write(run_dir.name)
