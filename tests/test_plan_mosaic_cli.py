from __future__ import annotations

import json
import subprocess
import sys
from pathlib import Path

import pytest

from mosaic_nesting.contracts import ValidationError
from mosaic_nesting.run_protocol import load_grid_document, prepare_run_dir, slugify

REPO_ROOT = Path(__file__).resolve().parent.parent
SCRIPT = REPO_ROOT / "scripts" / "plan_mosaic.py"


@pytest.fixture
def grid_file(tmp_path: Path, two_color_grid) -> str:
    path = tmp_path / "mosaic.json"
    path.write_text(json.dumps(two_color_grid), encoding="utf-8")
    return str(path)


def _run(*args: str) -> subprocess.CompletedProcess:
    cmd = [sys.executable, str(SCRIPT), *args]
    return subprocess.run(cmd, capture_output=True, text=True)


def _latest_run(runs_dir: Path) -> Path:
    latest = runs_dir / "latest"
    assert latest.exists() or latest.is_symlink()
    if latest.is_symlink():
        return (runs_dir / latest.readlink()).resolve()
    return runs_dir / (latest / "latest_run.txt").read_text(encoding="utf-8").strip()


def test_cli_writes_run_artifacts(grid_file: str, tmp_path: Path):
    runs_dir = tmp_path / "runs"
    proc = _run("--grid", grid_file, "--name", "Two Color", "--runs-dir", str(runs_dir))
    assert proc.returncode == 0, proc.stderr
    assert "Run ID:" in proc.stdout
    assert "Sheets: 2" in proc.stdout

    run_dir = _latest_run(runs_dir)
    assert run_dir.name.endswith("two-color")
    assert (run_dir / "input" / "mosaic.json").is_file()
    assert (run_dir / "summary.md").is_file()

    plan = json.loads((run_dir / "artifacts" / "cutting_plan.json").read_text(encoding="utf-8"))
    assert plan["sheetSize"]["key"] == "standard_30x30"
    assert plan["statistics"]["totalSheets"] == 2
    assert [s["sheetNumber"] for s in plan["cuttingPlan"]] == [1, 2]

    metrics = json.loads((run_dir / "metrics.json").read_text(encoding="utf-8"))
    assert metrics["counts"]["pieces"] == 3
    assert metrics["sheets_by_color"] == {"#ff0000": 1, "#0000ff": 1}

    manifest = json.loads((run_dir / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["design_name"] == "Two Color"
    assert manifest["config"]["strategy"] == "shape"


def test_cli_custom_sheet_and_cost(grid_file: str, tmp_path: Path):
    runs_dir = tmp_path / "runs"
    proc = _run(
        "--grid",
        grid_file,
        "--runs-dir",
        str(runs_dir),
        "--sheet-size",
        "5x5",
        "--strategy",
        "bbox",
        "--cost-per-sheet",
        "3",
    )
    assert proc.returncode == 0, proc.stderr
    metrics = json.loads((_latest_run(runs_dir) / "metrics.json").read_text(encoding="utf-8"))
    assert metrics["sheet_key"] == "custom"
    assert metrics["strategy"] == "bbox"
    assert metrics["split_ceiling"] == 5
    assert metrics["material_cost"] == pytest.approx(3.0 * metrics["counts"]["sheets"])


def test_cli_accepts_rgb_triplet_grid(tmp_path: Path):
    path = tmp_path / "rgb.json"
    grid = [
        [[255, 0, 0], [255, 0, 0], [0, 0, 255]],
        [[255, 0, 0], [0, 0, 255], [0, 0, 255]],
    ]
    path.write_text(json.dumps(grid), encoding="utf-8")
    runs_dir = tmp_path / "runs"
    proc = _run("--grid", str(path), "--runs-dir", str(runs_dir))
    assert proc.returncode == 0, proc.stderr
    plan = json.loads(
        (_latest_run(runs_dir) / "artifacts" / "cutting_plan.json").read_text(encoding="utf-8")
    )
    assert [s["color"] for s in plan["cuttingPlan"]] == [[255, 0, 0], [0, 0, 255]]


def test_cli_reports_unknown_sheet(grid_file: str, tmp_path: Path):
    proc = _run("--grid", grid_file, "--runs-dir", str(tmp_path), "--sheet", "giant")
    assert proc.returncode == 1
    assert "Invalid input" in proc.stderr


def test_cli_reports_malformed_grid(tmp_path: Path):
    path = tmp_path / "bad.json"
    path.write_text(json.dumps([["a", "b"], ["a"]]), encoding="utf-8")
    proc = _run("--grid", str(path), "--runs-dir", str(tmp_path / "runs"))
    assert proc.returncode == 1
    assert not (tmp_path / "runs").exists()


def test_cli_rejects_missing_grid(tmp_path: Path):
    proc = _run("--grid", str(tmp_path / "missing.json"), "--runs-dir", str(tmp_path))
    assert proc.returncode != 0


def test_load_grid_document_with_catalog(tmp_path: Path):
    path = tmp_path / "doc.json"
    path.write_text(
        json.dumps(
            {
                "grid": [["a", "b"]],
                "sheet_sizes": [{"name": "Panel", "width": 12, "height": 8}],
            }
        ),
        encoding="utf-8",
    )
    grid, catalog = load_grid_document(str(path))
    assert grid == [["a", "b"]]
    assert list(catalog) == ["panel"]
    assert (catalog["panel"].width, catalog["panel"].height) == (12, 8)


@pytest.mark.parametrize("content", ["{not json", json.dumps({"rows": []}), json.dumps("abc")])
def test_load_grid_document_rejects(tmp_path: Path, content: str):
    path = tmp_path / "doc.json"
    path.write_text(content, encoding="utf-8")
    with pytest.raises(ValidationError):
        load_grid_document(str(path))


def test_prepare_run_dir_never_reuses_a_folder(tmp_path: Path):
    first = prepare_run_dir(str(tmp_path), "Same Name")
    second = prepare_run_dir(str(tmp_path), "Same Name")
    assert first.run_dir != second.run_dir
    assert second.artifacts_dir.is_dir()
    assert slugify("  Hello, World!  ") == "hello-world"
