"""
Sheet size catalog.

Stock sheet sizes a mosaic can be cut from, measured in grid cells (tiles).
The planner nests onto one selected size; the splitter bounds pieces by the
largest dimension across the whole catalog.
"""

import re
from dataclasses import dataclass
from typing import Dict, Iterable, Tuple

from mosaic_nesting.contracts import ValidationError


@dataclass(frozen=True)
class SheetSize:
    """A stock sheet size."""

    name: str
    width: int
    height: int

    @property
    def area(self) -> int:
        return self.width * self.height

    @property
    def max_dimension(self) -> int:
        return max(self.width, self.height)

    def fits(self, width: int, height: int, allow_rotation: bool = True) -> bool:
        """True when a width x height box fits, optionally turned."""
        if width <= self.width and height <= self.height:
            return True
        return allow_rotation and height <= self.width and width <= self.height


# Catalog order matters: the first entry is the default selection.
SHEET_SIZES: Dict[str, SheetSize] = {
    "standard_30x30": SheetSize(name="30x30 Standard", width=30, height=30),
    "small_20x20": SheetSize(name="20x20 Small", width=20, height=20),
    "rectangle_40x20": SheetSize(name="40x20 Rectangle", width=40, height=20),
    "medium_25x25": SheetSize(name="25x25 Medium", width=25, height=25),
}

DEFAULT_SHEET_KEY = next(iter(SHEET_SIZES))

_SIZE_PATTERN = re.compile(r"^\s*(\d+)\s*[xX]\s*(\d+)\s*$")


def validate_sheet_size(size: SheetSize) -> SheetSize:
    if int(size.width) < 1 or int(size.height) < 1:
        raise ValidationError(
            f"Sheet '{size.name}' must have positive dimensions, "
            f"got {size.width}x{size.height}"
        )
    return size


def size_ceiling(sheet_sizes: Iterable[SheetSize]) -> int:
    """Largest single dimension across every configured sheet size."""
    sizes = [validate_sheet_size(s) for s in sheet_sizes]
    if not sizes:
        raise ValidationError("Sheet catalog is empty")
    return max(s.max_dimension for s in sizes)


def parse_sheet_size(text: str, name: str = "") -> SheetSize:
    """Parse a ``WxH`` string such as ``"40x20"``."""
    match = _SIZE_PATTERN.match(text)
    if match is None:
        raise ValidationError(f"Sheet size '{text}' is not of the form WxH")
    width, height = int(match.group(1)), int(match.group(2))
    return validate_sheet_size(
        SheetSize(name=name or f"{width}x{height}", width=width, height=height)
    )


def catalog_from_entries(entries: Iterable[dict]) -> Dict[str, SheetSize]:
    """Build a catalog from ``{"width", "height", "name"}`` records."""
    catalog: Dict[str, SheetSize] = {}
    for i, entry in enumerate(entries):
        try:
            width = int(entry["width"])
            height = int(entry["height"])
        except (KeyError, TypeError, ValueError) as exc:
            raise ValidationError(f"Sheet entry {i} is malformed: {entry!r}") from exc
        name = str(entry.get("name") or f"{width}x{height}")
        key = str(entry.get("key") or _slug(name))
        if key in catalog:
            raise ValidationError(f"Duplicate sheet key '{key}'")
        catalog[key] = validate_sheet_size(SheetSize(name=name, width=width, height=height))
    if not catalog:
        raise ValidationError("Sheet catalog is empty")
    return catalog


def resolve_sheet(catalog: Dict[str, SheetSize], key: str = None) -> Tuple[str, SheetSize]:
    """Look up a catalog entry; ``None`` selects the first one."""
    if not catalog:
        raise ValidationError("Sheet catalog is empty")
    if key is None:
        key = next(iter(catalog))
    if key not in catalog:
        raise ValidationError(
            f"Unknown sheet '{key}'. Expected one of: {', '.join(catalog)}"
        )
    return key, validate_sheet_size(catalog[key])


def _slug(name: str) -> str:
    slug = re.sub(r"[^a-z0-9]+", "_", name.strip().lower()).strip("_")
    return slug or "sheet"
