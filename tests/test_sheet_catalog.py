"""Tests for the sheet size catalog."""
import pytest

from mosaic_nesting.contracts import ValidationError
from mosaic_nesting.sheet_catalog import (
    DEFAULT_SHEET_KEY,
    SHEET_SIZES,
    SheetSize,
    catalog_from_entries,
    parse_sheet_size,
    resolve_sheet,
    size_ceiling,
)


def test_default_catalog():
    assert DEFAULT_SHEET_KEY == "standard_30x30"
    assert list(SHEET_SIZES) == [
        "standard_30x30",
        "small_20x20",
        "rectangle_40x20",
        "medium_25x25",
    ]
    assert size_ceiling(SHEET_SIZES.values()) == 40


def test_fits_with_rotation():
    size = SheetSize("40x20", 40, 20)
    assert size.fits(30, 10)
    assert size.fits(10, 30)
    assert not size.fits(10, 30, allow_rotation=False)
    assert not size.fits(41, 1)


@pytest.mark.parametrize("text,expected", [("40x20", (40, 20)), (" 7 X 3 ", (7, 3))])
def test_parse_sheet_size(text, expected):
    size = parse_sheet_size(text)
    assert (size.width, size.height) == expected


@pytest.mark.parametrize("text", ["40", "axb", "0x5", "-1x5"])
def test_parse_sheet_size_rejects(text):
    with pytest.raises(ValidationError):
        parse_sheet_size(text)


def test_catalog_from_entries():
    catalog = catalog_from_entries(
        [
            {"name": "Big Board", "width": 60, "height": 30},
            {"width": 10, "height": 10, "key": "tiny"},
        ]
    )
    assert list(catalog) == ["big_board", "tiny"]
    assert catalog["tiny"].name == "10x10"


@pytest.mark.parametrize(
    "entries",
    [
        [],
        [{"name": "x"}],
        [{"width": 0, "height": 5}],
        [{"width": 5, "height": 5, "key": "a"}, {"width": 6, "height": 6, "key": "a"}],
    ],
)
def test_catalog_from_entries_rejects(entries):
    with pytest.raises(ValidationError):
        catalog_from_entries(entries)


def test_resolve_sheet():
    assert resolve_sheet(SHEET_SIZES)[0] == "standard_30x30"
    key, size = resolve_sheet(SHEET_SIZES, "rectangle_40x20")
    assert (key, size.width, size.height) == ("rectangle_40x20", 40, 20)
    with pytest.raises(ValidationError, match="Unknown sheet"):
        resolve_sheet(SHEET_SIZES, "huge")
    with pytest.raises(ValidationError):
        resolve_sheet({})


def test_empty_catalog_has_no_ceiling():
    with pytest.raises(ValidationError):
        size_ceiling([])
