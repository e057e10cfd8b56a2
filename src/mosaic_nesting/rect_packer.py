"""
Guillotine bin packing of axis-aligned bounding boxes.

Each bin holds a binary tree of free rectangles. Placing an item in a free
node splits the leftover space into a ``right`` strip (beside the item, item
height) and a ``down`` strip (below the item, full node width). Items are
taken largest bounding-box area first; bins are added on demand. Shapes are
never inspected, so holes inside a piece's bounding box are wasted.
"""

import logging
from dataclasses import dataclass
from typing import Any, List, Optional, Sequence, Tuple

from mosaic_nesting.contracts import UnplaceablePieceError, ValidationError

logger = logging.getLogger(__name__)


@dataclass
class FreeNode:
    """Node of the guillotine tree."""
    x: int
    y: int
    width: int
    height: int
    used: bool = False
    right: Optional["FreeNode"] = None
    down: Optional["FreeNode"] = None


class GuillotineBin:
    """One bin and its free-space tree."""

    def __init__(self, width: int, height: int):
        self.width = width
        self.height = height
        self.root = FreeNode(0, 0, width, height)

    def insert(self, width: int, height: int) -> Optional[Tuple[int, int]]:
        """Reserve a width x height rectangle; returns its (x, y) or None."""
        return self._insert_node(self.root, width, height)

    def _insert_node(self, node: FreeNode, width: int, height: int) -> Optional[Tuple[int, int]]:
        if node.used:
            found = self._insert_node(node.right, width, height)
            if found is not None:
                return found
            return self._insert_node(node.down, width, height)
        if width <= node.width and height <= node.height:
            node.used = True
            node.down = FreeNode(node.x, node.y + height, node.width, node.height - height)
            node.right = FreeNode(node.x + width, node.y, node.width - width, height)
            return node.x, node.y
        return None


@dataclass
class PackedItem:
    """An item and where it landed."""
    item: Any
    bin_index: int
    x: int
    y: int
    rotated: bool

    @property
    def width(self) -> int:
        return self.item.height if self.rotated else self.item.width

    @property
    def height(self) -> int:
        return self.item.width if self.rotated else self.item.height


@dataclass
class RectPackResult:
    packed_items: List[PackedItem]
    bins: List[GuillotineBin]
    efficiency: float
    bin_width: int = 0
    bin_height: int = 0

    @property
    def total_bins(self) -> int:
        return len(self.bins)

    @property
    def waste_percentage(self) -> float:
        return 100.0 - self.efficiency


class RectanglePacker:
    """Greedy decreasing guillotine packer.

    Items only need ``width``, ``height`` and ``area`` attributes. Ordering
    uses ``width * height``; ``area`` only feeds the efficiency.
    """

    def __init__(self, bin_width: int, bin_height: int, allow_rotation: bool = True):
        if bin_width < 1 or bin_height < 1:
            raise ValidationError(
                f"Bin must have positive dimensions, got {bin_width}x{bin_height}"
            )
        self.bin_width = int(bin_width)
        self.bin_height = int(bin_height)
        self.allow_rotation = allow_rotation
        self.bins: List[GuillotineBin] = []

    def pack(self, items: Sequence[Any]) -> RectPackResult:
        self.bins = []
        oversized = [
            getattr(item, "id", i)
            for i, item in enumerate(items)
            if not self._fits_empty_bin(item.width, item.height)
        ]
        if oversized:
            raise UnplaceablePieceError(oversized, self.bin_width, self.bin_height)

        ordered = sorted(items, key=lambda item: item.width * item.height, reverse=True)
        packed: List[PackedItem] = []
        for item in ordered:
            placement = self._find_placement(item)
            if placement is None:
                self.bins.append(GuillotineBin(self.bin_width, self.bin_height))
                placement = self._insert_into(len(self.bins) - 1, item)
            bin_index, x, y, rotated = placement
            packed.append(PackedItem(item=item, bin_index=bin_index, x=x, y=y, rotated=rotated))

        efficiency = self.calculate_efficiency(packed)
        logger.debug(
            "Packed %d items into %d bin(s) of %dx%d (%.1f%%)",
            len(packed),
            len(self.bins),
            self.bin_width,
            self.bin_height,
            efficiency,
        )
        return RectPackResult(
            packed_items=packed,
            bins=list(self.bins),
            efficiency=efficiency,
            bin_width=self.bin_width,
            bin_height=self.bin_height,
        )

    def calculate_efficiency(self, packed: Sequence[PackedItem]) -> float:
        if not self.bins:
            return 0.0
        total_bin_area = len(self.bins) * self.bin_width * self.bin_height
        return sum(p.item.area for p in packed) / total_bin_area * 100.0

    def _fits_empty_bin(self, width: int, height: int) -> bool:
        if width <= self.bin_width and height <= self.bin_height:
            return True
        return self.allow_rotation and height <= self.bin_width and width <= self.bin_height

    def _find_placement(self, item) -> Optional[Tuple[int, int, int, bool]]:
        """Existing bins in creation order, given orientation before rotated."""
        orientations = [(item.width, item.height, False)]
        if self.allow_rotation and item.width != item.height:
            orientations.append((item.height, item.width, True))
        for width, height, rotated in orientations:
            for index, bin_ in enumerate(self.bins):
                spot = bin_.insert(width, height)
                if spot is not None:
                    return index, spot[0], spot[1], rotated
        return None

    def _insert_into(self, index: int, item) -> Tuple[int, int, int, bool]:
        bin_ = self.bins[index]
        spot = bin_.insert(item.width, item.height)
        if spot is not None:
            return index, spot[0], spot[1], False
        spot = bin_.insert(item.height, item.width)
        return index, spot[0], spot[1], True
