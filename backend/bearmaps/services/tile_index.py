"""
Quadtree index over the map tile pyramid.

Each node covers one tile image. A child's image id is its parent's id with
the quadrant digit appended (1=NW, 2=NE, 3=SW, 4=SE), so the number of digits
equals the depth and the root is id 0.
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from bearmaps.config import MAX_DEPTH

logger = logging.getLogger(__name__)

# Eager construction holds sum(4^d) nodes in memory; 8 levels is ~87k nodes.
MAX_SUPPORTED_DEPTH = 8

NW, NE, SW, SE = 1, 2, 3, 4


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned box given by its upper-left and lower-right corners.
    Latitude decreases downward, so height is measured from the top edge down.
    """
    ullon: float
    ullat: float
    lrlon: float
    lrlat: float

    @classmethod
    def from_xywh(cls, x: float, y: float, width: float, height: float) -> "BoundingBox":
        return cls(x, y, x + width, y - height)

    @property
    def x(self) -> float:
        return self.ullon

    @property
    def y(self) -> float:
        return self.ullat

    @property
    def width(self) -> float:
        return self.lrlon - self.ullon

    @property
    def height(self) -> float:
        return self.ullat - self.lrlat

    @property
    def left(self) -> float:
        return min(self.ullon, self.lrlon)

    @property
    def right(self) -> float:
        return max(self.ullon, self.lrlon)

    @property
    def top(self) -> float:
        return max(self.ullat, self.lrlat)

    @property
    def bottom(self) -> float:
        return min(self.ullat, self.lrlat)

    def overlaps(self, other: "BoundingBox") -> bool:
        """True when the boxes share a region of positive area; touching edges do not count"""
        return (self.left < other.right and self.right > other.left and
                self.top > other.bottom and self.bottom < other.top)

    def contains(self, lon: float, lat: float) -> bool:
        return self.left <= lon <= self.right and self.bottom <= lat <= self.top


@dataclass(eq=False)
class TileIndexNode:
    image_id: int
    depth: int
    row: int
    col: int
    bbox: BoundingBox
    children: Tuple["TileIndexNode", ...] = field(default=(), repr=False)

    @property
    def is_leaf(self) -> bool:
        return not self.children

    def child(self, quadrant: int) -> "TileIndexNode":
        return self.children[quadrant - 1]


def split(node: TileIndexNode) -> Tuple[TileIndexNode, TileIndexNode, TileIndexNode, TileIndexNode]:
    """Four equal quadrants of a node, in NW, NE, SW, SE order"""
    box = node.bbox
    mid_lon = (box.lrlon - box.ullon) / 2 + box.ullon
    mid_lat = (box.ullat - box.lrlat) / 2 + box.lrlat
    depth = node.depth + 1
    row, col = node.row * 2, node.col * 2

    return (
        TileIndexNode(node.image_id * 10 + NW, depth, row, col,
                      BoundingBox(box.ullon, box.ullat, mid_lon, mid_lat)),
        TileIndexNode(node.image_id * 10 + NE, depth, row, col + 1,
                      BoundingBox(mid_lon, box.ullat, box.lrlon, mid_lat)),
        TileIndexNode(node.image_id * 10 + SW, depth, row + 1, col,
                      BoundingBox(box.ullon, mid_lat, mid_lon, box.lrlat)),
        TileIndexNode(node.image_id * 10 + SE, depth, row + 1, col + 1,
                      BoundingBox(mid_lon, mid_lat, box.lrlon, box.lrlat)),
    )


class SpatialTileIndex:
    """Complete quadtree built level by level down to max_depth"""

    def __init__(self, root_bounds: BoundingBox, max_depth: int = MAX_DEPTH):
        if not 0 <= max_depth <= MAX_SUPPORTED_DEPTH:
            raise ValueError(f"max_depth must be between 0 and {MAX_SUPPORTED_DEPTH}, got {max_depth}")

        self.max_depth = max_depth
        self.root = TileIndexNode(image_id=0, depth=0, row=0, col=0, bbox=root_bounds)
        self._levels: List[List[TileIndexNode]] = [[self.root]]

        for depth in range(max_depth):
            next_level = []
            for node in self._levels[depth]:
                node.children = split(node)
                next_level.extend(node.children)
            self._levels.append(next_level)

        self._by_id: Dict[int, TileIndexNode] = {
            node.image_id: node for level in self._levels for node in level
        }
        logger.info(f"SpatialTileIndex built: depth {max_depth}, {len(self._by_id)} nodes, "
                    f"{len(self._levels[-1])} leaves")

    def __len__(self) -> int:
        return len(self._by_id)

    @property
    def bounds(self) -> BoundingBox:
        return self.root.bbox

    def level(self, depth: int) -> List[TileIndexNode]:
        """All nodes at a depth, row-major"""
        if not 0 <= depth <= self.max_depth:
            raise ValueError(f"Depth {depth} outside 0..{self.max_depth}")
        return sorted(self._levels[depth], key=lambda n: (n.row, n.col))

    def leaves(self) -> List[TileIndexNode]:
        return self.level(self.max_depth)

    def node_for_id(self, image_id: int) -> Optional[TileIndexNode]:
        return self._by_id.get(image_id)
