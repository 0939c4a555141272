"""
Raster queries against the tile pyramid.

A query picks the shallowest depth whose longitude-per-pixel does not exceed
the viewport's, collects every tile at that depth overlapping the query box,
and returns them row-major together with the grid shape and covered bounds.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from bearmaps.config import TILE_SIZE
from bearmaps.services.tile_index import BoundingBox, SpatialTileIndex, TileIndexNode

logger = logging.getLogger(__name__)


@dataclass
class RasterResult:
    """Ordered tiles for a raster query plus the layout needed to assemble them"""
    tiles: List[TileIndexNode] = field(default_factory=list)
    depth: int = 0
    rows: int = 0
    cols: int = 0
    tile_size: int = TILE_SIZE
    query_success: bool = False
    message: Optional[str] = None

    @classmethod
    def failure(cls, message: str, depth: int = 0, tile_size: int = TILE_SIZE) -> "RasterResult":
        return cls(depth=depth, tile_size=tile_size, query_success=False, message=message)

    @property
    def render_grid(self) -> List[int]:
        return [tile.image_id for tile in self.tiles]

    @property
    def bounds(self) -> Optional[BoundingBox]:
        """Upper-left of the first tile to lower-right of the last"""
        if not self.tiles:
            return None
        first, last = self.tiles[0].bbox, self.tiles[-1].bbox
        return BoundingBox(first.ullon, first.ullat, last.lrlon, last.lrlat)

    @property
    def raster_width(self) -> int:
        return self.cols * self.tile_size

    @property
    def raster_height(self) -> int:
        return self.rows * self.tile_size

    def grid(self) -> List[List[TileIndexNode]]:
        """Tiles split into rows"""
        return [self.tiles[r * self.cols:(r + 1) * self.cols] for r in range(self.rows)]

    def to_dict(self) -> Dict[str, Any]:
        bounds = self.bounds
        return {
            "render_grid": self.render_grid,
            "raster_ul_lon": bounds.ullon if bounds else None,
            "raster_ul_lat": bounds.ullat if bounds else None,
            "raster_lr_lon": bounds.lrlon if bounds else None,
            "raster_lr_lat": bounds.lrlat if bounds else None,
            "raster_width": self.raster_width,
            "raster_height": self.raster_height,
            "depth": self.depth,
            "rows": self.rows,
            "cols": self.cols,
            "query_success": self.query_success,
            "message": self.message,
        }


class TileQueryEngine:
    """Selects the tiles covering a viewport at the matching pyramid depth"""

    def __init__(self, index: SpatialTileIndex, tile_size: int = TILE_SIZE):
        self.index = index
        self.tile_size = tile_size

    def required_depth(self, query: BoundingBox, width: float) -> int:
        """
        Shallowest depth whose longitude-per-pixel is no larger than the query's,
        clamped to the index depth.
        """
        query_lon_dpp = query.width / width
        root_span = self.index.bounds.width
        depth = 0
        while (depth < self.index.max_depth and
               root_span / (2 ** depth * self.tile_size) > query_lon_dpp):
            depth += 1
        return max(0, min(depth, self.index.max_depth))

    def collect(self, query: BoundingBox, depth: int) -> List[TileIndexNode]:
        """Tiles at `depth` overlapping the query box, in row-major order"""
        collection: List[TileIndexNode] = []
        self._collect(self.index.root, query, depth, collection)
        collection.sort(key=lambda tile: (tile.row, tile.col))
        return collection

    def _collect(self, node: TileIndexNode, query: BoundingBox, depth: int,
                 collection: List[TileIndexNode]):
        if node.depth == depth and node.bbox.overlaps(query):
            collection.append(node)
            return

        for child in node.children:
            if not child.bbox.overlaps(query):
                continue
            if child.depth == depth:
                collection.append(child)
            else:
                self._collect(child, query, depth, collection)

    def query(self, ullon: float, ullat: float, lrlon: float, lrlat: float,
              width: float, height: float) -> RasterResult:
        """
        Resolve a viewport into an ordered tile grid.

        Invalid viewports (non-finite values, inverted box, non-positive pixel
        size) and boxes outside the map produce an unsuccessful result rather
        than an exception.
        """
        values = (ullon, ullat, lrlon, lrlat, width, height)
        if not all(math.isfinite(v) for v in values):
            return RasterResult.failure("Query parameters must be finite numbers", tile_size=self.tile_size)
        if width <= 0 or height <= 0:
            return RasterResult.failure(f"Invalid viewport size {width}x{height}", tile_size=self.tile_size)
        if lrlon <= ullon or ullat <= lrlat:
            return RasterResult.failure("Query box must have upper-left above and left of lower-right",
                                        tile_size=self.tile_size)

        query = BoundingBox(ullon, ullat, lrlon, lrlat)
        depth = self.required_depth(query, width)
        tiles = self.collect(query, depth)

        if not tiles:
            logger.info(f"[RASTER] Query box {query} does not overlap the map")
            return RasterResult.failure("Query box does not overlap the map", depth=depth,
                                        tile_size=self.tile_size)

        rows = len({tile.row for tile in tiles})
        cols = len({tile.col for tile in tiles})
        logger.info(f"[RASTER] Depth {depth}: {len(tiles)} tiles in a {rows}x{cols} grid")

        return RasterResult(tiles=tiles, depth=depth, rows=rows, cols=cols,
                            tile_size=self.tile_size, query_success=True)
