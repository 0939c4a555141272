"""
Composes the tiles of a raster query into a single PNG and draws the
current route on top of it.
"""

import io
import logging
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
from PIL import Image, ImageDraw
from rasterio.transform import from_bounds

from bearmaps.config import ROUTE_STROKE_COLOR, ROUTE_STROKE_WIDTH_PX
from bearmaps.services.tile_query import RasterResult
from bearmaps.services.tile_store import TileImageStore

logger = logging.getLogger(__name__)


class RasterRenderer:
    """Draws tile images into a grid and overlays a route polyline"""

    def __init__(self, store: TileImageStore, stroke_width: int = ROUTE_STROKE_WIDTH_PX,
                 stroke_color: Tuple[int, int, int, int] = ROUTE_STROKE_COLOR):
        self.store = store
        self.stroke_width = stroke_width
        self.stroke_color = tuple(stroke_color)

    def _load_tile(self, image_id: int, tile_size: int) -> np.ndarray:
        image = Image.open(io.BytesIO(self.store.get(image_id))).convert("RGB")
        if image.size != (tile_size, tile_size):
            logger.debug(f"[RENDER] Resizing tile {image_id} from {image.size} to {tile_size}px")
            image = image.resize((tile_size, tile_size))
        return np.asarray(image, dtype=np.uint8)

    def compose(self, result: RasterResult) -> Image.Image:
        """
        Place every tile at its grid position.
        Raises TileImageNotFoundError if an image is missing.
        """
        size = result.tile_size
        canvas = np.zeros((result.raster_height, result.raster_width, 3), dtype=np.uint8)

        min_row = min(tile.row for tile in result.tiles)
        min_col = min(tile.col for tile in result.tiles)
        for tile in result.tiles:
            y = (tile.row - min_row) * size
            x = (tile.col - min_col) * size
            canvas[y:y + size, x:x + size] = self._load_tile(tile.image_id, size)

        return Image.fromarray(canvas)

    def draw_route(self, image: Image.Image, result: RasterResult,
                   points: Sequence[Tuple[float, float]]) -> Image.Image:
        """Draw (lon, lat) points as a polyline over the composed raster"""
        if len(points) < 2:
            return image

        bounds = result.bounds
        transform = from_bounds(bounds.ullon, bounds.lrlat, bounds.lrlon, bounds.ullat,
                                image.width, image.height)
        to_pixel = ~transform
        pixels = [to_pixel * (lon, lat) for lon, lat in points]

        overlay = Image.new("RGBA", image.size, (0, 0, 0, 0))
        ImageDraw.Draw(overlay).line(pixels, fill=self.stroke_color, width=self.stroke_width,
                                     joint="curve")
        return Image.alpha_composite(image.convert("RGBA"), overlay).convert("RGB")

    def render(self, result: RasterResult,
               route_points: Optional[Iterable[Tuple[float, float]]] = None) -> bytes:
        """PNG bytes for a successful raster result"""
        if not result.query_success or not result.tiles:
            raise ValueError("Cannot render an unsuccessful raster query")

        image = self.compose(result)
        if route_points:
            image = self.draw_route(image, result, list(route_points))

        buffer = io.BytesIO()
        image.save(buffer, format="PNG")
        logger.info(f"[RENDER] Rendered {len(result.tiles)} tiles into {image.width}x{image.height} PNG")
        return buffer.getvalue()
