import logging
import threading
from typing import Dict, List, Optional, Tuple

from bearmaps.config import MapServerConfig
from bearmaps.services.geo_graph import GeoGraph
from bearmaps.services.graph_loader import load_graph
from bearmaps.services.path_finder import PathFinder, PathResult
from bearmaps.services.raster_renderer import RasterRenderer
from bearmaps.services.tile_index import BoundingBox, SpatialTileIndex
from bearmaps.services.tile_query import RasterResult, TileQueryEngine
from bearmaps.services.tile_store import TileImageStore

logger = logging.getLogger(__name__)


class MapService:
    """Route and raster queries over one loaded graph and tile pyramid"""

    def __init__(self, graph: GeoGraph = None, tile_index: SpatialTileIndex = None,
                 tile_store: TileImageStore = None, config: MapServerConfig = None):
        self.config = config or MapServerConfig()
        self.graph = graph if graph is not None else GeoGraph()

        if tile_index is None:
            tile_index = SpatialTileIndex(BoundingBox(*self.config.root_bounds), self.config.max_depth)
        self.tile_index = tile_index

        self.path_finder = PathFinder(self.graph)
        self.tile_query = TileQueryEngine(self.tile_index, self.config.tile_size)

        self.tile_store = tile_store
        self.renderer = None
        if tile_store is not None:
            self.renderer = RasterRenderer(tile_store, self.config.route_stroke_width,
                                           self.config.route_stroke_color)

        self._route_lock = threading.Lock()
        self._current_route: List[int] = []
        logger.info(f"MapService initialized: {len(self.graph)} nodes, {self.graph.edge_count} edges, "
                    f"tile depth {self.tile_index.max_depth}")

    @classmethod
    def from_config(cls, config: MapServerConfig) -> "MapService":
        """
        Load the graph and tile store named by the config.
        A graph file that is missing or malformed raises GraphDataError.
        """
        if config.graph_path:
            graph = load_graph(config.graph_path)
        else:
            logger.warning("No graph path configured; routing will return empty routes")
            graph = GeoGraph()
        return cls(graph=graph, tile_store=TileImageStore(config.img_root), config=config)

    # Routing

    def find_route(self, start_lon: float, start_lat: float,
                   end_lon: float, end_lat: float) -> PathResult:
        """Shortest path between the nodes closest to the two points"""
        start = self.graph.closest_node(start_lon, start_lat)
        end = self.graph.closest_node(end_lon, end_lat)
        if start is None or end is None:
            logger.warning("[ROUTE] Graph has no nodes")
            return PathResult.unreachable()

        return self.path_finder.search(start.id, end.id)

    def find_and_set_route(self, start_lon: float, start_lat: float,
                           end_lon: float, end_lat: float) -> PathResult:
        result = self.find_route(start_lon, start_lat, end_lon, end_lat)
        with self._route_lock:
            self._current_route = list(result.node_ids)
        return result

    def route(self, start_lon: float, start_lat: float,
              end_lon: float, end_lat: float) -> List[int]:
        """Node ids of the new current route; empty when the target is unreachable"""
        return self.find_and_set_route(start_lon, start_lat, end_lon, end_lat).node_ids

    def clear_route(self):
        with self._route_lock:
            self._current_route = []

    @property
    def current_route(self) -> List[int]:
        with self._route_lock:
            return list(self._current_route)

    def route_points(self) -> List[Tuple[float, float]]:
        """(lon, lat) of every node on the current route"""
        return [(self.graph.get_node(node_id).lon, self.graph.get_node(node_id).lat)
                for node_id in self.current_route]

    # Rastering

    def raster(self, ullon: float, ullat: float, lrlon: float, lrlat: float,
               width: float, height: float) -> RasterResult:
        return self.tile_query.query(ullon, ullat, lrlon, lrlat, width, height)

    def render_raster(self, ullon: float, ullat: float, lrlon: float, lrlat: float,
                      width: float, height: float) -> Tuple[RasterResult, Optional[bytes]]:
        """
        Raster query plus the composed PNG with the current route drawn on it.
        The image is None when the query failed, no tile store is configured,
        or a tile image could not be read (the result is then marked failed).
        """
        result = self.raster(ullon, ullat, lrlon, lrlat, width, height)
        if not result.query_success or self.renderer is None:
            return result, None

        try:
            image = self.renderer.render(result, self.route_points())
        except OSError as e:
            logger.error(f"[RASTER] Could not read tile image: {e}")
            result.query_success = False
            result.message = f"Could not read tile image: {e}"
            return result, None

        return result, image

    def stats(self) -> Dict[str, int]:
        return {
            "nodes": len(self.graph),
            "edges": self.graph.edge_count,
            "tiles": len(self.tile_index),
            "max_depth": self.tile_index.max_depth,
            "current_route_length": len(self.current_route),
        }
